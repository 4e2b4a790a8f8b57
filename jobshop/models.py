"""
FlexShop — Data Models
Pydantic schemas for requests, schedules and validation reports.

A request describes an instance the way a caller sends it over the wire:
machines are numbered 1..num_machines, and every task lists its
alternatives as (machine_id, duration) pairs. ``to_instance`` turns it into
the append-only domain model the builder consumes.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from .instance import Instance, Machine


# ─────────────────────────────────────────────
# Enums
# ─────────────────────────────────────────────

class SolverStatus(str, Enum):
    """Status of a solve call."""
    OPTIMAL = "optimal"
    FEASIBLE = "feasible"
    INFEASIBLE = "infeasible"
    TIMEOUT = "timeout"
    INVALID_INSTANCE = "invalid_instance"
    BUILD_ERROR = "build_error"


# ─────────────────────────────────────────────
# Input Models
# ─────────────────────────────────────────────

class AlternativeSpec(BaseModel):
    """One way to perform a task: a machine and its processing time."""
    machine_id: int = Field(..., ge=1, description="Machine id, 1-based")
    duration: int = Field(..., description="Processing time on that machine")


class TaskSpec(BaseModel):
    """A task and the machines that can process it."""
    alternatives: list[AlternativeSpec] = Field(
        ..., description="Alternative (machine, duration) pairs. Exactly one is chosen."
    )


class JobSpec(BaseModel):
    """A job: tasks executed strictly in the listed order."""
    tasks: list[TaskSpec] = Field(..., description="Ordered tasks")


class InstanceSpec(BaseModel):
    """A flexible job shop instance in wire form."""
    name: str = Field("unnamed", description="Instance name")
    num_machines: int = Field(..., ge=0, description="Machines M_1..M_n are created")
    jobs: list[JobSpec] = Field(default_factory=list)

    def to_instance(self) -> Instance:
        """
        Build the domain model. Raises InvalidInstance on a malformed task.

        Alternatives pointing past num_machines keep their machine id, so the
        builder reports them as dangling references.
        """
        instance = Instance(name=self.name)
        for _ in range(self.num_machines):
            instance.make_machine()
        registry = {m.id: m for m in instance.machines}
        for job_spec in self.jobs:
            job = instance.make_job()
            for task_spec in job_spec.tasks:
                job.add_task(
                    [registry.get(a.machine_id) or Machine(id=a.machine_id) for a in task_spec.alternatives],
                    [a.duration for a in task_spec.alternatives],
                )
        return instance


class ScheduleRequest(InstanceSpec):
    """
    Complete scheduling request.

    The solver picks one alternative per task and a start time for it,
    minimizing the makespan.
    """
    max_solve_time_seconds: float = Field(
        60, gt=0, le=20 * 60,
        description="Maximum solver runtime in seconds",
    )


# ─────────────────────────────────────────────
# Output Models
# ─────────────────────────────────────────────

class ScheduledTask(BaseModel):
    """A task placed on the machine of its chosen alternative."""
    job_id: int
    task_id: int
    machine_id: int
    alternative: int = Field(..., ge=0, description="Index of the chosen alternative")
    start: int = Field(..., ge=0)
    end: int = Field(..., ge=0)
    duration: int = Field(..., gt=0)


class MachineSequence(BaseModel):
    """The tasks performed on one machine, in processing order."""
    machine_id: int
    name: str
    tasks: list[ScheduledTask] = Field(default_factory=list)


class Schedule(BaseModel):
    """Per-machine ordered task lists and the makespan."""
    instance_name: str
    status: SolverStatus
    makespan: int
    machines: list[MachineSequence]
    solve_time_seconds: float = 0.0
    solutions_found: int = 0

    def tasks(self) -> list[ScheduledTask]:
        return [t for seq in self.machines for t in seq.tasks]

    def task(self, job_id: int, task_id: int) -> Optional[ScheduledTask]:
        return next((t for t in self.tasks() if t.job_id == job_id and t.task_id == task_id), None)

    def sequence(self, machine_id: int) -> MachineSequence:
        return next(s for s in self.machines if s.machine_id == machine_id)


class MachineUtilization(BaseModel):
    """Utilization metrics for a single machine."""
    machine_id: int
    busy_time: int = Field(..., ge=0)
    idle_time: int = Field(..., ge=0)
    utilization_pct: float = Field(..., ge=0, le=100)
    num_tasks: int = Field(..., ge=0)


class ScheduleResponse(BaseModel):
    """Solver response: the schedule when one was found, a message otherwise."""
    status: SolverStatus
    message: str = Field(..., description="Human-readable status message")
    schedule: Optional[Schedule] = None
    machine_utilization: list[MachineUtilization] = Field(default_factory=list)


# ─────────────────────────────────────────────
# Validation Request/Response
# ─────────────────────────────────────────────

class ValidationViolation(BaseModel):
    """A single constraint violation found in a schedule."""
    violation_type: str = Field(..., description="overlap, precedence, machine_eligibility, ...")
    severity: str = Field("error", description="error or warning")
    description: str
    affected_tasks: list[str] = Field(default_factory=list)


class ValidateRequest(InstanceSpec):
    """Validate an existing schedule against an instance."""
    schedule: list[ScheduledTask] = Field(..., min_length=1)


class ValidateResponse(BaseModel):
    """Validation result."""
    is_valid: bool
    num_violations: int = 0
    violations: list[ValidationViolation] = Field(default_factory=list)
    makespan: Optional[int] = None
    machine_utilization: list[MachineUtilization] = Field(default_factory=list)
    improvement_suggestions: list[str] = Field(default_factory=list)
