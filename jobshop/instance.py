"""
FlexShop — Domain Model
Machines, jobs and their ordered tasks, each task with alternative machines.

Instances are append-only: machines and jobs are registered through
``Instance.make_machine`` / ``Instance.make_job`` and receive sequential ids
starting at 1. Tasks are appended to a job through ``Job.add_task``; their
order inside the job is the precedence order.
"""

from __future__ import annotations

from typing import Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .errors import InvalidInstance


def _check_alternatives(machines: Sequence["Machine"], durations: Sequence[int]) -> None:
    if len(machines) < 1:
        raise InvalidInstance("Machines must contain at least one machine")
    if len(durations) < 1:
        raise InvalidInstance("Durations must contain at least one duration")
    if len(machines) != len(durations):
        raise InvalidInstance(
            f"Machines and durations must have the same length "
            f"(got {len(machines)} machines, {len(durations)} durations)"
        )
    for d in durations:
        if isinstance(d, bool) or not isinstance(d, int) or d <= 0:
            raise InvalidInstance(f"Durations must be positive integers, got {d!r}")


class Machine(BaseModel):
    """A unary resource. Immutable once created."""
    model_config = ConfigDict(frozen=True)

    id: int = Field(..., ge=1)

    @property
    def name(self) -> str:
        return f"M_{self.id}"


class Task(BaseModel):
    """
    The basic block of a job shop.

    A task can be performed on any of ``machines``; alternative ``k`` runs on
    ``machines[k]`` for ``durations[k]`` time units.
    """
    id: int = Field(..., ge=1)
    job_id: int = Field(..., ge=1)
    machines: list[Machine]
    durations: list[int]

    @model_validator(mode="after")
    def check_alternatives(self):
        _check_alternatives(self.machines, self.durations)
        return self

    @property
    def alternatives_count(self) -> int:
        return len(self.machines)

    @property
    def alternatives(self) -> list[tuple[Machine, int]]:
        return list(zip(self.machines, self.durations))

    @property
    def name(self) -> str:
        return f"J_{self.job_id}, T_{self.id}, AltCount={self.alternatives_count}"


class Job(BaseModel):
    """An ordered, append-only sequence of tasks."""
    id: int = Field(..., ge=1)
    tasks: list[Task] = Field(default_factory=list)

    @property
    def name(self) -> str:
        return f"J_{self.id}"

    def add_task(self, machines: Sequence[Machine], durations: Sequence[int]) -> Task:
        """Append a task whose alternative k runs on machines[k] for durations[k]."""
        _check_alternatives(machines, durations)
        task = Task(
            id=len(self.tasks) + 1,
            job_id=self.id,
            machines=list(machines),
            durations=list(durations),
        )
        self.tasks.append(task)
        return task

    def add_alternatives(self, alternatives: Sequence[tuple[Machine, int]]) -> Task:
        """Append a task given as a list of (machine, duration) pairs."""
        machines = [m for m, _ in alternatives]
        durations = [d for _, d in alternatives]
        return self.add_task(machines, durations)


class Instance(BaseModel):
    """A named flexible job shop instance: registries of jobs and machines."""
    name: str = "unnamed"
    jobs: list[Job] = Field(default_factory=list)
    machines: list[Machine] = Field(default_factory=list)

    @field_validator("name", mode="before")
    @classmethod
    def default_blank_name(cls, v):
        if v is None or not str(v).strip():
            return "unnamed"
        return v

    def job_count(self) -> int:
        return len(self.jobs)

    def machine_count(self) -> int:
        return len(self.machines)

    def make_job(self) -> Job:
        job = Job(id=self.job_count() + 1)
        self.jobs.append(job)
        return job

    def make_machine(self) -> Machine:
        machine = Machine(id=self.machine_count() + 1)
        self.machines.append(machine)
        return machine

    def horizon(self) -> int:
        """Sum over all tasks of the longest alternative: a safe makespan bound."""
        return sum(max(t.durations) for j in self.jobs for t in j.tasks)
