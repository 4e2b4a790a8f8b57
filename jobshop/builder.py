"""
FlexShop — Model Builder
Compiles an Instance into CP primitives:

  - one fixed-duration interval per task alternative (optional when the task
    has more than one alternative) plus a selector channelled to them
  - precedence between every alternative pair of consecutive tasks
  - one disjunctive timeline per machine
  - the makespan variable, minimized
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Optional

from ortools.sat.python import cp_model

from .cp import CpSession, MachineTimeline, OptionalInterval, add_ends_before_start
from .errors import BuildError
from .instance import Instance, Task

logger = logging.getLogger(__name__)


class TaskAlternatives:
    """The intervals of one task, alternative k at index k, and its selector."""

    def __init__(self, job_id: int, task: Task, intervals: list[OptionalInterval],
                 selector: Optional[cp_model.IntVar] = None):
        self.job_id = job_id
        self.task = task
        self.intervals = intervals
        self.selector = selector

    @property
    def key(self) -> tuple[int, int]:
        return (self.job_id, self.task.id)

    def __iter__(self):
        return iter(self.intervals)

    def __len__(self) -> int:
        return len(self.intervals)


@dataclasses.dataclass
class ModelHandles:
    """Everything the search and the extractor need from a built model."""
    session: CpSession
    instance: Instance
    horizon: int
    tasks_by_job: dict[int, list[TaskAlternatives]]
    timelines: dict[int, MachineTimeline]
    job_ends: dict[int, cp_model.IntVar]
    makespan: cp_model.IntVar

    # machine id -> interval index on that machine -> (task alternatives, alternative index)
    placements: dict[int, list[tuple[TaskAlternatives, int]]] = dataclasses.field(default_factory=dict)

    def all_tasks(self) -> list[TaskAlternatives]:
        return [ta for tasks in self.tasks_by_job.values() for ta in tasks]

    def selectors(self) -> list[cp_model.IntVar]:
        """Selector variables of every task that still has a machine choice."""
        return [ta.selector for ta in self.all_tasks() if ta.selector is not None]

    def intervals(self) -> list[OptionalInterval]:
        return [iv for ta in self.all_tasks() for iv in ta.intervals]


def _check_instance(instance: Instance) -> None:
    if instance.job_count() == 0:
        raise BuildError(f"Instance '{instance.name}' has no jobs")
    if instance.machine_count() == 0:
        raise BuildError(f"Instance '{instance.name}' has no machines")
    machine_ids = {m.id for m in instance.machines}
    for job in instance.jobs:
        if not job.tasks:
            raise BuildError(f"Job {job.name} has no tasks")
        for task in job.tasks:
            for m in task.machines:
                if m.id not in machine_ids:
                    raise BuildError(
                        f"Task {task.name} references unknown machine {m.name}"
                    )


def build(instance: Instance, session: Optional[CpSession] = None) -> ModelHandles:
    """
    Build the CP model of a flexible job shop instance.

    Raises BuildError on a degenerate instance (no jobs, no machines, a job
    without tasks) or a dangling machine reference.
    """
    _check_instance(instance)

    horizon = instance.horizon()
    if session is None:
        session = CpSession(f"FlexibleJobShop: {instance.name}")

    tasks_by_job: dict[int, list[TaskAlternatives]] = {j.id: [] for j in instance.jobs}
    intervals_by_machine: dict[int, list[OptionalInterval]] = {m.id: [] for m in instance.machines}
    placements: dict[int, list[tuple[TaskAlternatives, int]]] = {m.id: [] for m in instance.machines}

    # ── Intervals and selectors ──
    for job in instance.jobs:
        for task in job.tasks:
            has_alternatives = task.alternatives_count > 1
            intervals = []
            for alt, (machine, duration) in enumerate(task.alternatives):
                name = f"{task.name}; Alternative {alt}: {machine.name}, Duration {duration}"
                intervals.append(session.new_interval(
                    horizon, duration, has_alternatives, name, owner=(job.id, task.id)
                ))

            selector = None
            if has_alternatives:
                selector = session.new_int_var(0, task.alternatives_count - 1, task.name)
                session.add_map_domain(selector, intervals)

            alternatives = TaskAlternatives(job.id, task, intervals, selector)
            tasks_by_job[job.id].append(alternatives)
            for alt, (machine, _) in enumerate(task.alternatives):
                intervals_by_machine[machine.id].append(intervals[alt])
                placements[machine.id].append((alternatives, alt))

    # ── Precedences inside jobs ──
    for task_alts in tasks_by_job.values():
        for current, following in zip(task_alts, task_alts[1:]):
            for first in current:
                for second in following:
                    add_ends_before_start(session, first, second)

    # ── Disjunctive timelines ──
    timelines: dict[int, MachineTimeline] = {}
    for machine in instance.machines:
        timelines[machine.id] = session.add_disjunctive(intervals_by_machine[machine.id], machine.name)

    # ── Objective: makespan ──
    model = session.model
    job_ends: dict[int, cp_model.IntVar] = {}
    for job_id, task_alts in tasks_by_job.items():
        last = task_alts[-1]
        job_end = session.new_int_var(0, horizon, f"end of J_{job_id}")
        for iv in last:
            ct = model.add(job_end == iv.end)
            if iv.is_optional:
                ct.only_enforce_if(iv.performed)
        job_ends[job_id] = job_end
    makespan = session.new_max(list(job_ends.values()), horizon, "makespan")
    session.minimize(makespan)

    logger.debug(
        "Built model '%s': %d jobs, %d machines, %d intervals, horizon %d",
        instance.name, instance.job_count(), instance.machine_count(),
        sum(len(v) for v in intervals_by_machine.values()), horizon,
    )

    return ModelHandles(
        session=session,
        instance=instance,
        horizon=horizon,
        tasks_by_job=tasks_by_job,
        timelines=timelines,
        job_ends=job_ends,
        makespan=makespan,
        placements=placements,
    )
