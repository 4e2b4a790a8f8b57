"""
FlexShop — Schedule Validator
Checks a schedule against an instance, independently of the solver.

Agents and tests use it to verify schedules (solver output or hand-made)
and to get violation reports plus improvement suggestions.
"""

from __future__ import annotations

import collections

from .engine import compute_machine_utilization
from .instance import Instance, Task
from .models import ScheduledTask, ValidateRequest, ValidateResponse, ValidationViolation


def _label(job_id: int, task_id: int) -> str:
    return f"J_{job_id}/T_{task_id}"


def validate_schedule(request: ValidateRequest) -> ValidateResponse:
    """Validate the schedule of a request against the instance it describes."""
    return validate_tasks(request.to_instance(), request.schedule)


def validate_tasks(instance: Instance, schedule: list[ScheduledTask]) -> ValidateResponse:
    """
    Validate scheduled tasks against an instance.

    Checks:
      1. Consistency (start + duration == end)
      2. Machine existence
      3. Task existence, eligibility and duration of the chosen alternative
      4. Exactly one assignment per task
      5. No overlaps (no two tasks overlap on the same machine)
      6. Precedence (tasks within a job respect order)
      7. Missing tasks (warning)
    """
    violations: list[ValidationViolation] = []
    suggestions: list[str] = []

    machine_ids = {m.id for m in instance.machines}
    task_map: dict[tuple[int, int], Task] = {
        (job.id, task.id): task for job in instance.jobs for task in job.tasks
    }

    # ── 1. Consistency ──
    for st in schedule:
        if st.start + st.duration != st.end:
            violations.append(ValidationViolation(
                violation_type="consistency",
                description=f"Task {_label(st.job_id, st.task_id)}: start({st.start}) + duration({st.duration}) != end({st.end})",
                affected_tasks=[_label(st.job_id, st.task_id)],
            ))

    # ── 2. Machine existence ──
    for st in schedule:
        if st.machine_id not in machine_ids:
            violations.append(ValidationViolation(
                violation_type="unknown_machine",
                description=f"Task {_label(st.job_id, st.task_id)} assigned to unknown machine M_{st.machine_id}",
                affected_tasks=[_label(st.job_id, st.task_id)],
            ))

    # ── 3. Eligibility ──
    for st in schedule:
        task = task_map.get((st.job_id, st.task_id))
        if task is None:
            violations.append(ValidationViolation(
                violation_type="unknown_task",
                description=f"Instance has no task {_label(st.job_id, st.task_id)}",
                affected_tasks=[_label(st.job_id, st.task_id)],
            ))
            continue
        if st.alternative >= task.alternatives_count:
            eligible = False
        else:
            machine, duration = task.alternatives[st.alternative]
            eligible = machine.id == st.machine_id and duration == st.duration
        if not eligible:
            violations.append(ValidationViolation(
                violation_type="machine_eligibility",
                description=(
                    f"Task {_label(st.job_id, st.task_id)} placed as alternative {st.alternative} "
                    f"on M_{st.machine_id} for {st.duration}, but its alternatives are "
                    f"{[(m.name, d) for m, d in task.alternatives]}"
                ),
                affected_tasks=[_label(st.job_id, st.task_id)],
            ))

    # ── 4. Exactly one assignment ──
    task_lookup: dict[tuple[int, int], ScheduledTask] = {}
    for st in schedule:
        key = (st.job_id, st.task_id)
        if key in task_lookup:
            violations.append(ValidationViolation(
                violation_type="duplicate_assignment",
                description=f"Task {_label(*key)} is scheduled more than once",
                affected_tasks=[_label(*key)],
            ))
            continue
        task_lookup[key] = st

    # ── 5. No-overlap per machine ──
    tasks_by_machine: dict[int, list[ScheduledTask]] = collections.defaultdict(list)
    for st in schedule:
        tasks_by_machine[st.machine_id].append(st)

    for mid, tasks in tasks_by_machine.items():
        sorted_tasks = sorted(tasks, key=lambda t: t.start)
        for a, b in zip(sorted_tasks, sorted_tasks[1:]):
            if a.end > b.start:
                violations.append(ValidationViolation(
                    violation_type="overlap",
                    description=(
                        f"Machine M_{mid}: task {_label(a.job_id, a.task_id)} ends at {a.end} "
                        f"but {_label(b.job_id, b.task_id)} starts at {b.start}"
                    ),
                    affected_tasks=[_label(a.job_id, a.task_id), _label(b.job_id, b.task_id)],
                ))

    # ── 6. Precedence within jobs ──
    for job in instance.jobs:
        for t1, t2 in zip(job.tasks, job.tasks[1:]):
            st1 = task_lookup.get((job.id, t1.id))
            st2 = task_lookup.get((job.id, t2.id))
            if st1 and st2 and st2.start < st1.end:
                violations.append(ValidationViolation(
                    violation_type="precedence",
                    description=(
                        f"Job {job.name}: task T_{t2.id} starts at {st2.start} "
                        f"before predecessor T_{t1.id} ends at {st1.end}"
                    ),
                    affected_tasks=[_label(job.id, t1.id), _label(job.id, t2.id)],
                ))

    # ── 7. Missing tasks (warnings) ──
    for job_id, task_id in task_map:
        if (job_id, task_id) not in task_lookup:
            violations.append(ValidationViolation(
                violation_type="missing_task",
                severity="warning",
                description=f"Task {_label(job_id, task_id)} is not in the schedule",
                affected_tasks=[_label(job_id, task_id)],
            ))

    errors = [v for v in violations if v.severity == "error"]

    makespan = None
    utilization = []
    if not errors:
        makespan = max((st.end for st in schedule), default=0)
        utilization = compute_machine_utilization(sorted(machine_ids), schedule, makespan)

    if not violations:
        for mid, tasks in sorted(tasks_by_machine.items()):
            sorted_tasks = sorted(tasks, key=lambda t: t.start)
            idle = sum(max(0, b.start - a.end) for a, b in zip(sorted_tasks, sorted_tasks[1:]))
            if idle > 0:
                suggestions.append(
                    f"Machine M_{mid} has {idle} time units of idle gaps between tasks. Consider compacting."
                )

    return ValidateResponse(
        is_valid=len(errors) == 0,
        num_violations=len(violations),
        violations=violations,
        makespan=makespan,
        machine_utilization=utilization,
        improvement_suggestions=suggestions,
    )
