"""
FlexShop — Text Reports
Pure formatting helpers for instances and schedules. Nothing in the model
builder or the search calls them.
"""

from __future__ import annotations

from .instance import Instance, Job, Task
from .models import Schedule


def format_task(task: Task) -> str:
    """``J_1, T_2, AltCount=2: (M_1,3) | (M_2,6)``"""
    alts = " | ".join(f"({m.name},{d})" for m, d in task.alternatives)
    return f"{task.name}: {alts}"


def format_job(job: Job) -> str:
    return "\n".join([f"{job.name}:"] + [format_task(t) for t in job.tasks])


def format_instance(instance: Instance) -> str:
    lines = [
        f"{instance.name}: {instance.job_count()} jobs, {instance.machine_count()} machines",
        "Machines: " + " ".join(m.name for m in instance.machines),
        "Jobs:",
    ]
    lines.extend(format_job(j) for j in instance.jobs)
    return "\n".join(lines)


def format_schedule(schedule: Schedule) -> str:
    """Per machine: ranked tasks and their starting times, then the makespan."""
    lines = []
    for seq in schedule.machines:
        lines.append(f"{seq.name}:")
        lines.append("  Tasks: " + ", ".join(f"J_{t.job_id}/T_{t.task_id}" for t in seq.tasks))
        lines.append("  Starting times: " + " ".join(str(t.start) for t in seq.tasks))
    lines.append(f"Makespan: {schedule.makespan} ({schedule.status.value})")
    return "\n".join(lines)
