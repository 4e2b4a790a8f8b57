"""
FlexShop — Solution Extractor
Reads the retained assignment into per-machine ordered task lists.
"""

from __future__ import annotations

from .builder import ModelHandles
from .cp import Scheduled
from .errors import NoSolutionFound
from .models import MachineSequence, Schedule, ScheduledTask, SolverStatus
from .search import SearchOutcome


def extract_schedule(handles: ModelHandles, outcome: SearchOutcome) -> Schedule:
    """
    Turn the retained assignment into a Schedule.

    Raises NoSolutionFound when the search never retained a feasible
    assignment, either because the instance is infeasible or because the
    time limit fired first.
    """
    assignment = outcome.assignment
    if assignment is None:
        if outcome.status == SolverStatus.INFEASIBLE:
            message = f"Instance '{handles.instance.name}' has no feasible schedule"
        else:
            message = (
                f"No feasible schedule found for '{handles.instance.name}' "
                f"within the time limit ({outcome.wall_time:.1f}s)"
            )
        raise NoSolutionFound(message, outcome.status)

    sequences = []
    for machine in handles.instance.machines:
        timeline = handles.timelines[machine.id]
        placements = handles.placements[machine.id]
        ranks = assignment.ranks[machine.id]

        entries = []
        for index in timeline.forward_sequence(ranks):
            task_alts, alt = placements[index]
            key = (task_alts.job_id, task_alts.task.id, alt)
            span = timeline.intervals[index].snapshot(assignment.performed[key], assignment.starts[key])
            if not isinstance(span, Scheduled):
                continue
            entries.append(ScheduledTask(
                job_id=task_alts.job_id,
                task_id=task_alts.task.id,
                machine_id=machine.id,
                alternative=alt,
                start=span.start,
                end=span.end,
                duration=span.end - span.start,
            ))
        sequences.append(MachineSequence(machine_id=machine.id, name=machine.name, tasks=entries))

    status = SolverStatus.OPTIMAL if outcome.status == SolverStatus.OPTIMAL else SolverStatus.FEASIBLE
    return Schedule(
        instance_name=handles.instance.name,
        status=status,
        makespan=assignment.objective,
        machines=sequences,
        solve_time_seconds=round(outcome.wall_time, 3),
        solutions_found=outcome.solutions,
    )
