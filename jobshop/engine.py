"""
FlexShop — Solve Orchestration
Instance → Model Builder → phased CP-SAT search → Solution Extractor.

Every call owns a fresh CpSession and CpSolver, so independent instances can
be solved concurrently without coordination.
"""

from __future__ import annotations

import collections
import logging
import time
from typing import Optional

from .builder import build
from .config import SolverConfig
from .cp import CpSession
from .errors import BuildError, InvalidInstance, NoSolutionFound
from .extractor import extract_schedule
from .instance import Instance
from .models import (
    MachineUtilization, Schedule, ScheduledTask,
    ScheduleRequest, ScheduleResponse, SolverStatus,
)
from .search import apply_search_strategy, run_search

logger = logging.getLogger(__name__)


def solve(instance: Instance, config: Optional[SolverConfig] = None) -> Schedule:
    """
    Solve a flexible job shop instance, minimizing the makespan.

    Returns the best schedule retained within the time limit; its status is
    OPTIMAL when the search completed and FEASIBLE when the limit fired first.
    Raises BuildError for a degenerate instance and NoSolutionFound when no
    feasible assignment was retained.
    """
    config = config or SolverConfig()
    logger.info(
        "Solving '%s': %d jobs, %d machines, time limit %.0fs",
        instance.name, instance.job_count(), instance.machine_count(), config.time_limit_seconds,
    )
    session = CpSession(f"FlexibleJobShop: {instance.name}")
    handles = build(instance, session)
    apply_search_strategy(handles)
    outcome = run_search(handles, config)
    return extract_schedule(handles, outcome)


def solve_schedule(request: ScheduleRequest, config: Optional[SolverConfig] = None) -> ScheduleResponse:
    """
    Solve a scheduling request and report the outcome as a response.

    Failures never raise: each maps to a response status and message.
    """
    t0 = time.time()
    config = (config or SolverConfig()).model_copy(
        update={"time_limit_seconds": request.max_solve_time_seconds}
    )

    try:
        instance = request.to_instance()
        schedule = solve(instance, config)
    except InvalidInstance as e:
        return ScheduleResponse(status=SolverStatus.INVALID_INSTANCE, message=f"Invalid instance: {e}")
    except BuildError as e:
        return ScheduleResponse(status=SolverStatus.BUILD_ERROR, message=f"Cannot build model: {e}")
    except NoSolutionFound as e:
        if e.status == SolverStatus.INFEASIBLE:
            message = "No feasible schedule exists for this instance."
        else:
            message = (
                f"Solver timed out after {request.max_solve_time_seconds}s without finding a solution. "
                "Try increasing max_solve_time_seconds or reducing problem size."
            )
        return ScheduleResponse(status=e.status, message=message)

    solve_time = time.time() - t0
    label = "Optimal" if schedule.status == SolverStatus.OPTIMAL else "Feasible"
    return ScheduleResponse(
        status=schedule.status,
        message=f"{label} schedule found in {solve_time:.2f}s. Makespan: {schedule.makespan} time units.",
        schedule=schedule,
        machine_utilization=compute_machine_utilization(
            [seq.machine_id for seq in schedule.machines], schedule.tasks(), schedule.makespan,
        ),
    )


def compute_machine_utilization(machine_ids: list[int], scheduled_tasks: list[ScheduledTask], total_span: int) -> list[MachineUtilization]:
    """Compute per-machine utilization."""
    task_by_machine: dict[int, list[ScheduledTask]] = collections.defaultdict(list)
    for st in scheduled_tasks:
        task_by_machine[st.machine_id].append(st)

    utils = []
    for mid in machine_ids:
        tasks = task_by_machine.get(mid, [])
        busy = sum(t.duration for t in tasks)
        span = total_span if total_span > 0 else 1
        utils.append(MachineUtilization(
            machine_id=mid,
            busy_time=busy,
            idle_time=max(0, span - busy),
            utilization_pct=min(100.0, round(busy / span * 100, 1)),
            num_tasks=len(tasks),
        ))
    return utils
