"""
FlexShop — Search Strategy
Three decision phases, always applied in this order:

  1. alternative assignment — bind every selector (min domain, min value)
  2. sequencing            — order the intervals of each machine
  3. timing                — fix the makespan to its minimum, then every start
                             to its earliest value under the fixed ordering

Each phase assumes the variables of the previous ones are bound, so the
sequence is not configurable. The RetainedSolutionCollector keeps the best
assignment found before the time limit.
"""

from __future__ import annotations

import collections
import dataclasses
import logging
import time
from types import MappingProxyType
from typing import Mapping, Optional

from ortools.sat.python import cp_model

from .builder import ModelHandles
from .config import SolverConfig
from .errors import BuildError
from .models import SolverStatus

logger = logging.getLogger(__name__)


DecisionPhase = collections.namedtuple("DecisionPhase", "name variables var_strategy value_strategy")


def search_phases(handles: ModelHandles) -> list[DecisionPhase]:
    """The composite decision procedure, in application order."""
    phases = [
        DecisionPhase(
            "alternatives", handles.selectors(),
            cp_model.CHOOSE_MIN_DOMAIN_SIZE, cp_model.SELECT_MIN_VALUE,
        ),
    ]
    for machine_id in sorted(handles.timelines):
        phases.append(DecisionPhase(
            f"sequence {handles.timelines[machine_id].name}",
            handles.timelines[machine_id].ordering_literals(),
            cp_model.CHOOSE_FIRST, cp_model.SELECT_MAX_VALUE,
        ))
    phases.append(DecisionPhase(
        "makespan", [handles.makespan],
        cp_model.CHOOSE_FIRST, cp_model.SELECT_MIN_VALUE,
    ))
    phases.append(DecisionPhase(
        "starts", [iv.start for iv in handles.intervals()],
        cp_model.CHOOSE_FIRST, cp_model.SELECT_MIN_VALUE,
    ))
    return phases


def apply_search_strategy(handles: ModelHandles) -> list[DecisionPhase]:
    """Register the decision phases on the model. CP-SAT follows them in order."""
    phases = search_phases(handles)
    for phase in phases:
        if not phase.variables:
            continue
        handles.session.model.add_decision_strategy(
            phase.variables, phase.var_strategy, phase.value_strategy
        )
    return phases


# ─────────────────────────────────────────────
# Retained solution
# ─────────────────────────────────────────────

@dataclasses.dataclass(frozen=True)
class Assignment:
    """
    Immutable snapshot of one improving solution.

    Interval-level values are keyed by (job_id, task_id, alternative).
    """
    objective: int
    selectors: Mapping[tuple[int, int], int]
    performed: Mapping[tuple[int, int, int], bool]
    starts: Mapping[tuple[int, int, int], int]
    ranks: Mapping[int, Mapping[int, int]]
    solution_index: int
    wall_time: float


class RetainedSolutionCollector(cp_model.CpSolverSolutionCallback):
    """
    Records a snapshot at each improving solution, replacing the previous one.

    A solution whose objective does not strictly improve on the retained one
    is ignored, so the retained snapshot is always the best found so far.
    """

    def __init__(self, handles: ModelHandles, log_every_n_solutions: int = 1):
        super().__init__()
        self._handles = handles
        self._log_every = log_every_n_solutions
        self.solution_count = 0
        self.assignment: Optional[Assignment] = None

    def on_solution_callback(self) -> None:
        self.solution_count += 1
        self.record(self.value, self.objective_value, self.wall_time)

    def record(self, reader, objective: float, wall_time: float) -> bool:
        objective = int(round(objective))
        if self.assignment is not None and objective >= self.assignment.objective:
            return False
        self.assignment = _snapshot(self._handles, reader, objective, self.solution_count, wall_time)
        if self.solution_count % self._log_every == 0 or self.solution_count == 1:
            logger.info(
                "Solution #%d: makespan=%d, time=%.2fs",
                self.solution_count, objective, wall_time,
            )
        return True


def _snapshot(handles: ModelHandles, reader, objective: int, index: int, wall_time: float) -> Assignment:
    selectors = {}
    performed = {}
    starts = {}
    for ta in handles.all_tasks():
        if ta.selector is not None:
            selectors[ta.key] = int(reader(ta.selector))
        for alt, iv in enumerate(ta.intervals):
            key = (ta.job_id, ta.task.id, alt)
            performed[key] = True if iv.performed is None else bool(reader(iv.performed))
            starts[key] = int(reader(iv.start))
    ranks = {
        machine_id: MappingProxyType({i: int(reader(r)) for i, r in enumerate(tl.ranks)})
        for machine_id, tl in handles.timelines.items()
    }
    return Assignment(
        objective=objective,
        selectors=MappingProxyType(selectors),
        performed=MappingProxyType(performed),
        starts=MappingProxyType(starts),
        ranks=MappingProxyType(ranks),
        solution_index=index,
        wall_time=wall_time,
    )


# ─────────────────────────────────────────────
# Search
# ─────────────────────────────────────────────

@dataclasses.dataclass(frozen=True)
class SearchOutcome:
    status: SolverStatus
    assignment: Optional[Assignment]
    wall_time: float
    solutions: int


def _search_status(status) -> SolverStatus:
    if status == cp_model.OPTIMAL:
        return SolverStatus.OPTIMAL
    if status == cp_model.FEASIBLE:
        return SolverStatus.FEASIBLE
    if status == cp_model.INFEASIBLE:
        return SolverStatus.INFEASIBLE
    return SolverStatus.TIMEOUT


def make_solver(config: SolverConfig) -> cp_model.CpSolver:
    solver = cp_model.CpSolver()
    solver.parameters.max_time_in_seconds = config.time_limit_seconds
    solver.parameters.num_workers = config.num_workers
    solver.parameters.random_seed = config.random_seed
    if config.fixed_search:
        solver.parameters.search_branching = cp_model.FIXED_SEARCH
    solver.parameters.log_search_progress = config.log_search_progress
    if config.log_search_progress:
        solver.parameters.log_to_stdout = False
        solver.log_callback = logger.debug
    return solver


def run_search(handles: ModelHandles, config: Optional[SolverConfig] = None) -> SearchOutcome:
    """Run the phased search on a built model, bounded by the configured time limit."""
    config = config or SolverConfig()
    solver = make_solver(config)
    collector = RetainedSolutionCollector(handles, config.log_every_n_solutions)

    t0 = time.time()
    status = solver.solve(handles.session.model, collector)
    elapsed = time.time() - t0

    if status == cp_model.MODEL_INVALID:
        raise BuildError(f"CP-SAT rejected the model: {handles.session.model.validate()}")

    search_status = _search_status(status)
    if search_status in (SolverStatus.OPTIMAL, SolverStatus.FEASIBLE) and collector.assignment is None:
        # presolve alone can close the model without reporting a solution
        collector.solution_count += 1
        collector.record(solver.value, solver.objective_value, solver.wall_time)

    logger.info(
        "Search on '%s' finished: status=%s, solutions=%d, best=%s, time=%.2fs",
        handles.instance.name, search_status.value, collector.solution_count,
        collector.assignment.objective if collector.assignment else None, elapsed,
    )
    return SearchOutcome(
        status=search_status,
        assignment=collector.assignment,
        wall_time=elapsed,
        solutions=collector.solution_count,
    )
