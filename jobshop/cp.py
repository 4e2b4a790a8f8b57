"""
FlexShop — CP Engine Binding
Thin layer over OR-Tools CP-SAT providing the primitives the model builder
and the search strategy rely on:

  - CpSession: one model per solve call, never shared between calls
  - OptionalInterval: a fixed-duration interval with a performed flag
  - channeling between a selector variable and a set of performed flags
  - MachineTimeline: no-overlap over a machine's intervals plus an ordering
    handle (pairwise precedence literals and per-interval rank variables)
  - max aggregation and the minimization objective
"""

from __future__ import annotations

import dataclasses
from typing import Hashable, Mapping, Sequence

from ortools.sat.python import cp_model


# ─────────────────────────────────────────────
# Snapshot values of an optional interval
# ─────────────────────────────────────────────

@dataclasses.dataclass(frozen=True)
class Scheduled:
    start: int
    end: int


@dataclasses.dataclass(frozen=True)
class NotScheduled:
    pass


NOT_SCHEDULED = NotScheduled()


# ─────────────────────────────────────────────
# Session
# ─────────────────────────────────────────────

class CpSession:
    """Owns the CP-SAT model for the lifetime of one solve call."""

    def __init__(self, name: str):
        self.name = name
        self.model = cp_model.CpModel()

    def new_int_var(self, lb: int, ub: int, name: str) -> cp_model.IntVar:
        return self.model.new_int_var(lb, ub, name)

    def new_interval(
        self, horizon: int, duration: int, optional: bool, name: str, owner: Hashable = None,
    ) -> "OptionalInterval":
        return OptionalInterval(self, horizon, duration, optional, name, owner)

    def add_map_domain(self, selector: cp_model.IntVar, intervals: Sequence["OptionalInterval"]) -> None:
        """Channel selector == k  <=>  intervals[k] is performed; exactly one is performed."""
        flags = [iv.performed for iv in intervals]
        if any(f is None for f in flags):
            raise ValueError("map domain requires optional intervals")
        self.model.add_exactly_one(flags)
        self.model.add(selector == sum(k * f for k, f in enumerate(flags)))

    def add_disjunctive(self, intervals: Sequence["OptionalInterval"], name: str) -> "MachineTimeline":
        return MachineTimeline(self, intervals, name)

    def new_max(self, exprs: Sequence, ub: int, name: str) -> cp_model.IntVar:
        target = self.model.new_int_var(0, ub, name)
        self.model.add_max_equality(target, list(exprs))
        return target

    def minimize(self, var: cp_model.IntVar) -> None:
        self.model.minimize(var)


# ─────────────────────────────────────────────
# Intervals
# ─────────────────────────────────────────────

class OptionalInterval:
    """
    A fixed-duration interval living inside [0, horizon].

    Optional intervals carry a performed literal; mandatory ones have
    ``performed = None`` and are always part of the schedule.
    """

    def __init__(self, session: CpSession, horizon: int, duration: int, optional: bool,
                 name: str, owner: Hashable = None):
        model = session.model
        self.name = name
        self.duration = duration
        self.owner = owner
        self.start = model.new_int_var(0, horizon - duration, f"{name} start")
        if optional:
            self.performed = model.new_bool_var(f"{name} performed")
            self.interval = model.new_optional_fixed_size_interval_var(
                self.start, duration, self.performed, name
            )
        else:
            self.performed = None
            self.interval = model.new_fixed_size_interval_var(self.start, duration, name)

    @property
    def end(self):
        return self.start + self.duration

    @property
    def is_optional(self) -> bool:
        return self.performed is not None

    def enforcement(self) -> list:
        """Literals under which a constraint on this interval must hold."""
        return [self.performed] if self.performed is not None else []

    def performed_expr(self):
        return self.performed if self.performed is not None else 1

    def snapshot(self, performed: bool, start: int):
        if not performed:
            return NOT_SCHEDULED
        return Scheduled(start=start, end=start + self.duration)

    def __repr__(self) -> str:
        return f"OptionalInterval({self.name!r}, duration={self.duration}, optional={self.is_optional})"


def add_ends_before_start(session: CpSession, first: OptionalInterval, second: OptionalInterval) -> None:
    """second starts no earlier than first ends, whenever both are performed."""
    ct = session.model.add(second.start >= first.end)
    literals = first.enforcement() + second.enforcement()
    if literals:
        ct.only_enforce_if(literals)


# ─────────────────────────────────────────────
# Per-machine timeline
# ─────────────────────────────────────────────

class MachineTimeline:
    """
    Mutual exclusion over the intervals sharing one machine.

    Besides the no-overlap constraint, each pair of intervals owned by
    different tasks gets two ``precedes`` literals; when both intervals are
    performed exactly one of them holds. ``ranks[i]`` counts the performed
    predecessors of interval i, and is -1 when i is not performed.
    """

    def __init__(self, session: CpSession, intervals: Sequence[OptionalInterval], name: str):
        model = session.model
        self.name = name
        self.intervals = list(intervals)
        self.precedes: dict[tuple[int, int], cp_model.IntVar] = {}
        predecessors: list[list[cp_model.IntVar]] = [[] for _ in self.intervals]

        if len(self.intervals) > 1:
            model.add_no_overlap([iv.interval for iv in self.intervals])

        n = len(self.intervals)
        for i in range(n):
            for j in range(i + 1, n):
                a, b = self.intervals[i], self.intervals[j]
                if a.owner is not None and a.owner == b.owner:
                    # alternatives of one task are never both performed
                    continue
                a_first = model.new_bool_var(f"{name}: {a.name} before {b.name}")
                b_first = model.new_bool_var(f"{name}: {b.name} before {a.name}")
                self.precedes[(i, j)] = a_first
                self.precedes[(j, i)] = b_first
                predecessors[j].append(a_first)
                predecessors[i].append(b_first)
                model.add(b.start >= a.end).only_enforce_if(a_first)
                model.add(a.start >= b.end).only_enforce_if(b_first)
                for lit in (a_first, b_first):
                    for iv in (a, b):
                        if iv.performed is not None:
                            model.add_implication(lit, iv.performed)
                model.add_at_most_one([a_first, b_first])
                model.add(a_first + b_first >= a.performed_expr() + b.performed_expr() - 1)

        self.ranks: list[cp_model.IntVar] = []
        for i, iv in enumerate(self.intervals):
            rank = model.new_int_var(-1, n - 1, f"{name}: rank of {iv.name}")
            model.add(rank == cp_model.LinearExpr.sum(predecessors[i]) + iv.performed_expr() - 1)
            self.ranks.append(rank)

    def ordering_literals(self) -> list[cp_model.IntVar]:
        """One literal per unordered pair, lower index first."""
        return [lit for (i, j), lit in sorted(self.precedes.items()) if i < j]

    def forward_sequence(self, ranks: Mapping[int, int]) -> list[int]:
        """Indices of the performed intervals, first ranked first."""
        performed = [i for i in range(len(self.intervals)) if ranks.get(i, -1) >= 0]
        return sorted(performed, key=lambda i: ranks[i])

    def __len__(self) -> int:
        return len(self.intervals)
