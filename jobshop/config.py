"""
FlexShop — Solver Configuration
Search limits and engine parameters for a single solve call.
"""

from __future__ import annotations

import os

from pydantic import BaseModel, Field


DEFAULT_TIME_LIMIT_SECONDS = 20 * 60

_ENV_PREFIX = "FLEXSHOP_"


class SolverConfig(BaseModel):
    """Parameters handed to CP-SAT for one solve call."""
    time_limit_seconds: float = Field(
        DEFAULT_TIME_LIMIT_SECONDS, gt=0,
        description="Wall-clock search limit in seconds",
    )
    num_workers: int = Field(
        1, ge=1,
        description="CP-SAT search workers. 1 keeps the phased search deterministic.",
    )
    random_seed: int = Field(0, ge=0)
    fixed_search: bool = Field(
        True,
        description="Follow the three decision phases instead of CP-SAT's portfolio",
    )
    log_search_progress: bool = Field(
        False,
        description="Forward the CP-SAT search log to the debug logger",
    )
    log_every_n_solutions: int = Field(
        1, ge=1,
        description="Emit a progress line every N retained solutions",
    )

    @classmethod
    def from_env(cls, **overrides) -> "SolverConfig":
        """Build a config from FLEXSHOP_* environment variables."""
        values = {}
        for name in cls.model_fields:
            raw = os.environ.get(_ENV_PREFIX + name.upper())
            if raw is not None:
                values[name] = raw
        values.update(overrides)
        return cls.model_validate(values)
