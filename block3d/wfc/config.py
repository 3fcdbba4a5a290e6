"""Solver configuration."""

from __future__ import annotations

import os
from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field


ENV_PREFIX = "BLOCK3D_"


class SolverConfig(BaseModel):
    """Seed and search budget for one solve.

    Attributes:
        seed: Seed for the solver's private random stream (None = unseeded)
        max_backtracks: Give up with BudgetExceeded after this many backtracks
        time_limit: Give up with BudgetExceeded after this many seconds
    """

    model_config = ConfigDict(frozen=True)

    seed: int | None = None
    max_backtracks: int | None = Field(default=None, ge=0)
    time_limit: float | None = Field(default=None, gt=0)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> SolverConfig:
        """Build a config from BLOCK3D_SEED, BLOCK3D_MAX_BACKTRACKS, BLOCK3D_TIME_LIMIT.

        Unset or empty variables keep the defaults. Values are validated by
        pydantic, so a malformed variable raises ValidationError.
        """
        env = os.environ if environ is None else environ
        values = {}
        for field_name in ("seed", "max_backtracks", "time_limit"):
            raw = env.get(f"{ENV_PREFIX}{field_name.upper()}", "").strip()
            if raw:
                values[field_name] = raw
        return cls.model_validate(values)

    def with_overrides(self, **overrides) -> SolverConfig:
        """Return a copy with the non-None overrides applied."""
        update = {k: v for k, v in overrides.items() if v is not None}
        return self.model_validate({**self.model_dump(), **update})
