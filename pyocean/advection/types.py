from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import numpy as np


class AdvectionScheme(Enum):
    STANDARD = "standard"
    MONOTONIC = "monotonic"


@dataclass(frozen=True)
class SchemeSettings:
    """
    Validated per-engine settings. Only ever built from a configuration that
    passed the engine's checks.
    """
    horiz_order: int
    vert_order: int
    coef_3rd_order: float
    dzdk_positive: bool
    check_monotonicity: bool = False


@dataclass(frozen=True)
class AdvectionSettings:
    """Immutable driver state produced by a successful initialization."""
    enabled: bool
    scheme: AdvectionScheme
    std: SchemeSettings | None
    mono: SchemeSettings | None

    @property
    def active(self) -> SchemeSettings | None:
        if self.scheme is AdvectionScheme.MONOTONIC:
            return self.mono
        return self.std


@dataclass
class AdvectionBudget:
    """
    Optional split of the advective tendency into horizontal and vertical
    parts, each shaped like the tendency array and accumulated into.
    """
    horizontal: np.ndarray
    vertical: np.ndarray
    tracer_group_name: str = ""

    @classmethod
    def zeros_like(cls, tend: np.ndarray, tracer_group_name: str = "") -> AdvectionBudget:
        return cls(
            horizontal=np.zeros_like(tend),
            vertical=np.zeros_like(tend),
            tracer_group_name=tracer_group_name,
        )

    @property
    def total(self) -> np.ndarray:
        return self.horizontal + self.vertical
