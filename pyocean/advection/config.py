"""
Tracer advection configuration (env-driven, immutable).

Environment variables (defaults in brackets):
- OCN_DISABLE_TR_ADV [0]            : 1 turns the whole advection term off
- OCN_MONOTONIC [1]                 : 1 selects the FCT-limited scheme
- OCN_HORIZ_TRACER_ADV_ORDER [3]    : 2 | 3 | 4
- OCN_VERT_TRACER_ADV_ORDER [3]     : 2 | 3 | 4
- OCN_COEF_3RD_ORDER [0.25]         : upwind blending weight in [0, 1]
- OCN_DZDK_POSITIVE [0]             : 1 when z increases with the level index
- OCN_NUM_HALOS [3]                 : halo layers available on the mesh
- OCN_CHECK_TRACER_MONOTONICITY [0] : print out-of-bounds values after limiting
- OCN_TRACER_ADV_DIAG [0]           : print initialization summary
"""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class TracerAdvectionConfig:
    disable_tr_adv: bool = False
    monotonic: bool = True
    horiz_tracer_adv_order: int = 3
    vert_tracer_adv_order: int = 3
    coef_3rd_order: float = 0.25
    dzdk_positive: bool = False
    num_halos: int = 3
    check_tracer_monotonicity: bool = False
    diag: bool = False

    @classmethod
    def from_env(cls) -> TracerAdvectionConfig:
        def _ibool(name: str, default: str = "1") -> bool:
            try:
                return int(os.getenv(name, default)) == 1
            except ValueError:
                return default == "1"

        def _int(name: str, default: str) -> int:
            try:
                return int(os.getenv(name, default))
            except ValueError:
                return int(default)

        def _float(name: str, default: str) -> float:
            try:
                return float(os.getenv(name, default))
            except ValueError:
                return float(default)

        return cls(
            disable_tr_adv=_ibool("OCN_DISABLE_TR_ADV", "0"),
            monotonic=_ibool("OCN_MONOTONIC", "1"),
            horiz_tracer_adv_order=_int("OCN_HORIZ_TRACER_ADV_ORDER", "3"),
            vert_tracer_adv_order=_int("OCN_VERT_TRACER_ADV_ORDER", "3"),
            coef_3rd_order=_float("OCN_COEF_3RD_ORDER", "0.25"),
            dzdk_positive=_ibool("OCN_DZDK_POSITIVE", "0"),
            num_halos=_int("OCN_NUM_HALOS", "3"),
            check_tracer_monotonicity=_ibool("OCN_CHECK_TRACER_MONOTONICITY", "0"),
            diag=_ibool("OCN_TRACER_ADV_DIAG", "0"),
        )
