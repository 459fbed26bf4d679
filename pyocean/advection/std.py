"""
std.py

Unlimited high-order tracer advection: every tracer gets the horizontal and
vertical high-order fluxes of the configured orders, assembled into a
concentration tendency without any limiting.
"""

from __future__ import annotations

import numpy as np

from pyocean.constants import (
    ADV_OK,
    ERR_COEF_3RD,
    ERR_HORIZ_ORDER,
    ERR_NUM_HALOS,
    ERR_VERT_ORDER,
    STATUS_MESSAGES,
    SUPPORTED_ORDERS,
)
from pyocean.mesh import AdvectionMesh

from .assembly import accumulate, horizontal_flux_tendency, vertical_flux_tendency
from .config import TracerAdvectionConfig
from .fluxes import horizontal_high_order_flux, vertical_high_order_flux
from .types import AdvectionBudget, SchemeSettings


def check_common(config: TracerAdvectionConfig) -> int:
    """Status bits shared by both engines (orders and blending coefficient)."""
    err = ADV_OK
    if config.horiz_tracer_adv_order not in SUPPORTED_ORDERS:
        err |= ERR_HORIZ_ORDER
    if config.vert_tracer_adv_order not in SUPPORTED_ORDERS:
        err |= ERR_VERT_ORDER
    if not (0.0 <= config.coef_3rd_order <= 1.0):
        err |= ERR_COEF_3RD
    return err


def report(err: int, engine: str) -> None:
    for bit, msg in STATUS_MESSAGES.items():
        if err & bit:
            print(f"[TracerAdv] {engine}: {msg}")


def init_std(config: TracerAdvectionConfig) -> tuple[int, SchemeSettings | None]:
    """
    Validate the configuration for the unlimited scheme.
    Returns (status, settings); settings is None unless status == ADV_OK.
    """
    err = check_common(config)
    if config.num_halos < 1:
        err |= ERR_NUM_HALOS
    report(err, "std")
    if err != ADV_OK:
        return err, None
    return err, SchemeSettings(
        horiz_order=int(config.horiz_tracer_adv_order),
        vert_order=int(config.vert_tracer_adv_order),
        coef_3rd_order=float(config.coef_3rd_order),
        dzdk_positive=bool(config.dzdk_positive),
        check_monotonicity=bool(config.check_tracer_monotonicity),
    )


def std_tend(
    tend: np.ndarray,
    tracers: np.ndarray,
    normal_thickness_flux: np.ndarray,
    w: np.ndarray,
    layer_thickness: np.ndarray,
    mesh: AdvectionMesh,
    settings: SchemeSettings,
    budget: AdvectionBudget | None = None,
) -> None:
    """Add the unlimited high-order advective tendency of every tracer to tend."""
    for i in range(tracers.shape[0]):
        phi = tracers[i]
        flux_h = horizontal_high_order_flux(
            phi, normal_thickness_flux, mesh, settings.horiz_order, settings.coef_3rd_order
        )
        flux_v = vertical_high_order_flux(
            phi,
            w,
            layer_thickness,
            mesh,
            settings.vert_order,
            settings.coef_3rd_order,
            settings.dzdk_positive,
        )
        tend_h = horizontal_flux_tendency(flux_h, layer_thickness, mesh)
        tend_v = vertical_flux_tendency(flux_v, layer_thickness, mesh)
        accumulate(tend[i], tend_h + tend_v, mesh)
        if budget is not None:
            accumulate(budget.horizontal[i], tend_h, mesh)
            accumulate(budget.vertical[i], tend_v, mesh)
