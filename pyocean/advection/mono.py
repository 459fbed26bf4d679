"""
mono.py

Monotonic (FCT-limited) tracer advection. Per tracer:
- donor-cell and high-order fluxes on every edge and interface
- low-order provisional update and local bounds
- inflow / outflow limiting ratios and per-edge / per-interface factors
- limited flux F_low + C * (F_high - F_low), assembled into the tendency

Optional check (check_tracer_monotonicity): the limited one-step update is
compared against the local bounds and violations are printed.
"""

from __future__ import annotations

import numpy as np

from pyocean.constants import ADV_OK, ERR_MONO_HALOS, MONO_MIN_HALOS
from pyocean.diagnostics import monotonicity_violations
from pyocean.mesh import AdvectionMesh

from .assembly import accumulate, horizontal_flux_tendency, vertical_flux_tendency
from .config import TracerAdvectionConfig
from .fluxes import (
    horizontal_high_order_flux,
    horizontal_low_order_flux,
    vertical_high_order_flux,
    vertical_low_order_flux,
)
from .limiter import (
    antidiffusive_exchange,
    blend,
    edge_limiting_factors,
    interface_limiting_factors,
    limiting_ratios,
    tracer_bounds,
)
from .std import check_common, report
from .types import AdvectionBudget, SchemeSettings


def init_mono(config: TracerAdvectionConfig) -> tuple[int, SchemeSettings | None]:
    """
    Validate the configuration for the limited scheme (needs MONO_MIN_HALOS
    halo layers for the bounds of the outermost owned cells).
    """
    err = check_common(config)
    if config.num_halos < MONO_MIN_HALOS:
        err |= ERR_MONO_HALOS
    report(err, "mono")
    if err != ADV_OK:
        return err, None
    return err, SchemeSettings(
        horiz_order=int(config.horiz_tracer_adv_order),
        vert_order=int(config.vert_tracer_adv_order),
        coef_3rd_order=float(config.coef_3rd_order),
        dzdk_positive=bool(config.dzdk_positive),
        check_monotonicity=bool(config.check_tracer_monotonicity),
    )


def _check_bounds(
    index: int,
    phi: np.ndarray,
    tend_h: np.ndarray,
    tend_v: np.ndarray,
    phi_min: np.ndarray,
    phi_max: np.ndarray,
    dt: float,
    mesh: AdvectionMesh,
    tracer_group_name: str,
) -> None:
    mask = mesh.level_mask & mesh.owned_mask[:, np.newaxis]
    phi_new = phi + dt * (tend_h + tend_v)
    under, over = monotonicity_violations(phi_new, phi_min, phi_max, mask)
    label = f"{tracer_group_name}[{index}]" if tracer_group_name else str(index)
    for c, k in zip(*np.nonzero(under)):
        print(
            f"[TracerAdv] Minimum out of bounds on tracer {label}: cell {c} level {k} "
            f"{phi_new[c, k]:.6e} < {phi_min[c, k]:.6e}"
        )
    for c, k in zip(*np.nonzero(over)):
        print(
            f"[TracerAdv] Maximum out of bounds on tracer {label}: cell {c} level {k} "
            f"{phi_new[c, k]:.6e} > {phi_max[c, k]:.6e}"
        )


def limited_fluxes(
    phi: np.ndarray,
    normal_thickness_flux: np.ndarray,
    w: np.ndarray,
    layer_thickness: np.ndarray,
    dt: float,
    mesh: AdvectionMesh,
    settings: SchemeSettings,
) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """
    FCT-limited (flux_h, flux_v) of one tracer, plus its local (phi_min, phi_max).
    """
    low_h = horizontal_low_order_flux(phi, normal_thickness_flux, mesh)
    low_v = vertical_low_order_flux(phi, w, mesh, settings.dzdk_positive)
    high_h = horizontal_high_order_flux(
        phi, normal_thickness_flux, mesh, settings.horiz_order, settings.coef_3rd_order
    )
    high_v = vertical_high_order_flux(
        phi,
        w,
        layer_thickness,
        mesh,
        settings.vert_order,
        settings.coef_3rd_order,
        settings.dzdk_positive,
    )
    anti_h = high_h - low_h
    anti_v = high_v - low_v

    tend_low = horizontal_flux_tendency(low_h, layer_thickness, mesh) + vertical_flux_tendency(
        low_v, layer_thickness, mesh
    )
    phi_up = phi + dt * tend_low
    phi_min, phi_max = tracer_bounds(phi, mesh)

    inflow, outflow = antidiffusive_exchange(anti_h, anti_v, mesh)
    r_in, r_out = limiting_ratios(
        phi_up, phi_min, phi_max, inflow, outflow, mesh.control_volumes(layer_thickness), dt
    )
    flux_h = blend(low_h, anti_h, edge_limiting_factors(anti_h, r_in, r_out, mesh))
    flux_v = blend(low_v, anti_v, interface_limiting_factors(anti_v, r_in, r_out, mesh))
    return flux_h, flux_v, phi_min, phi_max


def mono_tend(
    tend: np.ndarray,
    tracers: np.ndarray,
    normal_thickness_flux: np.ndarray,
    w: np.ndarray,
    layer_thickness: np.ndarray,
    dt: float,
    mesh: AdvectionMesh,
    settings: SchemeSettings,
    budget: AdvectionBudget | None = None,
    tracer_group_name: str = "",
) -> None:
    """Add the limited advective tendency of every tracer to tend."""
    for i in range(tracers.shape[0]):
        phi = tracers[i]
        flux_h, flux_v, phi_min, phi_max = limited_fluxes(
            phi, normal_thickness_flux, w, layer_thickness, dt, mesh, settings
        )
        tend_h = horizontal_flux_tendency(flux_h, layer_thickness, mesh)
        tend_v = vertical_flux_tendency(flux_v, layer_thickness, mesh)
        accumulate(tend[i], tend_h + tend_v, mesh)
        if budget is not None:
            accumulate(budget.horizontal[i], tend_h, mesh)
            accumulate(budget.vertical[i], tend_v, mesh)
        if settings.check_monotonicity:
            _check_bounds(i, phi, tend_h, tend_v, phi_min, phi_max, dt, mesh, tracer_group_name)
