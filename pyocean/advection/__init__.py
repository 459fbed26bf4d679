"""
Tracer advection: high-order flux reconstruction with an optional
flux-corrected-transport limiter, assembled into concentration tendencies.

Typical use:

    from pyocean.advection import TracerAdvection, TracerAdvectionConfig

    adv = TracerAdvection(TracerAdvectionConfig.from_env())
    err = adv.initialize()
    adv.compute_tendency(tend, tracers, normal_thickness_flux, w, h, dt, mesh, "activeTracers")
"""

from __future__ import annotations

from .config import TracerAdvectionConfig
from .driver import TracerAdvection, init_tracer_advection, tracer_advection_tend
from .mono import init_mono, limited_fluxes, mono_tend
from .std import init_std, std_tend
from .types import AdvectionBudget, AdvectionScheme, AdvectionSettings, SchemeSettings

__all__ = [
    "AdvectionBudget",
    "AdvectionScheme",
    "AdvectionSettings",
    "SchemeSettings",
    "TracerAdvection",
    "TracerAdvectionConfig",
    "init_mono",
    "init_std",
    "init_tracer_advection",
    "limited_fluxes",
    "mono_tend",
    "std_tend",
    "tracer_advection_tend",
]
