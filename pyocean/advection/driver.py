"""
driver.py

Entry point of the tracer advection term.

- initialize(config): validates the configuration for both engines, combines
  their status bits with bitwise OR and keeps the immutable settings.
- compute_tendency(...): no-op when advection is disabled, otherwise adds the
  tendency of the selected scheme (monotonic or standard) into `tend`.

Functional equivalents (settings passed explicitly) are provided as
init_tracer_advection / tracer_advection_tend.
"""

from __future__ import annotations

import numpy as np

from pyocean.constants import ADV_OK, describe_status
from pyocean.mesh import AdvectionMesh

from .config import TracerAdvectionConfig
from .mono import init_mono, mono_tend
from .std import init_std, std_tend
from .types import AdvectionBudget, AdvectionScheme, AdvectionSettings


def init_tracer_advection(config: TracerAdvectionConfig) -> tuple[int, AdvectionSettings | None]:
    """
    Returns (status, settings). Both engines are always validated; settings is
    None when any status bit is set, except that a disabled term still yields
    settings so later calls stay no-ops.
    """
    err_std, std = init_std(config)
    err_mono, mono = init_mono(config)
    err = err_std | err_mono
    scheme = AdvectionScheme.MONOTONIC if config.monotonic else AdvectionScheme.STANDARD
    enabled = not config.disable_tr_adv

    if config.diag:
        print(
            f"[TracerAdv] init: enabled={enabled} scheme={scheme.value} "
            f"horiz_order={config.horiz_tracer_adv_order} vert_order={config.vert_tracer_adv_order} "
            f"coef_3rd_order={config.coef_3rd_order} num_halos={config.num_halos} status={err}"
        )
        for msg in describe_status(err):
            print(f"[TracerAdv]   {msg}")

    if not enabled:
        return err, AdvectionSettings(enabled=False, scheme=scheme, std=std, mono=mono)
    if err != ADV_OK:
        return err, None
    return err, AdvectionSettings(enabled=True, scheme=scheme, std=std, mono=mono)


def tracer_advection_tend(
    settings: AdvectionSettings,
    tend: np.ndarray,
    tracers: np.ndarray,
    normal_thickness_flux: np.ndarray,
    w: np.ndarray,
    layer_thickness: np.ndarray,
    dt: float,
    mesh: AdvectionMesh,
    tracer_group_name: str = "",
    budget: AdvectionBudget | None = None,
) -> None:
    """Add the advective tendency of one tracer group to `tend` (in place)."""
    if not settings.enabled:
        return
    mesh.check_fields(tend, tracers, normal_thickness_flux, w, layer_thickness)
    if budget is not None and (budget.horizontal.shape != tend.shape or budget.vertical.shape != tend.shape):
        raise ValueError(f"budget arrays must match tend shape {tend.shape}")

    if settings.scheme is AdvectionScheme.MONOTONIC:
        mono_tend(
            tend,
            tracers,
            normal_thickness_flux,
            w,
            layer_thickness,
            dt,
            mesh,
            settings.mono,
            budget=budget,
            tracer_group_name=tracer_group_name,
        )
    else:
        std_tend(tend, tracers, normal_thickness_flux, w, layer_thickness, mesh, settings.std, budget=budget)


class TracerAdvection:
    """
    Stateful facade: holds the settings of the last successful initialization.
    """

    def __init__(self, config: TracerAdvectionConfig | None = None) -> None:
        self.config = config
        self.settings: AdvectionSettings | None = None
        self.status: int | None = None

    @property
    def initialized(self) -> bool:
        return self.settings is not None

    def initialize(self, config: TracerAdvectionConfig | None = None) -> int:
        if config is not None:
            self.config = config
        if self.config is None:
            self.config = TracerAdvectionConfig.from_env()
        err, settings = init_tracer_advection(self.config)
        self.status = err
        if settings is not None:
            self.settings = settings
        return err

    def compute_tendency(
        self,
        tend: np.ndarray,
        tracers: np.ndarray,
        normal_thickness_flux: np.ndarray,
        w: np.ndarray,
        layer_thickness: np.ndarray,
        dt: float,
        mesh: AdvectionMesh,
        tracer_group_name: str = "",
        budget: AdvectionBudget | None = None,
    ) -> None:
        if self.settings is None:
            raise RuntimeError("TracerAdvection.compute_tendency called before a successful initialize()")
        tracer_advection_tend(
            self.settings,
            tend,
            tracers,
            normal_thickness_flux,
            w,
            layer_thickness,
            dt,
            mesh,
            tracer_group_name=tracer_group_name,
            budget=budget,
        )

    def __repr__(self) -> str:
        return f"TracerAdvection(status={self.status}, settings={self.settings})"
