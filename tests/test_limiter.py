"""
FCT limiter building blocks

Covers:
- local bounds over horizontal (active edges only) and vertical neighbours
- antidiffusive inflow / outflow bookkeeping
- limiting ratios (clipping, unit ratio without antidiffusive exchange)
- edge / interface factors pick donor and receiver by the flux sign
- factor 0 reproduces the low-order flux exactly
"""

import numpy as np

from pyocean.advection.fluxes import horizontal_high_order_flux, horizontal_low_order_flux
from pyocean.advection.limiter import (
    antidiffusive_exchange,
    blend,
    edge_limiting_factors,
    interface_limiting_factors,
    limiting_ratios,
    tracer_bounds,
)
from scripts.meshes import ring_mesh


def test_ring_scenario_bounds():
    mesh = ring_mesh(4).mesh
    phi = np.array([[0.0], [0.0], [10.0], [0.0]])
    phi_min, phi_max = tracer_bounds(phi, mesh)
    assert phi_min[:, 0].tolist() == [0.0, 0.0, 0.0, 0.0]
    assert phi_max[:, 0].tolist() == [0.0, 10.0, 10.0, 10.0]


def test_bounds_include_vertical_neighbours_only_in_column():
    mesh = ring_mesh(4, n_levels=3).mesh
    phi = np.zeros((4, 3))
    phi[0, 1] = 5.0
    phi[2, 2] = -3.0
    phi_min, phi_max = tracer_bounds(phi, mesh)
    # vertical neighbours of (0, 1)
    assert phi_max[0, 0] == 5.0 and phi_max[0, 2] == 5.0
    # horizontal neighbours of (0, 1)
    assert phi_max[1, 1] == 5.0 and phi_max[3, 1] == 5.0
    # no diagonal reach
    assert phi_max[1, 0] == 0.0 and phi_max[2, 1] == 0.0
    assert phi_min[2, 1] == -3.0 and phi_min[1, 2] == -3.0 and phi_min[2, 0] == 0.0


def test_bounds_ignore_dry_neighbours():
    max_level = np.array([2, 1, 2, 2])
    mesh = ring_mesh(4, n_levels=2, max_level_cell=max_level).mesh
    phi = np.array([[0.0, 0.0], [1.0, 99.0], [0.0, 0.0], [0.0, 0.0]])
    phi_min, phi_max = tracer_bounds(phi, mesh)
    assert phi_max[0, 1] == 0.0
    assert phi_max[2, 1] == 0.0
    assert phi_max[0, 0] == 1.0
    # invalid layers report zero bounds
    assert phi_min[1, 1] == 0.0 and phi_max[1, 1] == 0.0


def test_antidiffusive_exchange_counts_both_directions():
    mesh = ring_mesh(4, n_levels=2).mesh
    anti_h = np.zeros((4, 2))
    anti_h[0, 0] = 2.0  # cell 0 -> cell 1
    anti_h[1, 0] = -0.5  # cell 2 -> cell 1
    anti_v = np.zeros((4, 3))
    anti_v[3, 1] = 1.5  # layer 0 -> layer 1 of cell 3

    inflow, outflow = antidiffusive_exchange(anti_h, anti_v, mesh)
    assert inflow[1, 0] == 2.5
    assert outflow[0, 0] == 2.0 and outflow[2, 0] == 0.5
    assert outflow[3, 0] == 1.5 and inflow[3, 1] == 1.5
    assert inflow.sum() == outflow.sum() == 4.0


def test_limiting_ratios():
    phi_up = np.array([[0.5, 0.5, 0.5]])
    phi_min = np.array([[0.0, 0.4, 0.0]])
    phi_max = np.array([[1.0, 0.6, 0.5]])
    inflow = np.array([[1.0, 1.0, 0.0]])
    outflow = np.array([[0.0, 1.0, 2.0]])
    volume = np.ones((1, 3))

    r_in, r_out = limiting_ratios(phi_up, phi_min, phi_max, inflow, outflow, volume, dt=0.2)
    np.testing.assert_allclose(r_in, [[1.0, 0.5, 1.0]])
    np.testing.assert_allclose(r_out, [[1.0, 0.5, 1.0]])

    r_in, r_out = limiting_ratios(phi_up + 1.0, phi_min, phi_max, inflow, outflow, volume, dt=0.2)
    assert r_in[0, 0] == 0.0 and r_in[0, 1] == 0.0


def test_edge_factor_uses_donor_outflow_and_receiver_inflow():
    mesh = ring_mesh(4).mesh
    r_in = np.array([[1.0], [0.3], [1.0], [0.9]])
    r_out = np.array([[0.6], [1.0], [0.2], [1.0]])
    anti = np.array([[1.0], [-1.0], [1.0], [-1.0]])
    factor = edge_limiting_factors(anti, r_in, r_out, mesh)
    # e0: 0 -> 1, e1: 2 -> 1, e2: 2 -> 3, e3: 0 -> 3
    np.testing.assert_array_equal(factor[:, 0], [0.3, 0.2, 0.2, 0.6])


def test_interface_factor_uses_layer_above_as_donor_for_positive_flux():
    mesh = ring_mesh(4, n_levels=3).mesh
    r_in = np.ones((4, 3))
    r_out = np.ones((4, 3))
    r_out[0, 0] = 0.3
    r_in[0, 1] = 0.7
    r_in[1, 0] = 0.4
    r_out[1, 1] = 0.8

    anti = np.zeros((4, 4))
    anti[0, 1] = 1.0
    anti[1, 1] = -1.0
    factor = interface_limiting_factors(anti, r_in, r_out, mesh)
    assert factor[0, 1] == 0.3
    assert factor[1, 1] == 0.4
    assert np.all(factor[:, 0] == 0.0) and np.all(factor[:, 3] == 0.0)


def test_zero_factor_reproduces_low_order_flux():
    rng = np.random.default_rng(2)
    mesh = ring_mesh(10, n_levels=2).mesh
    phi = rng.random((10, 2))
    u = rng.normal(size=(10, 2))
    low = horizontal_low_order_flux(phi, u, mesh)
    high = horizontal_high_order_flux(phi, u, mesh, order=3, coef_3rd_order=0.25)
    anti = high - low
    np.testing.assert_array_equal(blend(low, anti, 0.0), low)
    np.testing.assert_array_equal(blend(low, anti, np.zeros_like(anti)), low)
    np.testing.assert_allclose(blend(low, anti, 1.0), high, atol=1e-14)
