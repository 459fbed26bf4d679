"""
Edge and interface flux reconstruction

Covers:
- donor-cell fluxes and the 4-cell ring scenario
- horizontal order 2 / 3 / 4 against the 1-D closed forms
- vertical order 2 / 3 / 4 against the column closed forms, surface and floor
- fallback to the lower order is bit-identical (walls, near-surface interfaces)
- dzdk_positive sign convention
"""

import numpy as np
import pytest

from pyocean.advection.assembly import flux_tendency
from pyocean.advection.fluxes import (
    centered_edge_flux,
    horizontal_high_order_flux,
    horizontal_low_order_flux,
    second_order_interface_value,
    vertical_high_order_flux,
    vertical_low_order_flux,
)
from scripts.meshes import quad_mesh, ring_mesh


def _ring_closed_form(phi, u, coef3):
    n = phi.shape[0]
    idx = np.arange(n)
    q_im2, q_im1, q_i, q_ip1 = phi[idx - 1], phi[idx], phi[(idx + 1) % n], phi[(idx + 2) % n]
    edge = (7.0 * (q_i + q_im1) - (q_ip1 + q_im2)) / 12.0
    edge = edge + coef3 * np.sign(u) * ((q_ip1 - q_im2) - 3.0 * (q_i - q_im1)) / 12.0
    return u * edge


def test_ring_scenario_low_order_tendency():
    mesh = ring_mesh(4).mesh
    phi = np.array([[0.0], [0.0], [10.0], [0.0]])
    u = np.ones((4, 1))
    w = np.zeros((4, 2))
    h = np.ones((4, 1))

    flux_h = horizontal_low_order_flux(phi, u, mesh)
    flux_v = vertical_low_order_flux(phi, w, mesh)
    assert flux_h[:, 0].tolist() == [0.0, 0.0, 10.0, 0.0]
    tend = flux_tendency(flux_h, flux_v, h, mesh)
    assert tend[:, 0].tolist() == [0.0, 0.0, -10.0, 10.0]


def test_low_order_flux_follows_flow_direction():
    mesh = ring_mesh(4).mesh
    phi = np.array([[1.0], [2.0], [3.0], [4.0]])
    u = np.array([[1.0], [-1.0], [0.5], [-2.0]])
    flux = horizontal_low_order_flux(phi, u, mesh)
    np.testing.assert_array_equal(flux[:, 0], [1.0, -3.0, 1.5, -2.0])


def test_order_two_is_centered():
    rng = np.random.default_rng(1)
    mesh = ring_mesh(7, n_levels=2).mesh
    phi = rng.random((7, 2))
    u = rng.normal(size=(7, 2))
    high = horizontal_high_order_flux(phi, u, mesh, order=2, coef_3rd_order=0.25)
    np.testing.assert_array_equal(high, centered_edge_flux(phi, u, mesh))
    c1, c2 = mesh.cells_on_edge[:, 0], mesh.cells_on_edge[:, 1]
    np.testing.assert_allclose(high, u * 0.5 * (phi[c1] + phi[c2]), rtol=1e-14)


@pytest.mark.parametrize("order, coef3", [(4, 0.0), (3, 0.25), (3, 1.0)])
def test_ring_high_order_matches_closed_form(order, coef3):
    rng = np.random.default_rng(7)
    n = 9
    mesh = ring_mesh(n).mesh
    phi = rng.random((n, 1))
    u = rng.normal(size=(n, 1))
    flux = horizontal_high_order_flux(phi, u, mesh, order=order, coef_3rd_order=coef3)
    np.testing.assert_allclose(flux[:, 0], _ring_closed_form(phi[:, 0], u[:, 0], coef3), atol=1e-12)


def test_order_four_ignores_upwind_coefficient():
    rng = np.random.default_rng(3)
    mesh = ring_mesh(8).mesh
    phi = rng.random((8, 1))
    u = rng.normal(size=(8, 1))
    a = horizontal_high_order_flux(phi, u, mesh, order=4, coef_3rd_order=0.0)
    b = horizontal_high_order_flux(phi, u, mesh, order=4, coef_3rd_order=0.9)
    np.testing.assert_array_equal(a, b)


def test_wall_edges_fall_back_to_second_order_bitwise():
    rng = np.random.default_rng(11)
    nx, ny = 5, 5
    mesh = quad_mesh(nx, ny, n_levels=2, periodic_y=False).mesh
    phi = rng.random((mesh.n_cells, 2))
    u = rng.normal(size=(mesh.n_edges, 2))

    low_order = horizontal_high_order_flux(phi, u, mesh, order=2, coef_3rd_order=0.25)
    third = horizontal_high_order_flux(phi, u, mesh, order=3, coef_3rd_order=0.25)
    fourth = horizontal_high_order_flux(phi, u, mesh, order=4, coef_3rd_order=0.25)

    fallback = ~mesh.high_order_advection_mask
    assert fallback[:nx].all()
    np.testing.assert_array_equal(third[fallback], low_order[fallback])
    np.testing.assert_array_equal(fourth[fallback], low_order[fallback])
    assert not np.allclose(third[mesh.high_order_advection_mask], low_order[mesh.high_order_advection_mask])


def test_horizontal_flux_zero_below_edge_top():
    max_level = np.array([3, 3, 1, 3, 3])
    mesh = ring_mesh(5, n_levels=3, max_level_cell=max_level).mesh
    phi = np.full((5, 3), 2.0)
    u = np.ones((5, 3))
    for order in (2, 3, 4):
        flux = horizontal_high_order_flux(phi, u, mesh, order=order, coef_3rd_order=0.25)
        assert np.all(flux[~mesh.edge_level_mask] == 0.0)
        assert np.all(flux[1, 1:] == 0.0)
        assert np.all(flux[2, 1:] == 0.0)
    low = horizontal_low_order_flux(phi, u, mesh)
    assert np.all(low[~mesh.edge_level_mask] == 0.0)


# ----------------------------- vertical ----------------------------- #

def _column_setup(n_levels=6, seed=5):
    rng = np.random.default_rng(seed)
    mesh = ring_mesh(4, n_levels=n_levels).mesh
    phi = rng.random((4, n_levels))
    w = rng.normal(size=(4, n_levels + 1))
    h = 1.0 + rng.random((4, n_levels))
    return mesh, phi, w, h


def test_second_order_interface_value_is_thickness_weighted():
    mesh, phi, w, h = _column_setup()
    value = second_order_interface_value(phi, h, mesh)
    k = 3
    expected = (h[:, k] * phi[:, k - 1] + h[:, k - 1] * phi[:, k]) / (h[:, k - 1] + h[:, k])
    np.testing.assert_allclose(value[:, k], expected, rtol=1e-14)
    assert np.all(value[:, 0] == 0.0)
    assert np.all(value[:, -1] == 0.0)


@pytest.mark.parametrize("order, coef3", [(4, 0.25), (3, 0.25), (3, 1.0)])
def test_vertical_high_order_matches_closed_form(order, coef3):
    mesh, phi, w, h = _column_setup()
    flux = vertical_high_order_flux(phi, w, h, mesh, order=order, coef_3rd_order=coef3)
    u = -w  # dzdk_positive = False
    area = mesh.area_cell
    for k in (2, 3, 4):
        q_im2, q_im1, q_i, q_ip1 = phi[:, k - 2], phi[:, k - 1], phi[:, k], phi[:, k + 1]
        expected = u[:, k] * (7.0 * (q_i + q_im1) - (q_ip1 + q_im2)) / 12.0
        if order == 3:
            expected = expected + coef3 * np.abs(u[:, k]) * ((q_ip1 - q_im2) - 3.0 * (q_i - q_im1)) / 12.0
        np.testing.assert_allclose(flux[:, k], area * expected, atol=1e-13)


def test_vertical_near_boundary_interfaces_fall_back_bitwise():
    mesh, phi, w, h = _column_setup()
    second = vertical_high_order_flux(phi, w, h, mesh, order=2, coef_3rd_order=0.25)
    for order in (3, 4):
        high = vertical_high_order_flux(phi, w, h, mesh, order=order, coef_3rd_order=0.25)
        # interface 1 lacks k-2, interface 5 lacks k+1 in a 6-layer column
        np.testing.assert_array_equal(high[:, 1], second[:, 1])
        np.testing.assert_array_equal(high[:, 5], second[:, 5])
        assert not np.allclose(high[:, 3], second[:, 3])


def test_vertical_flux_zero_at_surface_and_floor():
    max_level = np.array([6, 4, 2, 1])
    mesh = ring_mesh(4, n_levels=6, max_level_cell=max_level).mesh
    _, phi, w, h = _column_setup()
    for order in (2, 3, 4):
        flux = vertical_high_order_flux(phi, w, h, mesh, order=order, coef_3rd_order=0.25)
        assert np.all(flux[:, 0] == 0.0)
        for c, kmax in enumerate(max_level):
            assert np.all(flux[c, kmax:] == 0.0)
    low = vertical_low_order_flux(phi, w, mesh)
    assert np.all(low[~mesh.interface_mask] == 0.0)


def test_shallow_column_uses_second_order_everywhere():
    max_level = np.array([3, 3, 3, 3])
    mesh = ring_mesh(4, n_levels=6, max_level_cell=max_level).mesh
    _, phi, w, h = _column_setup()
    second = vertical_high_order_flux(phi, w, h, mesh, order=2, coef_3rd_order=0.25)
    third = vertical_high_order_flux(phi, w, h, mesh, order=3, coef_3rd_order=0.25)
    np.testing.assert_array_equal(third, second)


def test_dzdk_positive_flips_velocity():
    mesh, phi, w, h = _column_setup()
    np.testing.assert_array_equal(
        vertical_low_order_flux(phi, w, mesh, dzdk_positive=True),
        vertical_low_order_flux(phi, -w, mesh, dzdk_positive=False),
    )
    np.testing.assert_array_equal(
        vertical_high_order_flux(phi, w, h, mesh, 3, 0.25, dzdk_positive=True),
        vertical_high_order_flux(phi, -w, h, mesh, 3, 0.25, dzdk_positive=False),
    )


def test_vertical_low_order_is_upwind():
    mesh = ring_mesh(4, n_levels=3).mesh
    phi = np.tile([1.0, 2.0, 3.0], (4, 1))
    w = np.zeros((4, 4))
    w[:, 1] = -1.0  # along +k with dzdk_positive = False: donor is layer 0
    w[:, 2] = 2.0  # against +k: donor is layer 2
    flux = vertical_low_order_flux(phi, w, mesh)
    np.testing.assert_array_equal(flux[:, 1], mesh.area_cell * 1.0)
    np.testing.assert_array_equal(flux[:, 2], mesh.area_cell * -2.0 * 3.0)
