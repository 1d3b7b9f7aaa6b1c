# File: tests/test_frame_solver.py
"""
Validation of the default solver (struct_mesh/analysis).

Closed-form checks:
- Cantilever with a tip load: δ = P·L³ / (3·E·I), M_base = P·L
- Membrane patch under uniform tension: ε = σ/E, lateral ε = -ν·σ/E

Plus the rejection policy: unstable structures and missing properties.
"""

import numpy as np
import pytest

from struct_mesh.analysis import analyze, deform
from struct_mesh.analysis.elements import (
    frame3d_global_stiffness,
    frame_geometry,
    membrane_global_stiffness,
    polygon_frame,
)
from struct_mesh.inputs import ElementInputs, NodeInputs
from struct_mesh.kernel import MechanismError, MissingPropertyError

L = 3.0
E = 210e9
G = 81e9
A = 0.01
I = 8.0e-6
J = 1.6e-5
P = 1000.0

FIXED = (True,) * 6


def frame_inputs(n_elements):
    inputs = ElementInputs()
    for e in range(n_elements):
        inputs.elasticities[e] = E
        inputs.shear_moduli[e] = G
        inputs.areas[e] = A
        inputs.moments_of_inertia_z[e] = I
        inputs.moments_of_inertia_y[e] = I
        inputs.torsional_constants[e] = J
    return inputs


def test_cantilever_tip_load():
    nodes = [(0.0, 0.0, 0.0), (L, 0.0, 0.0)]
    elements = [(0, 1)]
    node_inputs = NodeInputs(supports={0: FIXED}, loads={1: (0.0, 0.0, -P, 0.0, 0.0, 0.0)})

    out = deform(nodes, elements, node_inputs, frame_inputs(1))

    uz_tip = out.deformations[1][2]
    assert np.isclose(uz_tip, -P * L**3 / (3 * E * I), rtol=1e-6)
    assert np.isclose(abs(out.deformations[1][4]), P * L**2 / (2 * E * I), rtol=1e-6)
    assert out.deformations[0] == (0.0,) * 6

    # Base carries the load back
    assert np.isclose(out.reactions[0][2], P, rtol=1e-6)
    assert np.isclose(abs(out.reactions[0][4]), P * L, rtol=1e-6)
    assert 1 not in out.reactions

    result = analyze(nodes, elements, frame_inputs(1), out)
    assert np.isclose(abs(result.bendings_y[0][0]), P * L, rtol=1e-6)
    assert abs(result.bendings_y[0][1]) < 1e-6 * P * L
    assert np.isclose(abs(result.shears_z[0][0]), P, rtol=1e-6)
    assert abs(result.normals[0][0]) < 1e-6
    assert result.reactions == out.reactions
    print(f"✓ Cantilever tip deflection {uz_tip:.6e} m")


def test_subdivided_cantilever_matches_single_element():
    n = 4
    nodes = [(L * k / n, 0.0, 0.0) for k in range(n + 1)]
    elements = [(k, k + 1) for k in range(n)]
    node_inputs = NodeInputs(supports={0: FIXED}, loads={n: (0.0, 0.0, -P, 0.0, 0.0, 0.0)})

    out = deform(nodes, elements, node_inputs, frame_inputs(n))
    assert np.isclose(out.deformations[n][2], -P * L**3 / (3 * E * I), rtol=1e-6)

    # Moment falls linearly from the base to the tip
    result = analyze(nodes, elements, frame_inputs(n), out)
    for k in range(n):
        expected = P * (L - L * k / n)
        assert np.isclose(abs(result.bendings_y[k][0]), expected, rtol=1e-6)


def test_axial_bar_in_tension_has_positive_normals():
    nodes = [(0.0, 0.0, 0.0), (2.0, 0.0, 0.0)]
    node_inputs = NodeInputs(supports={0: FIXED}, loads={1: (5000.0, 0.0, 0.0, 0.0, 0.0, 0.0)})
    out = deform(nodes, [(0, 1)], node_inputs, frame_inputs(1))

    assert np.isclose(out.deformations[1][0], 5000.0 * 2.0 / (E * A), rtol=1e-9)
    result = analyze(nodes, [(0, 1)], frame_inputs(1), out)
    start, end = result.normals[0]
    assert np.isclose(start, 5000.0, rtol=1e-9)
    assert np.isclose(end, 5000.0, rtol=1e-9)


def test_vertical_member_uses_global_x_reference():
    length, gamma = frame_geometry((0, 0, 0), (0, 0, 4))
    assert length == 4.0
    np.testing.assert_allclose(gamma[0], [0, 0, 1])
    np.testing.assert_allclose(np.abs(gamma[1]), [0, 1, 0], atol=1e-12)


def test_zero_length_member_rejected():
    with pytest.raises(ValueError):
        frame_geometry((1, 2, 3), (1, 2, 3))


class TestElementMatrices:

    def test_frame_stiffness_symmetric(self):
        ke = frame3d_global_stiffness((0, 0, 0), (1, 2, 3), E, G, A, I, 2 * I, J)
        np.testing.assert_allclose(ke, ke.T, rtol=1e-10, atol=1e-6)

    def test_rigid_translation_gives_no_force(self):
        ke = frame3d_global_stiffness((0, 0, 0), (1, 2, 3), E, G, A, I, 2 * I, J)
        d = np.tile([0.3, -0.2, 0.1, 0.0, 0.0, 0.0], 2)
        assert np.allclose(ke @ d, 0.0, atol=1e-3)

    def test_membrane_stiffness_has_no_out_of_plane_terms(self):
        points = [(0, 0, 0), (1, 0, 0), (0, 1, 0)]
        ke = membrane_global_stiffness(points, polygon_frame(points), 200e9, 0.3, 0.1)
        np.testing.assert_allclose(ke, ke.T, rtol=1e-10, atol=1e-3)
        for node in range(3):
            for local in (2, 3, 4, 5):
                assert np.allclose(ke[6 * node + local], 0.0)


def test_membrane_patch_uniform_tension():
    """
    Unit square, t = 0.1, pulled with 1e5 N along +x on the edge x = 1.
    σxx = 1e5 / (0.1 · 1) = 1e6 Pa everywhere.
    """
    E_m, nu, t = 200e9, 0.3, 0.1
    nodes = [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (1.0, 1.0, 0.0), (0.0, 1.0, 0.0)]
    elements = [(0, 1, 2, 3)]
    element_inputs = ElementInputs(
        elasticities={0: E_m}, poisson_ratios={0: nu}, thicknesses={0: t}
    )
    node_inputs = NodeInputs(
        supports={0: FIXED, 3: (True, False, False, False, False, False)},
        loads={1: (5e4, 0, 0, 0, 0, 0), 2: (5e4, 0, 0, 0, 0, 0)},
    )

    out = deform(nodes, elements, node_inputs, element_inputs)

    strain = 1e6 / E_m
    assert np.isclose(out.deformations[1][0], strain, rtol=1e-9)
    assert np.isclose(out.deformations[2][0], strain, rtol=1e-9)
    assert np.isclose(out.deformations[2][1], -nu * strain, rtol=1e-9)
    assert np.isclose(out.deformations[3][1], -nu * strain, rtol=1e-9)
    assert out.auto_restrained, "rotations and uz of membrane nodes are restrained"

    result = analyze(nodes, elements, element_inputs, out)
    sxx, syy, sxy = result.membrane_stresses[0]
    assert np.isclose(sxx, 1e6, rtol=1e-9)
    assert abs(syy) < 1e-3
    assert abs(sxy) < 1e-3


class TestRejection:

    def test_no_supports_is_a_mechanism(self):
        nodes = [(0.0, 0.0, 0.0), (L, 0.0, 0.0)]
        node_inputs = NodeInputs(loads={1: (0.0, 0.0, -P, 0.0, 0.0, 0.0)})
        with pytest.raises(MechanismError):
            deform(nodes, [(0, 1)], node_inputs, frame_inputs(1))

    def test_load_on_unstiffened_dof(self):
        nodes = [(0, 0, 0), (1, 0, 0), (1, 1, 0)]
        element_inputs = ElementInputs(
            elasticities={0: 200e9}, poisson_ratios={0: 0.3}, thicknesses={0: 0.1}
        )
        node_inputs = NodeInputs(
            supports={0: FIXED, 1: FIXED}, loads={2: (0, 0, -100.0, 0, 0, 0)},
        )
        with pytest.raises(MechanismError):
            deform(nodes, [(0, 1, 2)], node_inputs, element_inputs)

    def test_missing_properties_listed(self):
        nodes = [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (2.0, 0.0, 0.0)]
        inputs = frame_inputs(1)
        with pytest.raises(MissingPropertyError) as excinfo:
            deform(nodes, [(0, 1), (1, 2)], NodeInputs(supports={0: FIXED}), inputs)
        assert excinfo.value.elements == [1]

    def test_empty_mesh(self):
        out = deform([], [], NodeInputs(), ElementInputs())
        assert out.deformations == {}
        assert out.reactions == {}
