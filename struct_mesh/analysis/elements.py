# struct_mesh/analysis/elements.py
"""
ELEMENT STIFFNESS: 3D Frame and Membrane Triangle
=================================================

FRAME ELEMENT (2 nodes, 12 DOF):
--------------------------------
Euler-Bernoulli beam with axial, torsional and biaxial bending stiffness.
Local axes:

    x'  along the member, node i -> node j
    y'  ref × x'   with ref = global Z (global X for vertical members)
    z'  x' × y'

Bending about z' uses Iz, bending about y' uses Iy, torsion uses G·J.

    ke_global = Tᵀ × k_local × T,   T = blockdiag(Γ, Γ, Γ, Γ)

where Γ is the 3×3 matrix whose rows are x', y', z'.

MEMBRANE TRIANGLE (3 nodes, 18 DOF):
------------------------------------
Constant-strain triangle in plane stress, thickness t. It stiffens only
the in-plane translations; rotations and the out-of-plane translation get
nothing from it. The local 2D frame is supplied by the caller so all
triangles of one polygon share it.

    k_local (6×6) = t · A · Bᵀ D B
    D = E / (1 - ν²) · [[1, ν, 0], [ν, 1, 0], [0, 0, (1 - ν)/2]]
"""

from typing import Sequence, Tuple

import numpy as np

_VERTICAL_TOL = 1e-9


def frame_geometry(pi: Sequence[float], pj: Sequence[float]) -> Tuple[float, np.ndarray]:
    """
    Length and 3×3 direction-cosine matrix Γ of a frame element.

    Raises:
    -------
    ValueError
        If the element has zero length
    """
    pi = np.asarray(pi, dtype=float)
    pj = np.asarray(pj, dtype=float)
    axis = pj - pi
    L = float(np.linalg.norm(axis))
    if L <= 0.0:
        raise ValueError(f"Frame element has zero length (both ends at {tuple(pi)})")

    x = axis / L
    ref = np.array([0.0, 0.0, 1.0])
    if np.linalg.norm(np.cross(ref, x)) < _VERTICAL_TOL:
        ref = np.array([1.0, 0.0, 0.0])
    y = np.cross(ref, x)
    y /= np.linalg.norm(y)
    z = np.cross(x, y)
    return L, np.vstack([x, y, z])


def frame3d_local_stiffness(E: float, G: float, A: float, Iz: float, Iy: float, J: float, L: float) -> np.ndarray:
    """
    12×12 local stiffness.
    DOF order: [ux, uy, uz, rx, ry, rz]_i + [ux, uy, uz, rx, ry, rz]_j
    """
    k = np.zeros((12, 12), dtype=float)
    L2 = L * L
    L3 = L2 * L

    EA_L = E * A / L
    GJ_L = G * J / L
    k[0, 0] = k[6, 6] = EA_L
    k[0, 6] = k[6, 0] = -EA_L
    k[3, 3] = k[9, 9] = GJ_L
    k[3, 9] = k[9, 3] = -GJ_L

    # Bending about local z (deflection uy, rotation rz)
    EIz = E * Iz
    for (a, b), value in {
        (1, 1): 12 * EIz / L3, (1, 5): 6 * EIz / L2, (1, 7): -12 * EIz / L3, (1, 11): 6 * EIz / L2,
        (5, 5): 4 * EIz / L, (5, 7): -6 * EIz / L2, (5, 11): 2 * EIz / L,
        (7, 7): 12 * EIz / L3, (7, 11): -6 * EIz / L2,
        (11, 11): 4 * EIz / L,
    }.items():
        k[a, b] = k[b, a] = value

    # Bending about local y (deflection uz, rotation ry)
    EIy = E * Iy
    for (a, b), value in {
        (2, 2): 12 * EIy / L3, (2, 4): -6 * EIy / L2, (2, 8): -12 * EIy / L3, (2, 10): -6 * EIy / L2,
        (4, 4): 4 * EIy / L, (4, 8): 6 * EIy / L2, (4, 10): 2 * EIy / L,
        (8, 8): 12 * EIy / L3, (8, 10): 6 * EIy / L2,
        (10, 10): 4 * EIy / L,
    }.items():
        k[a, b] = k[b, a] = value

    return k


def frame3d_transform(gamma: np.ndarray) -> np.ndarray:
    """12×12 transform from global DOFs to local DOFs."""
    T = np.zeros((12, 12), dtype=float)
    for block in range(4):
        s = 3 * block
        T[s:s + 3, s:s + 3] = gamma
    return T


def frame3d_global_stiffness(
    pi: Sequence[float], pj: Sequence[float],
    E: float, G: float, A: float, Iz: float, Iy: float, J: float,
) -> np.ndarray:
    L, gamma = frame_geometry(pi, pj)
    T = frame3d_transform(gamma)
    return T.T @ frame3d_local_stiffness(E, G, A, Iz, Iy, J, L) @ T


def frame3d_end_forces(
    pi: Sequence[float], pj: Sequence[float], d_element: np.ndarray,
    E: float, G: float, A: float, Iz: float, Iy: float, J: float,
) -> np.ndarray:
    """
    Element end forces in local coordinates, f = k_local × T × d.

    Returns the 12-vector [N, Vy, Vz, T, My, Mz]_i + [...]_j acting on the
    element at its nodes.
    """
    L, gamma = frame_geometry(pi, pj)
    T = frame3d_transform(gamma)
    return frame3d_local_stiffness(E, G, A, Iz, Iy, J, L) @ (T @ d_element)


# =============================================================================
# Membrane
# =============================================================================

def polygon_frame(points: Sequence[Sequence[float]]) -> np.ndarray:
    """
    2×3 in-plane basis (rows e1, e2) of a planar polygon.

    e1 points from the first to the second vertex; the normal comes from
    Newell's method so non-convex polygons are handled.
    """
    p = np.asarray(points, dtype=float)
    normal = np.zeros(3)
    for a, b in zip(p, np.roll(p, -1, axis=0)):
        normal += np.cross(a, b)
    n_len = np.linalg.norm(normal)
    edge = p[1] - p[0]
    e_len = np.linalg.norm(edge)
    if n_len <= 0.0 or e_len <= 0.0:
        raise ValueError(f"Surface element has no area: {p.tolist()}")
    normal /= n_len
    e1 = edge / e_len
    e1 = e1 - np.dot(e1, normal) * normal
    e1 /= np.linalg.norm(e1)
    e2 = np.cross(normal, e1)
    return np.vstack([e1, e2])


def plane_stress_matrix(E: float, nu: float) -> np.ndarray:
    return E / (1.0 - nu * nu) * np.array([
        [1.0, nu, 0.0],
        [nu, 1.0, 0.0],
        [0.0, 0.0, (1.0 - nu) / 2.0],
    ])


def cst_b_matrix(xy: np.ndarray) -> Tuple[np.ndarray, float]:
    """Strain-displacement matrix (3×6) and area of a 2D triangle."""
    (x1, y1), (x2, y2), (x3, y3) = xy
    two_area = (x2 - x1) * (y3 - y1) - (x3 - x1) * (y2 - y1)
    if abs(two_area) <= 0.0:
        raise ValueError("Membrane triangle has zero area")
    b = (y2 - y3, y3 - y1, y1 - y2)
    c = (x3 - x2, x1 - x3, x2 - x1)
    B = np.array([
        [b[0], 0.0, b[1], 0.0, b[2], 0.0],
        [0.0, c[0], 0.0, c[1], 0.0, c[2]],
        [c[0], b[0], c[1], b[1], c[2], b[2]],
    ]) / two_area
    return B, abs(two_area) / 2.0


def membrane_transform(frame: np.ndarray) -> np.ndarray:
    """6×18 map from three nodes' global DOFs to their in-plane (u, v)."""
    T = np.zeros((6, 18), dtype=float)
    for node in range(3):
        T[2 * node:2 * node + 2, 6 * node:6 * node + 3] = frame
    return T


def membrane_global_stiffness(
    points: Sequence[Sequence[float]], frame: np.ndarray, E: float, nu: float, t: float
) -> np.ndarray:
    """18×18 global stiffness of one membrane triangle."""
    xy = np.asarray(points, dtype=float) @ frame.T
    B, area = cst_b_matrix(xy)
    k_local = t * area * B.T @ plane_stress_matrix(E, nu) @ B
    T = membrane_transform(frame)
    return T.T @ k_local @ T


def membrane_stress(
    points: Sequence[Sequence[float]], frame: np.ndarray, d_element: np.ndarray, E: float, nu: float
) -> np.ndarray:
    """(σxx, σyy, τxy) of one triangle in the given in-plane frame."""
    xy = np.asarray(points, dtype=float) @ frame.T
    B, _ = cst_b_matrix(xy)
    u_local = membrane_transform(frame) @ d_element
    return plane_stress_matrix(E, nu) @ B @ u_local
