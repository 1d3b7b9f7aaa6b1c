# struct_mesh/kernel/assemble.py
"""
ASSEMBLY: Global Matrix and Load Vector
=======================================

Scatter-add of element contributions into the global system. Assembly does
not care about element type: a 12×12 frame matrix and an 18×18 membrane
matrix go through the same code, each with its own DOF map.

    K = zeros(ndof × ndof)
    for (dof_map, ke) in contributions:
        K[dof_map[a], dof_map[b]] += ke[a, b]
"""

from typing import Dict, List, Sequence, Tuple

import numpy as np


def assemble_global_K(
    ndof: int,
    contributions: List[Tuple[Sequence[int], np.ndarray]]
) -> np.ndarray:
    """
    Assemble the global stiffness matrix.

    Parameters:
    -----------
    ndof : int
        Total number of DOFs
    contributions : list of (dof_map, ke)
        dof_map: global DOF indices of the element, len m
        ke: element stiffness in global coordinates, shape (m, m)

    Returns:
    --------
    np.ndarray
        K, shape (ndof, ndof)
    """
    K = np.zeros((ndof, ndof), dtype=float)
    for dof_map, ke in contributions:
        dof_map = np.asarray(dof_map, dtype=int)
        assert ke.shape == (len(dof_map), len(dof_map)), \
            f"Element ke shape {ke.shape} doesn't match dof_map length {len(dof_map)}"
        np.add.at(K, np.ix_(dof_map, dof_map), ke)
    return K


def assemble_nodal_loads(
    ndof: int,
    loads: Dict[int, Sequence[float]],
    dof_per_node: int
) -> np.ndarray:
    """
    Global load vector from a node -> (fx, fy, fz, mx, my, mz) map.

    Example:
    --------
    >>> F = assemble_nodal_loads(12, {1: (0, 0, -1000, 0, 0, 0)}, dof_per_node=6)
    >>> F[8]
    -1000.0
    """
    F = np.zeros(ndof, dtype=float)
    for node_id, components in loads.items():
        base = dof_per_node * node_id
        for i, value in enumerate(components[:dof_per_node]):
            F[base + i] += value
    return F
