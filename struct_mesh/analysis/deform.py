# struct_mesh/analysis/deform.py
"""
DEFORMATION SOLVER: Default Linear Static Analysis
==================================================

Call contract:

    deform(nodes, elements, node_inputs, element_inputs) -> DeformOutputs

Element kind follows from its node count: 2 nodes = 3D frame element,
3 or more = membrane polygon (fanned into triangles from its first vertex).

Rejection policy:
- frame elements need elasticity, shear modulus, area, Iz, Iy and J
- membrane elements need elasticity, Poisson ratio and thickness
Anything missing raises MissingPropertyError listing the elements.

DOFs that no element stiffens (rotations of membrane-only nodes, nodes no
element touches) are restrained automatically. A load on such a DOF, or a
structure that is still unstable, raises MechanismError.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

import numpy as np

from ..inputs import ElementInputs, NodeInputs
from ..kernel.assemble import assemble_global_K, assemble_nodal_loads
from ..kernel.dof import DOF_3D_FRAME, DOFManager
from ..kernel.solve import MechanismError, MissingPropertyError, solve_linear
from .elements import frame3d_global_stiffness, membrane_global_stiffness, polygon_frame

logger = logging.getLogger(__name__)

FRAME_PROPERTIES = (
    'elasticities', 'shear_moduli', 'areas',
    'moments_of_inertia_z', 'moments_of_inertia_y', 'torsional_constants',
)
MEMBRANE_PROPERTIES = ('elasticities', 'poisson_ratios', 'thicknesses')


@dataclass
class DeformOutputs:
    """
    deformations : node -> (ux, uy, uz, rx, ry, rz), every node
    reactions : node -> 6 reaction components, supported nodes only
    auto_restrained : global DOFs restrained because nothing stiffens them
    """
    deformations: Dict[int, Tuple[float, ...]] = field(default_factory=dict)
    reactions: Dict[int, Tuple[float, ...]] = field(default_factory=dict)
    auto_restrained: List[int] = field(default_factory=list)


def fan_triangles(element: Sequence[int]) -> List[Tuple[int, int, int]]:
    """Split a polygon element (i0, i1, ..., in) into (i0, ik, ik+1) triangles."""
    return [(element[0], element[k], element[k + 1]) for k in range(1, len(element) - 1)]


def element_properties(element_inputs: ElementInputs, index: int, names: Sequence[str]):
    """Values of the named property maps for one element; None if any is unset."""
    values = []
    for name in names:
        value = getattr(element_inputs, name).get(index)
        if value is None:
            return None
        values.append(value)
    return values


def check_properties(elements: Sequence[Sequence[int]], element_inputs: ElementInputs) -> None:
    missing = []
    for index, element in enumerate(elements):
        names = FRAME_PROPERTIES if len(element) == 2 else MEMBRANE_PROPERTIES
        if element_properties(element_inputs, index, names) is None:
            missing.append(index)
    if missing:
        preview = ', '.join(str(i) for i in missing[:10])
        more = f" (+{len(missing) - 10} more)" if len(missing) > 10 else ""
        raise MissingPropertyError(
            f"{len(missing)} element(s) lack required properties: {preview}{more}",
            elements=missing,
        )


def element_contributions(nodes, elements, element_inputs: ElementInputs, dof: DOFManager):
    """(dof_map, ke) for every element, frame and membrane alike."""
    contributions = []
    for index, element in enumerate(elements):
        if len(element) == 2:
            E, G, A, Iz, Iy, J = element_properties(element_inputs, index, FRAME_PROPERTIES)
            i, j = element
            ke = frame3d_global_stiffness(nodes[i], nodes[j], E, G, A, Iz, Iy, J)
            contributions.append((dof.element_dof_map(element), ke))
        else:
            E, nu, t = element_properties(element_inputs, index, MEMBRANE_PROPERTIES)
            frame = polygon_frame([nodes[i] for i in element])
            for tri in fan_triangles(element):
                ke = membrane_global_stiffness([nodes[i] for i in tri], frame, E, nu, t)
                contributions.append((dof.element_dof_map(tri), ke))
    return contributions


def deform(
    nodes: Sequence[Sequence[float]],
    elements: Sequence[Sequence[int]],
    node_inputs: NodeInputs,
    element_inputs: ElementInputs,
    cond_limit: float = 1e12,
) -> DeformOutputs:
    """
    Solve for nodal displacements.

    Returns:
    --------
    DeformOutputs
        Displacements of every node and reactions at supported nodes.

    Raises:
    -------
    MissingPropertyError
        If any element lacks the properties its kind needs
    MechanismError
        If the structure is unstable
    """
    if not nodes:
        return DeformOutputs()

    check_properties(elements, element_inputs)

    dof = DOF_3D_FRAME
    ndof = dof.ndof(len(nodes))
    K = assemble_global_K(ndof, element_contributions(nodes, elements, element_inputs, dof))
    F = assemble_nodal_loads(ndof, node_inputs.loads, dof.dof_per_node)

    fixed = set(dof.fixed_dofs(node_inputs.supports))

    diag = np.abs(np.diag(K))
    scale = diag.max() if diag.size else 0.0
    unstiffened = [int(i) for i in np.flatnonzero(diag <= 1e-12 * scale) if i not in fixed]
    loaded = [i for i in unstiffened if F[i] != 0.0]
    if loaded:
        node_ids = sorted({i // dof.dof_per_node for i in loaded})
        raise MechanismError(f"Loads act on DOFs with no stiffness at nodes {node_ids}")

    d, R, _ = solve_linear(K, F, sorted(fixed | set(unstiffened)), cond_limit)

    deformations = {
        node: tuple(float(v) for v in d[dof.node_dofs(node)]) for node in range(len(nodes))
    }
    reactions = {
        node: tuple(float(v) if is_fixed else 0.0
                    for v, is_fixed in zip(R[dof.node_dofs(node)], flags))
        for node, flags in node_inputs.supports.items()
        if 0 <= node < len(nodes)
    }
    logger.info(
        "Deform: %d nodes, %d elements, %d supports, %d auto-restrained DOFs",
        len(nodes), len(elements), len(node_inputs.supports), len(unstiffened),
    )
    return DeformOutputs(deformations, reactions, unstiffened)
