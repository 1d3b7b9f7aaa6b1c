# struct_mesh/analysis/analyze.py
"""
FORCE / STRESS RECOVERY
=======================

Call contract:

    analyze(nodes, elements, element_inputs, deform_outputs) -> AnalysisOutputs

Frame elements get internal end forces in local axes, each stored as a
(start, end) pair. Sign convention is the internal force at the section:
start values are the negated end forces acting on node i, end values the
forces acting on node j. A member in tension has positive normals at both
ends.

Membrane elements get the average (σxx, σyy, τxy) of their triangles in
the polygon's own in-plane frame (see elements.polygon_frame).

Reactions are passed through from the deformation outputs.
"""

from dataclasses import dataclass, field
from typing import Dict, Sequence, Tuple

import numpy as np

from ..inputs import ElementInputs
from ..kernel.dof import DOF_3D_FRAME
from .deform import (
    FRAME_PROPERTIES,
    MEMBRANE_PROPERTIES,
    DeformOutputs,
    element_properties,
    fan_triangles,
)
from .elements import frame3d_end_forces, membrane_stress, polygon_frame

Pair = Tuple[float, float]


@dataclass
class AnalysisOutputs:
    normals: Dict[int, Pair] = field(default_factory=dict)
    shears_y: Dict[int, Pair] = field(default_factory=dict)
    shears_z: Dict[int, Pair] = field(default_factory=dict)
    torsions: Dict[int, Pair] = field(default_factory=dict)
    bendings_y: Dict[int, Pair] = field(default_factory=dict)
    bendings_z: Dict[int, Pair] = field(default_factory=dict)
    membrane_stresses: Dict[int, Tuple[float, float, float]] = field(default_factory=dict)
    reactions: Dict[int, Tuple[float, ...]] = field(default_factory=dict)


_FRAME_RESULTS = ('normals', 'shears_y', 'shears_z', 'torsions', 'bendings_y', 'bendings_z')


def analyze(
    nodes: Sequence[Sequence[float]],
    elements: Sequence[Sequence[int]],
    element_inputs: ElementInputs,
    deform_outputs: DeformOutputs,
) -> AnalysisOutputs:
    """Recover element forces/stresses from solved displacements."""
    dof = DOF_3D_FRAME
    d = np.zeros(dof.ndof(len(nodes)))
    for node, values in deform_outputs.deformations.items():
        d[dof.node_dofs(node)] = values

    outputs = AnalysisOutputs(reactions=dict(deform_outputs.reactions))

    for index, element in enumerate(elements):
        if len(element) == 2:
            props = element_properties(element_inputs, index, FRAME_PROPERTIES)
            if props is None:
                continue
            i, j = element
            f = frame3d_end_forces(nodes[i], nodes[j], d[dof.element_dof_map(element)], *props)
            for k, name in enumerate(_FRAME_RESULTS):
                getattr(outputs, name)[index] = (float(-f[k]), float(f[6 + k]))
        else:
            props = element_properties(element_inputs, index, MEMBRANE_PROPERTIES)
            if props is None:
                continue
            E, nu, _ = props
            frame = polygon_frame([nodes[i] for i in element])
            stresses = [
                membrane_stress([nodes[i] for i in tri], frame, d[dof.element_dof_map(tri)], E, nu)
                for tri in fan_triangles(element)
            ]
            mean = np.mean(stresses, axis=0)
            outputs.membrane_stresses[index] = (float(mean[0]), float(mean[1]), float(mean[2]))

    return outputs
