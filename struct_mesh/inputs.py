# struct_mesh/inputs.py
"""
PROPERTY / BOUNDARY-CONDITION ASSEMBLY
======================================

PURPOSE:
--------
Translate table data keyed by structural ids into solver inputs keyed by
FEM indices:

    NodeInputs.supports   node -> 6 booleans (True = DOF fixed)
    NodeInputs.loads      node -> (fx, fy, fz, mx, my, mz)

    ElementInputs.<property>   element -> value

All maps are sparse. A missing key means "unset"; nothing here raises for
a dangling id or a missing lookup. Deciding whether an unset property is an
error belongs to the solver.

HOW ELEMENTS FIND THEIR PROPERTIES:
-----------------------------------
Beam element e:
    row = mesh.beam_rows[e // division]        connectivity row
    section  = sections[connectivity[row].section_id]
    material = materials[connectivity[row].material_id]

Surface element e in span (row, first, count):
    surface_property = surface_properties[polygons[row].property_id]
    material = materials[surface_property.material_id]
"""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from .model import (
    MaterialProperty,
    MemberConnectivity,
    Mesh,
    PointLoad,
    SectionProperty,
    StructuralPoint,
    SurfacePolygon,
    SurfaceProperty,
)


@dataclass
class NodeInputs:
    supports: Dict[int, Tuple[bool, ...]] = field(default_factory=dict)
    loads: Dict[int, Tuple[float, ...]] = field(default_factory=dict)


@dataclass
class ElementInputs:
    elasticities: Dict[int, float] = field(default_factory=dict)
    shear_moduli: Dict[int, float] = field(default_factory=dict)
    poisson_ratios: Dict[int, float] = field(default_factory=dict)
    areas: Dict[int, float] = field(default_factory=dict)
    moments_of_inertia_z: Dict[int, float] = field(default_factory=dict)
    moments_of_inertia_y: Dict[int, float] = field(default_factory=dict)
    torsional_constants: Dict[int, float] = field(default_factory=dict)
    thicknesses: Dict[int, float] = field(default_factory=dict)


def assemble_supports(points: Dict[int, StructuralPoint], mesh: Mesh) -> Dict[int, Tuple[bool, ...]]:
    """Support map: an entry only for nodes with at least one fixed DOF."""
    supports = {}
    for point_id, point in points.items():
        node = mesh.point_to_node.get(point_id)
        if node is None:
            continue
        fixed = point.fixed_dofs
        if any(fixed):
            supports[node] = fixed
    return supports


def assemble_loads(loads: List[PointLoad], mesh: Mesh) -> Dict[int, Tuple[float, ...]]:
    """Load map; for repeated point ids the later row wins."""
    result = {}
    for load in loads:
        node = mesh.point_to_node.get(load.point_id)
        if node is not None:
            result[node] = tuple(load.components)
    return result


def assemble_node_inputs(
    points: Dict[int, StructuralPoint],
    loads: List[PointLoad],
    mesh: Mesh,
) -> NodeInputs:
    return NodeInputs(
        supports=assemble_supports(points, mesh),
        loads=assemble_loads(loads, mesh),
    )


def _put(target: Dict[int, float], element: int, value) -> None:
    if value is not None:
        target[element] = value


def assemble_element_inputs(
    mesh: Mesh,
    connectivity: List[MemberConnectivity],
    polygons: List[SurfacePolygon],
    materials: Dict[int, MaterialProperty],
    sections: Dict[int, SectionProperty],
    surface_properties: Dict[int, SurfaceProperty],
) -> ElementInputs:
    inputs = ElementInputs()

    # Beams
    for element in range(mesh.beam_element_count):
        member = connectivity[mesh.beam_row_of(element)]

        material = materials.get(member.material_id)
        if material is not None:
            _put(inputs.elasticities, element, material.elasticity)
            _put(inputs.shear_moduli, element, material.shear_modulus)

        section = sections.get(member.section_id)
        if section is not None:
            _put(inputs.areas, element, section.area)
            _put(inputs.moments_of_inertia_z, element, section.moment_of_inertia_z)
            _put(inputs.moments_of_inertia_y, element, section.moment_of_inertia_y)
            _put(inputs.torsional_constants, element, section.torsional_constant)

    # Surfaces
    for row, first, count in mesh.surface_spans:
        surface_property = surface_properties.get(polygons[row].property_id)
        if surface_property is None:
            continue
        material = materials.get(surface_property.material_id)
        for element in range(first, first + count):
            _put(inputs.thicknesses, element, surface_property.thickness)
            if material is not None:
                _put(inputs.elasticities, element, material.elasticity)
                _put(inputs.shear_moduli, element, material.shear_modulus)
                _put(inputs.poisson_ratios, element, material.poisson_ratio)

    return inputs
