# struct_mesh/model.py
"""
MODEL DEFINITIONS: Table Rows and FEM Containers
================================================

PURPOSE:
--------
The structural model is edited as a set of positional tables. Each table is
an ordered list of rows, and each column is identified by its position only:

    points              [x, y, z, ux, uy, uz, rx, ry, rz]   (BC columns optional)
    connectivity        [start_id, end_id, section_id, material_id]
    surfaces            [p1, p2, ..., pn, {"property": surface_property_id}]
    materials           [id, elasticity, shear_modulus, poisson_ratio]
    sections            [id, area, Iz, Iy, J]
    surface_properties  [id, thickness, material_id]
    loads               [point_id, fx, fy, fz, mx, my, mz]

Structural point ids are 1-based: the point in row 0 has id 1.

This module turns those rows into frozen dataclasses and defines the FEM
containers (Mesh) produced by the mesh stage. Parsing is lenient: a cell
that is missing, None, NaN or non-numeric becomes None, and callers decide
what an absent value means.
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from numbers import Real
from typing import Dict, List, Optional, Sequence, Tuple

Node = Tuple[float, float, float]
Element = Tuple[int, ...]

DOF_LABELS = ('ux', 'uy', 'uz', 'rx', 'ry', 'rz')


def as_number(value) -> Optional[float]:
    """Return value as a finite float, or None if it is absent or not numeric."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Real):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def as_id(value) -> Optional[int]:
    """Return value as a positive integral id, or None."""
    number = as_number(value)
    if number is None or number != int(number) or number < 1:
        return None
    return int(number)


def _cell(row: Sequence, index: int):
    return row[index] if index < len(row) else None


@dataclass(frozen=True)
class StructuralPoint:
    """
    A user-facing labeled point.

    Parameters:
    -----------
    id : int
        1-based point id (table row + 1)
    x, y, z : float
        Coordinates
    bc : tuple
        Six optional boundary-condition fields (ux, uy, uz, rx, ry, rz).
        Exactly 0 means the DOF is fixed; None or any other value means free.
    """
    id: int
    x: float
    y: float
    z: float
    bc: Tuple[Optional[float], ...] = (None,) * 6

    @classmethod
    def from_row(cls, row: Sequence, point_id: int) -> 'StructuralPoint':
        coords = [as_number(_cell(row, i)) for i in range(3)]
        if any(c is None for c in coords):
            raise ValueError(f"Point {point_id} needs three numeric coordinates, got {list(row)!r}")
        bc = tuple(as_number(_cell(row, 3 + i)) for i in range(6))
        return cls(point_id, coords[0], coords[1], coords[2], bc)

    @property
    def coords(self) -> Node:
        return (self.x, self.y, self.z)

    @property
    def fixed_dofs(self) -> Tuple[bool, ...]:
        return tuple(value == 0 for value in self.bc)


@dataclass(frozen=True)
class MemberConnectivity:
    start_id: Optional[int]
    end_id: Optional[int]
    section_id: Optional[int] = None
    material_id: Optional[int] = None

    @classmethod
    def from_row(cls, row: Sequence) -> 'MemberConnectivity':
        return cls(
            as_id(_cell(row, 0)),
            as_id(_cell(row, 1)),
            as_id(_cell(row, 2)),
            as_id(_cell(row, 3)),
        )


@dataclass(frozen=True)
class SurfacePolygon:
    """
    An ordered polygon of point ids with an optional surface-property id.

    The property id is trailing metadata: in a table row it is the last
    item, given as a mapping ``{"property": id}`` so it can never be
    mistaken for a point id.

    A bare trailing integer is NOT a property id. ``[1, 2, 3, 4, 2]`` is a
    five-vertex polygon (closing back through point 2), not the square
    1-2-3-4 with property 2. DataFrames carry the property in a dedicated
    ``property`` column instead (see tables.frame_to_rows).
    """
    point_ids: Tuple[int, ...]
    property_id: Optional[int] = None

    @classmethod
    def from_row(cls, row) -> 'SurfacePolygon':
        if isinstance(row, SurfacePolygon):
            return row
        if isinstance(row, Mapping):
            return cls(
                tuple(i for i in (as_id(v) for v in row.get('points', ())) if i is not None),
                as_id(row.get('property')),
            )

        items = list(row)
        property_id = None
        # Strip trailing metadata
        while items and (items[-1] is None or isinstance(items[-1], Mapping)):
            meta = items.pop()
            if isinstance(meta, Mapping) and property_id is None:
                property_id = as_id(meta.get('property'))
        point_ids = tuple(i for i in (as_id(v) for v in items) if i is not None)
        return cls(point_ids, property_id)


@dataclass(frozen=True)
class MaterialProperty:
    id: int
    elasticity: Optional[float] = None
    shear_modulus: Optional[float] = None
    poisson_ratio: Optional[float] = None

    @classmethod
    def from_row(cls, row: Sequence) -> 'MaterialProperty':
        material_id = as_id(_cell(row, 0))
        if material_id is None:
            raise ValueError(f"Material row has no valid id: {list(row)!r}")
        return cls(material_id, *(as_number(_cell(row, i)) for i in range(1, 4)))


@dataclass(frozen=True)
class SectionProperty:
    id: int
    area: Optional[float] = None
    moment_of_inertia_z: Optional[float] = None
    moment_of_inertia_y: Optional[float] = None
    torsional_constant: Optional[float] = None

    @classmethod
    def from_row(cls, row: Sequence) -> 'SectionProperty':
        section_id = as_id(_cell(row, 0))
        if section_id is None:
            raise ValueError(f"Section row has no valid id: {list(row)!r}")
        return cls(section_id, *(as_number(_cell(row, i)) for i in range(1, 5)))


@dataclass(frozen=True)
class SurfaceProperty:
    id: int
    thickness: Optional[float] = None
    material_id: Optional[int] = None

    @classmethod
    def from_row(cls, row: Sequence) -> 'SurfaceProperty':
        property_id = as_id(_cell(row, 0))
        if property_id is None:
            raise ValueError(f"Surface property row has no valid id: {list(row)!r}")
        return cls(property_id, as_number(_cell(row, 1)), as_id(_cell(row, 2)))


@dataclass(frozen=True)
class PointLoad:
    point_id: Optional[int]
    components: Tuple[float, ...] = (0.0,) * 6

    @classmethod
    def from_row(cls, row: Sequence) -> 'PointLoad':
        components = []
        for i in range(1, 7):
            value = as_number(_cell(row, i))
            components.append(0.0 if value is None else value)
        return cls(as_id(_cell(row, 0)), tuple(components))


@dataclass
class Mesh:
    """
    Output of the mesh stage.

    Attributes:
    -----------
    nodes : list of (x, y, z)
        FEM nodes, continuous 0-based indices
    elements : list of tuples
        Beam elements (2 nodes) first, then surface elements (polygons)
    point_to_node : dict
        Structural point id -> FEM node index (partial injection)
    beam_rows : list of int
        Connectivity row of each valid segment; beam element e belongs to
        segment e // division
    surface_spans : list of (row, first_element, element_count)
        Element range produced by each meshed polygon
    division : int
        Beam sub-elements per member
    """
    nodes: List[Node] = field(default_factory=list)
    elements: List[Element] = field(default_factory=list)
    point_to_node: Dict[int, int] = field(default_factory=dict)
    beam_rows: List[int] = field(default_factory=list)
    surface_spans: List[Tuple[int, int, int]] = field(default_factory=list)
    division: int = 1

    @property
    def beam_element_count(self) -> int:
        return len(self.beam_rows) * self.division

    def beam_row_of(self, element: int) -> Optional[int]:
        """Connectivity row that declared a beam element, or None for surface elements."""
        if 0 <= element < self.beam_element_count:
            return self.beam_rows[element // self.division]
        return None
