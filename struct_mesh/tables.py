# struct_mesh/tables.py
"""
STRUCTURAL MODEL STORE: Positional Tables
=========================================

The store holds the user-edited tables as plain lists of rows. It contains
no meshing logic: the pipeline reads the raw rows, and the parse_* helpers
below turn them into the typed rows from model.py.

Tables can also be exchanged as pandas DataFrames (one DataFrame per table,
columns in positional order, NaN for an empty cell).
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

import numpy as np
import pandas as pd

from .model import (
    DOF_LABELS,
    MaterialProperty,
    MemberConnectivity,
    Mesh,
    PointLoad,
    SectionProperty,
    StructuralPoint,
    SurfacePolygon,
    SurfaceProperty,
)

logger = logging.getLogger(__name__)

TABLE_COLUMNS: Dict[str, List[str]] = {
    'points': ['x', 'y', 'z', 'ux', 'uy', 'uz', 'rx', 'ry', 'rz'],
    'connectivity': ['start_id', 'end_id', 'section_id', 'material_id'],
    'surfaces': [],  # variable width: p1..pn, then 'property'
    'materials': ['id', 'elasticity', 'shear_modulus', 'poisson_ratio'],
    'sections': ['id', 'area', 'moment_of_inertia_z', 'moment_of_inertia_y', 'torsional_constant'],
    'surface_properties': ['id', 'thickness', 'material_id'],
    'loads': ['point_id', 'fx', 'fy', 'fz', 'mx', 'my', 'mz'],
}

TABLE_NAMES = tuple(TABLE_COLUMNS)


@dataclass
class StructuralModel:
    """The set of source tables, each an ordered list of positional rows."""
    points: list = field(default_factory=list)
    connectivity: list = field(default_factory=list)
    surfaces: list = field(default_factory=list)
    materials: list = field(default_factory=list)
    sections: list = field(default_factory=list)
    surface_properties: list = field(default_factory=list)
    loads: list = field(default_factory=list)

    def tables(self) -> Dict[str, list]:
        return {name: getattr(self, name) for name in TABLE_NAMES}

    @classmethod
    def from_frames(cls, frames: Mapping[str, pd.DataFrame]) -> 'StructuralModel':
        """Build a model from DataFrames keyed by table name (missing tables are empty)."""
        unknown = set(frames) - set(TABLE_NAMES)
        if unknown:
            raise ValueError(f"Unknown tables: {sorted(unknown)}")
        model = cls()
        for name, frame in frames.items():
            setattr(model, name, frame_to_rows(name, frame))
        return model

    def to_frames(self) -> Dict[str, pd.DataFrame]:
        return {name: rows_to_frame(name, rows) for name, rows in self.tables().items()}


def _clean(value):
    if isinstance(value, (float, np.floating)) and np.isnan(value):
        return None
    if isinstance(value, np.generic):
        return value.item()
    return value


def frame_to_rows(name: str, frame: pd.DataFrame) -> list:
    """Convert one DataFrame back into positional rows."""
    if name not in TABLE_COLUMNS:
        raise ValueError(f"Unknown table: {name!r}")

    if name == 'surfaces':
        point_columns = [c for c in frame.columns if c != 'property']
        rows = []
        for _, record in frame.iterrows():
            row = [_clean(record[c]) for c in point_columns]
            row = [v for v in row if v is not None]
            if 'property' in frame.columns and _clean(record['property']) is not None:
                row.append({'property': _clean(record['property'])})
            rows.append(row)
        return rows

    rows = []
    for record in frame.itertuples(index=False):
        row = [_clean(v) for v in record]
        # Drop trailing empty cells so optional columns stay optional
        while row and row[-1] is None:
            row.pop()
        rows.append(row)
    return rows


def rows_to_frame(name: str, rows: list) -> pd.DataFrame:
    """Convert positional rows into a DataFrame with named columns."""
    if name not in TABLE_COLUMNS:
        raise ValueError(f"Unknown table: {name!r}")

    if name == 'surfaces':
        polygons = [SurfacePolygon.from_row(row) for row in rows]
        width = max((len(p.point_ids) for p in polygons), default=0)
        records = []
        for polygon in polygons:
            record = {f'p{i + 1}': pid for i, pid in enumerate(polygon.point_ids)}
            record['property'] = polygon.property_id
            records.append(record)
        columns = [f'p{i + 1}' for i in range(width)] + ['property']
        return pd.DataFrame.from_records(records, columns=columns)

    columns = TABLE_COLUMNS[name]
    padded = [list(row)[:len(columns)] + [None] * (len(columns) - len(row)) for row in rows]
    return pd.DataFrame(padded, columns=columns)


# =============================================================================
# Parsing
# =============================================================================

def parse_points(rows: list) -> Dict[int, StructuralPoint]:
    """Points keyed by 1-based id. Rows without three numeric coordinates are skipped."""
    points = {}
    for index, row in enumerate(rows):
        try:
            point = StructuralPoint.from_row(row, index + 1)
        except ValueError as exc:
            logger.debug("Skipping point row %d: %s", index, exc)
            continue
        points[point.id] = point
    return points


def parse_connectivity(rows: list) -> List[MemberConnectivity]:
    return [MemberConnectivity.from_row(row) for row in rows]


def parse_surfaces(rows: list) -> List[SurfacePolygon]:
    return [SurfacePolygon.from_row(row) for row in rows]


def parse_loads(rows: list) -> List[PointLoad]:
    return [PointLoad.from_row(row) for row in rows]


def _parse_keyed(rows: list, row_type) -> Dict[int, object]:
    # Later rows with the same id replace earlier ones
    table = {}
    for index, row in enumerate(rows):
        try:
            item = row_type.from_row(row)
        except ValueError as exc:
            logger.debug("Skipping %s row %d: %s", row_type.__name__, index, exc)
            continue
        table[item.id] = item
    return table


def parse_materials(rows: list) -> Dict[int, MaterialProperty]:
    return _parse_keyed(rows, MaterialProperty)


def parse_sections(rows: list) -> Dict[int, SectionProperty]:
    return _parse_keyed(rows, SectionProperty)


def parse_surface_properties(rows: list) -> Dict[int, SurfaceProperty]:
    return _parse_keyed(rows, SurfaceProperty)


# =============================================================================
# Result export
# =============================================================================

def results_to_frames(
    mesh: Mesh,
    deformations: Optional[Dict[int, tuple]] = None,
    analysis=None,
) -> Dict[str, pd.DataFrame]:
    """
    Tabulate a mesh and its solver results.

    Returns:
    --------
    dict with
        'nodes': one row per FEM node (coordinates, structural point id,
                 displacements and reactions where available)
        'elements': one row per element (kind, node list, end forces or
                    membrane stresses where available)
    """
    node_to_point = {node: pid for pid, node in mesh.point_to_node.items()}
    deformations = deformations or {}
    reactions = getattr(analysis, 'reactions', {}) if analysis is not None else {}

    node_records = []
    for index, (x, y, z) in enumerate(mesh.nodes):
        record = {'node': index, 'x': x, 'y': y, 'z': z, 'point_id': node_to_point.get(index)}
        displacement = deformations.get(index)
        for k, label in enumerate(DOF_LABELS):
            record[label] = displacement[k] if displacement is not None else np.nan
        reaction = reactions.get(index)
        for k, label in enumerate(('Rx', 'Ry', 'Rz', 'RMx', 'RMy', 'RMz')):
            record[label] = reaction[k] if reaction is not None else np.nan
        node_records.append(record)

    element_records = []
    for index, element in enumerate(mesh.elements):
        kind = 'beam' if index < mesh.beam_element_count else 'surface'
        record = {'element': index, 'kind': kind, 'nodes': tuple(element)}
        if analysis is not None and kind == 'beam':
            for attr in ('normals', 'shears_y', 'shears_z', 'torsions', 'bendings_y', 'bendings_z'):
                values = getattr(analysis, attr).get(index)
                record[f'{attr}_start'] = values[0] if values is not None else np.nan
                record[f'{attr}_end'] = values[1] if values is not None else np.nan
        if analysis is not None and kind == 'surface':
            stresses = analysis.membrane_stresses.get(index)
            for k, label in enumerate(('sxx', 'syy', 'sxy')):
                record[label] = stresses[k] if stresses is not None else np.nan
        element_records.append(record)

    return {
        'nodes': pd.DataFrame.from_records(node_records).set_index('node') if node_records
        else pd.DataFrame(columns=['x', 'y', 'z', 'point_id']),
        'elements': pd.DataFrame.from_records(element_records).set_index('element') if element_records
        else pd.DataFrame(columns=['kind', 'nodes']),
    }
