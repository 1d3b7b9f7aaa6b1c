# struct_mesh/mesh/builder.py
"""
Mesh stage: members first, then surfaces, into one set of FEM arrays.
"""

import logging
from typing import Dict, List, Optional

from ..model import MemberConnectivity, Mesh, StructuralPoint, SurfacePolygon
from .beams import mesh_members
from .polygon import mesh_polygon
from .registry import PointRegistry
from .surfaces import PolygonMesher, mesh_surfaces

logger = logging.getLogger(__name__)


def build_mesh(
    points: Dict[int, StructuralPoint],
    connectivity: List[MemberConnectivity],
    polygons: List[SurfacePolygon],
    division: int,
    mesher: Optional[PolygonMesher] = None,
    stitch: bool = False,
) -> Mesh:
    """
    Generate the complete FEM mesh from parsed tables.

    Beam elements come first (index 0 .. len(beam_rows)*division - 1),
    surface elements after. Every call builds fresh arrays.

    Parameters:
    -----------
    mesher : callable, optional
        Polygon mesher; defaults to polygon.mesh_polygon
    stitch : bool
        Redirect surface elements to nodes already owned by member ends
        (see surfaces.mesh_surfaces)
    """
    if mesher is None:
        mesher = mesh_polygon

    nodes, elements = [], []
    registry = PointRegistry()

    beam_rows = mesh_members(points, connectivity, division, nodes, elements, registry)
    spans = mesh_surfaces(points, polygons, mesher, nodes, elements, registry, stitch)

    logger.debug(
        "Mesh: %d nodes, %d elements (%d members, %d surfaces)",
        len(nodes), len(elements), len(beam_rows), len(spans),
    )
    return Mesh(
        nodes=nodes,
        elements=elements,
        point_to_node=registry.as_dict(),
        beam_rows=beam_rows,
        surface_spans=spans,
        division=division,
    )
