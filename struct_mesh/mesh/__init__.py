# struct_mesh/mesh - Table-to-FEM mesh generation
"""
MESH: From Structural Tables to FEM Nodes and Elements
======================================================

    registry.py   PointRegistry (point id -> node index, claim precedence)
    beams.py      member subdivision into 2-node elements
    surfaces.py   polygon mesher adapter (offsetting, vertex claims)
    polygon.py    default polygon mesher (ear clipping + refinement)
    builder.py    build_mesh(): members first, then surfaces

USAGE:
------
    from struct_mesh.mesh import build_mesh

    mesh = build_mesh(points, connectivity, polygons, division=5)
    mesh.nodes, mesh.elements, mesh.point_to_node
"""

from .builder import build_mesh
from .polygon import make_mesher, mesh_polygon
from .registry import Owner, PointRegistry

__all__ = ['build_mesh', 'mesh_polygon', 'make_mesher', 'Owner', 'PointRegistry']
