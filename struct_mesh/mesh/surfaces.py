# struct_mesh/mesh/surfaces.py
"""
SURFACE MESHER ADAPTER
======================

Hands each polygon to a polygon mesher and splices the result into the
global arrays.

For every polygon:
1. Keep only point ids that resolve to a structural point (others are
   skipped silently). The trailing surface-property id was already split
   off when the row was parsed.
2. Fewer than 3 resolved points: skip the polygon (no nodes, no elements).
3. Call mesher(points) -> (local_nodes, local_elements). The first
   len(points) local nodes are the polygon's own vertices, in order.
4. Offset every local index by the current global node count, append the
   nodes and elements.
5. Claim each vertex for its new node with Owner.SURFACE. A vertex that a
   member end (or an earlier polygon) already owns keeps its node.
6. Optionally (stitch=True) point the new elements at those owned nodes.
"""

import logging
from typing import Callable, Dict, List, Sequence, Tuple

from ..model import Element, Node, StructuralPoint, SurfacePolygon
from .registry import Owner, PointRegistry

logger = logging.getLogger(__name__)

PolygonMesher = Callable[[Sequence[Node]], Tuple[Sequence[Node], Sequence[Sequence[int]]]]


def mesh_surfaces(
    points: Dict[int, StructuralPoint],
    polygons: List[SurfacePolygon],
    mesher: PolygonMesher,
    nodes: List[Node],
    elements: List[Element],
    registry: PointRegistry,
    stitch: bool = False,
) -> List[Tuple[int, int, int]]:
    """
    Mesh every polygon and append the results.

    With stitch=True, element references to a vertex whose point already
    owns a node are redirected to that node, so the surface shares nodes
    with the members around it. The vertex's own appended node is then
    left unused.

    Returns:
    --------
    surface_spans : list of (row, first_element, element_count)
        One entry per polygon that produced elements
    """
    spans = []
    for row, polygon in enumerate(polygons):
        vertices = [points[pid] for pid in polygon.point_ids if pid in points]
        if len(vertices) < 3:
            logger.debug("Skipping surface row %d: %d resolvable points", row, len(vertices))
            continue

        local_nodes, local_elements = mesher([v.coords for v in vertices])
        if not local_elements:
            logger.debug("Skipping surface row %d: mesher produced no elements", row)
            continue

        offset = len(nodes)
        first_element = len(elements)
        nodes.extend(tuple(float(c) for c in n) for n in local_nodes)

        remap = {}
        for local_index, vertex in enumerate(vertices):
            if not registry.claim(vertex.id, offset + local_index, Owner.SURFACE) and stitch:
                remap[offset + local_index] = registry.node_of(vertex.id)

        for e in local_elements:
            global_element = tuple(offset + int(i) for i in e)
            if remap:
                global_element = tuple(remap.get(i, i) for i in global_element)
            elements.append(global_element)

        spans.append((row, first_element, len(local_elements)))

    return spans
