# struct_mesh/mesh/beams.py
"""
BEAM MESHER: Member Subdivision
===============================

Each declared member (start point -> end point) is split into `division`
two-node elements. The division - 1 intermediate nodes sit at

    p(t) = (1 - t) * start + t * end,   t = k / division,  k = 1 .. division-1

and the elements chain start -> intermediates -> end.

Member ends go through the PointRegistry, so a point shared by several
members becomes one node. The start point is registered before the
intermediates and the end point after them, which keeps node indices
running along the member: a single member from x=0 to x=10 with
division=5 gives nodes at x = 0, 2, 4, 6, 8, 10 and elements
(0,1), (1,2), (2,3), (3,4), (4,5).

Emission order is fixed: valid segment s owns elements
s*division .. s*division + division - 1, so element // division gives back
the segment, and beam_rows[segment] its connectivity row.
"""

import logging
from typing import Dict, List

import numpy as np

from ..model import Element, MemberConnectivity, Node, StructuralPoint
from .registry import Owner, PointRegistry

logger = logging.getLogger(__name__)


def interpolate_segment(start: Node, end: Node, division: int) -> List[Node]:
    """Intermediate nodes of one member (excludes both ends)."""
    p0 = np.asarray(start, dtype=float)
    p1 = np.asarray(end, dtype=float)
    nodes = []
    for k in range(1, division):
        t = k / division
        p = (1 - t) * p0 + t * p1
        nodes.append((float(p[0]), float(p[1]), float(p[2])))
    return nodes


def mesh_members(
    points: Dict[int, StructuralPoint],
    connectivity: List[MemberConnectivity],
    division: int,
    nodes: List[Node],
    elements: List[Element],
    registry: PointRegistry,
) -> List[int]:
    """
    Mesh every valid member into `division` beam elements.

    Parameters:
    -----------
    points : dict
        Structural points keyed by 1-based id
    connectivity : list
        Member rows, in declaration order
    division : int
        Sub-elements per member (>= 1)
    nodes, elements : list
        Global FEM arrays, appended to in place
    registry : PointRegistry
        Receives the member-end points (Owner.BEAM)

    Returns:
    --------
    beam_rows : list of int
        Connectivity row index of each valid segment, in emission order

    A row whose start or end id does not resolve to a point is dropped
    without adding any node or element.
    """
    if isinstance(division, bool) or not isinstance(division, int) or division < 1:
        raise ValueError(f"division must be an integer >= 1, got {division!r}")

    beam_rows = []
    for row, member in enumerate(connectivity):
        start = points.get(member.start_id)
        end = points.get(member.end_id)
        if start is None or end is None:
            logger.debug(
                "Dropping connectivity row %d: unresolved point (%s, %s)",
                row, member.start_id, member.end_id,
            )
            continue

        chain = [registry.register(start.id, start.coords, nodes, Owner.BEAM)]
        for coords in interpolate_segment(start.coords, end.coords, division):
            chain.append(len(nodes))
            nodes.append(coords)
        chain.append(registry.register(end.id, end.coords, nodes, Owner.BEAM))

        for i in range(division):
            elements.append((chain[i], chain[i + 1]))
        beam_rows.append(row)

    return beam_rows
