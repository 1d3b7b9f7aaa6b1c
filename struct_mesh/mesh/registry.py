# struct_mesh/mesh/registry.py
"""
POINT REGISTRY: Structural Point Id -> FEM Node Index
=====================================================

PURPOSE:
--------
Three index spaces meet in the mesh stage:

    structural point id   1-based, stable, what the user types in tables
    table row             0-based, point id - 1
    FEM node index        0-based, continuous, assigned only to points in use

The registry is the bridge between the first and the last. It is a partial
injection: every mapped point owns exactly one node, and no node is owned
by two points.

NODE-SHARING PRECEDENCE:
------------------------
A point can be a member end AND a polygon vertex. Beam meshing and surface
meshing both produce a node for it, but only one may be recorded. Each
claim carries an Owner, and the precedence is explicit:

    Owner.BEAM (rank 0)  >  Owner.SURFACE (rank 1)

A claim replaces an existing mapping only if its owner ranks strictly
higher than the existing owner. Equal rank means first writer wins. The
result therefore does not depend on which mesher happens to run first.
"""

from enum import IntEnum
from typing import Dict, Iterator, List, Optional, Tuple

from ..model import Node


class Owner(IntEnum):
    """Who created a point's node. Lower value = higher precedence."""
    BEAM = 0
    SURFACE = 1


class PointRegistry:
    """
    Point id -> node index map with explicit claim precedence.

    Examples:
    ---------
    >>> nodes = []
    >>> reg = PointRegistry()
    >>> reg.register(1, (0.0, 0.0, 0.0), nodes)
    0
    >>> reg.register(1, (0.0, 0.0, 0.0), nodes)  # already registered
    0
    >>> reg.claim(1, 7, Owner.SURFACE)  # beam owns point 1
    False
    """

    def __init__(self):
        self._nodes: Dict[int, int] = {}
        self._owners: Dict[int, Owner] = {}
        self._points: Dict[int, int] = {}  # node -> point

    def register(self, point_id: int, coords: Node, nodes: List[Node], owner: Owner = Owner.BEAM) -> int:
        """
        Return the node of a point, appending a new node if it has none.

        Parameters:
        -----------
        point_id : int
            Structural point id
        coords : (x, y, z)
            Coordinates used if a new node is created
        nodes : list
            Global node list (appended to in place)
        owner : Owner
            Recorded as the owner of a newly created node
        """
        node = self._nodes.get(point_id)
        if node is not None:
            return node
        node = len(nodes)
        nodes.append(tuple(coords))
        self._nodes[point_id] = node
        self._owners[point_id] = owner
        self._points[node] = point_id
        return node

    def claim(self, point_id: int, node: int, owner: Owner) -> bool:
        """
        Map point_id to an already existing node, subject to precedence.

        Returns True if the mapping was recorded.
        """
        current = self._owners.get(point_id)
        if current is not None and owner >= current:
            return False
        holder = self._points.get(node)
        if holder is not None and holder != point_id:
            raise ValueError(f"Node {node} is already owned by another point")
        previous = self._nodes.get(point_id)
        if previous is not None:
            del self._points[previous]
        self._nodes[point_id] = node
        self._owners[point_id] = owner
        self._points[node] = point_id
        return True

    def node_of(self, point_id: int) -> Optional[int]:
        return self._nodes.get(point_id)

    def owner_of(self, point_id: int) -> Optional[Owner]:
        return self._owners.get(point_id)

    def __contains__(self, point_id: int) -> bool:
        return point_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def items(self) -> Iterator[Tuple[int, int]]:
        return iter(self._nodes.items())

    def as_dict(self) -> Dict[int, int]:
        return dict(self._nodes)
