# struct_mesh/kernel/dof.py
"""
DOF MANAGER: Node/DOF to Global Equation Indexing
=================================================

PURPOSE:
--------
Maps (node index, local dof) to a row/column of the global system. The
FEM nodes produced by the mesh stage carry six DOFs each:

    local dof   0   1   2   3   4   5
    meaning     ux  uy  uz  rx  ry  rz

so node n occupies rows 6n .. 6n+5. Membrane-only nodes still get all
six; the solver restrains the ones nothing stiffens.

USAGE:
------
    dof = DOFManager()              # 6 DOF per node
    dof.idx(node_id=2, local_dof=1) # -> 13
    dof.element_dof_map([2, 5])     # -> [12..17, 30..35]
    dof.fixed_dofs({0: (True,)*3 + (False,)*3})  # -> [0, 1, 2]
"""

from dataclasses import dataclass
from typing import Dict, List, Sequence


@dataclass
class DOFManager:
    """
    Degree-of-freedom indexing for a mesh with a fixed number of DOFs per node.

    Examples:
    ---------
    >>> dof = DOFManager()
    >>> dof.idx(1, 0)
    6
    >>> dof.ndof(4)
    24
    """
    dof_per_node: int = 6

    def idx(self, node_id: int, local_dof: int) -> int:
        """Global DOF index of a node's local DOF."""
        return self.dof_per_node * node_id + local_dof

    def ndof(self, n_nodes: int) -> int:
        """Size of the global system for n_nodes nodes."""
        return self.dof_per_node * n_nodes

    def node_dofs(self, node_id: int) -> List[int]:
        """
        All global DOF indices of one node.

        >>> DOFManager().node_dofs(2)
        [12, 13, 14, 15, 16, 17]
        """
        base = self.dof_per_node * node_id
        return list(range(base, base + self.dof_per_node))

    def element_dof_map(self, node_ids: Sequence[int]) -> List[int]:
        """
        Flattened global DOF indices of an element's nodes, in node order.

        Used to scatter element matrices into the global matrix and to
        gather element displacements back out.
        """
        result = []
        for node_id in node_ids:
            result.extend(self.node_dofs(node_id))
        return result

    def fixed_dofs(self, supports: Dict[int, Sequence[bool]]) -> List[int]:
        """Global indices of every DOF flagged True in a support map."""
        fixed = []
        for node_id in sorted(supports):
            for local_dof, is_fixed in enumerate(supports[node_id]):
                if is_fixed:
                    fixed.append(self.idx(node_id, local_dof))
        return fixed


DOF_3D_FRAME = DOFManager(dof_per_node=6)   # ux, uy, uz, rx, ry, rz
