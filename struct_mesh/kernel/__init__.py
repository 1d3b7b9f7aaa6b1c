# struct_mesh/kernel - Element-agnostic solver core
"""
KERNEL: DOF INDEXING, ASSEMBLY, LINEAR SOLVE
============================================

Assembly and solving don't care what kind of element produced a stiffness
matrix. They need:
- a map (node, local_dof) -> global index   (dof.py)
- element matrices with their DOF maps      (assemble.py)
- fixed DOFs and a load vector              (solve.py)
"""

from .dof import DOFManager
from .solve import MechanismError, MissingPropertyError, SolverError, solve_linear

__all__ = ['DOFManager', 'solve_linear', 'SolverError', 'MechanismError', 'MissingPropertyError']
