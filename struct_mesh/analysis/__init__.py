# struct_mesh/analysis - Default solver for the assembled FEM model
"""
ANALYSIS: Default Deformation Solver and Force Analyzer
=======================================================

    elements.py   3D frame (12×12) and membrane triangle (18×18) stiffness
    deform.py     deform(nodes, elements, node_inputs, element_inputs)
    analyze.py    analyze(nodes, elements, element_inputs, deform_outputs)

Both functions follow the solver call contract, so a different solver can
be injected into the pipeline in their place.
"""

from .analyze import AnalysisOutputs, analyze
from .deform import DeformOutputs, deform

__all__ = ['deform', 'analyze', 'DeformOutputs', 'AnalysisOutputs']
