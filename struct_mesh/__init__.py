# struct_mesh - Structural tables to finite-element mesh
"""
STRUCT_MESH: Structural Model -> FEM Mesh Assembly
==================================================

This package provides:
- Positional structural tables (points, members, surfaces, properties, loads)
- Beam subdivision and surface meshing into one continuously indexed mesh
- Support/load maps per node and material/section maps per element
- A reactive task graph that recomputes stages when a table changes
- A default linear solver (3D frames + membranes) behind a swappable contract

ARCHITECTURE:
-------------
    model.py        typed table rows, Mesh container
    tables.py       StructuralModel store, parsing, DataFrame exchange
    mesh/           point registry, beam mesher, surface adapter, polygon mesher
    inputs.py       NodeInputs / ElementInputs assembly
    scheduler.py    TaskGraph (memoized DAG, queued edits)
    pipeline.py     StructuralPipeline wiring all stages
    kernel/         DOF indexing, global assembly, linear solve
    analysis/       default deform / analyze implementations
    config.py       PipelineConfig, CONFIG
"""

from .config import CONFIG, PipelineConfig
from .inputs import ElementInputs, NodeInputs
from .kernel import MechanismError, MissingPropertyError, SolverError
from .mesh import build_mesh
from .model import Mesh
from .pipeline import StructuralPipeline
from .scheduler import GraphError, TaskGraph
from .tables import StructuralModel

__version__ = "0.1.0"

__all__ = [
    'CONFIG', 'PipelineConfig',
    'ElementInputs', 'NodeInputs',
    'MechanismError', 'MissingPropertyError', 'SolverError',
    'build_mesh', 'Mesh',
    'StructuralPipeline',
    'GraphError', 'TaskGraph',
    'StructuralModel',
]
