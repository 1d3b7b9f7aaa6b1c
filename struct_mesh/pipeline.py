# struct_mesh/pipeline.py
"""
PIPELINE: Tables -> Mesh -> FEM Inputs -> Solver -> Published Results
=====================================================================

Wires the stages into one TaskGraph:

    sources   points, connectivity, surfaces, materials, sections,
              surface_properties, loads, division

    parsed_*          typed rows per table
    mesh              build_mesh(points, connectivity, surfaces, division)
    node_inputs       supports + loads keyed by node
    element_inputs    material/section/thickness maps keyed by element
    deform            solver: displacements (+ reactions)
    analysis          solver: element forces/stresses, reactions

Every table edit re-runs only the stages downstream of that table, in this
order, and subscribers of a stage are called with its fresh value. Any
exception raised by the solver callables reaches the caller as a
SolverError. A stage that failed publishes nothing (deformations are
empty, analysis is None) until a later pass succeeds, so results never
refer to an older mesh.

USAGE:
------
    pipe = StructuralPipeline(StructuralModel(
        points=[[0, 0, 0, 0, 0, 0, 0, 0, 0], [3, 0, 0]],
        connectivity=[[1, 2, 1, 1]],
        materials=[[1, 210e9, 81e9, 0.3]],
        sections=[[1, 0.01, 8e-6, 8e-6, 1.6e-5]],
        loads=[[2, 0, 0, -1000, 0, 0, 0]],
    ))
    pipe.deformations[pipe.mesh.point_to_node[2]]
    pipe.set_table('loads', [[2, 0, 0, -2000, 0, 0, 0]])   # re-solves
"""

import functools
import logging
from typing import Any, Callable, Dict, Mapping, Optional

import pandas as pd

from .analysis import analyze as default_analyze
from .analysis import deform as default_deform
from .config import CONFIG, PipelineConfig
from .inputs import assemble_element_inputs, assemble_node_inputs
from .kernel.solve import SolverError
from .mesh import build_mesh, make_mesher
from .scheduler import TaskGraph
from .tables import (
    TABLE_NAMES,
    StructuralModel,
    parse_connectivity,
    parse_loads,
    parse_materials,
    parse_points,
    parse_sections,
    parse_surface_properties,
    parse_surfaces,
    results_to_frames,
)

logger = logging.getLogger(__name__)

_PARSERS = {
    'points': parse_points,
    'connectivity': parse_connectivity,
    'surfaces': parse_surfaces,
    'materials': parse_materials,
    'sections': parse_sections,
    'surface_properties': parse_surface_properties,
    'loads': parse_loads,
}

PUBLISHED = ('mesh', 'node_inputs', 'element_inputs', 'deform', 'analysis')


def _check_division(division) -> int:
    if isinstance(division, bool) or not isinstance(division, int) or division < 1:
        raise ValueError(f"division must be an integer >= 1, got {division!r}")
    return division


class StructuralPipeline:
    """
    Reactive table-to-solver pipeline.

    Parameters:
    -----------
    model : StructuralModel, optional
        Initial tables (empty by default)
    config : PipelineConfig, optional
        Defaults to the module-level CONFIG
    mesher : callable, optional
        Polygon mesher; defaults to the built-in ear-clipping mesher with
        config.surface_refinement
    deform, analyze : callable, optional
        Solver callables; default to struct_mesh.analysis
    autorun : bool
        Run the first pass immediately
    """

    def __init__(
        self,
        model: Optional[StructuralModel] = None,
        config: Optional[PipelineConfig] = None,
        mesher: Optional[Callable] = None,
        deform: Optional[Callable] = None,
        analyze: Optional[Callable] = None,
        autorun: bool = True,
    ):
        self.config = config or CONFIG
        model = model or StructuralModel()
        self._mesher = mesher or make_mesher(self.config.surface_refinement)
        self._deform = deform or functools.partial(default_deform, cond_limit=self.config.cond_limit)
        self._analyze = analyze or default_analyze

        graph = TaskGraph()
        for name, rows in model.tables().items():
            graph.add_source(name, list(rows))
            graph.add_task(f'parsed_{name}', _PARSERS[name], [name])
        graph.add_source('division', _check_division(self.config.division))

        graph.add_task('mesh', self._build_mesh,
                       ['parsed_points', 'parsed_connectivity', 'parsed_surfaces', 'division'])
        graph.add_task('node_inputs', lambda points, loads, mesh: assemble_node_inputs(points, loads, mesh),
                       ['parsed_points', 'parsed_loads', 'mesh'])
        graph.add_task('element_inputs', assemble_element_inputs,
                       ['mesh', 'parsed_connectivity', 'parsed_surfaces', 'parsed_materials',
                        'parsed_sections', 'parsed_surface_properties'])
        if self.config.run_analysis:
            graph.add_task('deform', self._run_deform, ['mesh', 'node_inputs', 'element_inputs'])
            graph.add_task('analysis', self._run_analyze, ['mesh', 'element_inputs', 'deform'])

        self.graph = graph
        if autorun:
            self.run()

    @classmethod
    def from_frames(cls, frames: Mapping[str, pd.DataFrame], **kwargs) -> 'StructuralPipeline':
        return cls(StructuralModel.from_frames(frames), **kwargs)

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def _build_mesh(self, points, connectivity, polygons, division):
        return build_mesh(points, connectivity, polygons, division,
                          mesher=self._mesher, stitch=self.config.stitch_surfaces)

    def _call_solver(self, stage: str, fn: Callable, *args):
        try:
            return fn(*args)
        except SolverError as exc:
            logger.error("%s failed: %s", stage, exc)
            raise
        except Exception as exc:
            logger.error("%s failed: %s", stage, exc)
            raise SolverError(f"{stage} failed: {exc}") from exc

    def _run_deform(self, mesh, node_inputs, element_inputs):
        return self._call_solver('deform', self._deform,
                                 mesh.nodes, mesh.elements, node_inputs, element_inputs)

    def _run_analyze(self, mesh, element_inputs, deform_outputs):
        return self._call_solver('analyze', self._analyze,
                                 mesh.nodes, mesh.elements, element_inputs, deform_outputs)

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def run(self) -> None:
        """Bring every stage up to date (retries a stage that failed earlier)."""
        self.graph.run()

    def set_table(self, name: str, rows) -> None:
        """Replace one table; downstream stages recompute before this returns."""
        if name not in TABLE_NAMES:
            raise ValueError(f"Unknown table {name!r}; expected one of {TABLE_NAMES}")
        self.graph.set(name, list(rows))

    def set_tables(self, **tables) -> None:
        """Replace several tables in a single pass."""
        unknown = set(tables) - set(TABLE_NAMES)
        if unknown:
            raise ValueError(f"Unknown tables: {sorted(unknown)}")
        self.graph.set_many({name: list(rows) for name, rows in tables.items()})

    def set_division(self, division: int) -> None:
        self.graph.set('division', _check_division(division))

    def subscribe(self, stage: str, callback: Callable[[Any], None]) -> None:
        """Call callback(value) whenever a published stage recomputes."""
        if stage not in PUBLISHED and stage not in TABLE_NAMES:
            raise ValueError(f"Cannot subscribe to {stage!r}")
        self.graph.subscribe(stage, callback)

    # ------------------------------------------------------------------
    # Published values
    # ------------------------------------------------------------------

    def table(self, name: str) -> list:
        return list(self.graph.get(name))

    @property
    def model(self) -> StructuralModel:
        return StructuralModel(**{name: self.table(name) for name in TABLE_NAMES})

    @property
    def mesh(self):
        return self.graph.get('mesh')

    @property
    def nodes(self):
        mesh = self.mesh
        return list(mesh.nodes) if mesh is not None else []

    @property
    def elements(self):
        mesh = self.mesh
        return list(mesh.elements) if mesh is not None else []

    @property
    def node_inputs(self):
        return self.graph.get('node_inputs')

    @property
    def element_inputs(self):
        return self.graph.get('element_inputs')

    @property
    def deform_outputs(self):
        if not self.config.run_analysis:
            return None
        return self.graph.get('deform')

    @property
    def deformations(self) -> Dict[int, tuple]:
        outputs = self.deform_outputs
        if outputs is None:
            return {}
        # An injected solver may return the bare node -> displacement map
        return dict(getattr(outputs, 'deformations', outputs))

    @property
    def analysis(self):
        if not self.config.run_analysis:
            return None
        return self.graph.get('analysis')

    def results_frames(self) -> Dict[str, pd.DataFrame]:
        return results_to_frames(self.mesh, self.deformations, self.analysis)
