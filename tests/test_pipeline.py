# File: tests/test_pipeline.py
"""
End-to-end tests of StructuralPipeline: tables in, mesh and solver
results out, with edits re-running only what they affect.
"""

import numpy as np
import pandas as pd
import pytest

from struct_mesh import (
    MissingPropertyError,
    PipelineConfig,
    SolverError,
    StructuralModel,
    StructuralPipeline,
)
from struct_mesh.mesh import build_mesh
from struct_mesh.tables import parse_connectivity, parse_points, parse_surfaces

MATERIALS = [[1, 210e9, 81e9, 0.3]]
SECTIONS = [[1, 0.01, 8e-6, 8e-6, 1.6e-5]]


def cantilever_model(load=-1000.0):
    return StructuralModel(
        points=[[0, 0, 0, 0, 0, 0, 0, 0, 0], [3, 0, 0]],
        connectivity=[[1, 2, 1, 1]],
        materials=MATERIALS,
        sections=SECTIONS,
        loads=[[2, 0, 0, load, 0, 0, 0]],
    )


def mesh_only(**kwargs):
    return PipelineConfig(run_analysis=False, **kwargs)


def test_mesh_published_without_solver():
    pipe = StructuralPipeline(
        StructuralModel(points=[[0, 0, 0], [10, 0, 0]], connectivity=[[1, 2]]),
        config=mesh_only(division=5),
    )
    np.testing.assert_allclose(pipe.nodes, [[x, 0, 0] for x in (0, 2, 4, 6, 8, 10)], atol=1e-12)
    assert pipe.elements == [(0, 1), (1, 2), (2, 3), (3, 4), (4, 5)]
    assert pipe.deformations == {}
    assert pipe.analysis is None
    print("✓ Mesh stage runs without the solver")


def test_rerun_without_edits_keeps_results():
    pipe = StructuralPipeline(cantilever_model(), config=mesh_only())
    mesh = pipe.mesh
    inputs = pipe.element_inputs
    pipe.run()
    assert pipe.mesh is mesh
    assert pipe.element_inputs is inputs


def test_table_edit_recomputes_downstream_only():
    pipe = StructuralPipeline(cantilever_model(), config=mesh_only(division=2))
    meshes, node_inputs = [], []
    pipe.subscribe('mesh', meshes.append)
    pipe.subscribe('node_inputs', node_inputs.append)

    pipe.set_table('loads', [[2, 0, 0, -50]])
    assert meshes == []
    assert node_inputs[-1].loads == {2: (0.0, 0.0, -50.0, 0.0, 0.0, 0.0)}

    pipe.set_table('points', [[0, 0, 0, 0, 0, 0, 0, 0, 0], [4, 0, 0]])
    assert len(meshes) == 1
    assert pipe.nodes[-1] == (4.0, 0.0, 0.0)


def test_set_division_remeshes():
    pipe = StructuralPipeline(cantilever_model(), config=mesh_only(division=1))
    assert len(pipe.elements) == 1
    pipe.set_division(4)
    assert len(pipe.elements) == 4
    assert set(pipe.element_inputs.areas) == {0, 1, 2, 3}
    with pytest.raises(ValueError):
        pipe.set_division(0)


def test_subscriber_edit_lands_in_next_pass():
    pipe = StructuralPipeline(cantilever_model(), config=mesh_only(division=1))
    passes_before = pipe.graph.passes

    def on_mesh(mesh):
        if len(mesh.nodes) == 2:
            pipe.set_table('loads', [[2, 1, 0, 0]])

    pipe.subscribe('mesh', on_mesh)
    pipe.set_table('points', [[0, 0, 0, 0, 0, 0, 0, 0, 0], [5, 0, 0]])

    assert pipe.graph.passes == passes_before + 2
    assert pipe.node_inputs.loads == {1: (1.0, 0.0, 0.0, 0.0, 0.0, 0.0)}


def test_set_tables_in_one_pass():
    pipe = StructuralPipeline(config=mesh_only(division=2))
    passes = pipe.graph.passes
    pipe.set_tables(points=[[0, 0, 0], [4, 0, 0]], connectivity=[[1, 2]])
    assert pipe.graph.passes == passes + 1
    assert len(pipe.elements) == 2
    assert pipe.model.connectivity == [[1, 2]]
    with pytest.raises(ValueError):
        pipe.set_tables(beams=[])


def test_unknown_table_and_stage_rejected():
    pipe = StructuralPipeline(config=mesh_only())
    with pytest.raises(ValueError):
        pipe.set_table('beams', [])
    with pytest.raises(ValueError):
        pipe.subscribe('parsed_points', print)


def test_empty_model():
    pipe = StructuralPipeline()
    assert pipe.nodes == []
    assert pipe.deformations == {}


class TestSolverStage:

    def test_cantilever_through_pipeline(self):
        pipe = StructuralPipeline(cantilever_model(), config=PipelineConfig(division=4))
        tip = pipe.mesh.point_to_node[2]
        expected = -1000.0 * 3.0**3 / (3 * 210e9 * 8e-6)

        assert np.isclose(pipe.deformations[tip][2], expected, rtol=1e-6)
        assert np.isclose(pipe.analysis.reactions[0][2], 1000.0, rtol=1e-6)

        pipe.set_table('loads', [[2, 0, 0, -2000.0, 0, 0, 0]])
        assert np.isclose(pipe.deformations[tip][2], 2 * expected, rtol=1e-6)

    def test_missing_material_raises_on_construction(self):
        model = cantilever_model()
        model.materials = []
        with pytest.raises(MissingPropertyError) as excinfo:
            StructuralPipeline(model)
        assert excinfo.value.elements == [0, 1, 2, 3, 4]

    def test_failed_solve_is_retried_after_fix(self):
        model = cantilever_model()
        model.sections = []
        pipe = StructuralPipeline(model, autorun=False)
        with pytest.raises(SolverError):
            pipe.run()
        assert pipe.mesh is not None

        pipe.set_table('sections', SECTIONS)
        assert pipe.deformations

    def test_injected_solver_errors_are_wrapped(self):
        def broken_deform(nodes, elements, node_inputs, element_inputs):
            return 1 / 0

        with pytest.raises(SolverError) as excinfo:
            StructuralPipeline(cantilever_model(), deform=broken_deform)
        assert isinstance(excinfo.value.__cause__, ZeroDivisionError)

    def test_injected_solver_receives_fem_inputs(self):
        calls = []

        def fake_deform(nodes, elements, node_inputs, element_inputs):
            calls.append((len(nodes), len(elements), dict(node_inputs.supports)))
            return {n: (0.0,) * 6 for n in range(len(nodes))}

        def fake_analyze(nodes, elements, element_inputs, deformations):
            return {'count': len(deformations)}

        pipe = StructuralPipeline(
            cantilever_model(), config=PipelineConfig(division=2),
            deform=fake_deform, analyze=fake_analyze,
        )
        assert calls == [(3, 2, {0: (True,) * 6})]
        assert pipe.deformations == {0: (0.0,) * 6, 1: (0.0,) * 6, 2: (0.0,) * 6}
        assert pipe.analysis == {'count': 3}


def test_from_frames_and_results():
    frames = {
        'points': pd.DataFrame(
            [[0, 0, 0, 0, 0, 0, 0, 0, 0], [3, 0, 0, np.nan, np.nan, np.nan, np.nan, np.nan, np.nan]],
            columns=['x', 'y', 'z', 'ux', 'uy', 'uz', 'rx', 'ry', 'rz'],
        ),
        'connectivity': pd.DataFrame([[1, 2, 1, 1]]),
        'materials': pd.DataFrame(MATERIALS),
        'sections': pd.DataFrame(SECTIONS),
        'loads': pd.DataFrame([[2, 0, 0, -1000, 0, 0, 0]]),
    }
    pipe = StructuralPipeline.from_frames(frames, config=PipelineConfig(division=2))

    assert pipe.table('points')[1] == [3, 0, 0]
    results = pipe.results_frames()
    nodes, elements = results['nodes'], results['elements']

    assert list(nodes['point_id'].dropna().astype(int)) == [1, 2]
    assert len(elements) == 2
    assert set(elements['kind']) == {'beam'}
    assert np.isclose(nodes.loc[2, 'uz'], -1000.0 * 27 / (3 * 210e9 * 8e-6), rtol=1e-6)
    assert np.isclose(nodes.loc[0, 'Rz'], 1000.0, rtol=1e-6)
    assert np.isnan(nodes.loc[1, 'Rz'])


@pytest.mark.parametrize("kwargs", [
    {'division': 0},
    {'division': 2.0},
    {'division': True},
    {'surface_refinement': -1},
])
def test_invalid_config_rejected(kwargs):
    with pytest.raises(ValueError):
        PipelineConfig(**kwargs)


def test_stitched_slab_shares_member_nodes():
    model = StructuralModel(
        points=[[0, 0, 0], [1, 0, 0], [1, 1, 0], [0, 1, 0]],
        connectivity=[[1, 2], [3, 4]],
        surfaces=[[1, 2, 3, 4]],
    )
    pipe = StructuralPipeline(model, config=mesh_only(division=1, stitch_surfaces=True))
    slab_nodes = set(pipe.elements[2]) | set(pipe.elements[3])
    assert {0, 1, 2, 3} <= slab_nodes
    assert pipe.mesh.surface_spans == [(0, 2, 2)]


class TestFailedPass:

    def test_failed_solve_publishes_no_results_from_old_mesh(self):
        """
        Remeshing and breaking the solver in one edit must not leave the
        previous displacements attached to the new node numbering.
        """
        pipe = StructuralPipeline(cantilever_model(), config=PipelineConfig(division=4))
        assert len(pipe.deformations) == 5

        with pytest.raises(SolverError):
            pipe.set_tables(
                points=[[0, 0, 0, 0, 0, 0, 0, 0, 0], [3, 0, 0], [6, 0, 0]],
                connectivity=[[1, 2, 1, 1], [2, 3, 1, 1]],
                sections=[],
            )

        assert len(pipe.nodes) == 9
        assert pipe.deform_outputs is None
        assert pipe.deformations == {}
        assert pipe.analysis is None
        nodes = pipe.results_frames()['nodes']
        assert len(nodes) == 9
        assert nodes['uz'].isna().all()

        pipe.set_table('sections', SECTIONS)
        assert sorted(pipe.deformations) == list(range(9))
        assert sorted(pipe.analysis.normals) == list(range(8))

    def test_fix_queued_during_failing_pass_is_solved(self):
        model = cantilever_model()
        model.sections = []
        pipe = StructuralPipeline(model, autorun=False)

        def supply_sections(mesh):
            if not pipe.table('sections'):
                pipe.set_table('sections', SECTIONS)

        pipe.subscribe('mesh', supply_sections)
        pipe.run()

        assert pipe.table('sections') == SECTIONS
        assert not pipe.graph.is_stale('deform')
        assert not pipe.graph.is_stale('analysis')
        tip = pipe.mesh.point_to_node[2]
        assert np.isclose(pipe.deformations[tip][2], -1000.0 * 27 / (3 * 210e9 * 8e-6), rtol=1e-6)


class TestDeterminism:

    MODEL = StructuralModel(
        points=[[0, 0, 0, 0, 0, 0, 0, 0, 0], [4, 0, 0], [4, 3, 0], [0, 3, 0, 0, 0, 0, 0, 0, 0]],
        connectivity=[[1, 2, 1, 1], [2, 3, 1, 1], [3, 4, 1, 1], [99, 1]],
        surfaces=[[1, 2, 3, 4, {'property': 1}]],
        materials=MATERIALS,
        sections=SECTIONS,
        surface_properties=[[1, 0.2, 1]],
        loads=[[2, 0, 0, -500], [3, 0, 0, -500]],
    )

    def test_build_mesh_twice_gives_equal_meshes(self):
        args = (
            parse_points(self.MODEL.points),
            parse_connectivity(self.MODEL.connectivity),
            parse_surfaces(self.MODEL.surfaces),
            3,
        )
        first = build_mesh(*args, stitch=True)
        second = build_mesh(*args, stitch=True)

        assert first is not second
        assert first.nodes == second.nodes
        assert first.elements == second.elements
        assert first.point_to_node == second.point_to_node
        assert first.beam_rows == second.beam_rows
        assert first.surface_spans == second.surface_spans

    def test_forced_recompute_reproduces_every_stage(self):
        pipe = StructuralPipeline(
            self.MODEL, config=PipelineConfig(division=3, stitch_surfaces=True)
        )
        mesh, node_inputs, element_inputs = pipe.mesh, pipe.node_inputs, pipe.element_inputs
        deformations = pipe.deformations

        # Same rows, fresh lists: every stage runs again
        pipe.set_tables(**{name: [list(row) if isinstance(row, list) else row for row in rows]
                           for name, rows in self.MODEL.tables().items()})

        assert pipe.mesh is not mesh
        assert pipe.mesh == mesh
        assert pipe.node_inputs == node_inputs
        assert pipe.element_inputs == element_inputs
        assert pipe.deformations.keys() == deformations.keys()
        for node, values in deformations.items():
            np.testing.assert_allclose(pipe.deformations[node], values, rtol=1e-12, atol=1e-15)
