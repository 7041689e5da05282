import pytest

from bfsverify.catalog import SANITY_CYCLE, SYNTHETIC, random_graph
from bfsverify.errors import CorrectnessMismatch
from bfsverify.graphio import write_graph_file
from bfsverify.loopback import LoopbackBinding
from bfsverify.model import Scenario
from bfsverify.runner import reports_frame, run_suite, summarize
from bfsverify.service import Status, TopologyKind


class OffByOne(LoopbackBinding):
    def traversal(self, handle, graph, source, config):
        status = super().traversal(handle, graph, source, config)
        if status == Status.SUCCESS:
            graph.vertex_data[config.distance_slot][-1] += 1
        return status


def test_sanity_suite(ctx):
    reports = run_suite(ctx, "sanity")
    assert summarize(reports) == {"passed": 1, "waived": 0, "failed": 0, "total": 1}


def test_synthetic_suite(ctx):
    reports = run_suite(ctx, "synthetic")
    assert summarize(reports)["passed"] == len(SYNTHETIC)


def test_corner_suite(ctx):
    reports = run_suite(ctx, "corner")
    assert len(reports) == 5
    assert all(r.outcome.value == "passed" for r in reports)


def test_stress_suite(make_ctx):
    ctx = make_ctx(stress_multiplier=1, perf_repeats=2)
    reports = run_suite(ctx, "synthetic-stress")
    assert summarize(reports)["passed"] == 2
    assert all(r.repeats == 2 for r in reports)


def test_failures_are_recorded(make_ctx, capsys):
    ctx = make_ctx(OffByOne())
    reports = run_suite(ctx, "synthetic", [SANITY_CYCLE, Scenario("synthetic:path:10", 0)])
    assert [r.outcome.value for r in reports] == ["failed", "failed"]
    assert "Wrong distance from source" in reports[0].message
    assert "[fail] synthetic.synthetic-cycle-1024_0" in capsys.readouterr().out


def test_fail_fast_propagates(make_ctx):
    ctx = make_ctx(OffByOne())
    with pytest.raises(CorrectnessMismatch):
        run_suite(ctx, "synthetic", [SANITY_CYCLE], fail_fast=True)


def test_missing_graph_file_fails_scenario(make_ctx, tmp_path):
    ctx = make_ctx(graph_data_prefix=str(tmp_path))
    reports = run_suite(ctx, "correctness", [Scenario("graphs/none.bin", 0)])
    assert reports[0].outcome.value == "failed"
    assert "cannot read input graph file" in reports[0].message


def test_file_backed_scenarios(make_ctx, tmp_path):
    write_graph_file(tmp_path / "graphs" / "small" / "small.bin", random_graph(500, 3, seed=2))
    ctx = make_ctx(graph_data_prefix=str(tmp_path))
    scenarios = [
        Scenario("graphs/small/small.bin", 0),
        Scenario("graphs/small/small.bin", 3, use_mask=True),
        Scenario("graphs/small/small.bin", 3, undirected=True),
    ]
    reports = run_suite(ctx, "correctness", scenarios)
    assert summarize(reports)["passed"] == 3


def test_reports_frame(ctx):
    df = reports_frame(run_suite(ctx, "sanity") + run_suite(ctx, "corner"))
    assert len(df) == 6
    assert set(df["outcome"]) == {"passed"}
    assert {"suite", "scenario_id", "perf_ms", "free_mid"} <= set(df.columns)


def test_unknown_suite(ctx):
    with pytest.raises(ValueError):
        run_suite(ctx, "nope")


def test_graphs_loaded_once_per_context(ctx):
    assert ctx.load_graph("synthetic:grid:4x4") is ctx.load_graph("synthetic:grid:4x4")


class RejectsCscStructure(LoopbackBinding):
    def set_graph_structure(self, handle, graph, topology, kind):
        if kind == TopologyKind.CSC_32:
            return Status.GRAPH_TYPE_NOT_SUPPORTED
        return super().set_graph_structure(handle, graph, topology, kind)


class VertexAllocationFails(LoopbackBinding):
    def allocate_vertex_data(self, handle, graph, types):
        return Status.ALLOC_FAILED


def test_corner_suite_accepts_structure_time_rejection(make_ctx):
    reports = run_suite(make_ctx(RejectsCscStructure()), "corner")
    assert summarize(reports)["passed"] == 5


def test_corner_setup_failures_become_rows(make_ctx, capsys):
    reports = run_suite(make_ctx(VertexAllocationFails()), "corner")
    assert summarize(reports) == {"passed": 2, "waived": 0, "failed": 3, "total": 5}
    failed = [r for r in reports if r.outcome.value == "failed"]
    assert all("allocate vertex data returned ALLOC_FAILED" in r.message for r in failed)
    assert "[fail] corner.null_service_handle" in capsys.readouterr().out
