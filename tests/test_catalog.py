import os
import pathlib

import pytest

from bfsverify.catalog import CORRECTNESS, GENERATORS, STRESS, load_scenario_graph
from bfsverify.config import resolve_graph_path
from bfsverify.oracle import Outcome, TraversalOracle
from bfsverify.stability import StabilityHarness

DATA_DIR = os.environ.get("BFSVERIFY_GRAPH_DATA_DIR", "")


def _needs_file(scenario):
    if not DATA_DIR:
        pytest.skip("BFSVERIFY_GRAPH_DATA_DIR not set")
    if not pathlib.Path(resolve_graph_path(scenario.graph, DATA_DIR)).exists():
        pytest.skip(f"{scenario.graph} not present under {DATA_DIR}")


@pytest.mark.parametrize("ref, n", [
    ("synthetic:cycle:10", 10),
    ("synthetic:path:7", 7),
    ("synthetic:star:5", 5),
    ("synthetic:grid:3x4", 12),
    ("synthetic:islands:6", 12),
    ("synthetic:random:50x2x1", 50),
])
def test_generators(ref, n):
    assert load_scenario_graph(ref).n == n


def test_unknown_generator():
    with pytest.raises(ValueError):
        load_scenario_graph("synthetic:torus:5")
    assert set(GENERATORS) == {"cycle", "path", "star", "grid", "islands", "random"}


def test_resolve_graph_path():
    assert resolve_graph_path("graphs/a.bin", "/data") == str(pathlib.Path("/data") / "graphs/a.bin")
    assert resolve_graph_path("dummy", "/data") == "dummy"
    assert resolve_graph_path("synthetic:cycle:4", "/data") == "synthetic:cycle:4"
    assert resolve_graph_path("graphs/a.bin").startswith("/mnt/graph_test_data")


@pytest.mark.parametrize("scenario", CORRECTNESS, ids=lambda s: s.scenario_id)
def test_correctness_catalog(make_ctx, scenario):
    _needs_file(scenario)
    ctx = make_ctx(graph_data_prefix=DATA_DIR)
    report = TraversalOracle(ctx).run(scenario)
    assert report.outcome in (Outcome.PASSED, Outcome.WAIVED)


@pytest.mark.parametrize("scenario", STRESS, ids=lambda s: s.scenario_id)
def test_stress_catalog(make_ctx, scenario):
    _needs_file(scenario)
    ctx = make_ctx(graph_data_prefix=DATA_DIR, stress_multiplier=1)
    assert StabilityHarness(ctx).run(scenario).outcome == Outcome.PASSED
