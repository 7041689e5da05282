# bfsverify/oracle.py
from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

import numpy as np

from .context import VerificationContext
from .errors import CorrectnessMismatch, ResourceInsufficient
from .metrics import time_calls
from .model import (INT_SIZE, NO_PREDECESSOR, UNREACHABLE, Graph, Scenario,
                    TraversalResult, parity_mask)
from .reference import ReferenceEngine
from .service import CsrTopology, TopologyKind, TraversalConfig, ValueType, expect_success

DISTANCE_SLOT = 0
PREDECESSOR_SLOT = 1
MASK_SLOT = 0


class Outcome(str, Enum):
    PASSED = "passed"
    WAIVED = "waived"
    FAILED = "failed"


@dataclass
class ScenarioReport:
    scenario_id: str
    suite: str
    outcome: Outcome
    graph: str = ""
    source: int = -1
    use_mask: bool = False
    undirected: bool = False
    n: int = 0
    nnz: int = 0
    reachable: int = 0
    max_distance: int = 0
    perf_ms: Optional[float] = None
    repeats: int = 0
    free_mid: Optional[int] = None
    free_last: Optional[int] = None
    message: str = ""

    @staticmethod
    def for_scenario(scenario: Scenario, suite: str, outcome: Outcome, **kw) -> "ScenarioReport":
        return ScenarioReport(
            scenario_id=scenario.scenario_id, suite=suite, outcome=outcome,
            graph=scenario.graph, source=scenario.source,
            use_mask=scenario.use_mask, undirected=scenario.undirected, **kw,
        )

    def as_row(self) -> Dict[str, Any]:
        row = asdict(self)
        row["outcome"] = self.outcome.value
        return row


# ---------- comparison against the reference ----------
def check_distances(expected: np.ndarray, actual: np.ndarray,
                    graph: str = "", source: Optional[int] = None) -> None:
    """Every vertex, including the UNREACHABLE sentinel, must match exactly."""
    expected = np.asarray(expected)
    actual = np.asarray(actual)
    if expected.shape != actual.shape:
        raise CorrectnessMismatch("distance vector has wrong length", graph=graph,
                                  source=source, expected=expected.shape, actual=actual.shape)
    bad = np.flatnonzero(expected != actual)
    if bad.size:
        i = int(bad[0])
        raise CorrectnessMismatch("Wrong distance from source", graph=graph, source=source,
                                  vertex=i, expected=int(expected[i]), actual=int(actual[i]))


def check_predecessors(expected: np.ndarray, predecessors: np.ndarray,
                       graph: str = "", source: Optional[int] = None) -> None:
    """
    A defined predecessor p of i needs dist[i] == dist[p] + 1; without one,
    i is the source (0) or unreachable. Distances are the reference ones.
    """
    dist = np.asarray(expected, dtype=np.int64)
    pred = np.asarray(predecessors, dtype=np.int64)
    n = dist.size
    if pred.shape != dist.shape:
        raise CorrectnessMismatch("predecessor vector has wrong length", graph=graph,
                                  source=source, expected=dist.shape, actual=pred.shape)

    has = pred != NO_PREDECESSOR
    out_of_range = has & ((pred < 0) | (pred >= n))
    if out_of_range.any():
        i = int(np.argmax(out_of_range))
        raise CorrectnessMismatch("Predecessor is not a vertex", graph=graph, source=source,
                                  vertex=i, expected=f"[0, {n})", actual=int(pred[i]))

    idx = np.flatnonzero(has)
    wrong = idx[dist[idx] != dist[pred[idx]] + 1]
    if wrong.size:
        i = int(wrong[0])
        raise CorrectnessMismatch("Wrong predecessor", graph=graph, source=source, vertex=i,
                                  expected=f"distance {int(dist[i]) - 1} at predecessor",
                                  actual=f"vertex {int(pred[i])} at distance {int(dist[pred[i]])}")

    orphan = np.flatnonzero(~has & (dist != 0) & (dist != UNREACHABLE))
    if orphan.size:
        i = int(orphan[0])
        raise CorrectnessMismatch("Missing predecessor for reached vertex", graph=graph,
                                  source=source, vertex=i, expected="a predecessor",
                                  actual=NO_PREDECESSOR)


def check_expected(result: TraversalResult, distances: np.ndarray,
                   predecessors: Optional[np.ndarray] = None, graph: str = "",
                   source: Optional[int] = None) -> None:
    """Known-answer comparison used by sanity scenarios."""
    check_distances(distances, result.distances, graph, source)
    if predecessors is not None:
        pred = np.asarray(predecessors)
        bad = np.flatnonzero(pred != result.predecessors)
        if bad.size:
            i = int(bad[0])
            raise CorrectnessMismatch("Wrong predecessor", graph=graph, source=source, vertex=i,
                                      expected=int(pred[i]), actual=int(result.predecessors[i]))


# ---------- resource policy ----------
def required_bytes(graph: Graph) -> int:
    """CSR arrays + predecessors + distances + 2n working data."""
    return graph.nbytes_csr() + 4 * graph.n * INT_SIZE


def ensure_capacity(ctx: VerificationContext, graph: Graph) -> None:
    sample = ctx.memory_sample()
    need = required_bytes(graph)
    if not sample.free > need:
        raise ResourceInsufficient("not enough free memory for graph and working buffers",
                                   graph=graph.name, free=sample.free, required=need)


# ---------- call path shared with the stability harness ----------
def prepare_graph(ctx: VerificationContext, handle: Any, graph: Graph,
                  mask: Optional[np.ndarray], undirected: bool) -> TraversalConfig:
    """Upload structure, allocate outputs (and mask), return the request config."""
    b = ctx.binding
    topology = CsrTopology(graph.n, graph.nnz, graph.row_offsets, graph.column_indices)
    expect_success(b.set_graph_structure(ctx.handle, handle, topology, TopologyKind.CSR_32),
                   "set graph structure", graph=graph.name)
    expect_success(b.allocate_vertex_data(ctx.handle, handle, [ValueType.INT32, ValueType.INT32]),
                   "allocate vertex data", graph=graph.name)
    mask_slot = None
    if mask is not None:
        expect_success(b.allocate_edge_data(ctx.handle, handle, [ValueType.INT32]),
                       "allocate edge data", graph=graph.name)
        expect_success(b.set_edge_data(ctx.handle, handle, mask, MASK_SLOT),
                       "set edge mask", graph=graph.name)
        mask_slot = MASK_SLOT
    return TraversalConfig(distance_slot=DISTANCE_SLOT, predecessor_slot=PREDECESSOR_SLOT,
                           mask_slot=mask_slot, undirected=undirected)


def invoke(ctx: VerificationContext, handle: Any, source: int, config: TraversalConfig,
           graph: str = "", iteration: Optional[int] = None) -> None:
    expect_success(ctx.binding.traversal(ctx.handle, handle, source, config),
                   "traversal", graph=graph, source=source, iteration=iteration)


def fetch(ctx: VerificationContext, handle: Any, n: int, config: TraversalConfig,
          graph: str = "", iteration: Optional[int] = None) -> TraversalResult:
    distances = np.empty(n, dtype=np.int32)
    predecessors = np.full(n, NO_PREDECESSOR, dtype=np.int32)
    expect_success(ctx.binding.get_vertex_data(ctx.handle, handle, distances, config.distance_slot),
                   "get distances", graph=graph, iteration=iteration)
    if config.predecessor_slot is not None:
        expect_success(ctx.binding.get_vertex_data(ctx.handle, handle, predecessors,
                                                   config.predecessor_slot),
                       "get predecessors", graph=graph, iteration=iteration)
    return TraversalResult(distances=distances, predecessors=predecessors)


class TraversalOracle:
    """Runs one scenario through the service and checks it against the reference BFS."""

    def __init__(self, ctx: VerificationContext, suite: str = "correctness"):
        self.ctx = ctx
        self.suite = suite

    def run(self, scenario: Scenario) -> ScenarioReport:
        ctx = self.ctx
        test_id = f"{self.suite}.{scenario.scenario_id}"
        graph = ctx.load_graph(scenario.graph)
        if not 0 <= scenario.source < graph.n:
            raise ValueError(f"{test_id}: source vertex {scenario.source} "
                             f"out of range [0, {graph.n})")
        mask = parity_mask(graph.nnz) if scenario.use_mask else None

        try:
            ensure_capacity(ctx, graph)
        except ResourceInsufficient as e:
            print(f"[  WAIVED  ] {test_id}", flush=True)
            return ScenarioReport.for_scenario(scenario, self.suite, Outcome.WAIVED,
                                               n=graph.n, nnz=graph.nnz, message=str(e))

        result, perf_ms = self._traverse(graph, scenario, mask, test_id)

        ref = ReferenceEngine(graph, mask, scenario.undirected).bfs(scenario.source)
        expected = ref["distances"]
        check_distances(expected, result.distances, graph.name, scenario.source)
        check_predecessors(expected, result.predecessors, graph.name, scenario.source)

        reached = expected[expected != UNREACHABLE]
        ctx.log(f"[oracle] {test_id}  reachable={ref['reachable_count']}  "
                f"levels={len(ref['layer_sizes'])}  ok")
        return ScenarioReport.for_scenario(
            scenario, self.suite, Outcome.PASSED, n=graph.n, nnz=graph.nnz,
            reachable=int(ref["reachable_count"]), max_distance=int(reached.max()),
            perf_ms=perf_ms, repeats=1,
        )

    def run_known(self, scenario: Scenario, distances: np.ndarray,
                  predecessors: Optional[np.ndarray] = None) -> ScenarioReport:
        """Sanity run: compare against a known answer instead of the reference BFS."""
        graph = self.ctx.load_graph(scenario.graph)
        mask = parity_mask(graph.nnz) if scenario.use_mask else None
        test_id = f"{self.suite}.{scenario.scenario_id}"
        result, _ = self._traverse(graph, scenario, mask, test_id)
        check_expected(result, distances, predecessors, graph.name, scenario.source)
        self.ctx.log(f"[oracle] {test_id}  known answer ok")
        return ScenarioReport.for_scenario(scenario, self.suite, Outcome.PASSED,
                                           n=graph.n, nnz=graph.nnz, repeats=1)

    def _traverse(self, graph: Graph, scenario: Scenario, mask: Optional[np.ndarray],
                  test_id: str) -> Tuple[TraversalResult, Optional[float]]:
        ctx = self.ctx
        cfg = ctx.config
        with ctx.graph_session(graph.name) as handle:
            config = prepare_graph(ctx, handle, graph, mask, scenario.undirected)
            invoke(ctx, handle, scenario.source, config, graph.name)
            ctx.binding.synchronize()

            perf_ms = None
            if cfg.performance_enabled and graph.n > cfg.perf_rows_limit:
                perf_ms = time_calls(
                    lambda: invoke(ctx, handle, scenario.source, config, graph.name),
                    cfg.perf_repeats, sync=ctx.binding.synchronize, verbose=cfg.verbose,
                )
                print(f"&&&& PERF Time_{test_id} {perf_ms:10.8f} -ms", flush=True)

            result = fetch(ctx, handle, graph.n, config, graph.name)
        return result, perf_ms
