# bfsverify/stability.py
from __future__ import annotations

from typing import Optional

import numpy as np
from tqdm import trange

from .context import VerificationContext
from .errors import StabilityViolation
from .metrics import memory_delta_mb
from .model import MemorySample, Scenario, parity_mask
from .oracle import Outcome, ScenarioReport, fetch, invoke, prepare_graph

MIDPOINT_CAP = 50


def stress_repeats(multiplier: int, base: int) -> int:
    """Repeats for one stress run: multiplier * base, never fewer than 2."""
    return max(2, int(multiplier) * int(base))


def midpoint_index(repeats: int) -> int:
    return min(MIDPOINT_CAP, repeats // 2)


class StabilityHarness:
    """
    Repeats one traversal request on one graph. Distances of every repeat
    must equal those of repeat 0 (predecessors may differ when several
    shortest paths exist). Free memory sampled at the midpoint must not
    exceed free memory after the last repeat.
    """

    def __init__(self, ctx: VerificationContext, suite: str = "stress",
                 repeats: Optional[int] = None):
        self.ctx = ctx
        self.suite = suite
        cfg = ctx.config
        self.repeats = repeats if repeats is not None else \
            stress_repeats(cfg.stress_multiplier, cfg.perf_repeats)
        if self.repeats < 2:
            raise ValueError(f"stability run needs at least 2 repeats, got {self.repeats}")

    def run(self, scenario: Scenario) -> ScenarioReport:
        ctx = self.ctx
        graph = ctx.load_graph(scenario.graph)
        if not 0 <= scenario.source < graph.n:
            raise ValueError(f"source vertex {scenario.source} out of range [0, {graph.n})")
        mask = parity_mask(graph.nnz) if scenario.use_mask else None
        mid = midpoint_index(self.repeats)
        first: Optional[np.ndarray] = None
        free_mid: Optional[MemorySample] = None
        free_last: Optional[MemorySample] = None

        with ctx.graph_session(graph.name) as handle:
            config = prepare_graph(ctx, handle, graph, mask, scenario.undirected)
            for i in trange(self.repeats, desc=scenario.scenario_id,
                            disable=not ctx.config.verbose):
                invoke(ctx, handle, scenario.source, config, graph.name, iteration=i)
                result = fetch(ctx, handle, graph.n, config, graph.name, iteration=i)

                if i == 0:
                    first = result.distances.copy()
                else:
                    diff = np.flatnonzero(first != result.distances)
                    if diff.size:
                        row = int(diff[0])
                        raise StabilityViolation(
                            "Difference in result in distances for iterations #0 and "
                            f"iteration #{i}",
                            graph=graph.name, source=scenario.source, vertex=row,
                            expected=int(first[row]), actual=int(result.distances[row]),
                            iteration=i,
                        )

                if i == mid:
                    free_mid = ctx.memory_sample(i)
                if i == self.repeats - 1:
                    free_last = ctx.memory_sample(i)

        if free_mid.free > free_last.free:
            raise StabilityViolation(
                f"Memory difference between iteration #{mid} and last iteration is "
                f"{memory_delta_mb(free_mid, free_last):.3f}MB",
                graph=graph.name, source=scenario.source,
                expected=f"free <= {free_last.free}", actual=free_mid.free,
                iteration=free_last.iteration,
            )

        ctx.log(f"[stress] {self.suite}.{scenario.scenario_id}  repeats={self.repeats}  "
                f"free_mid={free_mid.free}  free_last={free_last.free}")
        return ScenarioReport.for_scenario(
            scenario, self.suite, Outcome.PASSED, n=graph.n, nnz=graph.nnz,
            repeats=self.repeats, free_mid=free_mid.free, free_last=free_last.free,
        )
