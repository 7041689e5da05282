# bfsverify/context.py
from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

import psutil

from .catalog import load_scenario_graph
from .config import VerifyConfig
from .model import Graph, MemorySample
from .service import TraversalBinding, expect_success, load_binding


class VerificationContext:
    """
    Owns the service handle shared by the scenarios of one run.

        with VerificationContext(config) as ctx:
            TraversalOracle(ctx).run(scenario)

    The handle is created on enter and destroyed on exit; each scenario opens
    its own graph handle through ``graph_session``.
    """

    def __init__(self, config: Optional[VerifyConfig] = None,
                 binding: Optional[TraversalBinding] = None):
        self.config = config or VerifyConfig()
        self.binding = binding if binding is not None else load_binding(self.config.binding)
        self.handle: Any = None
        self._graphs: Dict[str, Graph] = {}

    # ---------- service lifecycle ----------
    def __enter__(self) -> "VerificationContext":
        status, handle = self.binding.create()
        expect_success(status, "create service")
        self.handle = handle
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self.handle is None:
            return
        status = self.binding.destroy(self.handle)
        self.handle = None
        if exc_type is None:
            expect_success(status, "destroy service")

    @contextmanager
    def graph_session(self, label: Optional[str] = None) -> Iterator[Any]:
        """Graph handle released on both the success and the failure path."""
        if self.handle is None:
            raise RuntimeError("VerificationContext used outside its 'with' block")
        status, graph = self.binding.create_graph(self.handle)
        expect_success(status, "create graph", graph=label)
        completed = False
        try:
            yield graph
            completed = True
        finally:
            status = self.binding.destroy_graph(self.handle, graph)
            if completed:
                expect_success(status, "destroy graph", graph=label)

    # ---------- helpers ----------
    def load_graph(self, ref: str) -> Graph:
        """Graphs are immutable, so each reference is read once per run."""
        graph = self._graphs.get(ref)
        if graph is None:
            graph = load_scenario_graph(ref, self.config.graph_data_prefix)
            self._graphs[ref] = graph
            self.log(f"[load] {graph.name}  n={graph.n}  nnz={graph.nnz}")
        return graph

    def memory_sample(self, iteration: int = -1) -> MemorySample:
        """Free/total memory as the service sees it; host memory if it cannot say."""
        probe = getattr(self.binding, "memory_info", None)
        if callable(probe):
            free, total = probe()
        else:
            vm = psutil.virtual_memory()
            free, total = vm.available, vm.total
        return MemorySample(free=int(free), total=int(total), iteration=iteration)

    def log(self, msg: str) -> None:
        if self.config.verbose:
            print(msg, flush=True)
