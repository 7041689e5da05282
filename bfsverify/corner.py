# bfsverify/corner.py
"""
Invalid-usage checks. Each case builds its own graph handle, feeds the
service something it has to refuse, and records the status it got back.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .catalog import cycle_graph
from .context import VerificationContext
from .errors import CorrectnessMismatch, ServiceCallFailed
from .model import Graph
from .service import (CsrTopology, Status, TopologyKind, TraversalConfig, ValueType,
                      expect_success, status_name)

CORNER_GRAPH_SIZE = 1024


@dataclass
class CaseResult:
    name: str
    status: Status
    expected: str           # "INVALID_VALUE" or "not SUCCESS"
    passed: bool
    detail: str = ""


class CornerCaseValidator:
    def __init__(self, ctx: VerificationContext, graph: Optional[Graph] = None):
        self.ctx = ctx
        self.graph = graph if graph is not None else cycle_graph(CORNER_GRAPH_SIZE)
        self.config = TraversalConfig(distance_slot=0)
        self.cases: Dict[str, Callable[[], CaseResult]] = {
            "unallocated_vertex_data": self.case_unallocated_vertex_data,
            "null_service_handle": self.case_null_service_handle,
            "null_graph_handle": self.case_null_graph_handle,
            "null_source_vertex": self.case_null_source_vertex,
            "csc_topology": self.case_csc_topology,
        }

    # ---------- helpers ----------
    def _topology(self) -> CsrTopology:
        g = self.graph
        return CsrTopology(g.n, g.nnz, g.row_offsets, g.column_indices)

    def _structure(self, handle, kind: TopologyKind = TopologyKind.CSR_32) -> None:
        b, ctx = self.ctx.binding, self.ctx
        expect_success(b.set_graph_structure(ctx.handle, handle, self._topology(), kind),
                       "set graph structure", graph=self.graph.name)

    def _allocate(self, handle) -> None:
        expect_success(self.ctx.binding.allocate_vertex_data(self.ctx.handle, handle,
                                                             [ValueType.INT32]),
                       "allocate vertex data", graph=self.graph.name)

    @staticmethod
    def _rejected(name: str, status: Status) -> CaseResult:
        return CaseResult(name, status, "not SUCCESS", status != Status.SUCCESS)

    @staticmethod
    def _invalid(name: str, status: Status) -> CaseResult:
        return CaseResult(name, status, "INVALID_VALUE", status == Status.INVALID_VALUE)

    # ---------- cases ----------
    def case_unallocated_vertex_data(self) -> CaseResult:
        with self.ctx.graph_session(self.graph.name) as g:
            self._structure(g)
            status = self.ctx.binding.traversal(self.ctx.handle, g, 0, self.config)
        return self._rejected("unallocated_vertex_data", status)

    def case_null_service_handle(self) -> CaseResult:
        with self.ctx.graph_session(self.graph.name) as g:
            self._structure(g)
            self._allocate(g)
            status = self.ctx.binding.traversal(None, g, 0, self.config)
        return self._invalid("null_service_handle", status)

    def case_null_graph_handle(self) -> CaseResult:
        with self.ctx.graph_session(self.graph.name) as g:
            self._structure(g)
            self._allocate(g)
            status = self.ctx.binding.traversal(self.ctx.handle, None, 0, self.config)
        return self._invalid("null_graph_handle", status)

    def case_null_source_vertex(self) -> CaseResult:
        with self.ctx.graph_session(self.graph.name) as g:
            self._structure(g)
            self._allocate(g)
            status = self.ctx.binding.traversal(self.ctx.handle, g, None, self.config)
        return self._invalid("null_source_vertex", status)

    def case_csc_topology(self) -> CaseResult:
        # only row-oriented (CSR) structures are traversable; refusing the
        # structure itself counts as a rejection
        with self.ctx.graph_session(self.graph.name) as g:
            try:
                self._structure(g, TopologyKind.CSC_32)
                self._allocate(g)
            except ServiceCallFailed as e:
                return self._rejected("csc_topology", e.status)
            status = self.ctx.binding.traversal(self.ctx.handle, g, 0, self.config)
        return self._rejected("csc_topology", status)

    # ---------- driver ----------
    def run(self, raise_on_failure: bool = True) -> List[CaseResult]:
        results = []
        for name, case in self.cases.items():
            try:
                res = case()
            except ServiceCallFailed as e:
                if raise_on_failure:
                    raise
                res = CaseResult(name, e.status, "setup to succeed", False, detail=str(e))
            self.ctx.log(f"[corner] {name:<24} status={status_name(res.status):<24} "
                         f"expected {res.expected}  {'ok' if res.passed else 'FAILED'}")
            if not res.passed and raise_on_failure:
                raise CorrectnessMismatch(f"corner case {name} was not rejected",
                                          graph=self.graph.name, expected=res.expected,
                                          actual=status_name(res.status))
            results.append(res)
        return results
