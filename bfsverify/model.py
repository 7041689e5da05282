# bfsverify/model.py
from __future__ import annotations
from dataclasses import dataclass
from pathlib import PurePath
from typing import Optional, Sequence, Tuple

import numpy as np

from .errors import MalformedGraph

INT_SIZE = 4                      # bytes per int32 element
UNREACHABLE = 2**31 - 1           # distance sentinel (INT_MAX)
NO_PREDECESSOR = -1               # predecessor sentinel

VertexArray = np.ndarray          # int32[n]
EdgeArray = np.ndarray            # int32[nnz]


def _readonly(a: np.ndarray) -> np.ndarray:
    a.setflags(write=False)
    return a


@dataclass(frozen=True, eq=False)
class Graph:
    n: int
    nnz: int
    row_offsets: np.ndarray       # int32[n+1]
    column_indices: np.ndarray    # int32[nnz]
    name: str = "graph"

    # ---------- construction ----------
    @staticmethod
    def from_arrays(
        row_offsets: Sequence[int],
        column_indices: Sequence[int],
        n: Optional[int] = None,
        nnz: Optional[int] = None,
        name: str = "graph",
    ) -> "Graph":
        """
        Validate CSR arrays and wrap them in a read-only Graph.
        ``n`` / ``nnz`` are the declared sizes (e.g. from a file header); when
        given they must agree with the arrays.
        """
        offsets = np.asarray(row_offsets, dtype=np.int64).ravel()
        cols = np.asarray(column_indices, dtype=np.int64).ravel()

        if offsets.size == 0:
            raise MalformedGraph("row offsets are empty", graph=name)
        n_data = offsets.size - 1
        if n is not None and n != n_data:
            raise MalformedGraph("declared vertex count disagrees with row offsets",
                                 graph=name, expected=n, actual=n_data)
        if nnz is not None and nnz != cols.size:
            raise MalformedGraph("declared edge count disagrees with column indices",
                                 graph=name, expected=nnz, actual=int(cols.size))
        if offsets[0] != 0:
            raise MalformedGraph("row offsets must start at 0",
                                 graph=name, actual=int(offsets[0]))
        if offsets[-1] != cols.size:
            raise MalformedGraph("last row offset must equal edge count",
                                 graph=name, expected=int(cols.size), actual=int(offsets[-1]))
        steps = np.diff(offsets)
        if steps.size and steps.min() < 0:
            bad = int(np.argmax(steps < 0))
            raise MalformedGraph("row offsets are not monotonic", graph=name, vertex=bad,
                                 expected=f">= {int(offsets[bad])}", actual=int(offsets[bad + 1]))
        if cols.size:
            out = (cols < 0) | (cols >= n_data)
            if out.any():
                e = int(np.argmax(out))
                raise MalformedGraph("column index out of range", graph=name,
                                     expected=f"[0, {n_data})", actual=int(cols[e]))
        if n_data >= UNREACHABLE or cols.size >= UNREACHABLE:
            raise MalformedGraph("graph does not fit 32-bit indices", graph=name)

        return Graph(
            n=int(n_data),
            nnz=int(cols.size),
            row_offsets=_readonly(offsets.astype(np.int32)),
            column_indices=_readonly(cols.astype(np.int32)),
            name=name,
        )

    @staticmethod
    def from_edges(n: int, edges: Sequence[Tuple[int, int]], name: str = "graph") -> "Graph":
        """Build CSR from (u, v) pairs; edge order within a row follows input order."""
        if not edges:
            return Graph.from_arrays(np.zeros(n + 1, dtype=np.int64), [], name=name)
        pairs = np.asarray(edges, dtype=np.int64).reshape(-1, 2)
        if pairs.size and ((pairs < 0) | (pairs >= n)).any():
            raise MalformedGraph("edge endpoint out of range", graph=name, expected=f"[0, {n})")
        order = np.argsort(pairs[:, 0], kind="stable")
        src, dst = pairs[order, 0], pairs[order, 1]
        offsets = np.concatenate(([0], np.cumsum(np.bincount(src, minlength=n))))
        return Graph.from_arrays(offsets, dst, name=name)

    # ---------- views ----------
    def out_degree(self) -> np.ndarray:
        return np.diff(self.row_offsets)

    def neighbors(self, u: int) -> np.ndarray:
        return self.column_indices[self.row_offsets[u]:self.row_offsets[u + 1]]

    def edge_sources(self) -> np.ndarray:
        """Source vertex of every edge, aligned with column_indices."""
        return np.repeat(np.arange(self.n, dtype=np.int32), self.out_degree())

    def nbytes_csr(self) -> int:
        return INT_SIZE * (self.n + 1 + self.nnz)

    @property
    def file_name(self) -> str:
        return PurePath(self.name).name

    # ---------- derived graphs ----------
    def symmetrized(self, mask: Optional[np.ndarray] = None) -> "Graph":
        """
        Undirected closure of the enabled edges: every kept (u, v) also yields
        (v, u); parallel edges collapse. Disabled edges vanish in both directions.
        """
        if self.n == 0:
            return self
        src = self.edge_sources().astype(np.int64)
        dst = self.column_indices.astype(np.int64)
        if mask is not None:
            keep = np.asarray(mask) != 0
            src, dst = src[keep], dst[keep]
        u = np.concatenate((src, dst))
        v = np.concatenate((dst, src))
        keys = np.unique(u * self.n + v)
        u, v = keys // self.n, keys % self.n
        offsets = np.concatenate(([0], np.cumsum(np.bincount(u, minlength=self.n))))
        return Graph.from_arrays(offsets, v, name=f"{self.name}#undirected")


def parity_mask(nnz: int) -> np.ndarray:
    """Test-data masking policy: every even-indexed edge is disabled."""
    mask = np.ones(nnz, dtype=np.int32)
    mask[0::2] = 0
    return mask


@dataclass(frozen=True)
class Scenario:
    graph: str                    # file name under the data prefix, or "synthetic:<kind>:<args>"
    source: int
    use_mask: bool = False
    undirected: bool = False

    @property
    def scenario_id(self) -> str:
        base = PurePath(self.graph).name if not self.graph.startswith("synthetic:") \
            else self.graph.replace(":", "-")
        sid = f"{base}_{self.source}"
        if self.use_mask:
            sid += "_mask"
        if self.undirected:
            sid += "_undirected"
        return sid


@dataclass(frozen=True, eq=False)
class TraversalResult:
    distances: np.ndarray         # int32[n], UNREACHABLE where not reached
    predecessors: np.ndarray      # int32[n], NO_PREDECESSOR for source / unreached


@dataclass(frozen=True)
class MemorySample:
    free: int
    total: int
    iteration: int = -1
