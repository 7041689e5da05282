# bfsverify/loopback.py
"""
In-process traversal service implementing the binding contract.

It exists so the verification engine can run end to end without a native
library: level-synchronous frontier BFS on numpy arrays, status codes for
misuse, and a simulated device memory pool that ``memory_info`` reports.
"""
from __future__ import annotations

import itertools
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np

from .model import INT_SIZE, NO_PREDECESSOR, UNREACHABLE
from .service import CsrTopology, Status, TopologyKind, TraversalConfig, ValueType

_DTYPES = {
    ValueType.INT32: np.int32,
    ValueType.FLOAT32: np.float32,
    ValueType.FLOAT64: np.float64,
}


class _ServiceHandle:
    def __init__(self, ident: int):
        self.ident = ident
        self.alive = True

    def __repr__(self) -> str:
        return f"<loopback service #{self.ident}{'' if self.alive else ' destroyed'}>"


class _GraphHandle:
    def __init__(self, ident: int, service: _ServiceHandle):
        self.ident = ident
        self.service = service
        self.alive = True
        self.kind: Optional[TopologyKind] = None
        self.offsets: Optional[np.ndarray] = None
        self.indices: Optional[np.ndarray] = None
        self.n = 0
        self.nnz = 0
        self.vertex_data: List[np.ndarray] = []
        self.edge_data: List[np.ndarray] = []
        self.nbytes = 0

    def __repr__(self) -> str:
        return f"<loopback graph #{self.ident} n={self.n} nnz={self.nnz}>"


# ---------- frontier expansion ----------
def _expand(offsets: np.ndarray, frontier: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Edge slots of every frontier vertex, with the owning vertex repeated per slot."""
    starts = offsets[frontier].astype(np.int64)
    counts = offsets[frontier + 1].astype(np.int64) - starts
    total = int(counts.sum())
    if total == 0:
        empty = np.empty(0, dtype=np.int64)
        return empty, empty
    base = np.repeat(starts - (np.cumsum(counts) - counts), counts)
    return base + np.arange(total, dtype=np.int64), np.repeat(frontier, counts)


def _transpose(offsets: np.ndarray, indices: np.ndarray, n: int):
    """Incoming-edge lookup: (in_offsets, in_sources, original edge ids)."""
    sources = np.repeat(np.arange(n, dtype=np.int64), np.diff(offsets))
    order = np.argsort(indices, kind="stable")
    in_offsets = np.concatenate(([0], np.cumsum(np.bincount(indices, minlength=n))))
    return in_offsets, sources[order], order


def frontier_bfs(offsets: np.ndarray, indices: np.ndarray, n: int, source: int,
                 mask: Optional[np.ndarray] = None, undirected: bool = False,
                 rng: Optional[np.random.Generator] = None) -> Tuple[np.ndarray, np.ndarray]:
    """
    Level-synchronous BFS. With ``rng`` the parent chosen for a vertex reached
    from several frontier vertices is random; distances never depend on it.
    """
    dist = np.full(n, UNREACHABLE, dtype=np.int32)
    pred = np.full(n, NO_PREDECESSOR, dtype=np.int32)
    dist[source] = 0
    if undirected:
        in_offsets, in_sources, in_edges = _transpose(offsets, indices, n)

    frontier = np.array([source], dtype=np.int64)
    level = 0
    while frontier.size:
        edge_ids, parents = _expand(offsets, frontier)
        targets = indices[edge_ids].astype(np.int64)
        if undirected:
            slots, in_parents = _expand(in_offsets, frontier)
            edge_ids = np.concatenate((edge_ids, in_edges[slots]))
            targets = np.concatenate((targets, in_sources[slots]))
            parents = np.concatenate((parents, in_parents))
        if mask is not None:
            keep = mask[edge_ids] != 0
            targets, parents = targets[keep], parents[keep]
        fresh = dist[targets] == UNREACHABLE
        targets, parents = targets[fresh], parents[fresh]
        if targets.size == 0:
            break
        if rng is not None:
            perm = rng.permutation(targets.size)
            targets, parents = targets[perm], parents[perm]
        frontier, first = np.unique(targets, return_index=True)
        level += 1
        dist[frontier] = level
        pred[frontier] = parents[first]
    return dist, pred


class LoopbackBinding:
    """Binding whose 'device' is this process."""

    def __init__(
        self,
        capacity_bytes: int = 8 << 30,
        shuffle_predecessors: bool = True,
        leak_bytes_per_call: int = 0,
        seed: int = 42,
    ):
        self.capacity_bytes = int(capacity_bytes)
        self.shuffle_predecessors = shuffle_predecessors
        self.leak_bytes_per_call = int(leak_bytes_per_call)
        self._rng = np.random.default_rng(seed)
        self._ids = itertools.count(1)
        self._allocated = 0
        self.traversal_calls = 0

    # ---------- memory pool ----------
    def memory_info(self) -> Tuple[int, int]:
        return self.capacity_bytes - self._allocated, self.capacity_bytes

    def _alloc(self, nbytes: int) -> bool:
        if self._allocated + nbytes > self.capacity_bytes:
            return False
        self._allocated += nbytes
        return True

    def _release(self, nbytes: int) -> None:
        self._allocated -= nbytes

    # ---------- handle checks ----------
    @staticmethod
    def _live(handle: Any, graph: Any = None, need_graph: bool = False) -> bool:
        if not isinstance(handle, _ServiceHandle) or not handle.alive:
            return False
        if need_graph and (not isinstance(graph, _GraphHandle) or not graph.alive
                           or graph.service is not handle):
            return False
        return True

    # ---------- lifecycle ----------
    def create(self) -> Tuple[Status, Any]:
        return Status.SUCCESS, _ServiceHandle(next(self._ids))

    def destroy(self, handle: Any) -> Status:
        if not self._live(handle):
            return Status.INVALID_VALUE
        handle.alive = False
        return Status.SUCCESS

    def create_graph(self, handle: Any) -> Tuple[Status, Any]:
        if not self._live(handle):
            return Status.INVALID_VALUE, None
        return Status.SUCCESS, _GraphHandle(next(self._ids), handle)

    def destroy_graph(self, handle: Any, graph: Any) -> Status:
        if not self._live(handle, graph, need_graph=True):
            return Status.INVALID_VALUE
        self._release(graph.nbytes)
        graph.nbytes = 0
        graph.vertex_data, graph.edge_data = [], []
        graph.alive = False
        return Status.SUCCESS

    # ---------- structure and data ----------
    def set_graph_structure(self, handle: Any, graph: Any, topology: CsrTopology,
                            kind: TopologyKind) -> Status:
        if not self._live(handle, graph, need_graph=True) or topology is None:
            return Status.INVALID_VALUE
        if graph.kind is not None:
            return Status.INVALID_VALUE
        offsets = np.asarray(topology.offsets)
        indices = np.asarray(topology.indices)
        if offsets.shape != (topology.n + 1,) or indices.shape != (topology.nnz,):
            return Status.INVALID_VALUE
        nbytes = INT_SIZE * (topology.n + 1 + topology.nnz)
        if not self._alloc(nbytes):
            return Status.ALLOC_FAILED
        graph.nbytes += nbytes
        graph.kind = TopologyKind(kind)
        graph.n, graph.nnz = int(topology.n), int(topology.nnz)
        graph.offsets = offsets.astype(np.int32, copy=True)
        graph.indices = indices.astype(np.int32, copy=True)
        return Status.SUCCESS

    def _allocate(self, graph: _GraphHandle, types: Sequence[ValueType], count: int,
                  store: List[np.ndarray]) -> Status:
        if graph.kind is None:
            return Status.NOT_INITIALIZED
        if store or not types:
            return Status.INVALID_VALUE
        try:
            dtypes = [_DTYPES[ValueType(t)] for t in types]
        except (KeyError, ValueError):
            return Status.TYPE_NOT_SUPPORTED
        nbytes = sum(count * np.dtype(d).itemsize for d in dtypes)
        if not self._alloc(nbytes):
            return Status.ALLOC_FAILED
        graph.nbytes += nbytes
        store.extend(np.zeros(count, dtype=d) for d in dtypes)
        return Status.SUCCESS

    def allocate_vertex_data(self, handle: Any, graph: Any, types: Sequence[ValueType]) -> Status:
        if not self._live(handle, graph, need_graph=True):
            return Status.INVALID_VALUE
        return self._allocate(graph, types, graph.n, graph.vertex_data)

    def allocate_edge_data(self, handle: Any, graph: Any, types: Sequence[ValueType]) -> Status:
        if not self._live(handle, graph, need_graph=True):
            return Status.INVALID_VALUE
        return self._allocate(graph, types, graph.nnz, graph.edge_data)

    def set_edge_data(self, handle: Any, graph: Any, values: np.ndarray, slot: int) -> Status:
        if not self._live(handle, graph, need_graph=True) or values is None:
            return Status.INVALID_VALUE
        if not 0 <= slot < len(graph.edge_data):
            return Status.INVALID_VALUE
        values = np.asarray(values)
        if values.shape != (graph.nnz,):
            return Status.INVALID_VALUE
        graph.edge_data[slot][...] = values
        return Status.SUCCESS

    def get_vertex_data(self, handle: Any, graph: Any, out: np.ndarray, slot: int) -> Status:
        if not self._live(handle, graph, need_graph=True) or out is None:
            return Status.INVALID_VALUE
        if not 0 <= slot < len(graph.vertex_data):
            return Status.INVALID_VALUE
        if out.shape != (graph.n,):
            return Status.INVALID_VALUE
        out[...] = graph.vertex_data[slot]
        return Status.SUCCESS

    # ---------- traversal ----------
    def _output_slot(self, graph: _GraphHandle, slot: Optional[int]) -> Optional[Status]:
        if slot is None:
            return None
        if not 0 <= slot < len(graph.vertex_data):
            return Status.INVALID_VALUE
        if graph.vertex_data[slot].dtype != np.int32:
            return Status.TYPE_NOT_SUPPORTED
        return None

    def traversal(self, handle: Any, graph: Any, source: Optional[int],
                  config: TraversalConfig) -> Status:
        if not self._live(handle, graph, need_graph=True) or source is None or config is None:
            return Status.INVALID_VALUE
        if graph.kind is None or not graph.vertex_data:
            return Status.NOT_INITIALIZED
        if graph.kind != TopologyKind.CSR_32:
            return Status.GRAPH_TYPE_NOT_SUPPORTED
        if config.distance_slot is None and config.predecessor_slot is None:
            return Status.INVALID_VALUE
        for slot in (config.distance_slot, config.predecessor_slot):
            bad = self._output_slot(graph, slot)
            if bad is not None:
                return bad
        mask = None
        if config.mask_slot is not None:
            if not 0 <= config.mask_slot < len(graph.edge_data):
                return Status.INVALID_VALUE
            mask = graph.edge_data[config.mask_slot]
        if not 0 <= int(source) < graph.n:
            return Status.INVALID_VALUE

        working = 2 * INT_SIZE * graph.n
        if not self._alloc(working):
            return Status.ALLOC_FAILED
        try:
            dist, pred = frontier_bfs(
                graph.offsets, graph.indices, graph.n, int(source),
                mask=mask, undirected=config.undirected,
                rng=self._rng if self.shuffle_predecessors else None,
            )
        finally:
            self._release(working)
        self.traversal_calls += 1
        if self.leak_bytes_per_call:
            self._alloc(self.leak_bytes_per_call)

        if config.distance_slot is not None:
            graph.vertex_data[config.distance_slot][...] = dist
        if config.predecessor_slot is not None:
            graph.vertex_data[config.predecessor_slot][...] = pred
        return Status.SUCCESS

    def synchronize(self) -> None:
        """Every call completes before returning; nothing is in flight."""
