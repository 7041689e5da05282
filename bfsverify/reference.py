# bfsverify/reference.py
from __future__ import annotations

from collections import deque
from typing import Dict, List, Optional

import numpy as np

from .model import Graph, UNREACHABLE


class ReferenceEngine:
    """Single-threaded queue BFS used as ground truth; independent of any service."""

    def __init__(self, graph: Graph, mask: Optional[np.ndarray] = None, undirected: bool = False):
        if mask is not None:
            mask = np.asarray(mask)
            assert mask.shape == (graph.nnz,), \
                f"mask length {mask.shape} != nnz {graph.nnz}"
        # undirected: search the symmetric closure of the enabled edges,
        # so the mask is already folded in and not consulted again
        if undirected:
            graph = graph.symmetrized(mask)
            mask = None
        self.graph = graph
        self.mask = mask

    # ----------------------------- serial BFS -----------------------------
    def bfs(self, source: int) -> Dict:
        g = self.graph
        if not 0 <= source < g.n:
            raise ValueError(f"source vertex {source} out of range [0, {g.n})")

        offsets: List[int] = g.row_offsets.tolist()
        cols: List[int] = g.column_indices.tolist()
        enabled: Optional[List[int]] = self.mask.tolist() if self.mask is not None else None

        distances = [UNREACHABLE] * g.n
        distances[source] = 0
        layer_sizes: Dict[int, int] = {0: 1}
        queue = deque([source])
        transitions = 0

        while queue:
            u = queue.popleft()
            du = distances[u] + 1
            for e in range(offsets[u], offsets[u + 1]):
                if enabled is not None and not enabled[e]:
                    continue
                transitions += 1
                v = cols[e]
                if distances[v] == UNREACHABLE:       # undiscovered
                    distances[v] = du
                    layer_sizes[du] = layer_sizes.get(du, 0) + 1
                    queue.append(v)

        return {
            "distances": np.asarray(distances, dtype=np.int32),
            "reachable_count": sum(layer_sizes.values()),
            "layer_sizes": layer_sizes,
            "transitions": transitions,
        }


def reference_bfs(graph: Graph, source: int, mask: Optional[np.ndarray] = None,
                  undirected: bool = False) -> np.ndarray:
    """Ground-truth distance vector (UNREACHABLE for vertices not reached)."""
    return ReferenceEngine(graph, mask, undirected).bfs(source)["distances"]
