# bfsverify/catalog.py
from __future__ import annotations
from typing import Callable, Dict, List

import numpy as np

from .config import resolve_graph_path
from .graphio import load_graph_file
from .model import Graph, Scenario

SYNTHETIC_PREFIX = "synthetic:"


# ---------- synthetic graph builders ----------
def cycle_graph(n: int) -> Graph:
    """Directed cycle i -> (i+1) mod n; from 0 the distance of i is i."""
    offsets = np.arange(n + 1)
    cols = (np.arange(n) + 1) % n
    return Graph.from_arrays(offsets, cols, name=f"{SYNTHETIC_PREFIX}cycle:{n}")


def path_graph(n: int) -> Graph:
    edges = [(i, i + 1) for i in range(n - 1)]
    return Graph.from_edges(n, edges, name=f"{SYNTHETIC_PREFIX}path:{n}")


def star_graph(n: int) -> Graph:
    """Hub 0 points at every leaf; leaves point back at the hub."""
    edges = [(0, i) for i in range(1, n)] + [(i, 0) for i in range(1, n)]
    return Graph.from_edges(n, edges, name=f"{SYNTHETIC_PREFIX}star:{n}")


def grid_graph(rows: int, cols: int) -> Graph:
    """Directed grid, edges go right and down; many equal-length paths."""
    edges = []
    for r in range(rows):
        for c in range(cols):
            v = r * cols + c
            if c + 1 < cols:
                edges.append((v, v + 1))
            if r + 1 < rows:
                edges.append((v, v + cols))
    return Graph.from_edges(rows * cols, edges, name=f"{SYNTHETIC_PREFIX}grid:{rows}x{cols}")


def islands_graph(k: int) -> Graph:
    """Two disjoint directed cycles of k vertices; the second is unreachable from the first."""
    cols = np.concatenate(((np.arange(k) + 1) % k, k + (np.arange(k) + 1) % k))
    return Graph.from_arrays(np.arange(2 * k + 1), cols, name=f"{SYNTHETIC_PREFIX}islands:{k}")


def random_graph(n: int, degree: int, seed: int = 42) -> Graph:
    """Fixed out-degree, uniformly random targets (self loops and multi-edges allowed)."""
    rng = np.random.default_rng(seed)
    cols = rng.integers(0, n, size=n * degree)
    offsets = np.arange(0, n * degree + 1, degree)
    return Graph.from_arrays(offsets, cols, name=f"{SYNTHETIC_PREFIX}random:{n}x{degree}x{seed}")


def _ints(arg: str, count: int) -> List[int]:
    parts = arg.split("x")
    if len(parts) != count:
        raise ValueError(f"expected {count} 'x'-separated integers, got {arg!r}")
    return [int(p) for p in parts]


GENERATORS: Dict[str, Callable[[str], Graph]] = {
    "cycle": lambda a: cycle_graph(*_ints(a, 1)),
    "path": lambda a: path_graph(*_ints(a, 1)),
    "star": lambda a: star_graph(*_ints(a, 1)),
    "grid": lambda a: grid_graph(*_ints(a, 2)),
    "islands": lambda a: islands_graph(*_ints(a, 1)),
    "random": lambda a: random_graph(*_ints(a, 3)),
}


def load_scenario_graph(ref: str, prefix: str = "") -> Graph:
    """Synthetic refs look like 'synthetic:<kind>:<args>'; anything else is a graph file."""
    if ref.startswith(SYNTHETIC_PREFIX):
        _, kind, arg = (ref.split(":", 2) + [""])[:3]
        if kind not in GENERATORS:
            raise ValueError(f"unknown synthetic graph kind {kind!r} in {ref!r}")
        return GENERATORS[kind](arg)
    return load_graph_file(resolve_graph_path(ref, prefix))


# ---------- scenario tables ----------
SANITY_CYCLE_SIZE = 1024
SANITY_CYCLE = Scenario(f"synthetic:cycle:{SANITY_CYCLE_SIZE}", 0)

CORRECTNESS: List[Scenario] = [
    Scenario("graphs/cage/cage13_T.mtx.bin", 0),
    Scenario("graphs/cage/cage13_T.mtx.bin", 10),
    Scenario("graphs/cage/cage14_T.mtx.bin", 0),
    Scenario("graphs/cage/cage14_T.mtx.bin", 10),
    Scenario("graphs/small/small.bin", 0),
    Scenario("graphs/small/small.bin", 3),
    Scenario("graphs/dblp/dblp.bin", 0, undirected=True),
    Scenario("graphs/dblp/dblp.bin", 100, undirected=True),
    Scenario("graphs/dblp/dblp.bin", 1000, undirected=True),
    Scenario("graphs/dblp/dblp.bin", 100000, undirected=True),
    Scenario("graphs/Wikipedia/2003/wiki2003.bin", 0),
    Scenario("graphs/Wikipedia/2003/wiki2003.bin", 100),
    Scenario("graphs/Wikipedia/2003/wiki2003.bin", 10000),
    Scenario("graphs/Wikipedia/2003/wiki2003.bin", 100000),
    Scenario("graphs/Wikipedia/2011/wiki2011.bin", 1),
    Scenario("graphs/Wikipedia/2011/wiki2011.bin", 1000),
    Scenario("dimacs10/road_usa_T.mtx.bin", 100),
    Scenario("graphs/Twitter/twitter.bin", 0),
    Scenario("graphs/Twitter/twitter.bin", 100),
    Scenario("graphs/Twitter/twitter.bin", 10000),
    Scenario("graphs/Twitter/twitter.bin", 3000000),
    # masked
    Scenario("graphs/small/small.bin", 0, use_mask=True),
    Scenario("graphs/small/small.bin", 3, use_mask=True),
    Scenario("graphs/dblp/dblp.bin", 0, use_mask=True),
    Scenario("graphs/dblp/dblp.bin", 100, use_mask=True),
    Scenario("graphs/dblp/dblp.bin", 1000, use_mask=True),
    Scenario("graphs/dblp/dblp.bin", 100000, use_mask=True),
    Scenario("graphs/Wikipedia/2003/wiki2003.bin", 0, use_mask=True),
]

STRESS: List[Scenario] = [
    Scenario("graphs/Wikipedia/2003/wiki2003.bin", 0),
]

SYNTHETIC: List[Scenario] = [
    SANITY_CYCLE,
    Scenario("synthetic:cycle:1024", 511),
    Scenario("synthetic:path:300", 0),
    Scenario("synthetic:path:300", 150, undirected=True),
    Scenario("synthetic:star:64", 5),
    Scenario("synthetic:grid:24x24", 0),
    Scenario("synthetic:grid:24x24", 300, undirected=True),
    Scenario("synthetic:grid:24x24", 0, use_mask=True),
    Scenario("synthetic:islands:128", 3),
    Scenario("synthetic:islands:128", 3, use_mask=True, undirected=True),
    Scenario("synthetic:random:2000x4x7", 0),
    Scenario("synthetic:random:2000x4x7", 17, use_mask=True),
    Scenario("synthetic:random:2000x4x7", 1999, undirected=True),
    Scenario("synthetic:random:2000x4x7", 42, use_mask=True, undirected=True),
]

SYNTHETIC_STRESS: List[Scenario] = [
    Scenario("synthetic:random:2000x4x7", 0),
    Scenario("synthetic:grid:24x24", 0, undirected=True),
]

SUITES: Dict[str, List[Scenario]] = {
    "sanity": [SANITY_CYCLE],
    "correctness": CORRECTNESS,
    "stress": STRESS,
    "synthetic": SYNTHETIC,
    "synthetic-stress": SYNTHETIC_STRESS,
}
