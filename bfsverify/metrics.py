# bfsverify/metrics.py
"""
Small measurement helpers:
  • avg_branching: edges examined per reached vertex, from reference BFS stats
  • time_calls: mean wall-clock milliseconds per call over a fixed repeat
  • memory_delta_mb: signed free-memory change between two samples
"""

import time
from typing import Callable, Optional

from tqdm import trange

from .model import MemorySample


def avg_branching(transitions: int, visited: int) -> float:
    """Rough branching factor: total explored edges / visited nodes."""
    return transitions / visited if visited else 0.0


def time_calls(call: Callable[[], None], repeat: int, sync: Optional[Callable[[], None]] = None,
               verbose: bool = False) -> float:
    """
    Run ``call`` ``repeat`` times back to back and return mean ms per call.
    ``sync`` runs once after the loop so queued work is counted.
    """
    start = time.perf_counter()
    for _ in trange(repeat, desc="perf", disable=not verbose, leave=False):
        call()
    if sync is not None:
        sync()
    stop = time.perf_counter()
    return 1000.0 * (stop - start) / repeat


def memory_delta_mb(earlier: MemorySample, later: MemorySample) -> float:
    return (later.free - earlier.free) / 1e6
