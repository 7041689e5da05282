# bfsverify/config.py
from __future__ import annotations

import argparse
import pathlib
from dataclasses import dataclass

DEFAULT_BINDING = "bfsverify.loopback:LoopbackBinding"
DEFAULT_GRAPH_DATA_DIR = "/mnt/graph_test_data/"

PERF_ROWS_LIMIT = 10000     # minimum vertices before perf timing kicks in
PERF_REPEATS = 30           # timed calls per perf measurement
STRESS_MULTIPLIER = 10      # stress repeats = multiplier * PERF_REPEATS


@dataclass(frozen=True)
class VerifyConfig:
    performance_enabled: bool = False
    stress_multiplier: int = STRESS_MULTIPLIER
    graph_data_prefix: str = ""
    binding: str = DEFAULT_BINDING
    verbose: bool = False
    perf_rows_limit: int = PERF_ROWS_LIMIT
    perf_repeats: int = PERF_REPEATS

    @staticmethod
    def from_args(args: argparse.Namespace) -> "VerifyConfig":
        return VerifyConfig(
            performance_enabled=bool(getattr(args, "perf", False)),
            stress_multiplier=int(getattr(args, "stress_iters", STRESS_MULTIPLIER)),
            graph_data_prefix=getattr(args, "graph_data_dir", None) or "",
            binding=getattr(args, "binding", None) or DEFAULT_BINDING,
            verbose=bool(getattr(args, "verbose", False)),
        )


def positive_int(val: str) -> int:
    iv = int(val)
    if iv <= 0:
        raise argparse.ArgumentTypeError("must be a positive integer")
    return iv


def add_config_arguments(parser: argparse.ArgumentParser) -> None:
    """Flags shared by every entry point that builds a VerifyConfig."""
    parser.add_argument("--perf", action="store_true",
                        help="Time repeated traversal calls on large graphs")
    parser.add_argument("--stress-iters", type=positive_int, default=STRESS_MULTIPLIER,
                        help="Multiplier (not an absolute count) for stress repeats")
    parser.add_argument("--graph-data-dir", type=str, default=None,
                        help=f"Prefix for catalog graph files (default: {DEFAULT_GRAPH_DATA_DIR})")
    parser.add_argument("--binding", type=str, default=DEFAULT_BINDING,
                        help="Service binding as 'module:Factory'")
    parser.add_argument("--verbose", action="store_true", help="Print per-scenario progress")


def resolve_graph_path(name: str, prefix: str = "") -> str:
    """Map a catalog graph name onto the data directory; synthetic refs pass through."""
    if name in ("", "dummy") or name.startswith("synthetic:"):
        return name
    if pathlib.PurePath(name).is_absolute():
        return name
    base = prefix or DEFAULT_GRAPH_DATA_DIR
    return str(pathlib.Path(base) / name)
