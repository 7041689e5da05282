# scripts/plot_levels.py
from __future__ import annotations

"""
Plot per-level frontier sizes of the reference BFS for catalog scenarios.

Writes:
  - <outdir>/levels_long.csv          one row per (scenario, level)
  - <outdir>/levels_<suite>.png       one curve per scenario

Usage:
  python -m scripts.plot_levels
  python -m scripts.plot_levels --suite correctness --graph-data-dir /data/graphs

Notes:
  - Uses matplotlib only (no seaborn).
  - Scenarios whose graph cannot be loaded are skipped with a warning.
"""

import argparse
import pathlib
import sys
from typing import List

import matplotlib.pyplot as plt
import pandas as pd

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from bfsverify.catalog import SUITES, load_scenario_graph
from bfsverify.errors import MalformedGraph
from bfsverify.metrics import avg_branching
from bfsverify.model import Scenario, parity_mask
from bfsverify.reference import ReferenceEngine

PLOTS_DIR_DEFAULT = PROJECT_ROOT / "artifacts" / "plots"


def levels_long(scenarios: List[Scenario], prefix: str) -> pd.DataFrame:
    rows = []
    for sc in scenarios:
        try:
            graph = load_scenario_graph(sc.graph, prefix)
        except MalformedGraph as e:
            print(f"[skip] {sc.scenario_id}: {e}")
            continue
        mask = parity_mask(graph.nnz) if sc.use_mask else None
        res = ReferenceEngine(graph, mask, sc.undirected).bfs(sc.source)
        branching = avg_branching(res["transitions"], res["reachable_count"])
        print(f"[ok] {sc.scenario_id}: reachable={res['reachable_count']}  "
              f"levels={len(res['layer_sizes'])}  branching={branching:.2f}")
        for level, size in sorted(res["layer_sizes"].items()):
            rows.append({"scenario": sc.scenario_id, "level": level, "vertices": size})
    return pd.DataFrame(rows, columns=["scenario", "level", "vertices"])


def savefig(path: pathlib.Path):
    path.parent.mkdir(parents=True, exist_ok=True)
    plt.tight_layout()
    plt.savefig(path, dpi=160)
    plt.close()
    print(f"[ok] wrote {path}")


def plot_levels(df: pd.DataFrame, suite: str, outdir: pathlib.Path):
    if df.empty:
        print("[skip] no level data")
        return
    plt.figure(figsize=(8, 4.5))
    for scenario, grp in df.groupby("scenario", sort=False):
        grp = grp.sort_values("level")
        plt.plot(grp["level"], grp["vertices"], marker="o", markersize=3, label=scenario)
    plt.xlabel("BFS level (distance from source)")
    plt.ylabel("Vertices per level")
    plt.yscale("log")
    plt.title(f"{suite}: reference BFS frontier sizes")
    plt.legend(fontsize="x-small", ncol=2)
    savefig(outdir / f"levels_{suite}.png")


def main():
    parser = argparse.ArgumentParser(description="Plot reference BFS level sizes.")
    parser.add_argument("--suite", default="synthetic",
                        choices=sorted(SUITES), help="Scenario table to plot")
    parser.add_argument("--graph-data-dir", default="", help="Prefix for graph files")
    parser.add_argument(
        "--outdir",
        default=str(PLOTS_DIR_DEFAULT),
        help="Output directory for figures (default: artifacts/plots)",
    )
    args = parser.parse_args()

    outdir = pathlib.Path(args.outdir)
    outdir.mkdir(parents=True, exist_ok=True)

    df = levels_long(SUITES[args.suite], args.graph_data_dir)
    csv_path = outdir / "levels_long.csv"
    df.to_csv(csv_path, index=False)
    print(f"[saved] {csv_path}")
    plot_levels(df, args.suite, outdir)


if __name__ == "__main__":
    main()
