# scripts/make_graph.py
from __future__ import annotations
import argparse, pathlib, sys

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from bfsverify.catalog import GENERATORS, load_scenario_graph
from bfsverify.graphio import write_graph_file


def main():
    parser = argparse.ArgumentParser(
        description="Write a synthetic graph as an AMGX binary file"
    )
    parser.add_argument("kind", choices=sorted(GENERATORS), help="Generator")
    parser.add_argument("args", help="Generator arguments, e.g. 1024 or 32x32 or 2000x4x7")
    parser.add_argument("out", help="Output .bin path")
    args = parser.parse_args()

    graph = load_scenario_graph(f"synthetic:{args.kind}:{args.args}")
    path = write_graph_file(args.out, graph)
    print(f"[saved] {path}  n={graph.n}  nnz={graph.nnz}")


if __name__ == "__main__":
    main()
