# scripts/run_verification.py
from __future__ import annotations

import argparse
import json
import pathlib
import sys
import time
from datetime import datetime, timezone

# allow "python scripts/run_verification.py" from the project root
PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from bfsverify.config import VerifyConfig, add_config_arguments
from bfsverify.context import VerificationContext
from bfsverify.runner import ALL_SUITES, reports_frame, run_suite, summarize


def _ensure_parent(path: pathlib.Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def _save_meta_json(path: pathlib.Path, args: argparse.Namespace, config: VerifyConfig,
                    summary: dict, elapsed: float) -> None:
    _ensure_parent(path)
    meta = {
        "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
        "params": {
            "suites": args.suite,
            "binding": config.binding,
            "performance_enabled": config.performance_enabled,
            "stress_multiplier": config.stress_multiplier,
            "graph_data_prefix": config.graph_data_prefix,
        },
        "summary": summary,
        "elapsed_sec": round(elapsed, 3),
    }
    with path.open("w", encoding="utf-8") as f:
        json.dump(meta, f, ensure_ascii=False, indent=2)


def main() -> int:
    parser = argparse.ArgumentParser(description="BFS traversal service verification")
    parser.add_argument(
        "-s",
        "--suite",
        nargs="+",
        default=["sanity", "synthetic", "corner", "synthetic-stress"],
        choices=ALL_SUITES,
        help="Suites to run, in order",
    )
    parser.add_argument("--fail-fast", action="store_true",
                        help="Stop at the first failing scenario")
    add_config_arguments(parser)

    # ==== output options ====
    parser.add_argument(
        "--out-prefix",
        type=str,
        default=None,
        help="Path prefix for outputs (creates *_reports.csv and *_meta.json)",
    )
    parser.add_argument(
        "--out-parquet",
        action="store_true",
        help="Additionally save the report table as Parquet (needs pyarrow or fastparquet)",
    )

    args = parser.parse_args()
    config = VerifyConfig.from_args(args)

    print(
        f"Running suites={' '.join(args.suite)}  binding={config.binding}  "
        f"perf={'on' if config.performance_enabled else 'off'}  "
        f"stress-iters={config.stress_multiplier}"
    )

    reports = []
    t0 = time.perf_counter()
    with VerificationContext(config) as ctx:
        for suite in args.suite:
            reports.extend(run_suite(ctx, suite, fail_fast=args.fail_fast))
    t1 = time.perf_counter()

    summary = summarize(reports)
    df = reports_frame(reports)
    print(df[["suite", "scenario_id", "outcome", "n", "nnz", "perf_ms"]].to_string(index=False))
    print(f"passed={summary['passed']}  waived={summary['waived']}  "
          f"failed={summary['failed']}  total={summary['total']}")
    print(f"elapsed        : {t1 - t0:.2f}s")

    prefix = args.out_prefix
    if prefix is None and args.out_parquet:
        prefix = f"runs/verify_{int(time.time())}"
        print(f"[info] --out-prefix not set; using default: {prefix}")

    if prefix:
        base = pathlib.Path(prefix)
        csv_path = base.with_name(base.name + "_reports.csv")
        meta_path = base.with_name(base.name + "_meta.json")
        _ensure_parent(csv_path)
        df.to_csv(csv_path, index=False)
        _save_meta_json(meta_path, args, config, summary, t1 - t0)
        print(f"[saved] {csv_path}")
        print(f"[saved] {meta_path}")

        if args.out_parquet:
            pq_path = base.with_name(base.name + "_reports.parquet")
            try:
                df.to_parquet(pq_path, index=False)
                print(f"[saved] {pq_path}")
            except ImportError as e:
                print(f"[warn] Failed to save Parquet ({e}); skip.")

    return 1 if summary["failed"] else 0


if __name__ == "__main__":
    sys.exit(main())
