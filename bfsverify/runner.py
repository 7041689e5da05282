# bfsverify/runner.py
from __future__ import annotations
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
from tqdm import tqdm

from .catalog import SANITY_CYCLE, SANITY_CYCLE_SIZE, SUITES
from .context import VerificationContext
from .corner import CornerCaseValidator
from .errors import VerificationError
from .model import NO_PREDECESSOR, Scenario
from .oracle import Outcome, ScenarioReport, TraversalOracle
from .service import status_name
from .stability import StabilityHarness

STABILITY_SUITES = {"stress", "synthetic-stress"}
ALL_SUITES = ["sanity", "correctness", "synthetic", "corner", "stress", "synthetic-stress"]


def cycle_answer(n: int):
    """Directed cycle from 0: distance i, predecessor i-1, none for vertex 0."""
    distances = np.arange(n, dtype=np.int32)
    predecessors = np.arange(-1, n - 1, dtype=np.int32)
    predecessors[0] = NO_PREDECESSOR
    return distances, predecessors


def _run_one(ctx: VerificationContext, suite: str, scenario: Scenario) -> ScenarioReport:
    if suite in STABILITY_SUITES:
        return StabilityHarness(ctx, suite).run(scenario)
    oracle = TraversalOracle(ctx, suite)
    if suite == "sanity" and scenario == SANITY_CYCLE:
        return oracle.run_known(scenario, *cycle_answer(SANITY_CYCLE_SIZE))
    return oracle.run(scenario)


def run_corner(ctx: VerificationContext, fail_fast: bool = False) -> List[ScenarioReport]:
    validator = CornerCaseValidator(ctx)
    reports = []
    for res in validator.run(raise_on_failure=fail_fast):
        outcome = Outcome.PASSED if res.passed else Outcome.FAILED
        msg = "" if res.passed else (res.detail or
                                     f"expected {res.expected}, got {status_name(res.status)}")
        if not res.passed:
            print(f"[fail] corner.{res.name}: {msg}", flush=True)
        reports.append(ScenarioReport(
            scenario_id=res.name, suite="corner", outcome=outcome,
            graph=validator.graph.name, source=0, n=validator.graph.n,
            nnz=validator.graph.nnz, message=msg,
        ))
    return reports


def run_suite(
    ctx: VerificationContext,
    suite: str,
    scenarios: Optional[Sequence[Scenario]] = None,
    fail_fast: bool = False,
) -> List[ScenarioReport]:
    """
    Run every scenario of a suite. Verification failures become FAILED rows
    carrying the full message (or propagate with ``fail_fast``); waived
    scenarios come back as WAIVED rows.
    """
    if suite == "corner":
        return run_corner(ctx, fail_fast)
    if scenarios is None:
        if suite not in SUITES:
            raise ValueError(f"unknown suite {suite!r}; choose from {sorted(SUITES)} or 'corner'")
        scenarios = SUITES[suite]

    reports: List[ScenarioReport] = []
    for scenario in tqdm(scenarios, desc=suite, disable=not ctx.config.verbose):
        try:
            reports.append(_run_one(ctx, suite, scenario))
        except VerificationError as e:
            if fail_fast:
                raise
            print(f"[fail] {suite}.{scenario.scenario_id}: {e}", flush=True)
            reports.append(ScenarioReport.for_scenario(scenario, suite, Outcome.FAILED,
                                                       message=str(e)))
    return reports


def reports_frame(reports: Sequence[ScenarioReport]) -> pd.DataFrame:
    columns = list(ScenarioReport.__dataclass_fields__)
    return pd.DataFrame([r.as_row() for r in reports], columns=columns)


def summarize(reports: Sequence[ScenarioReport]) -> Dict[str, int]:
    counts = {o.value: 0 for o in Outcome}
    for r in reports:
        counts[r.outcome.value] += 1
    counts["total"] = len(reports)
    return counts
