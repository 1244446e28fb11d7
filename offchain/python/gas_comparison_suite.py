#!/usr/bin/env python3
"""
Gas Comparison Suite

Runs marketplace scenarios against a baseline and an optimized contract:
1. Deploy a fresh VariantPair for the scenario
2. Drive the scenario with a ScenarioRunner
3. Reduce its measurements into comparisons

A failed scenario produces no comparison at all. The suite either stops
(stop_on_error) or records the failure and moves on to the next scenario,
which gets its own fresh pair.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence

from basic_data_structure import Comparison
from comparison_engine import compare_scenario
from execution_environment import ExecutionEnvironment
from harness_errors import GasHarnessError
from scenario_runner import Scenario, ScenarioResult, ScenarioRunner
from variant_pair import VariantDescriptor, deploy_variant_pair


@dataclass
class ScenarioFailure:
    scenario: Scenario
    error: GasHarnessError

    def __str__(self):
        return f"{self.scenario.name}: {self.error}"


@dataclass
class BenchmarkRun:
    results: List[ScenarioResult] = field(default_factory=list)
    failures: List[ScenarioFailure] = field(default_factory=list)
    started_at: datetime = field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None

    @property
    def succeeded(self) -> bool:
        return not self.failures

    def comparisons(self) -> List[Comparison]:
        return [c for result in self.results for c in result.comparisons]

    def metadata(self) -> dict:
        return {
            'started_at': self.started_at.isoformat(),
            'finished_at': self.finished_at.isoformat() if self.finished_at else None,
            'scenarios_run': [r.name for r in self.results],
            'scenarios_failed': [str(f) for f in self.failures],
        }


class GasComparisonSuite:
    """Deploys a fresh contract pair per scenario and compares their gas usage."""

    def __init__(self, env: ExecutionEnvironment, baseline: VariantDescriptor,
                 optimized: VariantDescriptor, deployer=None, verbose: bool = False):
        self.env = env
        self.baseline = baseline
        self.optimized = optimized
        self.deployer = deployer
        self.verbose = verbose

    def print_verbose(self, message: str):
        if self.verbose:
            print(message)

    def run_scenario(self, scenario: Scenario) -> ScenarioResult:
        """Run one scenario on a fresh pair. DeploymentError/OperationError propagate."""
        pair = deploy_variant_pair(self.env, self.baseline, self.optimized, sender=self.deployer)
        self.print_verbose(f"  Fresh pair: {pair.addresses()}")

        runner = ScenarioRunner(self.env, pair, verbose=self.verbose)
        result = runner.run(scenario)
        result.comparisons = compare_scenario(result)

        for comparison in result.comparisons:
            print(f"  {comparison.label}: {comparison.before:,} -> {comparison.after:,} gas "
                  f"(savings {comparison.delta:,}, {comparison.percentage}"
                  f"{'%' if comparison.is_computable else ''})")
        return result

    def run(self, scenarios: Sequence[Scenario], stop_on_error: bool = False) -> BenchmarkRun:
        print(f"{'=' * 60}")
        print(f"GAS COMPARISON: {self.baseline.contract_name} vs {self.optimized.contract_name}")
        print(f"{'=' * 60}")
        print(f"Scenarios: {', '.join(s.name for s in scenarios)}")

        run = BenchmarkRun()
        for scenario in scenarios:
            try:
                result = self.run_scenario(scenario)
            except GasHarnessError as e:
                print(f"  ❌ Scenario {scenario.name} failed: {e}")
                run.failures.append(ScenarioFailure(scenario, e))
                if stop_on_error:
                    break
                continue
            run.results.append(result)

        run.finished_at = datetime.now()
        status = "✅" if run.succeeded else "⚠️"
        print(f"\n{status} {len(run.results)} scenario(s) compared, {len(run.failures)} failed")
        return run
