#!/usr/bin/env python3
"""
Scenario Runner

Drives a scenario against a freshly deployed VariantPair and records one
Measurement per executed operation per variant.

Dispatch rules:
1. Every paired operation is a single Operation object applied to baseline
   first (fully resolved, receipt in hand) and then to optimized, so the two
   variants see the same calls with the same arguments in the same order
2. Estimate-mode operations run only after every earlier state-changing call
   of the scenario has been mined
3. A failed call records nothing and is not retried; the OperationError
   propagates with the variant and operation attached
4. Batch plans run N individual calls on baseline, then one batched call on
   optimized
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from basic_data_structure import CallMode, Comparison, ComparisonShape, Measurement, Operation, Variant
from execution_environment import ExecutionEnvironment
from harness_errors import OperationError
from variant_pair import VariantPair


@dataclass(frozen=True)
class BatchPlan:
    """N individual baseline calls compared against one batched optimized call."""
    label: str
    individual: Tuple[Operation, ...]
    batched: Operation

    def __post_init__(self):
        object.__setattr__(self, 'individual', tuple(
            op.for_variant(Variant.BASELINE) for op in self.individual
        ))
        object.__setattr__(self, 'batched', self.batched.for_variant(Variant.OPTIMIZED))


@dataclass(frozen=True)
class Scenario:
    name: str
    title: str
    operations: Tuple[Operation, ...] = ()
    setup: Tuple[Operation, ...] = ()
    shape: ComparisonShape = ComparisonShape.PER_OPERATION
    measure_deployment: bool = False
    batch: Optional[BatchPlan] = None
    description: str = ""

    def __post_init__(self):
        object.__setattr__(self, 'operations', tuple(self.operations))
        object.__setattr__(self, 'setup', tuple(self.setup))
        if (self.batch is not None) != (self.shape is ComparisonShape.BATCH_VS_SINGLE):
            raise ValueError(f"Scenario {self.name}: a batch plan requires shape BATCH_VS_SINGLE and vice versa")
        if self.batch is not None and self.measure_deployment:
            raise ValueError(f"Scenario {self.name}: deployment gas cannot be measured in a batch-vs-single scenario")
        for op in self.operations + self.setup:
            if op.target is not None:
                raise ValueError(f"Scenario {self.name}: paired operation {op.label} must not target one variant")


@dataclass
class ScenarioResult:
    scenario: Scenario
    measurements: List[Measurement] = field(default_factory=list)
    deployments: Tuple[Measurement, ...] = ()
    comparisons: List[Comparison] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.scenario.name

    def measurements_for(self, variant: Variant) -> List[Measurement]:
        return [m for m in self.measurements if m.variant is variant]

    def total_gas(self, variant: Variant) -> int:
        return sum(m.gas_used for m in self.measurements_for(variant))


class ScenarioRunner:
    """Applies operation sequences to a VariantPair and collects gas measurements."""

    def __init__(self, env: ExecutionEnvironment, pair: VariantPair, verbose: bool = False):
        self.env = env
        self.pair = pair
        self.verbose = verbose
        self.measurements: List[Measurement] = []

    def print_verbose(self, message: str):
        if self.verbose:
            print(message)

    def _gas_for(self, operation: Operation, variant: Variant) -> int:
        handle = self.pair.handle(variant)
        if operation.mode is CallMode.ESTIMATE:
            return self.env.estimate(handle, operation.function_id, operation.args, sender=operation.sender)
        receipt = self.env.call(
            handle, operation.function_id, operation.args,
            value=operation.value, sender=operation.sender,
        )
        return receipt['gasUsed']

    def measure(self, operation: Operation, variant: Variant) -> Measurement:
        """Execute (or estimate) one operation on one variant and return its measurement."""
        if operation.target is not None and operation.target is not variant:
            raise ValueError(f"{operation.label} targets {operation.target.value}, not {variant.value}")
        try:
            gas_used = self._gas_for(operation, variant)
        except OperationError as e:
            raise e.with_variant(variant, operation.label) from e
        measurement = Measurement(variant, operation.label, int(gas_used), operation.mode)
        self.print_verbose(f"    {variant.value:<9} {operation.label}: {measurement.gas_used:,} gas ({operation.mode.value})")
        return measurement

    def _record(self, operation: Operation, variant: Variant, record: bool) -> Measurement:
        measurement = self.measure(operation, variant)
        if record:
            self.measurements.append(measurement)
        return measurement

    def apply_to_both(self, operations: Sequence[Operation], record: bool = True) -> List[Tuple[Measurement, Measurement]]:
        """Apply each operation to baseline, then optimized, before moving to the next one."""
        pairs = []
        for operation in operations:
            if operation.target is not None:
                raise ValueError(f"{operation.label} is bound to {operation.target.value}; paired dispatch needs an unbound operation")
            before = self._record(operation, Variant.BASELINE, record)
            after = self._record(operation, Variant.OPTIMIZED, record)
            pairs.append((before, after))
        return pairs

    def run_batch(self, plan: BatchPlan) -> Tuple[List[Measurement], Measurement]:
        """Run the N individual baseline calls, then the single batched optimized call."""
        individual = [self._record(op, Variant.BASELINE, True) for op in plan.individual]
        batched = self._record(plan.batched, Variant.OPTIMIZED, True)
        return individual, batched

    def run(self, scenario: Scenario) -> ScenarioResult:
        self.measurements = []
        print(f"\n📊 {scenario.title}")
        if scenario.setup:
            self.print_verbose(f"  Setup: {len(scenario.setup)} operations on both variants")
            self.apply_to_both(scenario.setup, record=False)

        if scenario.measure_deployment:
            self.measurements.extend(self.pair.deployments)

        if scenario.batch is not None:
            self.run_batch(scenario.batch)
        else:
            self.apply_to_both(scenario.operations)

        return ScenarioResult(
            scenario=scenario,
            measurements=list(self.measurements),
            deployments=tuple(self.pair.deployments),
        )
