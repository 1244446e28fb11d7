"""
Reduction of paired gas measurements into Comparison records.

    delta      = before - after
    percentage = delta * 100 / before

The division truncates toward zero (-1 * 100 / 300 is 0%, not -1%).
A zero baseline yields NOT_COMPUTABLE.
"""

from decimal import Decimal
from typing import List, Sequence, Tuple, Union

from eth_utils import from_wei, to_wei

from basic_data_structure import (
    DEPLOYMENT_LABEL,
    NOT_COMPUTABLE,
    Comparison,
    ComparisonShape,
    Measurement,
    NotComputable,
    Variant,
)


def truncating_percentage(delta: int, before: int) -> Union[int, NotComputable]:
    if before == 0:
        return NOT_COMPUTABLE
    magnitude = abs(delta) * 100 // abs(before)
    return -magnitude if (delta < 0) != (before < 0) else magnitude


def compare(label: str, before: int, after: int,
            shape: ComparisonShape = ComparisonShape.PER_OPERATION, **metadata) -> Comparison:
    delta = before - after
    return Comparison(
        label=label,
        before=before,
        after=after,
        delta=delta,
        percentage=truncating_percentage(delta, before),
        shape=shape,
        metadata=metadata,
    )


def pair_measurements(baseline: Sequence[Measurement],
                      optimized: Sequence[Measurement]) -> List[Tuple[Measurement, Measurement]]:
    """Zip baseline and optimized measurements by position, checking they line up."""
    if len(baseline) != len(optimized):
        raise ValueError(
            f"Cannot pair {len(baseline)} baseline measurements with {len(optimized)} optimized ones"
        )
    pairs = []
    for index, (before, after) in enumerate(zip(baseline, optimized)):
        if before.variant is not Variant.BASELINE or after.variant is not Variant.OPTIMIZED:
            raise ValueError(f"Measurement #{index} is not a (baseline, optimized) pair")
        if before.label != after.label:
            raise ValueError(f"Measurement #{index} diverged: {before.label} vs {after.label}")
        pairs.append((before, after))
    return pairs


def compare_pairs(pairs: Sequence[Tuple[Measurement, Measurement]]) -> List[Comparison]:
    return [
        compare(before.label, before.gas_used, after.gas_used, mode=before.mode.value)
        for before, after in pairs
    ]


def rollup(pairs: Sequence[Tuple[Measurement, Measurement]], label: str = "total") -> Comparison:
    """One aggregate comparison over the summed gas of every pair."""
    before = sum(b.gas_used for b, _ in pairs)
    after = sum(a.gas_used for _, a in pairs)
    return compare(label, before, after, ComparisonShape.AGGREGATE, operations=len(pairs))


def compare_batch(individual: Sequence[Measurement], batched: Measurement, label: str) -> Comparison:
    """Sum of N individual baseline calls against one batched optimized call."""
    before = sum(m.gas_used for m in individual)
    return compare(label, before, batched.gas_used, ComparisonShape.BATCH_VS_SINGLE, items=len(individual))


def compare_scenario(result) -> List[Comparison]:
    """Reduce a ScenarioResult according to its scenario's comparison shape."""
    scenario = result.scenario
    baseline = result.measurements_for(Variant.BASELINE)
    optimized = result.measurements_for(Variant.OPTIMIZED)

    if scenario.shape is ComparisonShape.BATCH_VS_SINGLE:
        if len(optimized) != 1:
            raise ValueError(f"Batch scenario {scenario.name} expects exactly one optimized measurement")
        return [compare_batch(baseline, optimized[0], scenario.batch.label)]

    pairs = pair_measurements(baseline, optimized)
    if scenario.shape is ComparisonShape.AGGREGATE:
        deployment = [p for p in pairs if p[0].label == DEPLOYMENT_LABEL]
        flow = [p for p in pairs if p[0].label != DEPLOYMENT_LABEL]
        return compare_pairs(deployment) + [rollup(flow, label=scenario.name)]
    return compare_pairs(pairs)


def savings_in_ether(delta: int, gas_price_gwei: Union[int, float, str, Decimal]) -> str:
    """Signed ether value of a gas delta at the given gas price."""
    wei = abs(delta) * to_wei(gas_price_gwei, 'gwei')
    if wei == 0:
        return "0"
    ether = from_wei(wei, 'ether')
    sign = "-" if delta < 0 else ""
    return f"{sign}{ether:f}"
