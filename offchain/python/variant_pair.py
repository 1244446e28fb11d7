"""
Deployment of the baseline/optimized contract pair.

A pair is deployed fresh for every scenario and never reused, so storage
slots warmed by one scenario cannot lower the gas charged in another.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from basic_data_structure import DEPLOYMENT_LABEL, Measurement, Variant
from execution_environment import ContractArtifact, ExecutionEnvironment
from harness_errors import DeploymentError


@dataclass(frozen=True)
class VariantDescriptor:
    variant: Variant
    artifact: ContractArtifact
    constructor_args: Tuple[Any, ...] = ()

    @property
    def contract_name(self) -> str:
        return self.artifact.contract_name


@dataclass
class VariantPair:
    """Live baseline and optimized instances exposing the same operation surface."""
    baseline: Any
    optimized: Any
    deployments: Tuple[Measurement, ...] = field(default_factory=tuple)

    def handle(self, variant: Variant) -> Any:
        if variant is Variant.BASELINE:
            return self.baseline
        if variant is Variant.OPTIMIZED:
            return self.optimized
        raise ValueError(f"Unknown variant: {variant!r}")

    def addresses(self) -> Dict[str, Optional[str]]:
        return {
            Variant.BASELINE.value: getattr(self.baseline, 'address', None),
            Variant.OPTIMIZED.value: getattr(self.optimized, 'address', None),
        }


def _deploy_one(env: ExecutionEnvironment, descriptor: VariantDescriptor,
                sender: Optional[Any]) -> Tuple[Any, Measurement]:
    try:
        handle, gas_used = env.deploy(descriptor.artifact, descriptor.constructor_args, sender=sender)
    except DeploymentError as e:
        raise e.with_variant(descriptor.variant) from e
    return handle, Measurement(descriptor.variant, DEPLOYMENT_LABEL, gas_used)


def deploy_variant_pair(env: ExecutionEnvironment, baseline: VariantDescriptor,
                        optimized: VariantDescriptor, sender: Optional[Any] = None) -> VariantPair:
    """Deploy baseline then optimized; raises DeploymentError naming the failed variant."""
    if baseline.variant is not Variant.BASELINE or optimized.variant is not Variant.OPTIMIZED:
        raise ValueError("deploy_variant_pair expects a baseline and an optimized descriptor, in that order")

    baseline_handle, baseline_deployment = _deploy_one(env, baseline, sender)
    optimized_handle, optimized_deployment = _deploy_one(env, optimized, sender)

    return VariantPair(
        baseline=baseline_handle,
        optimized=optimized_handle,
        deployments=(baseline_deployment, optimized_deployment),
    )
