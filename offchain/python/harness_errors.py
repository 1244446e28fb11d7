"""
Error types raised while deploying variants and driving scenarios.

Errors are never retried: a gas figure taken from a retried call is not
comparable with one taken from a clean run.
"""

from typing import Optional

from basic_data_structure import Variant


class GasHarnessError(Exception):
    """Base class for all harness errors."""


class DeploymentError(GasHarnessError):
    """A variant contract could not be deployed."""

    def __init__(self, reason: str, variant: Optional[Variant] = None, contract_name: Optional[str] = None):
        self.reason = reason
        self.variant = variant
        self.contract_name = contract_name
        super().__init__(self._format())

    def _format(self) -> str:
        who = self.variant.value if self.variant else "contract"
        if self.contract_name:
            who = f"{who} ({self.contract_name})"
        return f"Deployment of {who} failed: {self.reason}"

    def with_variant(self, variant: Variant) -> "DeploymentError":
        return DeploymentError(self.reason, variant=variant, contract_name=self.contract_name)


class OperationError(GasHarnessError):
    """A transactional or estimated call reverted or was rejected."""

    def __init__(self, reason: str, variant: Optional[Variant] = None, operation: Optional[str] = None):
        self.reason = reason
        self.variant = variant
        self.operation = operation
        super().__init__(self._format())

    def _format(self) -> str:
        where = self.operation or "call"
        if self.variant:
            where = f"{self.variant.value}.{where}"
        return f"{where} failed: {self.reason}"

    def with_variant(self, variant: Variant, operation: Optional[str] = None) -> "OperationError":
        return OperationError(self.reason, variant=variant, operation=operation or self.operation)
