from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional, Tuple, Union

DEPLOYMENT_LABEL = "deployment"


class Variant(Enum):
    """The two contract implementations under comparison."""
    BASELINE = "baseline"
    OPTIMIZED = "optimized"


class CallMode(Enum):
    TRANSACTION = "transaction"   # mined, gas taken from the receipt
    ESTIMATE = "estimate"         # eth_estimateGas, no state change


class ComparisonShape(Enum):
    """How the measurements of a scenario are reduced into comparisons."""
    PER_OPERATION = "per_operation"
    AGGREGATE = "aggregate"
    BATCH_VS_SINGLE = "batch_vs_single"


@dataclass(frozen=True)
class Operation:
    """A contract call descriptor, dispatched unchanged to each variant it targets."""
    function_id: str
    args: Tuple[Any, ...] = ()
    value: Optional[int] = None
    sender: Optional[Any] = None
    mode: CallMode = CallMode.TRANSACTION
    target: Optional[Variant] = None
    label: Optional[str] = None

    def __post_init__(self):
        # Lists passed as args would make the descriptor mutable between variants
        object.__setattr__(self, 'args', tuple(self.args))
        if self.label is None:
            object.__setattr__(self, 'label', self.function_id)

    def for_variant(self, variant: Variant) -> "Operation":
        return replace(self, target=variant)

    def __repr__(self):
        return f"Op({self.label}{self.args}, mode={self.mode.value})"


@dataclass(frozen=True)
class Measurement:
    variant: Variant
    label: str
    gas_used: int
    mode: CallMode = CallMode.TRANSACTION

    def __post_init__(self):
        if isinstance(self.gas_used, bool) or not isinstance(self.gas_used, int):
            raise TypeError(f"gas_used must be an int, got {type(self.gas_used).__name__}")
        if self.gas_used < 0:
            raise ValueError(f"gas_used must be non-negative, got {self.gas_used}")


class NotComputable:
    """Marker for a savings percentage whose baseline gas is zero."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "NOT_COMPUTABLE"

    def __str__(self):
        return "n/a"

    def __bool__(self):
        return False


NOT_COMPUTABLE = NotComputable()


@dataclass(frozen=True)
class Comparison:
    label: str
    before: int
    after: int
    delta: int
    percentage: Union[int, NotComputable]
    shape: ComparisonShape = ComparisonShape.PER_OPERATION
    metadata: dict = field(default_factory=dict, compare=False)

    @property
    def is_computable(self) -> bool:
        return self.percentage is not NOT_COMPUTABLE

    @property
    def is_regression(self) -> bool:
        return self.delta < 0

    def to_dict(self) -> dict:
        return {
            'label': self.label,
            'shape': self.shape.value,
            'before': self.before,
            'after': self.after,
            'delta': self.delta,
            'percentage': self.percentage if self.is_computable else None,
        }
