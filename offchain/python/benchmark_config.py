#!/usr/bin/env python3
"""
Benchmark Configuration

One place for everything a gas comparison run needs to know: where the node
and artifacts are, which two contracts to compare, the prices and item
counts the marketplace scenarios use, and where results go.

A JSON file can override any field (see load_config_file).
"""

import json
from dataclasses import asdict, dataclass, fields
from decimal import Decimal

from eth_utils import to_wei


@dataclass
class BenchmarkConfig:
    """Configuration for a gas comparison run."""
    # Node and artifacts
    rpc_url: str = "http://127.0.0.1:8545"
    artifacts_dir: str = "../../artifacts"
    baseline_contract: str = "NFTMarketplace_Before"
    optimized_contract: str = "NFTMarketplace_After"
    receipt_timeout: int = 120

    # Scenario parameters
    listing_price_ether: str = "1.0"
    small_price_ether: str = "0.1"
    enumeration_items: int = 10       # listings created before getUserListings is estimated
    batch_cancel_items: int = 5
    batch_list_items: int = 10

    # Reporting
    gas_price_gwei: float = 20
    reports_dir: str = "./gas_reports"
    output_format: str = "text"       # text | table
    save_results: bool = True
    generate_charts: bool = True

    # Run control
    stop_on_error: bool = False
    verbose: bool = False

    @property
    def listing_price_wei(self) -> int:
        return to_wei(Decimal(self.listing_price_ether), 'ether')

    @property
    def small_price_wei(self) -> int:
        return to_wei(Decimal(self.small_price_ether), 'ether')

    def to_dict(self) -> dict:
        return asdict(self)


# Module-level configuration shared by the CLI and scenario catalogue
BENCHMARK_CONFIG = BenchmarkConfig()


def get_benchmark_config() -> BenchmarkConfig:
    return BENCHMARK_CONFIG


def set_benchmark_config(**kwargs) -> BenchmarkConfig:
    """Override fields of the current configuration; unknown keys are an error."""
    known = {f.name for f in fields(BenchmarkConfig)}
    for key, value in kwargs.items():
        if key not in known:
            raise AttributeError(f"Unknown benchmark setting: {key}")
        setattr(BENCHMARK_CONFIG, key, value)
    return BENCHMARK_CONFIG


def reset_to_default_config() -> BenchmarkConfig:
    global BENCHMARK_CONFIG
    BENCHMARK_CONFIG = BenchmarkConfig()
    return BENCHMARK_CONFIG


def load_config_file(path: str) -> BenchmarkConfig:
    """Apply overrides from a JSON object file to the current configuration."""
    with open(path, 'r') as f:
        overrides = json.load(f)
    if not isinstance(overrides, dict):
        raise ValueError(f"{path} must contain a JSON object")
    return set_benchmark_config(**overrides)
