"""
Shared fixtures: an in-memory, deterministic marketplace chain.

InMemoryMarketplaceEnvironment implements the ExecutionEnvironment protocol
with fixed gas tables per contract, so every expected figure in the tests can
be worked out by hand. The first listing of a fresh contract pays an extra
cold-storage surcharge, which makes gas depend on prior state the way it does
on a real chain.
"""
import itertools

import matplotlib
matplotlib.use("Agg")

import pytest

import benchmark_config
from basic_data_structure import Variant
from execution_environment import ContractArtifact
from harness_errors import DeploymentError, OperationError
from variant_pair import VariantDescriptor

OWNER = "0x" + "11" * 20
SELLER = "0x" + "22" * 20
BUYER = "0x" + "33" * 20
ACCOUNTS = [OWNER, SELLER, BUYER]

COLD_LISTING_SURCHARGE = 20_000

BASELINE_GAS = {
    'deployment': 1_200_000,
    'listItem': 120_000,
    'buyItem': 65_000,
    'cancelListing': 30_000,
    'batchCancelListings': (30_000, 12_000),
    'getUserListings': (30_000, 5_000),
}

OPTIMIZED_GAS = {
    'deployment': 900_000,
    'listItem': 75_000,
    'buyItem': 48_000,
    'cancelListing': 22_000,
    'batchCancelListings': (26_000, 5_000),
    'getUserListings': (26_000, 2_500),
    'batchListItems': (40_000, 45_000),
}

BASELINE_ARTIFACT = ContractArtifact("NFTMarketplace_Before", abi=[], bytecode="0x6080")
OPTIMIZED_ARTIFACT = ContractArtifact("NFTMarketplace_After", abi=[], bytecode="0x6080")


class FakeMarketplace:
    def __init__(self, contract_name, address, gas_table):
        self.contract_name = contract_name
        self.address = address
        self.gas_table = gas_table
        self.listings = []    # [seller, token_id, price, active]

    def _require(self, condition, reason):
        if not condition:
            raise OperationError(f"execution reverted: {reason}")

    def _cost(self, function_id):
        if function_id not in self.gas_table:
            raise OperationError(f"function {function_id} not found in ABI", operation=function_id)
        return self.gas_table[function_id]

    def _active(self, listing_id):
        return 0 <= listing_id < len(self.listings) and self.listings[listing_id][3]

    def plan(self, function_id, args, value, sender):
        """Return (gas, apply) where apply() commits the state change."""
        cost = self._cost(function_id)

        if function_id == 'listItem':
            token_id, price = args
            self._require(price > 0, "Price must be greater than zero")
            gas = cost + (COLD_LISTING_SURCHARGE if not self.listings else 0)
            return gas, lambda: self.listings.append([sender, token_id, price, True])

        if function_id == 'batchListItems':
            token_ids, prices = args
            self._require(len(token_ids) == len(prices), "Length mismatch")
            self._require(all(p > 0 for p in prices), "Price must be greater than zero")
            base, per_item = cost
            gas = base + per_item * len(token_ids)

            def apply():
                for token_id, price in zip(token_ids, prices):
                    self.listings.append([sender, token_id, price, True])
            return gas, apply

        if function_id == 'buyItem':
            (listing_id,) = args
            self._require(self._active(listing_id), "Listing not active")
            self._require((value or 0) >= self.listings[listing_id][2], "Insufficient payment")
            return cost, lambda: self.listings[listing_id].__setitem__(3, False)

        if function_id == 'cancelListing':
            (listing_id,) = args
            self._require(self._active(listing_id), "Listing not active")
            self._require(self.listings[listing_id][0] == sender, "Not the seller")
            return cost, lambda: self.listings[listing_id].__setitem__(3, False)

        if function_id == 'batchCancelListings':
            (listing_ids,) = args
            for listing_id in listing_ids:
                self._require(self._active(listing_id), "Listing not active")
                self._require(self.listings[listing_id][0] == sender, "Not the seller")
            base, per_item = cost
            gas = base + per_item * len(listing_ids)

            def apply():
                for listing_id in listing_ids:
                    self.listings[listing_id][3] = False
            return gas, apply

        if function_id == 'getUserListings':
            (account,) = args
            base, per_item = cost
            count = sum(1 for seller, _, _, active in self.listings if seller == account and active)
            return base + per_item * count, lambda: None

        raise OperationError(f"function {function_id} not implemented", operation=function_id)


class InMemoryMarketplaceEnvironment:
    """Deterministic ExecutionEnvironment; records every call it receives."""

    def __init__(self, gas_tables=None, fail_deploy=(), revert_on=()):
        self.gas_tables = gas_tables or {
            BASELINE_ARTIFACT.contract_name: BASELINE_GAS,
            OPTIMIZED_ARTIFACT.contract_name: OPTIMIZED_GAS,
        }
        self.fail_deploy = set(fail_deploy)
        self.revert_on = set(revert_on)
        self.call_log = []
        self.deployed = []
        self._addresses = itertools.count(1)

    def accounts(self):
        return list(ACCOUNTS)

    def deploy(self, artifact, constructor_args=(), sender=None):
        self.call_log.append(('deploy', artifact.contract_name))
        if artifact.contract_name in self.fail_deploy:
            raise DeploymentError("out of gas", contract_name=artifact.contract_name)
        table = self.gas_tables[artifact.contract_name]
        address = "0x" + f"{next(self._addresses):040x}"
        contract = FakeMarketplace(artifact.contract_name, address, table)
        self.deployed.append(contract)
        return contract, table['deployment']

    def _check_forced_revert(self, handle, function_id):
        if (handle.contract_name, function_id) in self.revert_on:
            raise OperationError("execution reverted: forced", operation=function_id)

    def call(self, handle, function_id, args, value=None, sender=None):
        self.call_log.append(('call', handle.contract_name, function_id, tuple(args)))
        self._check_forced_revert(handle, function_id)
        gas, apply = handle.plan(function_id, args, value, sender)
        apply()
        return {'gasUsed': gas, 'status': 1}

    def estimate(self, handle, function_id, args, sender=None):
        self.call_log.append(('estimate', handle.contract_name, function_id, tuple(args)))
        self._check_forced_revert(handle, function_id)
        gas, _ = handle.plan(function_id, args, None, sender)
        return gas


@pytest.fixture
def env():
    return InMemoryMarketplaceEnvironment()


@pytest.fixture
def accounts():
    return list(ACCOUNTS)


@pytest.fixture
def baseline_descriptor():
    return VariantDescriptor(Variant.BASELINE, BASELINE_ARTIFACT)


@pytest.fixture
def optimized_descriptor():
    return VariantDescriptor(Variant.OPTIMIZED, OPTIMIZED_ARTIFACT)


@pytest.fixture(autouse=True)
def default_config():
    config = benchmark_config.reset_to_default_config()
    yield config
    benchmark_config.reset_to_default_config()
