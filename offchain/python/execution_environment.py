#!/usr/bin/env python3
"""
Execution Environment for Gas Comparison

The harness never talks to a chain directly. Everything goes through an
ExecutionEnvironment, which can:
1. Hand out account identities
2. Deploy contract bytecode and report the deployment gas
3. Execute a state-changing call and return its mined receipt
4. Estimate the gas of a call without committing state

Web3ExecutionEnvironment implements this against a Hardhat node over
JSON-RPC. Tests substitute an in-memory implementation.
"""

import glob
import json
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

from eth_utils import to_checksum_address
from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted, Web3Exception

from harness_errors import DeploymentError, OperationError

DEFAULT_HARDHAT_URL = "http://127.0.0.1:8545"


@dataclass(frozen=True)
class ContractArtifact:
    """Compiled contract as emitted by Hardhat (artifacts/contracts/X.sol/X.json)."""
    contract_name: str
    abi: tuple
    bytecode: str

    def __post_init__(self):
        object.__setattr__(self, 'abi', tuple(self.abi))

    @classmethod
    def from_dict(cls, artifact: Dict[str, Any], contract_name: Optional[str] = None) -> "ContractArtifact":
        name = contract_name or artifact.get('contractName')
        if not name:
            raise ValueError("Artifact has no contractName")
        if 'abi' not in artifact:
            raise ValueError(f"Artifact for {name} has no abi")
        bytecode = artifact.get('bytecode')
        if not bytecode or bytecode == '0x':
            raise ValueError(f"Artifact for {name} has no deployable bytecode (abstract contract or interface?)")
        return cls(contract_name=name, abi=artifact['abi'], bytecode=bytecode)


def load_contract_artifact(artifacts_dir: str, contract_name: str) -> ContractArtifact:
    """Find <contract_name>.json anywhere under the Hardhat artifacts directory and load it."""
    pattern = os.path.join(artifacts_dir, "**", f"{contract_name}.json")
    matches = sorted(
        path for path in glob.glob(pattern, recursive=True)
        if not path.endswith('.dbg.json')
    )
    if not matches:
        raise FileNotFoundError(
            f"No artifact for {contract_name} under {artifacts_dir}. Run `npx hardhat compile` first."
        )
    with open(matches[0], 'r') as f:
        artifact = json.load(f)
    return ContractArtifact.from_dict(artifact, contract_name)


class ExecutionEnvironment(Protocol):
    """Protocol every execution backend implements."""

    def accounts(self) -> List[Any]:
        ...

    def deploy(self, artifact: ContractArtifact, constructor_args: Sequence[Any] = (),
               sender: Optional[Any] = None) -> Tuple[Any, int]:
        """Deploy and return (instance handle, gas used). Raises DeploymentError."""
        ...

    def call(self, handle: Any, function_id: str, args: Sequence[Any],
             value: Optional[int] = None, sender: Optional[Any] = None) -> Dict[str, Any]:
        """Execute a state-changing call and return its receipt. Raises OperationError."""
        ...

    def estimate(self, handle: Any, function_id: str, args: Sequence[Any],
                 sender: Optional[Any] = None) -> int:
        """Estimate gas without committing state. Raises OperationError."""
        ...


def _revert_reason(exc: Exception) -> str:
    """Pull the most useful message out of a web3 / JSON-RPC error."""
    message = getattr(exc, 'message', None)
    if message:
        return str(message)
    if exc.args and isinstance(exc.args[0], dict):
        return str(exc.args[0].get('message', exc.args[0]))
    return str(exc) or exc.__class__.__name__


class Web3ExecutionEnvironment:
    """ExecutionEnvironment backed by a web3.py connection (Hardhat node)."""

    def __init__(self, web3: Web3, receipt_timeout: int = 120, verbose: bool = False):
        self.web3 = web3
        self.receipt_timeout = receipt_timeout
        self.verbose = verbose

    def print_verbose(self, message: str):
        if self.verbose:
            print(message)

    def accounts(self) -> List[Any]:
        return list(self.web3.eth.accounts)

    def _tx_params(self, value: Optional[int] = None, sender: Optional[Any] = None) -> Dict[str, Any]:
        params = {}
        if sender is not None:
            params['from'] = to_checksum_address(sender)
        if value:
            params['value'] = value
        return params

    def deploy(self, artifact: ContractArtifact, constructor_args: Sequence[Any] = (),
               sender: Optional[Any] = None) -> Tuple[Any, int]:
        factory = self.web3.eth.contract(abi=list(artifact.abi), bytecode=artifact.bytecode)
        try:
            tx_hash = factory.constructor(*constructor_args).transact(self._tx_params(sender=sender))
            receipt = self.web3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout)
        except (ContractLogicError, TimeExhausted, Web3Exception, ValueError) as e:
            raise DeploymentError(_revert_reason(e), contract_name=artifact.contract_name) from e

        if receipt.status != 1 or not receipt.contractAddress:
            raise DeploymentError("deployment transaction reverted", contract_name=artifact.contract_name)

        instance = self.web3.eth.contract(address=receipt.contractAddress, abi=list(artifact.abi))
        self.print_verbose(f"    {artifact.contract_name} deployed at {receipt.contractAddress} "
                           f"({receipt.gasUsed:,} gas)")
        return instance, receipt.gasUsed

    def _bound_function(self, handle: Any, function_id: str, args: Sequence[Any]):
        try:
            return handle.functions[function_id](*args)
        except (Web3Exception, AttributeError, TypeError) as e:
            raise OperationError(f"cannot bind {function_id}: {e}", operation=function_id) from e

    def call(self, handle: Any, function_id: str, args: Sequence[Any],
             value: Optional[int] = None, sender: Optional[Any] = None) -> Dict[str, Any]:
        bound = self._bound_function(handle, function_id, args)
        try:
            tx_hash = bound.transact(self._tx_params(value=value, sender=sender))
            receipt = self.web3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout)
        except (ContractLogicError, TimeExhausted, Web3Exception, ValueError) as e:
            raise OperationError(_revert_reason(e), operation=function_id) from e

        if receipt.status != 1:
            raise OperationError("transaction reverted", operation=function_id)
        return receipt

    def estimate(self, handle: Any, function_id: str, args: Sequence[Any],
                 sender: Optional[Any] = None) -> int:
        bound = self._bound_function(handle, function_id, args)
        try:
            return bound.estimate_gas(self._tx_params(sender=sender))
        except (ContractLogicError, Web3Exception, ValueError) as e:
            raise OperationError(_revert_reason(e), operation=function_id) from e


def setup_web3_connection(rpc_url: str = DEFAULT_HARDHAT_URL) -> Optional[Web3]:
    """Connect to a Hardhat node; returns None when the node is unreachable."""
    try:
        web3 = Web3(Web3.HTTPProvider(rpc_url))
        if web3.is_connected():
            web3.eth.default_account = web3.eth.accounts[0]
            print(f"✅ Connected to Hardhat at {rpc_url}")
            return web3
        print(f"⚠️  No node reachable at {rpc_url} - start one with: npx hardhat node")
        return None
    except Exception as e:
        print(f"⚠️  Web3 connection failed: {e}")
        return None
