"""
Tests for the web3-backed execution environment and artifact loading.

web3 objects are replaced with mocks; no node is needed.
"""
import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from web3.exceptions import ContractLogicError, TimeExhausted

from execution_environment import ContractArtifact, Web3ExecutionEnvironment, load_contract_artifact
from harness_errors import DeploymentError, OperationError

SENDER = "0x" + "ab" * 20
ARTIFACT = ContractArtifact("NFTMarketplace_Before", abi=[{"type": "constructor", "inputs": []}], bytecode="0x6080")


def _receipt(status=1, gas_used=21_000, contract_address=None):
    return SimpleNamespace(status=status, gasUsed=gas_used, contractAddress=contract_address)


@pytest.fixture
def web3():
    return MagicMock()


@pytest.fixture
def handle():
    return MagicMock()


# =============================================================================
# ARTIFACTS
# =============================================================================
class TestArtifacts:
    """Hardhat artifact loading."""

    def _write(self, root, name, payload):
        directory = root / "contracts" / f"{name}.sol"
        directory.mkdir(parents=True, exist_ok=True)
        (directory / f"{name}.json").write_text(json.dumps(payload))
        (directory / f"{name}.dbg.json").write_text(json.dumps({"buildInfo": "x"}))

    def test_load_finds_nested_artifact(self, tmp_path):
        self._write(tmp_path, "NFTMarketplace_After", {
            "contractName": "NFTMarketplace_After", "abi": [{"type": "function", "name": "listItem"}],
            "bytecode": "0x6080604052",
        })
        artifact = load_contract_artifact(str(tmp_path), "NFTMarketplace_After")
        assert artifact.contract_name == "NFTMarketplace_After"
        assert artifact.bytecode == "0x6080604052"
        assert artifact.abi[0]['name'] == "listItem"

    def test_missing_artifact(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_contract_artifact(str(tmp_path), "Nope")

    def test_artifact_without_bytecode_rejected(self, tmp_path):
        self._write(tmp_path, "IMarketplace", {"contractName": "IMarketplace", "abi": [], "bytecode": "0x"})
        with pytest.raises(ValueError):
            load_contract_artifact(str(tmp_path), "IMarketplace")

    def test_artifact_without_abi_rejected(self):
        with pytest.raises(ValueError):
            ContractArtifact.from_dict({"contractName": "X", "bytecode": "0x60"})


# =============================================================================
# WEB3 ENVIRONMENT
# =============================================================================
class TestWeb3Deploy:
    """Contract deployment through web3."""

    def test_deploy_returns_instance_and_gas(self, web3):
        factory, instance = MagicMock(), MagicMock()
        web3.eth.contract.side_effect = [factory, instance]
        factory.constructor.return_value.transact.return_value = b"\x01"
        web3.eth.wait_for_transaction_receipt.return_value = _receipt(gas_used=1_234_567, contract_address="0xC0")

        env = Web3ExecutionEnvironment(web3, receipt_timeout=5)
        handle, gas = env.deploy(ARTIFACT, (7,), sender=SENDER)

        assert handle is instance
        assert gas == 1_234_567
        factory.constructor.assert_called_once_with(7)
        tx_params = factory.constructor.return_value.transact.call_args[0][0]
        assert tx_params['from'].lower() == SENDER
        web3.eth.wait_for_transaction_receipt.assert_called_once_with(b"\x01", timeout=5)
        assert web3.eth.contract.call_args_list[1].kwargs['address'] == "0xC0"

    def test_reverted_deployment(self, web3):
        web3.eth.contract.return_value = MagicMock()
        web3.eth.wait_for_transaction_receipt.return_value = _receipt(status=0)
        with pytest.raises(DeploymentError) as excinfo:
            Web3ExecutionEnvironment(web3).deploy(ARTIFACT)
        assert excinfo.value.contract_name == "NFTMarketplace_Before"

    def test_deployment_rpc_error(self, web3):
        factory = MagicMock()
        web3.eth.contract.return_value = factory
        factory.constructor.return_value.transact.side_effect = ValueError({"code": -32000, "message": "insufficient funds"})
        with pytest.raises(DeploymentError, match="insufficient funds"):
            Web3ExecutionEnvironment(web3).deploy(ARTIFACT)


class TestWeb3Calls:
    """State-changing calls and estimates."""

    def test_call_returns_receipt(self, web3, handle):
        receipt = _receipt(gas_used=140_000)
        web3.eth.wait_for_transaction_receipt.return_value = receipt
        env = Web3ExecutionEnvironment(web3)

        result = env.call(handle, "buyItem", (0,), value=10**18, sender=SENDER)

        assert result is receipt
        handle.functions.__getitem__.assert_called_once_with("buyItem")
        bound = handle.functions.__getitem__.return_value
        bound.assert_called_once_with(0)
        tx_params = bound.return_value.transact.call_args[0][0]
        assert tx_params['value'] == 10**18

    def test_revert_reason_is_preserved(self, web3, handle):
        bound = handle.functions.__getitem__.return_value
        bound.return_value.transact.side_effect = ContractLogicError("execution reverted: Listing not active")
        with pytest.raises(OperationError) as excinfo:
            Web3ExecutionEnvironment(web3).call(handle, "buyItem", (0,))
        assert "Listing not active" in excinfo.value.reason
        assert excinfo.value.operation == "buyItem"

    def test_failed_receipt_is_operation_error(self, web3, handle):
        web3.eth.wait_for_transaction_receipt.return_value = _receipt(status=0)
        with pytest.raises(OperationError, match="reverted"):
            Web3ExecutionEnvironment(web3).call(handle, "cancelListing", (1,))

    def test_receipt_timeout_is_operation_error(self, web3, handle):
        web3.eth.wait_for_transaction_receipt.side_effect = TimeExhausted("timed out")
        with pytest.raises(OperationError):
            Web3ExecutionEnvironment(web3).call(handle, "listItem", (1, 1))

    def test_failed_call_is_not_retried(self, web3, handle):
        bound = handle.functions.__getitem__.return_value
        bound.return_value.transact.side_effect = ContractLogicError("execution reverted")
        with pytest.raises(OperationError):
            Web3ExecutionEnvironment(web3).call(handle, "listItem", (1, 1))
        assert bound.return_value.transact.call_count == 1

    def test_estimate(self, web3, handle):
        bound = handle.functions.__getitem__.return_value
        bound.return_value.estimate_gas.return_value = 80_000
        gas = Web3ExecutionEnvironment(web3).estimate(handle, "getUserListings", (SENDER,))
        assert gas == 80_000
        bound.return_value.estimate_gas.assert_called_once_with({})
        web3.eth.wait_for_transaction_receipt.assert_not_called()

    def test_estimate_revert(self, web3, handle):
        bound = handle.functions.__getitem__.return_value
        bound.return_value.estimate_gas.side_effect = ContractLogicError("execution reverted: nope")
        with pytest.raises(OperationError, match="nope"):
            Web3ExecutionEnvironment(web3).estimate(handle, "getUserListings", (SENDER,))

    def test_accounts(self, web3):
        web3.eth.accounts = [SENDER]
        assert Web3ExecutionEnvironment(web3).accounts() == [SENDER]
