"""Unit tests for the web3-backed chain client."""

from unittest.mock import MagicMock, PropertyMock

import pytest
from hexbytes import HexBytes
from web3 import Web3

from deployment_registry import chain as chain_module
from deployment_registry.chain import Web3ChainClient
from deployment_registry.exceptions import TransactionFailedError

DEPLOYER = "0x" + "11" * 20
CONTRACT = "0x" + "cc" * 20
TX_HASH = HexBytes("0x" + "ab" * 32)

ABI = [
    {"type": "constructor", "inputs": [{"name": "_admin", "type": "address"}]},
    {
        "type": "function",
        "name": "initialize",
        "inputs": [{"name": "_admin", "type": "address"}],
        "outputs": [],
        "stateMutability": "nonpayable",
    },
]


@pytest.fixture
def account():
    """Return a signer stand-in; signing itself is eth_account's concern."""
    account = MagicMock()
    account.address = DEPLOYER
    return account


@pytest.fixture
def w3():
    """Return a mocked Web3 whose transactions are mined successfully."""
    w3 = MagicMock()
    w3.eth.chain_id = 97
    w3.eth.get_transaction_count.return_value = 7
    w3.eth.send_raw_transaction.return_value = TX_HASH
    w3.eth.wait_for_transaction_receipt.return_value = {
        "status": 1,
        "blockNumber": 100,
        "contractAddress": CONTRACT,
    }
    return w3


class TestDeploy:
    """Test Web3ChainClient.deploy()."""

    def test_signs_and_sends_constructor_transaction(self, w3, account):
        """Test that the constructor transaction is built, signed and sent."""
        factory = w3.eth.contract.return_value
        factory.constructor.return_value.build_transaction.return_value = {
            "to": None,
            "data": "0x6080",
            "gas": 100000,
            "gasPrice": 10,
            "nonce": 7,
            "chainId": 97,
            "value": 0,
        }
        client = Web3ChainClient(w3, account, abi=ABI)

        address, tx = client.deploy("0x6080", ["0x" + "dd" * 20])

        w3.eth.contract.assert_called_once_with(abi=ABI, bytecode="0x6080")
        factory.constructor.assert_called_once_with("0x" + "dd" * 20)
        factory.constructor.return_value.build_transaction.assert_called_once_with(
            {"from": account.address, "nonce": 7, "chainId": 97}
        )
        w3.eth.send_raw_transaction.assert_called_once()
        assert address == Web3.to_checksum_address(CONTRACT)
        assert tx == Web3.to_hex(TX_HASH)

    def test_reverted_deployment_raises(self, w3, account):
        """Test that a reverted receipt raises TransactionFailedError."""
        w3.eth.wait_for_transaction_receipt.return_value = {
            "status": 0,
            "blockNumber": 100,
            "contractAddress": None,
        }
        client = Web3ChainClient(w3, account, abi=ABI)

        with pytest.raises(TransactionFailedError):
            client.deploy("0x6080", [])


class TestCall:
    """Test Web3ChainClient.call()."""

    def test_calls_function_by_name(self, w3, account):
        """Test that the named function is invoked with the given args."""
        client = Web3ChainClient(w3, account, abi=ABI)
        contract = w3.eth.contract.return_value

        receipt = client.call(CONTRACT, "initialize", ["0x" + "dd" * 20])

        w3.eth.contract.assert_called_once_with(address=Web3.to_checksum_address(CONTRACT), abi=ABI)
        contract.get_function_by_name.assert_called_once_with("initialize")
        contract.get_function_by_name.return_value.assert_called_once_with("0x" + "dd" * 20)
        account.sign_transaction.assert_called_once()
        assert receipt["status"] == 1

    def test_reverted_call_raises(self, w3, account):
        """Test that a reverted call raises TransactionFailedError."""
        w3.eth.wait_for_transaction_receipt.return_value = {"status": 0, "blockNumber": 101}
        client = Web3ChainClient(w3, account, abi=ABI)

        with pytest.raises(TransactionFailedError):
            client.call(CONTRACT, "initialize", ["0x" + "dd" * 20])


class TestWaitForConfirmations:
    """Test Web3ChainClient.wait_for_confirmations()."""

    def test_polls_until_enough_blocks(self, w3, account, monkeypatch):
        """Test that polling stops once the inclusion block has enough confirmations."""
        sleeps = []
        monkeypatch.setattr(chain_module.time, "sleep", sleeps.append)
        # Inclusion block 100: 5 confirmations reached at block 104
        type(w3.eth).block_number = PropertyMock(side_effect=[100, 102, 104])
        client = Web3ChainClient(w3, account, poll_interval=0.5)

        client.wait_for_confirmations("0xabc", 5)

        w3.eth.wait_for_transaction_receipt.assert_called_once_with("0xabc")
        assert sleeps == [0.5, 0.5]

    def test_already_confirmed(self, w3, account, monkeypatch):
        """Test that no polling happens when the block is deep enough."""
        sleeps = []
        monkeypatch.setattr(chain_module.time, "sleep", sleeps.append)
        type(w3.eth).block_number = PropertyMock(return_value=200)
        client = Web3ChainClient(w3, account)

        client.wait_for_confirmations("0xabc", 5)

        assert sleeps == []
