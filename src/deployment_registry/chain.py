"""web3-backed chain client for deployment-registry library."""

import time
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import structlog
from eth_account.signers.local import LocalAccount
from web3 import Web3

from .exceptions import TransactionFailedError

logger = structlog.get_logger(__name__)


class Web3ChainClient:
    """Signs and submits deploy/call transactions from a single local account."""

    def __init__(
        self,
        w3: Web3,
        account: LocalAccount,
        abi: Optional[List[Dict[str, Any]]] = None,
        poll_interval: float = 3.0,
    ):
        """
        Initialize the client.

        Args:
            w3: Connected Web3 instance
            account: Deployment account (e.g. Account.from_key(...))
            abi: Contract ABI, needed to encode constructor/initializer arguments
            poll_interval: Seconds between block number polls while waiting for confirmations
        """
        self.w3 = w3
        self.account = account
        self.abi = abi or []
        self.poll_interval = poll_interval

    def _send(self, tx: Dict[str, Any]) -> Tuple[str, Dict[str, Any]]:
        signed = self.account.sign_transaction(tx)
        tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
        receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash)
        tx_hex = Web3.to_hex(tx_hash)

        if receipt["status"] != 1:
            raise TransactionFailedError(
                f"Transaction {tx_hex} reverted", {"block": receipt["blockNumber"]}
            )
        return tx_hex, receipt

    def _tx_params(self) -> Dict[str, Any]:
        return {
            "from": self.account.address,
            "nonce": self.w3.eth.get_transaction_count(self.account.address),
            "chainId": self.w3.eth.chain_id,
        }

    def deploy(
        self, bytecode: Union[str, bytes], constructor_args: Sequence[Any]
    ) -> Tuple[str, str]:
        """
        Deploy a contract and wait for its receipt.

        Returns:
            Tuple of (checksummed contract address, transaction hash)

        Raises:
            TransactionFailedError: If the deployment reverted
        """
        factory = self.w3.eth.contract(abi=self.abi, bytecode=bytecode)
        tx = factory.constructor(*constructor_args).build_transaction(self._tx_params())

        tx_hex, receipt = self._send(tx)
        address = Web3.to_checksum_address(receipt["contractAddress"])
        logger.debug("contract_deployed", address=address, tx=tx_hex)
        return address, tx_hex

    def call(self, address: str, fn: str, args: Sequence[Any]) -> Dict[str, Any]:
        """
        Send a state-changing call and wait for its receipt.

        Returns:
            Transaction receipt

        Raises:
            TransactionFailedError: If the call reverted
        """
        contract = self.w3.eth.contract(address=Web3.to_checksum_address(address), abi=self.abi)
        tx = contract.get_function_by_name(fn)(*args).build_transaction(self._tx_params())

        tx_hex, receipt = self._send(tx)
        logger.debug("contract_called", address=address, function=fn, tx=tx_hex)
        return receipt

    def wait_for_confirmations(self, tx: str, count: int) -> None:
        """
        Block until ``count`` blocks (inclusion block included) contain the transaction.

        No timeout: a stalled network keeps this waiting.
        """
        receipt = self.w3.eth.wait_for_transaction_receipt(tx)
        included_at = receipt["blockNumber"]

        while self.w3.eth.block_number - included_at + 1 < count:
            time.sleep(self.poll_interval)
