"""Source verification against Etherscan-compatible explorers for deployment-registry library."""

import json
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

import requests
import structlog
from eth_abi import encode
from eth_abi.exceptions import EncodingError

from .exceptions import VerificationError
from .types import VerificationResult

logger = structlog.get_logger(__name__)


@dataclass
class VerificationSource:
    """Compiler input needed to verify one contract."""

    contract_name: str  # Fully qualified, e.g. "contracts/TribeStaking.sol:TribeStaking"
    compiler_version: str  # e.g. "v0.8.4+commit.c7e474f2"
    standard_json_input: Union[str, Dict[str, Any]]
    constructor_types: List[str] = field(default_factory=list)  # e.g. ["address", "uint256"]


class EtherscanVerifier:
    """
    Submits standard-JSON sources to an Etherscan-compatible API (Etherscan, BscScan).

    Every failure, including "already verified", is reported through the
    returned VerificationResult; nothing is retried.
    """

    def __init__(
        self,
        api_url: str,
        api_key: str,
        source: VerificationSource,
        session: Optional[requests.Session] = None,
        timeout: float = 30,
        status_checks: int = 10,
        status_interval: float = 5.0,
    ):
        """
        Initialize the verifier.

        Args:
            api_url: Explorer API endpoint (e.g. https://api.bscscan.com/api)
            api_key: Explorer API key
            source: Compiler input of the contract to verify
            session: HTTP session (defaults to a new requests.Session)
            timeout: Per-request timeout in seconds
            status_checks: Maximum number of verification status polls
            status_interval: Seconds between status polls
        """
        self.api_url = api_url
        self.api_key = api_key
        self.source = source
        self.session = session or requests.Session()
        self.timeout = timeout
        self.status_checks = status_checks
        self.status_interval = status_interval

    def _encode_constructor_args(self, constructor_args: Sequence[Any]) -> str:
        if not constructor_args:
            return ""
        if len(constructor_args) != len(self.source.constructor_types):
            raise VerificationError(
                f"Expected {len(self.source.constructor_types)} constructor arguments, "
                f"got {len(constructor_args)}"
            )
        try:
            return encode(self.source.constructor_types, list(constructor_args)).hex()
        except (EncodingError, TypeError, ValueError) as e:
            raise VerificationError(f"Cannot encode constructor arguments: {e}") from e

    def _request(self, method: str, data: Dict[str, Any]) -> str:
        """Perform an API request and return its ``result`` field."""
        try:
            if method == "POST":
                response = self.session.post(self.api_url, data=data, timeout=self.timeout)
            else:
                response = self.session.get(self.api_url, params=data, timeout=self.timeout)
        except requests.RequestException as e:
            raise VerificationError(f"Network error during verification: {e}") from e

        # Check for HTTP errors
        if response.status_code != 200:
            raise VerificationError(
                f"Verification request failed with status {response.status_code}"
            )

        try:
            body = response.json()
        except ValueError as e:
            raise VerificationError(f"Malformed explorer response: {e}") from e

        if not isinstance(body, dict):
            raise VerificationError(f"Malformed explorer response: {body!r}")
        if str(body.get("status")) != "1":
            raise VerificationError(f"Explorer error: {body.get('result') or body.get('message')}")

        result = body.get("result")
        if not isinstance(result, str):
            raise VerificationError(f"Malformed explorer response: missing result in {body!r}")
        return result

    def _submit(self, address: str, constructor_args: Sequence[Any]) -> str:
        source_code = self.source.standard_json_input
        if not isinstance(source_code, str):
            source_code = json.dumps(source_code)

        return self._request(
            "POST",
            {
                "apikey": self.api_key,
                "module": "contract",
                "action": "verifysourcecode",
                "contractaddress": address,
                "sourceCode": source_code,
                "codeformat": "solidity-standard-json-input",
                "contractname": self.source.contract_name,
                "compilerversion": self.source.compiler_version,
                # Misspelling is part of the explorer API
                "constructorArguements": self._encode_constructor_args(constructor_args),
            },
        )

    def _wait_for_status(self, guid: str) -> None:
        for _ in range(self.status_checks):
            try:
                result = self._request(
                    "GET",
                    {
                        "apikey": self.api_key,
                        "module": "contract",
                        "action": "checkverifystatus",
                        "guid": guid,
                    },
                )
            except VerificationError as e:
                if "pending" in str(e).lower():
                    time.sleep(self.status_interval)
                    continue
                raise

            if result.lower().startswith("pass"):
                return
            if "pending" not in result.lower():
                raise VerificationError(f"Verification failed: {result}")
            time.sleep(self.status_interval)

        raise VerificationError(f"Verification still pending after {self.status_checks} checks")

    def verify(self, address: str, constructor_args: Sequence[Any] = ()) -> VerificationResult:
        """
        Verify the source of a deployed contract.

        Args:
            address: Contract address to verify
            constructor_args: Constructor arguments the contract was deployed with

        Returns:
            VerificationResult, failed with a VerificationError on any problem
        """
        try:
            guid = self._submit(address, constructor_args)
            logger.debug("verification_submitted", address=address, guid=guid)
            self._wait_for_status(guid)
        except VerificationError as e:
            return VerificationResult.failed(e)

        logger.info("contract_verified", address=address)
        return VerificationResult.ok()
