"""Shared pytest fixtures for deployment-registry tests."""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pytest

from deployment_registry.types import DeploymentRecord, SimpleDeployment, UpgradableDeployment

# Executable part of a tiny contract, followed by solc CBOR metadata (0x33 bytes)
CODE = "6080604052348015600f57600080fd5b50"
CODE_CHANGED = "6080604052348015601057600080fd5b50"


def with_metadata(code: str, ipfs_byte: str = "12") -> str:
    """Append a solc-style metadata block (ipfs hash + solc version) to code."""
    metadata = "a264697066735822" + ipfs_byte * 34 + "64736f6c6343" + "000804" + "0033"
    return "0x" + code + metadata


PROXY_ADDRESS = "0x" + "cc" * 20
IMPLEMENTATION_ADDRESS = "0x" + "bb" * 20
ADMIN = "0x822D71E46806081FA348aAB60A7b824B91e57825"


class FakeChainClient:
    """In-memory chain client recording every interaction."""

    def __init__(
        self,
        address: str = PROXY_ADDRESS,
        call_error: Optional[Exception] = None,
        wait_error: Optional[Exception] = None,
    ):
        self.address = address
        self.call_error = call_error
        self.wait_error = wait_error
        self.deployed: List[Tuple[Any, List[Any]]] = []
        self.calls: List[Tuple[str, str, List[Any]]] = []
        self.waits: List[Tuple[Any, int]] = []

    def deploy(self, bytecode: Any, constructor_args: Sequence[Any]) -> Tuple[str, str]:
        self.deployed.append((bytecode, list(constructor_args)))
        return self.address, "0x" + "ab" * 32

    def call(self, address: str, fn: str, args: Sequence[Any]) -> Dict[str, Any]:
        if self.call_error is not None:
            raise self.call_error
        self.calls.append((address, fn, list(args)))
        return {"status": 1}

    def wait_for_confirmations(self, tx: Any, count: int) -> None:
        if self.wait_error is not None:
            raise self.wait_error
        self.waits.append((tx, count))


@pytest.fixture
def bytecode() -> str:
    """Return compiled bytecode including a metadata block."""
    return with_metadata(CODE)


@pytest.fixture
def fixed_now() -> datetime:
    """Return the timestamp used as 'now' in pipeline tests."""
    return datetime(2022, 11, 21, 10, 12, 33, 512000, tzinfo=timezone.utc)


@pytest.fixture
def fake_chain() -> FakeChainClient:
    """Return a chain client that always succeeds."""
    return FakeChainClient()


@pytest.fixture
def deployments_dir(tmp_path: Path) -> Path:
    """Return a registry directory that does not exist yet."""
    return tmp_path / "deployments"


@pytest.fixture
def manifest_dir(tmp_path: Path) -> Path:
    """Create an empty upgrade manifest directory."""
    manifest_dir = tmp_path / ".openzeppelin"
    manifest_dir.mkdir(parents=True, exist_ok=True)
    return manifest_dir


@pytest.fixture
def write_manifest(manifest_dir: Path):
    """Return a helper writing {fingerprint: address} as an OpenZeppelin manifest."""

    def _write(name: str, impls: Dict[str, str]) -> Path:
        path = manifest_dir / f"{name}.json"
        data = {
            "manifestVersion": "3.2",
            "impls": {
                fingerprint: {"address": address, "txHash": "0x" + "01" * 32, "layout": {}}
                for fingerprint, address in impls.items()
            },
        }
        with open(path, "w") as f:
            json.dump(data, f, indent=2)
        return path

    return _write


@pytest.fixture
def simple_record() -> DeploymentRecord:
    """Return a non-upgradable deployment record."""
    return DeploymentRecord(
        tag="token-prod",
        address="0x" + "aa" * 20,
        version="0x" + "11" * 32,
        date="2022-11-20T09:00:00.000Z",
        args={"name": "Tribe", "symbol": "TRB"},
        kind=SimpleDeployment(),
    )


@pytest.fixture
def upgradable_record() -> DeploymentRecord:
    """Return an upgradable deployment record."""
    return DeploymentRecord(
        tag="tribe-prod",
        address=PROXY_ADDRESS,
        version="0x" + "22" * 32,
        date="2022-11-21T10:12:33.512Z",
        args={"_admin": ADMIN},
        kind=UpgradableDeployment(implementation=IMPLEMENTATION_ADDRESS),
    )
