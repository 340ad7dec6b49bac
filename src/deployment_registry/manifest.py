"""Upgrade manifest lookups for deployment-registry library."""

import json
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from web3 import Web3

from .exceptions import ManifestResolutionError
from .parsers import parse_upgrade_manifest
from .paths import get_manifest_path
from .types import ManifestReader


def file_manifest_reader(
    manifest_root: Optional[Union[Path, str]] = None,
    chain_ids: Optional[Mapping[str, int]] = None,
) -> ManifestReader:
    """
    Create a manifest reader over OpenZeppelin manifest files.

    Args:
        manifest_root: Directory holding manifests (defaults to ./.openzeppelin)
        chain_ids: Chain ids for networks without a configured manifest name

    Returns:
        Function mapping network -> {fingerprint: {"address": ...}}

    Raises (from the returned function):
        ManifestResolutionError: If the manifest is missing or unreadable
    """
    chain_ids = dict(chain_ids or {})

    def read_manifest(network: str) -> Dict[str, Dict[str, Any]]:
        path = get_manifest_path(network, manifest_root, chain_ids.get(network))
        if not path.exists():
            raise ManifestResolutionError(
                f"Upgrade manifest not found at {path}", {"network": network}
            )
        try:
            return parse_upgrade_manifest(path)
        except (OSError, json.JSONDecodeError, AttributeError, KeyError, TypeError) as e:
            raise ManifestResolutionError(
                f"Cannot read upgrade manifest {path}: {e}", {"network": network}
            ) from e

    return read_manifest


class ProxyImplementationResolver:
    """Maps a logic fingerprint to the implementation address recorded by the upgrades tooling."""

    def __init__(self, manifest_reader: Optional[ManifestReader] = None):
        """
        Initialize the resolver.

        Args:
            manifest_reader: Manifest source; defaults to ./.openzeppelin files
        """
        if manifest_reader is None:
            manifest_reader = file_manifest_reader()
        self._read_manifest = manifest_reader

    def resolve(self, network: str, fingerprint: str) -> str:
        """
        Get the implementation address registered under a fingerprint.

        There is no fallback: recording the proxy address instead would
        corrupt the registry.

        Args:
            network: Network name
            fingerprint: Bytecode fingerprint (see versions.fingerprint_bytecode)

        Returns:
            Checksummed implementation address

        Raises:
            ManifestResolutionError: If the manifest has no entry for the fingerprint
        """
        manifest = self._read_manifest(network)
        entry = manifest.get(fingerprint)
        if entry is None:
            # Manifest keys are hex digests; tolerate a casing/prefix mismatch
            wanted = fingerprint.lower().removeprefix("0x")
            for key, value in manifest.items():
                if key.lower().removeprefix("0x") == wanted:
                    entry = value
                    break

        if entry is None or not entry.get("address"):
            raise ManifestResolutionError(
                f"No implementation registered for version {fingerprint}",
                {"network": network, "fingerprint": fingerprint},
            )

        try:
            return Web3.to_checksum_address(entry["address"])
        except ValueError as e:
            raise ManifestResolutionError(
                f"Invalid implementation address {entry['address']!r} for version {fingerprint}",
                {"network": network, "fingerprint": fingerprint},
            ) from e
