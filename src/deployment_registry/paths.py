"""Path management utilities for deployment-registry library."""

from pathlib import Path
from typing import Optional, Union

from .constants import NETWORK_CONFIG


def get_default_deployments_dir() -> Path:
    """
    Get default registry directory.

    Returns:
        Path to ./deployments
    """
    return Path.cwd() / "deployments"


def get_default_manifest_dir() -> Path:
    """
    Get default upgrade manifest directory (written by the OpenZeppelin upgrades plugins).

    Returns:
        Path to ./.openzeppelin
    """
    return Path.cwd() / ".openzeppelin"


def get_registry_path(
    network: str, deployments_root: Optional[Union[Path, str]] = None
) -> Path:
    """
    Get the registry document path for a network.

    Args:
        network: Network name (e.g. "bsc")
        deployments_root: Custom registry directory (defaults to ./deployments)

    Returns:
        Path to {deployments_root}/{network}.json
    """
    if deployments_root is None:
        deployments_root = get_default_deployments_dir()
    else:
        deployments_root = Path(deployments_root).absolute()

    return deployments_root / f"{network}.json"


def get_manifest_name(network: str, chain_id: Optional[int] = None) -> str:
    """
    Get the upgrade manifest file stem for a network.

    Known networks use their configured manifest name. Otherwise the
    OpenZeppelin convention ``unknown-{chain_id}`` is used when a chain id is
    given, and the network name as-is when not.
    """
    if network in NETWORK_CONFIG:
        return NETWORK_CONFIG[network]["manifest_name"]
    if chain_id is not None:
        return f"unknown-{chain_id}"
    return network


def get_manifest_path(
    network: str,
    manifest_root: Optional[Union[Path, str]] = None,
    chain_id: Optional[int] = None,
) -> Path:
    """
    Get the upgrade manifest path for a network.

    Args:
        network: Network name
        manifest_root: Custom manifest directory (defaults to ./.openzeppelin)
        chain_id: Chain id, used for networks without a configured manifest name

    Returns:
        Path to {manifest_root}/{manifest_name}.json
    """
    if manifest_root is None:
        manifest_root = get_default_manifest_dir()
    else:
        manifest_root = Path(manifest_root).absolute()

    return manifest_root / f"{get_manifest_name(network, chain_id)}.json"
