"""Artifact, manifest and registry document parsers for deployment-registry library."""

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from .exceptions import InvalidArtifactError
from .types import DeploymentRecord, Registry, SimpleDeployment, UpgradableDeployment


def parse_hardhat_artifact(file_path: Path) -> Dict[str, Any]:
    """
    Parse a Hardhat compilation artifact.

    Args:
        file_path: Path to artifacts/{Source}.sol/{Contract}.json

    Returns:
        Dictionary with canonical field names:
        - Required: contract_name, abi, bytecode
        - Optional: source_name, deployed_bytecode

    Raises:
        InvalidArtifactError: If the artifact has no deployable bytecode
    """
    with open(file_path) as f:
        data = json.load(f)

    bytecode = data.get("bytecode")
    if not bytecode or bytecode == "0x":
        raise InvalidArtifactError(
            f"Missing bytecode in artifact (abstract contract?): {file_path}"
        )

    if "abi" not in data:
        raise InvalidArtifactError(f"Missing abi in artifact: {file_path}")

    result: Dict[str, Any] = {
        "contract_name": data.get("contractName") or Path(file_path).stem,
        "abi": data["abi"],
        "bytecode": bytecode,
    }

    # Extract optional fields if present
    if "sourceName" in data:
        result["source_name"] = data["sourceName"]
    if "deployedBytecode" in data:
        result["deployed_bytecode"] = data["deployedBytecode"]

    return result


def parse_upgrade_manifest(file_path: Path) -> Dict[str, Dict[str, Any]]:
    """
    Parse an OpenZeppelin upgrades manifest.

    Args:
        file_path: Path to .openzeppelin/{network}.json

    Returns:
        Dictionary mapping implementation fingerprint -> {"address", optional "tx_hash"}
    """
    with open(file_path) as f:
        data = json.load(f)

    result: Dict[str, Dict[str, Any]] = {}

    for fingerprint, impl in data.get("impls", {}).items():
        if "address" not in impl:
            continue

        entry: Dict[str, Any] = {"address": impl["address"]}
        if "txHash" in impl:
            entry["tx_hash"] = impl["txHash"]

        result[fingerprint] = entry

    return result


def record_to_dict(record: DeploymentRecord) -> Dict[str, Any]:
    """
    Serialize a deployment record to its registry document form.

    Keys absent from the record (untagged, or implementation of a simple
    deployment) are omitted rather than written as null.
    """
    data: Dict[str, Any] = {}
    if record.tag is not None:
        data["tag"] = record.tag

    data["address"] = record.address
    data["version"] = record.version
    data["date"] = record.date
    data["args"] = record.args
    data["isUpgradable"] = record.is_upgradable

    if record.implementation is not None:
        data["implementation"] = record.implementation

    return data


def record_from_dict(data: Mapping[str, Any]) -> DeploymentRecord:
    """
    Deserialize a registry document entry.

    Raises:
        KeyError: If a required field is missing
        ValueError: If an upgradable entry has no implementation
    """
    if data.get("isUpgradable"):
        implementation = data.get("implementation")
        if not implementation:
            raise ValueError(
                f"Upgradable deployment at {data.get('address')} has no implementation"
            )
        kind = UpgradableDeployment(implementation=implementation)
    else:
        kind = SimpleDeployment()

    return DeploymentRecord(
        address=data["address"],
        version=data["version"],
        date=data["date"],
        args=dict(data.get("args") or {}),
        kind=kind,
        tag=data.get("tag"),
    )


def parse_registry(data: Mapping[str, Any]) -> Registry:
    """Convert a registry document to contract type -> records."""
    registry: Registry = {}
    for contract_type, entries in data.items():
        registry[contract_type] = [record_from_dict(entry) for entry in entries]
    return registry


def serialize_registry(registry: Registry) -> Dict[str, List[Dict[str, Any]]]:
    """Convert a registry to its JSON document form, preserving order."""
    return {
        contract_type: [record_to_dict(record) for record in records]
        for contract_type, records in registry.items()
    }


def find_build_info(artifact_path: Path) -> Optional[Path]:
    """
    Locate the Hardhat build-info file for an artifact.

    Hardhat writes a sibling {Contract}.dbg.json whose ``buildInfo`` field is
    a path relative to the artifact directory.

    Returns:
        Path to the build-info JSON, or None if it cannot be found
    """
    artifact_path = Path(artifact_path)
    dbg_path = artifact_path.with_name(f"{artifact_path.stem}.dbg.json")
    if not dbg_path.exists():
        return None

    with open(dbg_path) as f:
        data = json.load(f)

    if "buildInfo" not in data:
        return None

    build_info = (artifact_path.parent / data["buildInfo"]).resolve()
    if not build_info.exists():
        return None
    return build_info


def parse_build_info(file_path: Path) -> Dict[str, Any]:
    """
    Parse a Hardhat build-info file.

    Args:
        file_path: Path to artifacts/build-info/{hash}.json

    Returns:
        Dictionary with compiler_version (explorer form, "v0.8.4+commit...")
        and standard_json_input

    Raises:
        InvalidArtifactError: If compiler version or input is missing
    """
    with open(file_path) as f:
        data = json.load(f)

    if "solcLongVersion" not in data or "input" not in data:
        raise InvalidArtifactError(
            f"Missing solcLongVersion or input in build info: {file_path}"
        )

    return {
        "compiler_version": f"v{data['solcLongVersion']}",
        "standard_json_input": data["input"],
    }


def constructor_input_types(abi: List[Dict[str, Any]]) -> List[str]:
    """Get the ABI types of a contract's constructor inputs (empty if none)."""
    for item in abi:
        if item.get("type") == "constructor":
            return [i["type"] for i in item.get("inputs", [])]
    return []
