"""Per-network deployment registry persistence for deployment-registry library."""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import structlog

from .exceptions import StoreIOError
from .parsers import parse_registry, record_to_dict
from .paths import get_default_deployments_dir, get_registry_path
from .types import DeploymentRecord, Registry

logger = structlog.get_logger(__name__)


class DeploymentRecordStore:
    """
    Append-only store of deployment records, one JSON document per network.

    Assumes a single writer per network: append is load-then-rewrite with no
    locking, so concurrent runs against one network must be serialized by the
    caller.
    """

    def __init__(self, deployments_root: Optional[Union[Path, str]] = None):
        """
        Initialize the store.

        Args:
            deployments_root: Directory holding {network}.json documents
                              If None, uses ./deployments
        """
        if deployments_root is None:
            deployments_root = get_default_deployments_dir()
        self.root = Path(deployments_root).absolute()

    def path_for(self, network: str) -> Path:
        """Get the registry document path for a network."""
        return get_registry_path(network, self.root)

    def load(self, network: str) -> Registry:
        """
        Load the registry for a network.

        A network that has never been deployed to yields an empty registry.
        The storage directory exists after this call.

        Args:
            network: Network name

        Returns:
            Mapping of contract type -> records, oldest first

        Raises:
            StoreIOError: If the directory cannot be created or the document
                          cannot be read or decoded
        """
        registry, _ = self._read(network)
        return registry

    def append(self, network: str, contract_type: str, record: DeploymentRecord) -> Registry:
        """
        Append a record and rewrite the network's registry atomically.

        Existing entries are written back exactly as they were read, including
        keys this library does not model.

        Args:
            network: Network name
            contract_type: Registry key (e.g. "tribe")
            record: Record to add at the end of the contract type's list

        Returns:
            The registry as persisted

        Raises:
            StoreIOError: If the registry cannot be read or written
        """
        registry, document = self._read(network)
        registry.setdefault(contract_type, []).append(record)
        document.setdefault(contract_type, []).append(record_to_dict(record))

        self._write(network, document)
        logger.debug(
            "registry_updated",
            network=network,
            contract_type=contract_type,
            count=len(registry[contract_type]),
        )
        return registry

    def _read(self, network: str) -> Tuple[Registry, Dict[str, Any]]:
        """Read a network document, returning the parsed registry and the raw document."""
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreIOError(
                f"Cannot create deployments directory {self.root}: {e}",
                {"network": network},
            ) from e

        path = self.path_for(network)
        if not path.exists():
            logger.debug("registry_initialized_empty", network=network, path=str(path))
            return {}, {}

        try:
            with open(path) as f:
                document = json.load(f)
            return parse_registry(document), document
        except (OSError, json.JSONDecodeError, AttributeError, KeyError, TypeError, ValueError) as e:
            raise StoreIOError(
                f"Cannot read deployment registry {path}: {e}", {"network": network}
            ) from e

    def _write(self, network: str, document: Dict[str, Any]) -> None:
        """Replace the network document in one step via a sibling temp file."""
        path = self.path_for(network)
        tmp_name = None
        try:
            with tempfile.NamedTemporaryFile(
                "w", dir=path.parent, prefix=f".{network}.", suffix=".tmp", delete=False
            ) as tmp:
                tmp_name = tmp.name
                json.dump(document, tmp, indent=2)
                tmp.write("\n")
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, path)
        except (OSError, TypeError, ValueError) as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StoreIOError(
                f"Cannot write deployment registry {path}: {e}", {"network": network}
            ) from e
