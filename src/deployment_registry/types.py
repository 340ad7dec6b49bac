"""Data types and dataclasses for deployment-registry library."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple, Union

from .constants import DEFAULT_CONFIRMATIONS
from .exceptions import VerificationError


@dataclass(frozen=True)
class SimpleDeployment:
    """Non-upgradable deployment: the deployed address is the implementation."""

    pass


@dataclass(frozen=True)
class UpgradableDeployment:
    """Deployment behind a proxy, with the resolved logic contract address."""

    implementation: str  # Checksummed address


DeploymentKind = Union[SimpleDeployment, UpgradableDeployment]


@dataclass(frozen=True)
class DeploymentRecord:
    """One completed deployment event, as stored in the registry."""

    # Required fields
    address: str  # Checksummed address (the proxy for upgradable deployments)
    version: str  # Bytecode fingerprint
    date: str  # ISO-8601, e.g. "2022-11-21T10:12:33.512Z"
    args: Dict[str, Any]  # Submitted parameters, verbatim
    kind: DeploymentKind

    # Optional fields
    tag: Optional[str] = None

    @property
    def is_upgradable(self) -> bool:
        return isinstance(self.kind, UpgradableDeployment)

    @property
    def implementation(self) -> Optional[str]:
        if isinstance(self.kind, UpgradableDeployment):
            return self.kind.implementation
        return None


# Contract type name -> records, oldest first
Registry = Dict[str, List[DeploymentRecord]]


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of a source verification attempt."""

    verified: bool
    error: Optional[VerificationError] = None

    @property
    def warning(self) -> Optional[str]:
        if self.error is None:
            return None
        return f"Failed to verify contract: {self.error}"

    @classmethod
    def ok(cls) -> "VerificationResult":
        return cls(verified=True)

    @classmethod
    def failed(cls, error: VerificationError) -> "VerificationResult":
        return cls(verified=False, error=error)


@dataclass
class PipelineConfig:
    """Inputs for a single deployment pipeline run."""

    contract_type: str  # Registry key, e.g. "tribe"
    bytecode: Union[str, bytes]  # Creation bytecode of the logic contract
    network: str
    args: Dict[str, Any] = field(default_factory=dict)  # Ordered as the ABI expects
    tag: Optional[str] = None
    confirmations: int = DEFAULT_CONFIRMATIONS
    upgradable: bool = False
    initializer: Optional[str] = None  # e.g. "initialize"; deploy is bare when set
    verify: bool = True


@dataclass
class PipelineResult:
    """Outcome of a pipeline run that reached durable persistence."""

    network: str
    contract_type: str
    record: DeploymentRecord
    transaction: Any
    tag_matches: int = 0
    verification: Optional[VerificationResult] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        # A result only exists once the record has been persisted
        return True


class ChainClient(Protocol):
    """Chain client and signer used to submit transactions."""

    def deploy(self, bytecode: Union[str, bytes], constructor_args: Sequence[Any]) -> Tuple[str, Any]:
        ...

    def call(self, address: str, fn: str, args: Sequence[Any]) -> Any:
        ...

    def wait_for_confirmations(self, tx: Any, count: int) -> None:
        ...


class ManifestReader(Protocol):
    """Reads the upgrade manifest of a network: fingerprint -> {"address": ...}."""

    def __call__(self, network: str) -> Mapping[str, Mapping[str, Any]]:
        ...


class Verifier(Protocol):
    """Source verification service."""

    def verify(self, address: str, constructor_args: Sequence[Any]) -> VerificationResult:
        ...
