"""
deployment-registry: Python library for deploying smart contracts and recording them per network
"""

from importlib.metadata import PackageNotFoundError, version

from .chain import Web3ChainClient
from .deployments import DeploymentOrchestrator, deploy_from_artifact
from .exceptions import (
    DeploymentError,
    InitializationError,
    InvalidArtifactError,
    InvalidBytecodeError,
    ManifestResolutionError,
    StoreIOError,
    TransactionFailedError,
    VerificationError,
)
from .manifest import ProxyImplementationResolver, file_manifest_reader
from .store import DeploymentRecordStore
from .tags import count_tag_matches
from .types import (
    DeploymentRecord,
    PipelineConfig,
    PipelineResult,
    SimpleDeployment,
    UpgradableDeployment,
    VerificationResult,
)
from .verification import EtherscanVerifier, VerificationSource
from .versions import fingerprint_bytecode

try:
    __version__ = version("deployment-registry")
except PackageNotFoundError:
    __version__ = None

__all__ = [
    "DeploymentOrchestrator",
    "deploy_from_artifact",
    "DeploymentRecordStore",
    "ProxyImplementationResolver",
    "file_manifest_reader",
    "Web3ChainClient",
    "EtherscanVerifier",
    "VerificationSource",
    "fingerprint_bytecode",
    "count_tag_matches",
    "DeploymentRecord",
    "SimpleDeployment",
    "UpgradableDeployment",
    "PipelineConfig",
    "PipelineResult",
    "VerificationResult",
    "DeploymentError",
    "InvalidBytecodeError",
    "InvalidArtifactError",
    "InitializationError",
    "ManifestResolutionError",
    "StoreIOError",
    "TransactionFailedError",
    "VerificationError",
]
