"""Main API for deployment-registry library."""

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import structlog
from eth_account import Account
from web3 import Web3

from .chain import Web3ChainClient
from .constants import DEFAULT_CONFIRMATIONS, DEPLOYER_KEY_ENV, NETWORK_CONFIG, UNTAGGED
from .exceptions import (
    InitializationError,
    InvalidBytecodeError,
    ManifestResolutionError,
    StoreIOError,
    TransactionFailedError,
    VerificationError,
)
from .manifest import ProxyImplementationResolver, file_manifest_reader
from .parsers import constructor_input_types, find_build_info, parse_build_info, parse_hardhat_artifact
from .store import DeploymentRecordStore
from .tags import count_tag_matches
from .types import (
    ChainClient,
    DeploymentKind,
    DeploymentRecord,
    PipelineConfig,
    PipelineResult,
    SimpleDeployment,
    UpgradableDeployment,
    VerificationResult,
    Verifier,
)
from .verification import EtherscanVerifier, VerificationSource
from .versions import fingerprint_bytecode


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_record_date(moment: datetime) -> str:
    """
    Format a timestamp the way records store it.

    Returns:
        ISO-8601 UTC with millisecond precision, e.g. "2022-11-21T10:12:33.512Z"
    """
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class DeploymentOrchestrator:
    """
    Runs the release pipeline for one contract deployment.

    deploy -> (initialize) -> fingerprint -> resolve implementation -> record
    -> check tag -> persist -> wait for confirmations -> verify

    Everything up to and including persistence is fatal on failure; waiting
    for confirmations and verification only ever produce warnings.
    """

    def __init__(
        self,
        chain: ChainClient,
        store: DeploymentRecordStore,
        resolver: Optional[ProxyImplementationResolver] = None,
        verifier: Optional[Verifier] = None,
        logger: Optional[Any] = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        """
        Initialize the orchestrator.

        Args:
            chain: Chain client/signer used to deploy, call and wait
            store: Registry store records are appended to
            resolver: Implementation resolver (required for upgradable deployments)
            verifier: Source verification service (verification is skipped when None)
            logger: structlog-style logger (defaults to this module's logger)
            clock: Source of the record timestamp
        """
        self.chain = chain
        self.store = store
        self.resolver = resolver
        self.verifier = verifier
        self._log = logger if logger is not None else structlog.get_logger(__name__)
        self._clock = clock

    def run(self, config: PipelineConfig) -> PipelineResult:
        """
        Deploy, record and verify a contract.

        Args:
            config: Pipeline inputs

        Returns:
            PipelineResult once the record is durably stored; confirmation and
            verification problems are listed in ``warnings``

        Raises:
            InitializationError: If the initializer call failed after deployment
            InvalidBytecodeError: If the bytecode cannot be fingerprinted
            ManifestResolutionError: If the implementation of an upgradable
                                     deployment cannot be resolved
            StoreIOError: If the registry cannot be read or written
            TransactionFailedError: If the chain client returned an invalid address
        """
        log = self._log.bind(network=config.network, contract_type=config.contract_type)
        context: Dict[str, Any] = {
            "network": config.network,
            "contract_type": config.contract_type,
        }
        values = list(config.args.values())
        constructor_args = [] if config.initializer else values

        # Deploy, then initialize when construction and initialization are split
        log.debug("deploying_contract", upgradable=config.upgradable)
        address, tx = self.chain.deploy(config.bytecode, constructor_args)
        try:
            address = Web3.to_checksum_address(address)
        except (TypeError, ValueError) as e:
            raise TransactionFailedError(
                f"Deployment returned an invalid address {address!r}: {e}",
                {**context, "transaction": tx},
            ) from e
        context["address"] = address
        log.info("contract_deployed", address=address, tx=tx)

        if config.initializer:
            try:
                self.chain.call(address, config.initializer, values)
            except Exception as e:
                log.error("initialization_failed", address=address, error=str(e))
                raise InitializationError(
                    f"Deployed instance at {address} could not be initialized with "
                    f"'{config.initializer}': {e}",
                    context,
                ) from e
            log.debug("contract_initialized", address=address, function=config.initializer)

        try:
            version = fingerprint_bytecode(config.bytecode)
        except InvalidBytecodeError as e:
            raise InvalidBytecodeError(e.message, {**context, **e.details}) from e
        context["fingerprint"] = version
        log.debug("implementation_version", version=version)

        kind = self._resolve_kind(config, version, context)

        record = DeploymentRecord(
            tag=config.tag,
            address=address,
            version=version,
            date=format_record_date(self._clock()),
            args=dict(config.args),
            kind=kind,
        )

        # Advisory only: never blocks persistence
        registry = self._guarded_store_call(self.store.load, context, config.network)
        check_tag = config.tag or UNTAGGED
        tag_matches = count_tag_matches(check_tag, registry.get(config.contract_type, []))
        warnings: List[str] = []
        if tag_matches:
            message = f"There are {tag_matches} deployments with the same tag of {check_tag}"
            log.warning("duplicate_tag", tag=check_tag, count=tag_matches)
            warnings.append(message)

        log.debug("registering_deployment", tag=check_tag)
        self._guarded_store_call(
            self.store.append, context, config.network, config.contract_type, record
        )
        log.info("deployment_persisted", address=address, version=version, tag=config.tag)

        result = PipelineResult(
            network=config.network,
            contract_type=config.contract_type,
            record=record,
            transaction=tx,
            tag_matches=tag_matches,
            warnings=warnings,
        )

        # Persisted: nothing below may fail the run
        self._wait_for_confirmations(config, tx, result, log)
        self._verify(config, record, constructor_args, result, log)
        return result

    def _resolve_kind(
        self, config: PipelineConfig, version: str, context: Dict[str, Any]
    ) -> DeploymentKind:
        if not config.upgradable:
            return SimpleDeployment()

        if self.resolver is None:
            raise ManifestResolutionError(
                "No implementation resolver configured for upgradable deployment", context
            )
        try:
            implementation = self.resolver.resolve(config.network, version)
        except ManifestResolutionError as e:
            raise ManifestResolutionError(e.message, {**context, **e.details}) from e
        return UpgradableDeployment(implementation=implementation)

    def _guarded_store_call(self, method: Callable[..., Any], context: Dict[str, Any], *args: Any) -> Any:
        try:
            return method(*args)
        except StoreIOError as e:
            self._log.error("registry_io_failed", error=e.message, **context)
            raise StoreIOError(e.message, {**e.details, **context}) from e

    def _wait_for_confirmations(
        self, config: PipelineConfig, tx: Any, result: PipelineResult, log: Any
    ) -> None:
        if config.confirmations <= 0:
            return

        log.debug("waiting_for_confirmations", count=config.confirmations)
        try:
            self.chain.wait_for_confirmations(tx, config.confirmations)
        except Exception as e:
            log.warning("confirmations_failed", error=str(e))
            result.warnings.append(f"Failed waiting for {config.confirmations} confirmations: {e}")

    def _verify(
        self,
        config: PipelineConfig,
        record: DeploymentRecord,
        constructor_args: List[Any],
        result: PipelineResult,
        log: Any,
    ) -> None:
        if not config.verify:
            return

        if self.verifier is None:
            log.warning("verification_skipped", reason="no verifier configured")
            result.warnings.append("Verification skipped: no verifier configured")
            return

        # The logic contract behind a proxy is deployed without constructor arguments
        if record.implementation is not None:
            target, target_args = record.implementation, []
        else:
            target, target_args = record.address, constructor_args

        log.debug("verifying_contract", address=target)
        try:
            verification = self.verifier.verify(target, target_args)
        except VerificationError as e:
            verification = VerificationResult.failed(e)
        except Exception as e:
            verification = VerificationResult.failed(VerificationError(str(e)))

        result.verification = verification
        if verification.warning:
            log.warning("verification_failed", address=target, error=str(verification.error))
            result.warnings.append(verification.warning)


def deploy_from_artifact(
    artifact_path: Union[Path, str],
    contract_type: str,
    network: str,
    args: Optional[Dict[str, Any]] = None,
    tag: Optional[str] = None,
    upgradable: bool = False,
    initializer: Optional[str] = None,
    confirmations: int = DEFAULT_CONFIRMATIONS,
    verify: bool = True,
    rpc_url: Optional[str] = None,
    private_key: Optional[str] = None,
    api_key: Optional[str] = None,
    deployments_root: Optional[Union[Path, str]] = None,
    manifest_root: Optional[Union[Path, str]] = None,
) -> PipelineResult:
    """
    Deploy a compiled Hardhat artifact and record it in the network registry.

    Args:
        artifact_path: Path to artifacts/{Source}.sol/{Contract}.json
        contract_type: Registry key (e.g. "tribe")
        network: Network name (e.g. "bsc")
        args: Constructor or initializer arguments, in ABI order
        tag: Human-readable label for the deployment
        upgradable: Whether the deployment sits behind an upgrade proxy
        initializer: Function called with ``args`` after a bare deploy
        confirmations: Confirmations to wait before verification
        verify: Whether to attempt source verification
        rpc_url: RPC URL (defaults to the network's RPC environment variable)
        private_key: Deployer key (defaults to $DEPLOYER_PRIVATE_KEY)
        api_key: Explorer API key (defaults to the network's API key variable)
        deployments_root: Registry directory (defaults to ./deployments)
        manifest_root: Upgrade manifest directory (defaults to ./.openzeppelin)

    Returns:
        PipelineResult of the run

    Raises:
        ValueError: If RPC URL or private key is missing
        InvalidArtifactError: If the artifact has no deployable bytecode
    """
    network_config = NETWORK_CONFIG.get(network, {})

    # Get configuration from environment if not provided
    if rpc_url is None and "default_rpc_env" in network_config:
        rpc_url = os.environ.get(network_config["default_rpc_env"])
    if private_key is None:
        private_key = os.environ.get(DEPLOYER_KEY_ENV)
    if api_key is None and "api_key_env" in network_config:
        api_key = os.environ.get(network_config["api_key_env"])

    if rpc_url is None:
        env_hint = network_config.get("default_rpc_env", "an RPC URL")
        raise ValueError(
            f"RPC URL required for network '{network}': set ${env_hint} or pass rpc_url"
        )
    if private_key is None:
        raise ValueError(
            f"Deployer key required: set ${DEPLOYER_KEY_ENV} or pass private_key"
        )

    artifact_path = Path(artifact_path)
    artifact = parse_hardhat_artifact(artifact_path)

    w3 = Web3(Web3.HTTPProvider(rpc_url))
    account = Account.from_key(private_key)
    chain = Web3ChainClient(w3, account, abi=artifact["abi"])

    chain_ids = {} if network in NETWORK_CONFIG else {network: w3.eth.chain_id}
    resolver = ProxyImplementationResolver(file_manifest_reader(manifest_root, chain_ids))

    verifier = None
    build_info = find_build_info(artifact_path)
    if verify and api_key and build_info is not None and "explorer_api_url" in network_config:
        compiler = parse_build_info(build_info)
        source_name = artifact.get("source_name", f"contracts/{artifact_path.parent.name}")
        verifier = EtherscanVerifier(
            network_config["explorer_api_url"],
            api_key,
            VerificationSource(
                contract_name=f"{source_name}:{artifact['contract_name']}",
                compiler_version=compiler["compiler_version"],
                standard_json_input=compiler["standard_json_input"],
                constructor_types=constructor_input_types(artifact["abi"]),
            ),
        )

    orchestrator = DeploymentOrchestrator(
        chain, DeploymentRecordStore(deployments_root), resolver, verifier
    )
    structlog.get_logger(__name__).debug(
        "deployment_account", network=network, account=account.address
    )

    return orchestrator.run(
        PipelineConfig(
            contract_type=contract_type,
            bytecode=artifact["bytecode"],
            network=network,
            args=dict(args or {}),
            tag=tag,
            confirmations=confirmations,
            upgradable=upgradable,
            initializer=initializer,
            verify=verify,
        )
    )
