"""Deployment pipelines: single EVM chain, Solana and multi-chain."""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Tuple

from solana.rpc.api import Client

from tokenbot import config, credentials, reporter, solana, utils
from tokenbot.evm import EVMClient
from tokenbot.exceptions import ConfigurationError, SolanaStepError, TokenBotError
from tokenbot.models import (
    ChainDeployment,
    DeploymentRecord,
    EVMCredential,
    NetworkConfig,
    SolanaCredential,
    SolanaMintState,
    TokenMetadata,
    utc_timestamp,
)
from tokenbot.recorder import DeploymentRecorder
from tokenbot.terminal import LineReader

ChainResult = Tuple[ChainDeployment, Optional[TokenMetadata]]


@dataclass
class MultichainOptions:
    network: str
    parallel: bool = False
    register_base: bool = False
    deploy_chain: Optional[str] = None


@dataclass
class MultichainResult:
    record: DeploymentRecord
    metadata: Dict[str, TokenMetadata] = field(default_factory=dict)


def _maybe_reset_fork(client: EVMClient) -> None:
    enabled, block_number = config.get_fork_settings()
    if enabled and config.is_local_network(client.network.name):
        client.reset_fork(config.get_rpc_endpoint("ethereum"), block_number)


def deploy_evm(
    network: NetworkConfig,
    credential: EVMCredential,
    recorder: DeploymentRecorder,
    contract_name: Optional[str] = None,
    client_factory: Callable[[NetworkConfig], EVMClient] = EVMClient,
) -> ChainResult:
    """
    Deploy the token to one EVM network and save its artifact.

    Returns:
        (deployment, metadata read back from the contract)
    """
    client = client_factory(network)
    _maybe_reset_fork(client)
    client.preflight(credential.address)

    deployment = client.deploy_token(credential, contract_name)
    metadata = client.get_token_metadata(deployment.address)
    reporter.print_token_metadata(metadata, network.display_name)

    payload = {
        "network": network.name,
        "chainId": network.chain_id,
        "deployer": credential.address,
        "timestamp": utc_timestamp(),
    }
    payload.update(deployment.to_dict())
    recorder.write_chain_artifact(f"{network.name}-{network.chain}", payload)
    return deployment, metadata


def deploy_solana(
    credential: SolanaCredential,
    recorder: DeploymentRecorder,
    resume: bool = False,
    client: Optional[Client] = None,
) -> ChainResult:
    """
    Create the SPL mint, saving the step state after every confirmed step.

    With ``resume`` the state saved by a previous failed run is loaded and
    completed steps are skipped.
    """
    rpc_url = config.get_solana_rpc_endpoint()
    cluster = config.resolve_solana_cluster(rpc_url)
    client = client or solana.connect(rpc_url)
    deployer = solana.SolanaDeployer(client, credential.keypair, cluster)
    artifact_name = recorder.solana_state_name(cluster)

    utils.info(f"Solana cluster: {cluster} ({rpc_url})")
    utils.info(f"Deployer: {credential.public_key}")
    deployer.get_balance()

    state = None
    if resume:
        state = recorder.load_solana_state(cluster)
        utils.info(f"Resuming from step: {state.next_step or 'none (already complete)'}")

    def save(current: SolanaMintState) -> None:
        recorder.write_chain_artifact(
            artifact_name,
            {
                "cluster": cluster,
                "deployer": credential.public_key,
                "timestamp": utc_timestamp(),
                "mintAddress": current.mint_address,
                "tokenAccount": current.associated_token_account,
                "decimals": config.SOLANA_DECIMALS,
                "state": current.to_dict(),
            },
        )

    try:
        state = deployer.run(state, on_step=save)
    except SolanaStepError as e:
        if e.state is not None:
            save(e.state)
        raise

    deployment = deployer.to_deployment(state)
    metadata = deployer.get_token_metadata(state)
    reporter.print_token_metadata(metadata, "Solana")
    return deployment, metadata


def _deploy_ethereum_family(
    network: NetworkConfig,
    credential: EVMCredential,
    recorder: DeploymentRecorder,
    register_base: bool,
    client_factory: Callable[[NetworkConfig], EVMClient],
) -> Dict[str, ChainResult]:
    results = {}
    deployment, metadata = deploy_evm(network, credential, recorder, client_factory=client_factory)
    results[network.chain] = (deployment, metadata)

    if not register_base or network.chain == "base":
        return results

    base_name = config.get_paired_base_network(network.name)
    base_network = config.resolve_network(base_name) if base_name else None
    if base_network is None or base_network.chain != "base":
        utils.warn(f"No Base network is paired with {network.display_name}, skipping L2 registration")
        return results

    client = client_factory(base_network)
    client.preflight(credential.address)
    results["base"] = (client.register_base_l2_token(credential, deployment.address), None)
    return results


def _deploy_solana_if_configured(recorder: DeploymentRecorder) -> Dict[str, ChainResult]:
    if not credentials.has_solana_credentials():
        utils.warn("Skipping Solana deployment (no SOLANA_PRIVATE_KEY or SOLANA_MNEMONIC)")
        return {}
    credential = credentials.resolve_solana_credential(generate_if_missing=False)
    return {"solana": deploy_solana(credential, recorder)}


def deploy_multichain(
    options: MultichainOptions,
    recorder: DeploymentRecorder,
    reader: Optional[LineReader] = None,
    client_factory: Callable[[NetworkConfig], EVMClient] = EVMClient,
    solana_task: Optional[Callable[[DeploymentRecorder], Dict[str, ChainResult]]] = None,
) -> MultichainResult:
    """
    Deploy to every chain selected by DEPLOY_CHAIN and record the addresses.

    Chains are independent: a failure on one chain does not stop the others.
    Successful chains are recorded before the first failure is re-raised.
    """
    deploy_chain = options.deploy_chain or config.get_deploy_chain()
    if deploy_chain not in config.DEPLOY_CHAIN_OPTIONS:
        raise ConfigurationError(
            f"DEPLOY_CHAIN must be one of {', '.join(config.DEPLOY_CHAIN_OPTIONS)}, got {deploy_chain!r}"
        )
    network = config.resolve_network(options.network)
    solana_task = solana_task or _deploy_solana_if_configured

    utils.rule("Multi-Chain Token Deployment")
    reporter.print_network_banner(network)
    utils.info(f"Chains: {deploy_chain}")

    tasks: Dict[str, Callable[[], Dict[str, ChainResult]]] = {}
    deployer = None
    if deploy_chain in ("all", "ethereum"):
        # Prompting must happen before any fan-out
        credential = credentials.resolve_evm_credential(reader)
        deployer = credential.address
        tasks["ethereum"] = lambda: _deploy_ethereum_family(
            network, credential, recorder, options.register_base, client_factory
        )
    if deploy_chain in ("all", "solana"):
        tasks["solana"] = lambda: solana_task(recorder)

    results: Dict[str, ChainResult] = {}
    errors: Dict[str, Exception] = {}

    if options.parallel and len(tasks) > 1:
        with ThreadPoolExecutor(max_workers=len(tasks)) as executor:
            futures = {name: executor.submit(task) for name, task in tasks.items()}
            for name, future in futures.items():
                try:
                    results.update(future.result())
                except Exception as e:
                    errors[name] = e
    else:
        for name, task in tasks.items():
            try:
                results.update(task())
            except Exception as e:
                errors[name] = e

    for name, error in errors.items():
        if isinstance(error, TokenBotError):
            utils.error(f"{name} deployment failed: {error}")
        else:
            utils.error(f"{name} deployment failed: {type(error).__name__}: {error}")

    if deployer is None and "solana" in results:
        deployer = results["solana"][0].extra.get("deployer")

    record = DeploymentRecord(
        network=network.name,
        chain_id=network.chain_id,
        mode=network.mode,
        deployer=deployer,
    )
    for chain in ("ethereum", "base", "solana"):
        record.set_contract(chain, results[chain][0] if chain in results else None)

    if results:
        recorder.write(record)

    metadata = {chain: item[1] for chain, item in results.items() if item[1] is not None}
    reporter.print_summary(record, metadata)

    if config.get_env_flag("REGISTER_WORMHOLE") and record.contracts.get("solana"):
        evm_deployment = record.contracts.get("ethereum")
        reporter.print_wormhole_instructions(
            record.contracts["solana"], evm_deployment.address if evm_deployment else None
        )

    reporter.print_next_steps(record)

    if errors:
        raise next(iter(errors.values()))
    return MultichainResult(record=record, metadata=metadata)
