"""Deployment summaries printed to the console."""

from typing import Dict, Iterable, List, Optional

from tokenbot import config, utils
from tokenbot.models import ChainDeployment, DeploymentRecord, NetworkConfig, TokenMetadata

CHAIN_LABELS = {
    "ethereum": "Ethereum L1",
    "base": "Base L2",
    "solana": "Solana",
}


def print_network_banner(network: NetworkConfig) -> None:
    """Print the selected network and its mode."""
    mode_color = utils.bold_red if network.mode == "mainnet" else utils.bold_yellow
    utils.echo()
    utils.echo(f"{utils.bold('Network:')} {network.display_name} ({network.name})")
    utils.echo(f"{utils.bold('Chain ID:')} {network.chain_id}")
    utils.echo(f"{utils.bold('Mode:')} {mode_color(network.mode.capitalize())}")


def print_token_metadata(metadata: TokenMetadata, label: str = "Token") -> None:
    """Print token metadata read back after deployment."""
    utils.echo()
    utils.echo(utils.bold_cyan(f"[{label}] Token Information"))
    utils.echo(f"Name:         {metadata.name}")
    utils.echo(f"Symbol:       {metadata.symbol}")
    utils.echo(f"Decimals:     {metadata.decimals}")
    utils.echo(f"Total Supply: {metadata.display_supply()} {metadata.symbol}")
    utils.echo(f"Owner:        {metadata.owner}")


def print_deployment(chain: str, deployment: Optional[ChainDeployment]) -> None:
    """Print one chain's deployment result."""
    label = CHAIN_LABELS.get(chain, chain)
    if deployment is None:
        utils.echo(f"{utils.bold(label + ':')} {utils.dim('not deployed')}")
        return

    utils.echo(f"{utils.bold(label + ':')} {utils.bold_yellow(deployment.address)}")
    if deployment.contract_name:
        utils.echo(f"  Contract: {deployment.contract_name}")
    if deployment.transaction_hash:
        utils.echo(f"  Transaction: {deployment.transaction_hash}")
    if deployment.block_number is not None:
        utils.echo(f"  Block: {deployment.block_number}")
    if deployment.gas_used is not None:
        utils.echo(f"  Gas Used: {deployment.gas_used:,}")
    if deployment.extra.get("tokenAccount"):
        utils.echo(f"  Token Account: {deployment.extra['tokenAccount']}")
    if deployment.explorer_url:
        utils.echo(f"  Explorer: {deployment.explorer_url}")


def print_summary(
    record: DeploymentRecord, metadata: Optional[Dict[str, TokenMetadata]] = None
) -> None:
    """Print the deployment summary for every chain in a record."""
    utils.rule("DEPLOYMENT SUMMARY")
    utils.echo(f"{utils.bold('Network:')} {record.network} ({record.mode})")
    if record.deployer:
        utils.echo(f"{utils.bold('Deployer:')} {record.deployer}")
    utils.echo(f"{utils.bold('Timestamp:')} {record.timestamp}")
    utils.echo()

    for chain, deployment in record.contracts.items():
        print_deployment(chain, deployment)

    for chain, item in (metadata or {}).items():
        print_token_metadata(item, CHAIN_LABELS.get(chain, chain))


def print_next_steps(record: DeploymentRecord) -> None:
    """Print follow-up commands for a finished deployment."""
    utils.echo()
    utils.echo(utils.bold("Next Steps:"))
    step = 1

    if not config.is_local_network(record.network) and record.contracts.get("ethereum"):
        utils.echo(f"{step}. Verify contracts:")
        utils.echo(f"   tokenbot verify-batch --network {record.network}")
        step += 1

    if record.contracts.get("ethereum") and not record.contracts.get("base"):
        utils.echo(f"{step}. Bridge to Base with the standard bridge:")
        utils.echo(f"   {config.BASE_BRIDGE_UI}")
        utils.echo("   or re-run with: tokenbot deploy-multichain --register-base")
        step += 1

    if record.contracts.get("solana"):
        utils.echo(f"{step}. Register the Solana mint with Wormhole:")
        utils.echo(f"   {config.WORMHOLE_PORTAL_URL}")


def print_wormhole_instructions(solana: ChainDeployment, evm_address: Optional[str] = None) -> None:
    """Print the manual Wormhole Portal registration steps."""
    utils.rule("WORMHOLE REGISTRATION")
    utils.echo("Wormhole attestation is done manually through the Portal:")
    utils.echo(f"1. Go to: {config.WORMHOLE_PORTAL_URL}")
    utils.echo("2. Select 'Token Attestation'")
    utils.echo("3. Source chain: Solana")
    utils.echo(f"4. Token mint: {utils.bold_yellow(solana.address)}")
    if evm_address:
        utils.echo(f"5. Target chain: Ethereum (existing token {evm_address})")
    else:
        utils.echo("5. Target chain: Ethereum")
    utils.echo("6. Submit the attestation and wait for confirmation")


def print_verification_summary(results: Iterable) -> List:
    """Print per-contract verification results; returns the failed ones."""
    results = list(results)
    failed = [item for item in results if not item.ok]

    utils.rule("VERIFICATION SUMMARY")
    for item in results:
        if item.ok:
            utils.success(f"{item.contract_name} ({item.address}): {item.status}")
        else:
            utils.error(f"{item.contract_name} ({item.address}): {item.message}")

    utils.echo()
    utils.echo(f"Verified: {len(results) - len(failed)}/{len(results)}")
    return failed
