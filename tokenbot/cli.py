"""Main CLI interface for TokenBot."""

from __future__ import annotations

import argparse
import sys
import traceback
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from tokenbot import __version__, compiler, config, credentials, reporter, utils, verifier, workflow
from tokenbot.evm import EVMClient
from tokenbot.exceptions import ConfigurationError, TokenBotError, VerificationError
from tokenbot.models import ChainDeployment
from tokenbot.recorder import DEFAULT_DEPLOYMENTS_DIR, DeploymentRecorder
from tokenbot.setup_env import run_setup
from tokenbot.terminal import LineReader


def print_troubleshooting(hints: List[str]) -> None:
    """Print a troubleshooting checklist."""
    if not hints:
        return
    utils.echo()
    utils.echo(utils.bold("Troubleshooting:"))
    for hint in hints:
        utils.echo(f"  - {hint}")


def deploy_command(
    network_name: str,
    recorder: DeploymentRecorder,
    reader: Optional[LineReader] = None,
    contract_name: Optional[str] = None,
) -> None:
    """Deploy the token to a single EVM network."""
    network = config.resolve_network(network_name)
    utils.rule("TokenBot Deployment")
    reporter.print_network_banner(network)

    credential = credentials.resolve_evm_credential(reader)
    deployment, _ = workflow.deploy_evm(network, credential, recorder, contract_name)

    utils.rule("Deployment Successful")
    reporter.print_deployment(network.chain, deployment)
    if not config.is_local_network(network.name):
        utils.echo()
        utils.echo(utils.bold("Don't forget to verify your contract:"))
        utils.echo(f"   tokenbot verify --network {network.name} {deployment.address}")


def deploy_solana_command(recorder: DeploymentRecorder, resume: bool = False) -> None:
    """Create the SPL token on Solana."""
    utils.rule("TokenBot Solana Deployment")
    credential = credentials.resolve_solana_credential()
    deployment, _ = workflow.deploy_solana(credential, recorder, resume=resume)

    utils.rule("Deployment Successful")
    reporter.print_deployment("solana", deployment)
    if config.get_env_flag("REGISTER_WORMHOLE"):
        reporter.print_wormhole_instructions(deployment)


def deploy_multichain_command(
    network_name: str,
    recorder: DeploymentRecorder,
    reader: Optional[LineReader] = None,
    parallel: bool = False,
    register_base: bool = False,
) -> None:
    """Deploy to Ethereum (and optionally Base) plus Solana."""
    options = workflow.MultichainOptions(
        network=network_name, parallel=parallel, register_base=register_base
    )
    workflow.deploy_multichain(options, recorder, reader)


def verify_command(network_name: str, address: str, contract_name: Optional[str] = None) -> None:
    """Verify one deployed contract on the network's block explorer."""
    network = config.resolve_network(network_name)
    contract_name = contract_name or config.get_contract_name(network.name)
    utils.rule("Contract Verification")
    reporter.print_network_banner(network)

    result = verifier.verifier_for_network(network).verify(address, contract_name)
    utils.echo()
    utils.echo(f"{utils.bold('Status:')} {result.status}")
    utils.echo(f"View on explorer: {verifier.explorer_code_url(network.explorer_url, address)}")


def collect_verification_items(
    recorder: DeploymentRecorder, network_name: str
) -> List[Tuple[str, str]]:
    """(address, contract_name) pairs recorded for a network."""
    network = config.resolve_network(network_name)
    deployments = []
    try:
        record = recorder.read(network.name, network.mode)
        deployments = [record.contracts.get(network.chain)]
    except ConfigurationError:
        artifact = recorder.read_chain_artifact(f"{network.name}-{network.chain}")
        deployments = [ChainDeployment.from_dict(artifact)]

    return [
        (deployment.address, deployment.contract_name)
        for deployment in deployments
        if deployment and deployment.contract_name in compiler.CONTRACT_NAMES
    ]


def verify_batch_command(network_name: str, recorder: DeploymentRecorder) -> None:
    """Verify every recorded TokenBot contract for a network."""
    network = config.resolve_network(network_name)
    items = collect_verification_items(recorder, network.name)
    if not items:
        raise ConfigurationError(f"No recorded TokenBot contracts for {network.display_name}")

    utils.rule("Batch Contract Verification")
    reporter.print_network_banner(network)
    results = verifier.verify_batch(verifier.verifier_for_network(network), items)
    failed = reporter.print_verification_summary(results)
    for item in results:
        if item.ok:
            utils.echo(verifier.explorer_code_url(network.explorer_url, item.address))
    if failed:
        raise VerificationError(f"{len(failed)} of {len(results)} contract(s) failed verification")


class TokenBotCLI:
    """Interactive menu for TokenBot."""

    def __init__(
        self,
        environment: str = "testnet",
        recorder: Optional[DeploymentRecorder] = None,
        reader: Optional[LineReader] = None,
    ) -> None:
        self.environment = environment
        self.recorder = recorder or DeploymentRecorder()
        self.reader = reader or LineReader()
        self.actions: Dict[str, Tuple[str, Callable[[], None]]] = {
            "1": ("Deploy Token (Ethereum/Base)", self.deploy_token),
            "2": ("Deploy SPL Token (Solana)", self.deploy_solana),
            "3": ("Multi-Chain Deployment", self.deploy_multichain),
            "4": ("Verify Contract", self.verify_contract),
            "5": ("Verify Recorded Deployments", self.verify_recorded),
            "6": ("Show Token Info", self.show_token_info),
            "7": ("Setup .env File", self.setup_env),
            "0": ("Exit", self.exit_program),
        }
        self.should_exit = False

    def run(self) -> None:
        """Run the CLI main loop."""
        utils.print_banner()

        environment_display = "Mainnet" if self.environment == "mainnet" else "Testnet"
        env_color = utils.bold_red if self.environment == "mainnet" else utils.bold_yellow
        utils.echo()
        utils.echo(f"{utils.bold('Environment:')} {env_color(environment_display)}")
        utils.echo()

        while not self.should_exit:
            try:
                choice = self.prompt_main_menu()
                action = self.actions.get(choice)
                if action:
                    label, callback = action
                    utils.section_header(label)
                    try:
                        callback()
                    except TokenBotError as e:
                        utils.error(str(e))
                        print_troubleshooting(e.hints)
                    except KeyboardInterrupt:
                        utils.section_footer("Cancelled. Returning to main menu.")
                    except EOFError:
                        utils.section_footer("Received EOF. Exiting TokenBot.")
                        self.should_exit = True
                else:
                    utils.warn(f"Unknown choice: {choice!r}")
            except KeyboardInterrupt:
                utils.section_footer("Interrupted. Returning to main menu.")
            except EOFError:
                utils.echo("\nGoodbye!")
                break

    def prompt_main_menu(self) -> str:
        """Prompt for main menu choice."""
        menu_items = {key: label for key, (label, _) in self.actions.items()}
        utils.print_menu("TokenBot Main Menu", menu_items)
        return self.reader.read_line("Choose an option: ")

    def prompt_choice(self, title: str, options: List[str]) -> str:
        """Prompt user to choose from a list of options."""
        options_map = {str(index): option for index, option in enumerate(options, start=1)}
        reverse_map = {option.lower(): option for option in options}

        while True:
            utils.print_menu(title, list(options_map.items()))
            choice = self.reader.read_line("Choose an option: ")
            if not choice:
                continue
            if choice in options_map:
                return options_map[choice]
            normalized = choice.lower()
            if normalized in reverse_map:
                return reverse_map[normalized]
            utils.warn(f"Invalid choice: {choice!r}. Please try again.")

    def prompt_input(self, prompt: str, default: str = "") -> str:
        """Prompt for a value, returning the default when the answer is empty."""
        answer = self.reader.read_line(prompt)
        return answer if answer else default

    def networks_for_environment(self) -> List[str]:
        names = [
            name
            for name in config.list_networks()
            if config.NETWORKS[name]["mode"] == self.environment
        ]
        if self.environment == "testnet":
            # The local node is listed last
            names = [name for name in names if not config.is_local_network(name)]
            names.append(config.DEFAULT_NETWORK)
        return names

    def prompt_network(self) -> str:
        return self.prompt_choice("Select a target network", self.networks_for_environment())

    def wait_for_enter(self) -> None:
        self.reader.read_line("\nPress Enter to return to the main menu...")

    def deploy_token(self) -> None:
        """Deploy the token to an EVM network."""
        network = self.prompt_network()
        if self.environment == "mainnet" and not self.reader.confirm(
            utils.bold_red(f"Deploy to {config.get_network_display_name(network)}? (y/N): ")
        ):
            utils.info("Deployment cancelled")
            return
        deploy_command(network, self.recorder, self.reader)
        self.wait_for_enter()

    def deploy_solana(self) -> None:
        """Create the SPL token on Solana."""
        resume = self.reader.confirm("Resume a previous partial deployment? (y/N): ")
        deploy_solana_command(self.recorder, resume=resume)
        self.wait_for_enter()

    def deploy_multichain(self) -> None:
        """Deploy to every chain selected by DEPLOY_CHAIN."""
        network = self.prompt_choice(
            "Select the L1 network",
            [name for name in self.networks_for_environment() if name in config.PAIRED_BASE_NETWORKS],
        )
        register_base = self.reader.confirm("Register the token on Base L2? (y/N): ")
        parallel = self.reader.confirm("Deploy chains in parallel? (y/N): ")
        deploy_multichain_command(network, self.recorder, self.reader, parallel, register_base)
        self.wait_for_enter()

    def verify_contract(self) -> None:
        """Verify a contract address on its explorer."""
        network = self.prompt_network()
        address = self.reader.read_line("Enter contract address: ")
        if not address:
            utils.warn("Contract address is required")
            return
        contract_name = self.prompt_input(
            f"Contract name (default: {config.get_contract_name(network)}): ",
            config.get_contract_name(network),
        )
        verify_command(network, address, contract_name)
        self.wait_for_enter()

    def verify_recorded(self) -> None:
        """Verify every contract recorded for a network."""
        network = self.prompt_network()
        verify_batch_command(network, self.recorder)
        self.wait_for_enter()

    def show_token_info(self) -> None:
        """Read back token metadata from a deployed contract."""
        network_name = self.prompt_network()
        address = self.reader.read_line("Enter token contract address: ")
        if not address:
            utils.warn("Contract address is required")
            return
        network = config.resolve_network(network_name)
        metadata = EVMClient(network).get_token_metadata(address)
        utils.echo(f"Address: {address}")
        reporter.print_token_metadata(metadata, network.display_name)
        self.wait_for_enter()

    def setup_env(self) -> None:
        """Run the .env wizard."""
        run_setup(self.reader)

    def exit_program(self) -> None:
        """Exit the program."""
        utils.echo("\nExiting TokenBot. Goodbye!")
        self.should_exit = True


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tokenbot", description="TokenBot (TBOT) multi-chain deployment toolkit"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--testnet", action="store_true", help="Use testnet environment")
    parser.add_argument("--mainnet", action="store_true", help="Use mainnet environment")
    parser.add_argument(
        "--deployments-dir",
        default=DEFAULT_DEPLOYMENTS_DIR,
        help="Directory for deployment JSON files (default: deployments)",
    )

    subparsers = parser.add_subparsers(dest="command")

    deploy = subparsers.add_parser("deploy", help="Deploy the token to one EVM network")
    deploy.add_argument("--network", required=True, help="Network name (e.g. sepolia, baseSepolia)")
    deploy.add_argument(
        "--contract", choices=compiler.CONTRACT_NAMES, help="Contract to deploy (default by network)"
    )

    deploy_solana = subparsers.add_parser("deploy-solana", help="Create the SPL token on Solana")
    deploy_solana.add_argument(
        "--resume", action="store_true", help="Continue a partial deployment from its saved state"
    )

    multichain = subparsers.add_parser("deploy-multichain", help="Deploy to Ethereum, Base and Solana")
    multichain.add_argument("--network", required=True, help="L1 network name (e.g. sepolia)")
    multichain.add_argument("--parallel", action="store_true", help="Deploy chains concurrently")
    multichain.add_argument(
        "--register-base", action="store_true", help="Create the Base L2 token through the bridge factory"
    )

    verify = subparsers.add_parser("verify", help="Verify a contract on the block explorer")
    verify.add_argument("--network", required=True, help="Network name")
    verify.add_argument("address", help="Contract address")
    verify.add_argument("contract", nargs="?", help="Contract name (default by network)")

    verify_batch = subparsers.add_parser("verify-batch", help="Verify all recorded contracts")
    verify_batch.add_argument("--network", required=True, help="Network name")

    subparsers.add_parser("setup-env", help="Create a .env file interactively")
    return parser


def dispatch(args: argparse.Namespace, environment: str) -> None:
    recorder = DeploymentRecorder(args.deployments_dir)

    if args.command == "deploy":
        deploy_command(args.network, recorder, contract_name=args.contract)
    elif args.command == "deploy-solana":
        deploy_solana_command(recorder, resume=args.resume)
    elif args.command == "deploy-multichain":
        deploy_multichain_command(
            args.network, recorder, parallel=args.parallel, register_base=args.register_base
        )
    elif args.command == "verify":
        verify_command(args.network, args.address, args.contract)
    elif args.command == "verify-batch":
        verify_batch_command(args.network, recorder)
    elif args.command == "setup-env":
        run_setup()
    else:
        TokenBotCLI(environment, recorder).run()


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    if args.testnet and args.mainnet:
        utils.error("Cannot specify both --testnet and --mainnet")
        return 1

    environment = "mainnet" if args.mainnet else "testnet"

    try:
        dispatch(args, environment)
    except TokenBotError as e:
        utils.echo()
        utils.error(str(e))
        print_troubleshooting(e.hints)
        return 1
    except KeyboardInterrupt:
        utils.section_footer("Cancelled.")
        return 1
    except EOFError:
        utils.section_footer("No input available. Exiting.")
        return 1
    except Exception:
        utils.error("Unexpected error:")
        utils.echo(traceback.format_exc())
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
