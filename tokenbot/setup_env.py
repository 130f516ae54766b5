"""Interactive .env file generator."""

from pathlib import Path
from typing import Dict, Optional, Union

from tokenbot import credentials, utils
from tokenbot.exceptions import CredentialFormatError
from tokenbot.models import utc_timestamp
from tokenbot.terminal import LineReader

RPC_PROMPTS = [
    ("ETHEREUM_MAINNET_RPC", "Ethereum Mainnet RPC URL (default: https://eth.llamarpc.com): "),
    ("ETHEREUM_SEPOLIA_RPC", "Ethereum Sepolia RPC URL (default: https://ethereum-sepolia-rpc.publicnode.com): "),
    ("BASE_MAINNET_RPC", "Base Mainnet RPC URL (default: https://mainnet.base.org): "),
    ("BASE_SEPOLIA_RPC", "Base Sepolia RPC URL (default: https://sepolia.base.org): "),
]

EXPLORER_PROMPTS = [
    ("ETHERSCAN_API_KEY", "Etherscan API key (for contract verification): "),
    ("BASESCAN_API_KEY", "Basescan API key (for contract verification): "),
]

SOLANA_PROMPTS = [
    ("SOLANA_RPC_URL", "Solana RPC URL (default: https://api.devnet.solana.com): "),
]

ADVANCED_PROMPTS = [
    ("GAS_PRICE_GWEI", "Gas price in gwei (leave empty for auto): "),
    ("CONFIRMATIONS", "Deployment confirmations (default: 2): "),
    ("SLACK_WEBHOOK_URL", "Slack webhook URL for notifications (optional): "),
    ("DISCORD_WEBHOOK_URL", "Discord webhook URL for notifications (optional): "),
]


def render_env(values: Dict[str, str], example_text: Optional[str] = None) -> str:
    """
    Render .env content.

    When an example file is given its comments and ordering are kept and
    only keys with a collected value are written. Collected keys missing from
    the example are appended at the end.
    """
    lines = [
        "# TokenBot Environment Variables",
        "# Generated by tokenbot setup-env",
        f"# Date: {utc_timestamp()}",
        "",
    ]
    written = set()

    if example_text is not None:
        for line in example_text.splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                lines.append(line)
                continue
            key = stripped.split("=", 1)[0].strip()
            if values.get(key):
                lines.append(f"{key}={values[key]}")
                written.add(key)

    for key, value in values.items():
        if value and key not in written:
            lines.append(f"{key}={value}")

    return "\n".join(lines) + "\n"


def _ask(reader: LineReader, values: Dict[str, str], key: str, prompt: str) -> None:
    answer = reader.read_line(utils.bold_cyan(prompt))
    if answer:
        values[key] = answer


def _section(title: str) -> None:
    utils.echo()
    utils.echo(utils.bold_magenta(title))
    utils.echo("-" * len(title))


def collect_values(reader: LineReader) -> Dict[str, str]:
    """Prompt for every setting; empty answers are skipped."""
    values: Dict[str, str] = {}

    _section("Deployment Configuration")
    private_key = reader.read_line(
        utils.bold_yellow("Enter your deployer private key (input hidden): "), masked=True
    )
    if private_key:
        try:
            credential = credentials.parse_evm_private_key(private_key)
        except CredentialFormatError as e:
            utils.warn(f"{e}. DEPLOYER_PRIVATE_KEY not saved.")
        else:
            values["DEPLOYER_PRIVATE_KEY"] = credential.private_key[2:]
            utils.info(f"Deployer address: {credential.address}")

    _section("Network Configuration")
    if reader.confirm(utils.bold_cyan("Do you want to configure custom RPC endpoints? (y/N): ")):
        for key, prompt in RPC_PROMPTS:
            _ask(reader, values, key, prompt)

    _section("Block Explorer Configuration")
    for key, prompt in EXPLORER_PROMPTS:
        _ask(reader, values, key, prompt)

    _section("Solana Configuration")
    for key, prompt in SOLANA_PROMPTS:
        _ask(reader, values, key, prompt)

    if reader.confirm(utils.bold_cyan("Configure advanced options? (y/N): ")):
        _section("Advanced Options")
        for key, prompt in ADVANCED_PROMPTS:
            _ask(reader, values, key, prompt)

    return values


def run_setup(
    reader: Optional[LineReader] = None,
    env_path: Union[str, Path] = ".env",
    example_path: Union[str, Path] = ".env.example",
) -> bool:
    """
    Run the wizard and write the .env file.

    Returns:
        True if a file was written, False if the existing file was kept
    """
    reader = reader or LineReader()
    env_path = Path(env_path)
    example_path = Path(example_path)

    utils.echo(utils.bold_blue("TokenBot Environment Setup"))
    utils.echo("=" * 26)

    if env_path.exists():
        overwrite = reader.confirm(
            utils.bold_yellow(".env file already exists. Do you want to overwrite it? (y/N): ")
        )
        if not overwrite:
            utils.info("Keeping existing .env file")
            return False

    utils.info("This wizard will help you set up your environment variables")
    utils.echo(utils.dim("   Press Enter to skip any optional value"))

    values = collect_values(reader)
    example_text = example_path.read_text() if example_path.exists() else None

    utils.echo()
    utils.info("Generating .env file...")
    env_path.write_text(render_env(values, example_text))
    utils.success("Environment file created successfully!")
    utils.echo(utils.dim(f"   Location: {env_path.resolve()}"))

    utils.echo()
    utils.echo(utils.bold_yellow("Security Reminders:"))
    utils.echo("   1. Never commit your .env file to git")
    utils.echo("   2. Keep your private keys secure")
    utils.echo("   3. Use different keys for testnet and mainnet")
    utils.echo("   4. Consider using a hardware wallet for mainnet")

    utils.echo()
    utils.echo(utils.bold_cyan("Next Steps:"))
    utils.echo("   1. Review your .env file")
    utils.echo("   2. Test deployment on testnet first")
    utils.echo("   3. Run: tokenbot deploy --network sepolia")
    utils.echo("   4. Or: tokenbot deploy-multichain --network sepolia")
    return True
