"""
Configuration module for TokenBot.
Stores network parameters, RPC endpoints and explorer endpoints.
Supports environment variables with fallback to defaults.
"""

import os
from typing import Dict, List, Optional, Tuple
from dotenv import load_dotenv

from tokenbot.exceptions import ConfigurationError
from tokenbot.models import NetworkConfig

# Load environment variables from .env file if it exists
load_dotenv()


def get_env(key: str, default: str) -> str:
    """Get environment variable with fallback to default."""
    return os.getenv(key, default)


def get_env_flag(key: str) -> bool:
    """Return True when the environment variable is set to a truthy value."""
    return get_env(key, "").strip().lower() in ("1", "true", "yes", "on")


# Token constants baked into contracts/TokenBot.sol
TOKEN_NAME = "TokenBot"
TOKEN_SYMBOL = "TBOT"
TOTAL_SUPPLY_TOKENS = 1_000_000_000
EVM_DECIMALS = 18
SOLANA_DECIMALS = 9

LOCAL_CHAIN_ID = 31337
DEFAULT_NETWORK = "hardhat"

# Etherscan V2 serves every supported chain, selected by the chainid parameter
ETHERSCAN_V2_API = "https://api.etherscan.io/v2/api"

# Network table
# Structure: NETWORKS[network] = {chain_id, rpc, rpc_env, explorer, explorer_api, display_name, mode, chain}
NETWORKS: Dict[str, Dict[str, object]] = {
    "ethereum": {
        "chain_id": 1,
        "rpc": "https://eth.llamarpc.com",
        "rpc_env": ("ETHEREUM_MAINNET_RPC",),
        "explorer": "https://etherscan.io",
        "explorer_api": ETHERSCAN_V2_API,
        "display_name": "Ethereum Mainnet",
        "mode": "mainnet",
        "chain": "ethereum",
    },
    "sepolia": {
        "chain_id": 11155111,
        "rpc": "https://ethereum-sepolia-rpc.publicnode.com",
        "rpc_env": ("ETHEREUM_SEPOLIA_RPC",),
        "explorer": "https://sepolia.etherscan.io",
        "explorer_api": ETHERSCAN_V2_API,
        "display_name": "Ethereum Sepolia",
        "mode": "testnet",
        "chain": "ethereum",
    },
    "baseMainnet": {
        "chain_id": 8453,
        "rpc": "https://mainnet.base.org",
        "rpc_env": ("BASE_MAINNET_RPC",),
        "explorer": "https://basescan.org",
        "explorer_api": ETHERSCAN_V2_API,
        "display_name": "Base Mainnet",
        "mode": "mainnet",
        "chain": "base",
    },
    "baseSepolia": {
        "chain_id": 84532,
        "rpc": "https://sepolia.base.org",
        "rpc_env": ("BASE_SEPOLIA_RPC", "BASE_TESTNET_RPC"),
        "explorer": "https://sepolia.basescan.org",
        "explorer_api": ETHERSCAN_V2_API,
        "display_name": "Base Sepolia",
        "mode": "testnet",
        "chain": "base",
    },
    "hardhat": {
        "chain_id": LOCAL_CHAIN_ID,
        "rpc": "http://localhost:8545",
        "rpc_env": (),
        "explorer": None,
        "explorer_api": None,
        "display_name": "Local Development Node",
        "mode": "testnet",
        "chain": "ethereum",
    },
}

# Alternative names accepted on the command line
NETWORK_ALIASES: Dict[str, str] = {
    "mainnet": "ethereum",
    "baseTestnet": "baseSepolia",
    "localhost": "hardhat",
}

# L1 network -> Base network used by the multi-chain flow
PAIRED_BASE_NETWORKS: Dict[str, str] = {
    "ethereum": "baseMainnet",
    "sepolia": "baseSepolia",
    "hardhat": "hardhat",
}

# Explorer API key environment variable per chain family
EXPLORER_API_KEY_ENV: Dict[str, str] = {
    "ethereum": "ETHERSCAN_API_KEY",
    "base": "BASESCAN_API_KEY",
}

# Solana clusters
SOLANA_DEFAULT_RPC = "https://api.devnet.solana.com"
SOLANA_EXPLORER = "https://explorer.solana.com"

# External bridge endpoints, consumed as black boxes
BASE_BRIDGE_UI = "https://bridge.base.org"
WORMHOLE_PORTAL_URL = "https://portalbridge.com"
BASE_L2_TOKEN_FACTORY = "0x4200000000000000000000000000000000000012"
BASE_L2_STANDARD_BRIDGE = "0x4200000000000000000000000000000000000010"

DEPLOY_CHAIN_OPTIONS = ("all", "ethereum", "solana")

# Compiler settings shared by compilation and explorer verification
SOLC_VERSION = "0.8.20"
SOLC_OPTIMIZER_RUNS = 200
SOLC_EVM_VERSION = "paris"


def _canonical_name(network: str) -> str:
    return NETWORK_ALIASES.get(network, network)


def resolve_network(network: str, allow_fallback: bool = False) -> NetworkConfig:
    """
    Resolve a logical network name to its configuration.

    Args:
        network: Network name (e.g., "sepolia", "baseMainnet", "localhost")
        allow_fallback: Map unknown names to the local node instead of failing

    Returns:
        NetworkConfig with environment overrides applied

    Raises:
        ConfigurationError: If the network is unknown and fallback is disabled
    """
    name = _canonical_name(network)
    entry = NETWORKS.get(name)
    if entry is None:
        if not allow_fallback:
            known = ", ".join(list_networks())
            raise ConfigurationError(f"Unknown network: {network!r}. Known networks: {known}")
        name = DEFAULT_NETWORK
        entry = NETWORKS[DEFAULT_NETWORK]

    return NetworkConfig(
        name=name,
        chain_id=int(entry["chain_id"]),
        rpc_url=get_rpc_endpoint(name) or str(entry["rpc"]),
        explorer_url=entry["explorer"],
        explorer_api_url=entry["explorer_api"],
        display_name=str(entry["display_name"]),
        mode=str(entry["mode"]),
        chain=str(entry["chain"]),
        gas_price_gwei=get_gas_price_gwei(),
    )


def get_rpc_endpoint(network: str) -> Optional[str]:
    """
    Get RPC endpoint for a given network.

    Environment overrides are checked in order, the first non-empty one wins.

    Args:
        network: Network name (e.g., "sepolia", "baseMainnet")

    Returns:
        RPC endpoint URL as string, or None if not found
    """
    entry = NETWORKS.get(_canonical_name(network))
    if entry is None:
        return None
    for env_key in entry["rpc_env"]:
        value = get_env(env_key, "").strip()
        if value:
            return value
    return str(entry["rpc"])


def get_gas_price_gwei() -> Optional[float]:
    """Gas price override in gwei, or None to use the node's gas price."""
    raw = get_env("GAS_PRICE_GWEI", "").strip()
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"GAS_PRICE_GWEI must be a number, got {raw!r}")
    if value <= 0:
        raise ConfigurationError(f"GAS_PRICE_GWEI must be positive, got {raw!r}")
    return value


def get_deploy_chain() -> str:
    """Return the DEPLOY_CHAIN selection (all, ethereum or solana)."""
    value = get_env("DEPLOY_CHAIN", "all").strip().lower() or "all"
    if value not in DEPLOY_CHAIN_OPTIONS:
        raise ConfigurationError(
            f"DEPLOY_CHAIN must be one of {', '.join(DEPLOY_CHAIN_OPTIONS)}, got {value!r}"
        )
    return value


def get_fork_settings() -> Tuple[bool, Optional[int]]:
    """Return (enabled, block_number) for forking mainnet on the local node."""
    enabled = get_env_flag("FORK_ENABLED")
    raw_block = get_env("FORK_BLOCK_NUMBER", "").strip()
    if not raw_block:
        return enabled, None
    if not raw_block.isdigit():
        raise ConfigurationError(f"FORK_BLOCK_NUMBER must be an integer, got {raw_block!r}")
    return enabled, int(raw_block)


def get_explorer_api_key(network: str) -> Optional[str]:
    """
    Get the block explorer API key for a network.

    Args:
        network: Network name

    Returns:
        API key as string, or None if not configured
    """
    entry = NETWORKS.get(_canonical_name(network))
    if entry is None:
        return None
    env_key = EXPLORER_API_KEY_ENV.get(str(entry["chain"]))
    if not env_key:
        return None
    # Etherscan keys are valid for every chain on the V2 API
    return get_env(env_key, "").strip() or get_env("ETHERSCAN_API_KEY", "").strip() or None


def get_paired_base_network(network: str) -> Optional[str]:
    """Return the Base network paired with an L1 network."""
    return PAIRED_BASE_NETWORKS.get(_canonical_name(network))


def get_contract_name(network: str) -> str:
    """Contract deployed on a network: TokenBotL2 on Base, TokenBotL1 elsewhere."""
    entry = NETWORKS.get(_canonical_name(network))
    if entry is not None and entry["chain"] == "base":
        return "TokenBotL2"
    return "TokenBotL1"


def is_local_network(network: str) -> bool:
    """Return True for the local development node."""
    return _canonical_name(network) == DEFAULT_NETWORK


def get_solana_rpc_endpoint() -> str:
    """Get the Solana RPC endpoint."""
    return get_env("SOLANA_RPC_URL", SOLANA_DEFAULT_RPC).strip() or SOLANA_DEFAULT_RPC


def resolve_solana_cluster(rpc_url: str) -> str:
    """Infer the Solana cluster name from an RPC URL."""
    if "mainnet" in rpc_url:
        return "mainnet-beta"
    if "testnet" in rpc_url:
        return "testnet"
    return "devnet"


def get_solana_account_index() -> int:
    """Account index for Solana HD derivation."""
    raw = get_env("SOLANA_ACCOUNT_INDEX", "0").strip() or "0"
    if not raw.isdigit():
        raise ConfigurationError(f"SOLANA_ACCOUNT_INDEX must be a non-negative integer, got {raw!r}")
    return int(raw)


def list_networks() -> List[str]:
    """List all available network names."""
    return list(NETWORKS.keys())


def list_environments() -> List[str]:
    """List all available environment types."""
    return ["testnet", "mainnet"]


def get_network_display_name(network: str) -> str:
    """Human-readable network name."""
    entry = NETWORKS.get(_canonical_name(network))
    if entry is None:
        return network
    return str(entry["display_name"])
