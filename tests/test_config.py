import pytest

from tokenbot import config
from tokenbot.exceptions import ConfigurationError


@pytest.mark.parametrize(
    "name, chain_id, chain, mode",
    [
        ("ethereum", 1, "ethereum", "mainnet"),
        ("sepolia", 11155111, "ethereum", "testnet"),
        ("baseMainnet", 8453, "base", "mainnet"),
        ("baseSepolia", 84532, "base", "testnet"),
        ("hardhat", 31337, "ethereum", "testnet"),
    ],
)
def test_resolve_network_static_table(name, chain_id, chain, mode):
    network = config.resolve_network(name)
    assert network.name == name
    assert network.chain_id == chain_id
    assert network.chain == chain
    assert network.mode == mode
    assert network.rpc_url


def test_resolve_network_aliases():
    assert config.resolve_network("baseTestnet").name == "baseSepolia"
    assert config.resolve_network("localhost").chain_id == 31337
    assert config.resolve_network("mainnet").name == "ethereum"


def test_resolve_network_unknown_fails_closed():
    with pytest.raises(ConfigurationError, match="Unknown network"):
        config.resolve_network("polygon")


def test_resolve_network_fallback_maps_to_local_node():
    network = config.resolve_network("polygon", allow_fallback=True)
    assert network.name == "hardhat"
    assert network.chain_id == 31337


def test_rpc_environment_override(monkeypatch):
    monkeypatch.setenv("ETHEREUM_SEPOLIA_RPC", "https://sepolia.example.org")
    assert config.resolve_network("sepolia").rpc_url == "https://sepolia.example.org"


def test_base_sepolia_accepts_legacy_testnet_variable(monkeypatch):
    monkeypatch.setenv("BASE_TESTNET_RPC", "https://legacy.example.org")
    assert config.get_rpc_endpoint("baseSepolia") == "https://legacy.example.org"

    monkeypatch.setenv("BASE_SEPOLIA_RPC", "https://sepolia.example.org")
    assert config.get_rpc_endpoint("baseTestnet") == "https://sepolia.example.org"


def test_network_urls():
    network = config.resolve_network("sepolia")
    assert network.address_url("0xabc") == "https://sepolia.etherscan.io/address/0xabc"
    assert network.tx_url("0x123") == "https://sepolia.etherscan.io/tx/0x123"
    assert config.resolve_network("hardhat").address_url("0xabc") is None


def test_gas_price_override(monkeypatch):
    assert config.get_gas_price_gwei() is None
    monkeypatch.setenv("GAS_PRICE_GWEI", "1.5")
    assert config.get_gas_price_gwei() == 1.5
    assert config.resolve_network("sepolia").gas_price_gwei == 1.5


@pytest.mark.parametrize("value", ["fast", "0", "-2"])
def test_gas_price_invalid(monkeypatch, value):
    monkeypatch.setenv("GAS_PRICE_GWEI", value)
    with pytest.raises(ConfigurationError):
        config.get_gas_price_gwei()


def test_deploy_chain(monkeypatch):
    assert config.get_deploy_chain() == "all"
    monkeypatch.setenv("DEPLOY_CHAIN", "Solana")
    assert config.get_deploy_chain() == "solana"
    monkeypatch.setenv("DEPLOY_CHAIN", "polygon")
    with pytest.raises(ConfigurationError):
        config.get_deploy_chain()


def test_fork_settings(monkeypatch):
    assert config.get_fork_settings() == (False, None)
    monkeypatch.setenv("FORK_ENABLED", "true")
    monkeypatch.setenv("FORK_BLOCK_NUMBER", "19000000")
    assert config.get_fork_settings() == (True, 19000000)
    monkeypatch.setenv("FORK_BLOCK_NUMBER", "latest")
    with pytest.raises(ConfigurationError):
        config.get_fork_settings()


def test_explorer_api_key_by_chain(monkeypatch):
    monkeypatch.setenv("ETHERSCAN_API_KEY", "eth-key")
    monkeypatch.setenv("BASESCAN_API_KEY", "base-key")
    assert config.get_explorer_api_key("sepolia") == "eth-key"
    assert config.get_explorer_api_key("baseMainnet") == "base-key"
    assert config.get_explorer_api_key("unknown") is None


def test_explorer_api_uses_etherscan_v2_for_every_chain(monkeypatch):
    monkeypatch.setenv("ETHERSCAN_API_KEY", "eth-key")
    assert config.get_explorer_api_key("baseSepolia") == "eth-key"
    for name in ("ethereum", "sepolia", "baseMainnet", "baseSepolia"):
        assert config.resolve_network(name).explorer_api_url == "https://api.etherscan.io/v2/api"
    assert config.resolve_network("hardhat").explorer_api_url is None


def test_contract_name_and_pairing():
    assert config.get_contract_name("sepolia") == "TokenBotL1"
    assert config.get_contract_name("baseTestnet") == "TokenBotL2"
    assert config.get_paired_base_network("sepolia") == "baseSepolia"
    assert config.get_paired_base_network("ethereum") == "baseMainnet"


@pytest.mark.parametrize(
    "url, cluster",
    [
        ("https://api.mainnet-beta.solana.com", "mainnet-beta"),
        ("https://api.testnet.solana.com", "testnet"),
        ("https://api.devnet.solana.com", "devnet"),
        ("http://localhost:8899", "devnet"),
    ],
)
def test_resolve_solana_cluster(url, cluster):
    assert config.resolve_solana_cluster(url) == cluster


def test_solana_defaults(monkeypatch):
    assert config.get_solana_rpc_endpoint() == config.SOLANA_DEFAULT_RPC
    assert config.get_solana_account_index() == 0
    monkeypatch.setenv("SOLANA_ACCOUNT_INDEX", "-1")
    with pytest.raises(ConfigurationError):
        config.get_solana_account_index()
