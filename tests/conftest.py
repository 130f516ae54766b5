import io

import pytest

from tokenbot import utils
from tokenbot.terminal import LineReader

TOKENBOT_ENV_VARS = [
    "DEPLOYER_PRIVATE_KEY",
    "SOLANA_PRIVATE_KEY",
    "SOLANA_MNEMONIC",
    "SOLANA_ACCOUNT_INDEX",
    "SOLANA_RPC_URL",
    "ETHEREUM_MAINNET_RPC",
    "ETHEREUM_SEPOLIA_RPC",
    "BASE_MAINNET_RPC",
    "BASE_SEPOLIA_RPC",
    "BASE_TESTNET_RPC",
    "GAS_PRICE_GWEI",
    "ETHERSCAN_API_KEY",
    "BASESCAN_API_KEY",
    "REGISTER_WORMHOLE",
    "FORK_ENABLED",
    "FORK_BLOCK_NUMBER",
    "DEPLOY_CHAIN",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in TOKENBOT_ENV_VARS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def console():
    stream = io.StringIO()
    previous = utils.use_console(utils.Console(stream, color=False))
    yield stream
    utils.use_console(previous)


def make_reader(*lines: str) -> LineReader:
    """LineReader fed from a fixed list of answers."""
    text = "".join(f"{line}\n" for line in lines)
    return LineReader(io.StringIO(text), io.StringIO())


@pytest.fixture
def tester_w3():
    """Web3 connected to an in-process eth-tester chain."""
    from web3 import EthereumTesterProvider, Web3

    return Web3(EthereumTesterProvider())


@pytest.fixture
def funded_credential(tester_w3):
    """Fresh deployer credential funded with 10 ETH on the tester chain."""
    from eth_account import Account

    from tokenbot.credentials import parse_evm_private_key

    account = Account.create()
    tx_hash = tester_w3.eth.send_transaction(
        {
            "from": tester_w3.eth.accounts[0],
            "to": account.address,
            "value": tester_w3.to_wei(10, "ether"),
        }
    )
    tester_w3.eth.wait_for_transaction_receipt(tx_hash)
    return parse_evm_private_key(account.key.hex())


@pytest.fixture
def tester_client(tester_w3):
    """EVMClient for the local network backed by the tester chain."""
    import dataclasses

    from tokenbot import config
    from tokenbot.evm import EVMClient

    network = dataclasses.replace(config.resolve_network("hardhat"), gas_price_gwei=10)
    return EVMClient(network, w3=tester_w3)
