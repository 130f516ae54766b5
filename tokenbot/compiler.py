"""Solidity sources and compilation for the TokenBot contracts."""

import functools
from pathlib import Path
from typing import Any, Dict, List

import requests
from solcx import compile_standard, get_installed_solc_versions, install_solc
from solcx.exceptions import SolcError, SolcInstallationError

from tokenbot import config, utils
from tokenbot.exceptions import ConfigurationError

CONTRACTS_DIR = Path(__file__).parent / "contracts"
SOURCE_FILE = "TokenBot.sol"
CONTRACT_NAMES = ("TokenBotL1", "TokenBotL2")


def source_code() -> str:
    """Return the flattened contract source, as submitted for verification."""
    with open(CONTRACTS_DIR / SOURCE_FILE) as f:
        return f.read()


def compiler_settings() -> Dict[str, Any]:
    """Compiler settings shared by deployment and explorer verification."""
    return {
        "optimizer": {"enabled": True, "runs": config.SOLC_OPTIMIZER_RUNS},
        "evmVersion": config.SOLC_EVM_VERSION,
        "outputSelection": {"*": {"*": ["abi", "evm.bytecode.object"]}},
    }


@functools.lru_cache(maxsize=None)
def compile_contracts() -> Dict[str, Dict[str, Any]]:
    """
    Compile TokenBot.sol once per process.

    Returns:
        Mapping of contract name to {"abi": [...], "bytecode": "0x..."}

    Raises:
        ConfigurationError: If solc cannot be installed or compilation fails
    """
    utils.info(f"Compiling {SOURCE_FILE} with solc {config.SOLC_VERSION}...")
    try:
        if config.SOLC_VERSION not in {str(v) for v in get_installed_solc_versions()}:
            install_solc(config.SOLC_VERSION)
        compiled = compile_standard(
            {
                "language": "Solidity",
                "sources": {SOURCE_FILE: {"content": source_code()}},
                "settings": compiler_settings(),
            },
            solc_version=config.SOLC_VERSION,
        )
    except requests.RequestException as e:
        raise ConfigurationError(f"Failed to download solc {config.SOLC_VERSION}: {e}")
    except (SolcError, SolcInstallationError) as e:
        raise ConfigurationError(f"Contract compilation failed: {e}")

    artifacts = {}
    for name in CONTRACT_NAMES:
        contract = compiled["contracts"][SOURCE_FILE][name]
        artifacts[name] = {
            "abi": contract["abi"],
            "bytecode": "0x" + contract["evm"]["bytecode"]["object"],
        }
    return artifacts


def _artifact(contract_name: str) -> Dict[str, Any]:
    if contract_name not in CONTRACT_NAMES:
        raise ConfigurationError(
            f"Unknown contract {contract_name!r}. Available: {', '.join(CONTRACT_NAMES)}"
        )
    return compile_contracts()[contract_name]


def get_abi(contract_name: str) -> List[Dict[str, Any]]:
    return _artifact(contract_name)["abi"]


def get_bytecode(contract_name: str) -> str:
    return _artifact(contract_name)["bytecode"]
