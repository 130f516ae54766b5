"""EVM blockchain operations."""

from typing import Any, Dict, Optional

import requests
from eth_account import Account
from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted, Web3Exception
from web3.logs import DISCARD

from tokenbot import compiler, config, utils
from tokenbot.exceptions import (
    ConfigurationError,
    ContractRevertError,
    InsufficientBalanceError,
    NetworkError,
)
from tokenbot.models import ChainDeployment, EVMCredential, NetworkConfig, TokenMetadata

RECEIPT_TIMEOUT = 120
GAS_MULTIPLIER = 1.2

# Errors raised by the RPC transport or the node
RPC_ERRORS = (Web3Exception, requests.RequestException)

# Minimal ABI for reading back ERC-20 metadata
TOKEN_METADATA_ABI = [
    {
        "constant": True,
        "inputs": [],
        "name": "name",
        "outputs": [{"name": "", "type": "string"}],
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [],
        "name": "symbol",
        "outputs": [{"name": "", "type": "string"}],
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [],
        "name": "decimals",
        "outputs": [{"name": "", "type": "uint8"}],
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [],
        "name": "totalSupply",
        "outputs": [{"name": "", "type": "uint256"}],
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [],
        "name": "owner",
        "outputs": [{"name": "", "type": "address"}],
        "type": "function",
    },
]

# Base OptimismMintableERC20Factory predeploy
L2_TOKEN_FACTORY_ABI = [
    {
        "inputs": [
            {"name": "_remoteToken", "type": "address"},
            {"name": "_name", "type": "string"},
            {"name": "_symbol", "type": "string"},
        ],
        "name": "createOptimismMintableERC20",
        "outputs": [{"name": "", "type": "address"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "name": "localToken", "type": "address"},
            {"indexed": True, "name": "remoteToken", "type": "address"},
            {"indexed": False, "name": "deployer", "type": "address"},
        ],
        "name": "OptimismMintableERC20Created",
        "type": "event",
    },
]


class EVMClient:
    """EVM blockchain client that manages the RPC connection for one network."""

    def __init__(self, network: NetworkConfig, w3: Optional[Web3] = None):
        """
        Initialize EVM client for a resolved network.

        Args:
            network: Resolved network configuration
            w3: Pre-built Web3 instance (e.g. an in-process test chain)
        """
        self.network = network
        self.rpc_endpoint = network.rpc_url
        self.w3 = w3 if w3 is not None else self._connect_web3()

    def _connect_web3(self) -> Web3:
        """Return a connected Web3 instance or raise if unreachable."""
        w3 = Web3(Web3.HTTPProvider(self.rpc_endpoint))

        if not w3.is_connected():
            raise NetworkError(f"Failed to connect to RPC endpoint: {self.rpc_endpoint}")

        return w3

    @property
    def chain_id(self) -> int:
        try:
            return self.w3.eth.chain_id
        except RPC_ERRORS as e:
            raise NetworkError(f"Failed to read chain id from {self.rpc_endpoint}: {e}")

    def get_balance(self, address: str) -> int:
        """Native balance in wei."""
        try:
            return self.w3.eth.get_balance(Web3.to_checksum_address(address))
        except RPC_ERRORS as e:
            raise NetworkError(f"Failed to read balance of {address}: {e}")

    def preflight(self, address: str) -> int:
        """
        Print network details and check the deployer can pay for gas.

        Returns:
            Balance in wei

        Raises:
            InsufficientBalanceError: If the balance is zero
        """
        balance = self.get_balance(address)
        utils.info(f"Network: {self.network.display_name} (chain id {self.chain_id})")
        utils.info(f"Deployer: {address}")
        utils.info(f"Balance: {Web3.from_wei(balance, 'ether')} ETH")
        if balance == 0:
            raise InsufficientBalanceError(address, self.network.display_name)
        return balance

    def _gas_price(self) -> int:
        if self.network.gas_price_gwei is not None:
            return Web3.to_wei(self.network.gas_price_gwei, "gwei")
        try:
            return self.w3.eth.gas_price
        except RPC_ERRORS as e:
            raise NetworkError(f"Failed to read gas price: {e}")

    def _build_transaction(self, sender: str, contract_function: Any) -> Dict[str, Any]:
        """Build a legacy transaction after estimating gas."""
        try:
            gas_estimate = contract_function.estimate_gas({"from": sender})
        except ContractLogicError as e:
            raise ContractRevertError(f"Transaction would revert: {e}")
        except RPC_ERRORS as e:
            raise NetworkError(f"Failed to estimate gas: {e}")

        gas_price = self._gas_price()
        utils.info(f"Chain ID: {self.chain_id}")
        utils.info(f"  Gas Limit: {int(gas_estimate * GAS_MULTIPLIER)}")
        utils.info(f"  Gas Price: {Web3.from_wei(gas_price, 'gwei')} gwei")

        try:
            nonce = self.w3.eth.get_transaction_count(sender)
        except RPC_ERRORS as e:
            raise NetworkError(f"Failed to read nonce of {sender}: {e}")

        tx_params = {
            "from": sender,
            "nonce": nonce,
            "gas": int(gas_estimate * GAS_MULTIPLIER),
            "gasPrice": gas_price,
            "chainId": self.chain_id,
        }
        return contract_function.build_transaction(tx_params)

    def _send(self, transaction: Dict[str, Any], credential: EVMCredential) -> Any:
        """Sign, send and wait for the receipt; reverted receipts raise."""
        signed = Account.sign_transaction(transaction, credential.private_key)
        try:
            tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
        except (ValueError,) + RPC_ERRORS as e:
            raise NetworkError(f"Failed to send transaction to RPC: {e}")

        tx_hash_hex = Web3.to_hex(tx_hash)
        utils.info(f"Transaction sent: {tx_hash_hex}")
        utils.info("Waiting for confirmation...")

        try:
            receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=RECEIPT_TIMEOUT)
        except TimeExhausted:
            raise NetworkError(
                f"Transaction {tx_hash_hex} not mined within {RECEIPT_TIMEOUT} seconds"
            )
        except RPC_ERRORS as e:
            raise NetworkError(f"Failed to fetch receipt for {tx_hash_hex}: {e}")

        if receipt.status == 0:
            raise ContractRevertError(f"Transaction {tx_hash_hex} reverted", tx_hash_hex)
        return receipt

    def deploy_token(
        self, credential: EVMCredential, contract_name: Optional[str] = None
    ) -> ChainDeployment:
        """
        Deploy a TokenBot contract.

        Args:
            credential: Deployer credential; receives the full supply
            contract_name: TokenBotL1 or TokenBotL2 (default chosen by network)

        Returns:
            ChainDeployment with address, transaction hash, block and gas used
        """
        contract_name = contract_name or config.get_contract_name(self.network.name)
        factory = self.w3.eth.contract(
            abi=compiler.get_abi(contract_name),
            bytecode=compiler.get_bytecode(contract_name),
        )

        utils.info(f"Deploying {contract_name} to {self.network.display_name}...")
        transaction = self._build_transaction(credential.address, factory.constructor())
        receipt = self._send(transaction, credential)

        address = receipt.contractAddress
        tx_hash = Web3.to_hex(receipt.transactionHash)
        utils.success(f"{contract_name} deployed to: {address}")
        return ChainDeployment(
            address=address,
            transaction_hash=tx_hash,
            block_number=receipt.blockNumber,
            gas_used=receipt.gasUsed,
            contract_name=contract_name,
            explorer_url=self.network.address_url(address),
        )

    def get_token_metadata(self, contract_address: str) -> TokenMetadata:
        """Read name, symbol, decimals, total supply and owner from a deployed token."""
        contract = self.w3.eth.contract(
            address=Web3.to_checksum_address(contract_address),
            abi=TOKEN_METADATA_ABI,
        )
        try:
            return TokenMetadata(
                name=contract.functions.name().call(),
                symbol=contract.functions.symbol().call(),
                decimals=contract.functions.decimals().call(),
                total_supply=contract.functions.totalSupply().call(),
                owner=contract.functions.owner().call(),
            )
        except (ContractLogicError,) + RPC_ERRORS as e:
            raise NetworkError(f"Failed to read token metadata from {contract_address}: {e}")

    def get_token_balance(self, contract_address: str, holder: str) -> int:
        contract = self.w3.eth.contract(
            address=Web3.to_checksum_address(contract_address),
            abi=compiler.get_abi("TokenBotL1"),
        )
        try:
            return contract.functions.balanceOf(Web3.to_checksum_address(holder)).call()
        except RPC_ERRORS as e:
            raise NetworkError(f"Failed to read token balance of {holder}: {e}")

    def reset_fork(self, fork_url: str, block_number: Optional[int] = None) -> None:
        """
        Reset the local node to a fork of another network.

        Only valid against the local development node.
        """
        if not config.is_local_network(self.network.name):
            raise ConfigurationError("Forking is only supported on the local development node")

        forking: Dict[str, Any] = {"jsonRpcUrl": fork_url}
        if block_number is not None:
            forking["blockNumber"] = block_number

        utils.info(f"Forking {fork_url}" + (f" at block {block_number}" if block_number else ""))
        response = self.w3.provider.make_request("hardhat_reset", [{"forking": forking}])
        if response.get("error"):
            raise NetworkError(f"hardhat_reset failed: {response['error']}")

    def register_base_l2_token(
        self,
        credential: EVMCredential,
        l1_address: str,
        name: str = config.TOKEN_NAME,
        symbol: str = config.TOKEN_SYMBOL,
    ) -> ChainDeployment:
        """
        Create the bridgeable L2 representation of an L1 token.

        Calls the OptimismMintableERC20Factory predeploy on Base and reads the
        L2 address from its OptimismMintableERC20Created event.
        """
        if self.network.chain != "base":
            raise ConfigurationError(
                f"L2 token registration requires a Base network, got {self.network.name}"
            )

        factory = self.w3.eth.contract(
            address=Web3.to_checksum_address(config.BASE_L2_TOKEN_FACTORY),
            abi=L2_TOKEN_FACTORY_ABI,
        )
        remote_token = Web3.to_checksum_address(l1_address)
        utils.info(f"Registering L1 token {remote_token} with the Base token factory...")
        function = factory.functions.createOptimismMintableERC20(remote_token, name, symbol)
        transaction = self._build_transaction(credential.address, function)
        receipt = self._send(transaction, credential)

        events = factory.events.OptimismMintableERC20Created().process_receipt(receipt, errors=DISCARD)
        if not events:
            raise ContractRevertError(
                "Factory transaction did not emit OptimismMintableERC20Created",
                Web3.to_hex(receipt.transactionHash),
            )

        l2_address = events[0]["args"]["localToken"]
        utils.success(f"Base L2 token created at: {l2_address}")
        return ChainDeployment(
            address=l2_address,
            transaction_hash=Web3.to_hex(receipt.transactionHash),
            block_number=receipt.blockNumber,
            gas_used=receipt.gasUsed,
            contract_name="OptimismMintableERC20",
            explorer_url=self.network.address_url(l2_address),
            extra={"remoteToken": remote_token},
        )

