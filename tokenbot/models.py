"""Data models for TokenBot."""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class NetworkConfig:
    """Resolved EVM network parameters."""
    name: str
    chain_id: int
    rpc_url: str
    explorer_url: str | None
    display_name: str
    mode: str
    chain: str
    explorer_api_url: str | None = None
    gas_price_gwei: float | None = None

    def address_url(self, address: str) -> str | None:
        if not self.explorer_url:
            return None
        return f"{self.explorer_url}/address/{address}"

    def tx_url(self, transaction_hash: str) -> str | None:
        if not self.explorer_url:
            return None
        return f"{self.explorer_url}/tx/{transaction_hash}"


@dataclass
class EVMCredential:
    """EVM signing credential; never persisted."""
    private_key: str
    address: str
    public_key: str

    def __repr__(self) -> str:
        return f"EVMCredential(address={self.address!r})"


@dataclass
class SolanaCredential:
    """Solana signing credential; never persisted."""
    keypair: Any
    source: str
    account_index: int | None = None

    @property
    def public_key(self) -> str:
        return str(self.keypair.pubkey())

    def __repr__(self) -> str:
        return f"SolanaCredential(public_key={self.public_key!r}, source={self.source!r})"


@dataclass
class TokenMetadata:
    """Token metadata read back from a deployed contract or mint."""
    name: str
    symbol: str
    decimals: int
    total_supply: int
    owner: str

    def display_supply(self) -> str:
        whole, remainder = divmod(self.total_supply, 10 ** self.decimals)
        if remainder:
            fraction = str(remainder).rjust(self.decimals, "0").rstrip("0")
            return f"{whole:,}.{fraction}"
        return f"{whole:,}"


@dataclass
class ChainDeployment:
    """Result of a deployment on one chain."""
    address: str
    transaction_hash: str | None
    block_number: int | None = None
    gas_used: int | None = None
    contract_name: str | None = None
    explorer_url: str | None = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "address": self.address,
            "transactionHash": self.transaction_hash,
            "blockNumber": self.block_number,
            "gasUsed": self.gas_used,
        }
        if self.contract_name:
            data["contractName"] = self.contract_name
        if self.explorer_url:
            data["explorerUrl"] = self.explorer_url
        if self.extra:
            data["extra"] = dict(self.extra)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChainDeployment":
        return cls(
            address=data["address"],
            transaction_hash=data.get("transactionHash"),
            block_number=data.get("blockNumber"),
            gas_used=data.get("gasUsed"),
            contract_name=data.get("contractName"),
            explorer_url=data.get("explorerUrl"),
            extra=dict(data.get("extra") or {}),
        )


CHAINS = ("ethereum", "base", "solana")


def utc_timestamp() -> str:
    """Current time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


@dataclass
class DeploymentRecord:
    """Addresses and transactions produced by one deployment run."""
    network: str
    chain_id: int | None
    mode: str
    deployer: str | None
    contracts: Dict[str, Optional[ChainDeployment]] = field(default_factory=dict)
    timestamp: str = field(default_factory=utc_timestamp)

    def set_contract(self, chain: str, deployment: ChainDeployment | None) -> None:
        if chain not in CHAINS:
            raise ValueError(f"Unknown chain {chain!r}, expected one of {', '.join(CHAINS)}")
        self.contracts[chain] = deployment

    def to_dict(self) -> Dict[str, Any]:
        return {
            "network": self.network,
            "chainId": self.chain_id,
            "mode": self.mode,
            "deployer": self.deployer,
            "timestamp": self.timestamp,
            "contracts": {
                chain: deployment.to_dict() if deployment else None
                for chain, deployment in self.contracts.items()
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeploymentRecord":
        contracts = {
            chain: ChainDeployment.from_dict(item) if item else None
            for chain, item in (data.get("contracts") or {}).items()
        }
        return cls(
            network=data["network"],
            chain_id=data.get("chainId"),
            mode=data["mode"],
            deployer=data.get("deployer"),
            contracts=contracts,
            timestamp=data["timestamp"],
        )


SOLANA_STEPS = ("create_mint", "create_ata", "mint_to")


@dataclass
class SolanaMintState:
    """Progress of the three-step SPL token creation."""
    mint_address: str | None = None
    associated_token_account: str | None = None
    steps: Dict[str, Optional[str]] = field(
        default_factory=lambda: {step: None for step in SOLANA_STEPS}
    )

    def is_done(self, step: str) -> bool:
        return bool(self.steps.get(step))

    def mark_done(self, step: str, signature: str) -> None:
        if step not in SOLANA_STEPS:
            raise ValueError(f"Unknown Solana step {step!r}")
        self.steps[step] = signature

    @property
    def completed(self) -> bool:
        return all(self.steps.get(step) for step in SOLANA_STEPS)

    @property
    def next_step(self) -> str | None:
        for step in SOLANA_STEPS:
            if not self.steps.get(step):
                return step
        return None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SolanaMintState":
        steps = {step: None for step in SOLANA_STEPS}
        steps.update(data.get("steps") or {})
        return cls(
            mint_address=data.get("mint_address"),
            associated_token_account=data.get("associated_token_account"),
            steps=steps,
        )
