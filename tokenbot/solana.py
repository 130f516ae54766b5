"""Solana SPL token creation.

The mint is created in three steps (create_mint, create_ata, mint_to). Each
step is confirmed and its signature recorded before the next one starts, so
a run that fails part-way can be resumed from the recorded state.
"""

from typing import Any, Callable, List, Optional

from solana.rpc.api import Client
from solana.rpc.commitment import Confirmed
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.system_program import CreateAccountParams, create_account
from solders.transaction import Transaction
from spl.token.constants import TOKEN_PROGRAM_ID
from spl.token.instructions import (
    InitializeMintParams,
    MintToParams,
    create_associated_token_account,
    get_associated_token_address,
    initialize_mint,
    mint_to,
)

from tokenbot import config, utils
from tokenbot.exceptions import NetworkError, SolanaStepError
from tokenbot.models import SOLANA_STEPS, ChainDeployment, SolanaMintState, TokenMetadata

LAMPORTS_PER_SOL = 1_000_000_000
LOW_BALANCE_LAMPORTS = LAMPORTS_PER_SOL // 100
MINT_ACCOUNT_SIZE = 82
TOTAL_SUPPLY_BASE_UNITS = config.TOTAL_SUPPLY_TOKENS * 10 ** config.SOLANA_DECIMALS


def connect(rpc_url: Optional[str] = None) -> Client:
    """Return a Solana RPC client or raise if the endpoint is unreachable."""
    rpc_url = rpc_url or config.get_solana_rpc_endpoint()
    client = Client(rpc_url, commitment=Confirmed)
    if not client.is_connected():
        raise NetworkError(f"Failed to connect to Solana RPC endpoint: {rpc_url}")
    return client


def _describe(error: Exception) -> str:
    # solana-py RPC exceptions carry an empty str()
    return str(error) or getattr(error, "error_msg", "") or type(error).__name__


def explorer_url(kind: str, value: str, cluster: str) -> str:
    """Solana explorer link for an address or transaction."""
    url = f"{config.SOLANA_EXPLORER}/{kind}/{value}"
    if cluster != "mainnet-beta":
        url += f"?cluster={cluster}"
    return url


class SolanaDeployer:
    """Creates the TBOT SPL mint and mints the full supply to the payer."""

    def __init__(self, client: Client, payer: Keypair, cluster: str = "devnet"):
        self.client = client
        self.payer = payer
        self.cluster = cluster

    @property
    def payer_pubkey(self) -> Pubkey:
        return self.payer.pubkey()

    def get_balance(self) -> int:
        """Payer balance in lamports; warns when it is below 0.01 SOL."""
        try:
            balance = self.client.get_balance(self.payer_pubkey).value
        except Exception as e:
            raise NetworkError(f"Failed to read balance of {self.payer_pubkey}: {_describe(e)}")
        utils.info(f"Balance: {balance / LAMPORTS_PER_SOL} SOL")
        if balance < LOW_BALANCE_LAMPORTS:
            utils.warn("Low balance. You may need more SOL for deployment.")
            if self.cluster == "devnet":
                utils.echo(f"   Get devnet SOL: solana airdrop 2 {self.payer_pubkey} --url devnet")
        return balance

    def _send(self, instructions: List[Any], signers: List[Keypair]) -> str:
        blockhash = self.client.get_latest_blockhash().value.blockhash
        message = Message.new_with_blockhash(instructions, self.payer_pubkey, blockhash)
        transaction = Transaction.new_unsigned(message)
        transaction.sign(signers, blockhash)
        signature = self.client.send_transaction(transaction).value
        self.client.confirm_transaction(signature, commitment=Confirmed)
        return str(signature)

    def _create_mint(self, state: SolanaMintState) -> str:
        mint = Keypair()
        utils.info("Creating token mint...")
        lamports = self.client.get_minimum_balance_for_rent_exemption(MINT_ACCOUNT_SIZE).value
        instructions = [
            create_account(
                CreateAccountParams(
                    from_pubkey=self.payer_pubkey,
                    to_pubkey=mint.pubkey(),
                    lamports=lamports,
                    space=MINT_ACCOUNT_SIZE,
                    owner=TOKEN_PROGRAM_ID,
                )
            ),
            initialize_mint(
                InitializeMintParams(
                    decimals=config.SOLANA_DECIMALS,
                    program_id=TOKEN_PROGRAM_ID,
                    mint=mint.pubkey(),
                    mint_authority=self.payer_pubkey,
                    freeze_authority=self.payer_pubkey,
                )
            ),
        ]
        signature = self._send(instructions, [self.payer, mint])
        state.mint_address = str(mint.pubkey())
        utils.success(f"Token mint created: {state.mint_address}")
        return signature

    def _create_ata(self, state: SolanaMintState) -> str:
        mint = Pubkey.from_string(state.mint_address)
        utils.info("Creating associated token account...")
        instruction = create_associated_token_account(
            payer=self.payer_pubkey, owner=self.payer_pubkey, mint=mint
        )
        signature = self._send([instruction], [self.payer])
        state.associated_token_account = str(
            get_associated_token_address(self.payer_pubkey, mint)
        )
        utils.success(f"Token account created: {state.associated_token_account}")
        return signature

    def _mint_to(self, state: SolanaMintState) -> str:
        utils.info(f"Minting {config.TOTAL_SUPPLY_TOKENS:,} {config.TOKEN_SYMBOL} tokens...")
        instruction = mint_to(
            MintToParams(
                program_id=TOKEN_PROGRAM_ID,
                mint=Pubkey.from_string(state.mint_address),
                dest=Pubkey.from_string(state.associated_token_account),
                mint_authority=self.payer_pubkey,
                amount=TOTAL_SUPPLY_BASE_UNITS,
            )
        )
        signature = self._send([instruction], [self.payer])
        utils.success("Tokens minted")
        return signature

    def run(
        self,
        state: Optional[SolanaMintState] = None,
        on_step: Optional[Callable[[SolanaMintState], None]] = None,
    ) -> SolanaMintState:
        """
        Run the outstanding creation steps.

        Args:
            state: State from a previous partial run; steps already recorded are skipped
            on_step: Called with the state after every completed step

        Returns:
            The completed state

        Raises:
            SolanaStepError: If a step fails; carries the state so far
        """
        state = state or SolanaMintState()
        steps = {
            "create_mint": self._create_mint,
            "create_ata": self._create_ata,
            "mint_to": self._mint_to,
        }

        for step in SOLANA_STEPS:
            if state.is_done(step):
                utils.info(f"Skipping {step}: already done ({state.steps[step]})")
                continue
            try:
                signature = steps[step](state)
            except Exception as e:
                raise SolanaStepError(step, _describe(e), state) from e
            state.mark_done(step, signature)
            if on_step:
                on_step(state)

        return state

    def to_deployment(self, state: SolanaMintState) -> ChainDeployment:
        """Summarize a completed state as a ChainDeployment."""
        return ChainDeployment(
            address=state.mint_address,
            transaction_hash=state.steps.get("mint_to"),
            contract_name="SPL Token",
            explorer_url=explorer_url("address", state.mint_address, self.cluster),
            extra={
                "tokenAccount": state.associated_token_account,
                "decimals": config.SOLANA_DECIMALS,
                "cluster": self.cluster,
                "deployer": str(self.payer_pubkey),
                "steps": dict(state.steps),
            },
        )

    def get_token_metadata(self, state: SolanaMintState) -> TokenMetadata:
        """Read supply and decimals back from the mint."""
        try:
            supply = self.client.get_token_supply(Pubkey.from_string(state.mint_address)).value
        except Exception as e:
            raise NetworkError(f"Failed to read supply of {state.mint_address}: {_describe(e)}")
        return TokenMetadata(
            name=config.TOKEN_NAME,
            symbol=config.TOKEN_SYMBOL,
            decimals=supply.decimals,
            total_supply=int(supply.amount),
            owner=str(self.payer_pubkey),
        )
