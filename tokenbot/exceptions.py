"""Errors raised by TokenBot deployment tooling."""

from typing import List, Optional


class TokenBotError(Exception):
    """Base class for errors that are reported to the operator."""

    hints: List[str] = []


class ConfigurationError(TokenBotError, ValueError):
    """A required setting is missing or malformed."""

    hints = [
        "Check your .env file (run `tokenbot setup-env` to create one)",
        "Make sure the network name is spelled correctly",
    ]


class CredentialFormatError(TokenBotError, ValueError):
    """A private key or mnemonic could not be parsed."""

    hints = [
        "EVM private keys are 64 hex characters, with or without 0x",
        "Solana keys may be a BIP39 mnemonic (12/24 words), base58, base64 or a JSON array",
    ]


class InsufficientBalanceError(TokenBotError):
    """The deployer account has no funds for gas."""

    hints = [
        "Fund the deployer address with native currency for gas",
        "On testnets, use a faucet before deploying",
    ]

    def __init__(self, address: str, network: str):
        self.address = address
        self.network = network
        super().__init__(f"Insufficient balance for {address} on {network}. Please fund the account.")


class NetworkError(TokenBotError, ConnectionError):
    """An RPC endpoint is unreachable or returned an error."""

    hints = [
        "Check that the RPC URL is correct and reachable",
        "Try a different RPC endpoint via the *_RPC environment variables",
    ]


class ContractRevertError(TokenBotError):
    """A transaction was mined but reverted."""

    hints = [
        "Inspect the transaction on the block explorer",
        "Make sure the token is not paused and balances are sufficient",
    ]

    def __init__(self, message: str, transaction_hash: Optional[str] = None):
        self.transaction_hash = transaction_hash
        super().__init__(message)


class VerificationError(TokenBotError):
    """The block explorer rejected a verification request."""

    hints = [
        "Make sure the contract address is correct",
        "Ensure you're using the right network",
        "Check ETHERSCAN_API_KEY (Ethereum) or BASESCAN_API_KEY (Base)",
        "Wait a few minutes after deployment before verifying",
    ]


class SolanaStepError(TokenBotError):
    """A step of the SPL token creation failed; the state records completed steps."""

    hints = [
        "Completed steps are saved in the Solana deployment file",
        "Re-run `tokenbot deploy-solana --resume` to continue from the failed step",
    ]

    def __init__(self, step: str, message: str, state=None):
        self.step = step
        self.state = state
        super().__init__(f"Solana step '{step}' failed: {message}")
