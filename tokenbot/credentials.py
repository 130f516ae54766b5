"""Signing credential resolution for EVM and Solana deployments."""

import base64
import json
import re
from typing import List, Optional

import base58
from eth_account import Account
from eth_account.hdaccount.mnemonic import Mnemonic
from eth_keys import keys
from eth_keys.exceptions import ValidationError as EthKeysValidationError
from solders.keypair import Keypair

from tokenbot import config, utils
from tokenbot.exceptions import ConfigurationError, CredentialFormatError
from tokenbot.models import EVMCredential, SolanaCredential
from tokenbot.terminal import LineReader

EVM_PRIVATE_KEY_ENV = "DEPLOYER_PRIVATE_KEY"
SOLANA_PRIVATE_KEY_ENV = "SOLANA_PRIVATE_KEY"
SOLANA_MNEMONIC_ENV = "SOLANA_MNEMONIC"

HEX_KEY_PATTERN = re.compile(r"^(0x)?[0-9a-fA-F]{64}$")
MNEMONIC_WORD_COUNTS = (12, 24)
SOLANA_SECRET_LENGTH = 64
SOLANA_DERIVATION_PATH = "m/44'/501'/{index}'/0'"
SUPPORTED_SOLANA_FORMATS = (
    "BIP39 mnemonic (12/24 words), base58 (Phantom), base64, JSON array or comma-separated bytes"
)


def parse_evm_private_key(privkey_str: str) -> EVMCredential:
    """
    Parse an EVM private key.

    Args:
        privkey_str: 64 hex characters, with or without 0x prefix

    Returns:
        EVMCredential with derived address and public key

    Raises:
        CredentialFormatError: If the key is malformed or out of range
    """
    privkey_str = (privkey_str or "").strip()
    if not HEX_KEY_PATTERN.match(privkey_str):
        raise CredentialFormatError(
            "Invalid private key format. Expected 64 hex characters (with or without 0x prefix)"
        )

    clean_privkey = privkey_str[2:] if privkey_str.startswith("0x") else privkey_str
    private_key_bytes = bytes.fromhex(clean_privkey)

    try:
        private_key_obj = keys.PrivateKey(private_key_bytes)
    except EthKeysValidationError as e:
        raise CredentialFormatError(f"Private key is not a valid secp256k1 key: {e}")

    account = Account.from_key(private_key_bytes)
    return EVMCredential(
        private_key="0x" + clean_privkey.lower(),
        address=account.address,
        public_key=private_key_obj.public_key.to_hex(),
    )


def resolve_evm_credential(
    reader: Optional[LineReader] = None,
    env_key: str = EVM_PRIVATE_KEY_ENV,
    interactive: bool = True,
) -> EVMCredential:
    """
    Resolve the deployer key: environment variable first, then a masked prompt.

    Raises:
        ConfigurationError: If no key is configured and prompting is disabled or empty
        CredentialFormatError: If the key is malformed
    """
    privkey_str = config.get_env(env_key, "").strip()
    if privkey_str:
        utils.info(f"Using private key from {env_key}")
        return parse_evm_private_key(privkey_str)

    if not interactive:
        raise ConfigurationError(f"{env_key} is not set")

    reader = reader or LineReader()
    utils.echo()
    utils.echo(utils.bold("Private Key Required"))
    utils.echo("   Please enter your private key to deploy the contract.")
    utils.echo("   Make sure you have enough native currency for gas fees.")
    privkey_str = reader.read_line("Enter your private key (input hidden): ", masked=True)
    if not privkey_str:
        raise ConfigurationError("Private key is required")
    return parse_evm_private_key(privkey_str)


def is_mnemonic(text: str) -> bool:
    """Return True when the text has the word count of a BIP39 mnemonic."""
    return len(text.split()) in MNEMONIC_WORD_COUNTS


def keypair_from_mnemonic(mnemonic: str, account_index: int = 0) -> Keypair:
    """
    Derive a Solana keypair from a BIP39 mnemonic.

    Uses the standard Solana derivation path m/44'/501'/{index}'/0'.

    Raises:
        CredentialFormatError: If the mnemonic checksum or words are invalid
    """
    words = " ".join(mnemonic.split()).lower()
    if not is_mnemonic(words):
        raise CredentialFormatError(
            f"Mnemonic must have 12 or 24 words, got {len(words.split())}"
        )
    if account_index < 0:
        raise CredentialFormatError(f"Account index must be non-negative, got {account_index}")
    if not Mnemonic().is_mnemonic_valid(words):
        raise CredentialFormatError("Invalid BIP39 mnemonic: unknown word or bad checksum")

    seed = Mnemonic.to_seed(words)
    path = SOLANA_DERIVATION_PATH.format(index=account_index)
    return Keypair.from_seed_and_derivation_path(seed, path)


def _keypair_from_secret(secret: bytes) -> Keypair:
    if len(secret) != SOLANA_SECRET_LENGTH:
        raise ValueError(f"expected {SOLANA_SECRET_LENGTH} bytes, got {len(secret)}")
    return Keypair.from_bytes(secret)


def _bytes_from_int_list(values: List[object]) -> bytes:
    if not all(isinstance(value, int) and not isinstance(value, bool) for value in values):
        raise ValueError("secret key array must contain integers")
    return bytes(values)


def parse_solana_secret(secret: str, account_index: int = 0) -> Keypair:
    """
    Parse a Solana private key from any supported format.

    Args:
        secret: BIP39 mnemonic, base58 (Phantom export), base64, JSON array
            (or object with ``secretKey``) or comma-separated byte values
        account_index: Account index for mnemonic derivation

    Returns:
        solders Keypair

    Raises:
        CredentialFormatError: If the secret cannot be parsed in any format
    """
    text = (secret or "").strip()
    if not text:
        raise CredentialFormatError(f"Empty Solana key. Supported formats: {SUPPORTED_SOLANA_FORMATS}")

    if is_mnemonic(text):
        return keypair_from_mnemonic(text, account_index)

    errors = []

    # JSON array or {"secretKey": [...]} (solana-keygen format)
    if text.startswith("[") or text.startswith("{"):
        try:
            parsed = json.loads(text)
            values = parsed if isinstance(parsed, list) else parsed.get("secretKey")
            if not isinstance(values, list):
                raise ValueError("missing secretKey array")
            return _keypair_from_secret(_bytes_from_int_list(values))
        except (ValueError, TypeError, AttributeError) as e:
            raise CredentialFormatError(
                f"Invalid JSON secret key: {e}. Supported formats: {SUPPORTED_SOLANA_FORMATS}"
            )

    # Comma-separated byte values
    if "," in text:
        try:
            values = [int(part.strip()) for part in text.split(",")]
            return _keypair_from_secret(_bytes_from_int_list(values))
        except ValueError as e:
            raise CredentialFormatError(
                f"Invalid comma-separated secret key: {e}. Supported formats: {SUPPORTED_SOLANA_FORMATS}"
            )

    try:
        return _keypair_from_secret(base58.b58decode(text))
    except ValueError as e:
        errors.append(f"base58: {e}")

    try:
        return _keypair_from_secret(base64.b64decode(text, validate=True))
    except ValueError as e:
        errors.append(f"base64: {e}")

    raise CredentialFormatError(
        f"Unable to parse Solana private key ({'; '.join(errors)}). "
        f"Supported formats: {SUPPORTED_SOLANA_FORMATS}"
    )


def encode_solana_secret(keypair: Keypair) -> str:
    """Base58 secret key, the format wallets import."""
    return base58.b58encode(bytes(keypair)).decode("ascii")


def resolve_solana_credential(generate_if_missing: bool = True) -> SolanaCredential:
    """
    Resolve the Solana deployer keypair.

    SOLANA_MNEMONIC (with SOLANA_ACCOUNT_INDEX) takes precedence over
    SOLANA_PRIVATE_KEY. Without either, an ephemeral keypair is generated and
    its secret printed once.

    Raises:
        ConfigurationError: If nothing is configured and generation is disabled
        CredentialFormatError: If the configured secret is malformed
    """
    mnemonic = config.get_env(SOLANA_MNEMONIC_ENV, "").strip()
    if mnemonic:
        account_index = config.get_solana_account_index()
        keypair = keypair_from_mnemonic(mnemonic, account_index)
        utils.success(f"Mnemonic loaded successfully (account index: {account_index})")
        return SolanaCredential(keypair=keypair, source="mnemonic", account_index=account_index)

    private_key = config.get_env(SOLANA_PRIVATE_KEY_ENV, "").strip()
    if private_key:
        keypair = parse_solana_secret(private_key)
        utils.success("Private key loaded successfully")
        return SolanaCredential(keypair=keypair, source="private_key")

    if not generate_if_missing:
        raise ConfigurationError(f"Neither {SOLANA_MNEMONIC_ENV} nor {SOLANA_PRIVATE_KEY_ENV} is set")

    keypair = Keypair()
    utils.warn(f"No {SOLANA_MNEMONIC_ENV} or {SOLANA_PRIVATE_KEY_ENV} found, generating new keypair")
    utils.echo("   Save this private key for future use (base58 format):")
    utils.echo(f"   {utils.bold_yellow(encode_solana_secret(keypair))}")
    return SolanaCredential(keypair=keypair, source="ephemeral")


def has_solana_credentials() -> bool:
    """Return True when a Solana key or mnemonic is configured."""
    return bool(
        config.get_env(SOLANA_MNEMONIC_ENV, "").strip()
        or config.get_env(SOLANA_PRIVATE_KEY_ENV, "").strip()
    )
