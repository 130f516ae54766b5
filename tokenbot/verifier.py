"""Source verification on Etherscan-compatible block explorers."""

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import requests

from tokenbot import compiler, config, utils
from tokenbot.exceptions import ConfigurationError, NetworkError, TokenBotError, VerificationError
from tokenbot.models import NetworkConfig

# Full solc version string expected by the explorer API
SOLC_LONG_VERSION = "v0.8.20+commit.a1b79de6"
REQUEST_TIMEOUT = 30
POLL_INTERVAL = 5
MAX_POLLS = 10
BATCH_DELAY = 5

STATUS_VERIFIED = "verified"
STATUS_ALREADY_VERIFIED = "already_verified"
STATUS_FAILED = "failed"


def explorer_code_url(explorer_url: str, address: str) -> str:
    """Link to the verified source tab of an address."""
    return f"{explorer_url.rstrip('/')}/address/{address}#code"


def _is_already_verified(message: str) -> bool:
    return "already verified" in message.lower()


def _is_pending(message: str) -> bool:
    return "pending" in message.lower()


@dataclass
class VerificationResult:
    address: str
    contract_name: str
    status: str
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status in (STATUS_VERIFIED, STATUS_ALREADY_VERIFIED)


class ExplorerVerifier:
    """Submits single-file Solidity sources through the explorer's contract API."""

    def __init__(
        self,
        api_url: str,
        api_key: str,
        chain_id: int,
        session: Optional[requests.Session] = None,
        poll_interval: float = POLL_INTERVAL,
        max_polls: int = MAX_POLLS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.api_url = api_url
        self.api_key = api_key
        self.chain_id = chain_id
        self.session = session or requests.Session()
        self.poll_interval = poll_interval
        self.max_polls = max_polls
        self.sleep = sleep

    def _request(self, method: str, payload: Dict[str, str]) -> Dict[str, Any]:
        # V2 routes by chainid, which must be in the query string
        params = {"chainid": str(self.chain_id)}
        try:
            if method == "POST":
                response = self.session.post(
                    self.api_url, params=params, data=payload, timeout=REQUEST_TIMEOUT
                )
            else:
                params.update(payload)
                response = self.session.get(self.api_url, params=params, timeout=REQUEST_TIMEOUT)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            raise NetworkError(f"Explorer API request failed: {e}")
        except ValueError as e:
            raise NetworkError(f"Explorer API returned invalid JSON: {e}")

    def submit(self, address: str, contract_name: str) -> Tuple[bool, str]:
        """
        Submit a contract for verification.

        Returns:
            (already_verified, guid_or_message)

        Raises:
            VerificationError: If the explorer rejects the submission
        """
        payload = {
            "apikey": self.api_key,
            "module": "contract",
            "action": "verifysourcecode",
            "contractaddress": address,
            "sourceCode": compiler.source_code(),
            "codeformat": "solidity-single-file",
            "contractname": contract_name,
            "compilerversion": SOLC_LONG_VERSION,
            "optimizationUsed": "1",
            "runs": str(config.SOLC_OPTIMIZER_RUNS),
            "evmversion": config.SOLC_EVM_VERSION,
            "licenseType": "3",  # MIT
        }
        result = self._request("POST", payload)
        message = str(result.get("result", ""))

        if result.get("status") == "1":
            return False, message
        if _is_already_verified(message):
            return True, message
        raise VerificationError(message or "Unknown error")

    def check_status(self, guid: str) -> Tuple[bool, str]:
        """
        Check a pending verification.

        Returns:
            (finished, message); finished is False while the explorer reports Pending

        Raises:
            VerificationError: If verification failed
        """
        payload = {
            "apikey": self.api_key,
            "module": "contract",
            "action": "checkverifystatus",
            "guid": guid,
        }
        result = self._request("GET", payload)
        message = str(result.get("result", ""))

        if result.get("status") == "1" or _is_already_verified(message):
            return True, message
        if _is_pending(message):
            return False, message
        raise VerificationError(message or "Unknown error")

    def verify(self, address: str, contract_name: str) -> VerificationResult:
        """
        Submit and poll until the explorer reports a final status.

        Raises:
            VerificationError: On rejection or when still pending after max_polls checks
        """
        utils.info(f"Submitting {contract_name} at {address} for verification...")
        already_verified, guid = self.submit(address, contract_name)
        if already_verified:
            utils.success("Contract is already verified")
            return VerificationResult(address, contract_name, STATUS_ALREADY_VERIFIED, guid)

        utils.info(f"Verification submitted, GUID: {guid}")
        for _ in range(self.max_polls):
            self.sleep(self.poll_interval)
            finished, message = self.check_status(guid)
            if finished:
                status = STATUS_ALREADY_VERIFIED if _is_already_verified(message) else STATUS_VERIFIED
                utils.success(f"Contract verified: {message}")
                return VerificationResult(address, contract_name, status, message)
            utils.info(f"Status: {message}")

        raise VerificationError(
            f"Verification still pending after {self.max_polls} checks (GUID {guid})"
        )


def verifier_for_network(
    network: NetworkConfig, session: Optional[requests.Session] = None
) -> ExplorerVerifier:
    """Build a verifier for a network, reading its explorer API key from the environment."""
    if not network.explorer_api_url:
        raise ConfigurationError(f"{network.display_name} has no block explorer to verify on")
    api_key = config.get_explorer_api_key(network.name)
    if not api_key:
        env_key = config.EXPLORER_API_KEY_ENV.get(network.chain, "ETHERSCAN_API_KEY")
        raise ConfigurationError(f"{env_key} is required to verify on {network.display_name}")
    return ExplorerVerifier(network.explorer_api_url, api_key, network.chain_id, session=session)


def verify_batch(
    verifier: ExplorerVerifier,
    items: Iterable[Tuple[str, str]],
    delay: float = BATCH_DELAY,
    sleep: Callable[[float], None] = time.sleep,
) -> List[VerificationResult]:
    """
    Verify several (address, contract_name) pairs with a fixed delay between them.

    Failures are collected per contract instead of stopping the batch.
    """
    results = []
    for index, (address, contract_name) in enumerate(items):
        if index:
            sleep(delay)
        try:
            results.append(verifier.verify(address, contract_name))
        except TokenBotError as e:
            utils.error(f"Verification of {contract_name} failed: {e}")
            results.append(VerificationResult(address, contract_name, STATUS_FAILED, str(e)))
    return results
