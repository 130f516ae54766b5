"""Deployment artifacts written under deployments/."""

import json
from pathlib import Path
from typing import Any, Dict, List, Union

from tokenbot import utils
from tokenbot.exceptions import ConfigurationError
from tokenbot.models import DeploymentRecord, SolanaMintState

DEFAULT_DEPLOYMENTS_DIR = "deployments"
MULTICHAIN_FILE = "multichain-addresses.json"


def deployment_path(root: Union[str, Path], network: str, mode: str) -> Path:
    """Path of the per-(network, mode) deployment file."""
    return Path(root) / f"{network}-{mode}.json"


class DeploymentRecorder:
    """Reads and writes deployment JSON files. Last write wins."""

    def __init__(self, root: Union[str, Path] = DEFAULT_DEPLOYMENTS_DIR):
        self.root = Path(root)

    @property
    def multichain_path(self) -> Path:
        return self.root / MULTICHAIN_FILE

    def _write_json(self, path: Path, payload: Dict[str, Any]) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(payload, f, indent=2)
            f.write("\n")
        return path

    def _read_json(self, path: Path) -> Dict[str, Any]:
        if not path.exists():
            raise ConfigurationError(f"Deployment file not found: {path}")
        try:
            with open(path) as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Deployment file {path} is not valid JSON: {e}")

    def write(self, record: DeploymentRecord) -> List[Path]:
        """Write the record to its per-network file and the generic multi-chain file."""
        payload = record.to_dict()
        paths = [
            self._write_json(deployment_path(self.root, record.network, record.mode), payload),
            self._write_json(self.multichain_path, payload),
        ]
        for path in paths:
            utils.info(f"Deployment info saved to: {path}")
        return paths

    def read(self, network: str, mode: str) -> DeploymentRecord:
        return DeploymentRecord.from_dict(self._read_json(deployment_path(self.root, network, mode)))

    def read_latest(self) -> DeploymentRecord:
        """Record from the generic multi-chain file."""
        return DeploymentRecord.from_dict(self._read_json(self.multichain_path))

    def write_chain_artifact(self, name: str, payload: Dict[str, Any]) -> Path:
        """Write a single-chain artifact such as sepolia-ethereum.json or solana-devnet.json."""
        path = self._write_json(self.root / f"{name}.json", payload)
        utils.info(f"Deployment info saved to: {path}")
        return path

    def read_chain_artifact(self, name: str) -> Dict[str, Any]:
        return self._read_json(self.root / f"{name}.json")

    def solana_state_name(self, cluster: str) -> str:
        return f"solana-{cluster}"

    def load_solana_state(self, cluster: str) -> SolanaMintState:
        """Saga state saved by a previous Solana run."""
        artifact = self.read_chain_artifact(self.solana_state_name(cluster))
        return SolanaMintState.from_dict(artifact.get("state") or {})
