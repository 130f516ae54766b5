import json
from unittest.mock import MagicMock

import pytest
from solders.keypair import Keypair

from tokenbot import config, workflow
from tokenbot.exceptions import ConfigurationError, InsufficientBalanceError, NetworkError, SolanaStepError
from tokenbot.models import ChainDeployment, SolanaCredential, TokenMetadata
from tokenbot.recorder import DeploymentRecorder

PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
ADDRESS = "0x2c7536E3605D9C16a7a3D7b1898e529396a65c23"
TOKEN_ADDRESS = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
L2_ADDRESS = "0x4200000000000000000000000000000000000abc"
MINT_ADDRESS = "So11111111111111111111111111111111111111112"


class FakeEVMClient:
    """Stands in for EVMClient; records calls per network."""

    calls = []
    fail_preflight = False
    preflight_error = None

    def __init__(self, network):
        self.network = network

    def preflight(self, address):
        FakeEVMClient.calls.append(("preflight", self.network.name))
        if FakeEVMClient.fail_preflight:
            raise InsufficientBalanceError(address, self.network.display_name)
        if FakeEVMClient.preflight_error is not None:
            raise FakeEVMClient.preflight_error
        return 10**18

    def deploy_token(self, credential, contract_name=None):
        FakeEVMClient.calls.append(("deploy_token", self.network.name))
        return ChainDeployment(
            address=TOKEN_ADDRESS,
            transaction_hash="0x" + "11" * 32,
            block_number=1,
            gas_used=1_000_000,
            contract_name=contract_name or config.get_contract_name(self.network.name),
        )

    def get_token_metadata(self, address):
        return TokenMetadata("TokenBot", "TBOT", 18, 10**27, ADDRESS)

    def register_base_l2_token(self, credential, l1_address):
        FakeEVMClient.calls.append(("register_base_l2_token", self.network.name))
        return ChainDeployment(
            address=L2_ADDRESS,
            transaction_hash="0x" + "22" * 32,
            contract_name="OptimismMintableERC20",
            extra={"remoteToken": l1_address},
        )


@pytest.fixture(autouse=True)
def reset_fake_client():
    FakeEVMClient.calls = []
    FakeEVMClient.fail_preflight = False
    FakeEVMClient.preflight_error = None


@pytest.fixture
def recorder(tmp_path):
    return DeploymentRecorder(tmp_path / "deployments")


def solana_ok(recorder):
    deployment = ChainDeployment(
        address=MINT_ADDRESS,
        transaction_hash="sig-mint-to",
        contract_name="SPL Token",
        extra={"tokenAccount": "ATA", "deployer": "SolPayer111"},
    )
    return {"solana": (deployment, TokenMetadata("TokenBot", "TBOT", 9, 10**18, "SolPayer111"))}


def solana_failed(recorder):
    raise SolanaStepError("create_ata", "blockhash not found")


def run(recorder, solana_task=solana_ok, **kwargs):
    options = workflow.MultichainOptions(network="sepolia", **kwargs)
    return workflow.deploy_multichain(
        options, recorder, client_factory=FakeEVMClient, solana_task=solana_task
    )


def test_all_chains_recorded(monkeypatch, recorder, console):
    monkeypatch.setenv("DEPLOYER_PRIVATE_KEY", PRIVATE_KEY)

    result = run(recorder)

    record = result.record
    assert record.network == "sepolia"
    assert record.chain_id == 11155111
    assert record.mode == "testnet"
    assert record.deployer == ADDRESS
    assert record.contracts["ethereum"].address == TOKEN_ADDRESS
    assert record.contracts["base"] is None
    assert record.contracts["solana"].address == MINT_ADDRESS
    assert set(result.metadata) == {"ethereum", "solana"}

    saved = json.loads((recorder.root / "sepolia-testnet.json").read_text())
    assert saved == json.loads(recorder.multichain_path.read_text())
    assert saved["contracts"]["ethereum"]["address"] == TOKEN_ADDRESS
    assert json.loads((recorder.root / "sepolia-ethereum.json").read_text())["deployer"] == ADDRESS
    assert "DEPLOYMENT SUMMARY" in console.getvalue()


def test_register_base_uses_paired_network(monkeypatch, recorder, console):
    monkeypatch.setenv("DEPLOYER_PRIVATE_KEY", PRIVATE_KEY)

    record = run(recorder, register_base=True).record

    assert ("register_base_l2_token", "baseSepolia") in FakeEVMClient.calls
    assert record.contracts["base"].address == L2_ADDRESS
    assert record.contracts["base"].extra["remoteToken"] == TOKEN_ADDRESS


def test_deploy_chain_solana_only_skips_evm_credential(monkeypatch, recorder, console):
    monkeypatch.setenv("DEPLOY_CHAIN", "solana")

    record = run(recorder).record

    assert FakeEVMClient.calls == []
    assert record.contracts["ethereum"] is None
    assert record.deployer == "SolPayer111"


def test_deploy_chain_ethereum_only(monkeypatch, recorder, console):
    monkeypatch.setenv("DEPLOYER_PRIVATE_KEY", PRIVATE_KEY)
    called = []

    record = run(recorder, solana_task=called.append, deploy_chain="ethereum").record

    assert called == []
    assert record.contracts["solana"] is None


def test_solana_failure_still_records_ethereum(monkeypatch, recorder, console):
    monkeypatch.setenv("DEPLOYER_PRIVATE_KEY", PRIVATE_KEY)

    with pytest.raises(SolanaStepError):
        run(recorder, solana_task=solana_failed)

    saved = recorder.read("sepolia", "testnet")
    assert saved.contracts["ethereum"].address == TOKEN_ADDRESS
    assert saved.contracts["solana"] is None
    assert "solana deployment failed" in console.getvalue()


def test_evm_failure_still_records_solana(monkeypatch, recorder, console):
    monkeypatch.setenv("DEPLOYER_PRIVATE_KEY", PRIVATE_KEY)
    FakeEVMClient.fail_preflight = True

    with pytest.raises(InsufficientBalanceError):
        run(recorder)

    saved = recorder.read_latest()
    assert saved.contracts["ethereum"] is None
    assert saved.contracts["solana"].address == MINT_ADDRESS


def test_nothing_recorded_when_every_chain_fails(monkeypatch, recorder, console):
    monkeypatch.setenv("DEPLOYER_PRIVATE_KEY", PRIVATE_KEY)
    FakeEVMClient.fail_preflight = True

    with pytest.raises(InsufficientBalanceError):
        run(recorder, solana_task=solana_failed)

    assert not recorder.multichain_path.exists()


def test_parallel_matches_sequential(monkeypatch, recorder, console):
    monkeypatch.setenv("DEPLOYER_PRIVATE_KEY", PRIVATE_KEY)

    record = run(recorder, parallel=True).record

    assert record.contracts["ethereum"].address == TOKEN_ADDRESS
    assert record.contracts["solana"].address == MINT_ADDRESS


def test_wormhole_instructions_when_enabled(monkeypatch, recorder, console):
    monkeypatch.setenv("DEPLOYER_PRIVATE_KEY", PRIVATE_KEY)
    monkeypatch.setenv("REGISTER_WORMHOLE", "true")

    run(recorder)

    output = console.getvalue()
    assert "WORMHOLE REGISTRATION" in output
    assert MINT_ADDRESS in output


def test_invalid_deploy_chain(monkeypatch, recorder):
    monkeypatch.setenv("DEPLOY_CHAIN", "polygon")
    with pytest.raises(ConfigurationError, match="DEPLOY_CHAIN"):
        run(recorder)


def test_unknown_network_fails_before_deploying(monkeypatch, recorder):
    monkeypatch.setenv("DEPLOYER_PRIVATE_KEY", PRIVATE_KEY)
    options = workflow.MultichainOptions(network="polygon")
    with pytest.raises(ConfigurationError, match="Unknown network"):
        workflow.deploy_multichain(options, recorder, client_factory=FakeEVMClient, solana_task=solana_ok)
    assert FakeEVMClient.calls == []


def test_summary_includes_token_metadata(monkeypatch, recorder, console):
    monkeypatch.setenv("DEPLOYER_PRIVATE_KEY", PRIVATE_KEY)

    run(recorder)

    summary = console.getvalue().split("DEPLOYMENT SUMMARY", 1)[1]
    assert "[Ethereum L1] Token Information" in summary
    assert "[Solana] Token Information" in summary
    assert "Symbol:       TBOT" in summary


def test_solana_rpc_outage_still_records_ethereum(monkeypatch, recorder, console):
    monkeypatch.setenv("DEPLOYER_PRIVATE_KEY", PRIVATE_KEY)
    client = MagicMock()
    client.get_balance.side_effect = ConnectionError("rpc down")
    credential = SolanaCredential(keypair=Keypair(), source="ephemeral")

    def solana_task(recorder):
        return {"solana": workflow.deploy_solana(credential, recorder, client=client)}

    with pytest.raises(NetworkError, match="rpc down"):
        run(recorder, solana_task=solana_task)

    saved = recorder.read("sepolia", "testnet")
    assert saved.contracts["ethereum"].address == TOKEN_ADDRESS
    assert saved.contracts["solana"] is None


@pytest.mark.parametrize("parallel", [False, True])
def test_unexpected_solana_error_still_records_ethereum(monkeypatch, recorder, console, parallel):
    monkeypatch.setenv("DEPLOYER_PRIVATE_KEY", PRIVATE_KEY)

    def solana_crashed(recorder):
        raise RuntimeError("decoder exploded")

    with pytest.raises(RuntimeError, match="decoder exploded"):
        run(recorder, solana_task=solana_crashed, parallel=parallel)

    saved = recorder.read("sepolia", "testnet")
    assert saved.contracts["ethereum"].address == TOKEN_ADDRESS
    assert "solana deployment failed: RuntimeError: decoder exploded" in console.getvalue()


def test_unexpected_evm_error_still_deploys_solana(monkeypatch, recorder, console):
    monkeypatch.setenv("DEPLOYER_PRIVATE_KEY", PRIVATE_KEY)
    FakeEVMClient.preflight_error = RuntimeError("socket closed")

    with pytest.raises(RuntimeError, match="socket closed"):
        run(recorder)

    saved = recorder.read_latest()
    assert saved.contracts["ethereum"] is None
    assert saved.contracts["solana"].address == MINT_ADDRESS
