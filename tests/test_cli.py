from unittest.mock import patch

import pytest

from conftest import make_reader
from tokenbot import cli
from tokenbot.exceptions import ConfigurationError, VerificationError
from tokenbot.models import ChainDeployment, DeploymentRecord
from tokenbot.recorder import DeploymentRecorder
from tokenbot.verifier import STATUS_FAILED, STATUS_VERIFIED, VerificationResult

TOKEN_ADDRESS = "0x5FbDB2315678afecb367f032d93F642f64180aa3"


def test_parser_subcommands():
    parser = cli.build_parser()

    args = parser.parse_args(["deploy", "--network", "sepolia", "--contract", "TokenBotL1"])
    assert (args.command, args.network, args.contract) == ("deploy", "sepolia", "TokenBotL1")

    args = parser.parse_args(["deploy-multichain", "--network", "sepolia", "--parallel", "--register-base"])
    assert args.parallel and args.register_base

    args = parser.parse_args(["verify", "--network", "baseSepolia", TOKEN_ADDRESS])
    assert args.address == TOKEN_ADDRESS
    assert args.contract is None

    args = parser.parse_args(["--deployments-dir", "out", "deploy-solana", "--resume"])
    assert args.resume and args.deployments_dir == "out"


def test_parser_rejects_unknown_contract():
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["deploy", "--network", "sepolia", "--contract", "Other"])


def test_main_rejects_testnet_and_mainnet(console):
    assert cli.main(["--testnet", "--mainnet"]) == 1
    assert "Cannot specify both" in console.getvalue()


def test_main_reports_configuration_errors(console):
    assert cli.main(["deploy", "--network", "polygon"]) == 1
    output = console.getvalue()
    assert "Unknown network" in output
    assert "Troubleshooting:" in output


def test_main_success_returns_zero(console):
    with patch.object(cli, "deploy_command") as deploy:
        assert cli.main(["deploy", "--network", "sepolia"]) == 0
    assert deploy.call_args.args[0] == "sepolia"


def test_main_unexpected_error_prints_traceback(console):
    with patch.object(cli, "verify_command", side_effect=RuntimeError("boom")):
        assert cli.main(["verify", "--network", "sepolia", TOKEN_ADDRESS]) == 1
    output = console.getvalue()
    assert "Unexpected error" in output
    assert "RuntimeError: boom" in output


def test_main_keyboard_interrupt(console):
    with patch.object(cli, "run_setup", side_effect=KeyboardInterrupt):
        assert cli.main(["setup-env"]) == 1
    assert "Cancelled" in console.getvalue()


def test_menu_exit(tmp_path, console):
    menu = cli.TokenBotCLI("testnet", DeploymentRecorder(tmp_path), make_reader("0"))
    menu.run()
    assert menu.should_exit
    assert "Goodbye" in console.getvalue()


def test_menu_reports_errors_and_continues(tmp_path, console):
    menu = cli.TokenBotCLI("testnet", DeploymentRecorder(tmp_path), make_reader("5", "1", "0"))
    menu.run()
    output = console.getvalue()
    assert "Deployment file not found" in output
    assert menu.should_exit


def test_menu_eof_exits(tmp_path, console):
    menu = cli.TokenBotCLI("testnet", DeploymentRecorder(tmp_path), make_reader())
    menu.run()
    assert "Goodbye" in console.getvalue()


def test_networks_for_environment():
    testnet = cli.TokenBotCLI("testnet", reader=make_reader()).networks_for_environment()
    mainnet = cli.TokenBotCLI("mainnet", reader=make_reader()).networks_for_environment()
    assert testnet == ["sepolia", "baseSepolia", "hardhat"]
    assert mainnet == ["ethereum", "baseMainnet"]


def test_prompt_choice_accepts_number_or_name(console):
    menu = cli.TokenBotCLI(reader=make_reader("7", "", "BASESEPOLIA"))
    assert menu.prompt_choice("Pick", ["sepolia", "baseSepolia"]) == "baseSepolia"
    assert "Invalid choice" in console.getvalue()


def make_record():
    record = DeploymentRecord(network="sepolia", chain_id=11155111, mode="testnet", deployer=None)
    record.set_contract(
        "ethereum",
        ChainDeployment(address=TOKEN_ADDRESS, transaction_hash="0x1", contract_name="TokenBotL1"),
    )
    record.set_contract("solana", ChainDeployment(address="Mint", transaction_hash="sig", contract_name="SPL Token"))
    return record


def test_collect_verification_items_from_record(tmp_path, console):
    recorder = DeploymentRecorder(tmp_path)
    recorder.write(make_record())
    assert cli.collect_verification_items(recorder, "sepolia") == [(TOKEN_ADDRESS, "TokenBotL1")]


def test_collect_verification_items_from_chain_artifact(tmp_path, console):
    recorder = DeploymentRecorder(tmp_path)
    recorder.write_chain_artifact(
        "baseSepolia-base",
        {"address": TOKEN_ADDRESS, "transactionHash": "0x1", "contractName": "TokenBotL2"},
    )
    assert cli.collect_verification_items(recorder, "baseTestnet") == [(TOKEN_ADDRESS, "TokenBotL2")]


def test_verify_batch_command_raises_when_any_fail(tmp_path, console, monkeypatch):
    monkeypatch.setenv("ETHERSCAN_API_KEY", "key")
    recorder = DeploymentRecorder(tmp_path)
    recorder.write(make_record())
    failed = [VerificationResult(TOKEN_ADDRESS, "TokenBotL1", STATUS_FAILED, "Invalid API Key")]

    with patch.object(cli.verifier, "verify_batch", return_value=failed):
        with pytest.raises(VerificationError, match="1 of 1"):
            cli.verify_batch_command("sepolia", recorder)


def test_verify_batch_command_success(tmp_path, console, monkeypatch):
    monkeypatch.setenv("ETHERSCAN_API_KEY", "key")
    recorder = DeploymentRecorder(tmp_path)
    recorder.write(make_record())
    verified = [VerificationResult(TOKEN_ADDRESS, "TokenBotL1", STATUS_VERIFIED)]

    with patch.object(cli.verifier, "verify_batch", return_value=verified):
        cli.verify_batch_command("sepolia", recorder)

    assert f"https://sepolia.etherscan.io/address/{TOKEN_ADDRESS}#code" in console.getvalue()


def test_verify_batch_command_without_records(tmp_path):
    recorder = DeploymentRecorder(tmp_path)
    recorder.write_chain_artifact("sepolia-ethereum", {"address": "Mint", "contractName": "SPL Token"})
    with pytest.raises(ConfigurationError, match="No recorded TokenBot contracts"):
        cli.verify_batch_command("sepolia", recorder)
