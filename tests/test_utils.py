import io

import pytest

from conftest import make_reader
from tokenbot import reporter, utils
from tokenbot.models import ChainDeployment, DeploymentRecord
from tokenbot.verifier import STATUS_FAILED, STATUS_VERIFIED, VerificationResult


def test_console_without_color(console):
    utils.error("bad")
    utils.warn("careful")
    utils.success("done")
    assert console.getvalue() == "[error] bad\n[warn] careful\n[success] done\n"
    assert utils.bold("x") == "x"


def test_console_with_color():
    stream = io.StringIO()
    colored = utils.Console(stream, color=True)
    colored.info("hello")
    assert stream.getvalue() == f"{utils.BLUE}[info]{utils.RESET} hello\n"


def test_print_menu_accepts_dict_and_list(console):
    utils.print_menu("Main", {"1": "Deploy", "0": "Exit"})
    utils.print_menu("Pick", [("1", "sepolia")], title_formatter=str.upper)
    output = console.getvalue()
    assert "=== Main ===" in output
    assert "1. Deploy" in output
    assert "=== PICK ===" in output


def test_line_reader_plain_and_masked_without_tty():
    reader = make_reader("  first  ", "secret")
    assert reader.read_line("Name: ") == "first"
    assert reader.read_line("Key: ", masked=True) == "secret"
    assert reader.stream_out.getvalue() == "Name: Key: \n"


def test_line_reader_eof():
    with pytest.raises(EOFError):
        make_reader().read_line("prompt: ")


@pytest.mark.parametrize(
    "answer, default, expected",
    [("y", False, True), ("YES", False, True), ("n", True, False), ("", True, True), ("", False, False)],
)
def test_confirm(answer, default, expected):
    assert make_reader(answer).confirm("Continue? ", default) is expected


def test_print_summary_lists_every_chain(console):
    record = DeploymentRecord(network="sepolia", chain_id=11155111, mode="testnet", deployer="0xabc")
    record.set_contract(
        "ethereum",
        ChainDeployment(address="0xtoken", transaction_hash="0x1", block_number=7, gas_used=1_500_000),
    )
    record.set_contract("base", None)

    reporter.print_summary(record)
    reporter.print_next_steps(record)

    output = console.getvalue()
    assert "Ethereum L1: 0xtoken" in output
    assert "Gas Used: 1,500,000" in output
    assert "Base L2: not deployed" in output
    assert "tokenbot verify-batch --network sepolia" in output
    assert "bridge.base.org" in output


def test_print_verification_summary_returns_failures(console):
    results = [
        VerificationResult("0x1", "TokenBotL1", STATUS_VERIFIED),
        VerificationResult("0x2", "TokenBotL2", STATUS_FAILED, "bytecode mismatch"),
    ]
    failed = reporter.print_verification_summary(results)
    assert [item.address for item in failed] == ["0x2"]
    assert "Verified: 1/2" in console.getvalue()
