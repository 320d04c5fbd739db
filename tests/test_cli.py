"""CLI tests for the private waitlist commands."""

from __future__ import annotations

import json
import subprocess
from pathlib import Path

import pytest
from click.testing import CliRunner

from private_waitlist import __version__, cli
from private_waitlist.protocol.hashing import commit, nullify
from private_waitlist.protocol.merkle import build_tree
from private_waitlist.protocol.parsing import to_hex
from private_waitlist.snark import snarkjs

SECRETS = ("1111", "2222", "0xd05", "4444")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "PRIVATE_WAITLIST_CONFIG",
        "PRIVATE_WAITLIST_CIRCUITS_DIR",
        "PRIVATE_WAITLIST_PROVER",
        "PRIVATE_WAITLIST_STATE_FILE",
        "PRIVATE_WAITLIST_DEFAULT_CAPACITY",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def state_file(tmp_path) -> str:
    return str(tmp_path / "waitlist.cbor")


def _invoke(*args: str):
    return CliRunner().invoke(cli.main, list(args))


def test_version_option() -> None:
    result = _invoke("--version")
    assert result.exit_code == 0
    assert __version__ in result.output


def test_commit_prints_hex() -> None:
    result = _invoke("commit", "1234")
    assert result.exit_code == 0
    assert to_hex(commit(1234)) in result.output


def test_nullify_accepts_hex_secret() -> None:
    result = _invoke("nullify", "0x4d2")
    assert result.exit_code == 0
    assert to_hex(nullify(1234)) in result.output


def test_invalid_secret_rejected() -> None:
    result = _invoke("commit", "not-a-number")
    assert result.exit_code != 0


def test_tree_prints_root() -> None:
    commitments = [commit(i) for i in range(4)]
    result = _invoke("tree", *[str(c) for c in commitments])
    assert result.exit_code == 0
    assert to_hex(build_tree(commitments).root) in result.output


def test_tree_rejects_three_leaves() -> None:
    result = _invoke("tree", "1", "2", "3")
    assert result.exit_code == 1
    assert "power of two" in result.output


def test_path_verifies() -> None:
    result = _invoke("path", "--index", "2", "1", "2", "3", "4")
    assert result.exit_code == 0
    assert "recombines to root" in result.output


def test_path_rejects_bad_index() -> None:
    result = _invoke("path", "--index", "4", "1", "2", "3", "4")
    assert result.exit_code == 1


def test_full_flow_against_state_file(state_file: str) -> None:
    assert _invoke("init", "--capacity", "4", "--state", state_file).exit_code == 0

    for slot, secret in enumerate(SECRETS):
        result = _invoke("join", secret, "--state", state_file)
        assert result.exit_code == 0, result.output
        assert f"slot {slot}" in result.output

    result = _invoke("lock", "--state", state_file)
    assert result.exit_code == 0, result.output
    assert "locked" in result.output

    result = _invoke("check", "2222", "--state", state_file)
    assert result.exit_code == 0
    assert "slot 1" in result.output

    result = _invoke("redeem", "2222", "--state", state_file)
    assert result.exit_code == 0, result.output
    assert to_hex(nullify(2222)) in result.output

    result = _invoke("redeem", "2222", "--state", state_file)
    assert result.exit_code == 1
    assert "already" in result.output

    result = _invoke("redeem", "5555", "--state", state_file)
    assert result.exit_code == 1

    result = _invoke("show", "--state", state_file)
    assert result.exit_code == 0
    assert "redeem" in result.output
    assert "4/4" in result.output


def test_init_refuses_overwrite(state_file: str) -> None:
    assert _invoke("init", "--state", state_file).exit_code == 0
    result = _invoke("init", "--state", state_file)
    assert result.exit_code == 1
    assert _invoke("init", "--force", "--state", state_file).exit_code == 0


def test_init_rejects_bad_capacity(state_file: str) -> None:
    result = _invoke("init", "--capacity", "3", "--state", state_file)
    assert result.exit_code == 1


def test_join_without_state_file(state_file: str) -> None:
    result = _invoke("join", "1", "--state", state_file)
    assert result.exit_code == 1
    assert "unable to read" in result.output


def test_config_file_sets_defaults(tmp_path, state_file: str) -> None:
    config = tmp_path / "waitlist.yaml"
    config.write_text(f"state_file: {state_file}\ndefault_capacity: 2\n")
    assert _invoke("--config", str(config), "init").exit_code == 0
    result = _invoke("--config", str(config), "show")
    assert result.exit_code == 0
    assert "0/2" in result.output


def test_demo() -> None:
    result = _invoke("demo")
    assert result.exit_code == 0, result.output
    assert "AlreadyRedeemedError" in result.output
    assert "NotRedeemableError" in result.output


def test_version_command() -> None:
    result = _invoke("version")
    assert result.exit_code == 0
    assert __version__ in result.output


def test_bad_prover_setting_prints_error(monkeypatch: pytest.MonkeyPatch, state_file: str) -> None:
    assert _invoke("init", "--state", state_file).exit_code == 0
    monkeypatch.setenv("PRIVATE_WAITLIST_PROVER", "groth16")
    result = _invoke("join", "1", "--state", state_file)
    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "Invalid prover type" in result.output


def test_calldata_needs_snarkjs(state_file: str) -> None:
    assert _invoke("init", "--capacity", "1", "--state", state_file).exit_code == 0
    assert _invoke("join", "1", "--state", state_file).exit_code == 0
    result = _invoke("lock", "--calldata", "--state", state_file)
    assert result.exit_code == 1
    assert "snarkjs" in result.output
    assert "phase: commit" in _invoke("show", "--state", state_file).output


def test_lock_prints_calldata_with_snarkjs(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, state_file: str
) -> None:
    circuit_dir = tmp_path / "circuits" / "locker"
    circuit_dir.mkdir(parents=True)
    for name in ("locker.wasm", "locker_final.zkey", "locker_verification_key.json"):
        (circuit_dir / name).write_bytes(b"artifact")
    monkeypatch.setenv("PRIVATE_WAITLIST_CIRCUITS_DIR", str(tmp_path / "circuits"))

    def fake_run(command, **kwargs):
        stdout = ""
        if command[1:3] == ["plonk", "fullprove"]:
            Path(command[6]).write_text('{"protocol": "plonk"}')
            Path(command[7]).write_text(json.dumps([str(commit(1))]))
        elif command[1:3] == ["plonk", "verify"]:
            stdout = "[INFO]  snarkJS: OK!"
        else:
            assert command[1:4] == ["zkey", "export", "soliditycalldata"]
            stdout = '0xabc,["0x01"]'
        return subprocess.CompletedProcess(command, 0, stdout=stdout, stderr="")

    monkeypatch.setattr(snarkjs.subprocess, "run", fake_run)
    assert _invoke("init", "--capacity", "1", "--state", state_file).exit_code == 0
    assert _invoke("join", "1", "--state", state_file).exit_code == 0
    result = _invoke("lock", "--prover", "snarkjs", "--calldata", "--state", state_file)
    assert result.exit_code == 0, result.output
    assert "calldata proof: 0xabc" in result.output
    assert '["0x01"]' in result.output
