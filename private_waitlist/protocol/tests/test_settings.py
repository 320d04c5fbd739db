"""
Unit tests for settings resolution.
"""

import pytest

from private_waitlist.protocol.exceptions import InvalidInputError
from private_waitlist.protocol.settings import Settings, load_settings

_ENV_VARS = (
    "PRIVATE_WAITLIST_CONFIG",
    "PRIVATE_WAITLIST_CIRCUITS_DIR",
    "PRIVATE_WAITLIST_PROVER",
    "PRIVATE_WAITLIST_PROVER_TIMEOUT",
    "PRIVATE_WAITLIST_SNARKJS_BIN",
    "PRIVATE_WAITLIST_STATE_FILE",
    "PRIVATE_WAITLIST_DEFAULT_CAPACITY",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    assert load_settings() == Settings()


def test_yaml_file(tmp_path) -> None:
    path = tmp_path / "waitlist.yaml"
    path.write_text("prover: snarkjs\nprover_timeout: 30\ndefault_capacity: 8\n")
    settings = load_settings(path)
    assert settings.prover == "snarkjs"
    assert settings.prover_timeout == 30.0
    assert settings.default_capacity == 8
    assert settings.state_file == "waitlist.cbor"


def test_config_path_from_env(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "waitlist.yaml"
    path.write_text("state_file: other.cbor\n")
    monkeypatch.setenv("PRIVATE_WAITLIST_CONFIG", str(path))
    assert load_settings().state_file == "other.cbor"


def test_env_overrides_file(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "waitlist.yaml"
    path.write_text("default_capacity: 8\n")
    monkeypatch.setenv("PRIVATE_WAITLIST_DEFAULT_CAPACITY", "16")
    assert load_settings(path).default_capacity == 16


def test_explicit_override_wins(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PRIVATE_WAITLIST_SNARKJS_BIN", "/env/snarkjs")
    settings = load_settings(snarkjs_bin="/opt/snarkjs", circuits_dir=None)
    assert settings.snarkjs_bin == "/opt/snarkjs"
    assert settings.circuits_dir == "circuits"


def test_unknown_override_rejected() -> None:
    with pytest.raises(InvalidInputError, match="Unknown settings"):
        load_settings(backend="mock")


def test_unknown_file_key_rejected(tmp_path) -> None:
    path = tmp_path / "waitlist.yaml"
    path.write_text("backend: mock\n")
    with pytest.raises(InvalidInputError, match="backend"):
        load_settings(path)


def test_file_must_hold_mapping(tmp_path) -> None:
    path = tmp_path / "waitlist.yaml"
    path.write_text("- a\n- b\n")
    with pytest.raises(InvalidInputError, match="mapping"):
        load_settings(path)


def test_malformed_yaml_rejected(tmp_path) -> None:
    path = tmp_path / "waitlist.yaml"
    path.write_text("prover: [unclosed\n")
    with pytest.raises(InvalidInputError, match="Invalid settings file"):
        load_settings(path)


def test_bad_value_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PRIVATE_WAITLIST_DEFAULT_CAPACITY", "many")
    with pytest.raises(InvalidInputError, match="default_capacity"):
        load_settings()


def test_fractional_int_rejected(tmp_path) -> None:
    path = tmp_path / "waitlist.yaml"
    path.write_text("default_capacity: 4.9\n")
    with pytest.raises(InvalidInputError, match="default_capacity"):
        load_settings(path)


def test_whole_float_accepted_for_int(tmp_path) -> None:
    path = tmp_path / "waitlist.yaml"
    path.write_text("default_capacity: 8.0\n")
    assert load_settings(path).default_capacity == 8


def test_bool_rejected(tmp_path) -> None:
    path = tmp_path / "waitlist.yaml"
    path.write_text("prover_timeout: true\n")
    with pytest.raises(InvalidInputError, match="prover_timeout"):
        load_settings(path)


def test_unknown_prover_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PRIVATE_WAITLIST_PROVER", "groth16")
    with pytest.raises(InvalidInputError, match="Invalid prover type"):
        load_settings()


def test_unknown_prover_in_file_rejected(tmp_path) -> None:
    path = tmp_path / "waitlist.yaml"
    path.write_text("prover: groth16\n")
    with pytest.raises(InvalidInputError, match="groth16"):
        load_settings(path)
