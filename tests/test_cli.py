"""
Tests for the command-line entry point.
"""
from unittest.mock import patch

import pytest

from credential_relay.cli import build_parser, config_from_args, main
from credential_relay.config import RelayConfig
from credential_relay.exceptions import ConfigurationError
from credential_relay.version import __version__


def test_networks_command(capsys):
    assert main(["networks"]) == 0

    lines = capsys.readouterr().out.splitlines()
    assert lines[0].startswith("anvil\tchain 31337\t")
    assert lines[1].startswith("sepolia\tchain 11155111\t")


def test_version_flag(capsys):
    with pytest.raises(SystemExit) as exc_info:
        main(["--version"])
    assert exc_info.value.code == 0
    assert __version__ in capsys.readouterr().out


def test_command_is_required():
    with pytest.raises(SystemExit):
        main([])


def test_config_from_args_overrides_environment():
    args = build_parser().parse_args(["serve", "--port", "9000", "--network", "anvil"])
    base = RelayConfig(port=8000, host="0.0.0.0", keystore="/keys/relay.json")

    config = config_from_args(args, base)

    assert config.port == 9000
    assert config.network == "anvil"
    assert config.host == "0.0.0.0"
    assert config.keystore == "/keys/relay.json"
    # The base configuration is left alone
    assert base.port == 8000


def test_config_from_args_reads_environment(monkeypatch):
    monkeypatch.setenv("RELAY_CACHE_SIZE", "12")
    args = build_parser().parse_args(["serve", "--workers", "3"])

    config = config_from_args(args)

    assert config.cache_size == 12
    assert config.workers == 3


def test_serve_runs_server():
    with patch("credential_relay.cli.run_server") as run_server:
        assert main(["serve", "--rpc-url", "http://node:8545"]) == 0
    config = run_server.call_args[0][0]
    assert config.rpc_url == "http://node:8545"


def test_serve_startup_failure(caplog):
    with patch("credential_relay.cli.run_server", side_effect=ConfigurationError("No signing key configured")):
        assert main(["serve"]) == 1
    assert "No signing key configured" in caplog.text


def test_serve_unknown_network(caplog):
    with patch("credential_relay.cli.run_server", side_effect=ValueError("Unknown network: mainnet")):
        assert main(["serve", "--network", "mainnet"]) == 1


def test_serve_interrupted():
    with patch("credential_relay.cli.run_server", side_effect=KeyboardInterrupt):
        assert main(["serve"]) == 0


def test_serve_port_in_use(caplog):
    error = OSError(98, "error while attempting to bind on address ('127.0.0.1', 8080): address already in use")
    with patch("credential_relay.cli.run_server", side_effect=error):
        assert main(["serve"]) == 1
    assert "Relay failed to start" in caplog.text
    assert "address already in use" in caplog.text
