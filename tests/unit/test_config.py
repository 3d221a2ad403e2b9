"""Unit tests for configuration module."""

import os
import tempfile

import pytest

from dim_explorer.config import (
    EcosystemConfig,
    NodeConfig,
    default_config,
    load_config,
)
from dim_explorer.parameters import DIM_COIN_CREATOR


@pytest.fixture
def valid_config_toml():
    """Valid configuration TOML content."""
    return """
[node]
network = "testnet"
base_url = "http://127.0.0.1:7890"
timeout_seconds = 5.0
max_retries = 2

[ecosystem]
primary_asset = "dim:coin"
creator_account = "TBCX7NABCDEF"

[logging]
level = "debug"
format = "json"
"""


@pytest.fixture
def write_config():
    paths = []

    def _write(content: str) -> str:
        with tempfile.NamedTemporaryFile(mode="w", suffix=".toml", delete=False) as f:
            f.write(content)
            paths.append(f.name)
            return f.name

    yield _write
    for path in paths:
        os.unlink(path)


@pytest.fixture(autouse=True)
def clear_env(monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("DIM_NODE_URL", raising=False)


def test_load_valid_config(valid_config_toml, write_config):
    """Test loading a valid configuration file."""
    config = load_config(write_config(valid_config_toml))

    assert config.node.network == "testnet"
    assert config.node.url == "http://127.0.0.1:7890"
    assert config.node.timeout_seconds == 5.0
    assert config.node.max_retries == 2
    assert config.ecosystem.primary_asset == "dim:coin"
    assert config.ecosystem.creator_account == "TBCX7NABCDEF"
    assert config.logging.level == "DEBUG"
    assert config.logging.format == "json"


def test_empty_config_applies_defaults(write_config):
    config = load_config(write_config(""))

    assert config.node.network == "mainnet"
    assert config.node.base_url is None
    assert config.node.url == "http://hugealice.nem.ninja:7890"
    assert config.node.timeout_seconds == 10.0
    assert config.node.max_retries == 0
    assert config.ecosystem.creator_account == DIM_COIN_CREATOR
    assert config.logging.level == "WARNING"
    assert config.logging.format == "console"


def test_empty_base_url_uses_network_preset(write_config):
    config = load_config(write_config('[node]\nnetwork = "testnet"\nbase_url = ""\n'))

    assert config.node.url == "http://hugetestalice.nem.ninja:7890"


def test_env_overrides(write_config, monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "info")
    monkeypatch.setenv("DIM_NODE_URL", "http://env.node:7890")

    config = load_config(write_config(""))

    assert config.logging.level == "INFO"
    assert config.node.url == "http://env.node:7890"


def test_default_config_without_file(monkeypatch):
    monkeypatch.setenv("DIM_NODE_URL", "http://env.node:7890")

    assert default_config().node.url == "http://env.node:7890"


def test_load_config_file_not_found():
    """Test loading non-existent config file raises FileNotFoundError."""
    with pytest.raises(FileNotFoundError, match="Configuration file not found"):
        load_config("nonexistent_config.toml")


def test_unknown_network_rejected(write_config):
    with pytest.raises(ValueError, match="network"):
        load_config(write_config('[node]\nnetwork = "mijin"\n'))


def test_invalid_primary_asset_rejected(write_config):
    with pytest.raises(ValueError, match="primary_asset"):
        load_config(write_config('[ecosystem]\nprimary_asset = "dimcoin"\n'))


def test_invalid_log_format_rejected(write_config):
    with pytest.raises(ValueError, match="format"):
        load_config(write_config('[logging]\nformat = "xml"\n'))


def test_node_config_validation():
    with pytest.raises(ValueError, match="timeout_seconds"):
        NodeConfig(timeout_seconds=0)
    with pytest.raises(ValueError, match="max_retries"):
        NodeConfig(max_retries=-1)


def test_ecosystem_config_defaults():
    assert EcosystemConfig().primary_asset == "dim:coin"
