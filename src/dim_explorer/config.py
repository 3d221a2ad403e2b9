"""Configuration management for the DIM explorer."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from dim_explorer.asset_identity import AssetIdentifier, MalformedAssetIdentifierError
from dim_explorer.nis_client import NETWORKS
from dim_explorer.parameters import DIM_COIN, DIM_COIN_CREATOR


@dataclass
class NodeConfig:
    """NIS node connection settings."""

    network: str = "mainnet"
    base_url: str | None = None
    timeout_seconds: float = 10.0
    max_retries: int = 0

    def __post_init__(self):
        """Validate configuration."""
        self.network = self.network.lower()
        if self.network not in NETWORKS:
            raise ValueError(
                f"[node].network must be one of {', '.join(sorted(NETWORKS))} "
                f"(got {self.network!r})"
            )
        if self.timeout_seconds <= 0:
            raise ValueError("[node].timeout_seconds must be positive")
        if self.max_retries < 0:
            raise ValueError("[node].max_retries must not be negative")

    @property
    def url(self) -> str:
        """Configured node URL, or the network's default node."""
        return self.base_url or NETWORKS[self.network].default_node


@dataclass
class EcosystemConfig:
    """Well-known DIM ecosystem identifiers."""

    primary_asset: str = DIM_COIN
    creator_account: str = DIM_COIN_CREATOR

    def __post_init__(self):
        try:
            AssetIdentifier.parse(self.primary_asset)
        except MalformedAssetIdentifierError as e:
            raise ValueError(f"[ecosystem].primary_asset is invalid: {e}") from e


@dataclass
class LoggingConfig:
    """Log output settings."""

    level: str = "WARNING"
    format: Literal["console", "json"] = "console"


@dataclass
class Config:
    """Main configuration container."""

    node: NodeConfig = field(default_factory=NodeConfig)
    ecosystem: EcosystemConfig = field(default_factory=EcosystemConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _apply_env_overrides(config: Config) -> Config:
    log_level = os.environ.get("LOG_LEVEL")
    if log_level:
        config.logging.level = log_level.upper()

    node_url = os.environ.get("DIM_NODE_URL")
    if node_url:
        config.node.base_url = node_url
    return config


def default_config() -> Config:
    """Build a configuration from defaults and environment overrides."""
    return _apply_env_overrides(Config())


def load_config(config_path: str | Path = "config.toml") -> Config:
    """Load configuration from TOML file.

    Every section is optional; missing values fall back to defaults.

    Args:
        config_path: Path to the configuration file

    Returns:
        Parsed configuration object

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If a value is invalid
    """
    import tomllib

    config_file = Path(config_path)
    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_file, "rb") as f:
        data = tomllib.load(f)

    node_data = data.get("node", {})
    # Empty string means "use the network preset"
    base_url = node_data.get("base_url") or None
    node_config = NodeConfig(
        network=node_data.get("network", "mainnet"),
        base_url=base_url,
        timeout_seconds=float(node_data.get("timeout_seconds", 10.0)),
        max_retries=int(node_data.get("max_retries", 0)),
    )

    eco_data = data.get("ecosystem", {})
    ecosystem_config = EcosystemConfig(
        primary_asset=eco_data.get("primary_asset", DIM_COIN),
        creator_account=eco_data.get("creator_account", DIM_COIN_CREATOR),
    )

    log_data = data.get("logging", {})
    log_format = log_data.get("format", "console")
    if log_format not in {"console", "json"}:
        raise ValueError(f"[logging].format must be 'console' or 'json' (got {log_format!r})")
    logging_config = LoggingConfig(
        level=str(log_data.get("level", "WARNING")).upper(),
        format=log_format,
    )

    return _apply_env_overrides(
        Config(node=node_config, ecosystem=ecosystem_config, logging=logging_config)
    )
