"""Pytest configuration and fixtures."""

import logging
from unittest.mock import MagicMock

import pytest

from dim_explorer.asset_identity import MosaicBalance

LEVY_RECIPIENT = "NCGGLVO2G3CUACVI5GNX2KRBJSQCN4RDL2ZWJ4DP"


def _mosaic_definition(
    namespace: str = "dim",
    name: str = "coin",
    *,
    initial_supply: int = 9_000_000_000,
    divisibility: int = 6,
    levy: dict | None = None,
) -> dict:
    """Build a raw NIS mosaic definition."""
    return {
        "creator": "a1aaca6c17a24252e674d155713cdf55996ad00175be4af02a20c67b59f9fe8a",
        "description": f"{namespace}:{name} test mosaic",
        "id": {"namespaceId": namespace, "name": name},
        "properties": [
            {"name": "divisibility", "value": str(divisibility)},
            {"name": "initialSupply", "value": str(initial_supply)},
            {"name": "supplyMutable", "value": "false"},
            {"name": "transferable", "value": "true"},
        ],
        "levy": levy if levy is not None else {},
    }


def _dim_coin_levy(recipient: str = LEVY_RECIPIENT) -> dict:
    return {
        "type": 2,
        "recipient": recipient,
        "mosaicId": {"namespaceId": "dim", "name": "coin"},
        "fee": 10,
    }


@pytest.fixture
def levy_recipient():
    """Levy recipient of dim:coin in the test definitions."""
    return LEVY_RECIPIENT


@pytest.fixture
def make_definition():
    """Factory for raw NIS mosaic definitions."""
    return _mosaic_definition


@pytest.fixture
def dim_coin_levy():
    """Factory for the dim:coin levy payload."""
    return _dim_coin_levy


@pytest.fixture
def dim_definitions():
    """Raw definitions of the dim namespace (dim:coin with levy, dim:eur)."""
    return [
        _mosaic_definition("dim", "coin", levy=_dim_coin_levy()),
        _mosaic_definition("dim", "eur", initial_supply=1_000_000, divisibility=2),
    ]


@pytest.fixture
def mock_client(dim_definitions):
    """Mock node client serving the dim namespace and an empty levy account."""
    client = MagicMock()
    client.mosaic_definitions.return_value = dim_definitions
    client.owned_mosaics.return_value = []
    return client


@pytest.fixture
def balance():
    def _balance(identifier: str, quantity: int) -> MosaicBalance:
        namespace, name = identifier.split(":")
        return MosaicBalance({"namespaceId": namespace, "name": name}, quantity)

    return _balance


@pytest.fixture(autouse=True)
def detach_cli_log_handlers():
    """Remove stderr handlers installed by CLI runs so they don't outlive the runner."""
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_dim_explorer", False):
            root.removeHandler(handler)


@pytest.fixture
def anyio_backend():
    """The package is built on asyncio; run anyio-marked tests on asyncio only."""
    return "asyncio"
