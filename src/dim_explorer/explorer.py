"""Queries over the DIM ecosystem's shared on-chain information."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any, Protocol

from .asset_identity import AssetDefinition, AssetIdentifier, MosaicBalance
from .nis_client import mosaic_id_to_name
from .parameters import ParameterRegistry

logger = logging.getLogger(__name__)

HOLDERS_SHARE_PERCENT = 30


class NodeQueries(Protocol):
    """Read-only node operations the explorer depends on."""

    def mosaic_definitions(self, namespace: str) -> Sequence[Mapping[str, Any]]: ...

    def owned_mosaics(self, address: str) -> Sequence[MosaicBalance]: ...


def holders_share(amount: int) -> int:
    """Return the token holders' share of a levy pool, rounded up.

    Integer ceiling of ``amount * 30 / 100``; float math would give
    ``ceil(0.3 * 10) == 4``.
    """

    if amount < 0:
        raise ValueError(f"Levy pool amount must be non-negative, got {amount}")
    return -(-amount * HOLDERS_SHARE_PERCENT // 100)


class DIMExplorer:
    """Entry point to the DIM ecosystem's levy and supply figures.

    Every query is a coroutine; blocking node calls run in a worker thread.

    Usage:
        with NISClient.for_network("mainnet") as client:
            explorer = DIMExplorer(client)
            share = await explorer.get_total_holders_share_levy_amount()
    """

    def __init__(
        self,
        client: NodeQueries,
        parameters: ParameterRegistry | None = None,
        *,
        format_mosaic_id: Callable[[Mapping[str, Any]], str] = mosaic_id_to_name,
    ) -> None:
        """Initialize the explorer.

        Args:
            client: Node query client (usually ``NISClient``)
            parameters: Registry holding the definition cache
            format_mosaic_id: Formats a raw mosaic id as ``namespace:name``
        """
        self.client = client
        self.parameters = parameters or ParameterRegistry()
        self._format_mosaic_id = format_mosaic_id

    async def _fetch_mosaic_definition(
        self, identifier: AssetIdentifier
    ) -> Mapping[str, Any] | None:
        definitions = await asyncio.to_thread(
            self.client.mosaic_definitions, identifier.namespace
        )
        wanted = str(identifier)
        for definition in definitions:
            if self._format_mosaic_id(definition.get("id") or {}) == wanted:
                return definition
        return None

    async def get_currency(self, identifier: str | AssetIdentifier) -> AssetDefinition | None:
        """Return the on-chain definition of a DIM currency, or ``None`` if unknown."""
        return await self.parameters.resolve_asset_definition(
            identifier, self._fetch_mosaic_definition
        )

    async def get_total_available_levy_amount(self) -> int:
        """Return the primary asset balance of the levy recipient account.

        This is 100% of the currently accumulated network fees. An unknown
        primary asset, a missing levy, or a recipient without a balance all
        yield ``0``.
        """
        primary = self.parameters.primary_asset
        definition = await self.get_currency(primary)
        if definition is None:
            logger.warning(f"Primary asset {primary} not found on the node")
            return 0
        if definition.levy is None:
            logger.warning(f"Primary asset {primary} has no levy configured")
            return 0

        recipient = definition.levy.recipient
        balances = await asyncio.to_thread(self.client.owned_mosaics, recipient)
        wanted = str(primary)
        for balance in balances:
            if self._format_mosaic_id(balance.mosaic_id) == wanted:
                logger.debug(f"Levy recipient {recipient} holds {balance.quantity} {wanted}")
                return balance.quantity

        logger.info(f"Levy recipient {recipient} holds no {wanted}")
        return 0

    async def get_total_holders_share_levy_amount(self) -> int:
        """Return the token holders' 30% share of the levy pool, rounded up."""
        return holders_share(await self.get_total_available_levy_amount())

    async def get_total_circulating_supply(self, identifier: str | AssetIdentifier) -> int:
        """Return the total supply reported by the node, ``0`` for unknown assets."""
        asset_id = AssetIdentifier.parse(identifier)
        definition = await self.get_currency(asset_id)
        if definition is None:
            logger.warning(f"Unknown asset {asset_id}; circulating supply is 0")
            return 0
        return definition.total_supply
