"""DIM ecosystem parameters and the resolved mosaic definition cache."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from typing import Any

from .asset_identity import (
    AssetDefinition,
    AssetIdentifier,
    InvalidMosaicDefinitionError,
    normalize_address,
)
from .nis_client import NodeResponseError

logger = logging.getLogger(__name__)

DIM_NAMESPACE = "dim"
DIM_COIN = "dim:coin"
DIM_TOKEN = "dim:token"
DIM_EUR = "dim:eur"

WELL_KNOWN_ASSETS: tuple[str, ...] = (DIM_COIN, DIM_TOKEN, DIM_EUR)

# Account that created dim:coin on NEM mainnet.
DIM_COIN_CREATOR = "NCGGLVO2G3CUACVI5GNX2KRBJSQCN4RDL2ZWJ4DP"

FetchDefinition = Callable[[AssetIdentifier], Awaitable[Mapping[str, Any] | None]]


class ParameterRegistry:
    """Well-known DIM asset metadata plus a resolve-or-fetch definition cache.

    Definitions are fetched lazily the first time an identifier is resolved and
    kept for the lifetime of the registry. A populated entry is never replaced.

    Usage:
        registry = ParameterRegistry()
        definition = await registry.resolve_asset_definition("dim:coin", fetch)
    """

    def __init__(
        self,
        *,
        primary_asset: str | AssetIdentifier = DIM_COIN,
        creator_account: str = DIM_COIN_CREATOR,
    ) -> None:
        self._primary_asset = AssetIdentifier.parse(primary_asset)
        self._creator_account = normalize_address(creator_account)
        self._definitions: dict[AssetIdentifier, AssetDefinition] = {}
        self._locks: dict[AssetIdentifier, asyncio.Lock] = {}

    @property
    def primary_asset(self) -> AssetIdentifier:
        return self._primary_asset

    def get_well_known_creator_account(self) -> str:
        """Return the account that created the primary asset."""
        return self._creator_account

    def is_well_known(self, identifier: str | AssetIdentifier) -> bool:
        return str(AssetIdentifier.parse(identifier)) in WELL_KNOWN_ASSETS

    def get_cached(self, identifier: str | AssetIdentifier) -> AssetDefinition | None:
        return self._definitions.get(AssetIdentifier.parse(identifier))

    def cached_identifiers(self) -> Iterable[AssetIdentifier]:
        return tuple(self._definitions)

    async def resolve_asset_definition(
        self, identifier: str | AssetIdentifier, fetch_fn: FetchDefinition
    ) -> AssetDefinition | None:
        """Return the definition for *identifier*, fetching it on a cache miss.

        Concurrent calls for the same identifier share one fetch.

        Args:
            identifier: ``namespace:mosaic`` identifier
            fetch_fn: Coroutine returning the matching raw NIS mosaic definition,
                or ``None`` when the namespace has no such mosaic

        Returns:
            The cached definition, or ``None`` if the asset does not exist

        Raises:
            MalformedAssetIdentifierError: Before any fetch, for a bad identifier
            NodeResponseError: If the node returned a definition that cannot be
                translated; nothing is cached
            Exception: Whatever *fetch_fn* raises, unchanged
        """
        asset_id = AssetIdentifier.parse(identifier)

        cached = self._definitions.get(asset_id)
        if cached is not None:
            logger.debug(f"Definition cache hit for {asset_id}")
            return cached

        lock = self._locks.setdefault(asset_id, asyncio.Lock())
        async with lock:
            # Another resolution may have filled the entry while we waited.
            cached = self._definitions.get(asset_id)
            if cached is not None:
                logger.debug(f"Definition cache hit for {asset_id} after wait")
                return cached

            logger.debug(f"Definition cache miss for {asset_id}, fetching")
            raw = await fetch_fn(asset_id)
            if raw is None:
                logger.info(f"No mosaic definition found for {asset_id}")
                return None

            try:
                definition = AssetDefinition.from_mosaic_definition(raw)
            except InvalidMosaicDefinitionError as e:
                raise NodeResponseError(
                    f"Node returned a bad definition for {asset_id}: {e}"
                ) from e
            self._definitions[asset_id] = definition
            logger.info(
                f"Cached definition for {asset_id}: supply={definition.total_supply}, "
                f"divisibility={definition.divisibility}, "
                f"levy={'yes' if definition.levy else 'no'}"
            )
            return definition
