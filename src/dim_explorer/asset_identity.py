"""Core asset identity definitions for DIM mosaics."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

_IDENTIFIER_PATTERN = re.compile(r"^([^:\s](?:[^:]*[^:\s])?):([^:\s](?:[^:]*[^:\s])?)$")

LEVY_FEE_ABSOLUTE = 1
LEVY_FEE_PERCENTILE = 2


class MalformedAssetIdentifierError(ValueError):
    """Raised when a string is not a ``namespace:mosaic`` identifier."""


class InvalidMosaicDefinitionError(ValueError):
    """Raised when a raw NIS mosaic definition cannot be translated."""


def _to_int(value: Any, default: int = 0) -> int:
    if value is None or value == "":
        return default
    return int(value)


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


def normalize_address(address: str) -> str:
    """Return *address* without dashes or whitespace, upper-cased."""

    return re.sub(r"[\s-]", "", address).upper()


@dataclass(frozen=True, order=True)
class AssetIdentifier:
    """Fully qualified mosaic name, e.g. ``dim:coin``."""

    namespace: str
    name: str

    @classmethod
    def parse(cls, text: str | AssetIdentifier) -> AssetIdentifier:
        """Parse *text* into an identifier.

        Raises:
            MalformedAssetIdentifierError: If *text* does not contain exactly two
                non-empty segments separated by ``:``.
        """

        if isinstance(text, AssetIdentifier):
            return text
        if not isinstance(text, str):
            raise MalformedAssetIdentifierError(f"Asset identifier must be a string, got {text!r}")

        match = _IDENTIFIER_PATTERN.match(text.strip())
        if not match:
            raise MalformedAssetIdentifierError(
                f"Invalid asset identifier {text!r}: expected 'namespace:mosaic'"
            )
        return cls(namespace=match.group(1), name=match.group(2))

    @classmethod
    def from_mosaic_id(cls, mosaic_id: Mapping[str, Any]) -> AssetIdentifier:
        return cls.parse(f"{mosaic_id.get('namespaceId', '')}:{mosaic_id.get('name', '')}")

    def __str__(self) -> str:
        return f"{self.namespace}:{self.name}"


@dataclass(frozen=True)
class LevyConfig:
    """Levy attached to a mosaic definition."""

    recipient: str
    fee: int
    fee_type: int
    asset: AssetIdentifier

    @property
    def is_percentile(self) -> bool:
        return self.fee_type == LEVY_FEE_PERCENTILE

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any] | None) -> LevyConfig | None:
        """Build a levy from NIS JSON; empty levies yield ``None``."""

        if not raw or not raw.get("recipient"):
            return None

        return cls(
            recipient=normalize_address(raw["recipient"]),
            fee=_to_int(raw.get("fee")),
            fee_type=_to_int(raw.get("type"), LEVY_FEE_ABSOLUTE),
            asset=AssetIdentifier.from_mosaic_id(raw.get("mosaicId") or {}),
        )


@dataclass(frozen=True)
class AssetDefinition:
    """Resolved on-chain description of a mosaic.

    Attributes:
        identifier: Fully qualified mosaic name
        total_supply: Supply in the smallest divisible unit
        divisibility: Number of decimal places
        creator: Creator public key as reported by the node
        description: Free-form mosaic description
        supply_mutable: Whether the creator may change the supply
        transferable: Whether the mosaic can be sent to third parties
        levy: Levy configuration, if any
    """

    identifier: AssetIdentifier
    total_supply: int
    divisibility: int
    creator: str = ""
    description: str = ""
    supply_mutable: bool = False
    transferable: bool = True
    levy: LevyConfig | None = None

    @classmethod
    def from_mosaic_definition(cls, raw: Mapping[str, Any]) -> AssetDefinition:
        """Translate a raw NIS mosaic definition.

        NIS reports ``initialSupply`` in whole units, so the total supply is
        scaled by ``10 ** divisibility``.

        Raises:
            InvalidMosaicDefinitionError: If the id, a numeric property or the
                levy's mosaic id is missing or malformed.
        """

        try:
            properties = {
                prop.get("name"): prop.get("value") for prop in raw.get("properties", []) or []
            }
            divisibility = _to_int(properties.get("divisibility"))
            initial_supply = _to_int(properties.get("initialSupply"))
            if divisibility < 0:
                raise ValueError(f"negative divisibility {divisibility}")

            return cls(
                identifier=AssetIdentifier.from_mosaic_id(raw.get("id") or {}),
                total_supply=initial_supply * 10**divisibility,
                divisibility=divisibility,
                creator=raw.get("creator", "") or "",
                description=raw.get("description", "") or "",
                supply_mutable=_to_bool(properties.get("supplyMutable", False)),
                transferable=_to_bool(properties.get("transferable", True)),
                levy=LevyConfig.from_raw(raw.get("levy")),
            )
        except (AttributeError, TypeError, ValueError) as e:
            raise InvalidMosaicDefinitionError(f"Invalid mosaic definition {raw!r}: {e}") from e

    def to_units(self, amount: int) -> str:
        """Format *amount* (smallest unit) as a fixed-point string."""

        return format_amount(amount, self.divisibility)


@dataclass(frozen=True)
class MosaicBalance:
    """Quantity of a mosaic owned by an account.

    ``mosaic_id`` is the raw NIS id, ``{"namespaceId": ..., "name": ...}``.
    """

    mosaic_id: Mapping[str, Any]
    quantity: int


def format_amount(amount: int, divisibility: int) -> str:
    """Render *amount* in smallest units with *divisibility* decimal places."""

    if divisibility <= 0:
        return str(amount)
    sign = "-" if amount < 0 else ""
    whole, fraction = divmod(abs(amount), 10**divisibility)
    return f"{sign}{whole}.{fraction:0{divisibility}d}"
