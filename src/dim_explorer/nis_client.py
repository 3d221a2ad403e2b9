"""HTTP client for the NIS REST API of a NEM node.

Only the read-only endpoints the explorer needs are wrapped. Failures of the
underlying transport are raised as ``NodeError`` subclasses and are never
turned into empty results.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import urljoin

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .asset_identity import MosaicBalance, normalize_address

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class NetworkPreset:
    """Known NEM network with a default node."""

    name: str
    network_id: int
    default_node: str


NETWORKS: dict[str, NetworkPreset] = {
    "mainnet": NetworkPreset("mainnet", 104, "http://hugealice.nem.ninja:7890"),
    "testnet": NetworkPreset("testnet", -104, "http://hugetestalice.nem.ninja:7890"),
}


class NodeError(Exception):
    """Base error for failed node requests."""

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class NodeConnectionError(NodeError):
    """The node could not be reached."""


class NodeTimeoutError(NodeError):
    """The node did not answer in time."""


class NodeResponseError(NodeError):
    """The node answered with an error status or an unexpected payload."""

    def __init__(self, message: str, url: str | None = None, status_code: int | None = None):
        super().__init__(message, url)
        self.status_code = status_code


def mosaic_id_to_name(mosaic_id: Mapping[str, Any]) -> str:
    """Format a raw NIS mosaic id as ``namespace:name``."""

    return f"{mosaic_id.get('namespaceId', '')}:{mosaic_id.get('name', '')}"


def resolve_network(network: str) -> NetworkPreset:
    try:
        return NETWORKS[network.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown network {network!r}; expected one of {', '.join(sorted(NETWORKS))}"
        ) from None


class NISClient:
    """Blocking NIS API client.

    Usage:
        with NISClient.for_network("mainnet") as client:
            definitions = client.mosaic_definitions("dim")
            balances = client.owned_mosaics("NCGGLVO2G3CUACVI5GNX2KRBJSQCN4RDL2ZWJ4DP")
    """

    def __init__(
        self,
        base_url: str,
        *,
        network_id: int = NETWORKS["mainnet"].network_id,
        timeout: float = 10.0,
        max_retries: int = 0,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Node URL including port, e.g. ``http://127.0.0.1:7890``
            network_id: NEM network id the node belongs to
            timeout: Per-request timeout in seconds
            max_retries: Transport-level retries for idempotent GETs
            session: Pre-configured session (mostly for tests)
        """
        self.base_url = base_url.rstrip("/") + "/"
        self.network_id = network_id
        self.timeout = timeout
        self.session = session or requests.Session()

        if max_retries > 0:
            adapter = HTTPAdapter(
                max_retries=Retry(
                    total=max_retries,
                    backoff_factor=0.5,
                    status_forcelist=[502, 503, 504],
                    allowed_methods=["GET"],
                )
            )
            self.session.mount("http://", adapter)
            self.session.mount("https://", adapter)

    @classmethod
    def for_network(cls, network: str, base_url: str | None = None, **kwargs: Any) -> NISClient:
        preset = resolve_network(network)
        return cls(base_url or preset.default_node, network_id=preset.network_id, **kwargs)

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> NISClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _get(self, endpoint: str, params: Mapping[str, Any] | None = None) -> Any:
        url = urljoin(self.base_url, endpoint.lstrip("/"))

        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.Timeout as e:
            raise NodeTimeoutError(f"Request to {url} timed out: {e}", url) from e
        except requests.ConnectionError as e:
            raise NodeConnectionError(f"Could not reach node at {url}: {e}", url) from e
        except requests.RequestException as e:
            raise NodeError(f"Request to {url} failed: {e}", url) from e

        logger.debug(f"GET {url} {dict(params or {})} - Status: {response.status_code}")

        try:
            data = response.json()
        except ValueError:
            data = None

        if not 200 <= response.status_code < 300:
            message = data.get("message") if isinstance(data, dict) else None
            raise NodeResponseError(
                f"Node returned HTTP {response.status_code} for {url}: "
                f"{message or response.text[:200]}",
                url,
                status_code=response.status_code,
            )
        if data is None:
            raise NodeResponseError(f"Node returned a non-JSON payload for {url}", url)
        return data

    def _data_list(self, payload: Any, url_hint: str) -> list[Mapping[str, Any]]:
        # Every list endpoint wraps its entries in {"data": [...]}; anything else
        # must not read as an empty result.
        if not isinstance(payload, dict) or not isinstance(payload.get("data"), list):
            raise NodeResponseError(f"Unexpected payload shape from {url_hint}: {payload!r}")

        entries = payload["data"]
        for entry in entries:
            if not isinstance(entry, Mapping):
                raise NodeResponseError(f"Unexpected entry from {url_hint}: {entry!r}")
        return entries

    def heartbeat(self) -> bool:
        payload = self._get("heartbeat")
        return isinstance(payload, dict) and payload.get("code") == 1

    def mosaic_definitions(self, namespace: str, page_size: int = MAX_PAGE_SIZE) -> list[dict]:
        """Return every mosaic definition created in *namespace*.

        Follows the ``id`` paging cursor until a short page is returned.

        Args:
            namespace: Namespace id, e.g. ``dim``
            page_size: Entries per request (capped at 100)

        Returns:
            Raw ``mosaic`` objects in node order

        Raises:
            NodeError: If any page cannot be fetched
        """
        page_size = max(1, min(page_size, MAX_PAGE_SIZE))
        definitions: list[dict] = []
        cursor: int | None = None

        while True:
            params: dict[str, Any] = {"namespace": namespace, "pageSize": page_size}
            if cursor is not None:
                params["id"] = cursor

            entries = self._data_list(
                self._get("namespace/mosaic/definition/page", params),
                "namespace/mosaic/definition/page",
            )
            for entry in entries:
                mosaic = entry.get("mosaic", entry)
                if not isinstance(mosaic, Mapping):
                    raise NodeResponseError(
                        f"Unexpected mosaic definition for namespace '{namespace}': {mosaic!r}"
                    )
                if mosaic:
                    definitions.append(mosaic)

            if len(entries) < page_size:
                break

            meta = entries[-1].get("meta")
            next_cursor = meta.get("id") if isinstance(meta, Mapping) else None
            if next_cursor is None or next_cursor == cursor:
                break
            cursor = next_cursor

        logger.debug(f"Fetched {len(definitions)} mosaic definitions for namespace '{namespace}'")
        return definitions

    def owned_mosaics(self, address: str) -> list[MosaicBalance]:
        """Return the mosaic balances owned by *address*.

        Mosaic ids are returned raw; callers format them with
        ``mosaic_id_to_name`` or their own formatter.
        """

        entries = self._data_list(
            self._get("account/mosaic/owned", {"address": normalize_address(address)}),
            "account/mosaic/owned",
        )

        balances = []
        for entry in entries:
            mosaic_id = entry.get("mosaicId")
            try:
                if not isinstance(mosaic_id, Mapping):
                    raise TypeError(f"mosaicId is {mosaic_id!r}")
                balances.append(
                    MosaicBalance(mosaic_id=mosaic_id, quantity=int(entry.get("quantity", 0)))
                )
            except (TypeError, ValueError) as e:
                raise NodeResponseError(
                    f"Unexpected balance entry for {address}: {entry!r} ({e})"
                ) from e
        return balances
