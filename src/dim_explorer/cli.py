"""CLI entry point for the DIM explorer."""

import asyncio
import json
import logging
from dataclasses import dataclass
from pathlib import Path

import typer

from dim_explorer import __version__
from dim_explorer.asset_identity import (
    AssetDefinition,
    AssetIdentifier,
    MalformedAssetIdentifierError,
    format_amount,
)
from dim_explorer.config import Config, default_config, load_config
from dim_explorer.explorer import DIMExplorer
from dim_explorer.logging_utils import configure_logging
from dim_explorer.nis_client import NETWORKS, NISClient, NodeError
from dim_explorer.parameters import ParameterRegistry

logger = logging.getLogger(__name__)

DEFAULT_DIVISIBILITY = 6

app = typer.Typer(help="Explore DIM ecosystem information on the NEM blockchain.")


@dataclass
class QueryResult:
    """One line of explorer output."""

    title: str
    amount: int
    currency: str
    divisibility: int

    @property
    def formatted(self) -> str:
        return format_amount(self.amount, self.divisibility)

    def to_raw(self) -> dict:
        return {"integer": self.amount, "float": self.formatted, "currency": self.currency}


def _validate_identifier(value: str | None) -> str | None:
    if value is None:
        return None
    try:
        return str(AssetIdentifier.parse(value))
    except MalformedAssetIdentifierError as e:
        raise typer.BadParameter(str(e)) from e


def _load_settings(config: Path | None, network: str | None, node: str | None) -> Config:
    try:
        cfg = load_config(config) if config else default_config()
    except (FileNotFoundError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e

    if network:
        if network.lower() not in NETWORKS:
            raise typer.BadParameter(
                f"expected one of {', '.join(sorted(NETWORKS))}", param_hint="--network"
            )
        cfg.node.network = network.lower()
        # A node URL from the config file or DIM_NODE_URL belongs to the
        # configured network, not the one picked on the command line.
        if not node:
            cfg.node.base_url = None
    if node:
        cfg.node.base_url = node

    configure_logging(cfg.logging)
    logger.debug(f"Using node {cfg.node.url} ({cfg.node.network})")
    return cfg


def _build_client(cfg: Config) -> NISClient:
    return NISClient.for_network(
        cfg.node.network,
        cfg.node.url,
        timeout=cfg.node.timeout_seconds,
        max_retries=cfg.node.max_retries,
    )


def _build_explorer(cfg: Config, client: NISClient) -> DIMExplorer:
    parameters = ParameterRegistry(
        primary_asset=cfg.ecosystem.primary_asset,
        creator_account=cfg.ecosystem.creator_account,
    )
    return DIMExplorer(client, parameters)


def _divisibility(definition: AssetDefinition | None) -> int:
    return definition.divisibility if definition else DEFAULT_DIVISIBILITY


async def _run_queries(
    explorer: DIMExplorer,
    *,
    network_fee: bool,
    payout_fee: bool,
    total_supply: str | None,
) -> list[QueryResult]:
    results: list[QueryResult] = []
    primary = explorer.parameters.primary_asset

    if network_fee:
        # 100% of the levy collected by the primary asset
        amount = await explorer.get_total_available_levy_amount()
        results.append(
            QueryResult(
                "Total Network Fee:",
                amount,
                str(primary),
                _divisibility(explorer.parameters.get_cached(primary)),
            )
        )

    if payout_fee:
        # 30% of the levy, paid out weekly to token holders
        amount = await explorer.get_total_holders_share_levy_amount()
        results.append(
            QueryResult(
                "Token Holder Fee Share:",
                amount,
                str(primary),
                _divisibility(explorer.parameters.get_cached(primary)),
            )
        )

    if total_supply:
        amount = await explorer.get_total_circulating_supply(total_supply)
        results.append(
            QueryResult(
                f"Total supply of '{total_supply}' is",
                amount,
                total_supply,
                _divisibility(explorer.parameters.get_cached(total_supply)),
            )
        )

    return results


def _echo_banner(raw: bool) -> None:
    if raw:
        return
    typer.echo("")
    typer.echo(f"DIM Explorer v{__version__}")
    typer.echo("")


@app.command()
def explorer(
    ctx: typer.Context,
    network_fee: bool = typer.Option(
        False,
        "--network-fee",
        "--networkFee",
        help="Get the total available Levy amount (100 % of network fee).",
    ),
    payout_fee: bool = typer.Option(
        False,
        "--payout-fee",
        "--payoutFee",
        help="Get the total token holder share amount (30 % of network fee).",
    ),
    total_supply: str | None = typer.Option(
        None,
        "--total-supply",
        "--totalSupply",
        metavar="CURRENCY",
        callback=_validate_identifier,
        help="Get the total circulating supply of a currency ('dim:coin', 'dim:token', etc.).",
    ),
    raw: bool = typer.Option(
        False,
        "--raw",
        "-R",
        help="Print raw JSON instead of the beautified display.",
    ),
    network: str | None = typer.Option(None, "--network", "-n", help="mainnet or testnet"),
    node: str | None = typer.Option(None, "--node", help="NIS node URL, e.g. http://host:7890"),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file",
    ),
) -> None:
    """Explore DIM ecosystem levy and supply information."""
    if not (network_fee or payout_fee or total_supply):
        typer.echo(ctx.get_help())
        raise typer.Exit()

    cfg = _load_settings(config, network, node)
    _echo_banner(raw)

    with _build_client(cfg) as client:
        dim_explorer = _build_explorer(cfg, client)
        try:
            results = asyncio.run(
                _run_queries(
                    dim_explorer,
                    network_fee=network_fee,
                    payout_fee=payout_fee,
                    total_supply=total_supply,
                )
            )
        except NodeError as e:
            logger.error(f"Node query failed: {e}")
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(code=1) from e

    for result in results:
        if raw:
            typer.echo(json.dumps(result.to_raw()))
        else:
            typer.echo(f"{result.title} {result.formatted} {result.currency}")


@app.command()
def currency(
    identifier: str = typer.Argument(
        ..., callback=_validate_identifier, help="Mosaic name, e.g. dim:coin"
    ),
    raw: bool = typer.Option(False, "--raw", "-R", help="Print raw JSON"),
    network: str | None = typer.Option(None, "--network", "-n", help="mainnet or testnet"),
    node: str | None = typer.Option(None, "--node", help="NIS node URL"),
    config: Path | None = typer.Option(None, "--config", "-c", help="Path to configuration file"),
) -> None:
    """Show the on-chain definition of a DIM currency."""
    cfg = _load_settings(config, network, node)

    with _build_client(cfg) as client:
        dim_explorer = _build_explorer(cfg, client)
        try:
            definition = asyncio.run(dim_explorer.get_currency(identifier))
        except NodeError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(code=1) from e

    if definition is None:
        typer.echo(f"Unknown asset: {identifier}", err=True)
        raise typer.Exit(code=1)

    levy = definition.levy
    if raw:
        typer.echo(
            json.dumps(
                {
                    "id": str(definition.identifier),
                    "totalSupply": definition.total_supply,
                    "divisibility": definition.divisibility,
                    "creator": definition.creator,
                    "supplyMutable": definition.supply_mutable,
                    "transferable": definition.transferable,
                    "levy": (
                        {
                            "recipient": levy.recipient,
                            "fee": levy.fee,
                            "type": levy.fee_type,
                            "mosaicId": str(levy.asset),
                        }
                        if levy
                        else None
                    ),
                }
            )
        )
        return

    typer.echo(f"\n{'=' * 60}")
    typer.echo(f"Currency {definition.identifier}")
    typer.echo(f"{'=' * 60}")
    typer.echo(f"Total Supply:   {definition.to_units(definition.total_supply)}")
    typer.echo(f"Divisibility:   {definition.divisibility}")
    typer.echo(f"Supply Mutable: {'yes' if definition.supply_mutable else 'no'}")
    typer.echo(f"Transferable:   {'yes' if definition.transferable else 'no'}")
    if levy:
        kind = "percentile" if levy.is_percentile else "absolute"
        typer.echo(f"Levy:           {levy.fee} {levy.asset} ({kind})")
        typer.echo(f"Levy Recipient: {levy.recipient}")
    else:
        typer.echo("Levy:           none")
    typer.echo(f"{'=' * 60}\n")


@app.command()
def status(
    network: str | None = typer.Option(None, "--network", "-n", help="mainnet or testnet"),
    node: str | None = typer.Option(None, "--node", help="NIS node URL"),
    config: Path | None = typer.Option(None, "--config", "-c", help="Path to configuration file"),
) -> None:
    """Check that the configured NIS node is reachable."""
    cfg = _load_settings(config, network, node)

    with _build_client(cfg) as client:
        try:
            alive = client.heartbeat()
        except NodeError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(code=1) from e

    if not alive:
        typer.echo(f"Node {cfg.node.url} answered but is not healthy", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Node {cfg.node.url} is up ({cfg.node.network})")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
