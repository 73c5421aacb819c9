"""CLI for the tariff harvester."""

import json

import httpx
import typer
from rich.console import Console
from rich.table import Table

from .config import HarvesterConfig, configure_logging, load_env
from .discovery import EndpointDiscoverer
from .exceptions import TariffHarvesterError
from .harvest import CookieHarvester
from .journey import JourneyClient
from .token import decode_platform_session_id

app = typer.Typer(help="Session cookie harvester and tariff journey client")
console = Console()


def _load_config() -> HarvesterConfig:
    load_env()
    config = HarvesterConfig.from_env()
    problems = config.validate()
    if problems:
        for problem in problems:
            console.print(f"[red]Config error:[/red] {problem}")
        raise typer.Exit(1)
    configure_logging(config.log_level)
    return config


def _truncate(value: str, width: int = 60) -> str:
    return value if len(value) <= width else value[: width - 3] + "..."


@app.command()
def serve(
    host: str = typer.Option(None, "--host", help="Bind address (default TARIFF_HOST)"),
    port: int = typer.Option(None, "--port", "-p", help="Port (default TARIFF_PORT)"),
    debug: bool = typer.Option(False, "--debug", help="Run Flask in debug mode"),
):
    """Run the JSON API server."""
    from .server import create_app

    config = _load_config()
    flask_app = create_app(config)
    console.print(f"Serving on [cyan]http://{host or config.host}:{port or config.port}[/cyan]")
    flask_app.run(host=host or config.host, port=port or config.port, debug=debug, threaded=True)


@app.command()
def harvest(json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON")):
    """Harvest session cookies and the platform session id."""
    config = _load_config()

    try:
        with CookieHarvester(config) as harvester:
            jar = harvester.harvest()
    except TariffHarvesterError as e:
        console.print(f"[red]Harvest failed:[/red] {e}")
        raise typer.Exit(1)

    if json_output:
        console.print_json(json.dumps(jar.as_dict()))
        return

    table = Table(title=f"Cookies ({len(jar)})")
    table.add_column("Name", style="cyan")
    table.add_column("Value")
    for name, value in jar.cookies.items():
        table.add_row(name, _truncate(value))
    console.print(table)

    if jar.platform_session_id:
        console.print(f"[green]✓ Platform session id:[/green] {jar.platform_session_id}")
    else:
        console.print("[yellow]WARNING: platform session id not found[/yellow]")


@app.command()
def tariffs(
    device_id: str = typer.Argument(..., help="Lead device variant id"),
    capacity: str = typer.Option(None, "--capacity", "-c", help="Capacity label, for display only"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """Harvest a session, walk the purchase journey and list tariff plans.

    Examples:

        tariff-harvester tariffs 000000000000000001

        tariff-harvester tariffs 000000000000000001 --json
    """
    config = _load_config()

    try:
        with CookieHarvester(config) as harvester:
            jar = harvester.harvest()
        with JourneyClient(jar, config) as journey:
            result = journey.fetch_tariffs(device_id)
    except (TariffHarvesterError, httpx.HTTPError) as e:
        console.print(f"[red]Failed to fetch tariffs:[/red] {e}")
        raise typer.Exit(1)

    ctx = result.context
    if json_output:
        output = {
            "deviceId": device_id,
            "capacity": capacity,
            "make": ctx.make,
            "model": ctx.model,
            "journeyId": ctx.journey_id,
            "upfrontPrice": ctx.upfront_price,
            "deviceMonthlyPrice": ctx.device_monthly_price,
            "plans": result.pricing,
        }
        console.print_json(json.dumps(output))
        return

    console.print(f"[bold]{ctx.make} {ctx.model}[/bold] (journey {ctx.journey_id})")
    console.print(f"Device: £{ctx.upfront_price} upfront, £{ctx.device_monthly_price}/month")

    table = Table(title=f"Plans ({len(result.pricing)})")
    table.add_column("#", style="dim")
    table.add_column("Plan", style="cyan")
    table.add_column("Details")
    for index, plan in enumerate(result.pricing, 1):
        if isinstance(plan, dict):
            name = str(plan.get("name") or plan.get("displayName") or plan.get("id") or "")
            details = _truncate(json.dumps({k: v for k, v in plan.items() if not isinstance(v, (dict, list))}), 80)
        else:
            name, details = str(plan), ""
        table.add_row(str(index), name, details)
    console.print(table)


@app.command()
def discover(url: str = typer.Argument(..., help="Page to scan for API endpoints")):
    """List candidate API endpoints referenced by a page."""
    config = _load_config()

    try:
        result = EndpointDiscoverer(config).discover(url)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        console.print(f"[red]Failed to discover endpoints:[/red] {e}")
        raise typer.Exit(1)

    if not result.endpoints:
        console.print("[yellow]No endpoints found[/yellow]")
        return

    console.print(f"Found {len(result.endpoints)} potential API endpoints:\n")
    for index, endpoint in enumerate(result.endpoints, 1):
        console.print(f"  {index}. {endpoint}")


@app.command(name="decode-token")
def decode_token(value: str = typer.Argument(..., help="eShop-auth-prod1_p_id_token cookie value")):
    """Decode the platform session id from an id-token cookie value."""
    session_id = decode_platform_session_id(value)
    if session_id is None:
        console.print("[yellow]No platform session id in token[/yellow]")
        raise typer.Exit(1)
    console.print(session_id)


if __name__ == "__main__":
    app()
