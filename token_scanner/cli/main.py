"""CLI entry point for the token scanner.

Usage:
    token-scanner scan 0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2
    token-scanner scan --file addresses.txt --output json --save results.json
    token-scanner fleet --endpoints deployment-urls.txt --api-key KEY --file addresses.txt
    token-scanner serve --port 3000
    token-scanner extract dump.sql
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import httpx
import typer
from rich.console import Console
from rich.logging import RichHandler

from ..balancing.load_balancer import EndpointLoadBalancer
from ..core.config import ScannerConfig
from ..core.exceptions import ScannerError
from ..core.models import BalancedScanResult, ScanResult
from ..core.types import BalancingStrategy
from ..extraction import extract_contract_addresses
from ..output.formatters import JSONFormatter, TableFormatter
from ..providers.rate_limiter import RateLimiter
from ..resolution.token_resolver import build_resolver
from ..scanner.batch_scanner import BatchScanner

# Initialize app
app = typer.Typer(
    name="token-scanner",
    help="Token market-data scanner",
    add_completion=False,
)

console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_time=False, show_path=False)],
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def read_addresses(addresses: list[str], file: Optional[Path]) -> list[str]:
    """Addresses from arguments plus one-per-line file entries (# comments skipped)."""
    collected = list(addresses)
    if file:
        if not file.exists():
            console.print(f"[red]File not found: {file}[/]")
            raise typer.Exit(1)
        with open(file, "r", encoding="utf-8") as f:
            collected.extend(
                line.strip() for line in f if line.strip() and not line.startswith("#")
            )
    if not collected:
        console.print("[red]No addresses given[/]")
        raise typer.Exit(1)
    return collected


def emit(result: ScanResult | BalancedScanResult, output: str, save: Optional[Path]) -> None:
    """Print a result and optionally save it as JSON."""
    json_formatter = JSONFormatter()
    if output.lower() == "json":
        print(json_formatter.format(result))
    else:
        console.print(TableFormatter().format(result))

    if save:
        save.parent.mkdir(parents=True, exist_ok=True)
        save_path = save.with_suffix(".json")
        json_formatter.format_to_file(result, save_path)
        console.print(f"[green]Saved to {save_path}[/]")


async def _local_scan(config: ScannerConfig, addresses: list[str]) -> ScanResult:
    rate_limiter = RateLimiter(limit=config.rate_limit, window_ms=config.rate_window_ms)
    async with httpx.AsyncClient(
        limits=httpx.Limits(max_connections=config.concurrency_limit),
    ) as client:
        scanner = BatchScanner(
            build_resolver(config, client, rate_limiter),
            concurrency_limit=config.concurrency_limit,
            max_tokens=config.max_tokens_per_request,
        )
        return await scanner.scan(addresses)


@app.command()
def scan(
    addresses: list[str] = typer.Argument(None, help="Token contract addresses"),
    file: Optional[Path] = typer.Option(
        None,
        "--file", "-f",
        help="File with one address per line",
    ),
    output: str = typer.Option(
        "table",
        "--output", "-o",
        help="Output format: table, json",
    ),
    save: Optional[Path] = typer.Option(
        None,
        "--save", "-s",
        help="Save JSON output to file",
    ),
    env_file: Optional[Path] = typer.Option(
        None,
        "--env-file",
        help="Path to .env file",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable verbose logging",
    ),
) -> None:
    """Scan addresses in this process."""
    setup_logging(verbose)
    tokens = read_addresses(addresses or [], file)

    try:
        config = ScannerConfig.load(env_file)
        result = asyncio.run(_local_scan(config, tokens))
    except ScannerError as e:
        console.print(f"[red]Error: {e.message}[/]")
        raise typer.Exit(1)

    emit(result, output, save)


@app.command()
def fleet(
    endpoints: Path = typer.Option(
        Path("deployment-urls.txt"),
        "--endpoints", "-e",
        help="Line-delimited file of worker URLs",
    ),
    api_key: str = typer.Option(
        ...,
        "--api-key", "-k",
        envvar="SCANNER_FLEET_API_KEY",
        help="API key accepted by the workers",
    ),
    addresses: list[str] = typer.Argument(None, help="Token contract addresses"),
    file: Optional[Path] = typer.Option(
        None,
        "--file", "-f",
        help="File with one address per line",
    ),
    chunk_size: int = typer.Option(100, "--chunk-size", "-c", help="Addresses per worker request"),
    strategy: BalancingStrategy = typer.Option(
        BalancingStrategy.LEAST_USED,
        "--strategy",
        help="Endpoint selection: round-robin, least-used",
    ),
    output: str = typer.Option("table", "--output", "-o", help="Output format: table, json"),
    save: Optional[Path] = typer.Option(None, "--save", "-s", help="Save JSON output to file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Scan addresses across a fleet of worker endpoints."""
    setup_logging(verbose)
    tokens = read_addresses(addresses or [], file)

    if not endpoints.exists():
        console.print(f"[red]Endpoints file not found: {endpoints}[/]")
        raise typer.Exit(1)

    async def run() -> tuple[BalancedScanResult, dict]:
        async with httpx.AsyncClient() as client:
            balancer = EndpointLoadBalancer(api_key, client, strategy=strategy)
            balancer.load_endpoints(endpoints)
            result = await balancer.scan(tokens, chunk_size=chunk_size)
            return result, balancer.stats()

    try:
        result, stats = asyncio.run(run())
    except ScannerError as e:
        console.print(f"[red]Error: {e.message}[/]")
        raise typer.Exit(1)

    emit(result, output, save)

    console.print(
        f"\n[bold]Request distribution[/] "
        f"({stats['totalEndpoints']} endpoints, capacity {stats['capacity']} req/min):"
    )
    for url, count in stats["requestsPerEndpoint"].items():
        console.print(f"  {url}: {count}")

    if result.failed_addresses:
        console.print(f"[red]{len(result.failed_addresses)} addresses failed:[/]")
        for outcome in result.chunks:
            if not outcome.success:
                console.print(f"  chunk {outcome.index}: {outcome.error}")
        raise typer.Exit(2)


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port (default from config)"),
    env_file: Optional[Path] = typer.Option(None, "--env-file", help="Path to .env file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Run a scanner worker."""
    import uvicorn

    from ..api.app import create_app

    setup_logging(verbose)
    config = ScannerConfig.load(env_file)
    if config.require_api_key and not config.api_keys:
        console.print("[yellow]No SCANNER_API_KEYS configured; /scan will reject every request[/]")

    uvicorn.run(create_app(config), host=host, port=port or config.port, log_config=None)


@app.command()
def extract(
    dump: Path = typer.Argument(..., help="Text dump containing \"contract\":\"...\" entries"),
    min_length: int = typer.Option(32, "--min-length", help="Ignore shorter addresses"),
    save: Optional[Path] = typer.Option(None, "--save", "-s", help="Write addresses to file"),
) -> None:
    """Extract unique contract addresses from a dump."""
    if not dump.exists():
        console.print(f"[red]File not found: {dump}[/]")
        raise typer.Exit(1)

    found = extract_contract_addresses(
        dump.read_text(encoding="utf-8", errors="replace"),
        min_length=min_length,
    )
    if save:
        save.write_text("\n".join(found) + "\n", encoding="utf-8")
        console.print(f"[green]Saved {len(found)} addresses to {save}[/]")
    else:
        for address in found:
            print(address)


@app.command()
def version() -> None:
    """Show version information."""
    from .. import __version__
    console.print(f"Token Scanner v{__version__}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
