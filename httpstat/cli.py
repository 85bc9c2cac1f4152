"""httpstat CLI: visualize the timing of an HTTP exchange."""

import asyncio
import platform
import re
from typing import List, Optional

import typer
from rich.console import Console

from .clients import StatClient
from .constants import VERSION
from .exceptions import InvalidSettingsError, StatError
from .models import AddressFamily, StatSettings
from .observability import configure_cli_logging

ENVIRONMENT_HELP = (
    "ENVIRONMENT:\n\n"
    "  HTTP_PROXY    proxy for HTTP requests; complete URL or HOST[:PORT]\n\n"
    "                used for HTTPS requests if HTTPS_PROXY undefined\n\n"
    "  HTTPS_PROXY   proxy for HTTPS requests; complete URL or HOST[:PORT]\n\n"
    "  NO_PROXY      comma-separated list of hosts to exclude from proxy"
)

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")
_BARE_SECONDS = re.compile(r"\d+(?:\.\d*)?|\.\d+")


def parse_duration(value: str, flag: str = "duration") -> float:
    """
    Parse ``500ms``, ``3s``, ``1m30s`` or bare seconds (``2.5``) into seconds.

    Raises:
        typer.BadParameter: for anything else
    """
    text = value.strip()
    if _BARE_SECONDS.fullmatch(text):
        return float(text)

    total = 0.0
    pos = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    if not text or pos != len(text):
        raise typer.BadParameter(f"invalid duration {value!r}", param_hint=flag)
    return total


def _version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"httpstat {VERSION} (runtime: Python {platform.python_version()})")
        raise typer.Exit()


app = typer.Typer(
    name="httpstat",
    help="Visualize the DNS, TCP, TLS, server and transfer timing of an HTTP request.",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _fail(console: Console, message: str, code: int = 1) -> typer.Exit:
    console.print(f"httpstat: {message}", markup=False, highlight=False, soft_wrap=True)
    return typer.Exit(code)


async def _run(url: str, settings: StatSettings) -> None:
    async with StatClient(settings) as client:
        await client.run(url)


@app.command(epilog=ENVIRONMENT_HELP)
def main(
    url: str = typer.Argument(..., metavar="URL", show_default=False),
    method: str = typer.Option("GET", "-X", help="HTTP method to use"),
    body: str = typer.Option(
        "", "-d", help="the body of a POST or PUT request; from file use @filename"
    ),
    follow_redirects: bool = typer.Option(False, "-L", help="follow 30x redirects"),
    head_only: bool = typer.Option(False, "-I", help="don't read body of request"),
    insecure: bool = typer.Option(False, "-k", help="allow insecure SSL connections"),
    headers: Optional[List[str]] = typer.Option(
        None,
        "-H",
        help="set HTTP header; repeatable: -H 'Accept: ...' -H 'Range: ...'",
    ),
    save_output: bool = typer.Option(False, "-O", help="save body as remote filename"),
    output_file: Optional[str] = typer.Option(None, "-o", help="output file for body"),
    version: bool = typer.Option(
        False,
        "-v",
        callback=_version_callback,
        is_eager=True,
        help="print version number",
    ),
    client_cert: Optional[str] = typer.Option(
        None, "-E", help="client cert file for tls config"
    ),
    ipv4: bool = typer.Option(False, "-4", help="resolve IPv4 addresses only"),
    ipv6: bool = typer.Option(False, "-6", help="resolve IPv6 addresses only"),
    max_time: str = typer.Option(
        "0", "-m", help="maximum time allowed for the transfer (e.g. 10s)"
    ),
    ca_cert: Optional[str] = typer.Option(
        None, "-cacert", help="CA certificate to verify peer against (SSL)"
    ),
    json_output: bool = typer.Option(False, "-J", help="use JSON to output results"),
    num_requests: int = typer.Option(1, "-n", help="number of requests"),
    request_delay: str = typer.Option("3s", "-w", help="delay between requests"),
    debug: bool = typer.Option(False, "--debug", help="log trace events to stderr"),
) -> None:
    """Time an HTTP request to URL, phase by phase."""
    err_console = configure_cli_logging(debug=debug)

    try:
        family = AddressFamily.from_flags(ipv4, ipv6)
    except InvalidSettingsError as exc:
        raise _fail(err_console, exc.message, code=-1) from None

    deadline = parse_duration(max_time, "-m")
    settings = StatSettings(
        method=method,
        body=body,
        headers=list(headers or []),
        head_only=head_only,
        follow_redirects=follow_redirects,
        num_requests=num_requests,
        request_delay=parse_duration(request_delay, "-w"),
        max_time=deadline or None,
        save_output=save_output,
        output_file=output_file or None,
        insecure=insecure,
        client_cert=client_cert,
        ca_cert=ca_cert,
        address_family=family,
        json_output=json_output,
    )

    try:
        asyncio.run(_run(url, settings))
    except StatError as exc:
        raise _fail(err_console, exc.message) from None
