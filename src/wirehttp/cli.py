"""Command-line interface for wirehttp."""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markup import escape

from . import __version__
from .errors import RequestError
from .http.client import HttpClient
from .logging_config import setup_logging
from .models.config import ClientConfig
from .models.messages import HttpMethod, HttpResponse


def _parse_header(value: str) -> tuple[str, str]:
    name, sep, header_value = value.partition(":")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"Header must look like 'Name: value', got {value!r}")
    return name.strip(), header_value.strip()


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog="wirehttp",
        description="Send a single HTTP/1.1 request and print the response",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Fetch a resource
  wirehttp https://jsonplaceholder.typicode.com/posts/2

  # Post a JSON document
  wirehttp -X POST https://jsonplaceholder.typicode.com/comments -d '{"postId": 1}'

  # Delete, showing response headers
  wirehttp -X DELETE https://jsonplaceholder.typicode.com/posts/2 --include
        """,
    )

    parser.add_argument("url", help="URL to request")

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    # Request
    request_group = parser.add_argument_group("request")
    request_group.add_argument(
        "--request",
        "-X",
        dest="method",
        type=str.upper,
        choices=[m.value for m in HttpMethod],
        default=None,
        help="HTTP method (default: GET, or POST when --data is given)",
    )
    request_group.add_argument(
        "--data",
        "-d",
        type=str,
        default=None,
        help="Request body, sent as UTF-8 with Content-Type: application/json",
    )
    request_group.add_argument(
        "--header",
        "-H",
        dest="headers",
        type=_parse_header,
        action="append",
        default=[],
        metavar="'NAME: VALUE'",
        help="Extra request header (repeatable)",
    )

    # Network settings
    network_group = parser.add_argument_group("network settings")
    network_group.add_argument(
        "--timeout",
        "-t",
        type=float,
        default=None,
        help="Timeout in seconds for connect, send and each read",
    )
    network_group.add_argument(
        "--insecure",
        "-k",
        action="store_true",
        help="Skip TLS certificate verification",
    )
    network_group.add_argument(
        "--user-agent",
        "-A",
        type=str,
        default=None,
        help="Custom User-Agent string",
    )
    network_group.add_argument(
        "--config",
        "-c",
        type=Path,
        default=None,
        metavar="FILE",
        help="YAML file with client settings",
    )

    # Output control
    output_group = parser.add_argument_group("output control")
    output_group.add_argument(
        "--include",
        "-i",
        action="store_true",
        help="Print response headers",
    )
    output_group.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Verbose output",
    )
    output_group.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Print only the response body",
    )

    return parser


def build_config(args: argparse.Namespace) -> ClientConfig:
    """Merge the optional YAML config file with command-line overrides."""
    data: dict = {}
    if args.config:
        data = ClientConfig.from_yaml_file(args.config).model_dump(exclude_unset=True)

    if args.insecure:
        data["verify_tls"] = False
    if args.user_agent:
        data["user_agent"] = args.user_agent

    if args.verbose:
        data["log_level"] = "DEBUG"
    elif args.quiet:
        data["log_level"] = "ERROR"

    return ClientConfig(**data)


def print_response(console: Console, response: HttpResponse, args: argparse.Namespace) -> None:
    """Print a response the way the command-line options ask for."""
    if not args.quiet:
        style = "green" if response.ok else "yellow" if response.status_code < 500 else "red"
        console.print(f"[bold {style}]{response.status_code} {escape(response.status_text)}[/bold {style}]")
        console.print(f"Duration: {response.duration * 1000:.1f} ms")
        if args.include:
            for name, value in response.headers.items():
                console.print(f"[cyan]{escape(name)}[/cyan]: {escape(value)}")
        console.print()

    console.print(response.json_body, markup=False, highlight=False, soft_wrap=True)


def run_request(args: argparse.Namespace) -> int:
    """Run one request with given arguments."""
    console = Console()
    err_console = Console(stderr=True)

    try:
        config = build_config(args)
    except Exception as e:
        err_console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        return 1

    setup_logging(config.log_level, str(config.log_file) if config.log_file else None)

    method = args.method or ("POST" if args.data is not None else "GET")
    body = args.data.encode("utf-8") if args.data is not None else None

    client = HttpClient(config)
    try:
        response = asyncio.run(
            client.request(method, args.url, body, timeout=args.timeout, headers=args.headers)
        )
    except RequestError as e:
        err_console.print(f"[red]Request failed:[/red] {type(e).__name__}: {escape(str(e))}")
        return 1
    except ValueError as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        return 1

    if response is None:
        err_console.print(f"[red]Invalid URL:[/red] {escape(args.url)}")
        return 1

    print_response(console, response, args)
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)
    return run_request(args)


if __name__ == "__main__":
    sys.exit(main())
