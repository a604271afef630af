"""CLI entry point for courier.

`courier sign` prints the canonical request string and signature for a
request without sending it. `courier send` sends it and prints the response.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from dataclasses import dataclass
from pathlib import Path

from courier.client import Client
from courier.config_loader import ConfigError, load_client_config
from courier.errors import CourierError
from courier.models import CachePolicy, ClientConfig, HTTPMethod
from courier.results import Failure, Result

DEFAULT_TIMEOUT = 60.0


@dataclass
class RequestArgs:
    """Parsed arguments shared by sign and send."""

    command: str
    config: Path | None
    host: str | None
    port: int | None
    method: HTTPMethod
    path: str
    headers: dict[str, str]
    query: dict[str, str]
    fragment: str | None
    body: str | None
    cache_policy: CachePolicy | None
    timeout: float | None


def positive_float(value: str) -> float:
    """Parse and validate a positive float value.

    Raises:
        argparse.ArgumentTypeError: If value is not a positive number.
    """
    try:
        result = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid number '{value}'")
    if result <= 0:
        raise argparse.ArgumentTypeError(f"Invalid value '{value}'. Must be positive.")
    return result


def parse_header(value: str) -> tuple[str, str]:
    """Parse "Name: value" (or "Name:value")."""
    name, sep, header_value = value.partition(":")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"Invalid header '{value}'. Expected NAME:VALUE")
    return name.strip(), header_value.strip()


def parse_query_pair(value: str) -> tuple[str, str]:
    """Parse "key=value"."""
    key, sep, pair_value = value.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"Invalid query parameter '{value}'. Expected KEY=VALUE")
    return key, pair_value


def _add_request_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to client configuration file (YAML)",
    )
    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Base host, e.g. https://api.example.com/v1 (overrides config)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port (overrides any port in host)",
    )
    parser.add_argument(
        "--method",
        "-X",
        type=str.upper,
        default="GET",
        choices=[m.value for m in HTTPMethod],
        help="HTTP method (default: GET)",
    )
    parser.add_argument(
        "--path",
        type=str,
        required=True,
        help="Request path, joined to the host's base path",
    )
    parser.add_argument(
        "--header",
        "-H",
        type=parse_header,
        action="append",
        default=[],
        dest="headers",
        metavar="NAME:VALUE",
        help="Request header (can be repeated, overrides defaults ignoring case)",
    )
    parser.add_argument(
        "--query",
        "-q",
        type=parse_query_pair,
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Query parameter (can be repeated)",
    )
    parser.add_argument(
        "--fragment",
        type=str,
        default=None,
        help="URL fragment",
    )
    parser.add_argument(
        "--body",
        type=str,
        default=None,
        help="Raw request body, sent as UTF-8",
    )
    parser.add_argument(
        "--cache-policy",
        type=str,
        default=None,
        dest="cache_policy",
        choices=[p.value for p in CachePolicy],
        help="Cache policy for this request",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with sign and send subcommands."""
    parser = argparse.ArgumentParser(
        prog="courier",
        description="Build, sign and send HTTP requests.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True, help="Mode")

    sign_parser = subparsers.add_parser(
        "sign",
        help="Print the canonical request string and signature without sending",
    )
    _add_request_arguments(sign_parser)

    send_parser = subparsers.add_parser(
        "send",
        help="Send the request and print the response",
    )
    _add_request_arguments(send_parser)
    send_parser.add_argument(
        "--timeout",
        type=positive_float,
        default=None,
        help=f"Request timeout in seconds (default: config value or {DEFAULT_TIMEOUT})",
    )

    return parser


def parse_args(args: list[str] | None = None) -> RequestArgs:
    """Parse command-line arguments into RequestArgs.

    Raises:
        SystemExit: If arguments are invalid (argparse behavior), including
            when neither --host nor --config is given.
    """
    parser = build_parser()
    namespace = parser.parse_args(args)

    if namespace.host is None and namespace.config is None:
        parser.error("one of --host or --config is required")

    return RequestArgs(
        command=namespace.command,
        config=namespace.config,
        host=namespace.host,
        port=namespace.port,
        method=HTTPMethod(namespace.method),
        path=namespace.path,
        headers=dict(namespace.headers),
        query=dict(namespace.query),
        fragment=namespace.fragment,
        body=namespace.body,
        cache_policy=CachePolicy(namespace.cache_policy) if namespace.cache_policy else None,
        timeout=getattr(namespace, "timeout", None),
    )


def resolve_config(args: RequestArgs) -> ClientConfig:
    """Merge the config file (if any) with command-line overrides.

    Raises:
        ConfigError: If the config file can't be loaded.
    """
    if args.config is not None:
        config = load_client_config(args.config)
    else:
        config = ClientConfig(host=args.host or "")

    updates: dict[str, object] = {}
    if args.host is not None:
        updates["host"] = args.host
    if args.port is not None:
        updates["port"] = args.port
    if args.timeout is not None:
        updates["timeout"] = args.timeout
    return config.model_copy(update=updates)


async def _sign(client: Client, args: RequestArgs) -> int:
    try:
        descriptor = await client.build_request(
            args.method,
            args.path,
            body=args.body.encode("utf-8") if args.body is not None else None,
            headers=args.headers or None,
            query=args.query or None,
            fragment=args.fragment,
            cache_policy=args.cache_policy,
        )
    except CourierError as e:
        print(f"Error ({e.kind.value}): {e}", file=sys.stderr)
        return 1

    print(f"Request:   {descriptor.string}")
    print(f"Signature: {descriptor.signature}")
    return 0


async def _send(client: Client, args: RequestArgs) -> int:
    result: Result = await client.request(
        args.method,
        args.path,
        body=args.body.encode("utf-8") if args.body is not None else None,
        headers=args.headers or None,
        query=args.query or None,
        fragment=args.fragment,
        cache_policy=args.cache_policy,
        decode_to=bytes,
    )

    if isinstance(result, Failure):
        print(f"Error ({result.kind.value}): {result.error}", file=sys.stderr)
        if result.signature:
            print(f"Signature: {result.signature}", file=sys.stderr)
        return 1

    print(f"Status:    {result.response.status_code}", file=sys.stderr)
    print(f"Signature: {result.signature}", file=sys.stderr)
    sys.stdout.write(result.value.decode("utf-8", errors="replace"))
    sys.stdout.flush()
    return 0


async def run(args: RequestArgs) -> int:
    """Run sign or send mode."""
    try:
        config = resolve_config(args)
    except ConfigError as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return 1

    async with Client.from_config(config) as client:
        if args.command == "sign":
            return await _sign(client, args)
        return await _send(client, args)


def main() -> int:
    """Main entry point."""
    try:
        return asyncio.run(run(parse_args()))
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
