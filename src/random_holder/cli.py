from __future__ import annotations

import argparse
import json
import logging

import uvicorn

from .app import create_app
from .config import Settings
from .draw import get_random_token_holder
from .errors import HolderPickerError
from .rpc import RpcClient


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _settings(args: argparse.Namespace) -> Settings:
    return Settings.from_env(rpc_url_override=args.rpc_url, timeout_override=args.timeout)


def cmd_serve(args: argparse.Namespace) -> int:
    settings = _settings(args)
    app = create_app(settings)
    uvicorn.run(
        app,
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_level="debug" if args.verbose else "info",
    )
    return 0


def cmd_pick(args: argparse.Namespace) -> int:
    settings = _settings(args)
    min_tokens = args.min_tokens if args.min_tokens is not None else settings.default_min_balance

    with RpcClient(settings.rpc_url, timeout_s=settings.rpc_timeout_s) as rpc:
        try:
            result = get_random_token_holder(rpc, args.mint, min_tokens)
        except HolderPickerError as e:
            raise SystemExit(f"Error: {e}")

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
        return 0

    print("========================================")
    print("🎲 RANDOM TOKEN HOLDER")
    print("========================================")
    print(f"Mint          : {args.mint}")
    print(f"Token         : {result.token_name} ({result.token_symbol})")
    print(f"Program       : {result.program_type.value}")
    print(f"Min tokens    : {min_tokens}")
    print(f"Eligible      : {result.eligible_holders}")
    print("----------------------------------------")
    print("🏆 HOLDER")
    print(f"Address       : {result.owner_address}")
    print(f"Balance       : {result.adjusted_balance:,.1f}")
    print("----------------------------------------")
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    print(json.dumps(_settings(args).public_config(), indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="random-holder",
        description="Pick a random eligible holder of a Solana token.",
    )
    p.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    p.add_argument("--rpc-url", default=None, help="Override RPC URL (else use env).")
    p.add_argument("--timeout", type=float, default=None, help="RPC timeout seconds.")

    sub = p.add_subparsers(dest="cmd", required=True)

    s = sub.add_parser("serve", help="Run the HTTP API.")
    s.add_argument("--host", default=None, help="Bind address (else HOST env).")
    s.add_argument("--port", type=int, default=None, help="Bind port (else PORT env).")
    s.set_defaults(func=cmd_serve)

    d = sub.add_parser("pick", help="Pick one random holder and print it.")
    d.add_argument("--mint", required=True, help="Token mint address.")
    d.add_argument(
        "--min-tokens",
        type=int,
        default=None,
        help="Minimum whole-token balance (else DEFAULT_MIN_BALANCE).",
    )
    d.add_argument("--json", action="store_true", help="Print the result as JSON.")
    d.set_defaults(func=cmd_pick)

    c = sub.add_parser("config", help="Print the public configuration.")
    c.set_defaults(func=cmd_config)

    return p


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    setup_logging(args.verbose)
    raise SystemExit(args.func(args))
