from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Sequence

from wb.config import RunConfig, TargetConfig, Verbosity
from wb.loadgen.runner import run_benchmark

_TRUE = frozenset({"1", "t", "true"})
_FALSE = frozenset({"0", "f", "false"})


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="wb", description="Concurrent HTTP GET benchmark")
    parser.add_argument("url", nargs="?", help="Target URL")
    parser.add_argument("-c", type=int, default=1, dest="concurrency", help="Number of concurrent requests to make")
    parser.add_argument("-n", type=int, default=1, dest="requests", help="Number of requests to perform")
    parser.add_argument(
        "-v",
        type=int,
        default=0,
        dest="verbosity",
        choices=[v.value for v in Verbosity],
        help="Show info while running: 0 nothing, 1 every 100 calls, 2 every call",
    )
    parser.add_argument(
        "-r",
        action="store_true",
        dest="reuse",
        help="Reuse one HTTP client across workers (also -r=true or -r=false)",
    )
    parser.add_argument("-t", "--timeout", type=float, default=10.0, help="Per-request timeout in seconds")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser


def _build_config(parser: argparse.ArgumentParser, args: argparse.Namespace) -> RunConfig:
    try:
        target = TargetConfig(url=args.url, timeout_sec=args.timeout, connect_timeout_sec=min(5.0, args.timeout))
        return RunConfig(
            target=target,
            concurrency=args.concurrency,
            requests=args.requests,
            verbosity=Verbosity(args.verbosity),
            reuse_client=args.reuse,
        )
    except ValueError as exc:
        parser.error(str(exc))


def _expand_bool_flags(parser: argparse.ArgumentParser, argv: Sequence[str]) -> list[str]:
    expanded: list[str] = []
    for arg in argv:
        if not arg.startswith("-r="):
            expanded.append(arg)
            continue
        value = arg.partition("=")[2].lower()
        if value in _TRUE:
            expanded.append("-r")
        elif value not in _FALSE:
            parser.error(f"invalid boolean value for -r: {value!r}")
    return expanded


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    if argv is None:
        argv = sys.argv[1:]
    args = parser.parse_args(_expand_bool_flags(parser, argv))
    if not args.url:
        parser.print_help(sys.stderr)
        return 0

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    config = _build_config(parser, args)
    result = asyncio.run(run_benchmark(config))
    print(result.report().render())
    return 0


if __name__ == "__main__":
    sys.exit(main())
