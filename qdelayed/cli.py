"""Command line demos for the delayed queue."""

from __future__ import annotations

import argparse
import itertools
import sys
import time
from typing import Optional, Sequence

import redis

from qdelayed.delayed import NoEntriesError, RedisDelayed

DEFAULT_KEY = "mydelayed"
DEFAULT_DELAY = 3.0
DEFAULT_TEXT = "Hello world"


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the demo commands."""
    parser = argparse.ArgumentParser(prog="qdelayed", description="Delayed queue demos.")
    parser.add_argument("--host", default="localhost")
    parser.add_argument("--port", type=int, default=6379)
    parser.add_argument("--password", default=None)
    parser.add_argument("--db", type=int, default=0)
    parser.add_argument("--key", default=DEFAULT_KEY)
    sub = parser.add_subparsers(dest="command", required=True)

    demo = sub.add_parser("demo", help="queue one message and wait for it")
    demo.add_argument("--delay", type=float, default=DEFAULT_DELAY)
    demo.add_argument("--text", default=DEFAULT_TEXT)

    add = sub.add_parser("add", help="keep queueing batches of messages")
    add.add_argument("--delay", type=float, default=DEFAULT_DELAY)
    add.add_argument("--text", default=DEFAULT_TEXT)
    add.add_argument("--iterations", type=int, default=None)

    read = sub.add_parser("read", help="keep reading due messages")
    read.add_argument("--count", type=int, default=10)
    read.add_argument("--max-reads", type=int, default=None)
    return parser


def _announce(delay: float) -> None:
    print(f"Message delayed, you could see the message after {int(delay)} second(s)")


def _show(results) -> None:
    for i, result in enumerate(results):
        print(f"{i}, {result.data}")


def _demo(delayed: RedisDelayed, args: argparse.Namespace) -> int:
    delayed.add(args.delay, args.text)
    _announce(args.delay)
    try:
        results = delayed.read(args.delay + 1, 10)
    except NoEntriesError:
        print("SHOULD NOT DISPLAYED", file=sys.stderr)
        return 1
    _show(results)
    print("Done")
    return 0


def _add(delayed: RedisDelayed, args: argparse.Namespace) -> int:
    rounds = range(args.iterations) if args.iterations is not None else itertools.count()
    for i in rounds:
        for j in range(10):
            delayed.add(args.delay, f"{args.text} {i} {j}")
        _announce(args.delay)
        time.sleep(0.1)
    return 0


def _read(delayed: RedisDelayed, args: argparse.Namespace) -> int:
    reads = range(args.max_reads) if args.max_reads is not None else itertools.count()
    for _ in reads:
        _show(delayed.read(0, args.count))
    return 0


_COMMANDS = {"demo": _demo, "add": _add, "read": _read}


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run a demo command; returns the exit status."""
    args = build_parser().parse_args(argv)
    client = redis.Redis(host=args.host, port=args.port, password=args.password, db=args.db)
    try:
        delayed = RedisDelayed(client, args.key)
        return _COMMANDS[args.command](delayed, args)
    except redis.RedisError as exc:
        print(f"qdelayed error: {exc}", file=sys.stderr)
        return 1
    finally:
        client.close()


if __name__ == "__main__":
    sys.exit(main())