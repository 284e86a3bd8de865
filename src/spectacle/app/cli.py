from __future__ import annotations

import argparse
import sys

from spectacle.app.runner import run
from spectacle.core.types import Outcome


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="spectacle-forward")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_send = sub.add_parser("send", help="Forward one event to Spectacle")
    p_send.add_argument("--config", default="config/tag.yaml")
    p_send.add_argument("--event", required=True, help="JSON file with the event data")
    p_send.add_argument("--headers", default=None, help="JSON file with request headers")
    p_send.add_argument("--cookies", default=".spectacle-cookies.json", help="cookie jar file")
    p_send.add_argument("--debug", action="store_true", help="behave like a debug/preview container")

    args = parser.parse_args(argv)

    if args.cmd == "send":
        result = run(
            args.config,
            event_path=args.event,
            headers_path=args.headers,
            cookie_jar=args.cookies,
            debug=args.debug,
        )
        # minimal stdout signal
        print(f"outcome={result.outcome.value} dispatched={str(result.dispatched).lower()}")
        return 0 if result.outcome is Outcome.SUCCESS else 1

    return 1


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
