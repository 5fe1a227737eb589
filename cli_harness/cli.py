#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
import threading

from cli_harness.normalize import clean_std_output
from cli_harness.servers import start_fallback_server


def run_normalize() -> int:
    sys.stdout.write(clean_std_output(sys.stdin.read()))
    return 0


def run_serve(directory: str, spa: bool) -> int:
    try:
        server = start_fallback_server(directory, is_single_page_application=spa)
    except OSError as exc:
        print(f"failed to start fallback server: {exc}", file=sys.stderr)
        return 1
    print(f"fallback server listening on port {server.port}", flush=True)
    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        pass
    finally:
        server.close()
    return 0


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="CLI test harness utilities")
    sub = parser.add_subparsers(dest="mode", required=True)
    sub.add_parser("normalize", help="Normalize volatile values in CLI output read from stdin")
    serve = sub.add_parser("serve", help="Serve a directory with the fallback static server")
    serve.add_argument("directory", help="Directory to serve, relative to the working directory")
    serve.add_argument("--spa", action="store_true", help="Answer unknown paths with index.html")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    if args.mode == "normalize":
        return run_normalize()
    return run_serve(args.directory, args.spa)


if __name__ == "__main__":
    raise SystemExit(main())
