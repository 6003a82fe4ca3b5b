#!/usr/bin/env python3
"""Mint a short-lived access token for local testing against the API."""

from __future__ import annotations

import argparse
import sys
from datetime import timedelta
from pathlib import Path

BACKEND_PATH = Path(__file__).resolve().parents[1] / "backend"
if str(BACKEND_PATH) not in sys.path:
    sys.path.insert(0, str(BACKEND_PATH))

from app.core.security import create_access_token  # noqa: E402


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("user_id", type=int, help="Identifier placed in the token subject.")
    parser.add_argument(
        "--minutes",
        type=int,
        default=60,
        help="Token lifetime in minutes (default: 60).",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    if args.minutes <= 0:
        print(f"minutes must be positive (got {args.minutes})", file=sys.stderr)
        return 2
    token = create_access_token({"sub": str(args.user_id)}, timedelta(minutes=args.minutes))
    print(token)
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
