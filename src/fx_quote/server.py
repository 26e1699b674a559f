"""Serve ``GET /cotacao`` with uvicorn."""

from __future__ import annotations

import argparse
from collections.abc import Sequence

import uvicorn

from fx_quote.core.config import settings


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="fx-quote-server", description=__doc__)
    parser.add_argument("--host", default=settings.server_host, help="Interface to bind")
    parser.add_argument("--port", type=int, default=settings.server_port, help="Port to bind")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    # log_config=None keeps uvicorn from replacing our JSON handlers.
    uvicorn.run("fx_quote.main:app", host=args.host, port=args.port, log_config=None)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
