"""Fetch the current exchange rate from the local server and write it to a file."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path

from fx_quote.client.writer import ResultWriter
from fx_quote.core.config import FetcherConfig, settings
from fx_quote.core.errors import QuoteError
from fx_quote.core.logging import get_logger, log_event
from fx_quote.modules.rates.fetcher import LocalRateFetcher

logger = get_logger(__name__)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="fx-quote-client", description=__doc__)
    parser.add_argument("--url", default=settings.quote_url, help="Quote endpoint to poll")
    parser.add_argument(
        "--timeout-ms",
        dest="timeout_ms",
        type=int,
        default=settings.client_timeout_ms,
        help="Deadline for the whole request, in milliseconds",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=settings.output_path,
        help="File overwritten with the fetched rate",
    )
    parser.add_argument("--label", default=settings.output_label, help="Label written before the rate")
    return parser.parse_args(argv)


def run(
    config: FetcherConfig, writer: ResultWriter, *, fetcher: LocalRateFetcher | None = None
) -> Path:
    fetcher = fetcher or LocalRateFetcher(config)
    rate = fetcher.fetch()
    path = writer.write(rate)
    log_event(logger, "client.quote.written", path=str(path), bid=str(rate.bid))
    return path


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    config = FetcherConfig(url=args.url, timeout_s=args.timeout_ms / 1000)
    writer = ResultWriter(args.output, label=args.label)
    try:
        run(config, writer)
    except QuoteError as e:
        detail = ", ".join(f"{key}={value}" for key, value in e.context.items())
        print(f"fx-quote-client: {e}" + (f" ({detail})" if detail else ""), file=sys.stderr)
        return 1
    except OSError as e:
        print(f"fx-quote-client: cannot write {args.output}: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
