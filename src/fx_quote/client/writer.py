from __future__ import annotations

from pathlib import Path

from fx_quote.modules.rates.schemas import ExchangeRateResponse


class ResultWriter:
    """Overwrites ``path`` with a single ``"<label>: <bid>"`` line."""

    def __init__(self, path: Path, *, label: str) -> None:
        self.path = path
        self.label = label

    def format(self, rate: ExchangeRateResponse) -> str:
        return f"{self.label}: {rate.bid}\n"

    def write(self, rate: ExchangeRateResponse) -> Path:
        # OSError propagates: a rate that cannot be recorded aborts the run.
        self.path.write_text(self.format(rate), encoding="utf-8")
        return self.path
