from __future__ import annotations

import re
import uuid
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from fx_quote.modules.rates.models import ExchangeRate


# Plain decimal notation only: no digit grouping, exponents or NaN/Infinity.
_BID_PATTERN = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)")


def parse_bid(raw: str) -> Decimal:
    text = raw.strip() if isinstance(raw, str) else ""
    if not _BID_PATTERN.fullmatch(text):
        raise ValueError(f"Invalid bid: {raw!r}")
    return Decimal(text)


class VendorQuote(BaseModel):
    model_config = ConfigDict(extra="ignore")

    code: str | None = None
    codein: str | None = None
    name: str | None = None
    high: str | None = None
    low: str | None = None
    var_bid: str | None = Field(default=None, alias="varBid")
    pct_change: str | None = Field(default=None, alias="pctChange")
    bid: str
    ask: str | None = None
    timestamp: str | None = None
    create_date: str | None = None


class VendorQuoteResponse(BaseModel):
    """Shape returned by economia.awesomeapi.com.br for ``/json/last/USD-BRL``."""

    model_config = ConfigDict(extra="ignore")

    usdbrl: VendorQuote = Field(alias="USDBRL")

    def to_exchange_rate(self) -> ExchangeRate:
        return ExchangeRate(id=uuid.uuid4(), bid=parse_bid(self.usdbrl.bid))


class ExchangeRateResponse(BaseModel):
    bid: Decimal = Field(allow_inf_nan=False)

    @classmethod
    def from_record(cls, record: ExchangeRate) -> ExchangeRateResponse:
        return cls(bid=record.bid)
