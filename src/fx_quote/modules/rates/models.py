from __future__ import annotations

from decimal import Decimal

from sqlalchemy.orm import Mapped, mapped_column

from fx_quote.core.models import Base, DecimalString, Timestamped, UUIDPrimaryKey


class ExchangeRate(UUIDPrimaryKey, Timestamped, Base):
    __tablename__ = "rates_exchange_rate"

    bid: Mapped[Decimal] = mapped_column(DecimalString())
