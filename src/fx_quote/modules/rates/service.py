from __future__ import annotations

from sqlalchemy.orm import Session

from fx_quote.core.config import FetcherConfig, PersisterConfig, Settings
from fx_quote.modules.rates.fetcher import UpstreamRateFetcher
from fx_quote.modules.rates.persister import RatePersister
from fx_quote.modules.rates.schemas import ExchangeRateResponse


class QuoteService:
    """Fetch upstream, persist, project. Any step failing aborts the cycle; nothing is retried."""

    def __init__(self, fetcher: UpstreamRateFetcher, persister: RatePersister) -> None:
        self.fetcher = fetcher
        self.persister = persister

    @classmethod
    def from_settings(cls, source: Settings | None = None) -> QuoteService:
        return cls(
            UpstreamRateFetcher(FetcherConfig.upstream(source)),
            RatePersister(PersisterConfig.from_settings(source)),
        )

    def fetch_and_store(self, session: Session) -> ExchangeRateResponse:
        record = self.fetcher.fetch()
        # Projected before saving; the session expires the record on commit.
        response = ExchangeRateResponse.from_record(record)
        self.persister.save(session, record)
        return response
