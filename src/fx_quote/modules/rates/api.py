from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.orm import Session

from fx_quote.core.db import db_session
from fx_quote.core.errors import QuoteError
from fx_quote.core.logging import get_logger, log_event
from fx_quote.modules.rates.schemas import ExchangeRateResponse
from fx_quote.modules.rates.service import QuoteService

logger = get_logger(__name__)

router = APIRouter(tags=["rates"])


def get_quote_service() -> QuoteService:
    return QuoteService.from_settings()


@router.get(
    "/cotacao",
    response_model=ExchangeRateResponse,
    responses={500: {"content": {"text/plain": {}}, "description": "Fetch or persist failed"}},
)
def get_exchange_rate(
    session: Session = Depends(db_session),
    service: QuoteService = Depends(get_quote_service),
):
    try:
        rate = service.fetch_and_store(session)
    except QuoteError as e:
        log_event(
            logger,
            "rates.quote.failure",
            level=logging.ERROR,
            kind=e.kind.value,
            operation=e.operation,
            **e.context,
        )
        return PlainTextResponse(str(e), status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
    # Decimal stays a string on the wire.
    return JSONResponse(content=rate.model_dump(mode="json"))
