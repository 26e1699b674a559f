from __future__ import annotations

from fastapi import APIRouter

from fx_quote.modules.rates.api import router as rates_router

router = APIRouter()

router.include_router(rates_router)


@router.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}
