from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from fx_quote.api.router import router as api_router
from fx_quote.bootstrap import bootstrap
from fx_quote.core.logging import RequestContextMiddleware


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(_: FastAPI):
        bootstrap()
        yield

    app = FastAPI(title="FX Quote", version="0.1.0", lifespan=lifespan)
    app.add_middleware(RequestContextMiddleware)
    app.include_router(api_router)
    return app


app = create_app()
