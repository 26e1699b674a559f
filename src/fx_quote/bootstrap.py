from __future__ import annotations

import fx_quote.models  # noqa: F401
from fx_quote.core.config import settings
from fx_quote.core.db import engine
from fx_quote.core.logging import get_logger, log_event
from fx_quote.core.models import Base

logger = get_logger(__name__)


def bootstrap() -> None:
    # Non-SQLite deployments are migrated with alembic.
    if str(settings.database_url).startswith("sqlite"):
        Base.metadata.create_all(engine)
        log_event(logger, "db.migrate", backend="sqlite", environment=settings.environment)
