from __future__ import annotations

import contextlib
import logging
import math
import time
from collections.abc import Iterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fx_quote.core.config import PersisterConfig
from fx_quote.core.db import SQLITE_GUARD_KEY
from fx_quote.core.deadline import Deadline
from fx_quote.core.errors import ErrorKind, QuoteError
from fx_quote.core.logging import get_logger, log_event, log_exception, monotonic_ms
from fx_quote.modules.rates.models import ExchangeRate

logger = get_logger(__name__)

# SQLite VM instructions between deadline checks while a statement runs.
_SQLITE_PROGRESS_STEPS = 1000


@contextlib.contextmanager
def _bounded_by(session: Session, deadline: Deadline) -> Iterator[None]:
    """
    Caps SQLite work on the session's connection at ``deadline``.

    The progress handler interrupts running statements and ``busy_timeout`` caps
    lock waits, which the progress handler never sees. Both stay installed until
    the pool takes the connection back (see ``core.db``), so they also cover the
    commit.
    """
    if session.get_bind().dialect.name != "sqlite":
        yield
        return
    pooled = session.connection().connection
    dbapi_conn = pooled.driver_connection
    if SQLITE_GUARD_KEY not in pooled.info:
        pooled.info[SQLITE_GUARD_KEY] = dbapi_conn.execute("PRAGMA busy_timeout").fetchone()[0]
    dbapi_conn.set_progress_handler(lambda: 1 if deadline.expired() else 0, _SQLITE_PROGRESS_STEPS)
    # One millisecond past the deadline so a lock wait that gives up is already expired.
    dbapi_conn.execute(f"PRAGMA busy_timeout = {math.ceil(deadline.remaining() * 1000) + 1}")
    yield


class RatePersister:
    """
    Stores one ``ExchangeRate`` per call, abandoning the write once its deadline passes.

    The deadline covers the insert and the commit. A write still pending when the
    deadline passes is rolled back; a commit that completes stays committed.
    """

    def __init__(self, config: PersisterConfig) -> None:
        self.config = config

    def save(self, session: Session, record: ExchangeRate) -> None:
        start = time.monotonic()
        deadline: Deadline | None = None
        try:
            # Checkout happens before the deadline starts; only the write is bounded.
            session.connection()
            deadline = Deadline.after(self.config.timeout_s)
            with _bounded_by(session, deadline):
                session.add(record)
                session.flush()
                if deadline.expired():
                    raise QuoteError(ErrorKind.TIMEOUT, operation="persist")
                session.commit()
        except QuoteError as e:
            session.rollback()
            self._log_failure(e, start=start)
            raise
        except SQLAlchemyError as e:
            session.rollback()
            kind = ErrorKind.TIMEOUT if deadline and deadline.expired() else ErrorKind.PERSIST_FAILED
            error = QuoteError(kind, operation="persist", error=f"{type(e).__name__}: {e}")
            self._log_failure(error, start=start)
            raise error from e
        log_event(
            logger,
            "rates.persist.success",
            exchange_rate_id=str(record.id),
            duration_ms=monotonic_ms(start),
        )

    def _log_failure(self, error: QuoteError, *, start: float) -> None:
        fields = {
            "kind": error.kind.value,
            "timeout_ms": int(self.config.timeout_s * 1000),
            "duration_ms": monotonic_ms(start),
            **error.context,
        }
        if error.kind == ErrorKind.PERSIST_FAILED:
            log_exception(logger, "rates.persist.failure", **fields)
        else:
            log_event(logger, "rates.persist.failure", level=logging.WARNING, **fields)
