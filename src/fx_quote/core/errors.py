from __future__ import annotations

import enum
from typing import Any


class ErrorKind(str, enum.Enum):
    TIMEOUT = "timeout"
    FETCH_FAILED = "fetch_failed"
    DECODE_FAILED = "decode_failed"
    PERSIST_FAILED = "persist_failed"


_MESSAGES: dict[tuple[ErrorKind, str], str] = {
    (ErrorKind.TIMEOUT, "fetch"): "timeout fetching exchange rate",
    (ErrorKind.FETCH_FAILED, "fetch"): "error fetching exchange rate",
    (ErrorKind.DECODE_FAILED, "fetch"): "error decoding exchange rate",
    (ErrorKind.TIMEOUT, "persist"): "timeout saving exchange rate",
    (ErrorKind.PERSIST_FAILED, "persist"): "error saving exchange rate",
}


class QuoteError(RuntimeError):
    """
    Terminal failure of one fetch or persist operation.

    ``str(error)`` is the generic message that is safe to show a caller. Transport
    and driver detail lives in ``context`` and is only meant for logs.
    """

    def __init__(self, kind: ErrorKind, *, operation: str = "fetch", **context: Any) -> None:
        self.kind = kind
        self.operation = operation
        self.context = {key: value for key, value in context.items() if value is not None}
        super().__init__(self.message)

    @property
    def message(self) -> str:
        return _MESSAGES.get((self.kind, self.operation), f"{self.kind.value} during {self.operation}")

    def __repr__(self) -> str:
        return f"QuoteError(kind={self.kind.value!r}, operation={self.operation!r})"
