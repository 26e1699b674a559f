"""
Alembic model import hook.

Importing this module ensures all SQLAlchemy models are registered on Base.metadata.
"""

from __future__ import annotations

from fx_quote.modules.rates.models import ExchangeRate  # noqa: F401
