"""
Load stores - the authoritative record of every load.

Backends:
- InMemoryLoadStore: process-local dict guarded by a lock
- SQLLoadStore: SQLAlchemy table with conditional UPDATE statements
"""

from .base import LoadStore, parse_terms, utc_now
from .memory import InMemoryLoadStore
from .sql import SQLLoadStore

__all__ = [
    "LoadStore",
    "InMemoryLoadStore",
    "SQLLoadStore",
    "parse_terms",
    "utc_now",
]
