"""
Anise - Database access.

Supabase (PostgREST) client plus the adapter protocol stores depend on.
"""

from anise.db.adapter import DatabaseAdapter
from anise.db.client import get_client

__all__ = [
    "DatabaseAdapter",
    "get_client",
]
