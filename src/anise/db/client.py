"""
Anise - Supabase Client.

Low-level database connection shared by the default store instances.
"""

from supabase import Client, create_client

from anise.config import settings

# Singleton client instance
_client: Client | None = None


def get_client() -> Client:
    """
    Get the Supabase client.

    Uses singleton pattern to reuse connection.
    """
    global _client

    if _client is None:
        _client = create_client(
            settings.supabase_url,
            settings.supabase_key,
        )

    return _client


def reset_client() -> None:
    """Drop the cached client (for tests or after rotating credentials)."""
    global _client
    _client = None
