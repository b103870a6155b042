"""
Database Adapter Protocol.

Stores (catalog, recipes, audit log, meal plans) receive a
DatabaseAdapter instead of reaching for a module-level client, so tests
can hand them an in-memory fake.

The adapter mirrors the Supabase/PostgREST query builder: table() returns
a fluent builder (.select(), .insert(), .upsert(), .update(), .delete(),
.eq(), .ilike(), .or_(), .is_(), .order(), .limit(), .maybe_single(),
.execute()) and rpc() calls stored procedures.
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class DatabaseAdapter(Protocol):
    """Abstract database access used by every Anise store."""

    def table(self, name: str) -> Any:
        """
        Return a query builder for the given table.

        The returned object must support the PostgREST-style fluent API
        and yield a response with `.data` from `.execute()`.
        """
        ...

    def rpc(self, function_name: str, params: dict) -> Any:
        """
        Call a stored procedure / database function.

        Returns an object with .execute() that yields .data.
        """
        ...
