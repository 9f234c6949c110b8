"""
Infrastructure package for the sales query service.

Centralizes database connectivity (pool management, dedicated connections)
and the Postgres implementation of the engine's SalesStore contract. Keep
this layer focused on I/O and resource management, decoupled from predicate
and ordering logic.
"""

from sales_query.infrastructure.db_factory import (
    PoolManager,
    apply_statement_timeout,
    get_pool,
    get_sync_connection,
)
from sales_query.infrastructure.store import PostgresReadSession, PostgresSalesStore

__all__ = [
    "PoolManager",
    "PostgresReadSession",
    "PostgresSalesStore",
    "apply_statement_timeout",
    "get_pool",
    "get_sync_connection",
]
