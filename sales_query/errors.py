"""
Error taxonomy for the sales query service.

- InvalidRequestError: the caller supplied parameters that cannot be turned
  into a query (bad pagination, non-numeric or inverted ranges, unknown sort
  key). Raised before any predicate is built.
- StorageError: the store was unreachable or a read failed. Never retried
  and never replaced by a partial result.

An empty result set is not an error.
"""

from __future__ import annotations


class SalesQueryError(Exception):
    """Base class for all errors raised by this package."""


class InvalidRequestError(SalesQueryError, ValueError):
    """Raised when a query request fails validation."""


class StorageError(SalesQueryError):
    """Raised when the underlying store fails during a read."""


__all__ = ["SalesQueryError", "InvalidRequestError", "StorageError"]
