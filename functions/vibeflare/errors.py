"""
Exceptions raised by the storage adapters.
"""

from __future__ import annotations


class StorageError(RuntimeError):
    """A backing store (key-value, relational or blob) failed the call."""


class QueryError(StorageError):
    """The relational store rejected a SQL statement."""

    def __init__(self, message: str, sql: str):
        super().__init__(message)
        self.sql = sql
