"""Unique constraint handling shared by the repositories."""

from contextlib import contextmanager
from typing import Generator

from psycopg import errors

from ..errors import ConflictError


@contextmanager
def unique_violations_as_conflicts() -> Generator[None, None, None]:
    """Re-raise psycopg unique violations as ``ConflictError``.

    Every other database error propagates unchanged.
    """
    try:
        yield
    except errors.UniqueViolation as e:
        constraint = e.diag.constraint_name if e.diag else None
        raise ConflictError(constraint, str(e).strip()) from e
