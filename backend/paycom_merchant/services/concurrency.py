# Overview: Row locking and unit-of-work helpers for store operations.

from __future__ import annotations

from contextlib import contextmanager

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


@contextmanager
def unit_of_work():
    """
    All-or-nothing block around a store mutation.

    Commits when the block exits normally; any exception rolls the whole
    session back (including collaborator changes flushed into it) and
    propagates. No retry happens here: the gateway owns retries.
    """
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
