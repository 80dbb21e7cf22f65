from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session

_DEPTH_KEY = "unit_of_work_depth"


@contextmanager
def smart_transaction(session: Session) -> Iterator:
    """
    Context manager that runs a block as one all-or-nothing unit on the given Session.

    The outermost block owns the transaction: it commits when the block exits
    normally and rolls back on any exception. Blocks entered while a unit is
    already running join it instead of committing on their own, so a service
    called from inside another service's unit is part of the caller's commit
    or rollback.

    A transaction that autobegin opened for earlier reads (e.g. resolving the
    caller's identity) is rolled back first, so the block starts on a fresh one.
    Pending changes made outside any unit are refused rather than swept into it.
    Usage:
        with smart_transaction(db):
            ... DB work ...
    """
    depth = session.info.get(_DEPTH_KEY, 0)
    if depth:
        session.info[_DEPTH_KEY] = depth + 1
        try:
            yield
        finally:
            session.info[_DEPTH_KEY] = depth
        return

    if session.in_transaction():
        if session.new or session.dirty or session.deleted:
            raise RuntimeError(
                "smart_transaction(): session holds changes made outside a unit of work"
            )
        # only reads since autobegin; nothing to keep
        session.rollback()
    session.info[_DEPTH_KEY] = 1
    try:
        with session.begin():
            yield
    finally:
        session.info[_DEPTH_KEY] = 0
