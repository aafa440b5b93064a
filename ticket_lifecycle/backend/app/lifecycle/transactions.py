# ticket_lifecycle/backend/app/lifecycle/transactions.py
from __future__ import annotations

import logging
import threading
import weakref
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import InternalError, LifecycleError

logger = logging.getLogger(__name__)

# Key under Session.info marking that a write transaction is open.
_ACTIVE_KEY = "ticket_lifecycle.write_transaction"

# Arbitrary constant identifying the lifecycle lock to pg_advisory_xact_lock.
PG_ADVISORY_LOCK_KEY = 0x7417C3

_engine_locks: "weakref.WeakKeyDictionary" = weakref.WeakKeyDictionary()
_registry_lock = threading.Lock()


def _writer_lock(engine) -> threading.RLock:
    with _registry_lock:
        lock = _engine_locks.get(engine)
        if lock is None:
            lock = threading.RLock()
            _engine_locks[engine] = lock
        return lock


def in_write_transaction(db: Session) -> bool:
    return bool(db.info.get(_ACTIVE_KEY))


@contextmanager
def write_transaction(db: Session) -> Iterator[Session]:
    """
    Run the block as one exclusive write transaction.

    The outermost use takes the writer lock, commits on success and rolls
    back on any exception. A nested use on the same session joins the open
    transaction and leaves commit/rollback to the outer block.
    """
    if in_write_transaction(db):
        yield db
        return

    engine = db.get_bind()
    lock = _writer_lock(engine)
    lock.acquire()
    db.info[_ACTIVE_KEY] = True
    try:
        try:
            if engine.dialect.name == "postgresql":
                db.execute(
                    text("SELECT pg_advisory_xact_lock(:key)"),
                    {"key": PG_ADVISORY_LOCK_KEY},
                )
            yield db
            db.commit()
        except LifecycleError as exc:
            logger.debug("rolling back: %s (%s)", exc, exc.code.value)
            db.rollback()
            raise
        except SQLAlchemyError as exc:
            logger.warning("rolling back after database error: %s", exc)
            db.rollback()
            raise InternalError(str(exc)) from exc
        except BaseException:
            db.rollback()
            raise
    finally:
        db.info.pop(_ACTIVE_KEY, None)
        lock.release()
