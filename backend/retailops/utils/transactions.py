import hashlib
import os
import tempfile
from contextlib import ExitStack, contextmanager
from typing import Iterable, Iterator, Optional

from filelock import FileLock, Timeout
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, SessionTransactionOrigin

from retailops.config import settings
from retailops.services.errors import Conflict, RetailOpsError, StorageFailure
from retailops.utils.logging import get_logger

log = get_logger("transactions")

LOCKS_DIR = os.path.join(tempfile.gettempdir(), "retailops_locks")


def end_idle_transaction(session: Session) -> None:
    """
    Commit a transaction the Session only autobegun for reads (attribute refreshes,
    lookups after a previous commit). A transaction carrying pending objects is
    left alone.
    """
    current = session.get_transaction()
    if current is None or current.origin is not SessionTransactionOrigin.AUTOBEGIN:
        return
    if session.new or session.dirty or session.deleted:
        return
    session.commit()


def _is_lock_contention(exc: OperationalError) -> bool:
    msg = str(exc.orig).lower()
    return "database is locked" in msg or "deadlock" in msg or "lock timeout" in msg


@contextmanager
def smart_transaction(session: Session) -> Iterator:
    """
    Context manager that begins a transaction on the given Session.
    If a transaction is already active, start a nested SAVEPOINT (begin_nested).
    Otherwise start a normal transaction (begin).

    An autobegun, read-only transaction is committed first, so the work below
    becomes its own top-level transaction. If the caller has pending changes the
    block runs as a SAVEPOINT inside the caller's transaction instead, and the
    caller stays responsible for committing it. Writes the caller already flushed
    inside an autobegun transaction are committed along with it, so callers
    should not leave flushed, uncommitted work in the session.

    Driver errors escaping the block are translated into the service error
    taxonomy: a unique/foreign-key violation or lock contention becomes
    Conflict, anything else from SQLAlchemy becomes StorageFailure. Either way
    the block is rolled back.
    Usage:
        with smart_transaction(db):
            ... DB work ...
    """
    end_idle_transaction(session)
    if session.in_transaction():
        cm = session.begin_nested()
    else:
        cm = session.begin()
    try:
        with cm:
            yield
    except RetailOpsError:
        raise
    except IntegrityError as e:
        log.warning(f"constraint violation, rolled back: {e.orig}")
        raise Conflict(
            "The request conflicted with a concurrent change; retry it",
            details={"constraint": str(e.orig)},
        ) from e
    except OperationalError as e:
        if not _is_lock_contention(e):
            log.error(f"storage failure, rolled back: {e}")
            raise StorageFailure("The data store failed to complete the request") from e
        log.warning(f"lock contention, rolled back: {e.orig}")
        raise Conflict(
            "The data store was busy with a concurrent change; retry it",
            details={"reason": str(e.orig)},
        ) from e
    except SQLAlchemyError as e:
        log.error(f"storage failure, rolled back: {e}")
        raise StorageFailure("The data store failed to complete the request") from e


def lock_path(product_id: str) -> str:
    # ids come from clients; hash them so any value maps to a safe, bounded file name
    digest = hashlib.sha1(product_id.encode("utf-8")).hexdigest()
    return os.path.join(LOCKS_DIR, f"stock_{digest}.lock")


@contextmanager
def stock_locks(
    product_ids: Iterable[str],
    timeout: float = None,
    session: Optional[Session] = None,
) -> Iterator:
    """
    Hold one file lock per product for the duration of the block.

    Locks are taken in sorted id order so two callers locking overlapping sets
    can't deadlock. Acquire them before the transaction starts; when `session`
    is given its idle read transaction is ended first, so it can't hold the
    database lock while waiting for a file lock. Rows are additionally locked
    with SELECT ... FOR UPDATE by the callers on dialects that support it.
    """
    if timeout is None:
        timeout = settings.STOCK_LOCK_TIMEOUT_SECONDS
    if session is not None:
        end_idle_transaction(session)
    os.makedirs(LOCKS_DIR, exist_ok=True)
    with ExitStack() as stack:
        for pid in sorted(set(product_ids)):
            lock = FileLock(lock_path(pid))
            try:
                stack.enter_context(lock.acquire(timeout=timeout))
            except Timeout:
                log.warning(f"timed out waiting for stock lock on product {pid}")
                raise Conflict(
                    "Could not acquire stock lock; try again",
                    details={"productId": pid},
                )
        yield
