"""
Bounded reads: run independent DB reads in parallel, each on its own session, with one overall deadline.

If the database is cold-starting or unreachable, a read either raises a SQLAlchemyError or just hangs.
Both turn into StorageUnavailable so the caller can serve a diagnostic page instead of a 500 or a stuck request.
"""
from __future__ import annotations

import logging
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Any, Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import StorageUnavailable
from app.db.session import Database

logger = logging.getLogger(__name__)

Read = Callable[[Session], Any]


def _run_read(database: Database, read: Read) -> Any:
    with database.session() as db:
        return read(db)


def run_bounded_reads(database: Database, reads: dict[str, Read], timeout: float) -> dict[str, Any]:
    """
    Run each read(session) concurrently. Returns {name: result}.
    Raises StorageUnavailable on timeout or database error; other exceptions propagate.
    """
    if not reads:
        return {}
    executor = ThreadPoolExecutor(max_workers=len(reads), thread_name_prefix="bounded-read")
    try:
        future_to_name = {executor.submit(_run_read, database, read): name for name, read in reads.items()}
        done, pending = wait(future_to_name, timeout=timeout, return_when=FIRST_EXCEPTION)
        for future in done:
            exc = future.exception()
            if exc is None:
                continue
            name = future_to_name[future]
            if isinstance(exc, SQLAlchemyError):
                logger.warning("Bounded read %s failed: %s", name, exc)
                raise StorageUnavailable(f"{name}: {type(exc).__name__}") from exc
            raise exc
        if pending:
            names = sorted(future_to_name[f] for f in pending)
            logger.warning("Bounded reads timed out after %ss: %s", timeout, names)
            raise StorageUnavailable(f"timed out after {timeout}s: {', '.join(names)}")
        return {future_to_name[f]: f.result() for f in done}
    finally:
        # do not wait for reads stuck on a dead connection
        executor.shutdown(wait=False, cancel_futures=True)
