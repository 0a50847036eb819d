"""Bounded, all-or-nothing execution of a unit of database work."""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lifedash.config import settings
from lifedash.core.exceptions import DashboardError, StorageError

logger = logging.getLogger(__name__)

R = TypeVar("R")


async def run_atomic(
    db: AsyncSession,
    operation: Callable[[], Awaitable[R]],
    *,
    label: str,
    commit: bool = True,
    timeout: float | None = None,
) -> R:
    """
    Run ``operation`` and commit, bounded by ``settings.db_timeout_seconds``.

    Any database error or timeout rolls the session back, so none of the
    operation's writes become visible, and is re-raised as StorageError.
    A DashboardError raised by the operation itself also rolls back and
    propagates unchanged.

    Args:
        db: Session the operation writes through
        operation: Zero-argument coroutine function performing the work
        label: Short operation name used in logs and error details
        commit: Commit on success (False for read-only work)
        timeout: Override for the configured timeout, in seconds

    Returns:
        Whatever ``operation`` returns

    Raises:
        StorageError: DB_001 on database failure, DB_002 on timeout
        DashboardError: Whatever the operation raised
    """
    timeout = settings.db_timeout_seconds if timeout is None else timeout

    async def _unit() -> R:
        result = await operation()
        if commit:
            await db.commit()
        return result

    try:
        return await asyncio.wait_for(_unit(), timeout=timeout)
    except asyncio.TimeoutError as exc:
        await db.rollback()
        logger.error("Database operation timed out", extra={"operation": label, "timeout": timeout})
        raise StorageError("DB_002", details={"operation": label}) from exc
    except DashboardError:
        await db.rollback()
        raise
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error(
            "Database operation failed",
            extra={"operation": label, "error_type": type(exc).__name__},
        )
        raise StorageError("DB_001", details={"operation": label}) from exc
