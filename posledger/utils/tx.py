from contextlib import asynccontextmanager
from typing import AsyncIterator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from posledger.core.errors import StorageUnavailable
from posledger.core.logger import logger

STORAGE_ERRORS = (SQLAlchemyError, OSError, TimeoutError)


@asynccontextmanager
async def maybe_begin(session: AsyncSession) -> AsyncIterator[None]:
    """
    Reuse the session's open transaction if there is one,
    otherwise open a transaction for the block.
    """
    if session.in_transaction():
        yield
    else:
        async with session.begin():
            yield


@asynccontextmanager
async def atomic(session: AsyncSession, operation: str) -> AsyncIterator[AsyncSession]:
    """
    Unit of work: everything inside the block commits together or not at all.

    Any exception, including task cancellation, rolls back before it
    propagates. Driver, timeout and connection errors surface as
    StorageUnavailable.
    """
    if not session.in_transaction():
        await session.begin()

    try:
        yield session
        await session.commit()
    except STORAGE_ERRORS as e:
        await session.rollback()
        logger.error("[tx] %s failed in storage: %s", operation, e, exc_info=True)
        raise StorageUnavailable(f"Storage unavailable during {operation}", operation=operation) from e
    except BaseException:
        await session.rollback()
        raise


@asynccontextmanager
async def read_only(session: AsyncSession, operation: str) -> AsyncIterator[AsyncSession]:
    """Read block; storage failures surface as StorageUnavailable."""
    try:
        async with maybe_begin(session):
            yield session
    except STORAGE_ERRORS as e:
        logger.error("[tx] %s failed in storage: %s", operation, e, exc_info=True)
        raise StorageUnavailable(f"Storage unavailable during {operation}", operation=operation) from e
