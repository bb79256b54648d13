"""Transaction helpers for write paths.

Every mutation commits through ``atomic`` so that related writes land
together and storage-level uniqueness violations surface as conflicts.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ConflictError


logger = structlog.get_logger()


@asynccontextmanager
async def atomic(
    session: AsyncSession,
    conflict_message: str = "The change conflicts with existing data",
    conflict_code: str = "conflict",
) -> AsyncIterator[AsyncSession]:
    """Run a block of writes and commit them as one transaction.

    Args:
        session: The request session
        conflict_message: Message used when a unique constraint rejects the write
        conflict_code: Error code used for the resulting ConflictError

    Yields:
        The same session, for convenience

    Raises:
        ConflictError: If the database rejects the write on an integrity constraint
    """
    try:
        yield session
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        logger.warning(
            "write_conflict",
            error_code=conflict_code,
            error=str(exc.orig),
        )
        raise ConflictError(conflict_message, error_code=conflict_code) from exc
    except Exception:
        await session.rollback()
        raise
