import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from buyer_intake.core.exceptions import PersistenceError

logger = logging.getLogger(__name__)


class BaseRepository:
    """Thin base class that holds the database session.

    Every concrete repository receives an ``AsyncSession`` at
    construction time so that multiple repositories can share the same
    unit-of-work within a single request.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def flush(self) -> None:
        """Flush pending changes without committing."""
        await self._db.flush()

    async def commit(self) -> None:
        """Commit the current transaction."""
        await self._db.commit()

    async def rollback(self) -> None:
        """Roll back the current transaction."""
        await self._db.rollback()

    @asynccontextmanager
    async def atomic(self) -> AsyncIterator[None]:
        """Run the enclosed work as one all-or-nothing transaction.

        Commits when the block exits normally.  Any exception rolls the
        whole session back; database failures surface as
        :class:`PersistenceError`, domain errors propagate unchanged.
        """
        try:
            yield
            await self._db.commit()
        except SQLAlchemyError as exc:
            await self._db.rollback()
            logger.error("Transaction rolled back: %s", exc, exc_info=True)
            raise PersistenceError() from exc
        except Exception:
            await self._db.rollback()
            raise
