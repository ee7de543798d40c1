"""
Repository base for SQLAlchemy async sessions.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


class SQLAlchemyRepository:
    """
    Shared session handling.

    Every write commits immediately; a failed commit is rolled back so the
    session stays usable for later writes in the same request.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize repository.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def _commit(self) -> None:
        try:
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

    @property
    def dialect_name(self) -> str:
        return self.session.get_bind().dialect.name
