"""Reset helpers that empty every application table.

Used by the ``reset-db`` CLI command to bring a development or acceptance
test database back to an empty state without dropping the schema.
"""

import structlog
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from subway.models import Base

logger = structlog.get_logger(__name__)


async def truncate_all_tables(session: AsyncSession) -> dict[str, int]:
    """
    Delete every row from every application table.

    Tables are emptied children first so foreign keys are never violated,
    then the whole reset is committed at once.

    Args:
        session: Database session

    Returns:
        Number of rows deleted per table name
    """
    deleted: dict[str, int] = {}
    try:
        for table in reversed(Base.metadata.sorted_tables):
            result = await session.execute(delete(table))
            deleted[table.name] = result.rowcount or 0
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    logger.info("database_reset", deleted=deleted)
    return deleted
