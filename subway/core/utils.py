"""Core utility functions."""

# Async driver suffix -> sync driver suffix used for migrations
_SYNC_DRIVERS = {
    "+asyncpg": "+psycopg",
    "+aiosqlite": "",
}


def convert_async_db_url_to_sync(database_url: str) -> str:
    """
    Convert an async database URL to a sync database URL.

    Alembic runs migrations with synchronous drivers:
    postgresql+asyncpg:// becomes postgresql+psycopg:// (psycopg3) and
    sqlite+aiosqlite:// becomes the standard library sqlite:// driver.

    Only the scheme is rewritten; sqlite paths such as ``sqlite:///:memory:``
    keep their triple slash.

    Args:
        database_url: The async database URL

    Returns:
        The sync database URL, or the input unchanged if it is not async
    """
    scheme, separator, rest = database_url.partition("://")
    for async_driver, sync_driver in _SYNC_DRIVERS.items():
        if async_driver in scheme:
            return f"{scheme.replace(async_driver, sync_driver)}{separator}{rest}"
    return database_url


def is_sqlite_url(database_url: str) -> bool:
    """Return True if the URL points at a SQLite database."""
    return database_url.partition("://")[0].startswith("sqlite")
