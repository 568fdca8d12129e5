import logging
from pathlib import Path

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from gym_companion.config import settings
from gym_companion.db.base import Base

logger = logging.getLogger(__name__)


def sqlite_file_path(database_url: str) -> Path | None:
    """Database file for a file-backed SQLite URL; None for in-memory or other backends."""
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite" or url.database in (None, "", ":memory:"):
        return None
    return Path(url.database)


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    path = sqlite_file_path(database_url)
    if path is not None:
        path.parent.mkdir(parents=True, exist_ok=True)
    return create_async_engine(database_url, echo=echo)


engine = build_engine(settings.database_url, echo=settings.debug)
async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db() -> None:
    """Create the exercise tables if they are missing."""
    import gym_companion.models  # noqa: F401  register tables on Base.metadata

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database ready: %s", engine.url.render_as_string(hide_password=True))
