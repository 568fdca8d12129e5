from gym_companion.db.session import async_session_maker, init_db
from gym_companion.db.base import Base

__all__ = ["Base", "async_session_maker", "init_db"]
