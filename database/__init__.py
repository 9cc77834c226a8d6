"""Database package: engine/session factories, models and repositories."""
from database.base import Base, create_engine, create_session_maker, init_db, close_db

__all__ = [
    "Base",
    "create_engine",
    "create_session_maker",
    "init_db",
    "close_db",
]
