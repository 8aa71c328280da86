"""
Centralized database layer for ServiceOS.

Structure:
- entities/: SQLModel table definitions organized by business domain
- repositories/: Tenant-scoped data access organized by business domain
- session.py: Global engine and session factory management
- utils.py: Engine, session factory and schema creation helpers
"""

from .base import Base, utc_now_naive
from .session import async_session_maker, engine, get_session, init_db
from .utils import create_all, create_engine, create_sessionmaker

__all__ = [
    "Base",
    "async_session_maker",
    "create_all",
    "create_engine",
    "create_sessionmaker",
    "engine",
    "get_session",
    "init_db",
    "utc_now_naive",
]
