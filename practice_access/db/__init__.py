from practice_access.db.base import Base
from practice_access.db.session import SessionLocal, engine

__all__ = ["Base", "SessionLocal", "engine"]
