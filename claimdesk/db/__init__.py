"""
Database package
"""
from claimdesk.db.base import Base
from claimdesk.db.session import engine, SessionLocal, get_db, init_db
from claimdesk.db.models import *

__all__ = [
    "Base",
    "engine",
    "SessionLocal",
    "get_db",
    "init_db",
]
