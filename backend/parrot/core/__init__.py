"""
Parrot Platform - Core Package
==============================

Configuration, persistence, schemas and dashboard navigation.
"""

from parrot.core.config import settings
from parrot.core.database import Base, get_db

__all__ = ["Base", "get_db", "settings"]
