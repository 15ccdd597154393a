"""
# Database Package

Persistence layer for the Content CMS, built on **Motor** (async MongoDB driver).

The `db_manager` instance is a module-level singleton: it is created at import time and
connected during application startup via `db_manager.connect()`.

Attributes:
    db_manager (DatabaseManager): The global singleton instance for database access.
    DatabaseManager (class): The main manager class (exported for type hinting).
"""

from content_cms.database.manager import DatabaseManager, db_manager

__all__ = ["DatabaseManager", "db_manager"]
