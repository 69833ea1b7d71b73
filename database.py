"""
Database utility functions for branches.

Each branch manages its own database file in its folder.
This module provides helper functions for database operations.
"""
import aiosqlite
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

logger = logging.getLogger(__name__)


async def init_branch_database(db_path: str, schema: str, branch_name: str = "Branch") -> None:
    """
    Initialize a branch's database with the provided schema.

    Args:
        db_path: Path to the database file (e.g., "branches/canned_responses/data.db")
        schema: SQL schema to execute (CREATE TABLE / CREATE INDEX statements)
        branch_name: Name of the branch (for logging)
    """
    try:
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        async with aiosqlite.connect(db_path) as db:
            await db.execute("PRAGMA foreign_keys = ON")
            await db.executescript(schema)
            await db.commit()
            logger.info(f"{branch_name} database initialized at {db_path}")
    except Exception as e:
        logger.error(f"Failed to initialize {branch_name} database: {e}")
        raise


@asynccontextmanager
async def open_connection(db_path: str) -> AsyncIterator[aiosqlite.Connection]:
    """
    Open a branch database connection with foreign keys enabled.

    Rows come back as aiosqlite.Row so columns can be read by name.

    Usage:
        async with open_connection(self.db_path) as db:
            cursor = await db.execute("SELECT * FROM table")
            ...

    Args:
        db_path: Path to the database file
    """
    async with aiosqlite.connect(db_path) as db:
        db.row_factory = aiosqlite.Row
        await db.execute("PRAGMA foreign_keys = ON")
        yield db
