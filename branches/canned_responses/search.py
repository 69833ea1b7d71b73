"""
Canned Responses Search Index
Read-side snapshot of the response tables, rebuilt on a timer.

Queries never touch the source tables, so anything written after the last
rebuild stays invisible until the next one.
"""

import asyncio
from contextlib import asynccontextmanager
import logging
from typing import List, Optional, Tuple

from constants import (
    APPROVED_STATUS,
    DEFAULT_SEARCH_RESULT_COUNT,
    MAXIMUM_LISTED_RESPONSES,
    MAXIMUM_SEARCH_RESULT_COUNT,
)
from database import open_connection
from utils import to_iso, utc_now
from .models import CompanyResponseEntity, UserResponseEntity
from .storage import COMPANY_RESPONSE_COLUMNS, USER_RESPONSE_COLUMNS

logger = logging.getLogger(__name__)

MATCH_ALL_QUERIES = ("", "*")


def _casefold(value):
    return value.casefold() if value is not None else None


def _text_filter(query: Optional[str]) -> Tuple[str, tuple]:
    """Build the free-text part of a WHERE clause.

    Both sides go through Python's casefold, registered on the connection by
    _connect, and instr() keeps % and _ in the query literal.
    """
    if query is None or query.strip() in MATCH_ALL_QUERIES:
        return "", ()

    needle = _casefold(query.strip())
    clause = (
        " AND (instr(casefold(label), ?) > 0"
        " OR instr(casefold(question_text), ?) > 0"
        " OR instr(casefold(response_text), ?) > 0)"
    )
    return clause, (needle, needle, needle)


@asynccontextmanager
async def _connect(db_path: str):
    async with open_connection(db_path) as db:
        await db.create_function("casefold", 1, _casefold, deterministic=True)
        yield db


class ResponseSearchIndex:
    """Search index over personal and company responses."""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self.last_indexed_at = None
        self._lock = asyncio.Lock()

    async def rebuild(self) -> None:
        """Replace both index tables with the current contents of the store."""
        async with self._lock:
            try:
                user_columns = ", ".join(USER_RESPONSE_COLUMNS)
                company_columns = ", ".join(COMPANY_RESPONSE_COLUMNS)

                async with open_connection(self.db_path) as db:
                    await db.execute("DELETE FROM user_response_index")
                    await db.execute(
                        f"INSERT INTO user_response_index ({user_columns}) "
                        f"SELECT {user_columns} FROM user_responses"
                    )
                    await db.execute("DELETE FROM company_response_index")
                    await db.execute(
                        f"INSERT INTO company_response_index ({company_columns}) "
                        f"SELECT {company_columns} FROM company_responses"
                    )
                    await db.commit()

                self.last_indexed_at = utc_now()
                logger.info(f"Search index rebuilt at {to_iso(self.last_indexed_at)}")
            except Exception as e:
                logger.error(f"Failed to rebuild search index: {e}", exc_info=True)
                raise

    async def search_company_responses(
        self,
        query: Optional[str] = None,
        count: Optional[int] = None,
        skip: Optional[int] = None,
        is_task_module_data: bool = False,
    ) -> List[CompanyResponseEntity]:
        """
        Search approved company responses, newest decision first.

        Args:
            query: Free text; None, "" or "*" match everything
            count: Page size, honoured for task module listings
            skip: Number of results to skip
            is_task_module_data: Use count as page size instead of the default

        Returns:
            Matching approved responses
        """
        top = count if is_task_module_data and count is not None else DEFAULT_SEARCH_RESULT_COUNT
        text_clause, text_params = _text_filter(query)

        async with _connect(self.db_path) as db:
            async with db.execute(
                "SELECT * FROM company_response_index WHERE approval_status = ?"
                f"{text_clause} ORDER BY approved_or_rejected_at DESC LIMIT ? OFFSET ?",
                (APPROVED_STATUS, *text_params, top, skip or 0)
            ) as cursor:
                return [CompanyResponseEntity.from_row(row) async for row in cursor]

    async def search_user_responses(
        self,
        query: Optional[str],
        user_id: str,
        count: Optional[int] = None,
        skip: Optional[int] = None,
    ) -> List[UserResponseEntity]:
        """Search one user's personal responses, most recently updated first."""
        top = count if count is not None else DEFAULT_SEARCH_RESULT_COUNT
        text_clause, text_params = _text_filter(query)

        async with _connect(self.db_path) as db:
            async with db.execute(
                "SELECT * FROM user_response_index WHERE user_id = ?"
                f"{text_clause} ORDER BY last_updated_at DESC LIMIT ? OFFSET ?",
                (user_id, *text_params, top, skip or 0)
            ) as cursor:
                return [UserResponseEntity.from_row(row) async for row in cursor]

    async def get_company_responses(self) -> List[CompanyResponseEntity]:
        """Approved company responses as listed to users."""
        responses = await self.search_company_responses(
            None, MAXIMUM_SEARCH_RESULT_COUNT, None, is_task_module_data=True
        )
        return responses[:MAXIMUM_LISTED_RESPONSES]
