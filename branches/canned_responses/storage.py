"""
Canned Responses Storage
Key-value style providers over the branch's SQLite database.

Every write is an insert-or-replace keyed by the entity's id, except the
approval decision which only applies while the suggestion is still pending.
"""

import logging
from typing import Iterable, List, Optional

from constants import MAXIMUM_LISTED_RESPONSES, PENDING_STATUS
from database import open_connection
from .models import CompanyResponseEntity, ConversationEntity, UserResponseEntity

logger = logging.getLogger(__name__)


# Database schema for the canned responses branch
CANNED_RESPONSES_SCHEMA = """
CREATE TABLE IF NOT EXISTS user_responses (
    response_id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    label TEXT,
    question_text TEXT,
    response_text TEXT,
    last_updated_at TIMESTAMP
);
CREATE INDEX IF NOT EXISTS idx_user_responses_user ON user_responses(user_id);

CREATE TABLE IF NOT EXISTS company_responses (
    response_id TEXT PRIMARY KEY,
    label TEXT,
    question_text TEXT,
    response_text TEXT,
    submitter_id TEXT,
    submitter_name TEXT,
    submitter_principal_name TEXT,
    approval_status TEXT NOT NULL DEFAULT 'Pending',
    approver_id TEXT,
    approver_name TEXT,
    approval_remark TEXT,
    created_at TIMESTAMP,
    last_updated_at TIMESTAMP,
    approved_or_rejected_at TIMESTAMP,
    notification_activity_id TEXT
);
CREATE INDEX IF NOT EXISTS idx_company_responses_submitter ON company_responses(submitter_id);
CREATE INDEX IF NOT EXISTS idx_company_responses_activity ON company_responses(notification_activity_id);

CREATE TABLE IF NOT EXISTS conversations (
    user_id TEXT PRIMARY KEY,
    conversation_id TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS user_response_index (
    response_id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    label TEXT,
    question_text TEXT,
    response_text TEXT,
    last_updated_at TIMESTAMP
);

CREATE TABLE IF NOT EXISTS company_response_index (
    response_id TEXT PRIMARY KEY,
    label TEXT,
    question_text TEXT,
    response_text TEXT,
    submitter_id TEXT,
    submitter_name TEXT,
    submitter_principal_name TEXT,
    approval_status TEXT,
    approver_id TEXT,
    approver_name TEXT,
    approval_remark TEXT,
    created_at TIMESTAMP,
    last_updated_at TIMESTAMP,
    approved_or_rejected_at TIMESTAMP,
    notification_activity_id TEXT
);
CREATE INDEX IF NOT EXISTS idx_company_response_index_status ON company_response_index(approval_status);
"""

USER_RESPONSE_COLUMNS = (
    "response_id", "user_id", "label", "question_text", "response_text", "last_updated_at",
)

COMPANY_RESPONSE_COLUMNS = (
    "response_id", "label", "question_text", "response_text",
    "submitter_id", "submitter_name", "submitter_principal_name",
    "approval_status", "approver_id", "approver_name", "approval_remark",
    "created_at", "last_updated_at", "approved_or_rejected_at",
    "notification_activity_id",
)


def _insert_or_replace_sql(table: str, columns: tuple) -> str:
    placeholders = ", ".join(f":{c}" for c in columns)
    return f"INSERT OR REPLACE INTO {table} ({', '.join(columns)}) VALUES ({placeholders})"


class UserResponseStorage:
    """Personal responses, partitioned by owner."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    async def get_user_responses(self, user_id: str, limit: int = MAXIMUM_LISTED_RESPONSES) -> List[UserResponseEntity]:
        """Return a user's responses, most recently updated first."""
        if not user_id:
            return []

        async with open_connection(self.db_path) as db:
            async with db.execute(
                "SELECT * FROM user_responses WHERE user_id = ? ORDER BY last_updated_at DESC LIMIT ?",
                (user_id, limit)
            ) as cursor:
                return [UserResponseEntity.from_row(row) async for row in cursor]

    async def get_user_response(self, response_id: str) -> Optional[UserResponseEntity]:
        if not response_id:
            return None

        async with open_connection(self.db_path) as db:
            async with db.execute("SELECT * FROM user_responses WHERE response_id = ?", (response_id,)) as cursor:
                row = await cursor.fetchone()
        return UserResponseEntity.from_row(row) if row else None

    async def upsert_user_response(self, entity: UserResponseEntity) -> bool:
        async with open_connection(self.db_path) as db:
            cursor = await db.execute(
                _insert_or_replace_sql("user_responses", USER_RESPONSE_COLUMNS),
                entity.to_record()
            )
            await db.commit()
            return cursor.rowcount == 1

    async def delete_responses(self, user_id: str, response_ids: Iterable[str]) -> int:
        """
        Delete responses owned by user_id.

        Args:
            user_id: Owner of the responses
            response_ids: Ids to delete; ids owned by someone else are ignored

        Returns:
            Number of responses deleted
        """
        if response_ids is None:
            raise ValueError("response_ids is required")

        deleted = 0
        async with open_connection(self.db_path) as db:
            for response_id in response_ids:
                cursor = await db.execute(
                    "DELETE FROM user_responses WHERE response_id = ? AND user_id = ?",
                    (response_id, user_id)
                )
                deleted += cursor.rowcount
            await db.commit()

        logger.info(f"Deleted {deleted} user response(s) for {user_id}")
        return deleted


class CompanyResponseStorage:
    """Suggestions and approved company responses."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    async def get_user_company_responses(self, user_id: str, limit: int = MAXIMUM_LISTED_RESPONSES) -> List[CompanyResponseEntity]:
        """Return the suggestions a user submitted, most recently updated first."""
        async with open_connection(self.db_path) as db:
            async with db.execute(
                "SELECT * FROM company_responses WHERE submitter_id = ? ORDER BY last_updated_at DESC LIMIT ?",
                (user_id, limit)
            ) as cursor:
                return [CompanyResponseEntity.from_row(row) async for row in cursor]

    async def get_company_response(self, response_id: str) -> Optional[CompanyResponseEntity]:
        if not response_id:
            return None

        async with open_connection(self.db_path) as db:
            async with db.execute("SELECT * FROM company_responses WHERE response_id = ?", (response_id,)) as cursor:
                row = await cursor.fetchone()
        return CompanyResponseEntity.from_row(row) if row else None

    async def get_by_activity_id(self, activity_id: str) -> Optional[CompanyResponseEntity]:
        """Find the suggestion an admin-channel message was posted for."""
        if not activity_id:
            return None

        async with open_connection(self.db_path) as db:
            async with db.execute(
                "SELECT * FROM company_responses WHERE notification_activity_id = ?",
                (str(activity_id),)
            ) as cursor:
                row = await cursor.fetchone()
        return CompanyResponseEntity.from_row(row) if row else None

    async def upsert_company_response(self, entity: CompanyResponseEntity) -> bool:
        async with open_connection(self.db_path) as db:
            cursor = await db.execute(
                _insert_or_replace_sql("company_responses", COMPANY_RESPONSE_COLUMNS),
                entity.to_record()
            )
            await db.commit()
            return cursor.rowcount == 1

    async def record_decision(self, entity: CompanyResponseEntity, expected_status: str = PENDING_STATUS) -> bool:
        """
        Write an approval decision only if the stored status still matches.

        Args:
            entity: Suggestion carrying the decided status and approver fields
            expected_status: Status the stored row must have for the write to apply

        Returns:
            True if the row was updated, False if it was missing or already decided
        """
        record = entity.to_record()
        record["expected_status"] = expected_status

        async with open_connection(self.db_path) as db:
            cursor = await db.execute("""
                UPDATE company_responses
                SET label = :label,
                    question_text = :question_text,
                    response_text = :response_text,
                    approval_status = :approval_status,
                    approver_id = :approver_id,
                    approver_name = :approver_name,
                    approval_remark = :approval_remark,
                    last_updated_at = :last_updated_at,
                    approved_or_rejected_at = :approved_or_rejected_at
                WHERE response_id = :response_id AND approval_status = :expected_status
            """, record)
            await db.commit()
            return cursor.rowcount == 1

    async def delete_company_response(self, response_id: str) -> bool:
        async with open_connection(self.db_path) as db:
            cursor = await db.execute("DELETE FROM company_responses WHERE response_id = ?", (response_id,))
            await db.commit()
            return cursor.rowcount == 1


class ConversationStorage:
    """User id to private conversation id mapping."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    async def get_conversation(self, user_id: str) -> Optional[ConversationEntity]:
        if not user_id:
            return None

        async with open_connection(self.db_path) as db:
            async with db.execute("SELECT * FROM conversations WHERE user_id = ?", (user_id,)) as cursor:
                row = await cursor.fetchone()
        return ConversationEntity.from_row(row) if row else None

    async def add_conversation(self, entity: ConversationEntity) -> bool:
        async with open_connection(self.db_path) as db:
            cursor = await db.execute(
                "INSERT OR REPLACE INTO conversations (user_id, conversation_id) VALUES (?, ?)",
                (entity.user_id, entity.conversation_id)
            )
            await db.commit()
            return cursor.rowcount == 1
