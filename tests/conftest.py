"""Shared pytest fixtures for canned responses tests."""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from database import init_branch_database
from branches.canned_responses.models import Actor
from branches.canned_responses.storage import (
    CANNED_RESPONSES_SCHEMA,
    CompanyResponseStorage,
    ConversationStorage,
    UserResponseStorage,
)


@pytest_asyncio.fixture
async def db_path(tmp_path):
    """Create a temporary branch database with the full schema.

    Uses the same init_branch_database call the branch runs on load.
    """
    path = str(tmp_path / "data.db")
    await init_branch_database(path, CANNED_RESPONSES_SCHEMA, "Test")
    return path


@pytest.fixture
def user_storage(db_path):
    return UserResponseStorage(db_path)


@pytest.fixture
def company_storage(db_path):
    return CompanyResponseStorage(db_path)


@pytest.fixture
def conversation_storage(db_path):
    return ConversationStorage(db_path)


@pytest.fixture
def submitter():
    return Actor(user_id="1001", name="Sam Submitter", principal_name="sam#0001")


@pytest.fixture
def approver():
    return Actor(user_id="2002", name="Avery Admin", principal_name="avery#0002")


class FakeNotifier:
    """Records what the approval workflow asks the chat surface to do."""

    def __init__(self, admin_message_id="900001"):
        self.admin_message_id = admin_message_id
        self.posted = []
        self.refreshed = []
        self.notified = []

    async def post_admin_card(self, entity):
        self.posted.append(entity.response_id)
        return self.admin_message_id

    async def refresh_admin_card(self, entity, show_validation_error=False):
        self.refreshed.append((entity.response_id, entity.approval_status, show_validation_error))

    async def notify_submitter(self, conversation_id, entity):
        self.notified.append((conversation_id, entity.response_id, entity.approval_status))


@pytest.fixture
def notifier():
    return FakeNotifier()


def at(minutes: int) -> datetime:
    """A fixed UTC timestamp offset by minutes, for ordering tests."""
    return datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc) + timedelta(minutes=minutes)
