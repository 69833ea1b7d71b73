"""Tests for interaction handlers, permissions and the Discord notifier."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from constants import ADD_USER_RESPONSE_COMMAND, APPROVED_STATUS, PENDING_STATUS, REJECTED_STATUS
from branches.canned_responses.branch import CannedResponses, DEFAULT_CONFIG
from branches.canned_responses.handlers import (
    handle_decision_submission,
    handle_form_submission,
    handle_approve_button,
    handle_company_delete_confirm,
)
from branches.canned_responses.helpers import is_approver
from branches.canned_responses.models import (
    ApprovalActionData,
    CompanyResponseEntity,
    ResponseRequestDetail,
)
from branches.canned_responses.notifications import DiscordNotifier
from branches.canned_responses.workflow import AdminChannelUnavailableError, ApprovalWorkflow


def make_user(user_id=2002, admin=False, role_ids=()):
    return SimpleNamespace(
        id=user_id,
        display_name="Avery Admin",
        guild_permissions=SimpleNamespace(administrator=admin),
        roles=[SimpleNamespace(id=role_id) for role_id in role_ids],
    )


def make_interaction(cog, user=None, message_id=900001):
    interaction = MagicMock()
    interaction.client.get_cog.return_value = cog
    interaction.user = user or make_user()
    interaction.message = SimpleNamespace(id=message_id)
    interaction.response.is_done.return_value = False

    async def defer(**kwargs):
        interaction.response.is_done.return_value = True

    interaction.response.defer = AsyncMock(side_effect=defer)
    interaction.response.send_message = AsyncMock()
    interaction.response.send_modal = AsyncMock()
    interaction.followup.send = AsyncMock()
    return interaction


def make_cog(company_storage, conversation_storage, user_storage, notifier, approver_role_ids=()):
    messages = DEFAULT_CONFIG["settings"]["messages"]
    return SimpleNamespace(
        company_storage=company_storage,
        user_storage=user_storage,
        approver_role_ids=list(approver_role_ids),
        field_limits={},
        workflow=ApprovalWorkflow(company_storage, conversation_storage, notifier),
        get_message=lambda key: messages[key],
    )


@pytest.fixture
def cog(company_storage, conversation_storage, user_storage, notifier):
    return make_cog(company_storage, conversation_storage, user_storage, notifier, approver_role_ids=[77])


class TestIsApprover:
    """Test who may review suggestions."""

    def test_administrator(self):
        interaction = SimpleNamespace(user=make_user(admin=True))
        assert is_approver(interaction, []) is True

    def test_approver_role(self):
        interaction = SimpleNamespace(user=make_user(role_ids=[5, 77]))
        assert is_approver(interaction, [77]) is True

    def test_regular_member(self):
        interaction = SimpleNamespace(user=make_user(role_ids=[5]))
        assert is_approver(interaction, [77]) is False

    def test_user_without_roles(self):
        """Users outside a guild carry no roles or permissions."""
        interaction = SimpleNamespace(user=SimpleNamespace(id=1))
        assert is_approver(interaction, [77]) is False


class TestDecisionButtons:
    """Test the approve/reject buttons on the admin card."""

    @pytest.mark.asyncio
    async def test_non_approver_is_refused(self, cog):
        interaction = make_interaction(cog, user=make_user(role_ids=[1]))

        await handle_approve_button(interaction)

        interaction.response.send_modal.assert_not_awaited()
        args, kwargs = interaction.response.send_message.call_args
        assert args[0] == DEFAULT_CONFIG["settings"]["messages"]["no_permission"]
        assert kwargs["ephemeral"] is True

    @pytest.mark.asyncio
    async def test_decided_suggestion_is_refused(self, cog, company_storage):
        await company_storage.upsert_company_response(CompanyResponseEntity(
            response_id="c1", approval_status=APPROVED_STATUS, notification_activity_id="900001"
        ))
        interaction = make_interaction(cog, user=make_user(admin=True))

        await handle_approve_button(interaction)

        interaction.response.send_modal.assert_not_awaited()
        assert "already approved" in interaction.response.send_message.call_args.args[0]

    @pytest.mark.asyncio
    async def test_pending_suggestion_opens_modal(self, cog, company_storage):
        await company_storage.upsert_company_response(CompanyResponseEntity(
            response_id="c1", label="Refunds", question_text="Q", response_text="A",
            approval_status=PENDING_STATUS, notification_activity_id="900001"
        ))
        interaction = make_interaction(cog, user=make_user(role_ids=[77]))

        await handle_approve_button(interaction)

        modal = interaction.response.send_modal.call_args.args[0]
        assert modal.response_id == "c1"
        assert modal.label_input.default == "Refunds"


class TestDecisionSubmission:
    """Test approve/reject modal submissions."""

    @pytest.mark.asyncio
    async def test_reject_reports_unnotified_submitter(self, cog, company_storage, notifier):
        await company_storage.upsert_company_response(CompanyResponseEntity(
            response_id="c1", submitter_id="1001", notification_activity_id="900001"
        ))
        interaction = make_interaction(cog)

        await handle_decision_submission(interaction, ApprovalActionData("c1", REJECTED_STATUS))

        content = interaction.followup.send.call_args.args[0]
        assert content.startswith(DEFAULT_CONFIG["settings"]["messages"]["rejected"])
        assert DEFAULT_CONFIG["settings"]["messages"]["submitter_not_notified"] in content
        stored = await company_storage.get_company_response("c1")
        assert stored.approval_status == REJECTED_STATUS
        assert stored.approver_id == "2002"

    @pytest.mark.asyncio
    async def test_unknown_suggestion(self, cog):
        interaction = make_interaction(cog)

        await handle_decision_submission(interaction, ApprovalActionData("missing", APPROVED_STATUS))

        assert interaction.followup.send.call_args.args[0] == DEFAULT_CONFIG["settings"]["messages"]["not_found"]

    @pytest.mark.asyncio
    async def test_branch_unloaded(self):
        interaction = make_interaction(None)

        await handle_decision_submission(interaction, ApprovalActionData("c1", APPROVED_STATUS))

        interaction.response.defer.assert_not_awaited()
        interaction.response.send_message.assert_awaited_once()


class TestFormSubmission:
    """Test add/suggest form handling."""

    @pytest.mark.asyncio
    async def test_add_response(self, cog, user_storage):
        interaction = make_interaction(cog, user=make_user(user_id=1001))
        detail = ResponseRequestDetail("Hi", "Greeting?", "Hello!", ADD_USER_RESPONSE_COMMAND)

        await handle_form_submission(interaction, detail)

        assert "**Hi**" in interaction.followup.send.call_args.args[0]
        assert len(await user_storage.get_user_responses("1001")) == 1

    @pytest.mark.asyncio
    async def test_admin_channel_unavailable(self, company_storage, conversation_storage, user_storage):
        failing = MagicMock()
        failing.post_admin_card = AsyncMock(side_effect=AdminChannelUnavailableError("not configured"))
        cog = make_cog(company_storage, conversation_storage, user_storage, failing)
        interaction = make_interaction(cog)
        detail = ResponseRequestDetail("Refunds", "Q", "A", "AddNewSuggestion")

        await handle_form_submission(interaction, detail)

        assert interaction.followup.send.call_args.args[0] == \
            DEFAULT_CONFIG["settings"]["messages"]["admin_channel_unavailable"]


class TestCompanyDelete:
    """Test removing approved company responses."""

    @pytest.mark.asyncio
    async def test_approver_removes_response(self, cog, company_storage):
        await company_storage.upsert_company_response(CompanyResponseEntity(
            response_id="c1", label="Refunds", approval_status=APPROVED_STATUS
        ))
        interaction = make_interaction(cog, user=make_user(role_ids=[77]))
        interaction.response.edit_message = AsyncMock()

        await handle_company_delete_confirm(interaction, "c1", "Refunds")

        assert await company_storage.get_company_response("c1") is None
        content = interaction.response.edit_message.call_args.kwargs["content"]
        assert content == DEFAULT_CONFIG["settings"]["messages"]["company_response_deleted"].format(label="Refunds")

    @pytest.mark.asyncio
    async def test_non_approver_cannot_remove(self, cog, company_storage):
        await company_storage.upsert_company_response(CompanyResponseEntity(
            response_id="c1", label="Refunds", approval_status=APPROVED_STATUS
        ))
        interaction = make_interaction(cog, user=make_user(role_ids=[1]))

        await handle_company_delete_confirm(interaction, "c1", "Refunds")

        assert await company_storage.get_company_response("c1") is not None
        assert interaction.response.send_message.call_args.args[0] == \
            DEFAULT_CONFIG["settings"]["messages"]["no_permission"]


class TestDiscordNotifier:
    """Test admin card posting and submitter DMs through the bot."""

    @pytest.mark.asyncio
    async def test_post_admin_card(self):
        channel = MagicMock()
        channel.send = AsyncMock(return_value=SimpleNamespace(id=123456))
        bot = MagicMock()
        bot.get_channel.return_value = channel

        message_id = await DiscordNotifier(bot, 42).post_admin_card(CompanyResponseEntity(response_id="c1"))

        assert message_id == "123456"
        bot.get_channel.assert_called_with(42)
        assert channel.send.call_args.kwargs["view"] is not None

    @pytest.mark.asyncio
    async def test_unconfigured_admin_channel(self):
        with pytest.raises(AdminChannelUnavailableError):
            await DiscordNotifier(MagicMock(), 0).post_admin_card(CompanyResponseEntity(response_id="c1"))

    @pytest.mark.asyncio
    async def test_refresh_decided_card_removes_buttons(self):
        message = MagicMock()
        message.edit = AsyncMock()
        channel = MagicMock()
        channel.fetch_message = AsyncMock(return_value=message)
        bot = MagicMock()
        bot.get_channel.return_value = channel
        entity = CompanyResponseEntity(
            response_id="c1", approval_status=APPROVED_STATUS, approver_name="Avery", notification_activity_id="555"
        )

        await DiscordNotifier(bot, 42).refresh_admin_card(entity)

        channel.fetch_message.assert_awaited_with(555)
        assert message.edit.call_args.kwargs["view"] is None

    @pytest.mark.asyncio
    async def test_notify_submitter(self):
        channel = MagicMock()
        channel.send = AsyncMock()
        bot = MagicMock()
        bot.get_channel.return_value = channel
        entity = CompanyResponseEntity(response_id="c1", submitter_id="1001", approval_status=REJECTED_STATUS)

        await DiscordNotifier(bot, 42).notify_submitter("777", entity)

        bot.get_channel.assert_called_with(777)
        channel.send.assert_awaited_once()


class TestConversationCapture:
    """Test the DM listener that records conversation mappings."""

    @pytest.mark.asyncio
    async def test_first_dm_records_and_welcomes(self, conversation_storage):
        cog = CannedResponses(MagicMock())
        cog.conversation_storage = conversation_storage
        channel = MagicMock(id=777)
        channel.send = AsyncMock()
        message = SimpleNamespace(author=SimpleNamespace(id=1001, bot=False), guild=None, channel=channel)

        await cog.on_message(message)
        await cog.on_message(message)

        conversation = await conversation_storage.get_conversation("1001")
        assert conversation.conversation_id == "777"
        first, second = channel.send.call_args_list
        assert "embed" in first.kwargs
        assert second.args[0] == DEFAULT_CONFIG["settings"]["messages"]["dm_help"]

    @pytest.mark.asyncio
    async def test_guild_messages_ignored(self, conversation_storage):
        cog = CannedResponses(MagicMock())
        cog.conversation_storage = conversation_storage
        message = SimpleNamespace(author=SimpleNamespace(id=1001, bot=False), guild=object(), channel=MagicMock())

        await cog.on_message(message)

        assert await conversation_storage.get_conversation("1001") is None
