"""
Canned Responses Branch Implementation
Personal responses, company response suggestions and their approval
"""

import discord
from discord import app_commands
from discord.ext import commands, tasks
from database import init_branch_database
import logging
from pathlib import Path

from constants import (
    ADD_NEW_SUGGESTION_COMMAND,
    ADD_USER_RESPONSE_COMMAND,
    APPROVED_STATUS,
    AUTOCOMPLETE_MAX_CHOICES,
    COMMAND_CHOICE_NAME_MAX,
    DEFAULT_INDEXING_INTERVAL_MINUTES,
    EDIT_USER_RESPONSE_COMMAND,
)
from utils import truncate_text

from .cards import (
    build_company_responses_cards,
    build_response_insert_card,
    build_user_requests_cards,
    build_user_responses_cards,
    build_welcome_card,
)
from .helpers import COG_NAME, get_db_path, is_approver
from .models import ConversationEntity
from .modals import ResponseFormModal
from .notifications import DiscordNotifier
from .search import ResponseSearchIndex
from .storage import (
    CANNED_RESPONSES_SCHEMA,
    CompanyResponseStorage,
    ConversationStorage,
    UserResponseStorage,
)
from .views import ApprovalRequestView, ConfirmDeleteView, ResponseListView
from .workflow import ApprovalWorkflow

logger = logging.getLogger(__name__)

SOURCE_PERSONAL = "personal"
SOURCE_COMPANY = "company"

# Default configuration for this branch
DEFAULT_CONFIG = {
    "enabled": True,
    "version": "1.0.0",
    "settings": {
        "admin_channel_id": 0,  # Channel where suggestions are reviewed
        "approver_role_ids": [],  # Roles allowed to approve (administrators always can)

        "search": {
            "indexing_interval_minutes": DEFAULT_INDEXING_INTERVAL_MINUTES,
        },

        "validation": {
            "label_max_length": 200,
            "question_max_length": 500,
            "response_max_length": 500,
            "remark_max_length": 200,
        },

        "ui": {
            "embed_colors": {
                "pending": 0x5865F2,
                "approved": 0x57F287,
                "rejected": 0xED4245,
                "info": 0x2B2D31,
                "warning": 0xFEE75C,
            }
        },

        "messages": {
            "no_permission": "❌ You don't have permission to review company responses.",
            "not_found": "❌ That response could not be found.",
            "already_decided": "ℹ️ This request was already {status}.",
            "validation_failed": "⚠️ Label, question and response are all required. The request is still pending.",
            "approved": "✅ Request approved and added to company responses.",
            "rejected": "❌ Request rejected.",
            "submitter_not_notified": "The submitter hasn't messaged the bot yet, so they weren't notified.",
            "admin_channel_unavailable": "❌ The review channel is not available. Please contact an administrator.",
            "save_failed": "❌ Failed to save your response. Please try again later.",
            "response_added": "✅ Saved **{label}** to your responses.",
            "response_updated": "✅ Updated **{label}**.",
            "response_deleted": "🗑️ Deleted **{label}**.",
            "company_response_deleted": "🗑️ Removed **{label}** from company responses.",
            "suggestion_submitted": "📨 **{label}** was sent for review. You'll get a DM once it's decided.",
            "no_results": "No responses match your search.",
            "dm_help": "Use `/addresponse`, `/myresponses`, `/suggestresponse` or `/companyresponses` to get started.",
        }
    }
}


class CannedResponses(commands.Cog, name=COG_NAME):
    """Personal and company canned responses with an approval workflow."""

    def __init__(self, bot):
        self.bot = bot

        # Set database path (in this branch's folder)
        self.db_path = get_db_path()

        # Load config
        self.config = self.load_config()
        settings = self.config.get("settings", {})

        self.admin_channel_id = settings.get("admin_channel_id", 0)
        self.approver_role_ids = settings.get("approver_role_ids", [])
        self.indexing_interval = settings.get("search", {}).get(
            "indexing_interval_minutes", DEFAULT_INDEXING_INTERVAL_MINUTES
        )

        validation = settings.get("validation", {})
        self.field_limits = {
            "label": validation.get("label_max_length", 200),
            "question": validation.get("question_max_length", 500),
            "response": validation.get("response_max_length", 500),
            "remark": validation.get("remark_max_length", 200),
        }
        self.messages = settings.get("messages", {})

        # Storage, search and workflow
        self.user_storage = UserResponseStorage(self.db_path)
        self.company_storage = CompanyResponseStorage(self.db_path)
        self.conversation_storage = ConversationStorage(self.db_path)
        self.search_index = ResponseSearchIndex(self.db_path)
        self.notifier = DiscordNotifier(bot, self.admin_channel_id)
        self.workflow = ApprovalWorkflow(self.company_storage, self.conversation_storage, self.notifier)

        logger.info(f"Canned responses branch initialized (admin channel: {self.admin_channel_id}, db: {self.db_path})")

    async def cog_load(self):
        """Initialize database, views and the search index when branch is loaded."""
        await init_branch_database(self.db_path, CANNED_RESPONSES_SCHEMA, "CannedResponses")

        # Register persistent views
        logger.info("Registering ApprovalRequestView for persistent interactions")
        self.bot.add_view(ApprovalRequestView())

        try:
            await self.search_index.rebuild()
        except Exception as e:
            logger.error(f"Initial search index build failed: {e}")

        self.refresh_search_index.change_interval(minutes=self.indexing_interval)
        self.refresh_search_index.start()
        logger.info(f"Search index refresh started (interval: {self.indexing_interval} minutes)")

    async def cog_unload(self):
        """Stop background tasks."""
        if self.refresh_search_index.is_running():
            self.refresh_search_index.cancel()
        logger.info("Canned responses branch unloaded")

    def load_config(self) -> dict:
        """Load config from config.yml in this branch's folder."""
        from utils import load_branch_config
        config_path = Path(__file__).parent / "config.yml"
        return load_branch_config(config_path, DEFAULT_CONFIG, "CannedResponses")

    def get_message(self, key: str) -> str:
        """User-facing message from config, falling back to the default."""
        return self.messages.get(key, DEFAULT_CONFIG["settings"]["messages"].get(key, ""))

    @tasks.loop(minutes=DEFAULT_INDEXING_INTERVAL_MINUTES)
    async def refresh_search_index(self):
        """Periodically rebuild the search index from the store."""
        try:
            await self.search_index.rebuild()
        except Exception as e:
            logger.error(f"Error in search index refresh: {e}", exc_info=True)

    @refresh_search_index.before_loop
    async def before_refresh_search_index(self):
        """Wait until bot is ready before starting task."""
        await self.bot.wait_until_ready()

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message):
        """Record a user's private conversation and greet them on first contact."""
        if message.author.bot or message.guild is not None:
            return

        user_id = str(message.author.id)
        conversation_id = str(message.channel.id)

        try:
            existing = await self.conversation_storage.get_conversation(user_id)
            if existing is None or existing.conversation_id != conversation_id:
                await self.conversation_storage.add_conversation(ConversationEntity(user_id, conversation_id))
                logger.info(f"Recorded conversation {conversation_id} for user {message.author} ({user_id})")

            if existing is None:
                await message.channel.send(embed=build_welcome_card())
            else:
                await message.channel.send(self.get_message("dm_help"))

        except discord.Forbidden:
            logger.warning(f"Cannot reply to DM from {message.author} ({user_id})")
        except Exception as e:
            logger.error(f"Error handling DM from {user_id}: {e}", exc_info=True)

    # ========================================================================
    # Autocomplete
    # ========================================================================

    async def personal_response_autocomplete(
        self,
        interaction: discord.Interaction,
        current: str,
    ) -> list[app_commands.Choice[str]]:
        """Autocomplete the caller's own responses by label."""
        responses = await self.user_storage.get_user_responses(str(interaction.user.id))

        if current:
            responses = [r for r in responses if current.lower() in (r.label or "").lower()]

        return [
            app_commands.Choice(name=truncate_text(r.label or "Untitled", COMMAND_CHOICE_NAME_MAX), value=r.response_id)
            for r in responses[:AUTOCOMPLETE_MAX_CHOICES]
        ]

    async def respond_autocomplete(
        self,
        interaction: discord.Interaction,
        current: str,
    ) -> list[app_commands.Choice[str]]:
        """Autocomplete from the search index for the chosen source."""
        source = getattr(interaction.namespace, "source", None) or SOURCE_PERSONAL

        if source == SOURCE_COMPANY:
            results = await self.search_index.search_company_responses(
                current, AUTOCOMPLETE_MAX_CHOICES, 0, is_task_module_data=True
            )
        else:
            results = await self.search_index.search_user_responses(
                current, str(interaction.user.id), AUTOCOMPLETE_MAX_CHOICES, 0
            )

        return [
            app_commands.Choice(name=truncate_text(r.label or "Untitled", COMMAND_CHOICE_NAME_MAX), value=r.response_id)
            for r in results
        ]

    async def company_response_autocomplete(
        self,
        interaction: discord.Interaction,
        current: str,
    ) -> list[app_commands.Choice[str]]:
        """Autocomplete approved company responses from the search index."""
        results = await self.search_index.search_company_responses(
            current, AUTOCOMPLETE_MAX_CHOICES, 0, is_task_module_data=True
        )
        return [
            app_commands.Choice(name=truncate_text(r.label or "Untitled", COMMAND_CHOICE_NAME_MAX), value=r.response_id)
            for r in results
        ]

    # ========================================================================
    # Personal responses
    # ========================================================================

    @app_commands.command(name="addresponse", description="Save a new personal response")
    async def add_response(self, interaction: discord.Interaction):
        """Open the form for a new personal response."""
        await interaction.response.send_modal(
            ResponseFormModal(ADD_USER_RESPONSE_COMMAND, limits=self.field_limits)
        )

    @app_commands.command(name="editresponse", description="Edit one of your responses")
    @app_commands.describe(response="The response to edit")
    @app_commands.autocomplete(response=personal_response_autocomplete)
    async def edit_response(self, interaction: discord.Interaction, response: str):
        """Open the edit form prefilled with an existing response."""
        entity = await self.user_storage.get_user_response(response)
        if entity is None or entity.user_id != str(interaction.user.id):
            await interaction.response.send_message(self.get_message("not_found"), ephemeral=True)
            return

        await interaction.response.send_modal(ResponseFormModal(
            EDIT_USER_RESPONSE_COMMAND,
            response_id=entity.response_id,
            label=entity.label,
            question=entity.question_text,
            response=entity.response_text,
            limits=self.field_limits,
        ))

    @app_commands.command(name="deleteresponse", description="Delete one of your responses")
    @app_commands.describe(response="The response to delete")
    @app_commands.autocomplete(response=personal_response_autocomplete)
    async def delete_response(self, interaction: discord.Interaction, response: str):
        """Ask for confirmation before deleting a personal response."""
        entity = await self.user_storage.get_user_response(response)
        if entity is None or entity.user_id != str(interaction.user.id):
            await interaction.response.send_message(self.get_message("not_found"), ephemeral=True)
            return

        view = ConfirmDeleteView(interaction.user.id, entity.response_id, entity.label)
        await interaction.response.send_message(
            f"Delete **{entity.label}**? This can't be undone.", view=view, ephemeral=True
        )

    @app_commands.command(name="myresponses", description="List or search your saved responses")
    @app_commands.describe(query="Text to search for in label, question or response")
    async def my_responses(self, interaction: discord.Interaction, query: str = None):
        """Show the caller's responses, filtered through the search index when a query is given."""
        await interaction.response.defer(ephemeral=True)

        try:
            user_id = str(interaction.user.id)
            if query:
                responses = await self.search_index.search_user_responses(query, user_id)
                if not responses:
                    await interaction.followup.send(self.get_message("no_results"), ephemeral=True)
                    return
            else:
                responses = await self.user_storage.get_user_responses(user_id)

            view = ResponseListView(interaction.user.id, build_user_responses_cards(responses))
            await interaction.followup.send(embed=view.current_embed(), view=view, ephemeral=True)

        except Exception as e:
            logger.error(f"Error listing responses for {interaction.user.id}: {e}", exc_info=True)
            await interaction.followup.send("❌ An error occurred while loading your responses.", ephemeral=True)

    # ========================================================================
    # Company responses
    # ========================================================================

    @app_commands.command(name="suggestresponse", description="Suggest a response for the whole company")
    async def suggest_response(self, interaction: discord.Interaction):
        """Open the suggestion form."""
        await interaction.response.send_modal(
            ResponseFormModal(ADD_NEW_SUGGESTION_COMMAND, limits=self.field_limits)
        )

    @app_commands.command(name="myrequests", description="See the status of your company response suggestions")
    async def my_requests(self, interaction: discord.Interaction):
        """Show the caller's suggestions with their approval status."""
        await interaction.response.defer(ephemeral=True)

        try:
            requests = await self.company_storage.get_user_company_responses(str(interaction.user.id))
            view = ResponseListView(interaction.user.id, build_user_requests_cards(requests))
            await interaction.followup.send(embed=view.current_embed(), view=view, ephemeral=True)
        except Exception as e:
            logger.error(f"Error listing requests for {interaction.user.id}: {e}", exc_info=True)
            await interaction.followup.send("❌ An error occurred while loading your requests.", ephemeral=True)

    @app_commands.command(name="companyresponses", description="Browse approved company responses")
    @app_commands.describe(query="Text to search for in label, question or response")
    async def company_responses(self, interaction: discord.Interaction, query: str = None):
        """Show approved company responses, newest first."""
        await interaction.response.defer(ephemeral=True)

        try:
            if query:
                responses = await self.search_index.search_company_responses(query)
                if not responses:
                    await interaction.followup.send(self.get_message("no_results"), ephemeral=True)
                    return
            else:
                responses = await self.search_index.get_company_responses()

            view = ResponseListView(interaction.user.id, build_company_responses_cards(responses))
            await interaction.followup.send(embed=view.current_embed(), view=view, ephemeral=True)

        except Exception as e:
            logger.error(f"Error listing company responses: {e}", exc_info=True)
            await interaction.followup.send("❌ An error occurred while loading company responses.", ephemeral=True)

    @app_commands.command(name="removecompanyresponse", description="Remove an approved company response")
    @app_commands.describe(response="The company response to remove")
    @app_commands.autocomplete(response=company_response_autocomplete)
    async def remove_company_response(self, interaction: discord.Interaction, response: str):
        """Ask an approver to confirm removing a company response."""
        if not is_approver(interaction, self.approver_role_ids):
            await interaction.response.send_message(self.get_message("no_permission"), ephemeral=True)
            return

        entity = await self.company_storage.get_company_response(response)
        if entity is None or entity.approval_status != APPROVED_STATUS:
            await interaction.response.send_message(self.get_message("not_found"), ephemeral=True)
            return

        view = ConfirmDeleteView(interaction.user.id, entity.response_id, entity.label, company=True)
        await interaction.response.send_message(
            f"Remove **{entity.label}** from company responses? This can't be undone.", view=view, ephemeral=True
        )

    # ========================================================================
    # Insertion
    # ========================================================================

    @app_commands.command(name="respond", description="Post one of your saved or company responses here")
    @app_commands.describe(source="Where to look for the response", response="The response to post")
    @app_commands.choices(source=[
        app_commands.Choice(name="My responses", value=SOURCE_PERSONAL),
        app_commands.Choice(name="Company responses", value=SOURCE_COMPANY),
    ])
    @app_commands.autocomplete(response=respond_autocomplete)
    async def respond(self, interaction: discord.Interaction, source: str, response: str):
        """Post the chosen response into the current channel."""
        if source == SOURCE_COMPANY:
            entity = await self.company_storage.get_company_response(response)
            if entity is not None and entity.approval_status != APPROVED_STATUS:
                entity = None
        else:
            entity = await self.user_storage.get_user_response(response)
            if entity is not None and entity.user_id != str(interaction.user.id):
                entity = None

        if entity is None:
            await interaction.response.send_message(self.get_message("not_found"), ephemeral=True)
            return

        try:
            await interaction.response.send_message(embed=build_response_insert_card(entity))
            logger.info(f"{interaction.user} posted {source} response {entity.response_id}")
        except discord.HTTPException as e:
            logger.error(f"Failed to post response {entity.response_id}: {e}")
