"""
Canned Responses Notifications
Posts and refreshes admin cards and sends decision notices to submitters.
"""

import discord
import logging

from .cards import build_admin_card, build_user_notification_card
from .models import CompanyResponseEntity
from .workflow import AdminChannelUnavailableError

logger = logging.getLogger(__name__)


class DiscordNotifier:
    """Delivers approval workflow cards through the bot."""

    def __init__(self, bot, admin_channel_id: int):
        self.bot = bot
        self.admin_channel_id = admin_channel_id

    async def _get_channel(self, channel_id: int):
        channel = self.bot.get_channel(channel_id)
        if channel is None:
            channel = await self.bot.fetch_channel(channel_id)
        return channel

    async def _get_admin_channel(self):
        if not self.admin_channel_id:
            raise AdminChannelUnavailableError("Admin channel is not configured")

        try:
            return await self._get_channel(self.admin_channel_id)
        except (discord.NotFound, discord.Forbidden) as e:
            raise AdminChannelUnavailableError(f"Admin channel {self.admin_channel_id} is unavailable: {e}") from e

    async def post_admin_card(self, entity: CompanyResponseEntity) -> str:
        """Post a new request card to the admin channel and return its message id."""
        from .views import ApprovalRequestView

        channel = await self._get_admin_channel()
        message = await channel.send(embed=build_admin_card(entity), view=ApprovalRequestView())
        logger.info(f"Posted admin card {message.id} for suggestion {entity.response_id}")
        return str(message.id)

    async def refresh_admin_card(self, entity: CompanyResponseEntity, show_validation_error: bool = False):
        """Edit the suggestion's admin card in place to match its current state."""
        from .views import ApprovalRequestView

        if not entity.notification_activity_id:
            logger.warning(f"Suggestion {entity.response_id} has no admin card to refresh")
            return

        channel = await self._get_admin_channel()
        message = await channel.fetch_message(int(entity.notification_activity_id))

        view = None if entity.is_decided else ApprovalRequestView()
        await message.edit(embed=build_admin_card(entity, show_validation_error=show_validation_error), view=view)
        logger.debug(f"Refreshed admin card {message.id} for suggestion {entity.response_id}")

    async def notify_submitter(self, conversation_id: str, entity: CompanyResponseEntity):
        """Send the decision card into the submitter's private chat."""
        try:
            channel = await self._get_channel(int(conversation_id))
            await channel.send(embed=build_user_notification_card(entity))
            logger.info(f"Notified {entity.submitter_id} that suggestion {entity.response_id} was {entity.approval_status.lower()}")
        except discord.Forbidden:
            logger.warning(f"Cannot DM user {entity.submitter_id} about suggestion {entity.response_id}")
        except discord.NotFound:
            logger.warning(f"Conversation {conversation_id} for user {entity.submitter_id} no longer exists")
