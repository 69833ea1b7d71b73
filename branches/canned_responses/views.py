"""
Canned Responses Views
Discord UI components for the admin approval card and response listings.
"""

import discord
from discord import ui, Interaction
import logging
from typing import List

from constants import DEFAULT_VIEW_TIMEOUT

logger = logging.getLogger(__name__)


class ApprovalRequestView(ui.View):
    """Persistent approve/reject buttons on a pending suggestion's admin card."""

    def __init__(self):
        super().__init__(timeout=None)

    @discord.ui.button(label="✅ Approve", style=discord.ButtonStyle.green, custom_id="canned_response_approve")
    async def approve(self, interaction: Interaction, button: discord.ui.Button):
        """Open the approval form."""
        from .handlers import handle_approve_button
        await handle_approve_button(interaction)

    @discord.ui.button(label="❌ Reject", style=discord.ButtonStyle.red, custom_id="canned_response_reject")
    async def reject(self, interaction: Interaction, button: discord.ui.Button):
        """Open the rejection form."""
        from .handlers import handle_reject_button
        await handle_reject_button(interaction)


class ResponseListView(ui.View):
    """Pages through a list of prebuilt embeds."""

    def __init__(self, owner_id: int, pages: List[discord.Embed], timeout: float = DEFAULT_VIEW_TIMEOUT):
        super().__init__(timeout=timeout)
        self.owner_id = owner_id
        self.pages = pages
        self.page = 0
        self.last_page = max(0, len(pages) - 1)
        self._update_buttons()

    def _update_buttons(self):
        self.previous_page.disabled = self.page <= 0
        self.next_page.disabled = self.page >= self.last_page

    def current_embed(self) -> discord.Embed:
        return self.pages[self.page]

    async def interaction_check(self, interaction: Interaction) -> bool:
        if interaction.user.id != self.owner_id:
            await interaction.response.send_message("This list belongs to someone else.", ephemeral=True)
            return False
        return True

    @discord.ui.button(label="◀", style=discord.ButtonStyle.gray)
    async def previous_page(self, interaction: Interaction, button: discord.ui.Button):
        self.page = max(0, self.page - 1)
        self._update_buttons()
        await interaction.response.edit_message(embed=self.current_embed(), view=self)

    @discord.ui.button(label="▶", style=discord.ButtonStyle.gray)
    async def next_page(self, interaction: Interaction, button: discord.ui.Button):
        self.page = min(self.last_page, self.page + 1)
        self._update_buttons()
        await interaction.response.edit_message(embed=self.current_embed(), view=self)


class ConfirmDeleteView(ui.View):
    """Asks for confirmation before deleting a personal or company response."""

    def __init__(self, owner_id: int, response_id: str, label: str, company: bool = False):
        super().__init__(timeout=60)
        self.owner_id = owner_id
        self.response_id = response_id
        self.label = label
        self.company = company

    async def interaction_check(self, interaction: Interaction) -> bool:
        return interaction.user.id == self.owner_id

    @discord.ui.button(label="🗑️ Delete", style=discord.ButtonStyle.red)
    async def confirm(self, interaction: Interaction, button: discord.ui.Button):
        from .handlers import handle_company_delete_confirm, handle_delete_confirm
        if self.company:
            await handle_company_delete_confirm(interaction, self.response_id, self.label)
        else:
            await handle_delete_confirm(interaction, self.response_id, self.label)
        self.stop()

    @discord.ui.button(label="Cancel", style=discord.ButtonStyle.gray)
    async def cancel(self, interaction: Interaction, button: discord.ui.Button):
        await interaction.response.edit_message(content="Deletion cancelled.", view=None)
        self.stop()
