"""
Canned Responses Cards
Builds the embeds posted to the admin channel and to users.
"""

import discord
from typing import Dict, List, Optional, Tuple

from constants import (
    APPROVED_STATUS,
    EMBED_DESCRIPTION_MAX,
    EMBED_FIELD_NAME_MAX,
    EMBED_FIELD_VALUE_MAX,
    EMBED_FOOTER_MAX,
    EMBED_MAX_FIELDS,
    EMBED_TOTAL_MAX,
    REJECTED_STATUS,
)
from utils import discord_timestamp, truncate_text
from .helpers import get_embed_colors, truncate
from .models import CompanyResponseEntity, UserResponseEntity

VALIDATION_MESSAGE = "⚠️ Label, question and response are all required to approve this request."

# Room left for the "Page x of y" footer
PAGE_FOOTER_RESERVE = 32

STATUS_EMOJI = {
    "Pending": "⏳",
    "Approved": "✅",
    "Rejected": "❌",
}


def _add_response_fields(embed: discord.Embed, entity) -> None:
    embed.add_field(name="🏷️ Label", value=truncate(entity.label) or "-", inline=False)
    embed.add_field(name="❓ Question", value=truncate(entity.question_text) or "-", inline=False)
    embed.add_field(name="💬 Response", value=truncate(entity.response_text) or "-", inline=False)


def _submitter_text(entity: CompanyResponseEntity) -> str:
    if entity.submitter_id and entity.submitter_id.isdigit():
        return f"<@{entity.submitter_id}> ({entity.submitter_name})"
    return entity.submitter_name or "Unknown"


def build_new_request_card(
    entity: CompanyResponseEntity,
    show_validation_error: bool = False,
    colors: Optional[Dict[str, int]] = None,
) -> discord.Embed:
    """Admin card for a pending suggestion."""
    colors = colors or get_embed_colors()
    embed = discord.Embed(
        title="📥 New Company Response Request",
        description=f"{_submitter_text(entity)} suggested a new company response.",
        color=colors["pending"],
    )
    _add_response_fields(embed, entity)

    if show_validation_error:
        embed.add_field(name="Action required", value=VALIDATION_MESSAGE, inline=False)
        embed.color = colors["warning"]

    embed.set_footer(text=f"Request ID: {entity.response_id}")
    return embed


def build_decided_request_card(entity: CompanyResponseEntity, colors: Optional[Dict[str, int]] = None) -> discord.Embed:
    """Admin card refreshed in place after an approval or rejection."""
    colors = colors or get_embed_colors()
    approved = entity.approval_status == APPROVED_STATUS

    embed = discord.Embed(
        title="✅ Request Approved" if approved else "❌ Request Rejected",
        description=f"Request submitted by {_submitter_text(entity)}.",
        color=colors["approved"] if approved else colors["rejected"],
    )
    _add_response_fields(embed, entity)

    if not approved and entity.approval_remark:
        embed.add_field(name="📝 Remark", value=truncate(entity.approval_remark), inline=False)

    verb = "Approved" if approved else "Rejected"
    embed.add_field(
        name="Decision",
        value=f"{verb} by {entity.approver_name} on {discord_timestamp(entity.approved_or_rejected_at)}",
        inline=False,
    )
    embed.set_footer(text=f"Request ID: {entity.response_id}")
    return embed


def build_admin_card(entity: CompanyResponseEntity, show_validation_error: bool = False) -> discord.Embed:
    """Pick the admin card matching the suggestion's current status."""
    if entity.approval_status in (APPROVED_STATUS, REJECTED_STATUS):
        return build_decided_request_card(entity)
    return build_new_request_card(entity, show_validation_error=show_validation_error)


def build_user_notification_card(entity: CompanyResponseEntity, colors: Optional[Dict[str, int]] = None) -> discord.Embed:
    """Card sent to the submitter's private chat once their request is decided."""
    colors = colors or get_embed_colors()
    approved = entity.approval_status == APPROVED_STATUS

    embed = discord.Embed(
        title="Your company response request was updated",
        description=f"Status: **{STATUS_EMOJI.get(entity.approval_status, '')} {entity.approval_status}**",
        color=colors["approved"] if approved else colors["rejected"],
    )
    _add_response_fields(embed, entity)

    if approved:
        embed.add_field(
            name="Approved",
            value=f"Added to company responses on {discord_timestamp(entity.approved_or_rejected_at)}",
            inline=False,
        )
    else:
        embed.add_field(name="📝 Remark", value=truncate(entity.approval_remark) or "No remark given.", inline=False)
        embed.add_field(
            name="Rejected",
            value=f"Rejected on {discord_timestamp(entity.approved_or_rejected_at)}",
            inline=False,
        )
    return embed


def build_welcome_card(colors: Optional[Dict[str, int]] = None) -> discord.Embed:
    """Welcome card sent the first time a user talks to the bot privately."""
    colors = colors or get_embed_colors()
    embed = discord.Embed(
        title="👋 Welcome to Canned Responses",
        description=(
            "Save answers you give often and reuse them anywhere.\n\n"
            "**Commands:**\n"
            "• `/addresponse` - save a personal response\n"
            "• `/myresponses` - list and search your responses\n"
            "• `/suggestresponse` - suggest a company-wide response\n"
            "• `/companyresponses` - browse approved company responses\n"
            "• `/respond` - post a saved response in the current channel\n\n"
            "You'll get a message here when an admin reviews your suggestions."
        ),
        color=colors["info"],
    )
    return embed


def _paginate_fields(fields: List[Tuple[str, str]], title: str, description: str) -> List[List[Tuple[str, str]]]:
    """Split fields into pages that respect Discord's field and character limits."""
    budget = EMBED_TOTAL_MAX - len(title) - len(description) - PAGE_FOOTER_RESERVE

    pages = []
    fields_in_page = []
    char_count = 0
    for name, value in fields:
        added_chars = len(name) + len(value)
        if fields_in_page and (len(fields_in_page) >= EMBED_MAX_FIELDS or char_count + added_chars > budget):
            pages.append(fields_in_page)
            fields_in_page = []
            char_count = 0
        fields_in_page.append((name, value))
        char_count += added_chars

    pages.append(fields_in_page)
    return pages


def _build_list_embeds(title: str, description: str, color: int, fields: List[Tuple[str, str]], inline: bool = False) -> List[discord.Embed]:
    pages = _paginate_fields(fields, title, description)

    embeds = []
    for page_num, page_fields in enumerate(pages, start=1):
        embed = discord.Embed(title=title, description=description, color=color)
        for name, value in page_fields:
            embed.add_field(name=name, value=value, inline=inline)
        if len(pages) > 1:
            embed.set_footer(text=f"Page {page_num} of {len(pages)}")
        embeds.append(embed)
    return embeds


def build_user_responses_cards(responses: List[UserResponseEntity], colors: Optional[Dict[str, int]] = None) -> List[discord.Embed]:
    """Pages listing a user's personal responses."""
    colors = colors or get_embed_colors()
    fields = [
        (
            truncate_text(response.label or "Untitled", EMBED_FIELD_NAME_MAX),
            truncate_text(f"**Q:** {response.question_text}\n{response.response_text}", EMBED_FIELD_VALUE_MAX),
        )
        for response in responses
    ]
    return _build_list_embeds(
        "📒 Your Responses",
        f"Found **{len(responses)}** response(s)." if responses else "You have no saved responses yet.",
        colors["info"],
        fields,
    )


def build_company_responses_cards(responses: List[CompanyResponseEntity], colors: Optional[Dict[str, int]] = None) -> List[discord.Embed]:
    """Pages listing approved company responses."""
    colors = colors or get_embed_colors()
    fields = [
        (
            truncate_text(f"{response.label or 'Untitled'} | {response.submitter_name or 'Unknown'}", EMBED_FIELD_NAME_MAX),
            truncate_text(f"**Q:** {response.question_text}\n{response.response_text}", EMBED_FIELD_VALUE_MAX),
        )
        for response in responses
    ]
    return _build_list_embeds(
        "🏢 Company Responses",
        f"Found **{len(responses)}** response(s)." if responses else "No company responses have been approved yet.",
        colors["approved"],
        fields,
    )


def build_user_requests_cards(requests: List[CompanyResponseEntity], colors: Optional[Dict[str, int]] = None) -> List[discord.Embed]:
    """Pages listing a submitter's own suggestions with their current status."""
    colors = colors or get_embed_colors()
    fields = []
    for request in requests:
        value = f"**Status:** {STATUS_EMOJI.get(request.approval_status, '❓')} {request.approval_status}"
        value += f"\n**Submitted:** {discord_timestamp(request.created_at, 'd')}"
        if request.approval_status == REJECTED_STATUS and request.approval_remark:
            value += f"\n**Remark:** {truncate_text(request.approval_remark, 100)}"
        fields.append((truncate_text(request.label or "Untitled", EMBED_FIELD_NAME_MAX), value))

    return _build_list_embeds(
        "📨 Your Requests",
        f"Found **{len(requests)}** request(s)." if requests else "You haven't suggested any company responses yet.",
        colors["info"],
        fields,
        inline=True,
    )


def build_response_insert_card(entity, colors: Optional[Dict[str, int]] = None) -> discord.Embed:
    """The response itself, as posted into a channel by /respond."""
    colors = colors or get_embed_colors()
    embed = discord.Embed(description=truncate_text(entity.response_text, EMBED_DESCRIPTION_MAX), color=colors["info"])
    if entity.label:
        embed.set_footer(text=truncate_text(entity.label, EMBED_FOOTER_MAX))
    return embed
