"""
Canned Responses Handlers
Handles button clicks and modal submissions for the canned responses branch.
"""

import discord
from discord import Interaction
import logging

from constants import (
    ADD_NEW_SUGGESTION_COMMAND,
    ADD_USER_RESPONSE_COMMAND,
    EDIT_USER_RESPONSE_COMMAND,
)
from .helpers import get_canned_responses_cog, is_approver
from .models import Actor, ApprovalActionData, ResponseRequestDetail
from .workflow import (
    OUTCOME_ALREADY_DECIDED,
    OUTCOME_APPROVED,
    OUTCOME_VALIDATION_FAILED,
    AdminChannelUnavailableError,
    SuggestionNotFoundError,
    dispatch_form_submission,
)

logger = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE = "Canned responses are unavailable right now. Please try again later."


def actor_from_interaction(interaction: Interaction) -> Actor:
    """Identity of whoever triggered the interaction."""
    user = interaction.user
    return Actor(user_id=str(user.id), name=user.display_name, principal_name=str(user))


async def _send_error(interaction: Interaction, content: str):
    try:
        if interaction.response.is_done():
            await interaction.followup.send(content, ephemeral=True)
        else:
            await interaction.response.send_message(content, ephemeral=True)
    except Exception as err:
        logger.error(f"Failed to send error response: {err}")


async def _open_decision_modal(interaction: Interaction, modal_class):
    """Shared checks before showing the approve or reject form."""
    cog = get_canned_responses_cog(interaction.client)
    if cog is None:
        await interaction.response.send_message(UNAVAILABLE_MESSAGE, ephemeral=True)
        return

    if not is_approver(interaction, cog.approver_role_ids):
        await interaction.response.send_message(cog.get_message("no_permission"), ephemeral=True)
        return

    try:
        entity = await cog.company_storage.get_by_activity_id(str(interaction.message.id))
        if entity is None:
            await interaction.response.send_message(cog.get_message("not_found"), ephemeral=True)
            return

        if entity.is_decided:
            await interaction.response.send_message(
                cog.get_message("already_decided").format(status=entity.approval_status.lower()),
                ephemeral=True
            )
            return

        await interaction.response.send_modal(modal_class(entity, limits=cog.field_limits))

    except discord.HTTPException as e:
        logger.error(f"Failed to open decision form: {e}")
        await _send_error(interaction, "Failed to open the form.")
    except Exception as e:
        logger.error(f"Error handling decision button: {e}", exc_info=True)
        await _send_error(interaction, "An error occurred.")


async def handle_approve_button(interaction: Interaction):
    """
    Handle the approve button on an admin card.

    Args:
        interaction: Discord interaction from the button click
    """
    from .modals import ApproveModal
    await _open_decision_modal(interaction, ApproveModal)


async def handle_reject_button(interaction: Interaction):
    """Handle the reject button on an admin card."""
    from .modals import RejectModal
    await _open_decision_modal(interaction, RejectModal)


async def handle_decision_submission(interaction: Interaction, action: ApprovalActionData):
    """
    Apply an approve or reject form to its suggestion.

    Args:
        interaction: Discord interaction from the modal submission
        action: The approver's decision and edited fields
    """
    cog = get_canned_responses_cog(interaction.client)
    if cog is None:
        await interaction.response.send_message(UNAVAILABLE_MESSAGE, ephemeral=True)
        return

    await interaction.response.defer(ephemeral=True, thinking=True)

    try:
        result = await cog.workflow.decide(action, actor_from_interaction(interaction))

        if result.outcome == OUTCOME_VALIDATION_FAILED:
            content = cog.get_message("validation_failed")
        elif result.outcome == OUTCOME_ALREADY_DECIDED:
            content = cog.get_message("already_decided").format(status=result.entity.approval_status.lower())
        elif result.outcome == OUTCOME_APPROVED:
            content = cog.get_message("approved")
        else:
            content = cog.get_message("rejected")

        if result.changed and not result.notified:
            content += "\n" + cog.get_message("submitter_not_notified")

        await interaction.followup.send(content, ephemeral=True)

    except SuggestionNotFoundError as e:
        logger.warning(str(e))
        await _send_error(interaction, cog.get_message("not_found"))
    except AdminChannelUnavailableError as e:
        logger.error(f"Admin channel unavailable while deciding {action.response_id}: {e}")
        await _send_error(interaction, cog.get_message("admin_channel_unavailable"))
    except discord.HTTPException as e:
        logger.error(f"Discord error deciding suggestion {action.response_id}: {e}")
        await _send_error(interaction, "Failed to update the request card.")
    except Exception as e:
        logger.error(f"Error deciding suggestion {action.response_id}: {e}", exc_info=True)
        await _send_error(interaction, "An error occurred.")


async def handle_form_submission(interaction: Interaction, detail: ResponseRequestDetail):
    """
    Store a submitted add, edit or suggest form.

    Args:
        interaction: Discord interaction from the modal submission
        detail: Form fields and the command context that opened the form
    """
    cog = get_canned_responses_cog(interaction.client)
    if cog is None:
        await interaction.response.send_message(UNAVAILABLE_MESSAGE, ephemeral=True)
        return

    await interaction.response.defer(ephemeral=True, thinking=True)

    try:
        result = await dispatch_form_submission(
            detail, actor_from_interaction(interaction), cog.user_storage, cog.workflow
        )

        if result is None:
            if detail.command_context == EDIT_USER_RESPONSE_COMMAND:
                content = cog.get_message("not_found")
            else:
                content = cog.get_message("save_failed")
        elif detail.command_context == ADD_USER_RESPONSE_COMMAND:
            content = cog.get_message("response_added").format(label=result.label)
        elif detail.command_context == EDIT_USER_RESPONSE_COMMAND:
            content = cog.get_message("response_updated").format(label=result.label)
        elif detail.command_context == ADD_NEW_SUGGESTION_COMMAND:
            content = cog.get_message("suggestion_submitted").format(label=result.label)
        else:
            content = cog.get_message("save_failed")

        await interaction.followup.send(content, ephemeral=True)

    except AdminChannelUnavailableError as e:
        logger.error(f"Admin channel unavailable for suggestion from {interaction.user.id}: {e}")
        await _send_error(interaction, cog.get_message("admin_channel_unavailable"))
    except discord.HTTPException as e:
        logger.error(f"Discord error saving form from {interaction.user.id}: {e}")
        await _send_error(interaction, cog.get_message("save_failed"))
    except Exception as e:
        logger.error(f"Error saving form from {interaction.user.id}: {e}", exc_info=True)
        await _send_error(interaction, "An error occurred.")


async def handle_delete_confirm(interaction: Interaction, response_id: str, label: str):
    """Delete a personal response after the owner confirms."""
    cog = get_canned_responses_cog(interaction.client)
    if cog is None:
        await interaction.response.send_message(UNAVAILABLE_MESSAGE, ephemeral=True)
        return

    try:
        deleted = await cog.user_storage.delete_responses(str(interaction.user.id), [response_id])
        if deleted:
            content = cog.get_message("response_deleted").format(label=label)
        else:
            content = cog.get_message("not_found")
        await interaction.response.edit_message(content=content, view=None)

    except Exception as e:
        logger.error(f"Error deleting response {response_id}: {e}", exc_info=True)
        await _send_error(interaction, "An error occurred.")


async def handle_company_delete_confirm(interaction: Interaction, response_id: str, label: str):
    """Remove a company response after an approver confirms."""
    cog = get_canned_responses_cog(interaction.client)
    if cog is None:
        await interaction.response.send_message(UNAVAILABLE_MESSAGE, ephemeral=True)
        return

    if not is_approver(interaction, cog.approver_role_ids):
        await interaction.response.send_message(cog.get_message("no_permission"), ephemeral=True)
        return

    try:
        if await cog.company_storage.delete_company_response(response_id):
            logger.info(f"{interaction.user} removed company response {response_id}")
            content = cog.get_message("company_response_deleted").format(label=label)
        else:
            content = cog.get_message("not_found")
        await interaction.response.edit_message(content=content, view=None)

    except Exception as e:
        logger.error(f"Error removing company response {response_id}: {e}", exc_info=True)
        await _send_error(interaction, "An error occurred.")
