"""
Canned Responses Modals
Modal forms for adding, editing and suggesting responses and for admin decisions.
"""

import discord
from discord import ui, Interaction
import logging

from constants import (
    ADD_NEW_SUGGESTION_COMMAND,
    ADD_USER_RESPONSE_COMMAND,
    APPROVE_LABEL_MAX,
    APPROVE_QUESTION_MAX,
    APPROVE_RESPONSE_MAX,
    APPROVED_STATUS,
    DEFAULT_MODAL_TIMEOUT,
    EDIT_USER_RESPONSE_COMMAND,
    REJECT_REMARK_MAX,
    REJECTED_STATUS,
)
from .models import ApprovalActionData, CompanyResponseEntity, ResponseRequestDetail

logger = logging.getLogger(__name__)

DEFAULT_FIELD_LIMITS = {
    "label": APPROVE_LABEL_MAX,
    "question": APPROVE_QUESTION_MAX,
    "response": APPROVE_RESPONSE_MAX,
    "remark": REJECT_REMARK_MAX,
}

FORM_TITLES = {
    ADD_USER_RESPONSE_COMMAND: "Add a Response",
    EDIT_USER_RESPONSE_COMMAND: "Edit Response",
    ADD_NEW_SUGGESTION_COMMAND: "Suggest a Company Response",
}


class ResponseFormModal(ui.Modal):
    """Label/question/response form shared by add, edit and suggest."""

    def __init__(self, command_context: str, response_id: str = None,
                 label: str = None, question: str = None, response: str = None, limits: dict = None):
        super().__init__(title=FORM_TITLES.get(command_context, "Response"), timeout=DEFAULT_MODAL_TIMEOUT)
        limits = {**DEFAULT_FIELD_LIMITS, **(limits or {})}
        self.command_context = command_context
        self.response_id = response_id

        self.label_input = ui.TextInput(
            label="Label",
            placeholder="A short name to find this response by",
            default=label,
            max_length=limits["label"],
            required=True
        )
        self.question_input = ui.TextInput(
            label="Question",
            style=discord.TextStyle.paragraph,
            placeholder="The question this answers",
            default=question,
            max_length=limits["question"],
            required=True
        )
        self.response_input = ui.TextInput(
            label="Response",
            style=discord.TextStyle.paragraph,
            placeholder="The answer you want to reuse",
            default=response,
            max_length=limits["response"],
            required=True
        )
        self.add_item(self.label_input)
        self.add_item(self.question_input)
        self.add_item(self.response_input)

    def to_detail(self, upn: str = None) -> ResponseRequestDetail:
        return ResponseRequestDetail(
            label=self.label_input.value,
            question=self.question_input.value,
            response=self.response_input.value,
            command_context=self.command_context,
            response_id=self.response_id,
            upn=upn,
        )

    async def on_submit(self, interaction: Interaction):
        from .handlers import handle_form_submission
        await handle_form_submission(interaction, self.to_detail(upn=str(interaction.user)))


class ApproveModal(ui.Modal, title="Approve Company Response"):
    """
    Approval form prefilled with the suggestion's text.

    Fields are optional here so a blank field reaches the workflow, which
    redisplays the admin card with a validation message instead.
    """

    def __init__(self, entity: CompanyResponseEntity, limits: dict = None):
        super().__init__(timeout=DEFAULT_MODAL_TIMEOUT)
        limits = {**DEFAULT_FIELD_LIMITS, **(limits or {})}
        self.response_id = entity.response_id

        self.label_input = ui.TextInput(
            label="Label", default=entity.label, max_length=limits["label"], required=False
        )
        self.question_input = ui.TextInput(
            label="Question", style=discord.TextStyle.paragraph,
            default=entity.question_text, max_length=limits["question"], required=False
        )
        self.response_input = ui.TextInput(
            label="Response", style=discord.TextStyle.paragraph,
            default=entity.response_text, max_length=limits["response"], required=False
        )
        self.add_item(self.label_input)
        self.add_item(self.question_input)
        self.add_item(self.response_input)

    def to_action(self) -> ApprovalActionData:
        return ApprovalActionData(
            response_id=self.response_id,
            approval_status=APPROVED_STATUS,
            updated_label=self.label_input.value,
            updated_question=self.question_input.value,
            updated_response=self.response_input.value,
        )

    async def on_submit(self, interaction: Interaction):
        from .handlers import handle_decision_submission
        await handle_decision_submission(interaction, self.to_action())


class RejectModal(ui.Modal, title="Reject Company Response"):
    """Rejection form with an optional remark for the submitter."""

    def __init__(self, entity: CompanyResponseEntity, limits: dict = None):
        super().__init__(timeout=DEFAULT_MODAL_TIMEOUT)
        limits = {**DEFAULT_FIELD_LIMITS, **(limits or {})}
        self.response_id = entity.response_id

        self.remark = ui.TextInput(
            label="Remark",
            style=discord.TextStyle.paragraph,
            placeholder="Why is this being rejected? (optional)",
            max_length=limits["remark"],
            required=False
        )
        self.add_item(self.remark)

    def to_action(self) -> ApprovalActionData:
        return ApprovalActionData(
            response_id=self.response_id,
            approval_status=REJECTED_STATUS,
            approval_remark=self.remark.value,
        )

    async def on_submit(self, interaction: Interaction):
        from .handlers import handle_decision_submission
        await handle_decision_submission(interaction, self.to_action())
