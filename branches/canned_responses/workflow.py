"""
Canned Responses Workflow
Suggestion approval state machine and personal response form handling.

A suggestion starts Pending and moves once, to Approved or Rejected. Each
step touches the store, the admin card and the submitter's private chat in
that order; a failure in any of them is logged and re-raised.

The notifier passed to ApprovalWorkflow must provide three coroutines:
    post_admin_card(entity) -> message id (str)
    refresh_admin_card(entity, show_validation_error=False) -> None
    notify_submitter(conversation_id, entity) -> None
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from constants import (
    ADD_NEW_SUGGESTION_COMMAND,
    ADD_USER_RESPONSE_COMMAND,
    APPROVED_STATUS,
    EDIT_USER_RESPONSE_COMMAND,
    PENDING_STATUS,
    REJECTED_STATUS,
)
from utils import sanitize_text, utc_now
from .models import (
    Actor,
    ApprovalActionData,
    CompanyResponseEntity,
    ResponseRequestDetail,
    UserResponseEntity,
)
from .storage import CompanyResponseStorage, ConversationStorage, UserResponseStorage

logger = logging.getLogger(__name__)

# Transition outcomes
OUTCOME_APPROVED = "approved"
OUTCOME_REJECTED = "rejected"
OUTCOME_VALIDATION_FAILED = "validation_failed"
OUTCOME_ALREADY_DECIDED = "already_decided"


class SuggestionNotFoundError(Exception):
    """No suggestion exists for the given response id."""


class AdminChannelUnavailableError(Exception):
    """The admin channel is not configured or cannot be reached."""


@dataclass
class TransitionResult:
    outcome: str
    entity: CompanyResponseEntity
    notified: bool = False

    @property
    def changed(self) -> bool:
        return self.outcome in (OUTCOME_APPROVED, OUTCOME_REJECTED)


def has_required_approval_fields(action: ApprovalActionData) -> bool:
    """Label, question and response must all be non-blank to approve."""
    return all(
        sanitize_text(value)
        for value in (action.updated_label, action.updated_question, action.updated_response)
    )


class ApprovalWorkflow:
    """Drives a suggestion from submission to a terminal decision."""

    def __init__(
        self,
        company_storage: CompanyResponseStorage,
        conversation_storage: ConversationStorage,
        notifier,
    ):
        self.company_storage = company_storage
        self.conversation_storage = conversation_storage
        self.notifier = notifier

    async def submit(self, detail: ResponseRequestDetail, submitter: Actor) -> CompanyResponseEntity:
        """
        Store a new pending suggestion and post it to the admin channel.

        The admin message id is saved on the entity so later decisions
        refresh that message instead of posting a new one.
        """
        now = utc_now()
        entity = CompanyResponseEntity(
            response_id=str(uuid.uuid4()),
            label=sanitize_text(detail.label),
            question_text=sanitize_text(detail.question),
            response_text=sanitize_text(detail.response),
            submitter_id=submitter.user_id,
            submitter_name=submitter.name,
            submitter_principal_name=detail.upn or submitter.principal_name,
            approval_status=PENDING_STATUS,
            created_at=now,
            last_updated_at=now,
        )

        try:
            await self.company_storage.upsert_company_response(entity)
            entity.notification_activity_id = await self.notifier.post_admin_card(entity)
            await self.company_storage.upsert_company_response(entity)
        except Exception as e:
            logger.error(f"Failed to submit suggestion {entity.response_id}: {e}", exc_info=True)
            raise

        logger.info(f"Suggestion {entity.response_id} submitted by {submitter.name} ({submitter.user_id})")
        return entity

    async def approve(self, action: ApprovalActionData, approver: Actor) -> TransitionResult:
        """
        Approve a pending suggestion with the approver's edited text.

        Blank label, question or response redisplays the admin card with a
        validation message and leaves the suggestion untouched.
        """
        entity = await self._get_suggestion(action.response_id)

        if entity.is_decided:
            logger.warning(f"Ignoring approval of {entity.response_id}: already {entity.approval_status}")
            return TransitionResult(OUTCOME_ALREADY_DECIDED, entity)

        if not has_required_approval_fields(action):
            logger.info(f"Approval of {entity.response_id} missing required fields")
            await self.notifier.refresh_admin_card(entity, show_validation_error=True)
            return TransitionResult(OUTCOME_VALIDATION_FAILED, entity)

        now = utc_now()
        entity.label = sanitize_text(action.updated_label)
        entity.question_text = sanitize_text(action.updated_question)
        entity.response_text = sanitize_text(action.updated_response)
        entity.approval_status = APPROVED_STATUS
        entity.approver_id = approver.user_id
        entity.approver_name = approver.name
        entity.approved_or_rejected_at = now
        entity.last_updated_at = now

        return await self._complete(entity, OUTCOME_APPROVED)

    async def reject(self, action: ApprovalActionData, approver: Actor) -> TransitionResult:
        """Reject a pending suggestion, keeping the optional remark."""
        entity = await self._get_suggestion(action.response_id)

        if entity.is_decided:
            logger.warning(f"Ignoring rejection of {entity.response_id}: already {entity.approval_status}")
            return TransitionResult(OUTCOME_ALREADY_DECIDED, entity)

        now = utc_now()
        entity.approval_status = REJECTED_STATUS
        entity.approver_id = approver.user_id
        entity.approver_name = approver.name
        entity.approval_remark = sanitize_text(action.approval_remark) or None
        entity.approved_or_rejected_at = now
        entity.last_updated_at = now

        return await self._complete(entity, OUTCOME_REJECTED)

    async def decide(self, action: ApprovalActionData, approver: Actor) -> TransitionResult:
        """Route an admin card action to approve or reject by its requested status."""
        if action.approval_status == APPROVED_STATUS:
            return await self.approve(action, approver)
        if action.approval_status == REJECTED_STATUS:
            return await self.reject(action, approver)
        raise ValueError(f"Unsupported approval status: {action.approval_status}")

    async def _get_suggestion(self, response_id: str) -> CompanyResponseEntity:
        entity = await self.company_storage.get_company_response(response_id)
        if entity is None:
            raise SuggestionNotFoundError(f"Suggestion {response_id} not found")
        return entity

    async def _complete(self, entity: CompanyResponseEntity, outcome: str) -> TransitionResult:
        """Persist the decision, refresh the admin card and notify the submitter."""
        try:
            if not await self.company_storage.record_decision(entity, expected_status=PENDING_STATUS):
                current = await self._get_suggestion(entity.response_id)
                logger.warning(f"Suggestion {entity.response_id} was decided concurrently ({current.approval_status})")
                return TransitionResult(OUTCOME_ALREADY_DECIDED, current)

            logger.info(f"Suggestion {entity.response_id} {entity.approval_status.lower()} by {entity.approver_name}")
            await self.notifier.refresh_admin_card(entity)
            notified = await self._notify_submitter(entity)
        except Exception as e:
            logger.error(f"Error completing decision for {entity.response_id}: {e}", exc_info=True)
            raise

        return TransitionResult(outcome, entity, notified)

    async def _notify_submitter(self, entity: CompanyResponseEntity) -> bool:
        conversation = await self.conversation_storage.get_conversation(entity.submitter_id)
        if conversation is None:
            logger.info(
                f"Unable to send {entity.approval_status.lower()} notification for "
                f"{entity.response_id}: no conversation for user {entity.submitter_id}"
            )
            return False

        await self.notifier.notify_submitter(conversation.conversation_id, entity)
        return True


async def add_user_response(storage: UserResponseStorage, user_id: str, detail: ResponseRequestDetail) -> Optional[UserResponseEntity]:
    """Create a personal response from a submitted form."""
    if detail is None:
        return None

    entity = UserResponseEntity(
        response_id=str(uuid.uuid4()),
        user_id=user_id,
        label=sanitize_text(detail.label),
        question_text=sanitize_text(detail.question),
        response_text=sanitize_text(detail.response),
        last_updated_at=utc_now(),
    )
    if not await storage.upsert_user_response(entity):
        return None
    return entity


async def update_user_response(storage: UserResponseStorage, user_id: str, detail: ResponseRequestDetail) -> Optional[UserResponseEntity]:
    """Overwrite one of the caller's personal responses with the edited form."""
    if detail is None or not detail.response_id:
        return None

    existing = await storage.get_user_response(detail.response_id)
    if existing is None or existing.user_id != user_id:
        logger.warning(f"User {user_id} tried to edit response {detail.response_id} they do not own")
        return None

    entity = UserResponseEntity(
        response_id=detail.response_id,
        user_id=user_id,
        label=sanitize_text(detail.label),
        question_text=sanitize_text(detail.question),
        response_text=sanitize_text(detail.response),
        last_updated_at=utc_now(),
    )
    if not await storage.upsert_user_response(entity):
        return None
    return entity


async def dispatch_form_submission(
    detail: ResponseRequestDetail,
    actor: Actor,
    user_storage: UserResponseStorage,
    workflow: ApprovalWorkflow,
):
    """
    Route a submitted form by its command context.

    Returns:
        The created or updated entity, or None when nothing was stored
    """
    if detail.command_context == ADD_USER_RESPONSE_COMMAND:
        return await add_user_response(user_storage, actor.user_id, detail)
    if detail.command_context == ADD_NEW_SUGGESTION_COMMAND:
        return await workflow.submit(detail, actor)
    if detail.command_context == EDIT_USER_RESPONSE_COMMAND:
        return await update_user_response(user_storage, actor.user_id, detail)

    logger.info(f"Unrecognized form command context: {detail.command_context}")
    return None
