"""
Canned Responses Models
Entities stored by the branch and the payloads its forms and buttons submit.
"""

from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from constants import PENDING_STATUS, TERMINAL_STATUSES
from utils import from_iso, to_iso

_TIMESTAMP_FIELDS = {"created_at", "last_updated_at", "approved_or_rejected_at"}


def _row_to_kwargs(cls, row: Mapping[str, Any]) -> Dict[str, Any]:
    """Pick the dataclass fields out of a database row, parsing timestamps."""
    keys = set(row.keys())
    kwargs = {}
    for f in fields(cls):
        if f.name not in keys:
            continue
        value = row[f.name]
        kwargs[f.name] = from_iso(value) if f.name in _TIMESTAMP_FIELDS else value
    return kwargs


def _to_record(entity) -> Dict[str, Any]:
    """Flatten a dataclass into column values, serializing timestamps."""
    record = {}
    for f in fields(entity):
        value = getattr(entity, f.name)
        record[f.name] = to_iso(value) if f.name in _TIMESTAMP_FIELDS else value
    return record


@dataclass
class UserResponseEntity:
    """A personal canned response owned by one user."""
    response_id: str
    user_id: str
    label: str = ""
    question_text: str = ""
    response_text: str = ""
    last_updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "UserResponseEntity":
        return cls(**_row_to_kwargs(cls, row))

    def to_record(self) -> Dict[str, Any]:
        return _to_record(self)


@dataclass
class CompanyResponseEntity:
    """A company-wide response, created as a suggestion awaiting approval."""
    response_id: str
    label: str = ""
    question_text: str = ""
    response_text: str = ""
    submitter_id: Optional[str] = None
    submitter_name: Optional[str] = None
    submitter_principal_name: Optional[str] = None
    approval_status: str = PENDING_STATUS
    approver_id: Optional[str] = None
    approver_name: Optional[str] = None
    approval_remark: Optional[str] = None
    created_at: Optional[datetime] = None
    last_updated_at: Optional[datetime] = None
    approved_or_rejected_at: Optional[datetime] = None
    notification_activity_id: Optional[str] = None

    @property
    def is_decided(self) -> bool:
        return self.approval_status in TERMINAL_STATUSES

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "CompanyResponseEntity":
        return cls(**_row_to_kwargs(cls, row))

    def to_record(self) -> Dict[str, Any]:
        return _to_record(self)


@dataclass
class ConversationEntity:
    """Maps a user to the private conversation the bot can reach them in."""
    user_id: str
    conversation_id: str

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ConversationEntity":
        return cls(user_id=row["user_id"], conversation_id=row["conversation_id"])


@dataclass
class ResponseRequestDetail:
    """Payload of an add / edit / suggest form submission."""
    label: str
    question: str
    response: str
    command_context: str
    response_id: Optional[str] = None
    upn: Optional[str] = None


@dataclass
class ApprovalActionData:
    """Payload of an approve or reject action on the admin card."""
    response_id: str
    approval_status: str
    updated_label: str = ""
    updated_question: str = ""
    updated_response: str = ""
    approval_remark: Optional[str] = None


@dataclass
class Actor:
    """The chat user performing an action."""
    user_id: str
    name: str
    principal_name: Optional[str] = None
