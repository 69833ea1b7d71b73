"""Tests for admin and user card builders."""

from datetime import datetime, timezone

from constants import APPROVED_STATUS, EMBED_TOTAL_MAX, PENDING_STATUS, REJECTED_STATUS
from branches.canned_responses.cards import (
    VALIDATION_MESSAGE,
    build_admin_card,
    build_company_responses_cards,
    build_new_request_card,
    build_user_notification_card,
    build_user_requests_cards,
    build_user_responses_cards,
)
from branches.canned_responses.models import CompanyResponseEntity, UserResponseEntity

COLORS = {
    "pending": 1,
    "approved": 2,
    "rejected": 3,
    "info": 4,
    "warning": 5,
}


def suggestion(status=PENDING_STATUS, remark=None):
    return CompanyResponseEntity(
        response_id="c1",
        label="Refunds",
        question_text="How do refunds work?",
        response_text="Refunds take 5 days.",
        submitter_id="1001",
        submitter_name="Sam",
        approval_status=status,
        approver_name="Avery" if status != PENDING_STATUS else None,
        approval_remark=remark,
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        approved_or_rejected_at=datetime(2024, 1, 2, tzinfo=timezone.utc) if status != PENDING_STATUS else None,
    )


def field_values(embed):
    return {field.name: field.value for field in embed.fields}


class TestAdminCards:
    """Test the admin channel card variants."""

    def test_new_request(self):
        embed = build_new_request_card(suggestion(), colors=COLORS)

        values = field_values(embed)
        assert embed.color.value == COLORS["pending"]
        assert values["🏷️ Label"] == "Refunds"
        assert "<@1001>" in embed.description
        assert VALIDATION_MESSAGE not in values.values()
        assert embed.footer.text == "Request ID: c1"

    def test_validation_variant(self):
        embed = build_new_request_card(suggestion(), show_validation_error=True, colors=COLORS)

        assert VALIDATION_MESSAGE in field_values(embed).values()
        assert embed.color.value == COLORS["warning"]

    def test_decided_card_shows_decision(self):
        embed = build_admin_card(suggestion(status=REJECTED_STATUS, remark="Duplicate"))

        values = field_values(embed)
        assert embed.title == "❌ Request Rejected"
        assert values["📝 Remark"] == "Duplicate"
        assert values["Decision"].startswith("Rejected by Avery on <t:")

    def test_approved_card_has_no_remark(self):
        embed = build_admin_card(suggestion(status=APPROVED_STATUS))

        assert embed.title == "✅ Request Approved"
        assert "📝 Remark" not in field_values(embed)


class TestUserCards:
    """Test the cards sent to users."""

    def test_rejection_notification_without_remark(self):
        embed = build_user_notification_card(suggestion(status=REJECTED_STATUS), colors=COLORS)

        assert "Rejected" in embed.description
        assert field_values(embed)["📝 Remark"] == "No remark given."
        assert embed.color.value == COLORS["rejected"]

    def test_approval_notification(self):
        embed = build_user_notification_card(suggestion(status=APPROVED_STATUS), colors=COLORS)

        assert "Approved" in embed.description
        assert embed.color.value == COLORS["approved"]

    def test_requests_card_lists_status(self):
        embed, = build_user_requests_cards([suggestion(status=REJECTED_STATUS, remark="Too vague")], colors=COLORS)

        value = embed.fields[0].value
        assert "Rejected" in value
        assert "Too vague" in value
        assert embed.footer.text is None


def long_response(index):
    return UserResponseEntity(
        response_id=f"u{index}",
        user_id="1001",
        label=f"Response {index}",
        question_text="q" * 500,
        response_text="r" * 500,
    )


class TestListCards:
    """Test paging of the response and request listings."""

    def test_company_list_pages_by_field_count(self):
        responses = [suggestion(status=APPROVED_STATUS) for _ in range(30)]

        first, second = build_company_responses_cards(responses, colors=COLORS)

        assert len(first.fields) == 25
        assert len(second.fields) == 5
        assert "30" in first.description
        assert first.footer.text == "Page 1 of 2"
        assert second.footer.text == "Page 2 of 2"

    def test_long_responses_stay_under_embed_limit(self):
        responses = [long_response(index) for index in range(25)]

        pages = build_user_responses_cards(responses, colors=COLORS)

        assert len(pages) > 1
        assert all(len(embed) <= EMBED_TOTAL_MAX for embed in pages)
        assert sum(len(embed.fields) for embed in pages) == 25
        assert pages[0].fields[0].name == "Response 0"
        assert pages[-1].fields[-1].name == "Response 24"

    def test_long_request_labels_stay_under_embed_limit(self):
        requests = []
        for index in range(25):
            request = suggestion(status=REJECTED_STATUS, remark="x" * 200)
            request.label = f"{index}" + "l" * 199
            requests.append(request)

        pages = build_user_requests_cards(requests, colors=COLORS)

        assert all(len(embed) <= EMBED_TOTAL_MAX for embed in pages)
        assert sum(len(embed.fields) for embed in pages) == 25

    def test_empty_company_list(self):
        embed, = build_company_responses_cards([], colors=COLORS)
        assert embed.fields == []
        assert "No company responses" in embed.description

    def test_empty_personal_list(self):
        embed, = build_user_responses_cards([], colors=COLORS)
        assert "no saved responses" in embed.description
