"""Tests for shared utilities and entity serialization."""

from datetime import datetime, timezone

import yaml

from constants import PENDING_STATUS, APPROVED_STATUS, truncate_for_embed_field, EMBED_FIELD_VALUE_MAX
from utils import (
    discord_timestamp,
    from_iso,
    load_branch_config,
    sanitize_text,
    to_iso,
    truncate_text,
)
from branches.canned_responses.models import CompanyResponseEntity


class TestSanitizeText:
    """Test user input cleanup."""

    def test_strips_and_removes_nul(self):
        assert sanitize_text("  hello\x00 world  ") == "hello world"

    def test_empty_values(self):
        assert sanitize_text(None) == ""
        assert sanitize_text("") == ""
        assert sanitize_text("   ") == ""

    def test_truncates(self):
        assert sanitize_text("abcdef", max_length=3) == "abc"


class TestTruncation:
    def test_truncate_text(self):
        assert truncate_text("short", 10) == "short"
        assert truncate_text("a" * 20, 10) == "aaaaaaa..."

    def test_embed_field(self):
        text = "x" * (EMBED_FIELD_VALUE_MAX + 10)
        assert len(truncate_for_embed_field(text)) == EMBED_FIELD_VALUE_MAX


class TestTimestamps:
    """Test timestamp storage helpers."""

    def test_naive_values_are_utc(self):
        naive = datetime(2024, 5, 1, 8, 30)
        assert to_iso(naive) == "2024-05-01T08:30:00+00:00"
        assert from_iso("2024-05-01T08:30:00").tzinfo == timezone.utc

    def test_none(self):
        assert to_iso(None) is None
        assert from_iso(None) is None
        assert from_iso("") is None

    def test_discord_timestamp(self):
        value = datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert discord_timestamp(value) == f"<t:{int(value.timestamp())}:f>"
        assert discord_timestamp(value, "R").endswith(":R>")
        assert discord_timestamp(None) == "Unknown"


class TestBranchConfig:
    def test_missing_file_returns_defaults(self, tmp_path):
        defaults = {"enabled": True}
        assert load_branch_config(tmp_path / "config.yml", defaults, "Test") is defaults

    def test_reads_yaml(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text(yaml.safe_dump({"enabled": False}))
        assert load_branch_config(path, {"enabled": True}, "Test") == {"enabled": False}


class TestCompanyResponseEntity:
    """Test entity state helpers and record conversion."""

    def test_new_entity_starts_pending(self):
        entity = CompanyResponseEntity(response_id="c1")
        assert entity.approval_status == PENDING_STATUS
        assert entity.is_decided is False
        assert entity.approved_or_rejected_at is None

    def test_record_round_trip(self):
        decided = datetime(2024, 2, 2, 10, 0, tzinfo=timezone.utc)
        entity = CompanyResponseEntity(
            response_id="c1",
            label="Refunds",
            approval_status=APPROVED_STATUS,
            approved_or_rejected_at=decided,
        )

        record = entity.to_record()
        assert record["approved_or_rejected_at"] == "2024-02-02T10:00:00+00:00"
        assert record["created_at"] is None

        restored = CompanyResponseEntity.from_row(record)
        assert restored == entity
        assert restored.is_decided is True

    def test_from_row_ignores_unknown_columns(self):
        restored = CompanyResponseEntity.from_row({"response_id": "c1", "rank": 3})
        assert restored.response_id == "c1"
