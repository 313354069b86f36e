"""Tests for permission levels and access helpers."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from driveshare.access.exceptions import (
    DriveShareError,
    InvalidEmailError,
    InvalidInputError,
    NotOwnerError,
)
from driveshare.access.permissions import Permission, parse_grantable, require_owner
from driveshare.access.types import BulkResult
from driveshare.access.utils import as_utc, new_token, normalize_email, validate_name

# ---------------------------------------------------------------------------
# Permission
# ---------------------------------------------------------------------------


class TestPermission:
    def test_ordering(self) -> None:
        assert Permission.OWNER.satisfies(Permission.EDIT)
        assert Permission.EDIT.satisfies("view")
        assert not Permission.VIEW.satisfies(Permission.EDIT)
        assert not Permission.EDIT.satisfies("owner")

    def test_parse_grantable(self) -> None:
        assert parse_grantable("edit") is Permission.EDIT
        with pytest.raises(InvalidInputError, match="Invalid permission"):
            parse_grantable("owner")

    def test_require_owner(self) -> None:
        require_owner(1, 1, "share this item")
        with pytest.raises(NotOwnerError, match="Only the owner can share this item"):
            require_owner(2, 1, "share this item")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestNormalizeEmail:
    def test_lowercases_and_strips(self) -> None:
        assert normalize_email("  Alice@X.COM ") == "alice@x.com"

    @pytest.mark.parametrize(
        "bad",
        [
            "",
            "alice",
            "alice@",
            "@x.com",
            "a b@x.com",
            "alice@x",
            "alice@.x.com",
            "alice@x..com",
            "a..b@x.com",
            "alice@-x-.com",
            ".alice@x.com",
        ],
    )
    def test_rejects_malformed(self, bad: str) -> None:
        with pytest.raises(InvalidEmailError):
            normalize_email(bad)

    def test_keeps_plus_tags_and_dots(self) -> None:
        assert normalize_email("Bob.Smith+drive@Example.COM") == "bob.smith+drive@example.com"

    def test_invalid_email_is_value_error(self) -> None:
        assert issubclass(InvalidEmailError, ValueError)
        assert issubclass(InvalidEmailError, DriveShareError)


class TestValidateName:
    def test_strips(self) -> None:
        assert validate_name("  report.pdf ") == "report.pdf"

    @pytest.mark.parametrize("bad", ["", "   ", ".", "..", "a/b", "a\\b", "x" * 256])
    def test_rejects(self, bad: str) -> None:
        with pytest.raises(InvalidInputError):
            validate_name(bad)


class TestTokensAndTime:
    def test_tokens_are_unique_and_url_safe(self) -> None:
        tokens = {new_token() for _ in range(50)}
        assert len(tokens) == 50
        assert all(t.replace("-", "").replace("_", "").isalnum() for t in tokens)

    def test_as_utc(self) -> None:
        naive = datetime(2024, 1, 1, 12, 0)
        assert as_utc(naive) == datetime(2024, 1, 1, 12, 0, tzinfo=UTC)
        assert as_utc(None) is None


class TestBulkResult:
    def test_record_failure(self) -> None:
        result = BulkResult(success_count=2)
        assert result.success
        result.record_failure(9, "Folder 'x' still contains items")
        assert not result.success
        assert result.error_count == 1
        assert result.errors[0].resource_id == 9
