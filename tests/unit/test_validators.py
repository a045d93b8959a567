"""
Unit tests for client-side field validation.

Every validator runs before any network call and annotates the error
with the field the UI should highlight.
"""

import pytest

from src.domain import messages
from src.domain.exceptions import ValidationError
from src.domain.validators import (
    FlowLimits,
    validate_code,
    validate_email,
    validate_full_name,
    validate_new_password,
    validate_username,
)

LIMITS = FlowLimits()


class TestValidateUsername:
    """Tests for validate_username."""

    def test_strips_and_returns_value(self) -> None:
        """Surrounding whitespace is trimmed."""
        assert validate_username("  alice_01 ", LIMITS) == "alice_01"

    def test_accepts_unicode_letters_and_hyphen(self) -> None:
        """Letters of any script, digits, underscore and hyphen are allowed."""
        assert validate_username("Jürgen-7", LIMITS) == "Jürgen-7"

    @pytest.mark.parametrize("value", ["", "   ", None])
    def test_empty_is_required_error(self, value: str | None) -> None:
        """Blank username is rejected as missing."""
        with pytest.raises(ValidationError) as exc_info:
            validate_username(value, LIMITS)
        assert exc_info.value.message == messages.ERROR_USERNAME_REQUIRED
        assert exc_info.value.field == "username"

    def test_too_short(self) -> None:
        """Fewer than 3 characters is rejected."""
        with pytest.raises(ValidationError, match="at least 3"):
            validate_username("ab", LIMITS)

    def test_length_bounds_are_inclusive(self) -> None:
        """Exactly 3 and exactly 50 characters are accepted."""
        assert validate_username("abc", LIMITS) == "abc"
        assert validate_username("a" * 50, LIMITS) == "a" * 50

    def test_too_long(self) -> None:
        """More than 50 characters is rejected."""
        with pytest.raises(ValidationError, match="at most 50"):
            validate_username("a" * 51, LIMITS)

    @pytest.mark.parametrize("value", ["bob smith", "bob@home", "bob.smith", "bob!"])
    def test_rejects_other_characters(self, value: str) -> None:
        """Spaces, dots and symbols are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            validate_username(value, LIMITS)
        assert exc_info.value.message == messages.ERROR_USERNAME_CHARSET

    def test_custom_limits(self) -> None:
        """Bounds come from FlowLimits."""
        with pytest.raises(ValidationError, match="at least 5"):
            validate_username("abcd", FlowLimits(username_min_length=5))


class TestValidateEmail:
    """Tests for validate_email."""

    def test_normalizes_case_and_whitespace(self) -> None:
        """Email is trimmed and lowercased."""
        assert validate_email("  User@Example.COM ") == "user@example.com"

    @pytest.mark.parametrize("value", ["user", "user@", "user@host", "a b@c.d", "@x.io"])
    def test_rejects_malformed(self, value: str) -> None:
        """Structurally invalid addresses are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            validate_email(value)
        assert exc_info.value.message == messages.ERROR_EMAIL_FORMAT
        assert exc_info.value.field == "email"

    def test_empty_is_required_error(self) -> None:
        """Blank email is rejected as missing."""
        with pytest.raises(ValidationError) as exc_info:
            validate_email("")
        assert exc_info.value.message == messages.ERROR_EMAIL_REQUIRED


class TestValidateCode:
    """Tests for validate_code."""

    def test_accepts_six_digits(self) -> None:
        """A 6-digit code passes, trimmed."""
        assert validate_code(" 012345 ", LIMITS) == "012345"

    @pytest.mark.parametrize("value", ["12345", "1234567", "12a456", "", "１２３４５６"])
    def test_rejects_wrong_shape(self, value: str) -> None:
        """Wrong length, letters and non-ASCII digits are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            validate_code(value, LIMITS)
        assert exc_info.value.field == "code"


class TestValidateNewPassword:
    """Tests for validate_new_password."""

    def test_returns_password_when_valid(self) -> None:
        """Matching password within bounds is returned unchanged."""
        assert validate_new_password("secret1", "secret1", LIMITS) == "secret1"

    def test_too_short(self) -> None:
        """Fewer than 6 characters is rejected on the password field."""
        with pytest.raises(ValidationError) as exc_info:
            validate_new_password("abc", "abc", LIMITS)
        assert exc_info.value.field == "password"

    def test_too_long(self) -> None:
        """More than 100 characters is rejected."""
        with pytest.raises(ValidationError, match="at most 100"):
            validate_new_password("x" * 101, "x" * 101, LIMITS)

    def test_mismatch_is_reported_on_confirmation(self) -> None:
        """A mismatch is attributed to the confirmation field."""
        with pytest.raises(ValidationError) as exc_info:
            validate_new_password("secret1", "secret2", LIMITS)
        assert exc_info.value.message == messages.ERROR_PASSWORD_MISMATCH
        assert exc_info.value.field == "confirmation"

    def test_length_checked_before_mismatch(self) -> None:
        """A short password is reported even if the entries differ."""
        with pytest.raises(ValidationError) as exc_info:
            validate_new_password("abc", "xyz", LIMITS)
        assert exc_info.value.field == "password"


class TestValidateFullName:
    """Tests for validate_full_name."""

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_blank_means_skipped(self, value: str | None) -> None:
        """Blank input returns None."""
        assert validate_full_name(value, LIMITS) is None

    def test_trims(self) -> None:
        """Value is trimmed."""
        assert validate_full_name("  Ada Lovelace ", LIMITS) == "Ada Lovelace"

    def test_too_long(self) -> None:
        """More than 100 characters is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            validate_full_name("x" * 101, LIMITS)
        assert exc_info.value.field == "full_name"
