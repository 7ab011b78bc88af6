"""Unit tests for custom exception classes."""

import pytest

from src.lib.exceptions import (
    ConfigurationError,
    CRMError,
    FeedbackError,
    FeedbackNotFoundError,
    InvalidStatusError,
    MissingFieldsError,
)


class TestFeedbackError:
    """Test cases for the FeedbackError base class."""

    def test_create_with_message_only(self):
        error = FeedbackError("Test error message")
        assert str(error) == "Test error message"
        assert error.error_code == "FEEDBACK_001"
        assert error.details == {}

    def test_create_with_custom_error_code(self):
        error = FeedbackError("Test error", error_code="CUSTOM_001")
        assert error.error_code == "CUSTOM_001"

    def test_create_with_details(self):
        error = FeedbackError("Test error", details={"id": "BUG-1"})
        assert error.details["id"] == "BUG-1"


class TestSubclasses:
    @pytest.mark.parametrize(
        "error,code,http_status",
        [
            (MissingFieldsError(["title"]), "FEEDBACK_VALIDATION_001", 400),
            (InvalidStatusError("bogus"), "FEEDBACK_STATUS_001", 400),
            (FeedbackNotFoundError("BUG-1"), "FEEDBACK_NOT_FOUND_001", 404),
            (CRMError("boom"), "CRM_001", 500),
            (ConfigurationError("API key is missing"), "CONFIG_001", 500),
        ],
    )
    def test_codes(self, error, code, http_status):
        assert isinstance(error, FeedbackError)
        assert error.error_code == code
        assert error.HTTP_STATUS == http_status

    def test_missing_fields_details(self):
        error = MissingFieldsError(["title", "description"])
        assert str(error) == "Missing required fields"
        assert error.details == {"fields": ["title", "description"]}

    def test_not_found_details(self):
        error = FeedbackNotFoundError("BUG-1")
        assert error.details == {"id": "BUG-1"}
        assert "BUG-1" in str(error)

    def test_invalid_status_details(self):
        error = InvalidStatusError("bogus")
        assert error.details == {"status": "bogus"}
