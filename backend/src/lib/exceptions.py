"""Custom exception classes for the Feedback Hub."""

from typing import Optional, Dict, Any


class FeedbackError(Exception):
    """Base exception for feedback errors."""

    ERROR_CODE = "FEEDBACK_001"
    HTTP_STATUS = 500

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        """Initialize exception with message, code, and optional details.

        Args:
            message: Error message
            error_code: Optional error code override
            details: Optional dictionary with additional error details
        """
        super().__init__(message)
        self.error_code = error_code or self.ERROR_CODE
        self.details = details or {}


class MissingFieldsError(FeedbackError):
    """Raised when a submission lacks required fields."""

    ERROR_CODE = "FEEDBACK_VALIDATION_001"
    HTTP_STATUS = 400

    def __init__(self, fields: list, error_code: Optional[str] = None):
        super().__init__("Missing required fields", error_code)
        self.fields = list(fields)
        self.details["fields"] = self.fields


class InvalidStatusError(FeedbackError):
    """Raised when a status is not a member of the feedback_status enum."""

    ERROR_CODE = "FEEDBACK_STATUS_001"
    HTTP_STATUS = 400

    def __init__(self, status: str, error_code: Optional[str] = None):
        super().__init__(f"Invalid status value: {status}", error_code)
        self.status = status
        self.details["status"] = status


class FeedbackNotFoundError(FeedbackError):
    """Raised when no feedback record has the requested id."""

    ERROR_CODE = "FEEDBACK_NOT_FOUND_001"
    HTTP_STATUS = 404

    def __init__(self, feedback_id: str, error_code: Optional[str] = None):
        super().__init__(f"Feedback not found: {feedback_id}", error_code)
        self.feedback_id = feedback_id
        self.details["id"] = feedback_id


class CRMError(FeedbackError):
    """Raised when the CRM rejects a request."""

    ERROR_CODE = "CRM_001"


class ConfigurationError(FeedbackError):
    """Raised when configuration is invalid or missing required values."""

    ERROR_CODE = "CONFIG_001"
