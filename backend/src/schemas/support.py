"""Pydantic schemas for the support/feedback API.

Defines request and response schemas for the /support endpoints.
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class FileAttachment(BaseModel):
    """Base64-encoded attachment sent with a submission.

    ``name`` and ``data`` are optional here so that a malformed entry is
    reported per file instead of rejecting the whole submission.
    """

    model_config = ConfigDict(extra="allow")

    name: Optional[str] = Field(default=None, examples=["screenshot.png"])
    data: Optional[str] = Field(
        default=None,
        description="Base64 content, optionally prefixed with data:<type>;base64,",
    )
    type: Optional[str] = Field(default=None, examples=["image/png"])


class SupportSubmission(BaseModel):
    """Request schema for POST /support.

    Unknown fields (console logs, system info, ...) are accepted and stored
    verbatim in the record's ``data`` document.
    """

    model_config = ConfigDict(
        extra="allow",
        json_schema_extra={
            "examples": [
                {
                    "app_name": "demo",
                    "type": "bug",
                    "title": "Save button does nothing",
                    "description": "Clicking save on the profile page has no effect.",
                    "location": "https://demo.example.com/profile",
                    "user": {"name": "Ada", "email": "ada@example.com"},
                    "files": [],
                }
            ]
        },
    )

    app_name: Optional[str] = Field(default=None, description="Name of the reporting application")
    type: Optional[str] = Field(default=None, description="bug, suggestion, support, ...")
    title: Optional[str] = None
    description: Optional[str] = None
    location: Optional[Any] = None
    user: Optional[Any] = Field(default=None, description="Reporter details, stored as sent")
    files: Optional[List[FileAttachment]] = None
    status: Optional[str] = None
    ticketNumber: Optional[str] = Field(default=None, description="Externally generated ticket code")
    client_timestamp: Optional[int] = Field(default=None, description="Client send time, epoch ms")


class FeedbackPatch(BaseModel):
    """Request schema for PATCH /support/{id}; omitted fields are left untouched."""

    type: Optional[str] = None
    title: Optional[str] = None
    status: Optional[str] = None
    data: Optional[Any] = None
    notes: Optional[List[Any]] = None


class FeedbackRecord(BaseModel):
    id: str
    app: str
    type: str
    title: Optional[str] = None
    status: str
    data: Any = None
    notes: Any = None
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None


class SubmitResponse(BaseModel):
    success: bool = True
    id: str
    title: str
    created_at: Optional[datetime] = None
    message: str
    processing_time_ms: int
    total_processing_time_ms: int


class Pagination(BaseModel):
    limit: int
    offset: int
    hasMore: bool


class ListResponse(BaseModel):
    success: bool = True
    data: List[FeedbackRecord]
    count: int
    pagination: Pagination


class RecordResponse(BaseModel):
    success: bool = True
    data: FeedbackRecord


class UpdateResponse(BaseModel):
    success: bool = True
    id: str
    title: Optional[str] = None
    status: str
    modified_at: Optional[datetime] = None
    message: str


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class FileUploadResult(BaseModel):
    name: str
    success: bool
    id: Optional[str] = None
    error: Optional[str] = None


class BugReportResponse(BaseModel):
    success: bool = True
    id: str
    fileUploads: List[FileUploadResult] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Response schema for error cases (400, 404, 500)."""

    error: str = Field(..., examples=["Feedback not found"])
    details: Optional[Any] = Field(
        default=None,
        description="Underlying error message or validation details",
    )
    validValues: Optional[str] = None
