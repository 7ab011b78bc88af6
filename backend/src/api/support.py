"""Support ticket API endpoints.

CRUD over the ``feedback`` table plus the bug-report intake that forwards
reports to the Monday.com board.

Storage errors are logged by FeedbackService, so handlers only translate
``SQLAlchemyError`` into a 500 envelope.
"""

import json
import logging
from typing import Annotated, Any, List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.config import get_default_page_limit
from src.lib.exceptions import (
    ConfigurationError,
    CRMError,
    FeedbackNotFoundError,
    InvalidStatusError,
    MissingFieldsError,
)
from src.lib.feedback.blob_store import get_blob_store
from src.lib.feedback.monday_client import get_monday_client
from src.lib.feedback.query_builder import FeedbackFilters, FeedbackUpdate
from src.lib.feedback.service import FeedbackService
from src.lib.i18n import Translator, get_translator
from src.models.sql.database import get_db
from src.schemas.support import (
    BugReportResponse,
    ErrorResponse,
    FeedbackPatch,
    ListResponse,
    MessageResponse,
    RecordResponse,
    SubmitResponse,
    SupportSubmission,
    UpdateResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/support", tags=["support"])

REQUIRED_BUG_FIELDS = ("title", "description", "location")

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid input"},
    500: {"model": ErrorResponse, "description": "Server error"},
}
_NOT_FOUND_RESPONSE = {404: {"model": ErrorResponse, "description": "Feedback not found"}}


def error_response(status_code: int, error: str, details: Any = None, **extra: Any) -> JSONResponse:
    """Build the ``{"error", "details"}`` envelope shared by every failure."""
    return JSONResponse(status_code=status_code, content={"error": error, "details": details, **extra})


@router.post("/init", response_model=MessageResponse, responses=_ERROR_RESPONSES)
def init_feedback_table(
    db: Annotated[Session, Depends(get_db)],
    t: Annotated[Translator, Depends(get_translator)],
):
    """Create or upgrade the feedback table, its enum and its indexes."""
    try:
        FeedbackService(db).initialize_schema()
        return MessageResponse(message=t("support", "init_success"))
    except SQLAlchemyError as e:
        return error_response(500, t("errors", "init_failed"), str(e))
    except Exception as e:
        logger.error('Failed to initialize feedback table: %s', str(e), exc_info=True)
        return error_response(500, t("errors", "init_failed"), str(e))


@router.post("", response_model=SubmitResponse, responses=_ERROR_RESPONSES)
def submit_feedback(
    submission: SupportSubmission,
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    t: Annotated[Translator, Depends(get_translator)],
):
    """Store a feedback submission and its attachments.

    Attachments are uploaded to blob storage before the record is written;
    per-file failures are kept in the record instead of failing the request.
    """
    try:
        service = FeedbackService(db, blob_store=get_blob_store())
        created = service.create_feedback(
            submission.model_dump(exclude_unset=True),
            user_agent=request.headers.get("User-Agent"),
        )
        return SubmitResponse(
            id=created.id,
            title=created.title,
            created_at=created.created_at,
            message=t("support", "created"),
            processing_time_ms=created.processing_time_ms,
            total_processing_time_ms=created.total_processing_time_ms,
        )
    except MissingFieldsError as e:
        logger.warning('Rejected feedback submission, missing fields: %s', e.fields)
        return error_response(400, t("errors", "missing_fields"), e.fields)
    except InvalidStatusError as e:
        return error_response(
            400,
            t("errors", "invalid_status"),
            str(e),
            validValues=t("errors", "invalid_status_hint"),
        )
    except SQLAlchemyError as e:
        return error_response(500, t("errors", "submit_failed"), str(e))
    except Exception as e:
        logger.error('Failed to submit feedback: %s', str(e), exc_info=True)
        return error_response(500, t("errors", "submit_failed"), str(e))


@router.get("", response_model=ListResponse, responses=_ERROR_RESPONSES)
def list_feedback(
    db: Annotated[Session, Depends(get_db)],
    t: Annotated[Translator, Depends(get_translator)],
    app: Optional[str] = None,
    type: Optional[str] = None,
    status: Optional[str] = None,
    title: Optional[str] = Query(None, description="Case-insensitive substring match"),
    limit: Optional[int] = Query(None, ge=1),
    offset: int = Query(0, ge=0),
):
    """List feedback, newest first, with optional exact-match filters."""
    filters = FeedbackFilters(
        app=app,
        type=type,
        status=status,
        title=title,
        limit=limit or get_default_page_limit(),
        offset=offset,
    )
    try:
        page = FeedbackService(db).list_feedback(filters)
    except SQLAlchemyError as e:
        return error_response(500, t("errors", "retrieve_failed"), str(e))
    except Exception as e:
        logger.error('Failed to list feedback: %s', str(e), exc_info=True)
        return error_response(500, t("errors", "retrieve_failed"), str(e))

    return {
        "success": True,
        "data": page.rows,
        "count": page.count,
        "pagination": {"limit": page.limit, "offset": page.offset, "hasMore": page.has_more},
    }


@router.get(
    "/{feedback_id}",
    response_model=RecordResponse,
    responses={**_ERROR_RESPONSES, **_NOT_FOUND_RESPONSE},
)
def get_feedback(
    feedback_id: str,
    db: Annotated[Session, Depends(get_db)],
    t: Annotated[Translator, Depends(get_translator)],
):
    try:
        return {"success": True, "data": FeedbackService(db).get_feedback(feedback_id)}
    except FeedbackNotFoundError:
        return error_response(404, t("errors", "not_found"))
    except SQLAlchemyError as e:
        return error_response(500, t("errors", "retrieve_failed"), str(e))
    except Exception as e:
        logger.error('Failed to retrieve feedback %s: %s', feedback_id, str(e), exc_info=True)
        return error_response(500, t("errors", "retrieve_failed"), str(e))


@router.patch(
    "/{feedback_id}",
    response_model=UpdateResponse,
    responses={**_ERROR_RESPONSES, **_NOT_FOUND_RESPONSE},
)
def update_feedback(
    feedback_id: str,
    patch: FeedbackPatch,
    db: Annotated[Session, Depends(get_db)],
    t: Annotated[Translator, Depends(get_translator)],
):
    """Partially update a record; only the supplied fields change."""
    update = FeedbackUpdate(**patch.model_dump())
    try:
        row = FeedbackService(db).update_feedback(feedback_id, update)
    except FeedbackNotFoundError:
        return error_response(404, t("errors", "not_found"))
    except InvalidStatusError as e:
        logger.warning('Rejected status %r for feedback %s', e.status, feedback_id)
        return error_response(
            400,
            t("errors", "invalid_status"),
            str(e),
            validValues=t("errors", "invalid_status_hint"),
        )
    except SQLAlchemyError as e:
        return error_response(500, t("errors", "update_failed"), str(e))
    except Exception as e:
        logger.error('Failed to update feedback %s: %s', feedback_id, str(e), exc_info=True)
        return error_response(500, t("errors", "update_failed"), str(e))

    return UpdateResponse(
        id=row["id"],
        title=row.get("title"),
        status=row["status"],
        modified_at=row.get("modified_at"),
        message=t("support", "updated"),
    )


@router.delete(
    "/{feedback_id}",
    response_model=MessageResponse,
    responses={**_ERROR_RESPONSES, **_NOT_FOUND_RESPONSE},
)
def delete_feedback(
    feedback_id: str,
    db: Annotated[Session, Depends(get_db)],
    t: Annotated[Translator, Depends(get_translator)],
):
    try:
        FeedbackService(db).delete_feedback(feedback_id)
    except FeedbackNotFoundError:
        return error_response(404, t("errors", "not_found"))
    except SQLAlchemyError as e:
        return error_response(500, t("errors", "delete_failed"), str(e))
    except Exception as e:
        logger.error('Failed to delete feedback %s: %s', feedback_id, str(e), exc_info=True)
        return error_response(500, t("errors", "delete_failed"), str(e))

    return MessageResponse(message=t("support", "deleted"))


def _parse_user(raw: Optional[str]) -> Optional[dict]:
    """Decode the reporter JSON; anything unreadable is dropped."""
    if not raw:
        return None
    try:
        user = json.loads(raw)
    except ValueError as e:
        logger.warning('Ignoring unparsable user field in bug report: %s', str(e))
        return None
    if not isinstance(user, dict):
        logger.warning('Ignoring non-object user field in bug report')
        return None
    return user


@router.post("/report-bug", response_model=BugReportResponse, responses=_ERROR_RESPONSES)
def report_bug(
    t: Annotated[Translator, Depends(get_translator)],
    app_name: Optional[str] = Form(None),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    user: Optional[str] = Form(None, description="JSON object with name and email"),
    files: Optional[List[UploadFile]] = File(None),
):
    """Create a bug item on the Monday.com board and attach any uploaded files.

    File attachment results are reported individually; a failed attachment
    does not fail the request once the item exists.
    """
    try:
        client = get_monday_client()
    except ConfigurationError as e:
        logger.error('Bug report rejected: %s', str(e))
        return error_response(500, t("errors", "api_key_missing"))

    with client:
        submitted = {"title": title, "description": description, "location": location}
        missing = [name for name in REQUIRED_BUG_FIELDS if not submitted[name]]
        if missing:
            return error_response(400, t("errors", "missing_fields"), missing)

        try:
            item_id = client.create_bug_item(
                title=title,
                description=description,
                location=location,
                app_name=app_name,
                user=_parse_user(user),
            )
        except CRMError as e:
            return error_response(500, t("errors", "crm_failed"), e.details.get("errors"))
        except Exception as e:
            logger.error('Failed to submit bug report: %s', str(e), exc_info=True)
            return error_response(500, t("errors", "bug_report_failed"), str(e))

        file_uploads = []
        for upload in files or []:
            content = upload.file.read()
            file_uploads.append(
                client.add_file(item_id, upload.filename or "unknown", content, upload.content_type)
            )

    logger.info('Bug report %s created with %d attachments', item_id, len(file_uploads))
    return BugReportResponse(id=item_id, fileUploads=file_uploads)
