"""FeedbackService: store, query and mutate feedback records.

This module is the only place that talks to the ``feedback`` table. SQL is
produced by ``query_builder``; this layer executes it, applies the status
policy and turns empty results into ``FeedbackNotFoundError``.
"""

import copy
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.config import get_insert_status_policy, get_update_status_policy
from src.lib.exceptions import FeedbackNotFoundError, MissingFieldsError
from src.lib.feedback.blob_store import BlobStore, unavailable_results
from src.lib.feedback.query_builder import (
    DEFAULT_TITLE,
    BuiltQuery,
    FeedbackFilters,
    FeedbackInsert,
    FeedbackUpdate,
    build_columns_query,
    build_delete_query,
    build_exists_query,
    build_get_query,
    build_insert_query,
    build_list_query,
    build_status_check_query,
    build_update_query,
    schema_statements,
)
from src.lib.feedback.status import (
    DEFAULT_STATUS,
    InvalidStatusPolicy,
    apply_status_policy,
    parse_policy,
)
from src.lib.feedback.tickets import generate_ticket_number

logger = logging.getLogger(__name__)

DEFAULT_TYPE = "bug"
REQUIRED_SUBMISSION_FIELDS = ("app_name", "title", "description")


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class CreatedFeedback:
    """Outcome of a successful submission."""

    id: str
    title: str
    created_at: Any
    processing_time_ms: int
    total_processing_time_ms: int
    files: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class FeedbackPage:
    """One page of a listing.

    ``has_more`` is true when the page is full; a last page holding exactly
    ``limit`` rows therefore reports more results than exist.
    """

    rows: List[Dict[str, Any]]
    limit: int
    offset: int

    @property
    def count(self) -> int:
        return len(self.rows)

    @property
    def has_more(self) -> bool:
        return self.count == self.limit


class FeedbackService:
    """Executes feedback statements against a SQLAlchemy session.

    Each statement runs independently; there is no transaction spanning the
    status check and the write that follows it.
    """

    def __init__(
        self,
        db: Session,
        blob_store: Optional[BlobStore] = None,
        insert_status_policy: Optional[InvalidStatusPolicy] = None,
        update_status_policy: Optional[InvalidStatusPolicy] = None,
    ):
        """Initialize FeedbackService.

        Args:
            db: SQLAlchemy database session
            blob_store: Attachment storage; None when storage is not configured
            insert_status_policy: Override for FEEDBACK_INSERT_STATUS_POLICY
            update_status_policy: Override for FEEDBACK_UPDATE_STATUS_POLICY
        """
        self.db = db
        self.blob_store = blob_store
        self.insert_status_policy = insert_status_policy or parse_policy(
            get_insert_status_policy(), InvalidStatusPolicy.COERCE
        )
        self.update_status_policy = update_status_policy or parse_policy(
            get_update_status_policy(), InvalidStatusPolicy.REJECT
        )

    def _execute(self, built: BuiltQuery, action: str):
        try:
            return self.db.execute(built.statement(), built.bind_params())
        except SQLAlchemyError as e:
            logger.error('Database error while %s: %s', action, str(e), exc_info=True)
            raise

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            logger.error('Database commit failed while %s: %s', action, str(e), exc_info=True)
            raise

    def is_valid_status(self, status: str) -> bool:
        """Check ``status`` against the live ``feedback_status`` enum."""
        result = self._execute(build_status_check_query(status), "validating status")
        return bool(result.scalar())

    def _exists(self, feedback_id: str) -> bool:
        result = self._execute(build_exists_query(feedback_id), f"checking feedback {feedback_id}")
        return result.first() is not None

    def _ensure_exists(self, feedback_id: str) -> None:
        if not self._exists(feedback_id):
            raise FeedbackNotFoundError(feedback_id)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create_feedback(
        self,
        submission: Dict[str, Any],
        user_agent: Optional[str] = None,
    ) -> CreatedFeedback:
        """Store a submission, uploading its attachments first.

        Args:
            submission: Request body; unknown keys are kept in ``data``
            user_agent: Caller's User-Agent header, recorded in ``data.metadata``

        Returns:
            CreatedFeedback with id, title, created_at and timing

        Raises:
            MissingFieldsError: If app_name, title or description is empty
            SQLAlchemyError: On storage failure (already logged)
        """
        processing_start = _now_ms()
        client_timestamp = submission.get("client_timestamp") or processing_start

        missing = [name for name in REQUIRED_SUBMISSION_FIELDS if not submission.get(name)]
        if missing:
            raise MissingFieldsError(missing)

        app_name = submission["app_name"]
        feedback_type = submission.get("type") or DEFAULT_TYPE
        title = submission.get("title") or DEFAULT_TITLE

        status = submission.get("status") or DEFAULT_STATUS
        if submission.get("status"):
            status = apply_status_policy(
                status, self.is_valid_status(status), self.insert_status_policy
            )

        ticket_id = submission.get("ticketNumber") or generate_ticket_number(feedback_type)

        files = submission.get("files") or []
        if not files:
            uploads = []
        elif self.blob_store is None:
            logger.warning('Received %d attachments but blob storage is not configured', len(files))
            uploads = unavailable_results(files)
        else:
            uploads = self.blob_store.upload_attachments(app_name, files)

        data = copy.deepcopy(submission)
        data["files"] = uploads

        processing_end = _now_ms()
        processing_time = processing_end - processing_start
        total_processing_time = processing_end - int(client_timestamp)

        data["timing"] = {
            "client_timestamp": client_timestamp,
            "server_start_timestamp": processing_start,
            "server_end_timestamp": processing_end,
            "server_processing_time_ms": processing_time,
            "total_processing_time_ms": total_processing_time,
        }
        data["metadata"] = {
            **(data.get("metadata") or {}),
            "userAgent": user_agent,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

        logger.debug('Feedback data keys for %s: %s', ticket_id, sorted(data.keys()))

        record = FeedbackInsert(
            id=ticket_id,
            app=app_name,
            type=feedback_type,
            title=title,
            status=status,
            data=data,
        )
        row = self._execute(build_insert_query(record), "inserting feedback").mappings().one()
        self._commit("inserting feedback")

        logger.info('Created feedback %s for app %s', row["id"], app_name)
        return CreatedFeedback(
            id=row["id"],
            title=title,
            created_at=row["created_at"],
            processing_time_ms=processing_time,
            total_processing_time_ms=total_processing_time,
            files=uploads,
        )

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def list_feedback(self, filters: FeedbackFilters) -> FeedbackPage:
        result = self._execute(build_list_query(filters), "listing feedback")
        rows = [dict(row) for row in result.mappings().all()]
        return FeedbackPage(rows=rows, limit=filters.limit, offset=filters.offset)

    def get_feedback(self, feedback_id: str) -> Dict[str, Any]:
        """Fetch one record.

        Raises:
            FeedbackNotFoundError: If no record has ``feedback_id``
        """
        row = self._execute(build_get_query(feedback_id), f"fetching feedback {feedback_id}").mappings().first()
        if row is None:
            raise FeedbackNotFoundError(feedback_id)
        return dict(row)

    # ------------------------------------------------------------------
    # Update / delete
    # ------------------------------------------------------------------

    def update_feedback(self, feedback_id: str, update: FeedbackUpdate) -> Dict[str, Any]:
        """Apply a partial update.

        The existence check and the status check both run before any UPDATE
        is issued, so a rejected request leaves the record untouched.

        Raises:
            FeedbackNotFoundError: If no record has ``feedback_id``
            InvalidStatusError: If the status is invalid under the update policy
        """
        self._ensure_exists(feedback_id)

        if update.status:
            update.status = apply_status_policy(
                update.status, self.is_valid_status(update.status), self.update_status_policy
            )

        action = f"updating feedback {feedback_id}"
        row = self._execute(build_update_query(feedback_id, update), action).mappings().first()
        if row is None:
            # Deleted after the existence check
            raise FeedbackNotFoundError(feedback_id)
        self._commit(action)

        logger.info('Updated feedback %s', feedback_id)
        return dict(row)

    def delete_feedback(self, feedback_id: str) -> None:
        """Delete one record.

        Raises:
            FeedbackNotFoundError: If no record has ``feedback_id``
        """
        self._ensure_exists(feedback_id)

        action = f"deleting feedback {feedback_id}"
        result = self._execute(build_delete_query(feedback_id), action)
        if result.rowcount == 0:
            raise FeedbackNotFoundError(feedback_id)
        self._commit(action)
        logger.info('Deleted feedback %s', feedback_id)

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    def initialize_schema(self) -> List[Dict[str, Any]]:
        """Create or upgrade the feedback schema; safe to run repeatedly.

        Returns:
            The resulting ``feedback`` columns (name and data type)
        """
        for statement in schema_statements():
            self._execute(statement, "initializing feedback schema")
        self._commit("initializing feedback schema")

        columns = [
            dict(row)
            for row in self._execute(build_columns_query(), "reading feedback columns").mappings().all()
        ]
        logger.info('Feedback schema ready: %s', [c["column_name"] for c in columns])
        return columns
