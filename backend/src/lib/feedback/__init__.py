"""Feedback intake library.

This package contains the core business logic for storing and querying
feedback tickets (bug reports, suggestions, support requests).

Components:
    - query_builder: Parameterized SQL for the feedback table
    - status: Status enum and invalid-status policy
    - tickets: Ticket number generation
    - service: FeedbackService, the storage layer used by the API
    - blob_store: Attachment uploads to S3-compatible storage
    - monday_client: Bug report forwarding to Monday.com
"""

__all__ = []
