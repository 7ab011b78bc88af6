"""Monday.com client for bug report intake.

User-supplied text is only ever sent as GraphQL variables; the mutation
strings below are constants.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx

from src.lib.exceptions import CRMError

logger = logging.getLogger(__name__)

CREATE_ITEM_MUTATION = """
mutation ($boardId: ID!, $itemName: String!, $columnValues: JSON!) {
  create_item (board_id: $boardId, item_name: $itemName, column_values: $columnValues) {
    id
  }
}
"""

ADD_FILE_MUTATION = """
mutation ($itemId: ID!, $file: File!) {
  add_file_to_column (item_id: $itemId, column_id: "files", file: $file) {
    id
  }
}
"""

# Column ids on the bug board
COLUMN_APP_NAME = "text_mknqg0dz"
COLUMN_BUG_STATUS = "bug_status"
COLUMN_STAGE = "status_18"
COLUMN_REPORTER = "external_user_mkm2s584"
COLUMN_REPORTED_AT = "date9"
COLUMN_LOCATION = "text_mkm1cmpq"
COLUMN_DESCRIPTION = "long_text"

INITIAL_BUG_STATUS = "Awaiting Review"
INITIAL_STAGE = "Alpha"


def build_bug_column_values(
    app_name: Optional[str],
    description: str,
    location: str,
    user: Optional[Dict[str, Any]] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Column values for a new bug item, keyed by board column id."""
    now = now or datetime.now(timezone.utc)
    user = user or {}
    return {
        COLUMN_APP_NAME: app_name or "",
        COLUMN_BUG_STATUS: INITIAL_BUG_STATUS,
        COLUMN_STAGE: INITIAL_STAGE,
        COLUMN_REPORTER: {
            "text": user.get("name") or "",
            "email": user.get("email") or "",
        },
        COLUMN_REPORTED_AT: {
            "date": now.strftime("%Y-%m-%d"),
            "time": now.strftime("%H:%M:%S"),
        },
        COLUMN_LOCATION: location,
        COLUMN_DESCRIPTION: description,
    }


class MondayClient:
    """Thin GraphQL client for the Monday.com v2 API."""

    def __init__(
        self,
        api_key: str,
        board_id: Optional[str],
        api_url: str = "https://api.monday.com/v2",
        file_url: str = "https://api.monday.com/v2/file",
        timeout: float = 30.0,
        http_client: Optional[httpx.Client] = None,
    ):
        self.board_id = board_id
        self.api_url = api_url
        self.file_url = file_url
        self._client = http_client or httpx.Client(
            timeout=timeout,
            headers={"Authorization": api_key},
        )

    def __enter__(self) -> "MondayClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def create_bug_item(
        self,
        title: str,
        description: str,
        location: str,
        app_name: Optional[str] = None,
        user: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Create a bug item on the configured board.

        Returns:
            The Monday.com item id

        Raises:
            CRMError: If the API answers with GraphQL errors
            httpx.HTTPError: On transport failures or non-2xx responses
        """
        column_values = build_bug_column_values(app_name, description, location, user)
        payload = {
            "query": CREATE_ITEM_MUTATION,
            "variables": {
                "boardId": str(self.board_id),
                "itemName": title,
                "columnValues": json.dumps(column_values),
            },
        }

        response = self._client.post(self.api_url, json=payload)
        response.raise_for_status()
        result = response.json()

        if result.get("errors"):
            logger.error('Monday.com rejected create_item: %s', json.dumps(result, indent=2))
            raise CRMError(
                "Error creating bug report in Monday.com",
                details={"errors": result["errors"]},
            )

        item_id = str(result["data"]["create_item"]["id"])
        logger.info('Created Monday.com item %s on board %s', item_id, self.board_id)
        return item_id

    def add_file(
        self,
        item_id: str,
        filename: str,
        content: bytes,
        content_type: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Attach one file to the item's ``files`` column.

        Never raises; failures are described in the returned dict.
        """
        data = {
            "query": ADD_FILE_MUTATION,
            "variables": json.dumps({"itemId": str(item_id), "file": None}),
            "map": json.dumps({"file": ["variables.file"]}),
        }
        files = {"file": (filename, content, content_type or "application/octet-stream")}

        try:
            response = self._client.post(self.file_url, data=data, files=files)
        except httpx.HTTPError as e:
            logger.error('Failed to upload file %s: %s', filename, e)
            return {"name": filename, "success": False, "error": str(e)}

        if response.is_error:
            logger.error('Failed to upload file %s: %s', filename, response.reason_phrase)
            return {"name": filename, "success": False, "error": response.reason_phrase}

        result = response.json()
        if result.get("errors"):
            logger.error('Error uploading file %s: %s', filename, result["errors"])
            return {"name": filename, "success": False, "error": result["errors"][0].get("message")}

        return {
            "name": filename,
            "success": True,
            "id": str(result["data"]["add_file_to_column"]["id"]),
        }


def get_monday_client() -> MondayClient:
    """Build a client from configuration.

    Raises:
        ConfigurationError: If MONDAY_API_KEY is not set
    """
    from src.config import (
        get_monday_api_key,
        get_monday_api_url,
        get_monday_bug_board,
        get_monday_file_url,
        get_monday_timeout,
    )
    from src.lib.exceptions import ConfigurationError

    api_key = get_monday_api_key()
    if not api_key:
        raise ConfigurationError("API key is missing")

    return MondayClient(
        api_key=api_key,
        board_id=get_monday_bug_board(),
        api_url=get_monday_api_url(),
        file_url=get_monday_file_url(),
        timeout=get_monday_timeout(),
    )
