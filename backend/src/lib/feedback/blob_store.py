"""Blob storage for feedback attachments (S3-compatible, via boto3)."""

import base64
import binascii
import logging
import re
import time
from typing import Any, Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"
INVALID_FILE_ERROR = "Invalid file format. Required: name and data"
UPLOAD_FAILED_ERROR = "Failed to upload file"
NOT_CONFIGURED_ERROR = "Blob storage is not configured"

_DATA_URL_PREFIX = re.compile(r"^data:.*;base64,")


def decode_base64_payload(data: str) -> bytes:
    """Decode a base64 string, accepting an optional ``data:...;base64,`` prefix."""
    return base64.b64decode(_DATA_URL_PREFIX.sub("", data, count=1))


class BlobStore:
    """Upload feedback attachments to a bucket and report per-file results."""

    def __init__(
        self,
        bucket: str,
        region: str = "us-east-1",
        endpoint_url: Optional[str] = None,
        public_base_url: Optional[str] = None,
        client: Any = None,
    ):
        """Initialize blob store.

        Args:
            bucket: Bucket receiving attachments
            region: AWS region (default: us-east-1)
            endpoint_url: Custom S3-compatible endpoint, if any
            public_base_url: Base URL for public links (defaults to the bucket URL)
            client: Pre-built S3 client (tests)
        """
        self.bucket = bucket
        self.region = region
        self.public_base_url = (
            public_base_url or f"https://{bucket}.s3.{region}.amazonaws.com"
        ).rstrip("/")
        self.s3_client = client or boto3.client(
            "s3", region_name=region, endpoint_url=endpoint_url
        )

    def _object_key(self, app_name: str, filename: str) -> str:
        return f"feedback/{app_name}/{int(time.time() * 1000)}-{filename}"

    def upload_attachments(self, app_name: str, files: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Upload each file in order; one failure never stops the others.

        Args:
            app_name: Reporting application, used in the object key
            files: Dicts with ``name``, base64 ``data`` and optional ``type``

        Returns:
            One result per file: ``{name, url, size, type}`` on success,
            ``{name, error}`` on failure
        """
        results = []
        for file in files:
            results.append(self._upload_one(app_name, file if isinstance(file, dict) else {}))
        return results

    def _upload_one(self, app_name: str, file: Dict[str, Any]) -> Dict[str, Any]:
        name = file.get("name")
        data = file.get("data")
        if not name or not data:
            return {"name": name or "unknown", "error": INVALID_FILE_ERROR}

        content_type = file.get("type") or DEFAULT_CONTENT_TYPE
        try:
            body = decode_base64_payload(data)
            key = self._object_key(app_name, name)
            self.s3_client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=body,
                ContentType=content_type,
                ACL="public-read",
            )
        except (ClientError, BotoCoreError, binascii.Error, ValueError) as e:
            logger.error(
                'Failed to upload file %s: %s', name, e,
                extra={"bucket": self.bucket, "app_name": app_name},
            )
            return {"name": name, "error": UPLOAD_FAILED_ERROR}

        logger.info('Uploaded attachment %s (%d bytes) to %s', name, len(body), key)
        return {
            "name": name,
            "url": f"{self.public_base_url}/{key}",
            "size": len(body),
            "type": content_type,
        }


def unavailable_results(files: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Per-file results for submissions received while storage is not configured."""
    return [
        {"name": (f.get("name") if isinstance(f, dict) else None) or "unknown", "error": NOT_CONFIGURED_ERROR}
        for f in files
    ]


def get_blob_store() -> Optional[BlobStore]:
    """Build the configured blob store, or None when no bucket is set."""
    from src.config import (
        get_blob_bucket,
        get_blob_endpoint_url,
        get_blob_public_base_url,
        get_blob_region,
    )

    bucket = get_blob_bucket()
    if not bucket:
        return None

    return BlobStore(
        bucket=bucket,
        region=get_blob_region(),
        endpoint_url=get_blob_endpoint_url(),
        public_base_url=get_blob_public_base_url(),
    )
