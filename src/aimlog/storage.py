"""
Object storage upload for session payloads.

The payload produced by aimlog.export.encode_sessions is written as a single
object named by a random UUID. Google Cloud Storage is the production
target; google-cloud-storage is an optional extra and is needed only when
no client is injected.
"""

import logging
import uuid
from pathlib import Path
from typing import Any, Optional, Protocol

from aimlog.core.config import StorageConfig

try:
    from google.cloud import storage

    GCS_AVAILABLE = True
except ImportError:
    GCS_AVAILABLE = False

logger = logging.getLogger(__name__)

GCS_INSTALL_HINT = "google-cloud-storage is not installed. Install it with: pip install 'aimlog[gcs]'"


class Uploader(Protocol):
    """Anything that can store a payload and return the object name."""

    def upload(self, payload: bytes) -> str:
        ...


class GCSUploader:
    """
    Uploads payloads to a Google Cloud Storage bucket.

    The bucket is created in the configured project the first time it is
    missing.
    """

    def __init__(self, config: StorageConfig, client: Optional[Any] = None):
        """
        Initialize the uploader.

        Args:
            config: Storage section of the configuration
            client: Pre-built google.cloud.storage.Client (built from
                config.credentials_path when omitted)

        Raises:
            ValueError: If no bucket is configured
            ImportError: If no client is given and google-cloud-storage is missing
        """
        if not config.bucket_name:
            raise ValueError("storage.bucket_name must be configured to upload")
        if client is None and not GCS_AVAILABLE:
            raise ImportError(GCS_INSTALL_HINT)

        self.config = config
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            if self.config.credentials_path:
                self._client = storage.Client.from_service_account_json(
                    self.config.credentials_path, project=self.config.project_id
                )
            else:
                self._client = storage.Client(project=self.config.project_id)
        return self._client

    def _bucket(self) -> Any:
        bucket = self.client.bucket(self.config.bucket_name)
        if not bucket.exists():
            logger.info(f"Creating bucket {self.config.bucket_name} in project {self.config.project_id}")
            bucket = self.client.create_bucket(bucket, project=self.config.project_id)
        return bucket

    def upload(self, payload: bytes) -> str:
        """
        Write the payload to a new object.

        Returns:
            Name of the created object
        """
        object_name = str(uuid.uuid4())
        blob = self._bucket().blob(object_name)
        blob.upload_from_string(payload, content_type=self.config.content_type)
        logger.info(f"Uploaded {len(payload)} bytes to gs://{self.config.bucket_name}/{object_name}")
        return object_name


class FileUploader:
    """Writes the payload to a local file instead of a bucket."""

    def __init__(self, output_path: Path):
        self.output_path = Path(output_path)

    def upload(self, payload: bytes) -> str:
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self.output_path.write_bytes(payload)
        logger.info(f"Wrote {len(payload)} bytes to {self.output_path}")
        return str(self.output_path)
