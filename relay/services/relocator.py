from datetime import datetime, timezone
from typing import Any, Optional

from google.cloud import storage

from relay.models.errors import RelocationError
from relay.models.submission_schema import StagedFile, StoredArtifact
from relay.utils.config import Settings
from relay.utils.logger import get_logger


logger = get_logger("relocator")

ARCHIVE_CONTENT_TYPE = "application/zip"


def object_name_for(recipient_email: str, now: Optional[datetime] = None) -> str:
    """``{email}_{ISO-8601 UTC, ':' -> '-'}.zip``, e.g. ``a@b.c_2024-05-01T10-00-00.000Z.zip``."""
    now = now or datetime.now(timezone.utc)
    stamp = now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return f"{recipient_email}_{stamp.replace(':', '-')}.zip"


def storage_urls(bucket_name: str, object_name: str) -> tuple[str, str]:
    authenticated = f"storage.cloud.google.com/{bucket_name}/{object_name}".replace("@", "%40")
    canonical = f"gs://{bucket_name}/{object_name}"
    return authenticated, canonical


class ArtifactRelocator:
    """Moves staged archives into the submissions bucket on Google Cloud Storage."""

    def __init__(self, settings: Settings, client: Optional[Any] = None):
        self._settings = settings
        self._client = client

    @property
    def bucket_name(self) -> str:
        if not self._settings.bucket_name:
            raise RuntimeError("Storage not configured: set GOOGLE_CLOUD_BUCKET_NAME")
        return self._settings.bucket_name

    def client(self):
        if self._client is not None:
            return self._client
        self._client = storage.Client.from_service_account_info(
            self._settings.credentials_info(),
            project=self._settings.google_project_id,
        )
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()

    def relocate(self, staged: StagedFile, recipient_email: str) -> StoredArtifact:
        name = object_name_for(recipient_email)
        try:
            logger.info("Uploading %s to bucket %s as %s", staged.path, self.bucket_name, name)
            blob = self.client().bucket(self.bucket_name).blob(name)
            blob.upload_from_filename(str(staged.path), content_type=ARCHIVE_CONTENT_TYPE)
        except Exception as e:
            logger.exception("Upload to Google Cloud Storage failed: %s", e)
            raise RelocationError() from e

        authenticated, canonical = storage_urls(self.bucket_name, name)
        logger.info("Upload finished: %s", canonical)
        return StoredArtifact(object_name=name, authenticated_url=authenticated, storage_url=canonical)
