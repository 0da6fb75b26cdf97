import re
import time
from pathlib import Path
from typing import Optional

import requests

from relay.models.errors import FetchError, InvalidUrlError
from relay.models.submission_schema import StagedFile
from relay.utils.config import Settings
from relay.utils.logger import get_logger


logger = get_logger("fetcher")

ARCHIVE_SUFFIX = ".zip"
_UNSAFE_NAME_CHARS = re.compile(r"[^\w@.+-]")


def staged_name_prefix(recipient_email: str) -> str:
    """Email reduced to a single safe path component."""
    name = _UNSAFE_NAME_CHARS.sub("_", recipient_email).lstrip(".")
    return name or "submission"


def is_archive_url(url: str) -> bool:
    return url.lower().endswith(ARCHIVE_SUFFIX)


class ArtifactFetcher:
    """Downloads a submitted archive and stages it in the scratch directory."""

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self._scratch_dir = Path(settings.scratch_dir)
        self._timeout = settings.fetch_timeout
        self._session = session or requests.Session()

    def fetch(self, url: str, recipient_email: str) -> StagedFile:
        if not is_archive_url(url):
            logger.info("Rejected non-zip submission URL: %s", url)
            raise InvalidUrlError()

        try:
            r = self._session.get(url, timeout=self._timeout)
            r.raise_for_status()
            body = r.content
            self._scratch_dir.mkdir(parents=True, exist_ok=True)
            # millisecond stamp keeps concurrent invocations for one user apart
            dest = self._safe_path(f"{staged_name_prefix(recipient_email)}_{int(time.time() * 1000)}{ARCHIVE_SUFFIX}")
            dest.write_bytes(body)
        except (requests.RequestException, OSError) as e:
            logger.error("Download failed for %s: %s", url, e)
            raise FetchError() from e

        logger.info("Downloaded %s -> %s (%d bytes)", url, dest, len(body))
        return StagedFile(path=dest, size=len(body))

    def close(self) -> None:
        self._session.close()

    def _safe_path(self, filename: str) -> Path:
        target = (self._scratch_dir / filename).resolve()
        if not target.is_relative_to(self._scratch_dir.resolve()):
            logger.error("Staged file name escapes scratch dir: %r", filename)
            raise FetchError()
        return target

    def discard(self, staged: StagedFile) -> None:
        try:
            staged.path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not remove staged file %s: %s", staged.path, e)
