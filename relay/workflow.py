import json
from functools import lru_cache
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError

from relay.models.errors import FetchError, MalformedEventError, RelocationError, SubmissionError
from relay.models.submission_schema import (
    NotificationStatus,
    OutcomeMeta,
    StagedFile,
    StoredArtifact,
    SubmissionEvent,
)
from relay.services.fetcher import ArtifactFetcher
from relay.services.mailer import MailgunTransport
from relay.services.notifier import OutcomeNotifier
from relay.services.relocator import ArtifactRelocator
from relay.services.supabase_client import RecordStore
from relay.utils.config import Settings, get_settings
from relay.utils.logger import get_logger


logger = get_logger("workflow")

SUBJECT_SUCCESS = "Submission Successful"
SUBJECT_FAILURE = "Submission Unsuccessful"
BODY_SUCCESS = "Your submission was successful."


def parse_event(raw: Mapping[str, Any]) -> SubmissionEvent:
    """
    Pull the submission out of a topic notification envelope.

    Expects ``{"Records": [{"Sns": {"Message": "<json>"}}]}`` where the
    message carries ``user_email``, ``submission_url`` and ``assignment_id``.
    """
    try:
        message = raw["Records"][0]["Sns"]["Message"]
        payload = json.loads(message) if isinstance(message, (str, bytes)) else message
        return SubmissionEvent.model_validate(payload)
    except (KeyError, IndexError, TypeError, json.JSONDecodeError, ValidationError) as e:
        raise MalformedEventError(f"Malformed submission event: {e}") from e


def envelope(message: Union[str, Mapping[str, Any]]) -> dict[str, Any]:
    """Wrap a bare message the way the topic delivers it to a function trigger."""
    return {"Records": [{"Sns": {"Message": message}}]}


class SubmissionWorkflow:
    """Fetch → relocate → notify for one submission event."""

    def __init__(self, fetcher: ArtifactFetcher, relocator: ArtifactRelocator, notifier: OutcomeNotifier):
        self._fetcher = fetcher
        self._relocator = relocator
        self._notifier = notifier

    @classmethod
    def from_settings(cls, settings: Settings) -> "SubmissionWorkflow":
        notifier = OutcomeNotifier(MailgunTransport(settings), RecordStore(settings), settings.sender)
        return cls(ArtifactFetcher(settings), ArtifactRelocator(settings), notifier)

    def close(self) -> None:
        self._fetcher.close()
        self._relocator.close()
        self._notifier.close()

    def handle(self, raw: Mapping[str, Any]) -> Union[str, SubmissionError]:
        return self.run(parse_event(raw))

    def run(self, event: SubmissionEvent) -> Union[str, SubmissionError]:
        email, url = event.recipient_email, event.artifact_url
        logger.info("Processing submission %s for %s (assignment %s)", url, email, event.assignment_id)

        try:
            staged = self._fetcher.fetch(url, email)
        except FetchError as e:
            logger.info("Zip file not fetched for %s: %s", email, e.reason)
            self._fail(event, e)
            return e

        try:
            stored = self._relocate(staged, email)
        except RelocationError as e:
            self._fail(event, e)
            return e

        self._notifier.notify(
            email,
            SUBJECT_SUCCESS,
            BODY_SUCCESS,
            self._meta(event, NotificationStatus.SUCCESS, stored),
        )
        return f"Successfully processed {url} for {email}"

    def _relocate(self, staged: StagedFile, email: str) -> StoredArtifact:
        try:
            return self._relocator.relocate(staged, email)
        finally:
            self._fetcher.discard(staged)

    def _fail(self, event: SubmissionEvent, error: SubmissionError) -> None:
        self._notifier.notify(
            event.recipient_email,
            SUBJECT_FAILURE,
            f"Error: {error.reason}",
            self._meta(event, NotificationStatus.FAILED),
        )

    @staticmethod
    def _meta(
        event: SubmissionEvent,
        status: NotificationStatus,
        stored: Optional[StoredArtifact] = None,
    ) -> OutcomeMeta:
        return OutcomeMeta(
            submission_url=event.artifact_url,
            assignment_id=event.assignment_id,
            status=status,
            storage_url=stored.storage_url if stored else None,
            authenticated_url=stored.authenticated_url if stored else None,
        )


@lru_cache(maxsize=1)
def get_workflow() -> SubmissionWorkflow:
    """Process-wide workflow; HTTP sessions and SDK clients are reused across invocations."""
    return SubmissionWorkflow.from_settings(get_settings())
