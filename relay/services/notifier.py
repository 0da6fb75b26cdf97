import uuid
from datetime import datetime, timezone

from relay.models.errors import DeliveryError
from relay.models.submission_schema import NotificationRecord, NotificationStatus, OutcomeMeta
from relay.services.mailer import EmailTransport
from relay.services.supabase_client import RecordStore
from relay.utils.logger import get_logger


logger = get_logger("notifier")


def compose_body(body: str, meta: OutcomeMeta) -> str:
    if meta.status is not NotificationStatus.SUCCESS:
        return body
    return f"{body} \n\nGCS UTIL URL: {meta.storage_url} \n\nGCS URL: {meta.authenticated_url}"


class OutcomeNotifier:
    def __init__(self, transport: EmailTransport, store: RecordStore, source_email: str):
        self._transport = transport
        self._store = store
        self._source_email = source_email

    def close(self) -> None:
        self._transport.close()

    def notify(self, recipient_email: str, subject: str, body: str, meta: OutcomeMeta) -> NotificationRecord:
        """
        Email the submitter and persist one record of the attempt.

        Neither a rejected email nor a failed insert is raised: the record is
        built and written in both cases, and a failed write is only logged.
        """
        logger.info("Sending email to %s from %s: %s", recipient_email, self._source_email, subject)
        delivered = False
        try:
            ack = self._transport.send(self._source_email, recipient_email, subject, compose_body(body, meta))
            delivered = True
            logger.info("Email sent successfully: %s", ack)
        except DeliveryError as e:
            logger.error("Error sending email to %s: %s (%r)", recipient_email, e.reason, e.__cause__)

        record = NotificationRecord(
            id=uuid.uuid4(),
            recipient_email=recipient_email,
            submission_url=meta.submission_url,
            storage_url=meta.storage_url,
            authenticated_url=meta.authenticated_url,
            sent_at=datetime.now(timezone.utc),
            assignment_id=meta.assignment_id,
            status=meta.status,
            delivered=delivered,
        )
        if not self._store.insert(record):
            logger.error("Notification record %s was not persisted", record.id)
        return record
