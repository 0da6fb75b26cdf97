from typing import Any, Optional, Protocol

import requests

from relay.models.errors import DeliveryError
from relay.utils.config import Settings
from relay.utils.logger import get_logger


logger = get_logger("mailer")


class EmailTransport(Protocol):
    def send(self, sender: str, recipient: str, subject: str, text: str) -> dict[str, Any]:
        """Deliver one plain-text message; raise DeliveryError when it is not accepted."""
        ...

    def close(self) -> None:
        ...


class MailgunTransport:
    """Mailgun HTTP API (``POST /v3/<domain>/messages``)."""

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None, timeout: float = 30):
        self._api_key = settings.mailgun_api_key
        self._domain = settings.mailgun_domain
        self._api_base = settings.mailgun_api_base.rstrip("/")
        self._session = session or requests.Session()
        self._timeout = timeout

    def close(self) -> None:
        self._session.close()

    def send(self, sender: str, recipient: str, subject: str, text: str) -> dict[str, Any]:
        if not self._api_key or not self._domain:
            raise DeliveryError("Mailgun not configured: set MAILGUN_API_KEY and MAILGUN_DOMAIN")
        url = f"{self._api_base}/{self._domain}/messages"
        logger.debug("Mailgun request → %s (to=%s)", url, recipient)
        try:
            r = self._session.post(
                url,
                auth=("api", self._api_key),
                data={"from": sender, "to": recipient, "subject": subject, "text": text},
                timeout=self._timeout,
            )
            r.raise_for_status()
        except requests.RequestException as e:
            raise DeliveryError() from e
        try:
            return r.json()
        except ValueError:
            return {"raw_text": r.text}
