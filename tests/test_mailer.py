from __future__ import annotations

import pytest
import requests

from conftest import FakeResponse, FakeSession
from relay.models.errors import DeliveryError
from relay.services.mailer import MailgunTransport
from relay.utils.config import Settings


def test_mailgun_posts_plain_text_message(settings: Settings) -> None:
    session = FakeSession(FakeResponse(200, b"{}", payload={"id": "<1@mg>", "message": "Queued"}))
    transport = MailgunTransport(settings, session=session)

    ack = transport.send("noreply@mg.example.com", "student@example.com", "Subject", "Body")

    assert ack == {"id": "<1@mg>", "message": "Queued"}
    method, url, kwargs = session.calls[0]
    assert method == "POST"
    assert url == "https://api.mailgun.net/v3/mg.example.com/messages"
    assert kwargs["auth"] == ("api", "key-123")
    assert kwargs["data"] == {
        "from": "noreply@mg.example.com",
        "to": "student@example.com",
        "subject": "Subject",
        "text": "Body",
    }


def test_mailgun_api_base_is_configurable(settings: Settings) -> None:
    session = FakeSession(FakeResponse(200, b"queued"))
    custom = settings.model_copy(update={"mailgun_api_base": "https://api.eu.mailgun.net/v3/"})

    ack = MailgunTransport(custom, session=session).send("a@x", "b@y", "s", "t")

    assert session.calls[0][1] == "https://api.eu.mailgun.net/v3/mg.example.com/messages"
    assert ack == {"raw_text": "queued"}


def test_rejected_message_raises_delivery_error(settings: Settings) -> None:
    transport = MailgunTransport(settings, session=FakeSession(FakeResponse(401, b"Forbidden")))

    with pytest.raises(DeliveryError) as exc_info:
        transport.send("a@x", "b@y", "s", "t")

    assert isinstance(exc_info.value.__cause__, requests.HTTPError)


def test_unconfigured_transport_never_calls_out(settings: Settings) -> None:
    session = FakeSession()
    transport = MailgunTransport(settings.model_copy(update={"mailgun_api_key": None}), session=session)

    with pytest.raises(DeliveryError):
        transport.send("a@x", "b@y", "s", "t")

    assert session.calls == []
