from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import requests

from relay.models.errors import DeliveryError
from relay.models.submission_schema import NotificationRecord
from relay.utils.config import Settings


class FakeResponse:
    def __init__(self, status_code: int = 200, content: bytes = b"", payload: Any = None) -> None:
        self.status_code = status_code
        self.content = content
        self._payload = payload
        self.text = content.decode("utf-8", errors="replace")

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeSession:
    def __init__(self, response: FakeResponse | None = None, error: Exception | None = None) -> None:
        self._response = response or FakeResponse()
        self._error = error
        self.calls: list[tuple[str, str, dict[str, Any]]] = []
        self.closed = False

    def _respond(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append((method, url, kwargs))
        if self._error is not None:
            raise self._error
        return self._response

    def close(self) -> None:
        self.closed = True

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        return self._respond("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        return self._respond("POST", url, **kwargs)


class FakeBlob:
    def __init__(self, bucket: FakeBucket, name: str) -> None:
        self._bucket = bucket
        self.name = name

    def upload_from_filename(self, filename: str, content_type: str | None = None) -> None:
        if self._bucket.error is not None:
            raise self._bucket.error
        self._bucket.uploads.append(
            {"name": self.name, "data": Path(filename).read_bytes(), "content_type": content_type}
        )


class FakeBucket:
    def __init__(self, name: str, error: Exception | None = None) -> None:
        self.name = name
        self.error = error
        self.uploads: list[dict[str, Any]] = []

    def blob(self, name: str) -> FakeBlob:
        return FakeBlob(self, name)


class FakeStorageClient:
    def __init__(self, error: Exception | None = None) -> None:
        self._error = error
        self.buckets: dict[str, FakeBucket] = {}
        self.closed = False

    def close(self) -> None:
        self.closed = True

    def bucket(self, name: str) -> FakeBucket:
        return self.buckets.setdefault(name, FakeBucket(name, self._error))


class FakeTransport:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sent: list[dict[str, str]] = []
        self.closed = False

    def close(self) -> None:
        self.closed = True

    def send(self, sender: str, recipient: str, subject: str, text: str) -> dict[str, Any]:
        self.sent.append({"from": sender, "to": recipient, "subject": subject, "text": text})
        if self.fail:
            raise DeliveryError() from requests.ConnectionError("smtp down")
        return {"id": "<msg@example.com>", "message": "Queued. Thank you."}


class FakeStore:
    def __init__(self, ok: bool = True) -> None:
        self.ok = ok
        self.records: list[NotificationRecord] = []

    def insert(self, record: NotificationRecord) -> bool:
        self.records.append(record)
        return self.ok


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        bucket_name="submissions-bucket",
        google_project_id="demo-project",
        supabase_url="https://example.supabase.co",
        supabase_service_role_key="service-role",
        mailgun_api_key="key-123",
        mailgun_domain="mg.example.com",
        source_email="noreply@mg.example.com",
        scratch_dir=tmp_path / "scratch",
    )
