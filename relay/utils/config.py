import base64
import binascii
import json
import os
import tempfile
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

load_dotenv(override=False)


def _env(name: str, default: str | None = None) -> str | None:
    v = os.getenv(name)
    return v if v not in (None, "", "null", "None") else default


class Settings(BaseModel):
    """Everything read from the environment, resolved once per process."""

    model_config = ConfigDict(frozen=True)

    bucket_name: Optional[str] = None
    google_project_id: Optional[str] = None
    service_account_key: Optional[str] = None  # base64-encoded JSON key

    supabase_url: Optional[str] = None
    supabase_service_role_key: Optional[str] = None
    notifications_table: str = "email_notifications"

    mailgun_api_key: Optional[str] = None
    mailgun_domain: Optional[str] = None
    mailgun_api_base: str = "https://api.mailgun.net/v3"
    source_email: Optional[str] = None
    sns_topic_arn: Optional[str] = None

    scratch_dir: Path = Path(tempfile.gettempdir())
    fetch_timeout: Optional[float] = None

    host: str = "0.0.0.0"
    port: int = 8080

    @property
    def sender(self) -> str:
        if self.source_email:
            return self.source_email
        if self.mailgun_domain:
            return f"mailgun@{self.mailgun_domain}"
        raise RuntimeError("No source address: set SOURCE_EMAIL or MAILGUN_DOMAIN")

    def credentials_info(self) -> dict[str, Any]:
        if not self.service_account_key:
            raise RuntimeError("Storage not configured: set SERVICE_ACCOUNT_KEY")
        try:
            raw = base64.b64decode(self.service_account_key, validate=True)
            info = json.loads(raw.decode("utf-8"))
        except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise RuntimeError("SERVICE_ACCOUNT_KEY is not base64-encoded JSON") from e
        if not isinstance(info, dict):
            raise RuntimeError("SERVICE_ACCOUNT_KEY must decode to a JSON object")
        return info


def load_settings() -> Settings:
    timeout = _env("FETCH_TIMEOUT")
    return Settings(
        bucket_name=_env("GOOGLE_CLOUD_BUCKET_NAME"),
        google_project_id=_env("GOOGLE_PROJECT_ID"),
        service_account_key=_env("SERVICE_ACCOUNT_KEY"),
        supabase_url=_env("SUPABASE_URL"),
        supabase_service_role_key=_env("SUPABASE_SERVICE_ROLE_KEY"),
        notifications_table=_env("NOTIFICATIONS_TABLE", "email_notifications"),
        mailgun_api_key=_env("MAILGUN_API_KEY"),
        mailgun_domain=_env("MAILGUN_DOMAIN"),
        mailgun_api_base=_env("MAILGUN_API_BASE", "https://api.mailgun.net/v3"),
        source_email=_env("SOURCE_EMAIL"),
        sns_topic_arn=_env("SNS_TOPIC_ARN"),
        scratch_dir=Path(_env("SCRATCH_DIR", tempfile.gettempdir())),
        fetch_timeout=float(timeout) if timeout else None,
        host=_env("HOST", "0.0.0.0"),
        port=int(_env("PORT", "8080") or "8080"),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
