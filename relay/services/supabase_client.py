from typing import Any, Optional

from supabase import Client, create_client

from relay.models.submission_schema import NotificationRecord
from relay.utils.config import Settings
from relay.utils.logger import get_logger


logger = get_logger("supabase-client")


class RecordStore:
    """Write-once log of notification records in a Supabase table."""

    def __init__(self, settings: Settings, client: Optional[Client] = None):
        self._settings = settings
        self._client = client

    @property
    def table(self) -> str:
        return self._settings.notifications_table

    def supabase(self) -> Optional[Client]:
        if self._client:
            return self._client
        s = self._settings
        if not s.supabase_url or not s.supabase_service_role_key:
            logger.info("Supabase not configured; notification records are not persisted.")
            return None
        try:
            self._client = create_client(s.supabase_url, s.supabase_service_role_key)
        except Exception as e:
            logger.error("Supabase client could not be created: %s", e)
            return None
        return self._client

    def insert(self, record: NotificationRecord) -> bool:
        sb = self.supabase()
        if not sb:
            return False
        row: dict[str, Any] = record.model_dump(mode="json")
        try:
            sb.table(self.table).insert(row).execute()
        except Exception as e:
            logger.error("Supabase insert failed for record %s: %s", record.id, e)
            return False
        logger.info("Saved notification record %s to %s", record.id, self.table)
        return True
