from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class NotificationStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


class SubmissionEvent(BaseModel):
    """One triggering message; payload keys are the aliases."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, coerce_numbers_to_str=True)

    recipient_email: str = Field(..., alias="user_email", min_length=1)
    artifact_url: str = Field(..., alias="submission_url", min_length=1)
    assignment_id: str = Field(..., min_length=1)


class StagedFile(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: Path
    size: int


class StoredArtifact(BaseModel):
    model_config = ConfigDict(frozen=True)

    object_name: str
    authenticated_url: str
    storage_url: str  # gs:// form


class OutcomeMeta(BaseModel):
    model_config = ConfigDict(frozen=True)

    submission_url: str
    assignment_id: str
    status: NotificationStatus
    storage_url: Optional[str] = None
    authenticated_url: Optional[str] = None


class NotificationRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    recipient_email: str
    submission_url: str
    storage_url: Optional[str] = None
    authenticated_url: Optional[str] = None
    sent_at: datetime
    assignment_id: str
    status: NotificationStatus
    delivered: bool = False
