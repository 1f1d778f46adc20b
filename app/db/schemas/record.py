from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field as PydanticField


class RecordRead(BaseModel):
    name: str
    id: str
    data: dict[str, Any]
    expires_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    live: bool = True

    model_config = ConfigDict(from_attributes=True)


class RecordUpsert(BaseModel):
    payload: dict[str, Any]
    # Seconds until expiry; 0 or null stores the record without expiry
    expires_in: Optional[int] = PydanticField(default=None, ge=0)


class PurgeResult(BaseModel):
    deleted: int


class RevokeResult(BaseModel):
    grant_id: str
    deleted: int
