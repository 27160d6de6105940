from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class TrackingEventCreate(BaseModel):
    order_id: uuid.UUID
    status: str = Field("note", min_length=1, max_length=50)
    description: str = Field(..., min_length=1, max_length=2000)
    location: str | None = Field(None, max_length=255)


class TrackingEventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    order_id: uuid.UUID
    status: str
    description: str
    location: str | None = None
    timestamp: datetime
