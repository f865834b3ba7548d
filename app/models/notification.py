"""
Notification and push token models.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

from app.models.issue import utc_now


class Notification(BaseModel):
    id: str
    user_id: str
    type: str = "general"
    title: str
    description: str = ""
    action_url: Optional[str] = None
    read: bool = False
    created_at: datetime = Field(default_factory=utc_now)


class PushToken(BaseModel):
    token: str
    user_id: str
    device_type: Optional[str] = None
    updated_at: datetime = Field(default_factory=utc_now)


class PushTokenRequest(BaseModel):
    token: str = Field(..., min_length=1)
    device_type: Optional[str] = Field(None, alias="deviceType")

    class Config:
        populate_by_name = True
