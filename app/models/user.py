"""
User models. Accounts are created by the auth provider; this service reads
them and updates gamification counters.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional
from enum import Enum

from app.models.issue import utc_now


class UserRole(str, Enum):
    CITIZEN = "citizen"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"
    FIELD_WORKER = "field_worker"


ADMIN_ROLES = {UserRole.ADMIN, UserRole.SUPER_ADMIN}


class User(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
    role: UserRole = UserRole.CITIZEN
    points: int = 0
    badges: List[str] = Field(default_factory=list)
    reports_count: int = 0
    reports_resolved: int = 0
    impact_score: int = 0
    region: Optional[str] = None
    city: Optional[str] = None
    ward: Optional[str] = None
    avatar: Optional[str] = None
    department: Optional[str] = None
    username: Optional[str] = None
    interests: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES


def author_summary(user: Optional[User]) -> dict:
    """Public author block embedded in issue and comment payloads."""
    if user is None:
        return {"name": "Anonymous"}
    return {"_id": user.id, "name": user.name, "avatar": user.avatar, "role": user.role.value}


class UserProfileUpdate(BaseModel):
    """Self-service profile edit. Empty values leave the field unchanged."""
    name: Optional[str] = Field(None, max_length=120)
    region: Optional[str] = None
    avatar: Optional[str] = None
    username: Optional[str] = None
    city: Optional[str] = None
    ward: Optional[str] = None
    interests: Optional[List[str]] = None

    class Config:
        extra = "ignore"
