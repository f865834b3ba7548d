"""
Pydantic models for issues (citizen reports and municipal official updates).

Internal models use snake_case attributes that match stored columns; the
camelCase API shape is produced by app.utils.field_mapping.
"""

from pydantic import BaseModel, Field
from datetime import datetime, timezone
from typing import Any, List, Optional
from enum import Enum


class AuthorType(str, Enum):
    USER = "User"
    MUNICIPAL_PAGE = "MunicipalPage"


class IssueStatus(str, Enum):
    SUBMITTED = "Submitted"
    ACKNOWLEDGED = "Acknowledged"
    IN_PROGRESS = "InProgress"
    RESOLVED = "Resolved"
    REJECTED = "Rejected"


class Severity(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


ANONYMOUS_USER_ID = "anonymous"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Location(BaseModel):
    """Normalized point location. See app.utils.location for accepted input forms."""
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    address: Optional[str] = None


class StatusTimelineEntry(BaseModel):
    status: str
    timestamp: datetime = Field(default_factory=utc_now)
    updated_by: Optional[str] = None
    comment: Optional[str] = None
    dept: Optional[str] = None


class ResolutionProof(BaseModel):
    after_image: Optional[str] = None
    worker_remarks: Optional[str] = None
    resolved_at: datetime = Field(default_factory=utc_now)
    resolved_by: Optional[str] = None


class Issue(BaseModel):
    """Issue as stored. Municipal posts have author_type=MunicipalPage and no user_id."""
    id: str
    author_type: AuthorType = AuthorType.USER
    user_id: Optional[str] = None
    municipal_page_id: Optional[str] = None
    official_update_type: Optional[str] = None

    title: str
    description: str = ""
    image: Optional[str] = None
    video: Optional[str] = None
    location: Optional[Location] = None
    category: str = "other"
    department_tag: str = "General"

    status: IssueStatus = IssueStatus.SUBMITTED
    priority_score: int = Field(default=0, ge=0, le=100)
    ai_severity: Severity = Severity.MEDIUM
    ai_tags: List[str] = Field(default_factory=list)

    upvotes: List[str] = Field(default_factory=list)
    downvotes: List[str] = Field(default_factory=list)
    followers: List[str] = Field(default_factory=list)
    comment_count: int = 0

    status_timeline: List[StatusTimelineEntry] = Field(default_factory=list)
    assigned_to: Optional[str] = None
    deadline: Optional[str] = None
    resolved_by: Optional[str] = None
    resolution_proof: Optional[ResolutionProof] = None

    anonymous: bool = False
    emergency: bool = False
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: Optional[datetime] = None

    @property
    def is_municipal(self) -> bool:
        return self.author_type == AuthorType.MUNICIPAL_PAGE


class IssueCreate(BaseModel):
    """
    Incoming POST /api/issues body.

    `location` is left untyped on purpose: clients send either an object or a
    JSON-encoded string, and app.utils.location.parse_location normalizes it.
    """
    title: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    image: Optional[str] = None
    video: Optional[str] = None
    location: Any = None
    category: Optional[str] = Field(None, max_length=50)
    anonymous: bool = False
    emergency: bool = False

    class Config:
        extra = "ignore"
        json_schema_extra = {
            "example": {
                "title": "Deep pothole near bus stop",
                "description": "Two-wheelers swerving into traffic to avoid it.",
                "category": "roads",
                "location": {"latitude": 28.614, "longitude": 77.209, "address": "Janpath Rd"},
                "emergency": False,
            }
        }


class CommentCreate(BaseModel):
    text: str = Field(..., min_length=1, max_length=1000)


class Comment(BaseModel):
    id: str
    issue_id: str
    user_id: Optional[str] = None
    text: str
    likes: int = 0
    created_at: datetime = Field(default_factory=utc_now)
