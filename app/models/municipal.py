"""
Models for municipal pages and their official update posts.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, Optional
from enum import Enum

from app.models.issue import utc_now


class PageType(str, Enum):
    DEPARTMENT = "Department"
    CITY = "City"
    EMERGENCY_AUTHORITY = "EmergencyAuthority"


class Region(BaseModel):
    city: str
    ward: Optional[str] = None


class MunicipalPage(BaseModel):
    id: str
    name: str
    handle: str
    department: str
    region: Region
    page_type: PageType = PageType.DEPARTMENT
    verified: bool = True
    followers_count: int = 0
    avatar: Optional[str] = None
    cover_image: Optional[str] = None
    description: Optional[str] = None
    contact_email: Optional[str] = None
    is_active: bool = True
    created_by_admin_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)


class MunicipalPageCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    handle: str = Field(..., min_length=2, max_length=60)
    department: str = Field(..., min_length=1, max_length=80)
    region: Region
    page_type: PageType = Field(PageType.DEPARTMENT, alias="pageType")
    contact_email: Optional[str] = Field(None, alias="contactEmail")
    description: Optional[str] = None
    avatar: Optional[str] = None
    cover_image: Optional[str] = Field(None, alias="coverImage")

    class Config:
        populate_by_name = True
        extra = "ignore"


class MunicipalPageUpdate(BaseModel):
    """Only these fields are editable after creation."""
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    avatar: Optional[str] = None
    cover_image: Optional[str] = Field(None, alias="coverImage")
    description: Optional[str] = None
    contact_email: Optional[str] = Field(None, alias="contactEmail")

    class Config:
        populate_by_name = True
        extra = "ignore"


class OfficialPostCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    image: Optional[str] = None
    official_update_type: Optional[str] = Field(None, alias="officialUpdateType")
    location: Any = None

    class Config:
        populate_by_name = True
        extra = "ignore"
