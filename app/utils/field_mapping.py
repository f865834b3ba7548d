"""
Store <-> model <-> API field translation.

This is the only module that knows about column names and camelCase API keys.
Services work on the pydantic models in app.models, whose attribute names
match the stored (snake_case) columns except where noted below.

Issue field table (stored column -> API key):

    id                    -> _id
    author_type           -> authorType
    user_id               -> userId
    municipal_page_id     -> municipalPageId
    official_update_type  -> officialUpdateType
    department_tag        -> departmentTag
    priority_score        -> priorityScore
    ai_severity           -> aiSeverity
    ai_tags               -> aiTags
    comment_count         -> commentCount
    status_timeline       -> statusTimeline   (entries: updated_by -> updatedBy)
    assigned_to           -> assignedTo
    resolved_by           -> resolvedBy
    resolution_proof      -> resolutionProof  (after_image -> afterImage, ...)
    created_at            -> createdAt
    updated_at            -> updatedAt
    location_latitude  \
    location_longitude  }-> location {type: "Point", coordinates: [lng, lat], address}
    location_address   /

Columns with identical names on both sides (title, description, status, ...)
are listed in the tables as identity entries. Anything not in a table is
dropped on the way out.
"""

from enum import Enum
from typing import Any, Dict, Mapping, Optional

from app.models.gamification import Badge
from app.models.issue import Comment, Issue, Location
from app.models.municipal import MunicipalPage
from app.models.notification import Notification


ISSUE_API_FIELDS: Dict[str, str] = {
    "id": "_id",
    "author_type": "authorType",
    "user_id": "userId",
    "municipal_page_id": "municipalPageId",
    "official_update_type": "officialUpdateType",
    "title": "title",
    "description": "description",
    "image": "image",
    "video": "video",
    "location": "location",
    "category": "category",
    "department_tag": "departmentTag",
    "status": "status",
    "priority_score": "priorityScore",
    "ai_severity": "aiSeverity",
    "ai_tags": "aiTags",
    "upvotes": "upvotes",
    "downvotes": "downvotes",
    "followers": "followers",
    "comment_count": "commentCount",
    "status_timeline": "statusTimeline",
    "assigned_to": "assignedTo",
    "deadline": "deadline",
    "resolved_by": "resolvedBy",
    "resolution_proof": "resolutionProof",
    "anonymous": "anonymous",
    "emergency": "emergency",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}

TIMELINE_API_FIELDS = {
    "status": "status",
    "timestamp": "timestamp",
    "updated_by": "updatedBy",
    "comment": "comment",
    "dept": "dept",
}

PROOF_API_FIELDS = {
    "after_image": "afterImage",
    "worker_remarks": "workerRemarks",
    "resolved_at": "resolvedAt",
    "resolved_by": "resolvedBy",
}

PAGE_API_FIELDS = {
    "id": "_id",
    "name": "name",
    "handle": "handle",
    "department": "department",
    "region": "region",
    "page_type": "pageType",
    "verified": "verified",
    "followers_count": "followersCount",
    "avatar": "avatar",
    "cover_image": "coverImage",
    "description": "description",
    "contact_email": "contactEmail",
    "is_active": "isActive",
    "created_by_admin_id": "createdByAdminId",
    "created_at": "createdAt",
}

COMMENT_API_FIELDS = {
    "id": "_id",
    "issue_id": "issueId",
    "user_id": "userId",
    "text": "text",
    "likes": "likes",
    "created_at": "createdAt",
}

NOTIFICATION_API_FIELDS = {
    "id": "_id",
    "user_id": "userId",
    "type": "type",
    "title": "title",
    "description": "desc",
    "action_url": "actionUrl",
    "read": "read",
    "created_at": "createdAt",
}

BADGE_API_FIELDS = {
    "id": "id",
    "name": "name",
    "icon": "icon",
    "description": "description",
    "points_required": "pointsRequired",
}

LOCATION_COLUMNS = ("location_latitude", "location_longitude", "location_address")


def rename_keys(data: Mapping[str, Any], table: Mapping[str, str]) -> Dict[str, Any]:
    return {table[key]: value for key, value in data.items() if key in table}


def _plain(value: Any) -> Any:
    """Strip Enum wrappers so the value can be written by any store client."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


# ── Store rows ──────────────────────────────────────────────────────────────

def issue_from_row(row: Mapping[str, Any]) -> Issue:
    data = {k: v for k, v in row.items() if k not in LOCATION_COLUMNS}
    latitude = row.get("location_latitude")
    longitude = row.get("location_longitude")
    if latitude is not None and longitude is not None:
        data["location"] = Location(
            latitude=latitude,
            longitude=longitude,
            address=row.get("location_address"),
        )
    return Issue(**data)


def issue_to_row(issue: Issue) -> Dict[str, Any]:
    row = _plain(issue.model_dump(exclude={"location"}))
    location = issue.location
    row["location_latitude"] = location.latitude if location else None
    row["location_longitude"] = location.longitude if location else None
    row["location_address"] = location.address if location else None
    return row


def model_to_row(model) -> Dict[str, Any]:
    """Rows for models whose attributes map 1:1 to columns."""
    return _plain(model.model_dump())


# ── API payloads ────────────────────────────────────────────────────────────

def location_to_api(location: Optional[Location]) -> Optional[Dict[str, Any]]:
    if location is None:
        return None
    return {
        "type": "Point",
        "coordinates": [location.longitude, location.latitude],
        "address": location.address,
    }


def issue_to_api(issue: Issue) -> Dict[str, Any]:
    data = issue.model_dump(mode="json", exclude={"location"})
    data["location"] = location_to_api(issue.location)
    data["status_timeline"] = [rename_keys(e, TIMELINE_API_FIELDS) for e in data["status_timeline"]]
    if data["resolution_proof"] is not None:
        data["resolution_proof"] = rename_keys(data["resolution_proof"], PROOF_API_FIELDS)
    return rename_keys(data, ISSUE_API_FIELDS)


def page_to_api(page: MunicipalPage) -> Dict[str, Any]:
    return rename_keys(page.model_dump(mode="json"), PAGE_API_FIELDS)


def comment_to_api(comment: Comment) -> Dict[str, Any]:
    return rename_keys(comment.model_dump(mode="json"), COMMENT_API_FIELDS)


def notification_to_api(notification: Notification) -> Dict[str, Any]:
    return rename_keys(notification.model_dump(mode="json"), NOTIFICATION_API_FIELDS)


def badge_to_api(badge: Badge) -> Dict[str, Any]:
    return rename_keys(badge.model_dump(mode="json"), BADGE_API_FIELDS)
