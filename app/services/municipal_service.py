"""
Municipal Service - official pages, page follows and official update posts.
"""

from typing import Dict, List, Optional
import logging

from app.core.errors import ConflictError, NotFoundError
from app.models.issue import AuthorType, Issue, IssueStatus, StatusTimelineEntry
from app.models.municipal import (
    MunicipalPage,
    MunicipalPageCreate,
    MunicipalPageUpdate,
    OfficialPostCreate,
)
from app.models.user import User, author_summary
from app.repositories import Repositories, get_repositories
from app.repositories.base import new_id
from app.services.issue_service import enrich_issues
from app.services.notification_service import NotificationService
from app.utils.field_mapping import page_to_api
from app.utils.location import parse_location

logger = logging.getLogger(__name__)

DEFAULT_UPDATE_TYPE = "Announcement"
SUGGESTED_LIMIT = 10
SUGGESTED_FALLBACK = 5


def normalize_handle(handle: str) -> str:
    return handle.strip().lstrip("@").lower()


class MunicipalService:
    """Service for municipal pages."""

    def __init__(self, repositories: Repositories, notifier: Optional[NotificationService] = None):
        self.repositories = repositories
        self.pages = repositories.pages
        self.follows = repositories.follows
        self.notifier = notifier or NotificationService(repositories)

    def get_page(self, page_id: str) -> MunicipalPage:
        page = self.pages.get_page(page_id)
        if page is None:
            raise NotFoundError("Page not found")
        return page

    def create_page(self, body: MunicipalPageCreate, admin: User) -> Dict:
        handle = normalize_handle(body.handle)
        if self.pages.get_page_by_handle(handle) is not None:
            raise ConflictError(f"Handle @{handle} is already taken")

        page = self.pages.create_page(MunicipalPage(
            id=new_id(),
            name=body.name.strip(),
            handle=handle,
            department=body.department,
            region=body.region,
            page_type=body.page_type,
            avatar=body.avatar,
            cover_image=body.cover_image,
            description=body.description,
            contact_email=body.contact_email,
            created_by_admin_id=admin.id,
        ))
        logger.info(f"✅ Municipal page created: @{page.handle} by {admin.id}")
        return page_to_api(page)

    def search(self, query: Optional[str]) -> List[Dict]:
        """Active pages whose name, handle or department contains query (case-insensitive)."""
        needle = (query or "").strip().lower()
        pages = self.pages.list_active_pages()
        if needle:
            pages = [
                p for p in pages
                if needle in p.name.lower() or needle in p.handle.lower() or needle in p.department.lower()
            ]
        return [page_to_api(p) for p in pages]

    def suggested(self, user: User) -> List[Dict]:
        """
        Pages in the user's city or ward. Users with no match (or no city
        on file) get the first few active pages instead.
        """
        pages = self.pages.list_active_pages()
        city = (user.city or "").lower()
        ward = (user.ward or "").lower()

        local = [
            p for p in pages
            if (city and p.region.city.lower() == city) or (ward and (p.region.ward or "").lower() == ward)
        ]
        chosen = local if local else pages[:SUGGESTED_FALLBACK]
        return [page_to_api(p) for p in chosen[:SUGGESTED_LIMIT]]

    def get_page_detail(self, page_id: str, user: User) -> Dict:
        page = self.get_page(page_id)
        data = page_to_api(page)
        data["isFollowing"] = self.follows.is_following(user.id, page_id)
        return data

    def get_followers(self, page_id: str) -> List[Dict]:
        self.get_page(page_id)
        follower_ids = self.follows.get_follower_ids(page_id)
        return [author_summary(u) for u in self.repositories.users.get_users(follower_ids)]

    def follow(self, page_id: str, user: User) -> Dict:
        self.get_page(page_id)
        if not self.follows.add_follow(user.id, page_id):
            raise ConflictError("Already following this page")

        def bump(page: MunicipalPage) -> MunicipalPage:
            page.followers_count += 1
            return page

        page = self.pages.update_page(page_id, bump)
        logger.info(f"👥 {user.id} followed @{page.handle}")
        return {"following": True, "followersCount": page.followers_count}

    def unfollow(self, page_id: str, user: User) -> Dict:
        self.get_page(page_id)
        if not self.follows.remove_follow(user.id, page_id):
            raise ConflictError("Not following this page")

        def drop(page: MunicipalPage) -> MunicipalPage:
            page.followers_count = max(0, page.followers_count - 1)
            return page

        page = self.pages.update_page(page_id, drop)
        return {"following": False, "followersCount": page.followers_count}

    def create_post(self, page_id: str, body: OfficialPostCreate, admin: User) -> Dict:
        """
        Publish an official update on behalf of a page and notify its followers.

        Official updates are stored as issues authored by the page, already
        Resolved, so they never enter the citizen triage queue.
        """
        page = self.get_page(page_id)
        update_type = body.official_update_type or DEFAULT_UPDATE_TYPE

        issue = self.repositories.issues.create_issue(Issue(
            id=new_id(),
            author_type=AuthorType.MUNICIPAL_PAGE,
            municipal_page_id=page.id,
            official_update_type=update_type,
            title=body.title.strip(),
            description=body.description or "",
            image=body.image,
            location=parse_location(body.location),
            category="official",
            department_tag=page.department,
            status=IssueStatus.RESOLVED,
            ai_tags=["official-update"],
            status_timeline=[StatusTimelineEntry(
                status=IssueStatus.RESOLVED.value,
                updated_by=admin.id,
                comment=f"{update_type} published by @{page.handle}",
                dept=page.department,
            )],
        ))
        logger.info(f"📢 Official update {issue.id} posted to @{page.handle}")

        follower_ids = self.follows.get_follower_ids(page.id)
        if follower_ids:
            sent = self.notifier.notify_many(
                follower_ids,
                f"{page.name}: {update_type}",
                issue.title,
                {"type": "official_update", "issueId": issue.id, "municipalPageId": page.id},
            )
            logger.info(f"🔔 Notified {sent} followers of @{page.handle}")

        return enrich_issues(self.repositories, [issue])[0]

    def update_page(self, page_id: str, body: MunicipalPageUpdate) -> Dict:
        changes = body.model_dump(exclude_unset=True, exclude_none=True)

        def apply(page: MunicipalPage) -> MunicipalPage:
            for field, value in changes.items():
                setattr(page, field, value)
            return page

        page = self.pages.update_page(page_id, apply)
        return page_to_api(page)


def get_municipal_service() -> MunicipalService:
    return MunicipalService(get_repositories())
