"""
Issue Service - community feed, issue detail and citizen report submission.
"""

from typing import Dict, Iterable, List, Optional
import logging

from app.core.errors import InvalidInputError, NotFoundError
from app.models.issue import (
    ANONYMOUS_USER_ID,
    AuthorType,
    Issue,
    IssueCreate,
    IssueStatus,
    Severity,
    StatusTimelineEntry,
)
from app.models.user import User, author_summary
from app.repositories import Repositories, get_repositories
from app.repositories.base import new_id
from app.services.gamification_service import (
    FIRST_REPORT_BADGE,
    REPORT_POINTS,
    GamificationService,
)
from app.services.notification_service import NotificationService
from app.utils.field_mapping import comment_to_api, issue_to_api
from app.utils.location import parse_location
from app.utils.time_utils import time_ago

logger = logging.getLogger(__name__)


DEPARTMENT_BY_CATEGORY = {
    "roads": "Roads",
    "lighting": "Electricity",
    "trash": "Sanitation",
    "water": "Water",
    "parks": "Parks",
}

# Severity hint per category until an image model scores the report.
SEVERITY_BY_CATEGORY = {
    "roads": Severity.MEDIUM,
    "lighting": Severity.HIGH,
    "trash": Severity.LOW,
    "water": Severity.MEDIUM,
    "parks": Severity.LOW,
}

BASE_PRIORITY = {
    Severity.LOW: 20,
    Severity.MEDIUM: 35,
    Severity.HIGH: 50,
    Severity.CRITICAL: 70,
}


def classify_severity(category: str, emergency: bool) -> Severity:
    if emergency:
        return Severity.CRITICAL
    return SEVERITY_BY_CATEGORY.get(category, Severity.MEDIUM)


def enrich_issues(repositories: Repositories, issues: Iterable[Issue]) -> List[Dict]:
    """
    API payloads for issues with author summary, relative age and page summary.

    Authors and pages are loaded once per distinct id.
    """
    issues = list(issues)
    user_ids = {i.user_id for i in issues if i.user_id and i.user_id != ANONYMOUS_USER_ID}
    users = {u.id: u for u in repositories.users.get_users(sorted(user_ids))}

    pages = {}
    for page_id in {i.municipal_page_id for i in issues if i.municipal_page_id}:
        page = repositories.pages.get_page(page_id)
        if page is not None:
            pages[page_id] = page

    payloads = []
    for issue in issues:
        data = issue_to_api(issue)
        data["user"] = author_summary(users.get(issue.user_id))
        data["timeAgo"] = time_ago(issue.created_at)
        data["commentCount"] = issue.comment_count
        page = pages.get(issue.municipal_page_id)
        if page is not None:
            data["municipalPage"] = {
                "_id": page.id,
                "name": page.name,
                "handle": page.handle,
                "avatar": page.avatar,
                "verified": page.verified,
            }
        payloads.append(data)
    return payloads


class IssueService:
    """Service for reading and creating issues."""

    def __init__(
        self,
        repositories: Repositories,
        gamification: Optional[GamificationService] = None,
        notifier: Optional[NotificationService] = None,
    ):
        self.repositories = repositories
        self.issues = repositories.issues
        self.gamification = gamification or GamificationService(repositories)
        self.notifier = notifier or NotificationService(repositories)

    def list_issues(
        self,
        filter: Optional[str] = None,
        user_id: Optional[str] = None,
        municipal_page_id: Optional[str] = None,
        author_type: Optional[str] = None,
    ) -> List[Dict]:
        """
        Community feed, newest first.

        Args:
            filter: high_priority | resolved | my_posts | following | trending
            user_id: Requesting user (needed by my_posts and following)
            municipal_page_id: Only posts from this page
            author_type: "User" or "MunicipalPage"
        """
        if author_type is not None:
            try:
                author_type = AuthorType(author_type)
            except ValueError:
                raise InvalidInputError(f"Unknown authorType: {author_type}")

        issues = self.issues.get_issues(filter, user_id, municipal_page_id, author_type)

        if filter == "following" and user_id:
            followed_pages = self.repositories.follows.get_following_page_ids(user_id)
            issues = [
                i for i in issues
                if (i.is_municipal and i.municipal_page_id in followed_pages) or user_id in i.followers
            ]
        elif filter == "trending":
            # sort is stable: equal upvote counts keep newest-first order
            issues.sort(key=lambda i: len(i.upvotes), reverse=True)

        return enrich_issues(self.repositories, issues)

    def get_issue(self, issue_id: str) -> Issue:
        issue = self.issues.get_issue(issue_id)
        if issue is None:
            raise NotFoundError("Issue not found")
        return issue

    def get_issue_detail(self, issue_id: str) -> Dict:
        issue = self.get_issue(issue_id)
        payload = enrich_issues(self.repositories, [issue])[0]
        payload["comments"] = self.list_comment_payloads(issue_id)
        return payload

    def list_comment_payloads(self, issue_id: str) -> List[Dict]:
        comments = self.repositories.comments.list_comments(issue_id)
        authors = {u.id: u for u in self.repositories.users.get_users(c.user_id for c in comments if c.user_id)}
        payloads = []
        for comment in comments:
            data = comment_to_api(comment)
            data["user"] = author_summary(authors.get(comment.user_id))
            data["timeAgo"] = time_ago(comment.created_at)
            payloads.append(data)
        return payloads

    def create_issue(self, body: IssueCreate, author: User) -> Dict:
        title = (body.title or "").strip()
        if not title:
            raise InvalidInputError("Title is required")

        location = parse_location(body.location)
        category = (body.category or "other").strip().lower() or "other"
        severity = classify_severity(category, body.emergency)

        issue = Issue(
            id=new_id(),
            author_type=AuthorType.USER,
            user_id=ANONYMOUS_USER_ID if body.anonymous else author.id,
            title=title,
            description=body.description or "",
            image=body.image,
            video=body.video,
            location=location,
            category=category,
            department_tag=DEPARTMENT_BY_CATEGORY.get(category, "General"),
            status=IssueStatus.SUBMITTED,
            priority_score=BASE_PRIORITY[severity],
            ai_severity=severity,
            ai_tags=[category if category != "other" else "general", "civic-issue"],
            status_timeline=[StatusTimelineEntry(
                status=IssueStatus.SUBMITTED.value,
                comment="EMERGENCY issue reported by citizen" if body.emergency else "Issue reported by citizen",
            )],
            anonymous=body.anonymous,
            emergency=body.emergency,
        )
        issue = self.issues.create_issue(issue)
        logger.info(f"✅ Issue created: {issue.id} ({severity.value}, {category})")

        if not body.anonymous:
            self._reward_reporter(author, issue)

        return enrich_issues(self.repositories, [issue])[0]

    def _reward_reporter(self, author: User, issue: Issue) -> None:
        user = self.gamification.award_points(author.id, REPORT_POINTS, reports_delta=1)
        if user is None:
            return

        if user.reports_count == 1 and self.gamification.grant_badge(user.id, FIRST_REPORT_BADGE):
            self.notifier.send_to_user(
                user.id,
                "Badge Earned: First Report 🏅",
                "You submitted your first civic report!",
                {"type": "badge", "badgeId": FIRST_REPORT_BADGE},
            )

        self.notifier.send_to_user(
            user.id,
            "Report Submitted ✅",
            f"\"{issue.title}\" - AI classified as {issue.ai_severity.value} severity.",
            {"type": "status", "issueId": issue.id, "navigationTarget": f"issue/{issue.id}"},
        )


def get_issue_service() -> IssueService:
    return IssueService(get_repositories())
