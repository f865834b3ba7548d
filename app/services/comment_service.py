"""
Comment Service - Handle comments on issues.
"""

from typing import Dict, Optional
import logging

from app.core.errors import InvalidInputError
from app.models.issue import ANONYMOUS_USER_ID, Comment, Issue
from app.models.user import User, author_summary
from app.repositories import Repositories, get_repositories
from app.repositories.base import new_id
from app.services.gamification_service import COMMENT_POINTS, GamificationService
from app.services.notification_service import NotificationService
from app.utils.field_mapping import comment_to_api

logger = logging.getLogger(__name__)


class CommentService:
    """Service for managing comments on issues."""

    def __init__(
        self,
        repositories: Repositories,
        gamification: Optional[GamificationService] = None,
        notifier: Optional[NotificationService] = None,
    ):
        self.issues = repositories.issues
        self.comments = repositories.comments
        self.gamification = gamification or GamificationService(repositories)
        self.notifier = notifier or NotificationService(repositories)

    def add_comment(self, issue_id: str, text: str, author: User) -> Dict:
        """
        Add a comment to an issue.

        The commenter earns points and the issue owner (if it isn't the
        commenter or an anonymous report) is notified.

        Returns:
            Comment payload with author summary
        """
        text = (text or "").strip()
        if not text:
            raise InvalidInputError("Comment text is required")

        def bump(issue: Issue) -> Issue:
            issue.comment_count += 1
            return issue

        # Raises NotFoundError before anything is written for a missing issue.
        issue = self.issues.update_issue(issue_id, bump)

        comment = self.comments.create_comment(Comment(
            id=new_id(),
            issue_id=issue_id,
            user_id=author.id,
            text=text,
        ))

        self.gamification.award_points(author.id, COMMENT_POINTS)

        if issue.user_id not in (None, ANONYMOUS_USER_ID, author.id):
            preview = text if len(text) <= 50 else f"{text[:50]}..."
            self.notifier.send_to_user(
                issue.user_id,
                f"{author.name} commented on your report",
                f"\"{preview}\"",
                {"type": "comment", "issueId": issue_id},
            )

        data = comment_to_api(comment)
        data["user"] = author_summary(author)
        data["timeAgo"] = "Just now"
        return data


def get_comment_service() -> CommentService:
    return CommentService(get_repositories())
