"""
Vote Service - upvote/downvote/follow toggles on issues.

Votes live on the issue document (user id lists) and every toggle is one
atomic update_issue call, so the list change and the priority score change
can't drift apart under concurrent requests.
"""

from typing import Dict, Optional
import logging

from app.models.issue import ANONYMOUS_USER_ID, Issue
from app.models.user import User
from app.repositories import Repositories, get_repositories
from app.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

MAX_PRIORITY = 100


class VoteService:
    """Service for managing votes on issues."""

    def __init__(self, repositories: Repositories, notifier: Optional[NotificationService] = None):
        self.issues = repositories.issues
        self.notifier = notifier or NotificationService(repositories)

    def toggle_upvote(self, issue_id: str, user: User) -> Dict:
        """
        Add or remove the user's upvote.

        Adding raises priority by one (capped at 100) and drops any downvote
        by the same user; removing lowers it by one (floored at 0).
        """
        # The mutator may run more than once under a retried transaction.
        outcome = {"added": False}

        def apply(issue: Issue) -> Issue:
            if user.id in issue.upvotes:
                issue.upvotes.remove(user.id)
                issue.priority_score = max(0, issue.priority_score - 1)
                outcome["added"] = False
            else:
                issue.upvotes.append(user.id)
                if user.id in issue.downvotes:
                    issue.downvotes.remove(user.id)
                issue.priority_score = min(MAX_PRIORITY, issue.priority_score + 1)
                outcome["added"] = True
            return issue

        issue = self.issues.update_issue(issue_id, apply)

        if outcome["added"] and issue.user_id not in (None, ANONYMOUS_USER_ID, user.id):
            self.notifier.send_to_user(
                issue.user_id,
                f"{user.name} upvoted your report",
                f"\"{issue.title}\" now has {len(issue.upvotes)} upvotes.",
                {"type": "upvote", "issueId": issue.id},
            )

        return {
            "upvotes": issue.upvotes,
            "upvoted": outcome["added"],
            "priorityScore": issue.priority_score,
        }

    def toggle_downvote(self, issue_id: str, user: User) -> Dict:
        """
        Add or remove the user's downvote.

        Adding lowers priority by one (floored at 0) and drops any upvote by
        the same user; removing raises it by one (capped at 100).
        """
        outcome = {"added": False}

        def apply(issue: Issue) -> Issue:
            if user.id in issue.downvotes:
                issue.downvotes.remove(user.id)
                issue.priority_score = min(MAX_PRIORITY, issue.priority_score + 1)
                outcome["added"] = False
            else:
                issue.downvotes.append(user.id)
                if user.id in issue.upvotes:
                    issue.upvotes.remove(user.id)
                issue.priority_score = max(0, issue.priority_score - 1)
                outcome["added"] = True
            return issue

        issue = self.issues.update_issue(issue_id, apply)
        return {
            "downvotes": issue.downvotes,
            "downvoted": outcome["added"],
            "priorityScore": issue.priority_score,
        }

    def toggle_follow(self, issue_id: str, user: User) -> Dict:
        outcome = {"following": False}

        def apply(issue: Issue) -> Issue:
            outcome["following"] = user.id not in issue.followers
            if outcome["following"]:
                issue.followers.append(user.id)
            else:
                issue.followers.remove(user.id)
            return issue

        issue = self.issues.update_issue(issue_id, apply)
        return {"followers": issue.followers, "following": outcome["following"]}


def get_vote_service() -> VoteService:
    return VoteService(get_repositories())
