"""
Store interfaces.

Every backing store (Firestore, in-memory) implements these. Services depend
only on the interfaces and receive concrete stores from
app.repositories.registry.

Contract shared by all stores:
- Methods are synchronous; async callers wrap them in asyncio.to_thread.
- Reads return models from app.models, never raw rows.
- Failures talking to the backend raise UpstreamFailure.
- update_* methods apply `mutate` atomically (transaction or lock) and raise
  NotFoundError when the target does not exist.
"""

import uuid
from abc import ABC, abstractmethod
from typing import Callable, Iterable, List, Optional, Set

from app.models.gamification import Badge
from app.models.issue import AuthorType, Comment, Issue
from app.models.municipal import MunicipalPage
from app.models.notification import Notification, PushToken
from app.models.user import User, UserRole
from app.utils.time_utils import to_millis


def new_id() -> str:
    return str(uuid.uuid4())


class IssueStore(ABC):

    @abstractmethod
    def get_issues(
        self,
        filter: Optional[str],
        user_id: Optional[str],
        municipal_page_id: Optional[str] = None,
        author_type: Optional[AuthorType] = None,
    ) -> List[Issue]:
        """
        Issues newest first (ties: id descending).

        Store-level filters: "high_priority" (High/Critical severity),
        "resolved", "my_posts" (requires user_id). Other filter tokens are
        ignored here.
        """
        raise NotImplementedError

    @abstractmethod
    def get_issue(self, issue_id: str) -> Optional[Issue]:
        raise NotImplementedError

    @abstractmethod
    def create_issue(self, issue: Issue) -> Issue:
        raise NotImplementedError

    @abstractmethod
    def update_issue(self, issue_id: str, mutate: Callable[[Issue], Issue]) -> Issue:
        raise NotImplementedError

    @abstractmethod
    def get_issues_assigned_to(self, worker_id: str) -> List[Issue]:
        raise NotImplementedError


class FollowStore(ABC):
    """User -> municipal page follows. Set semantics."""

    @abstractmethod
    def get_following_page_ids(self, user_id: str) -> Set[str]:
        raise NotImplementedError

    @abstractmethod
    def is_following(self, user_id: str, page_id: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def add_follow(self, user_id: str, page_id: str) -> bool:
        """Returns False when the pair already existed."""
        raise NotImplementedError

    @abstractmethod
    def remove_follow(self, user_id: str, page_id: str) -> bool:
        """Returns False when the pair did not exist."""
        raise NotImplementedError

    @abstractmethod
    def get_follower_ids(self, page_id: str) -> List[str]:
        raise NotImplementedError


class SeenStore(ABC):
    """Which municipal posts a user has been shown. Rows are never deleted."""

    @abstractmethod
    def get_seen_ids(self, user_id: str, issue_ids: Iterable[str]) -> Set[str]:
        """Subset of issue_ids the user has seen. Looks up only the given ids."""
        raise NotImplementedError

    @abstractmethod
    def mark_seen(self, user_id: str, issue_id: str) -> None:
        """Idempotent upsert of the (user_id, issue_id) pair."""
        raise NotImplementedError


class MunicipalPageStore(ABC):

    @abstractmethod
    def get_page(self, page_id: str) -> Optional[MunicipalPage]:
        raise NotImplementedError

    @abstractmethod
    def get_page_by_handle(self, handle: str) -> Optional[MunicipalPage]:
        raise NotImplementedError

    @abstractmethod
    def list_active_pages(self) -> List[MunicipalPage]:
        """Active pages ordered by creation time (oldest first)."""
        raise NotImplementedError

    @abstractmethod
    def create_page(self, page: MunicipalPage) -> MunicipalPage:
        raise NotImplementedError

    @abstractmethod
    def update_page(self, page_id: str, mutate: Callable[[MunicipalPage], MunicipalPage]) -> MunicipalPage:
        raise NotImplementedError


class UserStore(ABC):

    @abstractmethod
    def get_user(self, user_id: str) -> Optional[User]:
        raise NotImplementedError

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[User]:
        """Exact match on the stored (lowercase) username."""
        raise NotImplementedError

    @abstractmethod
    def get_users(self, user_ids: Iterable[str]) -> List[User]:
        raise NotImplementedError

    @abstractmethod
    def list_users(self, role: Optional[UserRole] = None) -> List[User]:
        raise NotImplementedError

    @abstractmethod
    def create_user(self, user: User) -> User:
        raise NotImplementedError

    @abstractmethod
    def update_user(self, user_id: str, mutate: Callable[[User], User]) -> User:
        raise NotImplementedError


class CommentStore(ABC):

    @abstractmethod
    def list_comments(self, issue_id: str) -> List[Comment]:
        """Oldest first."""
        raise NotImplementedError

    @abstractmethod
    def create_comment(self, comment: Comment) -> Comment:
        raise NotImplementedError


class NotificationStore(ABC):

    @abstractmethod
    def list_notifications(self, user_id: str) -> List[Notification]:
        """Newest first."""
        raise NotImplementedError

    @abstractmethod
    def create_notification(self, notification: Notification) -> Notification:
        raise NotImplementedError

    @abstractmethod
    def mark_all_read(self, user_id: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def mark_read(self, notification_id: str, user_id: str) -> Optional[Notification]:
        raise NotImplementedError

    @abstractmethod
    def delete_notification(self, notification_id: str, user_id: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def delete_all(self, user_id: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def add_push_token(self, token: PushToken) -> PushToken:
        """Upsert keyed by token value."""
        raise NotImplementedError

    @abstractmethod
    def get_push_tokens(self, user_id: str) -> List[PushToken]:
        raise NotImplementedError

    @abstractmethod
    def delete_push_token(self, token: str) -> bool:
        raise NotImplementedError


class BadgeStore(ABC):

    @abstractmethod
    def list_badges(self) -> List[Badge]:
        raise NotImplementedError

    @abstractmethod
    def upsert_badge(self, badge: Badge) -> Badge:
        raise NotImplementedError


HIGH_PRIORITY_SEVERITIES = ("Critical", "High")


def sort_newest_first(issues: List[Issue]) -> List[Issue]:
    """created_at descending, then id descending."""
    return sorted(issues, key=lambda i: (to_millis(i.created_at), i.id), reverse=True)
