"""
In-memory stores for local development (USE_MOCK_DB=true) and tests.

State lives on the store instances, not at module level; whoever builds the
stores owns their lifetime. A single lock per store serializes writes so the
update_* contract (atomic mutate) holds under concurrent requests. Models are
copied on the way in and out so callers never share state with the store.
"""

import threading
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from app.core.errors import NotFoundError
from app.models.gamification import Badge
from app.models.issue import AuthorType, Comment, Issue, IssueStatus
from app.models.municipal import MunicipalPage
from app.models.notification import Notification, PushToken
from app.models.user import User, UserRole
from app.repositories.base import (
    BadgeStore,
    CommentStore,
    FollowStore,
    HIGH_PRIORITY_SEVERITIES,
    IssueStore,
    MunicipalPageStore,
    NotificationStore,
    SeenStore,
    UserStore,
    sort_newest_first,
)


def _copy(model):
    return model.model_copy(deep=True)


class InMemoryIssueStore(IssueStore):

    def __init__(self):
        self._issues: Dict[str, Issue] = {}
        self._lock = threading.Lock()

    def get_issues(self, filter, user_id, municipal_page_id=None, author_type=None) -> List[Issue]:
        with self._lock:
            issues = [_copy(i) for i in self._issues.values()]

        if municipal_page_id:
            issues = [i for i in issues if i.municipal_page_id == municipal_page_id]
        if author_type:
            issues = [i for i in issues if i.author_type == AuthorType(author_type)]

        if filter == "high_priority":
            issues = [i for i in issues if i.ai_severity.value in HIGH_PRIORITY_SEVERITIES]
        elif filter == "resolved":
            issues = [i for i in issues if i.status == IssueStatus.RESOLVED]
        elif filter == "my_posts" and user_id:
            issues = [i for i in issues if i.user_id == user_id]

        return sort_newest_first(issues)

    def get_issue(self, issue_id: str) -> Optional[Issue]:
        with self._lock:
            issue = self._issues.get(issue_id)
            return _copy(issue) if issue else None

    def create_issue(self, issue: Issue) -> Issue:
        with self._lock:
            self._issues[issue.id] = _copy(issue)
        return _copy(issue)

    def update_issue(self, issue_id: str, mutate: Callable[[Issue], Issue]) -> Issue:
        with self._lock:
            current = self._issues.get(issue_id)
            if current is None:
                raise NotFoundError("Issue not found")
            updated = mutate(_copy(current))
            self._issues[issue_id] = _copy(updated)
            return _copy(updated)

    def get_issues_assigned_to(self, worker_id: str) -> List[Issue]:
        with self._lock:
            issues = [_copy(i) for i in self._issues.values() if i.assigned_to == worker_id]
        return sort_newest_first(issues)


class InMemoryFollowStore(FollowStore):

    def __init__(self):
        self._pairs: Set[Tuple[str, str]] = set()
        self._lock = threading.Lock()

    def get_following_page_ids(self, user_id: str) -> Set[str]:
        with self._lock:
            return {page_id for follower, page_id in self._pairs if follower == user_id}

    def is_following(self, user_id: str, page_id: str) -> bool:
        with self._lock:
            return (user_id, page_id) in self._pairs

    def add_follow(self, user_id: str, page_id: str) -> bool:
        with self._lock:
            if (user_id, page_id) in self._pairs:
                return False
            self._pairs.add((user_id, page_id))
            return True

    def remove_follow(self, user_id: str, page_id: str) -> bool:
        with self._lock:
            if (user_id, page_id) not in self._pairs:
                return False
            self._pairs.discard((user_id, page_id))
            return True

    def get_follower_ids(self, page_id: str) -> List[str]:
        with self._lock:
            return sorted(follower for follower, followed in self._pairs if followed == page_id)


class InMemorySeenStore(SeenStore):

    def __init__(self):
        self._pairs: Set[Tuple[str, str]] = set()
        self._lock = threading.Lock()

    def get_seen_ids(self, user_id: str, issue_ids: Iterable[str]) -> Set[str]:
        wanted = set(issue_ids)
        if not wanted:
            return set()
        with self._lock:
            return {issue_id for issue_id in wanted if (user_id, issue_id) in self._pairs}

    def mark_seen(self, user_id: str, issue_id: str) -> None:
        with self._lock:
            self._pairs.add((user_id, issue_id))

    def pairs(self) -> Set[Tuple[str, str]]:
        with self._lock:
            return set(self._pairs)


class InMemoryMunicipalPageStore(MunicipalPageStore):

    def __init__(self):
        self._pages: Dict[str, MunicipalPage] = {}
        self._lock = threading.Lock()

    def get_page(self, page_id: str) -> Optional[MunicipalPage]:
        with self._lock:
            page = self._pages.get(page_id)
            return _copy(page) if page else None

    def get_page_by_handle(self, handle: str) -> Optional[MunicipalPage]:
        with self._lock:
            for page in self._pages.values():
                if page.handle == handle:
                    return _copy(page)
        return None

    def list_active_pages(self) -> List[MunicipalPage]:
        with self._lock:
            pages = [_copy(p) for p in self._pages.values() if p.is_active]
        return sorted(pages, key=lambda p: (p.created_at, p.id))

    def create_page(self, page: MunicipalPage) -> MunicipalPage:
        with self._lock:
            self._pages[page.id] = _copy(page)
        return _copy(page)

    def update_page(self, page_id: str, mutate: Callable[[MunicipalPage], MunicipalPage]) -> MunicipalPage:
        with self._lock:
            current = self._pages.get(page_id)
            if current is None:
                raise NotFoundError("Page not found")
            updated = mutate(_copy(current))
            self._pages[page_id] = _copy(updated)
            return _copy(updated)


class InMemoryUserStore(UserStore):

    def __init__(self):
        self._users: Dict[str, User] = {}
        self._lock = threading.Lock()

    def get_user(self, user_id: str) -> Optional[User]:
        with self._lock:
            user = self._users.get(user_id)
            return _copy(user) if user else None

    def get_user_by_username(self, username: str) -> Optional[User]:
        with self._lock:
            for user in self._users.values():
                if user.username == username:
                    return _copy(user)
        return None

    def get_users(self, user_ids: Iterable[str]) -> List[User]:
        with self._lock:
            return [_copy(self._users[u]) for u in dict.fromkeys(user_ids) if u in self._users]

    def list_users(self, role: Optional[UserRole] = None) -> List[User]:
        with self._lock:
            return [_copy(u) for u in self._users.values() if role is None or u.role == role]

    def create_user(self, user: User) -> User:
        with self._lock:
            self._users[user.id] = _copy(user)
        return _copy(user)

    def update_user(self, user_id: str, mutate: Callable[[User], User]) -> User:
        with self._lock:
            current = self._users.get(user_id)
            if current is None:
                raise NotFoundError("User not found")
            updated = mutate(_copy(current))
            self._users[user_id] = _copy(updated)
            return _copy(updated)


class InMemoryCommentStore(CommentStore):

    def __init__(self):
        self._comments: List[Comment] = []
        self._lock = threading.Lock()

    def list_comments(self, issue_id: str) -> List[Comment]:
        with self._lock:
            comments = [_copy(c) for c in self._comments if c.issue_id == issue_id]
        return sorted(comments, key=lambda c: c.created_at)

    def create_comment(self, comment: Comment) -> Comment:
        with self._lock:
            self._comments.append(_copy(comment))
        return _copy(comment)


class InMemoryNotificationStore(NotificationStore):

    def __init__(self):
        self._notifications: Dict[str, Notification] = {}
        self._tokens: Dict[str, PushToken] = {}
        self._lock = threading.Lock()

    def list_notifications(self, user_id: str) -> List[Notification]:
        with self._lock:
            items = [_copy(n) for n in self._notifications.values() if n.user_id == user_id]
        return sorted(items, key=lambda n: (n.created_at, n.id), reverse=True)

    def create_notification(self, notification: Notification) -> Notification:
        with self._lock:
            self._notifications[notification.id] = _copy(notification)
        return _copy(notification)

    def mark_all_read(self, user_id: str) -> None:
        with self._lock:
            for notification in self._notifications.values():
                if notification.user_id == user_id:
                    notification.read = True

    def mark_read(self, notification_id: str, user_id: str) -> Optional[Notification]:
        with self._lock:
            notification = self._notifications.get(notification_id)
            if notification is None or notification.user_id != user_id:
                return None
            notification.read = True
            return _copy(notification)

    def delete_notification(self, notification_id: str, user_id: str) -> bool:
        with self._lock:
            notification = self._notifications.get(notification_id)
            if notification is None or notification.user_id != user_id:
                return False
            del self._notifications[notification_id]
            return True

    def delete_all(self, user_id: str) -> None:
        with self._lock:
            for notification_id in [k for k, n in self._notifications.items() if n.user_id == user_id]:
                del self._notifications[notification_id]

    def add_push_token(self, token: PushToken) -> PushToken:
        with self._lock:
            self._tokens[token.token] = _copy(token)
        return _copy(token)

    def get_push_tokens(self, user_id: str) -> List[PushToken]:
        with self._lock:
            return [_copy(t) for t in self._tokens.values() if t.user_id == user_id]

    def delete_push_token(self, token: str) -> bool:
        with self._lock:
            return self._tokens.pop(token, None) is not None


class InMemoryBadgeStore(BadgeStore):

    def __init__(self):
        self._badges: Dict[str, Badge] = {}
        self._lock = threading.Lock()

    def list_badges(self) -> List[Badge]:
        with self._lock:
            return [_copy(b) for b in self._badges.values()]

    def upsert_badge(self, badge: Badge) -> Badge:
        with self._lock:
            self._badges[badge.id] = _copy(badge)
        return _copy(badge)
