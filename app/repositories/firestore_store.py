"""
Firestore-backed stores.

Collections:
    issues, follows, municipal_post_seen, municipal_pages, users,
    comments, notifications, push_tokens, badges

Relation collections (follows, municipal_post_seen) use a document id derived
from the pair, so inserts are keyed upserts and concurrent duplicates converge.
"""

import functools
import logging
from typing import Callable, Iterable, List, Optional, Set

from firebase_admin import firestore
from google.api_core import exceptions as google_exceptions

from app.config.firebase import get_db
from app.core.errors import NotFoundError, UpstreamFailure
from app.core.settings import settings
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
from app.utils.field_mapping import issue_from_row, issue_to_row, model_to_row
from app.utils.firestore_helpers import chunked, doc_to_row, pair_doc_id, where_filter

logger = logging.getLogger(__name__)


def _upstream(fn):
    """Translate Google API client errors into UpstreamFailure."""

    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except (google_exceptions.GoogleAPIError, google_exceptions.RetryError) as e:
            logger.error(f"❌ Firestore error in {fn.__qualname__}: {e}")
            raise UpstreamFailure(f"Database error: {e}") from e

    return wrapper


def _without_id(row: dict) -> dict:
    row = dict(row)
    row.pop("id", None)
    return row


class _FirestoreStore:

    def __init__(self, db=None):
        self.db = db or get_db()
        self.timeout = settings.STORE_TIMEOUT_SECONDS

    def _stream(self, query) -> List[dict]:
        return [doc_to_row(doc) for doc in query.stream(timeout=self.timeout)]

    def _get(self, collection: str, doc_id: str) -> Optional[dict]:
        snapshot = self.db.collection(collection).document(doc_id).get(timeout=self.timeout)
        return doc_to_row(snapshot) if snapshot.exists else None

    def _transactional_update(self, collection: str, doc_id: str, parse, serialize, mutate, missing: str):
        ref = self.db.collection(collection).document(doc_id)

        @firestore.transactional
        def apply(transaction):
            snapshot = ref.get(transaction=transaction)
            if not snapshot.exists:
                raise NotFoundError(missing)
            updated = mutate(parse(doc_to_row(snapshot)))
            transaction.set(ref, _without_id(serialize(updated)))
            return updated

        return apply(self.db.transaction())


class FirestoreIssueStore(_FirestoreStore, IssueStore):

    @_upstream
    def get_issues(self, filter, user_id, municipal_page_id=None, author_type=None) -> List[Issue]:
        query = self.db.collection("issues")

        if municipal_page_id:
            query = where_filter(query, "municipal_page_id", "==", municipal_page_id)
        if author_type:
            query = where_filter(query, "author_type", "==", AuthorType(author_type).value)

        if filter == "high_priority":
            query = where_filter(query, "ai_severity", "in", list(HIGH_PRIORITY_SEVERITIES))
        elif filter == "resolved":
            query = where_filter(query, "status", "==", IssueStatus.RESOLVED.value)
        elif filter == "my_posts" and user_id:
            query = where_filter(query, "user_id", "==", user_id)

        # Ordering is applied client-side so the id tie-break needs no composite index.
        return sort_newest_first([issue_from_row(row) for row in self._stream(query)])

    @_upstream
    def get_issue(self, issue_id: str) -> Optional[Issue]:
        row = self._get("issues", issue_id)
        return issue_from_row(row) if row else None

    @_upstream
    def create_issue(self, issue: Issue) -> Issue:
        self.db.collection("issues").document(issue.id).set(_without_id(issue_to_row(issue)))
        return issue

    @_upstream
    def update_issue(self, issue_id: str, mutate: Callable[[Issue], Issue]) -> Issue:
        return self._transactional_update(
            "issues", issue_id, issue_from_row, issue_to_row, mutate, "Issue not found"
        )

    @_upstream
    def get_issues_assigned_to(self, worker_id: str) -> List[Issue]:
        query = where_filter(self.db.collection("issues"), "assigned_to", "==", worker_id)
        return sort_newest_first([issue_from_row(row) for row in self._stream(query)])


class FirestoreFollowStore(_FirestoreStore, FollowStore):

    @_upstream
    def get_following_page_ids(self, user_id: str) -> Set[str]:
        query = where_filter(self.db.collection("follows"), "follower_id", "==", user_id)
        return {row["following_id"] for row in self._stream(query)}

    @_upstream
    def is_following(self, user_id: str, page_id: str) -> bool:
        return self._get("follows", pair_doc_id(user_id, page_id)) is not None

    @_upstream
    def add_follow(self, user_id: str, page_id: str) -> bool:
        ref = self.db.collection("follows").document(pair_doc_id(user_id, page_id))
        try:
            ref.create({
                "follower_id": user_id,
                "following_id": page_id,
                "notifications_enabled": True,
                "timestamp": firestore.SERVER_TIMESTAMP,
            })
        except google_exceptions.AlreadyExists:
            return False
        return True

    @_upstream
    def remove_follow(self, user_id: str, page_id: str) -> bool:
        ref = self.db.collection("follows").document(pair_doc_id(user_id, page_id))
        if not ref.get(timeout=self.timeout).exists:
            return False
        ref.delete()
        return True

    @_upstream
    def get_follower_ids(self, page_id: str) -> List[str]:
        query = where_filter(self.db.collection("follows"), "following_id", "==", page_id)
        return sorted(row["follower_id"] for row in self._stream(query))


class FirestoreSeenStore(_FirestoreStore, SeenStore):

    @_upstream
    def get_seen_ids(self, user_id: str, issue_ids: Iterable[str]) -> Set[str]:
        ids = list(dict.fromkeys(issue_ids))
        if not ids:
            return set()
        seen: Set[str] = set()
        for batch in chunked(ids):
            query = where_filter(self.db.collection("municipal_post_seen"), "user_id", "==", user_id)
            query = where_filter(query, "issue_id", "in", batch)
            seen.update(row["issue_id"] for row in self._stream(query))
        return seen

    @_upstream
    def mark_seen(self, user_id: str, issue_id: str) -> None:
        ref = self.db.collection("municipal_post_seen").document(pair_doc_id(user_id, issue_id))
        ref.set({
            "user_id": user_id,
            "issue_id": issue_id,
            "seen_at": firestore.SERVER_TIMESTAMP,
        }, merge=True)


class FirestoreMunicipalPageStore(_FirestoreStore, MunicipalPageStore):

    @_upstream
    def get_page(self, page_id: str) -> Optional[MunicipalPage]:
        row = self._get("municipal_pages", page_id)
        return MunicipalPage(**row) if row else None

    @_upstream
    def get_page_by_handle(self, handle: str) -> Optional[MunicipalPage]:
        query = where_filter(self.db.collection("municipal_pages"), "handle", "==", handle).limit(1)
        rows = self._stream(query)
        return MunicipalPage(**rows[0]) if rows else None

    @_upstream
    def list_active_pages(self) -> List[MunicipalPage]:
        query = where_filter(self.db.collection("municipal_pages"), "is_active", "==", True)
        pages = [MunicipalPage(**row) for row in self._stream(query)]
        return sorted(pages, key=lambda p: (p.created_at, p.id))

    @_upstream
    def create_page(self, page: MunicipalPage) -> MunicipalPage:
        self.db.collection("municipal_pages").document(page.id).set(_without_id(model_to_row(page)))
        return page

    @_upstream
    def update_page(self, page_id, mutate) -> MunicipalPage:
        return self._transactional_update(
            "municipal_pages", page_id, lambda row: MunicipalPage(**row), model_to_row, mutate, "Page not found"
        )


class FirestoreUserStore(_FirestoreStore, UserStore):

    @_upstream
    def get_user(self, user_id: str) -> Optional[User]:
        row = self._get("users", user_id)
        return User(**row) if row else None

    @_upstream
    def get_user_by_username(self, username: str) -> Optional[User]:
        query = where_filter(self.db.collection("users"), "username", "==", username).limit(1)
        rows = self._stream(query)
        return User(**rows[0]) if rows else None

    @_upstream
    def get_users(self, user_ids: Iterable[str]) -> List[User]:
        refs = [self.db.collection("users").document(u) for u in dict.fromkeys(user_ids)]
        if not refs:
            return []
        return [User(**doc_to_row(doc)) for doc in self.db.get_all(refs, timeout=self.timeout) if doc.exists]

    @_upstream
    def list_users(self, role: Optional[UserRole] = None) -> List[User]:
        query = self.db.collection("users")
        if role is not None:
            query = where_filter(query, "role", "==", UserRole(role).value)
        return [User(**row) for row in self._stream(query)]

    @_upstream
    def create_user(self, user: User) -> User:
        self.db.collection("users").document(user.id).set(_without_id(model_to_row(user)))
        return user

    @_upstream
    def update_user(self, user_id, mutate) -> User:
        return self._transactional_update(
            "users", user_id, lambda row: User(**row), model_to_row, mutate, "User not found"
        )


class FirestoreCommentStore(_FirestoreStore, CommentStore):

    @_upstream
    def list_comments(self, issue_id: str) -> List[Comment]:
        query = where_filter(self.db.collection("comments"), "issue_id", "==", issue_id)
        comments = [Comment(**row) for row in self._stream(query)]
        return sorted(comments, key=lambda c: c.created_at)

    @_upstream
    def create_comment(self, comment: Comment) -> Comment:
        self.db.collection("comments").document(comment.id).set(_without_id(model_to_row(comment)))
        return comment


class FirestoreNotificationStore(_FirestoreStore, NotificationStore):

    def _user_notifications(self, user_id: str):
        return where_filter(self.db.collection("notifications"), "user_id", "==", user_id)

    @_upstream
    def list_notifications(self, user_id: str) -> List[Notification]:
        items = [Notification(**row) for row in self._stream(self._user_notifications(user_id))]
        return sorted(items, key=lambda n: (n.created_at, n.id), reverse=True)

    @_upstream
    def create_notification(self, notification: Notification) -> Notification:
        self.db.collection("notifications").document(notification.id).set(
            _without_id(model_to_row(notification))
        )
        return notification

    @_upstream
    def mark_all_read(self, user_id: str) -> None:
        query = where_filter(self._user_notifications(user_id), "read", "==", False)
        batch = self.db.batch()
        for doc in query.stream(timeout=self.timeout):
            batch.update(doc.reference, {"read": True})
        batch.commit()

    @_upstream
    def mark_read(self, notification_id: str, user_id: str) -> Optional[Notification]:
        row = self._get("notifications", notification_id)
        if row is None or row.get("user_id") != user_id:
            return None
        self.db.collection("notifications").document(notification_id).update({"read": True})
        row["read"] = True
        return Notification(**row)

    @_upstream
    def delete_notification(self, notification_id: str, user_id: str) -> bool:
        row = self._get("notifications", notification_id)
        if row is None or row.get("user_id") != user_id:
            return False
        self.db.collection("notifications").document(notification_id).delete()
        return True

    @_upstream
    def delete_all(self, user_id: str) -> None:
        batch = self.db.batch()
        for doc in self._user_notifications(user_id).stream(timeout=self.timeout):
            batch.delete(doc.reference)
        batch.commit()

    @_upstream
    def add_push_token(self, token: PushToken) -> PushToken:
        # Token value is the document id: re-registering a device moves it to the new user.
        self.db.collection("push_tokens").document(token.token).set(model_to_row(token))
        return token

    @_upstream
    def get_push_tokens(self, user_id: str) -> List[PushToken]:
        query = where_filter(self.db.collection("push_tokens"), "user_id", "==", user_id)
        return [PushToken(**row) for row in self._stream(query)]

    @_upstream
    def delete_push_token(self, token: str) -> bool:
        self.db.collection("push_tokens").document(token).delete()
        return True


class FirestoreBadgeStore(_FirestoreStore, BadgeStore):

    @_upstream
    def list_badges(self) -> List[Badge]:
        return [Badge(**row) for row in self._stream(self.db.collection("badges"))]

    @_upstream
    def upsert_badge(self, badge: Badge) -> Badge:
        self.db.collection("badges").document(badge.id).set(_without_id(model_to_row(badge)))
        return badge
