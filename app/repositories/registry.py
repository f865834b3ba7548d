"""
Store registry.

Builds the set of stores selected by settings (Firestore, or in-memory when
USE_MOCK_DB is set) once per process. Tests install their own set with
use_repositories().
"""

from dataclasses import dataclass
from typing import Optional
import logging

from app.core.settings import settings
from app.repositories.base import (
    BadgeStore,
    CommentStore,
    FollowStore,
    IssueStore,
    MunicipalPageStore,
    NotificationStore,
    SeenStore,
    UserStore,
)

logger = logging.getLogger(__name__)


@dataclass
class Repositories:
    issues: IssueStore
    follows: FollowStore
    seen: SeenStore
    pages: MunicipalPageStore
    users: UserStore
    comments: CommentStore
    notifications: NotificationStore
    badges: BadgeStore


def build_memory_repositories() -> Repositories:
    from app.repositories.memory_store import (
        InMemoryBadgeStore,
        InMemoryCommentStore,
        InMemoryFollowStore,
        InMemoryIssueStore,
        InMemoryMunicipalPageStore,
        InMemoryNotificationStore,
        InMemorySeenStore,
        InMemoryUserStore,
    )

    return Repositories(
        issues=InMemoryIssueStore(),
        follows=InMemoryFollowStore(),
        seen=InMemorySeenStore(),
        pages=InMemoryMunicipalPageStore(),
        users=InMemoryUserStore(),
        comments=InMemoryCommentStore(),
        notifications=InMemoryNotificationStore(),
        badges=InMemoryBadgeStore(),
    )


def build_firestore_repositories() -> Repositories:
    from app.config.firebase import get_db
    from app.repositories.firestore_store import (
        FirestoreBadgeStore,
        FirestoreCommentStore,
        FirestoreFollowStore,
        FirestoreIssueStore,
        FirestoreMunicipalPageStore,
        FirestoreNotificationStore,
        FirestoreSeenStore,
        FirestoreUserStore,
    )

    db = get_db()
    return Repositories(
        issues=FirestoreIssueStore(db),
        follows=FirestoreFollowStore(db),
        seen=FirestoreSeenStore(db),
        pages=FirestoreMunicipalPageStore(db),
        users=FirestoreUserStore(db),
        comments=FirestoreCommentStore(db),
        notifications=FirestoreNotificationStore(db),
        badges=FirestoreBadgeStore(db),
    )


_repositories: Optional[Repositories] = None


def get_repositories() -> Repositories:
    """Get or build the process-wide store set."""
    global _repositories
    if _repositories is None:
        if settings.USE_MOCK_DB:
            logger.info("[STORE] USING IN-MEMORY STORES")
            _repositories = build_memory_repositories()
        else:
            _repositories = build_firestore_repositories()
    return _repositories


def use_repositories(repositories: Optional[Repositories]) -> None:
    """Install a specific store set (or None to rebuild from settings on next use)."""
    global _repositories
    _repositories = repositories
