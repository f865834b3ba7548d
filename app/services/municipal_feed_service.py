"""
Municipal Feed Service - personalized feed of official page updates.

Reads run concurrently on worker threads (the Firestore Admin SDK is
synchronous): issues and followed pages together, then the seen lookup for
exactly the issue ids that came back. Ranking itself is pure, see
app.services.feed_ranker.

Any store failure fails the whole request with UpstreamFailure; a feed is
never assembled from partial reads.
"""

from typing import Dict, List, Optional
import asyncio
import logging

from app.core.errors import (
    InvalidOperationError,
    NotFoundError,
    UpstreamFailure,
    UrbanFixError,
)
from app.models.issue import AuthorType
from app.repositories import Repositories, get_repositories
from app.services.feed_ranker import clamp_limit, rank_feed
from app.services.issue_service import enrich_issues

logger = logging.getLogger(__name__)


class MunicipalFeedService:
    """Service for the municipal feed and seen tracking."""

    def __init__(self, repositories: Repositories):
        self.repositories = repositories

    async def get_feed(self, user_id: str, filter: Optional[str] = None, limit=None) -> List[Dict]:
        """
        Ranked municipal posts for user_id.

        Args:
            user_id: Requesting user
            filter: Passed through to the issue store unchanged
            limit: Raw page size, clamped to 1..FEED_MAX_LIMIT

        Returns:
            Enriched issue payloads with isSeen, isFollowingPage and feedBucket
        """
        limit = clamp_limit(limit)
        repos = self.repositories

        try:
            issues, following = await asyncio.gather(
                asyncio.to_thread(
                    repos.issues.get_issues, filter, user_id, None, AuthorType.MUNICIPAL_PAGE
                ),
                asyncio.to_thread(repos.follows.get_following_page_ids, user_id),
            )
            issue_ids = [issue.id for issue in issues]
            seen = await asyncio.to_thread(repos.seen.get_seen_ids, user_id, issue_ids)
        except UrbanFixError:
            raise
        except Exception as e:
            logger.error(f"❌ Municipal feed read failed for user {user_id}: {e}", exc_info=True)
            raise UpstreamFailure("Failed to load municipal feed") from e

        rows = rank_feed(issues, following, seen, limit)
        payloads = await asyncio.to_thread(enrich_issues, repos, [row.issue for row in rows])

        for row, payload in zip(rows, payloads):
            payload["isSeen"] = row.is_seen
            payload["isFollowingPage"] = row.is_following_page
            payload["feedBucket"] = row.bucket

        logger.info(f"📰 Municipal feed for {user_id}: {len(rows)} of {len(issues)} posts")
        return payloads

    async def mark_seen(self, user_id: str, issue_id: str) -> Dict:
        """
        Record that user_id has seen a municipal post. Safe to repeat.

        Raises:
            NotFoundError: issue does not exist
            InvalidOperationError: issue is not a municipal post
        """
        issue = await asyncio.to_thread(self.repositories.issues.get_issue, issue_id)
        if issue is None:
            raise NotFoundError("Issue not found")
        if issue.author_type != AuthorType.MUNICIPAL_PAGE:
            raise InvalidOperationError("Only municipal posts can be marked as seen")

        await asyncio.to_thread(self.repositories.seen.mark_seen, user_id, issue_id)
        return {"seen": True}


def get_municipal_feed_service() -> MunicipalFeedService:
    return MunicipalFeedService(get_repositories())
