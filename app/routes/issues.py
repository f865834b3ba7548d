"""
Issue routes - community feed, municipal feed, reports, votes and comments.

Static paths (/municipal-feed) are declared before /{issue_id} so they are
not captured as an issue id.
"""

from fastapi import APIRouter, Depends, Query, status
from typing import Dict, List, Optional
import logging

from app.models.issue import CommentCreate, IssueCreate
from app.models.user import User
from app.services.comment_service import get_comment_service
from app.services.issue_service import get_issue_service
from app.services.municipal_feed_service import get_municipal_feed_service
from app.services.vote_service import get_vote_service
from app.utils.security import get_current_user, get_optional_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/issues", tags=["Issues"])


@router.get("", response_model=List[Dict])
def list_issues(
    filter: Optional[str] = Query(None, description="high_priority | resolved | my_posts | following | trending"),
    author_type: Optional[str] = Query(None, alias="authorType", description="User or MunicipalPage"),
    municipal_page_id: Optional[str] = Query(None, alias="municipalPageId"),
    user: Optional[User] = Depends(get_optional_user),
):
    """
    Community feed, newest first.

    my_posts and following only narrow the feed for signed-in users.
    """
    return get_issue_service().list_issues(
        filter=filter,
        user_id=user.id if user else None,
        municipal_page_id=municipal_page_id,
        author_type=author_type,
    )


@router.get("/municipal-feed", response_model=List[Dict])
async def get_municipal_feed(
    filter: Optional[str] = Query(None),
    limit: Optional[str] = Query(None, description="Page size, default 100, max 200"),
    user: User = Depends(get_current_user),
):
    """
    Personalized municipal feed.

    Posts from followed pages the user hasn't seen come first, then seen
    posts from followed pages, then unseen and seen posts from other pages.
    Each bucket is newest first. Out-of-range limits are clamped, not rejected.
    """
    return await get_municipal_feed_service().get_feed(user.id, filter=filter, limit=limit)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_issue(body: IssueCreate, user: User = Depends(get_current_user)):
    """Submit a citizen report."""
    return get_issue_service().create_issue(body, user)


@router.get("/{issue_id}")
def get_issue(issue_id: str):
    return get_issue_service().get_issue_detail(issue_id)


@router.post("/{issue_id}/seen")
async def mark_issue_seen(issue_id: str, user: User = Depends(get_current_user)):
    """Mark a municipal post as seen. Repeating the call is a no-op."""
    return await get_municipal_feed_service().mark_seen(user.id, issue_id)


@router.put("/{issue_id}/upvote")
def upvote_issue(issue_id: str, user: User = Depends(get_current_user)):
    return get_vote_service().toggle_upvote(issue_id, user)


@router.put("/{issue_id}/downvote")
def downvote_issue(issue_id: str, user: User = Depends(get_current_user)):
    return get_vote_service().toggle_downvote(issue_id, user)


@router.put("/{issue_id}/follow")
def follow_issue(issue_id: str, user: User = Depends(get_current_user)):
    return get_vote_service().toggle_follow(issue_id, user)


@router.get("/{issue_id}/comments", response_model=List[Dict])
def list_comments(issue_id: str):
    service = get_issue_service()
    service.get_issue(issue_id)
    return service.list_comment_payloads(issue_id)


@router.post("/{issue_id}/comments", status_code=status.HTTP_201_CREATED)
def add_comment(issue_id: str, body: CommentCreate, user: User = Depends(get_current_user)):
    return get_comment_service().add_comment(issue_id, body.text, user)
