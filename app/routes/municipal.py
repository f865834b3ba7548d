"""
Municipal page routes - official pages, follows and official update posts.
"""

from fastapi import APIRouter, Depends, Query, status
from typing import Dict, List, Optional
import logging

from app.models.municipal import MunicipalPageCreate, MunicipalPageUpdate, OfficialPostCreate
from app.models.user import User
from app.services.municipal_service import get_municipal_service
from app.utils.security import get_current_user, require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/municipal", tags=["Municipal"])


@router.post("/create", status_code=status.HTTP_201_CREATED)
def create_page(body: MunicipalPageCreate, admin: User = Depends(require_admin)):
    """Create an official page. Handles are unique (case-insensitive, without @)."""
    return get_municipal_service().create_page(body, admin)


@router.get("/search", response_model=List[Dict])
def search_pages(
    q: Optional[str] = Query(None, description="Matches name, handle or department"),
    user: User = Depends(get_current_user),
):
    return get_municipal_service().search(q)


@router.get("/suggested", response_model=List[Dict])
def suggested_pages(user: User = Depends(get_current_user)):
    """Pages for the user's city or ward, falling back to a few active pages."""
    return get_municipal_service().suggested(user)


@router.get("/{page_id}")
def get_page(page_id: str, user: User = Depends(get_current_user)):
    return get_municipal_service().get_page_detail(page_id, user)


@router.get("/{page_id}/followers", response_model=List[Dict])
def get_followers(page_id: str, user: User = Depends(get_current_user)):
    return get_municipal_service().get_followers(page_id)


@router.post("/{page_id}/follow")
def follow_page(page_id: str, user: User = Depends(get_current_user)):
    return get_municipal_service().follow(page_id, user)


@router.post("/{page_id}/unfollow")
def unfollow_page(page_id: str, user: User = Depends(get_current_user)):
    return get_municipal_service().unfollow(page_id, user)


@router.post("/{page_id}/post", status_code=status.HTTP_201_CREATED)
def create_official_post(page_id: str, body: OfficialPostCreate, admin: User = Depends(require_admin)):
    """
    Publish an official update as the page.

    Followers of the page receive a notification.
    """
    return get_municipal_service().create_post(page_id, body, admin)


@router.patch("/{page_id}")
def update_page(page_id: str, body: MunicipalPageUpdate, admin: User = Depends(require_admin)):
    return get_municipal_service().update_page(page_id, body)
