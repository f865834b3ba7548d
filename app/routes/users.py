"""
User routes - own profile, username availability and device registration.
"""

from fastapi import APIRouter, Depends
from typing import Optional
import logging

from app.models.notification import PushTokenRequest
from app.models.user import User, UserProfileUpdate
from app.services.notification_service import get_notification_service
from app.services.user_service import get_user_service
from app.utils.security import get_current_user, get_optional_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("/check-username/{username}")
def check_username(username: str, user: Optional[User] = Depends(get_optional_user)):
    """Open to signed-out clients so sign-up forms can check as the user types."""
    return get_user_service().check_username(username, user)


@router.get("/profile")
def get_profile(user: User = Depends(get_current_user)):
    return get_user_service().get_profile(user)


@router.put("/profile")
def update_profile(body: UserProfileUpdate, user: User = Depends(get_current_user)):
    """
    Edit name, region, avatar, username, city, ward or interests.

    Usernames are stored lowercase and must be unique.
    """
    return get_user_service().update_profile(user, body)


@router.post("/push-token")
def register_push_token(body: PushTokenRequest, user: User = Depends(get_current_user)):
    """Same as POST /api/notifications/push-token, kept at the path older app builds call."""
    get_notification_service().register_push_token(user.id, body.token, body.device_type)
    logger.info(f"📱 Push token registered for user {user.id}")
    return {"message": "Push token saved"}
