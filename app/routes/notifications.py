"""
Notification routes - the signed-in user's inbox and device push tokens.
"""

from fastapi import APIRouter, Depends
import logging

from app.models.notification import PushTokenRequest
from app.models.user import User
from app.services.notification_service import get_notification_service
from app.utils.field_mapping import notification_to_api
from app.utils.security import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


@router.get("")
def list_notifications(user: User = Depends(get_current_user)):
    """Newest first, with the unread count."""
    result = get_notification_service().list_for_user(user.id)
    return {
        "notifications": [notification_to_api(n) for n in result["notifications"]],
        "unreadCount": result["unread_count"],
    }


@router.put("/read-all")
def mark_all_read(user: User = Depends(get_current_user)):
    get_notification_service().mark_all_read(user.id)
    return {"message": "All notifications marked as read"}


@router.put("/{notification_id}/read")
def mark_read(notification_id: str, user: User = Depends(get_current_user)):
    notification = get_notification_service().mark_read(notification_id, user.id)
    return notification_to_api(notification)


@router.delete("/{notification_id}")
def delete_notification(notification_id: str, user: User = Depends(get_current_user)):
    get_notification_service().delete(notification_id, user.id)
    return {"message": "Notification deleted"}


@router.delete("")
def delete_all_notifications(user: User = Depends(get_current_user)):
    get_notification_service().delete_all(user.id)
    return {"message": "All notifications cleared"}


@router.post("/push-token")
def register_push_token(body: PushTokenRequest, user: User = Depends(get_current_user)):
    """Register (or move) a device token to the signed-in user."""
    get_notification_service().register_push_token(user.id, body.token, body.device_type)
    logger.info(f"📱 Push token registered for user {user.id}")
    return {"message": "Push token saved"}
