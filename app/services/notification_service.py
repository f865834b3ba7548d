"""
Notification Service - in-app notification rows plus best-effort FCM push.

The notification row is always written first; push delivery is attempted
afterwards and its failures are logged, never raised to the caller.
"""

from typing import Callable, Dict, List, Optional
import logging

from app.config.firebase import get_messaging
from app.core.errors import NotFoundError
from app.models.notification import Notification, PushToken
from app.repositories import Repositories, get_repositories
from app.repositories.base import new_id

logger = logging.getLogger(__name__)

# FCM error codes meaning the token will never work again.
STALE_TOKEN_CODES = {
    "registration-token-not-registered",
    "invalid-registration-token",
    "messaging/registration-token-not-registered",
    "messaging/invalid-registration-token",
}


class NotificationService:
    """Service for notifications and device push tokens."""

    def __init__(self, repositories: Repositories, messaging_factory: Callable = get_messaging):
        self.notifications = repositories.notifications
        self._messaging_factory = messaging_factory

    def send_to_user(
        self,
        user_id: str,
        title: str,
        body: str,
        data: Optional[Dict] = None,
    ) -> Notification:
        """
        Store a notification for user_id and push it to their devices.

        Args:
            user_id: Recipient
            title: Notification title
            body: Notification body
            data: Extra payload (type, issueId, navigationTarget, ...)

        Returns:
            The stored notification
        """
        data = data or {}
        notification = self.notifications.create_notification(Notification(
            id=new_id(),
            user_id=user_id,
            type=data.get("type", "general"),
            title=title,
            description=body,
            action_url=data.get("navigationTarget"),
        ))

        try:
            self._push(user_id, title, body, data)
        except Exception as e:
            logger.error(f"❌ Push delivery failed for user {user_id}: {e}", exc_info=True)

        return notification

    def notify_many(self, user_ids: List[str], title: str, body: str, data: Optional[Dict] = None) -> int:
        """Fan out to several users. Returns how many rows were written."""
        sent = 0
        for user_id in dict.fromkeys(user_ids):
            self.send_to_user(user_id, title, body, data)
            sent += 1
        return sent

    def _push(self, user_id: str, title: str, body: str, data: Dict) -> None:
        tokens = self.notifications.get_push_tokens(user_id)
        if not tokens:
            logger.info(f"ℹ️ No push tokens for user {user_id}")
            return

        messaging = self._messaging_factory()
        if messaging is None:
            return

        message = messaging.MulticastMessage(
            notification=messaging.Notification(title=title, body=body),
            android=messaging.AndroidConfig(
                priority="high",
                notification=messaging.AndroidNotification(
                    channel_id="default",
                    sound="default",
                    default_sound=True,
                    default_vibrate_timings=True,
                    notification_count=1,
                ),
            ),
            # FCM data values must be strings
            data={str(k): str(v) for k, v in data.items()},
            tokens=[t.token for t in tokens],
        )
        response = messaging.send_each_for_multicast(message)

        if response.failure_count > 0:
            unregistered = getattr(messaging, "UnregisteredError", None)
            for token, result in zip(tokens, response.responses):
                if result.success:
                    continue
                error = result.exception
                logger.error(f"❌ FCM error for token {token.token[:12]}...: {error}")
                stale = (unregistered is not None and isinstance(error, unregistered)) or \
                    getattr(error, "code", None) in STALE_TOKEN_CODES
                if stale:
                    self.notifications.delete_push_token(token.token)
            logger.warning(f"⚠️ {response.failure_count} push messages failed for user {user_id}")

    def list_for_user(self, user_id: str) -> Dict:
        notifications = self.notifications.list_notifications(user_id)
        return {
            "notifications": notifications,
            "unread_count": sum(1 for n in notifications if not n.read),
        }

    def mark_all_read(self, user_id: str) -> None:
        self.notifications.mark_all_read(user_id)

    def mark_read(self, notification_id: str, user_id: str) -> Notification:
        notification = self.notifications.mark_read(notification_id, user_id)
        if notification is None:
            raise NotFoundError("Notification not found")
        return notification

    def delete(self, notification_id: str, user_id: str) -> None:
        if not self.notifications.delete_notification(notification_id, user_id):
            raise NotFoundError("Notification not found")

    def delete_all(self, user_id: str) -> None:
        self.notifications.delete_all(user_id)

    def register_push_token(self, user_id: str, token: str, device_type: Optional[str] = None) -> PushToken:
        return self.notifications.add_push_token(PushToken(token=token, user_id=user_id, device_type=device_type))


def get_notification_service() -> NotificationService:
    return NotificationService(get_repositories())
