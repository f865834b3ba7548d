"""
User Service - the signed-in user's own profile and username checks.

Accounts themselves come from the auth provider; this service only reads and
edits the profile fields users may change.
"""

import re
from typing import Dict, Optional
import logging

from app.core.errors import ConflictError, InvalidInputError
from app.models.user import User, UserProfileUpdate
from app.repositories import Repositories, get_repositories
from app.services.gamification_service import get_level_info

logger = logging.getLogger(__name__)

USERNAME_MIN_LENGTH = 3
USERNAME_PATTERN = re.compile(r"^[a-z0-9_.]+$")


def normalize_username(username: str) -> str:
    return username.strip().lower()


def validate_username(username: str) -> str:
    """
    Normalized username, or InvalidInputError when the format is wrong.

    Usernames are lowercase letters, digits, underscores and dots, at least
    three characters long.
    """
    normalized = normalize_username(username or "")
    if len(normalized) < USERNAME_MIN_LENGTH:
        raise InvalidInputError(f"Username must be at least {USERNAME_MIN_LENGTH} characters long.")
    if not USERNAME_PATTERN.match(normalized):
        raise InvalidInputError("Username can only contain letters, numbers, underscores, and dots.")
    return normalized


class UserService:
    """Service for user profiles."""

    def __init__(self, repositories: Repositories):
        self.users = repositories.users
        self.follows = repositories.follows

    def get_profile(self, user: User) -> Dict:
        following = self.follows.get_following_page_ids(user.id)
        return {
            "_id": user.id,
            "name": user.name,
            "email": user.email,
            "role": user.role.value,
            "username": user.username,
            "points": user.points,
            "badges": list(user.badges),
            "reportsCount": user.reports_count,
            "reportsResolved": user.reports_resolved,
            "levelInfo": get_level_info(user.points),
            "impactScore": user.impact_score or min(100, user.points // 50),
            "region": user.region,
            "city": user.city,
            "ward": user.ward,
            "interests": list(user.interests),
            "avatar": user.avatar,
            "followingCount": len(following),
            "followersCount": 0,
        }

    def update_profile(self, user: User, body: UserProfileUpdate) -> Dict:
        changes = {field: value for field, value in body.model_dump().items() if value}

        if "username" in changes:
            username = validate_username(changes["username"])
            if username != user.username:
                owner = self.users.get_user_by_username(username)
                if owner is not None and owner.id != user.id:
                    raise ConflictError(
                        f'The username "{username}" is already taken. Please choose a different one.'
                    )
            changes["username"] = username

        def apply(current: User) -> User:
            for field, value in changes.items():
                setattr(current, field, value)
            return current

        updated = self.users.update_user(user.id, apply)
        logger.info(f"👤 Profile updated for {user.id}: {sorted(changes)}")
        return self.get_profile(updated)

    def check_username(self, username: str, user: Optional[User] = None) -> Dict:
        """Availability of a username. The caller's own username counts as available."""
        normalized = validate_username(username)
        owner = self.users.get_user_by_username(normalized)
        if owner is None or (user is not None and owner.id == user.id):
            return {"available": True, "message": "Username is available!"}
        return {
            "available": False,
            "message": f'"{normalized}" is already taken. Try adding numbers or underscores.',
        }


def get_user_service() -> UserService:
    return UserService(get_repositories())
