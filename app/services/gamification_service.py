"""
Gamification Service - points, levels, badges, leaderboard and platform stats.

DESIGN PRINCIPLES:
- Points are awarded by the services that own the triggering action
  (reporting, commenting, resolution); this module only applies them
- Level is derived from points on read, never stored
"""

from typing import Dict, List, Optional
import logging

from app.models.gamification import Badge, Level
from app.models.issue import IssueStatus, Severity
from app.models.user import User, UserRole
from app.repositories import Repositories, get_repositories
from app.utils.field_mapping import badge_to_api

logger = logging.getLogger(__name__)


LEVELS: List[Level] = [
    Level(level=1, name="New Reporter", xp_required=0),
    Level(level=2, name="Active Citizen", xp_required=500),
    Level(level=3, name="Civic Watcher", xp_required=1200),
    Level(level=4, name="Problem Solver", xp_required=2500),
    Level(level=5, name="Community Guardian", xp_required=5000),
    Level(level=6, name="Street Legend", xp_required=10000),
    Level(level=7, name="City Steward", xp_required=20000),
    Level(level=8, name="Urban Architect", xp_required=35000),
    Level(level=9, name="Governor Elect", xp_required=50000),
    Level(level=10, name="Civic Hero", xp_required=75000),
]

# Points per action
REPORT_POINTS = 10
COMMENT_POINTS = 2
RESOLVED_BY_ADMIN_POINTS = 25
RESOLVED_BY_WORKER_POINTS = 50

FIRST_REPORT_BADGE = "first_report"

DEFAULT_BADGES: List[Badge] = [
    Badge(id="first_report", name="First Report", icon="🏅", description="Submit your first civic report", points_required=0),
    Badge(id="civic_hero", name="Civic Hero", icon="🦸", description="Submit 10 verified reports", points_required=500),
    Badge(id="night_watch", name="Night Watch", icon="🌙", description="Report 5 issues after 8pm", points_required=300),
    Badge(id="top_10", name="Top 10", icon="🏆", description="Reach top 10 in your ward", points_required=2000),
    Badge(id="fifty_reports", name="50 Reports", icon="📸", description="Submit 50 reports", points_required=1500),
    Badge(id="leader", name="Leader", icon="⭐", description="Highest points in a month", points_required=3000),
    Badge(id="road_guardian", name="Road Guardian", icon="🛣️", description="Report 20 road issues", points_required=800),
    Badge(id="drain_defender", name="Drain Defender", icon="💧", description="Report 10 water/drain issues", points_required=600),
]


def get_level_info(points: int) -> Dict:
    """
    Level reached with `points` XP and progress towards the next one.

    At the top level nextLevelXp repeats the current threshold and progress is 1.
    """
    points = max(0, points)
    current = LEVELS[0]
    for level in LEVELS:
        if points >= level.xp_required:
            current = level

    index = LEVELS.index(current)
    upcoming = LEVELS[index + 1] if index + 1 < len(LEVELS) else None
    if upcoming is None:
        return {
            "level": current.level,
            "name": current.name,
            "currentXp": points,
            "nextLevelXp": current.xp_required,
            "progress": 1,
        }
    return {
        "level": current.level,
        "name": current.name,
        "currentXp": points,
        "nextLevelXp": upcoming.xp_required,
        "progress": (points - current.xp_required) / (upcoming.xp_required - current.xp_required),
    }


class GamificationService:
    """Service for points, badges and leaderboards."""

    def __init__(self, repositories: Repositories):
        self.users = repositories.users
        self.badges = repositories.badges
        self.issues = repositories.issues

    def award_points(
        self,
        user_id: str,
        points: int,
        reports_delta: int = 0,
        resolved_delta: int = 0,
    ) -> Optional[User]:
        """
        Add points (and counters) to a user. Missing users are skipped.

        Returns:
            Updated user, or None if the user does not exist
        """
        if self.users.get_user(user_id) is None:
            logger.info(f"Skipping points for unknown user {user_id}")
            return None

        def apply(user: User) -> User:
            user.points += points
            user.reports_count += reports_delta
            user.reports_resolved += resolved_delta
            return user

        return self.users.update_user(user_id, apply)

    def grant_badge(self, user_id: str, badge_id: str) -> bool:
        """Add a badge once. Returns True only when newly granted."""
        # The mutator may run more than once under a retried transaction.
        outcome = {"granted": False}

        def apply(user: User) -> User:
            outcome["granted"] = badge_id not in user.badges
            if outcome["granted"]:
                user.badges.append(badge_id)
            return user

        self.users.update_user(user_id, apply)
        return outcome["granted"]

    def get_leaderboard(self) -> List[Dict]:
        citizens = self.users.list_users(UserRole.CITIZEN)
        citizens.sort(key=lambda u: (-u.points, u.name, u.id))
        return [
            {
                "rank": index + 1,
                "_id": user.id,
                "name": user.name,
                "points": user.points,
                "reportsCount": user.reports_count,
                "avatar": user.avatar,
                "levelInfo": get_level_info(user.points),
            }
            for index, user in enumerate(citizens)
        ]

    def get_badges(self, user: User) -> List[Dict]:
        catalogue = self.badges.list_badges() or DEFAULT_BADGES
        return [{**badge_to_api(badge), "earned": badge.id in user.badges} for badge in catalogue]

    def get_stats(self) -> Dict:
        issues = self.issues.get_issues(None, None)
        total = len(issues)
        resolved = sum(1 for i in issues if i.status == IssueStatus.RESOLVED)
        return {
            "totalIssues": total,
            "resolved": resolved,
            "critical": sum(1 for i in issues if i.ai_severity == Severity.CRITICAL),
            "inProgress": sum(1 for i in issues if i.status == IssueStatus.IN_PROGRESS),
            "pending": total - resolved,
        }


def get_gamification_service() -> GamificationService:
    return GamificationService(get_repositories())
