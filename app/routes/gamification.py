"""
Gamification routes - leaderboard, badges, platform stats and levels.
"""

from fastapi import APIRouter, Depends
from typing import Dict, List

from app.models.user import User
from app.services.gamification_service import get_gamification_service, get_level_info
from app.utils.security import get_current_user

router = APIRouter(prefix="/api/gamification", tags=["Gamification"])


@router.get("/leaderboard", response_model=List[Dict])
def get_leaderboard():
    """Citizens ranked by points."""
    return get_gamification_service().get_leaderboard()


@router.get("/badges", response_model=List[Dict])
def get_badges(user: User = Depends(get_current_user)):
    return get_gamification_service().get_badges(user)


@router.get("/stats")
def get_stats():
    return get_gamification_service().get_stats()


@router.get("/me/level")
def get_my_level(user: User = Depends(get_current_user)):
    return get_level_info(user.points)
