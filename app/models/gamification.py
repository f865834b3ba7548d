"""
Gamification models: badge catalogue entries and level info.
"""

from pydantic import BaseModel


class Badge(BaseModel):
    id: str
    name: str
    icon: str = ""
    description: str = ""
    points_required: int = 0


class Level(BaseModel):
    level: int
    name: str
    xp_required: int
