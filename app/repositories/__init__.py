"""
Data access layer: store interfaces plus Firestore and in-memory backends.
"""

from app.repositories.registry import Repositories, get_repositories, use_repositories

__all__ = [
    "Repositories",
    "get_repositories",
    "use_repositories",
]
