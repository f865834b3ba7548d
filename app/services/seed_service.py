"""
Seed Service - demo badges, municipal pages and official posts.

Idempotency is tracked by a SeedLedger the caller creates and owns (one per
process run). Seeded documents also use stable ids, so re-running against a
store that already holds them writes nothing.
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Set
import logging
import uuid

from app.models.issue import (
    AuthorType,
    Issue,
    IssueStatus,
    Location,
    Severity,
    StatusTimelineEntry,
)
from app.models.municipal import MunicipalPage, PageType, Region
from app.repositories import Repositories
from app.services.gamification_service import DEFAULT_BADGES

logger = logging.getLogger(__name__)

SEED_NAMESPACE = uuid.UUID("5b1f6a1e-8c55-4c3e-9d1a-3f0d3c7e2a10")


class SeedLedger:
    """Keys (`collection/key`) already written during this run."""

    def __init__(self):
        self._keys: Set[str] = set()

    @staticmethod
    def key(collection: str, key: str) -> str:
        return f"{collection}/{key}"

    def contains(self, collection: str, key: str) -> bool:
        return self.key(collection, key) in self._keys

    def record(self, collection: str, key: str) -> None:
        self._keys.add(self.key(collection, key))

    def clear(self) -> None:
        self._keys.clear()

    def __len__(self) -> int:
        return len(self._keys)


SEED_PAGES = [
    MunicipalPage(
        id="992a6c0b-1234-5678-90ab-cdef12345678",
        name="Boisar Municipal Council",
        handle="boisarmc",
        department="General",
        page_type=PageType.CITY,
        region=Region(city="Boisar", ward="All"),
        description="Official page of Boisar Municipal Council. Updates on water, sanitation, and civic issues.",
        contact_email="contact@boisar.gov.in",
        followers_count=1250,
    ),
    MunicipalPage(
        id="881b5d1a-2345-6789-01bc-def012345679",
        name="Palghar Zilla Parishad",
        handle="palgharzp",
        department="Administration",
        page_type=PageType.CITY,
        region=Region(city="Palghar", ward="All"),
        description="Palghar District Council updates and civic information.",
        contact_email="ceo@palgharzp.gov.in",
        followers_count=3400,
    ),
    MunicipalPage(
        id="770c4e2b-3456-7890-12cd-ef0123456780",
        name="Roads Department",
        handle="roadsdept",
        department="PWD",
        page_type=PageType.DEPARTMENT,
        region=Region(city="All", ward="All"),
        description="Updates on road maintenance, potholes, and infrastructure.",
        contact_email="roads@pwd.gov.in",
        followers_count=850,
    ),
    MunicipalPage(
        id="669d3f3c-4567-8901-23de-f01234567881",
        name="Water Department",
        handle="waterdept",
        department="Water Supply",
        page_type=PageType.DEPARTMENT,
        region=Region(city="All", ward="All"),
        description="Alerts on water cuts, supply timings, and pipeline maintenance.",
        verified=False,
        contact_email="water@supply.gov.in",
        followers_count=500,
    ),
]

# (page id, update type, title, description, address, category, severity, department)
SEED_POSTS = [
    ("992a6c0b-1234-5678-90ab-cdef12345678", "PublicNotice",
     "Water supply disruption - Maintenance scheduled",
     "Due to pipeline maintenance, water supply in Ward 5 & 6 will be disrupted from 10:00 AM to 4:00 PM. Please store water in advance.",
     "Boisar, Palghar District", "water", Severity.HIGH, "Water Dept"),
    ("881b5d1a-2345-6789-01bc-def012345679", "WorkCompletion",
     "Pothole repair completed - Palghar-Boisar Road",
     "The potholes reported by citizens on Palghar-Boisar main road have been repaired. Thank you for your patience and reports!",
     "Palghar-Boisar Road", "roads", Severity.LOW, "Roads Dept"),
    ("881b5d1a-2345-6789-01bc-def012345679", "Announcement",
     "Streetlight restoration drive starts tonight",
     "Faulty streetlights across Wards 1, 2 and 3 will be repaired during tonight's maintenance drive.",
     "Palghar Central Zone", "lighting", Severity.MEDIUM, "Electricity Dept"),
    ("992a6c0b-1234-5678-90ab-cdef12345678", "WorkCompletion",
     "Ward sanitation special cleanup completed",
     "Special sanitation drive completed in Market Road and bus stand area. Daily pickups resumed.",
     "Boisar Market Area", "trash", Severity.LOW, "Sanitation"),
    ("669d3f3c-4567-8901-23de-f01234567881", "Emergency",
     "Emergency water tanker schedule published",
     "Emergency tanker routes for low-pressure zones are now active for the next 48 hours.",
     "All Low-Pressure Wards", "water", Severity.HIGH, "Water Supply"),
    ("770c4e2b-3456-7890-12cd-ef0123456780", "ProjectUpdate",
     "Road resurfacing project phase-1 update",
     "Phase-1 resurfacing work reached 60% completion on main city connectors.",
     "NH Link Roads", "roads", Severity.MEDIUM, "PWD"),
]

# Boisar town centre; seeded posts carry an address but no exact point.
SEED_COORDINATES = (19.7969, 72.7452)


def seed_post_id(title: str) -> str:
    return str(uuid.uuid5(SEED_NAMESPACE, title))


def seed_badges(repositories: Repositories, ledger: SeedLedger) -> int:
    existing = {b.id for b in repositories.badges.list_badges()}
    written = 0
    for badge in DEFAULT_BADGES:
        if ledger.contains("badges", badge.id) or badge.id in existing:
            continue
        repositories.badges.upsert_badge(badge)
        ledger.record("badges", badge.id)
        written += 1
    return written


def seed_pages(repositories: Repositories, ledger: SeedLedger) -> int:
    written = 0
    for page in SEED_PAGES:
        if ledger.contains("municipal_pages", page.id) or repositories.pages.get_page(page.id) is not None:
            continue
        repositories.pages.create_page(page)
        ledger.record("municipal_pages", page.id)
        written += 1
    return written


def seed_posts(repositories: Repositories, ledger: SeedLedger, now: Optional[datetime] = None) -> int:
    """Official posts, one hour apart, newest first in SEED_POSTS order."""
    now = now or datetime.now(timezone.utc)
    written = 0
    for index, (page_id, update_type, title, description, address, category, severity, dept) in enumerate(SEED_POSTS):
        issue_id = seed_post_id(title)
        if ledger.contains("issues", issue_id) or repositories.issues.get_issue(issue_id) is not None:
            continue
        created_at = now - timedelta(hours=index + 1)
        repositories.issues.create_issue(Issue(
            id=issue_id,
            author_type=AuthorType.MUNICIPAL_PAGE,
            municipal_page_id=page_id,
            official_update_type=update_type,
            title=title,
            description=description,
            location=Location(latitude=SEED_COORDINATES[0], longitude=SEED_COORDINATES[1], address=address),
            category=category,
            department_tag=dept,
            status=IssueStatus.RESOLVED,
            ai_severity=severity,
            ai_tags=["official-update"],
            status_timeline=[StatusTimelineEntry(status=IssueStatus.RESOLVED.value, timestamp=created_at, dept=dept)],
            created_at=created_at,
        ))
        ledger.record("issues", issue_id)
        written += 1
    return written


def seed_all(repositories: Repositories, ledger: SeedLedger) -> Dict[str, int]:
    """Seed every collection. Returns how many documents were written per collection."""
    counts = {
        "badges": seed_badges(repositories, ledger),
        "municipal_pages": seed_pages(repositories, ledger),
        "issues": seed_posts(repositories, ledger),
    }
    logger.info(f"🌱 Seed complete: {counts}")
    return counts
