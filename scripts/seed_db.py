"""
Seed script for the UrbanFix AI stores (Firestore or in-memory).

Usage:
  - Dry run (default): python -m scripts.seed_db
  - Apply to configured DB: python -m scripts.seed_db --apply
  - Force in-memory stores even if Firebase is configured: python -m scripts.seed_db --apply --force-mock

Behavior:
  - Writes the badge catalogue, the demo municipal pages and their official posts.
  - Uses one SeedLedger for the whole run; documents already present are skipped,
    so re-running is safe.

NOTE: When applying to real Firestore, ensure `FIREBASE_CREDENTIALS_PATH` and `USE_MOCK_DB=false` are set in `.env`.
"""

import argparse
import logging

from app.core.settings import settings
from app.repositories import get_repositories
from app.services.gamification_service import DEFAULT_BADGES
from app.services.seed_service import SEED_PAGES, SEED_POSTS, SeedLedger, seed_all

logger = logging.getLogger("seed_db")


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--apply", action="store_true", help="Write seed to the DB instead of dry-run")
    parser.add_argument("--force-mock", action="store_true", help="Force in-memory stores even if Firebase is configured")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    if not args.apply:
        for badge in DEFAULT_BADGES:
            logger.info(f"Preparing: badges/{badge.id}")
        for page in SEED_PAGES:
            logger.info(f"Preparing: municipal_pages/{page.id} (@{page.handle})")
        for post in SEED_POSTS:
            logger.info(f"Preparing: issues/{post[2]}")
        logger.info("Dry run complete. Re-run with --apply to write to DB.")
        return

    if args.force_mock:
        logger.info("Forcing in-memory stores for this run.")
        settings.USE_MOCK_DB = True

    ledger = SeedLedger()
    counts = seed_all(get_repositories(), ledger)
    logger.info(f"Seeding completed: {counts}")


if __name__ == "__main__":
    main()
