from app.models.issue import AuthorType
from app.services.seed_service import SEED_PAGES, SEED_POSTS, SeedLedger, seed_all, seed_post_id


def test_seed_writes_everything_once(repos):
    ledger = SeedLedger()

    first = seed_all(repos, ledger)
    second = seed_all(repos, ledger)

    assert first == {"badges": 8, "municipal_pages": len(SEED_PAGES), "issues": len(SEED_POSTS)}
    assert second == {"badges": 0, "municipal_pages": 0, "issues": 0}
    assert len(ledger) == 8 + len(SEED_PAGES) + len(SEED_POSTS)


def test_fresh_ledger_skips_existing_documents(repos):
    seed_all(repos, SeedLedger())

    assert seed_all(repos, SeedLedger()) == {"badges": 0, "municipal_pages": 0, "issues": 0}


def test_cleared_ledger_still_respects_store(repos):
    ledger = SeedLedger()
    seed_all(repos, ledger)
    ledger.clear()

    assert len(ledger) == 0
    assert seed_all(repos, ledger)["issues"] == 0


def test_ledgers_are_independent(repos):
    first = SeedLedger()
    first.record("badges", "x")

    assert not SeedLedger().contains("badges", "x")
    assert first.contains("badges", "x")


def test_seeded_posts_feed_the_municipal_feed(repos):
    seed_all(repos, SeedLedger())

    posts = repos.issues.get_issues(None, None, author_type=AuthorType.MUNICIPAL_PAGE)

    assert len(posts) == len(SEED_POSTS)
    assert posts[0].id == seed_post_id(SEED_POSTS[0][2])
    page_ids = {p.id for p in SEED_PAGES}
    assert all(p.municipal_page_id in page_ids for p in posts)
