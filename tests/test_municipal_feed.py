import asyncio
from datetime import timedelta

import pytest

from app.core.errors import InvalidOperationError, NotFoundError, UpstreamFailure
from app.models.issue import IssueStatus
from app.services.municipal_feed_service import MunicipalFeedService

from factories import BASE_TIME, add_issue, add_page, add_post, auth_headers


@pytest.fixture
def feed_setup(repos, citizen):
    add_page(repos, "P1")
    add_page(repos, "P2")
    repos.follows.add_follow(citizen.id, "P1")
    add_post(repos, "A", "P1", minutes_ago=60)
    add_post(repos, "B", "P2", minutes_ago=1)
    add_issue(repos, "U1", minutes_ago=0, user_id=citizen.id)
    return repos


def test_feed_puts_followed_unseen_first(client, feed_setup, citizen):
    resp = client.get("/api/issues/municipal-feed", headers=auth_headers(citizen.id))

    assert resp.status_code == 200
    body = resp.json()
    assert [i["_id"] for i in body] == ["A", "B"]
    assert body[0]["isFollowingPage"] is True
    assert body[0]["isSeen"] is False
    assert body[0]["feedBucket"] == 0
    assert body[1]["feedBucket"] == 2
    assert body[0]["authorType"] == "MunicipalPage"
    assert body[0]["municipalPage"]["_id"] == "P1"


def test_citizen_reports_never_enter_feed(client, feed_setup, citizen):
    body = client.get("/api/issues/municipal-feed", headers=auth_headers(citizen.id)).json()

    assert "U1" not in [i["_id"] for i in body]


def test_marking_seen_demotes_post(client, feed_setup, citizen):
    add_post(feed_setup, "C", "P1", minutes_ago=120)
    headers = auth_headers(citizen.id)

    resp = client.post("/api/issues/A/seen", headers=headers)
    assert resp.status_code == 200
    assert resp.json() == {"seen": True}

    body = client.get("/api/issues/municipal-feed", headers=headers).json()
    assert [i["_id"] for i in body] == ["C", "A", "B"]
    assert [i["feedBucket"] for i in body] == [0, 1, 2]
    assert body[1]["isSeen"] is True


def test_mark_seen_is_idempotent(client, feed_setup, citizen):
    headers = auth_headers(citizen.id)

    for _ in range(3):
        assert client.post("/api/issues/A/seen", headers=headers).status_code == 200

    assert feed_setup.seen.pairs() == {(citizen.id, "A")}


def test_mark_seen_rejects_citizen_report(client, feed_setup, citizen):
    resp = client.post("/api/issues/U1/seen", headers=auth_headers(citizen.id))

    assert resp.status_code == 400
    assert resp.json()["code"] == "invalid_operation"
    assert feed_setup.seen.pairs() == set()


def test_mark_seen_missing_issue(client, feed_setup, citizen):
    resp = client.post("/api/issues/nope/seen", headers=auth_headers(citizen.id))

    assert resp.status_code == 404
    assert resp.json() == {"detail": "Issue not found", "code": "not_found"}


def test_feed_requires_auth(client, feed_setup):
    assert client.get("/api/issues/municipal-feed").status_code == 401
    assert client.post("/api/issues/A/seen").status_code == 401


@pytest.mark.parametrize("limit", ["0", "-5", "abc"])
def test_bad_limit_falls_back_to_default(client, repos, citizen, limit):
    add_page(repos, "P1")
    for i in range(120):
        add_post(repos, f"post-{i:03d}", "P1", minutes_ago=i)

    resp = client.get(f"/api/issues/municipal-feed?limit={limit}", headers=auth_headers(citizen.id))

    assert resp.status_code == 200
    assert len(resp.json()) == 100


def test_limit_is_capped(client, repos, citizen):
    add_page(repos, "P1")
    for i in range(210):
        add_post(repos, f"post-{i:03d}", "P1", minutes_ago=i)

    resp = client.get("/api/issues/municipal-feed?limit=500", headers=auth_headers(citizen.id))

    assert len(resp.json()) == 200


def test_small_limit(client, feed_setup, citizen):
    body = client.get("/api/issues/municipal-feed?limit=1", headers=auth_headers(citizen.id)).json()

    assert [i["_id"] for i in body] == ["A"]


def test_filter_is_forwarded_to_store(client, feed_setup, citizen):
    add_post(feed_setup, "open", "P1", minutes_ago=5, status=IssueStatus.IN_PROGRESS)

    body = client.get("/api/issues/municipal-feed?filter=resolved", headers=auth_headers(citizen.id)).json()

    assert "open" not in [i["_id"] for i in body]
    assert {"A", "B"} <= {i["_id"] for i in body}


def test_seen_lookup_only_covers_returned_posts(feed_setup, citizen, monkeypatch):
    lookups = []
    original = feed_setup.seen.get_seen_ids

    def recording(user_id, issue_ids):
        issue_ids = list(issue_ids)
        lookups.append(set(issue_ids))
        return original(user_id, issue_ids)

    monkeypatch.setattr(feed_setup.seen, "get_seen_ids", recording)
    service = MunicipalFeedService(feed_setup)

    asyncio.run(service.get_feed(citizen.id))

    # Two municipal posts exist; the citizen report is never looked up
    assert lookups == [{"A", "B"}]


def test_feed_read_does_not_write(feed_setup, citizen):
    service = MunicipalFeedService(feed_setup)

    asyncio.run(service.get_feed(citizen.id))

    assert feed_setup.seen.pairs() == set()
    assert feed_setup.follows.get_following_page_ids(citizen.id) == {"P1"}


def test_issue_store_failure_returns_502(client, feed_setup, citizen, monkeypatch):
    def broken(*args, **kwargs):
        raise RuntimeError("connection reset")

    monkeypatch.setattr(feed_setup.issues, "get_issues", broken)

    resp = client.get("/api/issues/municipal-feed", headers=auth_headers(citizen.id))

    assert resp.status_code == 502
    assert resp.json()["code"] == "upstream_failure"


def test_follow_store_failure_fails_whole_feed(feed_setup, citizen, monkeypatch):
    def broken(user_id):
        raise RuntimeError("timeout")

    monkeypatch.setattr(feed_setup.follows, "get_following_page_ids", broken)
    service = MunicipalFeedService(feed_setup)

    with pytest.raises(UpstreamFailure) as excinfo:
        asyncio.run(service.get_feed(citizen.id))
    assert isinstance(excinfo.value.__cause__, RuntimeError)


def test_seen_store_failure_returns_502(client, feed_setup, citizen, monkeypatch):
    def broken(user_id, issue_ids):
        raise RuntimeError("deadline exceeded")

    monkeypatch.setattr(feed_setup.seen, "get_seen_ids", broken)

    resp = client.get("/api/issues/municipal-feed", headers=auth_headers(citizen.id))

    assert resp.status_code == 502
    assert resp.json()["code"] == "upstream_failure"


def test_seen_store_failure_fails_whole_feed(feed_setup, citizen, monkeypatch):
    def broken(user_id, issue_ids):
        raise RuntimeError("deadline exceeded")

    monkeypatch.setattr(feed_setup.seen, "get_seen_ids", broken)
    service = MunicipalFeedService(feed_setup)

    with pytest.raises(UpstreamFailure) as excinfo:
        asyncio.run(service.get_feed(citizen.id))
    assert isinstance(excinfo.value.__cause__, RuntimeError)


def test_naive_timestamps_rank_alongside_aware_ones(client, feed_setup, citizen):
    add_post(feed_setup, "N", "P2", created_at=BASE_TIME.replace(tzinfo=None) - timedelta(minutes=30))

    resp = client.get("/api/issues/municipal-feed", headers=auth_headers(citizen.id))

    assert resp.status_code == 200
    assert [i["_id"] for i in resp.json()] == ["A", "B", "N"]


def test_service_mark_seen_errors(feed_setup, citizen):
    service = MunicipalFeedService(feed_setup)

    with pytest.raises(NotFoundError):
        asyncio.run(service.mark_seen(citizen.id, "missing"))
    with pytest.raises(InvalidOperationError):
        asyncio.run(service.mark_seen(citizen.id, "U1"))
