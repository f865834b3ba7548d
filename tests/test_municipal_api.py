import pytest

from factories import add_page, add_user, auth_headers


PAGE_BODY = {
    "name": "Boisar Municipal Council",
    "handle": "@BoisarMC",
    "department": "General",
    "region": {"city": "Boisar", "ward": "All"},
    "pageType": "City",
    "contactEmail": "contact@boisar.gov.in",
}


def test_admin_creates_page(client, repos, admin):
    resp = client.post("/api/municipal/create", json=PAGE_BODY, headers=auth_headers(admin.id))

    assert resp.status_code == 201
    body = resp.json()
    assert body["handle"] == "boisarmc"
    assert body["pageType"] == "City"
    assert body["contactEmail"] == "contact@boisar.gov.in"
    assert body["followersCount"] == 0
    assert body["createdByAdminId"] == admin.id


def test_duplicate_handle_rejected(client, repos, admin):
    headers = auth_headers(admin.id)
    client.post("/api/municipal/create", json=PAGE_BODY, headers=headers)

    resp = client.post("/api/municipal/create", json={**PAGE_BODY, "handle": "boisarmc"}, headers=headers)

    assert resp.status_code == 400
    assert resp.json()["code"] == "conflict"


def test_citizen_cannot_create_page(client, repos, citizen):
    resp = client.post("/api/municipal/create", json=PAGE_BODY, headers=auth_headers(citizen.id))

    assert resp.status_code == 403
    assert resp.json()["code"] == "forbidden"


def test_search_matches_name_handle_and_department(client, repos, citizen):
    add_page(repos, "p1", name="Roads Department", handle="roadsdept", department="PWD")
    add_page(repos, "p2", name="Water Department", handle="waterdept", department="Water Supply")
    add_page(repos, "p3", name="Old Page", handle="oldpage", is_active=False)

    def search(q):
        resp = client.get(f"/api/municipal/search?q={q}", headers=auth_headers(citizen.id))
        return [p["_id"] for p in resp.json()]

    assert search("ROADS") == ["p1"]
    assert search("waterdept") == ["p2"]
    assert search("pwd") == ["p1"]
    assert search("department") == ["p1", "p2"]
    assert search("old") == []


def test_suggested_prefers_user_city(client, repos, citizen):
    add_page(repos, "boisar", city="Boisar")
    add_page(repos, "palghar", city="Palghar")

    body = client.get("/api/municipal/suggested", headers=auth_headers(citizen.id)).json()

    assert [p["_id"] for p in body] == ["boisar"]


def test_suggested_falls_back_to_first_active_pages(client, repos):
    user = add_user(repos, "nomad", city="Nowhere")
    for i in range(7):
        add_page(repos, f"page-{i}", city="Elsewhere")

    body = client.get("/api/municipal/suggested", headers=auth_headers(user.id)).json()

    assert len(body) == 5


def test_follow_and_unfollow(client, repos, citizen):
    add_page(repos, "p1")
    headers = auth_headers(citizen.id)

    assert client.post("/api/municipal/p1/follow", headers=headers).json() == {
        "following": True, "followersCount": 1,
    }
    again = client.post("/api/municipal/p1/follow", headers=headers)
    assert again.status_code == 400
    assert again.json()["detail"] == "Already following this page"

    detail = client.get("/api/municipal/p1", headers=headers).json()
    assert detail["isFollowing"] is True
    assert [f["_id"] for f in client.get("/api/municipal/p1/followers", headers=headers).json()] == [citizen.id]

    assert client.post("/api/municipal/p1/unfollow", headers=headers).json() == {
        "following": False, "followersCount": 0,
    }
    assert client.post("/api/municipal/p1/unfollow", headers=headers).status_code == 400


def test_unfollow_never_goes_negative(client, repos, citizen):
    add_page(repos, "p1", followers_count=0)
    repos.follows.add_follow(citizen.id, "p1")

    body = client.post("/api/municipal/p1/unfollow", headers=auth_headers(citizen.id)).json()

    assert body["followersCount"] == 0


def test_get_page_for_non_follower_and_missing(client, repos, citizen):
    add_page(repos, "p1")
    headers = auth_headers(citizen.id)

    assert client.get("/api/municipal/p1", headers=headers).json()["isFollowing"] is False
    assert client.get("/api/municipal/missing", headers=headers).status_code == 404
    assert client.post("/api/municipal/missing/follow", headers={}).status_code == 401


@pytest.mark.parametrize("path", [
    "/api/municipal/search",
    "/api/municipal/search?q=roads",
    "/api/municipal/p1",
    "/api/municipal/p1/followers",
])
def test_page_reads_require_auth(client, repos, citizen, path):
    add_page(repos, "p1")
    repos.follows.add_follow(citizen.id, "p1")

    resp = client.get(path)

    assert resp.status_code == 401
    assert resp.json()["code"] == "unauthenticated"


def test_official_post_notifies_followers(client, repos, admin, citizen):
    add_page(repos, "p1", name="Roads Department", department="PWD")
    other = add_user(repos, "other")
    repos.follows.add_follow(citizen.id, "p1")
    repos.follows.add_follow(other.id, "p1")

    resp = client.post(
        "/api/municipal/p1/post",
        json={"title": "Resurfacing starts Monday", "description": "Expect delays"},
        headers=auth_headers(admin.id),
    )

    assert resp.status_code == 201
    body = resp.json()
    assert body["authorType"] == "MunicipalPage"
    assert body["municipalPageId"] == "p1"
    assert body["status"] == "Resolved"
    assert body["aiTags"] == ["official-update"]
    assert body["officialUpdateType"] == "Announcement"
    assert body["departmentTag"] == "PWD"
    assert body["userId"] is None

    for follower in (citizen.id, other.id):
        notes = repos.notifications.list_notifications(follower)
        assert [n.type for n in notes] == ["official_update"]
        assert notes[0].title == "Roads Department: Announcement"


def test_official_post_shows_in_feed(client, repos, admin, citizen):
    add_page(repos, "p1")
    repos.follows.add_follow(citizen.id, "p1")
    client.post(
        "/api/municipal/p1/post",
        json={"title": "Water cut", "officialUpdateType": "PublicNotice"},
        headers=auth_headers(admin.id),
    )

    feed = client.get("/api/issues/municipal-feed", headers=auth_headers(citizen.id)).json()

    assert len(feed) == 1
    assert feed[0]["officialUpdateType"] == "PublicNotice"
    assert feed[0]["feedBucket"] == 0


@pytest.mark.parametrize("method,path", [
    ("post", "/api/municipal/p1/post"),
    ("patch", "/api/municipal/p1"),
])
def test_page_admin_routes_forbidden_for_citizens(client, repos, citizen, method, path):
    add_page(repos, "p1")

    resp = getattr(client, method)(path, json={"title": "x"}, headers=auth_headers(citizen.id))

    assert resp.status_code == 403


def test_patch_page(client, repos, admin):
    add_page(repos, "p1", name="Old name", description="old")

    resp = client.patch(
        "/api/municipal/p1",
        json={"name": "New name", "coverImage": "/img/cover.png", "handle": "ignored"},
        headers=auth_headers(admin.id),
    )

    body = resp.json()
    assert resp.status_code == 200
    assert body["name"] == "New name"
    assert body["coverImage"] == "/img/cover.png"
    assert body["description"] == "old"
    assert body["handle"] == "p1"


def test_patch_missing_page(client, repos, admin):
    resp = client.patch("/api/municipal/missing", json={"name": "x"}, headers=auth_headers(admin.id))

    assert resp.status_code == 404
