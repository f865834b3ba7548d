import pytest

from app.models.gamification import Badge
from app.models.issue import IssueStatus, Severity
from app.models.user import UserRole
from app.services.gamification_service import GamificationService, get_level_info

from factories import add_issue, add_user, auth_headers


@pytest.mark.parametrize("points,level,name,next_xp", [
    (0, 1, "New Reporter", 500),
    (499, 1, "New Reporter", 500),
    (500, 2, "Active Citizen", 1200),
    (2600, 4, "Problem Solver", 5000),
    (74999, 9, "Governor Elect", 75000),
])
def test_level_info(points, level, name, next_xp):
    info = get_level_info(points)

    assert info["level"] == level
    assert info["name"] == name
    assert info["currentXp"] == points
    assert info["nextLevelXp"] == next_xp
    assert 0 <= info["progress"] < 1


def test_level_progress_fraction():
    assert get_level_info(850)["progress"] == pytest.approx(0.5)


def test_max_level():
    info = get_level_info(90000)

    assert info == {
        "level": 10,
        "name": "Civic Hero",
        "currentXp": 90000,
        "nextLevelXp": 75000,
        "progress": 1,
    }


def test_leaderboard_ranks_citizens_only(client, repos):
    add_user(repos, "a", name="Anil", points=120)
    add_user(repos, "b", name="Bela", points=900)
    add_user(repos, "c", name="Chitra", points=120)
    add_user(repos, "boss", UserRole.ADMIN, points=10000)

    body = client.get("/api/gamification/leaderboard").json()

    assert [(row["rank"], row["_id"]) for row in body] == [(1, "b"), (2, "a"), (3, "c")]
    assert body[0]["levelInfo"]["level"] == 2


def test_badges_mark_earned(client, repos):
    user = add_user(repos, "u1", badges=["first_report"])

    body = client.get("/api/gamification/badges", headers=auth_headers(user.id)).json()

    earned = {b["id"]: b["earned"] for b in body}
    assert earned["first_report"] is True
    assert earned["civic_hero"] is False
    assert len(body) == 8


def test_badges_use_stored_catalogue(client, repos):
    repos.badges.upsert_badge(Badge(id="night_owl", name="Night Owl", icon="🦉", description="Late reports"))
    user = add_user(repos, "u1")

    body = client.get("/api/gamification/badges", headers=auth_headers(user.id)).json()

    assert [b["id"] for b in body] == ["night_owl"]


def test_stats(client, repos):
    add_issue(repos, "a", status=IssueStatus.RESOLVED)
    add_issue(repos, "b", status=IssueStatus.IN_PROGRESS, ai_severity=Severity.CRITICAL)
    add_issue(repos, "c")

    assert client.get("/api/gamification/stats").json() == {
        "totalIssues": 3,
        "resolved": 1,
        "critical": 1,
        "inProgress": 1,
        "pending": 2,
    }


def test_my_level(client, repos):
    user = add_user(repos, "u1", points=1300)

    body = client.get("/api/gamification/me/level", headers=auth_headers(user.id)).json()

    assert body["level"] == 3
    assert body["name"] == "Civic Watcher"


def test_award_points_skips_unknown_user(repos):
    assert GamificationService(repos).award_points("ghost", 10) is None


def test_grant_badge_once(repos):
    add_user(repos, "u1")
    service = GamificationService(repos)

    assert service.grant_badge("u1", "leader") is True
    assert service.grant_badge("u1", "leader") is False
    assert repos.users.get_user("u1").badges == ["leader"]
