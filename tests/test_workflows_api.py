from app.models.issue import ANONYMOUS_USER_ID, IssueStatus, Location

from factories import add_issue, auth_headers


def test_admin_resolves_issue(client, repos, admin, citizen):
    add_issue(repos, "i1", user_id=citizen.id)

    resp = client.put(
        "/api/workflows/i1/status",
        json={"status": "Resolved", "comment": "Patched"},
        headers=auth_headers(admin.id),
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "Resolved"
    assert body["resolvedBy"] == admin.id
    entry = body["statusTimeline"][-1]
    assert entry["status"] == "Resolved"
    assert entry["updatedBy"] == admin.id
    assert entry["comment"] == "Patched"
    assert entry["dept"] == "Roads"

    owner = repos.users.get_user(citizen.id)
    assert owner.points == 25
    assert owner.reports_resolved == 1
    notes = repos.notifications.list_notifications(citizen.id)
    assert notes[0].description == "Changed to Resolved: Patched"


def test_status_change_without_resolution(client, repos, admin, citizen):
    add_issue(repos, "i1", user_id=citizen.id)

    body = client.put(
        "/api/workflows/i1/status", json={"status": "InProgress"}, headers=auth_headers(admin.id)
    ).json()

    assert body["statusTimeline"][-1]["comment"] == "Status changed to InProgress"
    assert body["resolvedBy"] is None
    assert repos.users.get_user(citizen.id).points == 0


def test_unknown_status_is_invalid_input(client, repos, admin):
    add_issue(repos, "i1")

    resp = client.put("/api/workflows/i1/status", json={"status": "Done"}, headers=auth_headers(admin.id))

    assert resp.status_code == 400
    assert resp.json()["code"] == "invalid_input"
    assert repos.issues.get_issue("i1").status == IssueStatus.SUBMITTED


def test_status_requires_admin(client, repos, citizen):
    add_issue(repos, "i1")

    resp = client.put("/api/workflows/i1/status", json={"status": "Resolved"}, headers=auth_headers(citizen.id))

    assert resp.status_code == 403


def test_status_on_anonymous_issue_skips_owner(client, repos, admin):
    add_issue(repos, "i1", user_id=ANONYMOUS_USER_ID)

    resp = client.put("/api/workflows/i1/status", json={"status": "Resolved"}, headers=auth_headers(admin.id))

    assert resp.status_code == 200
    assert repos.notifications.list_notifications(ANONYMOUS_USER_ID) == []


def test_assign_acknowledges_and_notifies_worker(client, repos, admin, worker):
    add_issue(repos, "i1", location=Location(latitude=19.8, longitude=72.7, address="Market Rd"))

    body = client.put(
        "/api/workflows/i1/assign",
        json={"departmentTag": "Sanitation", "assignedTo": worker.id, "deadline": "2025-03-10"},
        headers=auth_headers(admin.id),
    ).json()

    assert body["status"] == "Acknowledged"
    assert body["departmentTag"] == "Sanitation"
    assert body["assignedTo"] == worker.id
    assert body["deadline"] == "2025-03-10"
    assert body["statusTimeline"][-1]["comment"] == "Assigned to Sanitation"

    notes = repos.notifications.list_notifications(worker.id)
    assert notes[0].title == "New Task Assigned"
    assert "Market Rd" in notes[0].description


def test_assign_keeps_later_status(client, repos, admin, worker):
    add_issue(repos, "i1", status=IssueStatus.IN_PROGRESS)

    body = client.put(
        "/api/workflows/i1/assign", json={"assignedTo": worker.id}, headers=auth_headers(admin.id)
    ).json()

    assert body["status"] == "InProgress"
    assert body["statusTimeline"] == []


def test_worker_resolution_records_proof_and_rewards(client, repos, worker, citizen):
    add_issue(repos, "i1", user_id=citizen.id, assigned_to=worker.id)

    body = client.put(
        "/api/workflows/i1/worker-update",
        json={"status": "Resolved", "proofImage": "/uploads/after.jpg", "comment": "Filled and levelled"},
        headers=auth_headers(worker.id),
    ).json()

    proof = body["resolutionProof"]
    assert proof["afterImage"] == "/uploads/after.jpg"
    assert proof["workerRemarks"] == "Filled and levelled"
    assert proof["resolvedBy"] == worker.id
    assert body["statusTimeline"][-1]["dept"] == "Field Operations"

    assert repos.users.get_user(worker.id).reports_resolved == 1
    owner = repos.users.get_user(citizen.id)
    assert owner.points == 50
    assert owner.reports_resolved == 1


def test_worker_update_defaults_proof(client, repos, worker):
    add_issue(repos, "i1")

    body = client.put(
        "/api/workflows/i1/worker-update", json={"status": "Resolved"}, headers=auth_headers(worker.id)
    ).json()

    assert body["resolutionProof"]["afterImage"] == "/public/images/brokenfootpath.jpg"
    assert body["resolutionProof"]["workerRemarks"] == "Work completed and verified by site visit."


def test_worker_update_without_status_changes_nothing(client, repos, worker):
    add_issue(repos, "i1")

    body = client.put("/api/workflows/i1/worker-update", json={}, headers=auth_headers(worker.id)).json()

    assert body["status"] == "Submitted"
    assert body["statusTimeline"] == []


def test_worker_update_forbidden_for_citizen(client, repos, citizen):
    add_issue(repos, "i1")

    resp = client.put(
        "/api/workflows/i1/worker-update", json={"status": "Resolved"}, headers=auth_headers(citizen.id)
    )

    assert resp.status_code == 403


def test_admin_may_post_worker_update(client, repos, admin):
    add_issue(repos, "i1")

    resp = client.put(
        "/api/workflows/i1/worker-update", json={"status": "InProgress"}, headers=auth_headers(admin.id)
    )

    assert resp.status_code == 200


def test_assigned_issues(client, repos, worker):
    add_issue(repos, "mine-old", minutes_ago=10, assigned_to=worker.id)
    add_issue(repos, "mine-new", minutes_ago=1, assigned_to=worker.id)
    add_issue(repos, "theirs", assigned_to="someone-else")

    body = client.get(f"/api/workflows/assigned/{worker.id}", headers=auth_headers(worker.id)).json()

    assert [i["_id"] for i in body] == ["mine-new", "mine-old"]


def test_workflow_on_missing_issue(client, repos, admin):
    resp = client.put("/api/workflows/missing/status", json={"status": "Resolved"}, headers=auth_headers(admin.id))

    assert resp.status_code == 404
