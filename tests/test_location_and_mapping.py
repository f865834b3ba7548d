from datetime import datetime, timedelta, timezone

import pytest

from app.core.errors import InvalidInputError
from app.models.issue import Location, ResolutionProof, StatusTimelineEntry
from app.utils.field_mapping import issue_from_row, issue_to_api, issue_to_row
from app.utils.firestore_helpers import chunked, pair_doc_id
from app.utils.location import parse_location
from app.utils.time_utils import time_ago, to_millis

from factories import make_post


@pytest.mark.parametrize("raw", [
    {"latitude": 19.8, "longitude": 72.7, "address": "Main Rd"},
    {"type": "Point", "coordinates": [72.7, 19.8], "address": "Main Rd"},
    '{"latitude": 19.8, "longitude": 72.7, "address": "Main Rd"}',
    '{"type": "Point", "coordinates": [72.7, 19.8], "address": "Main Rd"}',
])
def test_parse_location_forms(raw):
    assert parse_location(raw) == Location(latitude=19.8, longitude=72.7, address="Main Rd")


@pytest.mark.parametrize("raw", [None, "", "   "])
def test_parse_location_empty(raw):
    assert parse_location(raw) is None


@pytest.mark.parametrize("raw", [
    "not json",
    "[1, 2]",
    {"latitude": 19.8},
    {"coordinates": [72.7]},
    {"type": "Polygon", "coordinates": [72.7, 19.8]},
    {"latitude": 120, "longitude": 0},
    {"latitude": True, "longitude": 0},
    {"latitude": 1, "longitude": 2, "address": 5},
    42,
])
def test_parse_location_rejects_malformed(raw):
    with pytest.raises(InvalidInputError):
        parse_location(raw)


def test_issue_row_flattens_location():
    issue = make_post("A", "P1", location=Location(latitude=1.5, longitude=2.5, address="X"))

    row = issue_to_row(issue)

    assert "location" not in row
    assert row["location_latitude"] == 1.5
    assert row["location_longitude"] == 2.5
    assert row["location_address"] == "X"
    assert row["author_type"] == "MunicipalPage"
    assert issue_from_row(row) == issue


def test_issue_row_without_location():
    issue = make_post("A", "P1")

    row = issue_to_row(issue)

    assert row["location_latitude"] is None
    assert issue_from_row(row).location is None


def test_issue_api_uses_camel_case():
    issue = make_post(
        "A",
        "P1",
        official_update_type="PublicNotice",
        status_timeline=[StatusTimelineEntry(status="Resolved", updated_by="admin-1")],
        resolution_proof=ResolutionProof(after_image="/after.jpg", resolved_by="w1"),
    )

    data = issue_to_api(issue)

    assert data["_id"] == "A"
    assert data["municipalPageId"] == "P1"
    assert data["officialUpdateType"] == "PublicNotice"
    assert data["statusTimeline"][0]["updatedBy"] == "admin-1"
    assert data["resolutionProof"]["afterImage"] == "/after.jpg"
    assert "municipal_page_id" not in data
    assert "id" not in data


def test_time_ago():
    now = datetime(2025, 1, 2, 12, 0, tzinfo=timezone.utc)

    assert time_ago(now - timedelta(minutes=5), now) == "5m ago"
    assert time_ago(now - timedelta(hours=3), now) == "3h ago"
    assert time_ago(now - timedelta(days=2), now) == "2d ago"
    assert time_ago(now + timedelta(minutes=5), now) == "0m ago"


def test_to_millis_treats_naive_as_utc():
    aware = datetime(2025, 1, 1, tzinfo=timezone.utc)

    assert to_millis(aware.replace(tzinfo=None)) == to_millis(aware)


def test_firestore_helpers():
    assert list(chunked(list(range(65)), 30)) == [list(range(30)), list(range(30, 60)), list(range(60, 65))]
    assert pair_doc_id("u1", "i1") == "u1__i1"
