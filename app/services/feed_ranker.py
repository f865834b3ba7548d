"""
Municipal feed ranking.

Pure functions: given the municipal issues a user can see, the set of page ids
they follow and the set of issue ids they have already seen, produce a
deterministic ordering. No I/O and no mutation of the inputs.

Buckets (lower ranks first):

    follows page | seen  | bucket
    -------------+-------+-------
    yes          | no    | 0
    yes          | yes   | 1
    no           | no    | 2
    no           | yes   | 3

Within a bucket: newest created_at first, then id descending. The id
tie-break makes the order independent of the order the store returned rows in.
"""

from dataclasses import dataclass
from typing import AbstractSet, Any, Iterable, List, Optional

from app.core.settings import settings
from app.models.issue import Issue
from app.utils.time_utils import to_millis


@dataclass(frozen=True)
class FeedRow:
    issue: Issue
    is_following_page: bool
    is_seen: bool
    bucket: int
    created_at_ms: int


def classify_bucket(follows_page: bool, is_seen: bool) -> int:
    if follows_page:
        return 1 if is_seen else 0
    return 3 if is_seen else 2


def clamp_limit(
    raw: Any,
    default: Optional[int] = None,
    maximum: Optional[int] = None,
) -> int:
    """
    Page size from an untrusted query value.

    Absent, non-numeric and values below 1 fall back to the default; anything
    above the maximum is capped.
    """
    default = default if default is not None else settings.FEED_DEFAULT_LIMIT
    maximum = maximum if maximum is not None else settings.FEED_MAX_LIMIT

    if raw is None or isinstance(raw, bool):
        return default
    try:
        value = int(float(str(raw).strip()))
    except (ValueError, OverflowError):
        return default
    if value < 1:
        return default
    return min(value, maximum)


class _DescendingId(str):
    """str whose ordering is reversed, for use inside an ascending sort key."""

    def __lt__(self, other):
        return str.__gt__(self, other)

    def __gt__(self, other):
        return str.__lt__(self, other)

    def __le__(self, other):
        return str.__ge__(self, other)

    def __ge__(self, other):
        return str.__le__(self, other)


def _sort_key(row: FeedRow):
    return (row.bucket, -row.created_at_ms, _DescendingId(row.issue.id))


def build_rows(
    issues: Iterable[Issue],
    following_page_ids: AbstractSet[str],
    seen_issue_ids: AbstractSet[str],
) -> List[FeedRow]:
    rows = []
    for issue in issues:
        follows_page = issue.municipal_page_id in following_page_ids
        is_seen = issue.id in seen_issue_ids
        rows.append(FeedRow(
            issue=issue,
            is_following_page=follows_page,
            is_seen=is_seen,
            bucket=classify_bucket(follows_page, is_seen),
            created_at_ms=to_millis(issue.created_at),
        ))
    return rows


def rank_feed(
    issues: Iterable[Issue],
    following_page_ids: AbstractSet[str],
    seen_issue_ids: AbstractSet[str],
    limit: int,
) -> List[FeedRow]:
    """Bucket, sort and truncate. Same inputs always give the same output order."""
    rows = build_rows(issues, following_page_ids, seen_issue_ids)
    rows.sort(key=_sort_key)
    return rows[:limit]
