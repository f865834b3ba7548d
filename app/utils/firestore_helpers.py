"""
Firestore query helpers.

NOTE: For firebase_admin SDK, we use positional arguments which still work.
The deprecation warning is just a warning - the functionality is still supported.
"""

from typing import Dict, Iterator, List, Sequence

# Firestore caps the number of values in a single "in" filter.
FIRESTORE_IN_LIMIT = 30


def where_filter(query, field_path: str, op_string: str, value):
    """
    Helper function for Firestore queries.

    Usage:
        query = where_filter(collection, "author_type", "==", "MunicipalPage")
        query = where_filter(query, "issue_id", "in", ids)
    """
    return query.where(field_path, op_string, value)


def chunked(values: Sequence, size: int = FIRESTORE_IN_LIMIT) -> Iterator[List]:
    """Split values into lists small enough for an "in" filter."""
    for start in range(0, len(values), size):
        yield list(values[start:start + size])


def doc_to_row(doc) -> Dict:
    """Document snapshot -> plain dict with the document id under "id"."""
    row = doc.to_dict() or {}
    row["id"] = doc.id
    return row


def pair_doc_id(left: str, right: str) -> str:
    """
    Deterministic document id for a relation row.

    Writing with this id turns an insert into an upsert keyed by the pair,
    which is what makes repeated follow / seen writes converge.
    """
    return f"{left}__{right}"
