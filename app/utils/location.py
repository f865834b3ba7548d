"""
Location parsing at the request boundary.

Clients send `location` in several shapes depending on transport (JSON body
vs multipart form). Everything is normalized to app.models.issue.Location
before any service sees it.

Accepted forms:
    None / ""                                   -> None
    {"latitude": .., "longitude": .., "address"?}
    {"type": "Point", "coordinates": [lng, lat], "address"?}
    a JSON string encoding either object form
"""

import json
from typing import Any, Optional

from pydantic import ValidationError

from app.core.errors import InvalidInputError
from app.models.issue import Location


def _from_mapping(raw: dict) -> Location:
    address = raw.get("address")
    if address is not None and not isinstance(address, str):
        raise InvalidInputError("location.address must be a string")

    if "coordinates" in raw:
        if raw.get("type", "Point") != "Point":
            raise InvalidInputError(f"Unsupported location type: {raw.get('type')}")
        coords = raw["coordinates"]
        if not isinstance(coords, (list, tuple)) or len(coords) != 2:
            raise InvalidInputError("location.coordinates must be [longitude, latitude]")
        longitude, latitude = coords
    elif "latitude" in raw and "longitude" in raw:
        latitude, longitude = raw["latitude"], raw["longitude"]
    else:
        raise InvalidInputError("location must have coordinates or latitude/longitude")

    if isinstance(latitude, bool) or isinstance(longitude, bool):
        raise InvalidInputError("location coordinates must be numbers")
    try:
        return Location(latitude=latitude, longitude=longitude, address=address)
    except ValidationError as e:
        raise InvalidInputError(f"Invalid location: {e.errors()[0]['msg']}")


def parse_location(raw: Any) -> Optional[Location]:
    """Normalize a raw `location` payload. Raises InvalidInputError when malformed."""
    if raw is None:
        return None
    if isinstance(raw, Location):
        return raw
    if isinstance(raw, str):
        if not raw.strip():
            return None
        try:
            decoded = json.loads(raw)
        except json.JSONDecodeError:
            raise InvalidInputError("location is not valid JSON")
        if not isinstance(decoded, dict):
            raise InvalidInputError("location JSON must encode an object")
        return _from_mapping(decoded)
    if isinstance(raw, dict):
        return _from_mapping(raw)
    raise InvalidInputError(f"Unsupported location payload of type {type(raw).__name__}")
