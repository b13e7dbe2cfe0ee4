# turns a validated request into the literal query string parameters sent upstream

from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Dict

from .validation import LocationRequest

# the provider answers time queries with the closest older report at second precision,
# so range starts snap to the start of their second and every other timestamp to its end
FLOOR_TO_SECOND = ("start_datetime",)
CEIL_TO_SECOND = ("datetime", "end_datetime")


def floor_second(dt: datetime) -> datetime:
    return dt.astimezone(timezone.utc).replace(microsecond=0)

def ceil_second(dt: datetime) -> datetime:
    return dt.astimezone(timezone.utc).replace(microsecond=999000)

def format_timestamp(dt: datetime) -> str:
    # ISO 8601, UTC, millisecond precision: 2017-03-01T12:00:00.999Z
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")

def build_query(request: LocationRequest, api_key: str) -> Dict[str, Any]:
    qs = request.model_dump(by_alias=True, exclude_none=True)

    if "fields" in qs:
        qs["fields"] = ",".join(qs["fields"])

    for name in FLOOR_TO_SECOND:
        if name in qs:
            qs[name] = format_timestamp(floor_second(qs[name]))
    for name in CEIL_TO_SECOND:
        if name in qs:
            qs[name] = format_timestamp(ceil_second(qs[name]))

    qs["key"] = api_key
    return qs

def redact(qs: Dict[str, Any]) -> Dict[str, Any]:
    # copy safe to put in log records
    return {k: ("***" if k == "key" else v) for k, v in qs.items()}
