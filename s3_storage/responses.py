from __future__ import annotations
"""Mapping of S3 XML list responses onto the listing models."""
from datetime import datetime, timezone
import logging
from typing import Any, Optional
from xml.parsers.expat import ExpatError

import xmltodict

from .errors import S3ResponseParseError
from .models import S3ListResult, S3Object

LOGGER = logging.getLogger(__name__)


def parse_list_objects_response(xml: str | bytes) -> S3ListResult:
    """Parse a ``ListBucketResult`` document.

    Raises:
        S3ResponseParseError: when the body is not XML or is not a listing.
    """

    try:
        document = xmltodict.parse(xml, process_namespaces=False)
    except ExpatError as exc:
        raise S3ResponseParseError(f"Malformed S3 list response: {exc}") from exc

    if not isinstance(document, dict) or "ListBucketResult" not in document:
        raise S3ResponseParseError("S3 list response has no ListBucketResult element")
    result = document["ListBucketResult"] or {}

    objects = [
        _parse_object(entry)
        for entry in _as_list(result.get("Contents"))
        if isinstance(entry, dict) and entry.get("Key")
    ]
    prefixes = [
        str(entry["Prefix"])
        for entry in _as_list(result.get("CommonPrefixes"))
        if isinstance(entry, dict) and entry.get("Prefix")
    ]
    token = result.get("NextContinuationToken")
    return S3ListResult(
        objects=objects,
        prefixes=prefixes,
        continuation_token=str(token) if token else None,
        is_truncated=_parse_truncated(result.get("IsTruncated")),
    )


def _as_list(value: Any) -> list:
    # A lone element parses to a dict, repeated elements to a list.
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _parse_object(entry: dict) -> S3Object:
    etag = entry.get("ETag")
    return S3Object(
        key=str(entry["Key"]),
        size=_parse_size(entry.get("Size")),
        last_modified=_parse_timestamp(entry.get("LastModified")),
        etag=str(etag).replace('"', "") if etag else None,
        is_directory=False,
    )


def _parse_size(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(value, 0)
    try:
        return max(int(str(value).strip()), 0)
    except (TypeError, ValueError):
        return 0


def _parse_timestamp(value: Optional[str]) -> datetime:
    if not value:
        return datetime.now(timezone.utc)
    text = str(value).strip()
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        LOGGER.warning("Unparseable LastModified value '%s'", text)
        return datetime.now(timezone.utc)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_truncated(value: Any) -> bool:
    return value is True or value == "true"
