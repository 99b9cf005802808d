from __future__ import annotations
"""Data models shared by the signer, the resolver and the operations."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

SERVICE_NAME = "s3"
DEFAULT_EXPIRES_IN = 3600
DEFAULT_MAX_KEYS = 100


@dataclass(frozen=True)
class Credentials:
    """Storage credentials resolved for a single tenant."""

    access_key_id: str
    secret_access_key: str
    region: str
    bucket: str
    session_token: Optional[str] = None
    endpoint: Optional[str] = None
    path_style: Optional[bool] = None

    def __post_init__(self) -> None:
        missing = [
            name
            for name in ("bucket", "region", "access_key_id", "secret_access_key")
            if not getattr(self, name)
        ]
        if missing:
            raise ValueError(f"S3 credentials require {', '.join(missing)}")


@dataclass(frozen=True)
class SigningContext:
    """Timestamps and scope for one signature."""

    now: datetime
    date_stamp: str
    amz_date: str
    credential_scope: str

    @classmethod
    def create(cls, now: datetime, region: str, service: str = SERVICE_NAME) -> "SigningContext":
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        now = now.astimezone(timezone.utc)
        date_stamp = now.strftime("%Y%m%d")
        return cls(
            now=now,
            date_stamp=date_stamp,
            amz_date=now.strftime("%Y%m%dT%H%M%SZ"),
            credential_scope=f"{date_stamp}/{region}/{service}/aws4_request",
        )


@dataclass(frozen=True)
class CanonicalRequest:
    method: str
    canonical_uri: str
    canonical_query_string: str
    canonical_headers: str
    signed_headers: str
    payload_hash: str

    def serialize(self) -> str:
        # canonical_headers already ends with a newline, which leaves the
        # blank line the protocol expects before the signed header list.
        return "\n".join(
            [
                self.method,
                self.canonical_uri,
                self.canonical_query_string,
                self.canonical_headers,
                self.signed_headers,
                self.payload_hash,
            ]
        )


@dataclass(frozen=True)
class Endpoint:
    """Where a request goes and which path gets signed."""

    scheme: str
    host: str
    base_url: str
    canonical_uri: str

    @property
    def url(self) -> str:
        return f"{self.scheme}://{self.host}{self.canonical_uri}"


@dataclass
class S3Object:
    """A single object entry from a listing."""

    key: str
    size: int
    last_modified: datetime
    etag: Optional[str] = None
    is_directory: bool = False


@dataclass
class S3ListResult:
    """One page of a delimiter-based listing."""

    objects: list[S3Object] = field(default_factory=list)
    prefixes: list[str] = field(default_factory=list)
    continuation_token: Optional[str] = None
    is_truncated: bool = False


@dataclass(frozen=True)
class SignedUrlOptions:
    expires_in: int = DEFAULT_EXPIRES_IN
    content_type: Optional[str] = None
    content_disposition: Optional[str] = None
