from __future__ import annotations
"""Endpoint resolution for AWS and S3-compatible providers."""
from urllib.parse import urlparse

from .models import Credentials, Endpoint
from .signing import uri_encode_path

PATH_STYLE_HOSTS = ("minio", "localstack", "localhost", "127.0.0.1")


def is_path_style_endpoint(endpoint: str) -> bool:
    """Guess whether a custom endpoint serves buckets under the path."""

    hostname = (urlparse(endpoint).hostname or "").lower()
    return any(marker in hostname for marker in PATH_STYLE_HOSTS)


def uses_path_style(credentials: Credentials) -> bool:
    if not credentials.endpoint:
        return False
    if credentials.path_style is not None:
        return credentials.path_style
    return is_path_style_endpoint(credentials.endpoint)


def resolve_object_endpoint(credentials: Credentials, key: str) -> Endpoint:
    encoded_key = uri_encode_path(key.lstrip("/"))
    return _resolve(credentials, encoded_key)


def resolve_bucket_endpoint(credentials: Credentials) -> Endpoint:
    return _resolve(credentials, "")


def _resolve(credentials: Credentials, encoded_path: str) -> Endpoint:
    if not credentials.endpoint:
        host = f"{credentials.bucket}.s3.{credentials.region}.amazonaws.com"
        return Endpoint(
            scheme="https",
            host=host,
            base_url=f"https://{host}",
            canonical_uri=f"/{encoded_path}",
        )

    parsed = urlparse(credentials.endpoint)
    if not parsed.scheme or not parsed.netloc:
        raise ValueError(f"invalid storage endpoint: {credentials.endpoint}")
    host = parsed.netloc

    if uses_path_style(credentials):
        return Endpoint(
            scheme=parsed.scheme,
            host=host,
            base_url=f"{parsed.scheme}://{host}/{credentials.bucket}",
            canonical_uri=f"/{credentials.bucket}/{encoded_path}",
        )
    return Endpoint(
        scheme=parsed.scheme,
        host=host,
        base_url=credentials.endpoint.rstrip("/"),
        canonical_uri=f"/{encoded_path}",
    )
