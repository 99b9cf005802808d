from __future__ import annotations
"""AWS Signature Version 4 signing for S3 requests."""
from dataclasses import dataclass, field
import hashlib
import hmac
from typing import Mapping, Optional
from urllib.parse import quote

from .models import SERVICE_NAME, CanonicalRequest, Credentials, Endpoint, SigningContext

ALGORITHM = "AWS4-HMAC-SHA256"
UNSIGNED_PAYLOAD = "UNSIGNED-PAYLOAD"


@dataclass(frozen=True)
class SignedRequest:
    """A request ready to be sent with header-based authentication."""

    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)


def uri_encode(value: str) -> str:
    """Percent-encode everything except RFC 3986 unreserved characters.

    ``quote`` keeps ``A-Z a-z 0-9 - _ . ~`` and escapes the UTF-8 bytes of
    everything else, including ``! ' ( ) *`` which S3 expects escaped.
    """

    return quote(value, safe="")


def uri_encode_path(path: str) -> str:
    """Encode each ``/`` separated segment, keeping the separators."""

    return "/".join(uri_encode(segment) for segment in path.split("/"))


def canonical_query_string(params: Mapping[str, str] | None) -> str:
    if not params:
        return ""
    encoded = sorted((uri_encode(str(key)), uri_encode(str(value))) for key, value in params.items())
    return "&".join(f"{key}={value}" for key, value in encoded)


def sha256_hex(data: str | bytes) -> str:
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def hmac_sha256(key: bytes | str, message: str) -> bytes:
    if isinstance(key, str):
        key = key.encode("utf-8")
    return hmac.new(key, message.encode("utf-8"), hashlib.sha256).digest()


def derive_signing_key(
    secret_access_key: str,
    date_stamp: str,
    region: str,
    service: str = SERVICE_NAME,
) -> bytes:
    """Derive the request signing key: kSecret -> kDate -> kRegion -> kService -> kSigning."""

    k_date = hmac_sha256("AWS4" + secret_access_key, date_stamp)
    k_region = hmac_sha256(k_date, region)
    k_service = hmac_sha256(k_region, service)
    return hmac_sha256(k_service, "aws4_request")


def canonicalize_headers(headers: Mapping[str, str]) -> tuple[str, str]:
    """Return the canonical header block and the signed header list."""

    normalized = {name.lower(): " ".join(str(value).split()) for name, value in headers.items()}
    names = sorted(normalized)
    canonical = "".join(f"{name}:{normalized[name]}\n" for name in names)
    return canonical, ";".join(names)


def build_canonical_request(
    method: str,
    canonical_uri: str,
    query_params: Mapping[str, str] | None,
    headers: Mapping[str, str],
    payload_hash: str = UNSIGNED_PAYLOAD,
) -> CanonicalRequest:
    canonical_headers, signed_headers = canonicalize_headers(headers)
    return CanonicalRequest(
        method=method.upper(),
        canonical_uri=canonical_uri,
        canonical_query_string=canonical_query_string(query_params),
        canonical_headers=canonical_headers,
        signed_headers=signed_headers,
        payload_hash=payload_hash,
    )


def build_string_to_sign(context: SigningContext, canonical_request: CanonicalRequest) -> str:
    return "\n".join(
        [
            ALGORITHM,
            context.amz_date,
            context.credential_scope,
            sha256_hex(canonical_request.serialize()),
        ]
    )


def calculate_signature(
    credentials: Credentials,
    context: SigningContext,
    canonical_request: CanonicalRequest,
) -> str:
    signing_key = derive_signing_key(credentials.secret_access_key, context.date_stamp, credentials.region)
    string_to_sign = build_string_to_sign(context, canonical_request)
    return hmac.new(signing_key, string_to_sign.encode("utf-8"), hashlib.sha256).hexdigest()


def presign_url(
    credentials: Credentials,
    endpoint: Endpoint,
    method: str,
    context: SigningContext,
    expires_in: int,
    extra_params: Optional[Mapping[str, str]] = None,
) -> str:
    """Build a presigned URL carrying the signature in its query string.

    Only ``host`` (and the session token header, when present) is signed so
    that any HTTP client can use the URL as-is.
    """

    headers = {"host": endpoint.host}
    if credentials.session_token:
        headers["x-amz-security-token"] = credentials.session_token
    _, signed_headers = canonicalize_headers(headers)

    params = {
        "X-Amz-Algorithm": ALGORITHM,
        "X-Amz-Credential": f"{credentials.access_key_id}/{context.credential_scope}",
        "X-Amz-Date": context.amz_date,
        "X-Amz-Expires": str(expires_in),
        "X-Amz-SignedHeaders": signed_headers,
    }
    if credentials.session_token:
        params["X-Amz-Security-Token"] = credentials.session_token
    if extra_params:
        params.update(extra_params)

    canonical_request = build_canonical_request(method, endpoint.canonical_uri, params, headers)
    signature = calculate_signature(credentials, context, canonical_request)
    return f"{endpoint.url}?{canonical_request.canonical_query_string}&X-Amz-Signature={signature}"


def sign_request(
    credentials: Credentials,
    endpoint: Endpoint,
    method: str,
    context: SigningContext,
    query_params: Optional[Mapping[str, str]] = None,
    payload_hash: str = UNSIGNED_PAYLOAD,
) -> SignedRequest:
    """Sign a request with an ``Authorization`` header.

    The returned headers must be sent unchanged: the provider rebuilds the
    canonical request from what it receives.
    """

    headers_to_sign = {
        "host": endpoint.host,
        "x-amz-content-sha256": payload_hash,
        "x-amz-date": context.amz_date,
    }
    if credentials.session_token:
        headers_to_sign["x-amz-security-token"] = credentials.session_token

    canonical_request = build_canonical_request(
        method,
        endpoint.canonical_uri,
        query_params,
        headers_to_sign,
        payload_hash=payload_hash,
    )
    signature = calculate_signature(credentials, context, canonical_request)
    authorization = (
        f"{ALGORITHM} Credential={credentials.access_key_id}/{context.credential_scope}, "
        f"SignedHeaders={canonical_request.signed_headers}, Signature={signature}"
    )

    request_headers = {
        "Host": endpoint.host,
        "x-amz-date": context.amz_date,
        "x-amz-content-sha256": payload_hash,
        "Authorization": authorization,
    }
    if credentials.session_token:
        request_headers["x-amz-security-token"] = credentials.session_token

    url = endpoint.url
    if canonical_request.canonical_query_string:
        url = f"{url}?{canonical_request.canonical_query_string}"
    return SignedRequest(method=canonical_request.method, url=url, headers=request_headers)
