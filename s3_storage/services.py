from __future__ import annotations
"""Storage operations: presigned URLs, listings and deletes."""
from datetime import datetime, timezone
import logging
from typing import Callable, Optional

import requests

from .credentials import CredentialsProvider, default_credentials_provider
from .endpoints import resolve_bucket_endpoint, resolve_object_endpoint
from .errors import S3NotConfiguredError, S3RequestError
from .models import Credentials, S3ListResult, SignedUrlOptions, SigningContext
from .responses import parse_list_objects_response
from .settings import ClientSettings
from .signing import SignedRequest, presign_url, sign_request

LOGGER = logging.getLogger(__name__)

PRESIGN_METHODS = ("GET", "PUT")

RequestFn = Callable[..., requests.Response]
ClockFn = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class S3StorageService:
    """Signs and issues S3 requests for tenants without any vendor SDK.

    The service keeps no per-request state; every call resolves credentials,
    reads the clock once and signs from scratch.
    """

    def __init__(
        self,
        credentials_provider: CredentialsProvider | None = None,
        *,
        request_func: RequestFn | None = None,
        clock: ClockFn | None = None,
        settings: ClientSettings | None = None,
        timeout: float | None = None,
    ):
        self._credentials_provider = credentials_provider or default_credentials_provider()
        self._request_func = request_func or requests.request
        self._clock = clock or _utcnow
        self._settings = settings or ClientSettings()
        self._timeout = timeout

    def is_configured(self, tenant_id: str) -> bool:
        return self._credentials_provider.get_s3_credentials(tenant_id) is not None

    def generate_signed_url(
        self,
        tenant_id: str,
        key: str,
        method: str = "GET",
        options: SignedUrlOptions | None = None,
    ) -> str:
        """Create a presigned URL for downloading or uploading ``key``.

        Raises:
            S3NotConfiguredError: when the tenant has no storage credentials.
            ValueError: for an unsupported method or a non-positive expiry.
        """

        operation = method.strip().upper()
        if operation not in PRESIGN_METHODS:
            raise ValueError("method must be either 'GET' or 'PUT'")
        if options is None:
            options = SignedUrlOptions(expires_in=self._settings.default_expires_in)
        if options.expires_in <= 0:
            raise ValueError("expires_in must be greater than zero")

        credentials = self._require_credentials(tenant_id)
        endpoint = resolve_object_endpoint(credentials, key)

        extra_params: dict[str, str] = {}
        if operation == "GET":
            if options.content_type:
                extra_params["response-content-type"] = options.content_type
            if options.content_disposition:
                extra_params["response-content-disposition"] = options.content_disposition

        context = self._signing_context(credentials)
        url = presign_url(
            credentials,
            endpoint,
            operation,
            context,
            options.expires_in,
            extra_params=extra_params,
        )
        LOGGER.debug(
            "Presigned %s for '%s' on bucket '%s' (expires in %ds)",
            operation,
            key,
            credentials.bucket,
            options.expires_in,
        )
        return url

    def list_objects(
        self,
        tenant_id: str,
        prefix: str = "",
        continuation_token: str | None = None,
        max_keys: int | None = None,
    ) -> S3ListResult:
        """Return one page of objects and virtual folders under ``prefix``.

        Raises:
            S3NotConfiguredError: when the tenant has no storage credentials.
            S3RequestError: when the provider answers with a non-2xx status.
            S3ResponseParseError: when the listing XML cannot be parsed.
        """

        credentials = self._require_credentials(tenant_id)
        endpoint = resolve_bucket_endpoint(credentials)

        params = {
            "list-type": "2",
            "max-keys": str(max_keys if max_keys is not None else self._settings.default_max_keys),
            "delimiter": "/",
        }
        if prefix:
            params["prefix"] = prefix
        if continuation_token:
            params["continuation-token"] = continuation_token

        signed = sign_request(credentials, endpoint, "GET", self._signing_context(credentials), params)
        response = self._send(signed, "list")
        if not _is_success(response.status_code):
            LOGGER.error(
                "S3 list objects failed for bucket '%s' (status %s): %s",
                credentials.bucket,
                response.status_code,
                response.text,
            )
            raise S3RequestError("list", status=response.status_code, body=response.text)

        result = parse_list_objects_response(response.content)
        LOGGER.debug(
            "Listed %d objects and %d prefixes under '%s' (truncated=%s)",
            len(result.objects),
            len(result.prefixes),
            prefix,
            result.is_truncated,
        )
        return result

    def delete_object(self, tenant_id: str, key: str) -> None:
        """Delete ``key`` from the tenant bucket.

        Raises:
            S3NotConfiguredError: when the tenant has no storage credentials.
            S3RequestError: when the provider answers with a non-2xx status.
        """

        credentials = self._require_credentials(tenant_id)
        endpoint = resolve_object_endpoint(credentials, key)
        signed = sign_request(credentials, endpoint, "DELETE", self._signing_context(credentials))
        response = self._send(signed, "delete")
        if not _is_success(response.status_code):
            LOGGER.error(
                "S3 delete failed for key '%s' (status %s): %s",
                key,
                response.status_code,
                response.text,
            )
            raise S3RequestError("delete", status=response.status_code, body=response.text)
        LOGGER.debug("Deleted '%s' from bucket '%s'", key, credentials.bucket)

    def _require_credentials(self, tenant_id: str) -> Credentials:
        credentials = self._credentials_provider.get_s3_credentials(tenant_id)
        if credentials is None:
            raise S3NotConfiguredError(tenant_id)
        return credentials

    def _signing_context(self, credentials: Credentials) -> SigningContext:
        return SigningContext.create(self._clock(), credentials.region)

    def _send(self, signed: SignedRequest, operation: str) -> requests.Response:
        LOGGER.debug("Sending S3 %s request: %s %s", operation, signed.method, signed.url)
        try:
            return self._request_func(
                signed.method,
                signed.url,
                headers=signed.headers,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            LOGGER.error("S3 %s request could not be sent: %s", operation, exc)
            raise S3RequestError(operation, body=str(exc)) from exc


def _is_success(status: Optional[int]) -> bool:
    return status is not None and 200 <= status < 300
