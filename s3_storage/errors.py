from __future__ import annotations
"""Exceptions raised by the storage client."""
from typing import Optional


class S3StorageError(RuntimeError):
    """Base class for storage client failures."""


class S3NotConfiguredError(S3StorageError):
    """Raised when no credentials are available for a tenant."""

    def __init__(self, tenant_id: str):
        super().__init__(f"S3 is not configured for tenant '{tenant_id}'")
        self.tenant_id = tenant_id


class S3RequestError(S3StorageError):
    """Raised when the provider rejects a request or cannot be reached."""

    def __init__(self, operation: str, status: Optional[int] = None, body: str = ""):
        if status is None:
            message = f"S3 {operation} failed: {body}" if body else f"S3 {operation} failed"
        else:
            message = f"S3 {operation} failed: {status}"
        super().__init__(message)
        self.operation = operation
        self.status = status
        self.body = body


class S3ResponseParseError(S3StorageError):
    """Raised when a provider response cannot be parsed."""
