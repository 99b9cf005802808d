from __future__ import annotations
"""Credential providers resolving storage credentials per tenant."""
from dataclasses import dataclass
import json
import logging
import os
from pathlib import Path
from typing import Mapping, Optional, Protocol

import keyring
from keyring.errors import KeyringError

from .models import Credentials

LOGGER = logging.getLogger(__name__)

SECRET_FIELDS = ("secret_access_key", "session_token")


class CredentialsProvider(Protocol):
    def get_s3_credentials(self, tenant_id: str) -> Credentials | None:
        ...


@dataclass
class TenantProfile:
    """Saved storage configuration for a tenant."""

    tenant_id: str
    bucket: str
    region: str
    access_key_id: str
    secret_access_key: str = ""
    session_token: str = ""
    endpoint: str = ""
    path_style: Optional[bool] = None

    def to_credentials(self) -> Credentials:
        return Credentials(
            access_key_id=self.access_key_id,
            secret_access_key=self.secret_access_key,
            region=self.region,
            bucket=self.bucket,
            session_token=self.session_token or None,
            endpoint=self.endpoint or None,
            path_style=self.path_style,
        )


class KeychainStore:
    """Encapsulates OS keychain access for tenant secrets."""

    def __init__(self, service_name: str = "pys3storage"):
        self._service_name = service_name

    def get_secret(self, tenant_id: str, field_name: str) -> str:
        if not tenant_id:
            return ""
        try:
            return keyring.get_password(self._service_name, self._username(tenant_id, field_name)) or ""
        except KeyringError:
            LOGGER.warning("Keychain lookup failed for tenant '%s'", tenant_id)
            return ""

    def set_secret(self, tenant_id: str, field_name: str, value: str) -> None:
        if not tenant_id:
            return
        if not value:
            self.delete_secret(tenant_id, field_name)
            return
        try:
            keyring.set_password(self._service_name, self._username(tenant_id, field_name), value)
        except KeyringError:
            LOGGER.warning("Keychain write failed for tenant '%s'", tenant_id)

    def delete_secret(self, tenant_id: str, field_name: str) -> None:
        if not tenant_id:
            return
        try:
            keyring.delete_password(self._service_name, self._username(tenant_id, field_name))
        except KeyringError:
            return

    @staticmethod
    def _username(tenant_id: str, field_name: str) -> str:
        return f"{tenant_id}:{field_name}"


class TenantProfileStorage:
    """JSON-backed tenant profiles with secrets kept in the keychain."""

    def __init__(self, storage_path: str | Path | None = None, keychain: KeychainStore | None = None):
        if storage_path is None:
            storage_path = Path.home() / ".pys3storage_tenants.json"
        self._path = Path(storage_path)
        self._keychain = keychain or KeychainStore()

    def get_s3_credentials(self, tenant_id: str) -> Credentials | None:
        for profile in self.load():
            if profile.tenant_id != tenant_id:
                continue
            try:
                return profile.to_credentials()
            except ValueError as exc:
                LOGGER.warning("Ignoring incomplete profile for tenant '%s': %s", tenant_id, exc)
                return None
        return None

    def load(self) -> list[TenantProfile]:
        data = self._read_data()
        profiles: list[TenantProfile] = []
        sanitized: list[dict[str, object]] = []
        saw_plaintext = False
        for entry in data:
            try:
                tenant_id = entry["tenant_id"]
                public = {
                    "tenant_id": tenant_id,
                    "bucket": entry["bucket"],
                    "region": entry["region"],
                    "access_key_id": entry["access_key_id"],
                    "endpoint": entry.get("endpoint") or "",
                    "path_style": _parse_optional_bool(entry.get("path_style")),
                }
            except (KeyError, TypeError):
                continue
            secrets: dict[str, str] = {}
            for field_name in SECRET_FIELDS:
                value = entry.get(field_name) or ""
                if value:
                    saw_plaintext = True
                    self._keychain.set_secret(tenant_id, field_name, value)
                else:
                    value = self._keychain.get_secret(tenant_id, field_name)
                secrets[field_name] = value
            profiles.append(TenantProfile(**public, **secrets))
            sanitized.append(public)
        if saw_plaintext:
            LOGGER.info("Moved plaintext storage secrets from %s into the keychain", self._path)
            self._write_data(sanitized)
        return profiles

    def save(self, profiles: list[TenantProfile]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        data = []
        for profile in profiles:
            self._keychain.set_secret(profile.tenant_id, "secret_access_key", profile.secret_access_key)
            self._keychain.set_secret(profile.tenant_id, "session_token", profile.session_token)
            data.append(
                {
                    "tenant_id": profile.tenant_id,
                    "bucket": profile.bucket,
                    "region": profile.region,
                    "access_key_id": profile.access_key_id,
                    "endpoint": profile.endpoint,
                    "path_style": profile.path_style,
                }
            )
        current = {profile.tenant_id for profile in profiles}
        for tenant_id in self._load_tenant_ids() - current:
            for field_name in SECRET_FIELDS:
                self._keychain.delete_secret(tenant_id, field_name)
        self._write_data(data)

    def _load_tenant_ids(self) -> set[str]:
        tenant_ids = set()
        for entry in self._read_data():
            tenant_id = entry.get("tenant_id") if isinstance(entry, dict) else None
            if isinstance(tenant_id, str) and tenant_id:
                tenant_ids.add(tenant_id)
        return tenant_ids

    def _read_data(self) -> list:
        if not self._path.exists():
            return []
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            LOGGER.warning("Could not read tenant profiles from %s", self._path)
            return []
        return data if isinstance(data, list) else []

    def _write_data(self, data: list[dict[str, object]]) -> None:
        self._path.write_text(json.dumps(data, indent=2), encoding="utf-8")


class EnvironmentCredentialsProvider:
    """Process-wide credentials taken from environment variables."""

    def __init__(self, environ: Mapping[str, str] | None = None):
        self._environ = environ if environ is not None else os.environ

    def get_s3_credentials(self, tenant_id: str) -> Credentials | None:
        env = self._environ
        bucket = env.get("S3_BUCKET")
        region = env.get("AWS_REGION") or env.get("S3_REGION")
        access_key_id = env.get("AWS_ACCESS_KEY_ID")
        secret_access_key = env.get("AWS_SECRET_ACCESS_KEY")
        if not (bucket and region and access_key_id and secret_access_key):
            return None
        return Credentials(
            access_key_id=access_key_id,
            secret_access_key=secret_access_key,
            region=region,
            bucket=bucket,
            session_token=env.get("AWS_SESSION_TOKEN") or None,
            endpoint=env.get("S3_ENDPOINT") or None,
            path_style=_parse_optional_bool(env.get("S3_PATH_STYLE")),
        )


class ChainedCredentialsProvider:
    """Returns the first credentials found, in provider order."""

    def __init__(self, *providers: CredentialsProvider):
        self._providers = providers

    def get_s3_credentials(self, tenant_id: str) -> Credentials | None:
        for provider in self._providers:
            credentials = provider.get_s3_credentials(tenant_id)
            if credentials is not None:
                return credentials
        return None


def default_credentials_provider() -> CredentialsProvider:
    return ChainedCredentialsProvider(TenantProfileStorage(), EnvironmentCredentialsProvider())


def _parse_optional_bool(value: object) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized == "true":
            return True
        if normalized == "false":
            return False
    return None
