"""Command line entry point for the S3 storage client."""
import argparse
import logging
import sys
from typing import Optional, Sequence

from .credentials import ChainedCredentialsProvider, EnvironmentCredentialsProvider, TenantProfileStorage
from .errors import S3StorageError
from .models import SignedUrlOptions
from .services import S3StorageService
from .settings import SettingsStorage
from .utils import format_bytes, is_valid_s3_key, sanitize_s3_key


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pys3storage",
        description="Presign, list and delete objects in S3-compatible storage.",
    )
    parser.add_argument("--tenant", default="default", help="Tenant whose credentials are used")
    parser.add_argument("--profiles", help="Path to the tenant profiles JSON file")
    parser.add_argument("--settings", help="Path to the settings JSON file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    presign = commands.add_parser("presign", help="Generate a presigned URL")
    presign.add_argument("key")
    presign.add_argument("--method", choices=["GET", "PUT"], default="GET")
    presign.add_argument("--expires-in", type=int)
    presign.add_argument("--content-type")
    presign.add_argument("--content-disposition")

    listing = commands.add_parser("list", help="List objects under a prefix")
    listing.add_argument("--prefix", default="")
    listing.add_argument("--continuation-token")
    listing.add_argument("--max-keys", type=int)

    delete = commands.add_parser("delete", help="Delete a single object")
    delete.add_argument("key")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    settings = SettingsStorage(args.settings).load()
    provider = ChainedCredentialsProvider(TenantProfileStorage(args.profiles), EnvironmentCredentialsProvider())
    service = S3StorageService(provider, settings=settings)

    try:
        if args.command == "presign":
            return _presign(service, args, settings.default_expires_in)
        if args.command == "list":
            return _list(service, args)
        return _delete(service, args)
    except S3StorageError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


def _checked_key(raw_key: str) -> Optional[str]:
    key = sanitize_s3_key(raw_key)
    if not is_valid_s3_key(key):
        print(f"error: invalid S3 key '{raw_key}'", file=sys.stderr)
        return None
    return key


def _presign(service: S3StorageService, args: argparse.Namespace, default_expires_in: int) -> int:
    key = _checked_key(args.key)
    if key is None:
        return 2
    options = SignedUrlOptions(
        expires_in=args.expires_in or default_expires_in,
        content_type=args.content_type,
        content_disposition=args.content_disposition,
    )
    try:
        url = service.generate_signed_url(args.tenant, key, args.method, options)
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    print(url)
    return 0


def _list(service: S3StorageService, args: argparse.Namespace) -> int:
    result = service.list_objects(args.tenant, args.prefix, args.continuation_token, args.max_keys)
    for prefix in result.prefixes:
        print(f"{'PRE':>30}  {prefix}")
    for obj in result.objects:
        stamp = obj.last_modified.strftime("%Y-%m-%d %H:%M:%S")
        print(f"{stamp}  {format_bytes(obj.size):>10}  {obj.key}")
    if result.is_truncated and result.continuation_token:
        print(f"next continuation token: {result.continuation_token}")
    return 0


def _delete(service: S3StorageService, args: argparse.Namespace) -> int:
    key = _checked_key(args.key)
    if key is None:
        return 2
    service.delete_object(args.tenant, key)
    print(f"deleted {key}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
