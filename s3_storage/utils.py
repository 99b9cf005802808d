from __future__ import annotations
"""Key validation, formatting and content-type helpers."""
import re

MAX_KEY_LENGTH = 1024
SIZE_UNITS = ("Bytes", "KB", "MB", "GB", "TB")
DEFAULT_MIME_TYPE = "application/octet-stream"

MIME_TYPES = {
    "txt": "text/plain",
    "html": "text/html",
    "css": "text/css",
    "js": "application/javascript",
    "json": "application/json",
    "xml": "application/xml",
    "yaml": "text/yaml",
    "yml": "text/yaml",
    "md": "text/markdown",
    "csv": "text/csv",
    "pdf": "application/pdf",
    "zip": "application/zip",
    "gz": "application/gzip",
    "tar": "application/x-tar",
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "webp": "image/webp",
    "svg": "image/svg+xml",
    "ico": "image/x-icon",
    "mp4": "video/mp4",
    "webm": "video/webm",
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
    "ogg": "audio/ogg",
    "woff": "font/woff",
    "woff2": "font/woff2",
    "ttf": "font/ttf",
    "eot": "application/vnd.ms-fontobject",
}

_CONTROL_CHARS = re.compile(r"[\x00-\x1f]")


def format_bytes(size: int) -> str:
    if size <= 0:
        return "0 Bytes"
    value = float(size)
    index = 0
    while value >= 1024 and index < len(SIZE_UNITS) - 1:
        value /= 1024
        index += 1
    # 1.50 -> "1.5", 2.00 -> "2"
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {SIZE_UNITS[index]}"


def get_file_extension(key: str) -> str:
    parts = key.split(".")
    return parts[-1].lower() if len(parts) > 1 else ""


def get_mime_type(key: str) -> str:
    return MIME_TYPES.get(get_file_extension(key), DEFAULT_MIME_TYPE)


def is_valid_s3_key(key: str) -> bool:
    if not key or len(key) > MAX_KEY_LENGTH:
        return False
    return _CONTROL_CHARS.search(key) is None


def sanitize_s3_key(key: str) -> str:
    return re.sub(r"/+", "/", key.lstrip("/"))


def compose_s3_key(prefix: str, name: str) -> str:
    key_name = name.strip()
    if not key_name:
        raise ValueError("Object name cannot be empty")
    cleaned_prefix = sanitize_s3_key(prefix.strip())
    if cleaned_prefix and not cleaned_prefix.endswith("/"):
        cleaned_prefix += "/"
    return f"{cleaned_prefix}{key_name}" if cleaned_prefix else key_name
