from __future__ import annotations
"""Client settings persistence helpers."""

from dataclasses import dataclass
import json
from pathlib import Path

from .models import DEFAULT_EXPIRES_IN, DEFAULT_MAX_KEYS


@dataclass
class ClientSettings:
    """Defaults applied when callers leave options unset."""

    default_expires_in: int = DEFAULT_EXPIRES_IN
    default_max_keys: int = DEFAULT_MAX_KEYS


class SettingsStorage:
    """JSON-backed persistence for :class:`ClientSettings`."""

    def __init__(self, storage_path: str | Path | None = None):
        if storage_path is None:
            storage_path = Path.home() / ".pys3storage_settings.json"
        self._path = Path(storage_path)

    def load(self) -> ClientSettings:
        if not self._path.exists():
            return ClientSettings()
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            return ClientSettings()
        if not isinstance(data, dict):
            return ClientSettings()
        return ClientSettings(
            default_expires_in=_positive_int(data.get("default_expires_in"), ClientSettings.default_expires_in),
            default_max_keys=_positive_int(data.get("default_max_keys"), ClientSettings.default_max_keys),
        )

    def save(self, settings: ClientSettings) -> None:
        payload = {
            "default_expires_in": max(int(settings.default_expires_in), 1),
            "default_max_keys": max(int(settings.default_max_keys), 1),
        }
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError:
            # Persist best-effort; ignore filesystem issues.
            return


def _positive_int(value: object, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        number = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default
