"""Local JSON store for UI settings and provider API keys.

Settings are an opaque key-value blob owned by the UI layer (seat choices,
temperatures, auto-play delay, ...). Credentials are one opaque string per
provider id. Both live as JSON files under the data directory, which should
be gitignored.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class SettingsStore:
    def __init__(self, data_dir: str | Path) -> None:
        self._dir = Path(data_dir)
        self._settings_path = self._dir / "settings.json"
        self._credentials_path = self._dir / "credentials.json"

    # ------------------------------------------------------------------ #
    # Settings blob                                                        #
    # ------------------------------------------------------------------ #

    def load_settings(self) -> dict:
        return self._read(self._settings_path)

    def save_settings(self, settings: dict) -> None:
        self._write(self._settings_path, settings)

    # ------------------------------------------------------------------ #
    # Credentials                                                          #
    # ------------------------------------------------------------------ #

    def load_credentials(self) -> dict[str, str]:
        return {
            str(k): str(v)
            for k, v in self._read(self._credentials_path).items()
            if isinstance(v, str) and v
        }

    def load_credential(self, provider_id: str) -> str | None:
        return self.load_credentials().get(provider_id)

    def save_credential(self, provider_id: str, key: str) -> None:
        creds = self.load_credentials()
        creds[provider_id] = key
        self._write(self._credentials_path, creds)
        logger.info("Saved API key for %s", provider_id)

    def clear_credential(self, provider_id: str) -> bool:
        """Remove a stored key. Returns True if there was one."""
        creds = self.load_credentials()
        if creds.pop(provider_id, None) is None:
            return False
        self._write(self._credentials_path, creds)
        logger.info("Cleared API key for %s", provider_id)
        return True

    # ------------------------------------------------------------------ #
    # Internal                                                             #
    # ------------------------------------------------------------------ #

    def _read(self, path: Path) -> dict:
        if not path.exists():
            return {}
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning("Ignoring unreadable JSON in %s", path)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, path: Path, data: dict) -> None:
        self._dir.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")
