"""Credential storage

The core reads API keys through CredentialStore, which sits on top of an
injected key-value capability (anything with get/set). Two implementations of
that capability are provided: an in-memory dict and a JSON file.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional, Protocol

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Minimal persistence capability used for credentials"""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class InMemoryKeyValueStore:
    """Process-local key-value store"""

    def __init__(self, initial: Optional[Mapping[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


def default_credentials_path() -> Path:
    """Resolve the default location of the credentials file."""
    xdg_config = os.getenv("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / "multi_llm_panel" / "credentials.json"

    # User home fallback
    return Path.home() / ".multi_llm_panel" / "credentials.json"


class JsonFileKeyValueStore:
    """Key-value store persisted as a single JSON object on disk

    Every set writes a temporary owner-only file and swaps it into place.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else default_credentials_path()

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text())
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Could not read credentials file %s: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring credentials file %s: not a JSON object", self.path)
            return {}
        return {str(k): str(v) for k, v in data.items() if v is not None}

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # mkstemp creates the file 0600; the old file stays intact until the replace
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w") as f:
                f.write(json.dumps(data, ensure_ascii=False, indent=2))
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


def credential_key(provider_id: str) -> str:
    return f"{provider_id}_api_key"


def mask_secret(secret: Optional[str]) -> str:
    """Return a display-safe form of a secret (last 4 characters only)"""
    if not secret:
        return "(not set)"
    if len(secret) <= 8:
        return "*" * len(secret)
    return f"{'*' * 8}{secret[-4:]}"


class CredentialStore:
    """Provider id → API key mapping backed by a KeyValueStore

    A blank value means "not configured". Keys in `fallback` (typically taken
    from the environment) are read when the store holds no entry for a
    provider; they are never written to the store.
    """

    def __init__(
        self,
        kv_store: Optional[KeyValueStore] = None,
        fallback: Optional[Mapping[str, str]] = None,
    ):
        self._kv = kv_store if kv_store is not None else InMemoryKeyValueStore()
        self._fallback: Dict[str, str] = dict(fallback or {})

    def get(self, provider_id: str) -> str:
        """Return the stored key, else the fallback key, else an empty string

        A key saved as blank stays cleared even when a fallback exists.
        """
        value = self._kv.get(credential_key(provider_id))
        if value is None:
            value = self._fallback.get(provider_id)
        return value.strip() if value else ""

    def is_configured(self, provider_id: str) -> bool:
        return bool(self.get(provider_id))

    def save(self, credentials: Mapping[str, str]) -> list[str]:
        """Persist keys for several providers

        Args:
            credentials: provider id → secret (blank clears the key)

        Returns:
            list[str]: Provider ids that have a non-empty key after saving
        """
        configured = []
        for provider_id, secret in credentials.items():
            value = (secret or "").strip()
            self._kv.set(credential_key(provider_id), value)
            if value:
                configured.append(provider_id)
        logger.info(
            "Saved credentials for %s", ", ".join(sorted(credentials)) or "no providers"
        )
        return configured

    def configured_providers(self, provider_ids: Iterable[str]) -> list[str]:
        return [provider_id for provider_id in provider_ids if self.is_configured(provider_id)]
