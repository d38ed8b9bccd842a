from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Dict, MutableMapping, Optional, Protocol

from ..core.config import settings


class CredentialKind(str, Enum):
    USER = "user"
    ADMIN = "admin"


class StorageBackend(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStorage:
    """Process-local storage; lives as long as the object does."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class JsonFileStorage:
    """Storage persisted to a JSON file so tokens survive process restarts.

    The file is re-read on every access and rewritten on every change, so the
    last writer wins per key.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        raw = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        if not isinstance(raw, dict):
            return {}
        return {str(key): str(value) for key, value in raw.items() if isinstance(value, str)}

    def _save(self, payload: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")

    def get_item(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        payload = self._load()
        payload[key] = value
        self._save(payload)

    def remove_item(self, key: str) -> None:
        payload = self._load()
        if key in payload:
            del payload[key]
            self._save(payload)


class SessionStorage:
    """Adapter over a Starlette ``request.session`` mapping (signed cookie)."""

    def __init__(self, session: MutableMapping[str, object]) -> None:
        self._session = session

    def get_item(self, key: str) -> Optional[str]:
        value = self._session.get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        self._session[key] = value

    def remove_item(self, key: str) -> None:
        self._session.pop(key, None)


class CredentialStore:
    """User and admin tokens kept under two isolated storage keys.

    Presence of a non-empty token is the only authentication proof; nothing is
    decoded or verified locally.
    """

    def __init__(
        self,
        backend: StorageBackend,
        *,
        user_key: str | None = None,
        admin_key: str | None = None,
    ) -> None:
        self.backend = backend
        self._keys = {
            CredentialKind.USER: user_key or settings.USER_TOKEN_KEY,
            CredentialKind.ADMIN: admin_key or settings.ADMIN_TOKEN_KEY,
        }
        if self._keys[CredentialKind.USER] == self._keys[CredentialKind.ADMIN]:
            raise ValueError("user and admin credentials need distinct storage keys")

    def key_for(self, kind: CredentialKind | str) -> str:
        return self._keys[CredentialKind(kind)]

    def get(self, kind: CredentialKind | str) -> Optional[str]:
        return self.backend.get_item(self.key_for(kind)) or None

    def set(self, kind: CredentialKind | str, token: str) -> None:
        self.backend.set_item(self.key_for(kind), token)

    def clear(self, kind: CredentialKind | str) -> None:
        self.backend.remove_item(self.key_for(kind))

    def has(self, kind: CredentialKind | str) -> bool:
        return self.get(kind) is not None


def file_credential_store(path: Path | str | None = None) -> CredentialStore:
    return CredentialStore(JsonFileStorage(path or settings.credentials_file))
