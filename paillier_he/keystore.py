"""In-memory registry of private keys served by the HTTP API. Nothing is persisted."""

import secrets
import threading
from typing import Optional

from paillier_he import config
from paillier_he.crypto.keys import PrivateKey


class KeyNotFound(KeyError):
    pass


class KeyStoreFull(Exception):
    pass


class KeyStore:
    def __init__(self, max_keys: Optional[int] = None):
        self.max_keys = config.MAX_KEYS if max_keys is None else max_keys
        self._keys: dict[str, PrivateKey] = {}
        self._lock = threading.Lock()

    def is_full(self) -> bool:
        with self._lock:
            return len(self._keys) >= self.max_keys

    def add(self, priv: PrivateKey) -> str:
        key_id = f"key-{secrets.token_hex(8)}"
        with self._lock:
            if len(self._keys) >= self.max_keys:
                raise KeyStoreFull(f"key store holds its maximum of {self.max_keys} keys")
            self._keys[key_id] = priv
        return key_id

    def get(self, key_id: str) -> PrivateKey:
        with self._lock:
            try:
                return self._keys[key_id]
            except KeyError:
                raise KeyNotFound(key_id) from None

    def delete(self, key_id: str) -> None:
        with self._lock:
            if self._keys.pop(key_id, None) is None:
                raise KeyNotFound(key_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._keys)
