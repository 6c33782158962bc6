"""
Durable (key, index) state for resumable PIN sequences.

FileKeyStore layout (one directory per user):
  - master.key      32 random bytes, mode 0600
  - <slot>.json     {"version": 1, "nonce": b64, "ciphertext": b64}

The record payload is ``key || index`` (index as 8 bytes big-endian), sealed
with AES-GCM under a key derived from master.key and the current user name.
The slot name is the associated data, so records cannot be swapped between
slots.
"""
from __future__ import annotations

import base64
import getpass
import json
import logging
import os
import re
import secrets
from pathlib import Path
from typing import Dict, Optional, Protocol, Tuple, Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from .errors import ConfigurationError, KeyStoreError
from .keys import KeyMaterial

logger = logging.getLogger(__name__)

RECORD_VERSION = 1
INDEX_BYTES = 8
_SLOT_RE = re.compile(r"^[A-Za-z0-9_.-]+$")

State = Tuple[KeyMaterial, int]


class KeyStore(Protocol):
    def load(self, slot: str) -> Optional[State]: ...
    def store(self, slot: str, key: KeyMaterial, index: int) -> None: ...


def _pack(key: KeyMaterial, index: int) -> bytes:
    with key.reveal() as raw:
        return bytes(raw) + index.to_bytes(INDEX_BYTES, "big")


def _unpack(payload: bytes) -> State:
    raw, index = payload[:-INDEX_BYTES], payload[-INDEX_BYTES:]
    return KeyMaterial(raw), int.from_bytes(index, "big")


class MemoryKeyStore:
    """In-process store. Records are kept as packed bytes, never as live keys."""

    def __init__(self):
        self._records: Dict[str, bytes] = {}

    def load(self, slot: str) -> Optional[State]:
        payload = self._records.get(slot)
        return None if payload is None else _unpack(payload)

    def store(self, slot: str, key: KeyMaterial, index: int) -> None:
        self._records[slot] = _pack(key, index)

    def __contains__(self, slot: str) -> bool:
        return slot in self._records


class FileKeyStore:
    def __init__(self, directory: Union[str, Path], user: Optional[str] = None):
        self.directory = Path(directory)
        self.user = user or getpass.getuser()
        self._aead: Optional[AESGCM] = None

    # -------- public API --------
    def load(self, slot: str) -> Optional[State]:
        path = self._path(slot)
        if not path.exists():
            logger.debug("No stored state for slot %r in %s", slot, self.directory)
            return None
        try:
            record = json.loads(path.read_text(encoding="utf-8"))
            if record.get("version") != RECORD_VERSION:
                raise KeyStoreError(f"{path}: unsupported record version {record.get('version')!r}")
            nonce = base64.b64decode(record["nonce"])
            ciphertext = base64.b64decode(record["ciphertext"])
            payload = self._cipher().decrypt(nonce, ciphertext, slot.encode("utf-8"))
            return _unpack(payload)
        except InvalidTag as exc:
            raise KeyStoreError(f"{path}: record failed authentication for user {self.user!r}") from exc
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as exc:
            raise KeyStoreError(f"{path}: unreadable record") from exc

    def store(self, slot: str, key: KeyMaterial, index: int) -> None:
        path = self._path(slot)
        nonce = secrets.token_bytes(12)
        ciphertext = self._cipher().encrypt(nonce, _pack(key, index), slot.encode("utf-8"))
        record = {
            "version": RECORD_VERSION,
            "nonce": base64.b64encode(nonce).decode("ascii"),
            "ciphertext": base64.b64encode(ciphertext).decode("ascii"),
        }
        tmp = path.with_suffix(".json.tmp")
        try:
            tmp.write_text(json.dumps(record, indent=2), encoding="utf-8")
            os.replace(tmp, path)
        except OSError as exc:
            raise KeyStoreError(f"{path}: could not write record") from exc

    # -------- internals --------
    def _path(self, slot: str) -> Path:
        if not _SLOT_RE.match(slot):
            raise ConfigurationError(f"invalid slot name {slot!r}")
        return self.directory / f"{slot}.json"

    def _cipher(self) -> AESGCM:
        if self._aead is None:
            master = self._master_secret()
            wrap = HKDF(
                algorithm=hashes.SHA256(),
                length=32,
                salt=None,
                info=f"pinseq-keystore:{self.user}".encode("utf-8"),
            ).derive(master)
            self._aead = AESGCM(wrap)
        return self._aead

    def _master_secret(self) -> bytes:
        path = self.directory / "master.key"
        try:
            if path.exists():
                return path.read_bytes()
            self.directory.mkdir(parents=True, exist_ok=True)
            secret = secrets.token_bytes(32)
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
            with os.fdopen(fd, "wb") as fh:
                fh.write(secret)
            logger.info("Created key store master secret in %s", self.directory)
            return secret
        except OSError as exc:
            raise KeyStoreError(f"{path}: master secret unavailable") from exc
