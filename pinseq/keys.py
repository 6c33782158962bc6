from __future__ import annotations

import secrets
from contextlib import contextmanager
from typing import Iterator

from .errors import ConfigurationError

AES_KEY_SIZES = (16, 24, 32)


class KeyMaterial:
    """
    Secret key bytes held masked in memory.

    The raw key only exists inside ``with key.reveal() as raw:``; the buffer
    handed out there is zeroed when the block exits. ``wipe()`` destroys the
    key for good.
    """
    __slots__ = ("_masked", "_pad")

    def __init__(self, key: bytes):
        key = bytes(key)
        if len(key) not in AES_KEY_SIZES:
            raise ConfigurationError(f"key must be 16, 24 or 32 bytes, got {len(key)}")
        self._pad = bytearray(secrets.token_bytes(len(key)))
        self._masked = bytearray(k ^ p for k, p in zip(key, self._pad))

    @classmethod
    def generate(cls, size: int = 32) -> "KeyMaterial":
        return cls(secrets.token_bytes(size))

    @classmethod
    def from_hex(cls, text: str) -> "KeyMaterial":
        try:
            raw = bytes.fromhex(text)
        except ValueError as exc:
            raise ConfigurationError("key is not valid hex") from exc
        return cls(raw)

    def __len__(self) -> int:
        return len(self._masked)

    def __repr__(self) -> str:
        return f"KeyMaterial(<{len(self)} bytes>)" if self._pad else "KeyMaterial(<wiped>)"

    @property
    def wiped(self) -> bool:
        return not self._pad

    @contextmanager
    def reveal(self) -> Iterator[bytearray]:
        if self.wiped:
            raise ConfigurationError("key material has been wiped")
        raw = bytearray(m ^ p for m, p in zip(self._masked, self._pad))
        try:
            yield raw
        finally:
            for i in range(len(raw)):
                raw[i] = 0

    def wipe(self) -> None:
        for buf in (self._masked, self._pad):
            for i in range(len(buf)):
                buf[i] = 0
        self._masked = bytearray()
        self._pad = bytearray()
