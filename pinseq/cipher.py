"""
Keyed permutations of fixed-length symbol-index tensors.

Both permutations map a tensor of ``length`` numerals in ``[0, radix)`` to
another tensor of the same shape, bijectively over all ``radix ** length``
values for a fixed key and tweak.

  FF1           NIST SP 800-38G format-preserving encryption over AES.
  ShuffleCipher key-seeded ``torch.randperm`` table, for small spaces.
"""
from __future__ import annotations

import hashlib
from typing import Dict, List, Protocol, Tuple

import torch
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .errors import ConfigurationError

FF1_ROUNDS = 10
MAX_RADIX = 1 << 16
MAX_SHUFFLE_SPACE = 1 << 24


class Permutation(Protocol):
    def encrypt(self, key: bytes, tweak: bytes, symbols: torch.Tensor, radix: int) -> torch.Tensor: ...
    def decrypt(self, key: bytes, tweak: bytes, symbols: torch.Tensor, radix: int) -> torch.Tensor: ...


def _check_radix(radix: int) -> None:
    if not 2 <= radix <= MAX_RADIX:
        raise ConfigurationError(f"radix must be in [2, {MAX_RADIX}], got {radix}")


def _numerals(symbols, radix: int) -> List[int]:
    digits = torch.as_tensor(symbols).tolist()
    if not digits:
        raise ConfigurationError("cannot permute an empty symbol array")
    for d in digits:
        if not 0 <= d < radix:
            raise ConfigurationError(f"numeral {d} outside [0, {radix})")
    return digits


def _num(digits: List[int], radix: int) -> int:
    value = 0
    for d in digits:
        value = value * radix + d
    return value


def _str(value: int, radix: int, m: int) -> List[int]:
    out = [0] * m
    for pos in range(m - 1, -1, -1):
        value, out[pos] = divmod(value, radix)
    return out


def _xor(a: bytes, b: bytes) -> bytes:
    return bytes(x ^ y for x, y in zip(a, b))


class FF1:
    """FF1 with an AES-128/192/256 key. The tweak defaults to empty."""

    def __init__(self, radix: int, max_tweak_length: int = 0):
        _check_radix(radix)
        self.radix = radix
        self.max_tweak_length = max_tweak_length

    def encrypt(self, key: bytes, tweak: bytes, symbols, radix: int | None = None) -> torch.Tensor:
        return self._crypt(key, tweak, symbols, radix, decrypt=False)

    def decrypt(self, key: bytes, tweak: bytes, symbols, radix: int | None = None) -> torch.Tensor:
        return self._crypt(key, tweak, symbols, radix, decrypt=True)

    def _crypt(self, key, tweak, symbols, radix, decrypt: bool) -> torch.Tensor:
        if radix is not None and radix != self.radix:
            raise ConfigurationError(f"FF1 built for radix {self.radix}, called with {radix}")
        radix = self.radix
        x = _numerals(symbols, radix)
        tweak = bytes(tweak or b"")
        if self.max_tweak_length and len(tweak) > self.max_tweak_length:
            raise ConfigurationError(f"tweak longer than {self.max_tweak_length} bytes")

        n, t = len(x), len(tweak)
        u = n // 2
        v = n - u
        b = ((radix ** v - 1).bit_length() + 7) // 8
        d = 4 * ((b + 3) // 4) + 4
        p = (bytes([1, 2, 1]) + radix.to_bytes(3, "big") + bytes([10, u % 256])
             + n.to_bytes(4, "big") + t.to_bytes(4, "big"))
        pad = bytes((-t - b - 1) % 16)

        aes = Cipher(algorithms.AES(bytes(key)), modes.ECB()).encryptor()
        mac_p = aes.update(p)  # CBC-MAC state after P, zero IV

        a, c = x[:u], x[u:]
        for i in (range(FF1_ROUNDS - 1, -1, -1) if decrypt else range(FF1_ROUNDS)):
            q = tweak + pad + bytes([i]) + _num(a if decrypt else c, radix).to_bytes(b, "big")
            r = mac_p
            for off in range(0, len(q), 16):
                r = aes.update(_xor(r, q[off:off + 16]))
            s = r
            j = 1
            while len(s) < d:
                s += aes.update(_xor(r, j.to_bytes(16, "big")))
                j += 1
            y = int.from_bytes(s[:d], "big")
            m = u if i % 2 == 0 else v
            if decrypt:
                a, c = _str((_num(c, radix) - y) % radix ** m, radix, m), a
            else:
                a, c = c, _str((_num(a, radix) + y) % radix ** m, radix, m)
        return torch.tensor(a + c, dtype=torch.long)


class ShuffleCipher:
    """
    Table permutation seeded from the key.

    The forward table maps original -> shuffled index and its argsort maps
    shuffled -> original. Tables are cached per key digest, radix and length,
    so the cache holds key-derived material for the life of the instance.
    """

    def __init__(self):
        self._tables: Dict[Tuple[bytes, int, int], Tuple[torch.Tensor, torch.Tensor]] = {}

    def _table(self, key, tweak, radix: int, length: int) -> Tuple[torch.Tensor, torch.Tensor]:
        h = hashlib.sha256()
        h.update(bytes(key))
        h.update(b"\x00")
        h.update(bytes(tweak or b""))
        digest = h.digest()
        slot = (digest, radix, length)
        if slot not in self._tables:
            size = radix ** length
            if size > MAX_SHUFFLE_SPACE:
                raise ConfigurationError(f"shuffle table of {size} entries is too large")
            g = torch.Generator().manual_seed(int.from_bytes(digest[:8], "big") >> 1)
            shuffled = torch.randperm(size, generator=g)
            self._tables[slot] = (shuffled, torch.argsort(shuffled))
        return self._tables[slot]

    def _apply(self, key, tweak, symbols, radix: int, inverse: bool) -> torch.Tensor:
        _check_radix(radix)
        digits = _numerals(symbols, radix)
        forward, backward = self._table(key, tweak, radix, len(digits))
        table = backward if inverse else forward
        value = int(table[_num(digits, radix)])
        return torch.tensor(_str(value, radix, len(digits)), dtype=torch.long)

    def encrypt(self, key: bytes, tweak: bytes, symbols, radix: int) -> torch.Tensor:
        return self._apply(key, tweak, symbols, radix, inverse=False)

    def decrypt(self, key: bytes, tweak: bytes, symbols, radix: int) -> torch.Tensor:
        return self._apply(key, tweak, symbols, radix, inverse=True)


CIPHERS = ("ff1", "shuffle")


def make_cipher(name: str, radix: int) -> Permutation:
    if name == "ff1":
        return FF1(radix=radix)
    if name == "shuffle":
        return ShuffleCipher()
    raise ConfigurationError(f"unknown cipher {name!r}, expected one of {CIPHERS}")
