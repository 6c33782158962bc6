"""
Lazy PIN sequences.

  Pins           every non-obvious PIN, in ascending order
  KeyedPins      the same set, in an order fixed by a secret key
  ResumablePins  an endless keyed stream whose key and position survive restarts

Obvious PINs are skipped everywhere, so a 4-digit sequence includes
"0001", "0002" ... "9998" and excludes "0000", "1111", "3456", "7654".
"""
from __future__ import annotations

import logging
from typing import Iterable, Iterator, Optional, Tuple, Union

import torch

from .characters import DIGITS, Characters
from .cipher import FF1, Permutation
from .digits import index_to_symbols
from .errors import ConfigurationError
from .keys import KeyMaterial
from .obvious import is_obvious
from .store import KeyStore

logger = logging.getLogger(__name__)

TWEAK = b""

Step = Tuple[int, torch.Tensor]


class PinSpace:
    """All ``radix ** length`` PINs over a character set, enumerated from ``starting_index``."""

    def __init__(self, length: int = 4, character_set: str = DIGITS, starting_index: int = 0):
        if length < 1:
            raise ConfigurationError(f"PIN length must be at least 1, got {length}")
        self.length = length
        self.chars = Characters(character_set)
        self.starting_index = max(starting_index, 0)

    @property
    def radix(self) -> int:
        return self.chars.num_characters

    @property
    def last_index(self) -> int:
        return self.radix ** self.length

    def candidates(self) -> Iterator[Step]:
        for index in range(self.starting_index, self.last_index):
            yield index, index_to_symbols(index, self.radix, self.length)

    def render(self, symbols: torch.Tensor) -> str:
        return self.chars.read(symbols)


def _non_obvious(space: PinSpace, steps: Iterable[Step]) -> Iterator[str]:
    for _, symbols in steps:
        if not is_obvious(symbols):
            yield space.render(symbols)


class Pins:
    def __init__(self, starting_index: int = 0, length: int = 4, character_set: str = DIGITS):
        self.space = PinSpace(length=length, character_set=character_set, starting_index=starting_index)

    @property
    def last_index(self) -> int:
        return self.space.last_index

    def steps(self) -> Iterator[Step]:
        return self.space.candidates()

    def __iter__(self) -> Iterator[str]:
        return _non_obvious(self.space, self.steps())


class KeyedPins:
    """
    Ascending indices pushed through a keyed permutation.

    The obviousness test runs on the permuted symbols, so over a full pass the
    yielded set equals ``Pins``'s set; only the order depends on the key.
    """

    def __init__(self,
                 key: Union[KeyMaterial, bytes],
                 starting_index: int = 0,
                 length: int = 4,
                 character_set: str = DIGITS,
                 cipher: Optional[Permutation] = None):
        self.base = Pins(starting_index=starting_index, length=length, character_set=character_set)
        self.space = self.base.space
        self.key = key if isinstance(key, KeyMaterial) else KeyMaterial(key)
        self.cipher = cipher or FF1(radix=self.space.radix)

    @property
    def last_index(self) -> int:
        return self.space.last_index

    def steps(self) -> Iterator[Step]:
        radix = self.space.radix
        for index, symbols in self.base.steps():
            with self.key.reveal() as raw:
                permuted = self.cipher.encrypt(raw, TWEAK, symbols, radix)
            yield index, permuted

    def __iter__(self) -> Iterator[str]:
        return _non_obvious(self.space, self.steps())


class ResumablePins:
    """
    Endless keyed PIN stream backed by a KeyStore slot.

    The stored index is the next index to attempt. It is written before each
    PIN is handed out, so a restart never repeats an emitted PIN; a crash
    between the write and the hand-off loses that one PIN instead. When the
    space is exhausted a new key is minted and the index restarts at 0.

    In-memory state only changes after the store accepts it, so a failed
    write leaves the instance and the slot agreeing. Every iterator over one
    instance shares its cursor and key; keep one open at a time, since a key
    rotation in one wipes the key another is still using.
    """

    def __init__(self,
                 store: KeyStore,
                 slot: str = "default",
                 length: int = 4,
                 character_set: str = DIGITS,
                 cipher: Optional[Permutation] = None):
        self.store = store
        self.slot = slot
        self.length = length
        self.character_set = character_set
        self.space = PinSpace(length=length, character_set=character_set)
        self.cipher = cipher or FF1(radix=self.space.radix)

        state = store.load(slot)
        if state is None:
            self._key = KeyMaterial.generate()
            self._index = 0
            store.store(slot, self._key, self._index)
            logger.info("Started new PIN sequence in slot %r", slot)
        else:
            self._key, self._index = state
            logger.debug("Resumed slot %r at index %d of %d", slot, self._index, self.last_index)

    @property
    def index(self) -> int:
        return self._index

    @property
    def last_index(self) -> int:
        return self.space.last_index

    def _rotate(self) -> None:
        fresh = KeyMaterial.generate()
        self.store.store(self.slot, fresh, 0)
        old, self._key, self._index = self._key, fresh, 0
        old.wipe()
        logger.info("PIN sequence in slot %r exhausted after %d indices; rotated key", self.slot, self.last_index)

    def __iter__(self) -> Iterator[str]:
        while True:
            if self._index >= self.last_index:
                self._rotate()
            keyed = KeyedPins(self._key,
                              starting_index=self._index,
                              length=self.length,
                              character_set=self.character_set,
                              cipher=self.cipher)
            logger.debug("Slot %r: pass from index %d", self.slot, self._index)
            for index, permuted in keyed.steps():
                self.store.store(self.slot, self._key, index + 1)
                self._index = index + 1
                if not is_obvious(permuted):
                    yield self.space.render(permuted)
