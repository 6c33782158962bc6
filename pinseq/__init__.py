import itertools

from .characters import DIGITS, Characters
from .cipher import FF1, Permutation, ShuffleCipher, make_cipher
from .config import PinConfig, build
from .digits import index_to_symbols, symbols_to_index
from .errors import ConfigurationError, KeyStoreError, PinseqError
from .keys import KeyMaterial
from .obvious import is_obvious
from .pins import KeyedPins, Pins, PinSpace, ResumablePins
from .store import FileKeyStore, KeyStore, MemoryKeyStore

__all__ = [
    "DIGITS", "Characters", "FF1", "Permutation", "ShuffleCipher", "make_cipher",
    "PinConfig", "build", "index_to_symbols", "symbols_to_index",
    "ConfigurationError", "KeyStoreError", "PinseqError", "KeyMaterial",
    "is_obvious", "KeyedPins", "Pins", "PinSpace", "ResumablePins",
    "FileKeyStore", "KeyStore", "MemoryKeyStore",
    "generate", "resume",
]
__version__ = "0.1.0"

def generate(count: int = 5, **settings) -> list[str]:
    """Return ``count`` PINs from a fresh keyed sequence (or ``settings['key']``)."""
    cfg = PinConfig(count=count, **settings)
    return list(itertools.islice(build(cfg), cfg.count))

def resume(state_dir: str, slot: str = "default", **settings) -> ResumablePins:
    """Open the resumable sequence stored in ``state_dir``."""
    cfg = PinConfig(state_dir=str(state_dir), slot=slot, **settings)
    return build(cfg)
