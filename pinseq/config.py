from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Union

from .characters import DIGITS
from .cipher import CIPHERS, make_cipher
from .errors import ConfigurationError
from .keys import KeyMaterial
from .pins import KeyedPins, ResumablePins
from .store import FileKeyStore


_TYPES = {
    "length": int,
    "character_set": str,
    "starting_index": int,
    "cipher": str,
    "count": int,
    "state_dir": str,
    "slot": str,
    "key": str,
}


@dataclass
class PinConfig:
    length: int = 4
    character_set: str = DIGITS
    starting_index: int = 0          # ignored by resumable sequences
    cipher: str = "ff1"              # "ff1" | "shuffle"
    count: int = 5                   # PINs printed by the CLI
    state_dir: str | None = None     # set -> resumable sequence stored here
    slot: str = "default"
    key: str | None = None           # hex AES key (None = random key)

    def validate(self) -> "PinConfig":
        for name, kind in _TYPES.items():
            value = getattr(self, name)
            optional = name in ("state_dir", "key")
            if (value is None and optional) or (isinstance(value, kind) and not isinstance(value, bool)):
                continue
            raise ConfigurationError(f"{name} must be {kind.__name__}, got {value!r}")
        if self.length < 1:
            raise ConfigurationError(f"length must be at least 1, got {self.length}")
        if self.count < 0:
            raise ConfigurationError(f"count must not be negative, got {self.count}")
        if self.cipher not in CIPHERS:
            raise ConfigurationError(f"unknown cipher {self.cipher!r}, expected one of {CIPHERS}")
        if self.key is not None:
            KeyMaterial.from_hex(self.key).wipe()
        if self.key is not None and self.state_dir is not None:
            raise ConfigurationError("a fixed key cannot be combined with a state directory")
        return self

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "PinConfig":
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise ConfigurationError(f"{path}: cannot read config: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigurationError(f"{path}: expected a JSON object")
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"{path}: unknown settings {unknown}")
        return cls(**data).validate()

    def to_json(self, path: Union[str, Path]) -> None:
        Path(path).write_text(json.dumps(asdict(self), indent=2), encoding="utf-8")


def build(cfg: PinConfig) -> Union[KeyedPins, ResumablePins]:
    """Return the PIN sequence a config describes."""
    cfg.validate()
    radix = len(cfg.character_set)
    if cfg.state_dir is not None:
        return ResumablePins(
            FileKeyStore(cfg.state_dir),
            slot=cfg.slot,
            length=cfg.length,
            character_set=cfg.character_set,
            cipher=make_cipher(cfg.cipher, radix),
        )
    key = KeyMaterial.from_hex(cfg.key) if cfg.key is not None else KeyMaterial.generate()
    return KeyedPins(
        key,
        starting_index=cfg.starting_index,
        length=cfg.length,
        character_set=cfg.character_set,
        cipher=make_cipher(cfg.cipher, radix),
    )
