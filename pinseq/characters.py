import string
import torch

from .errors import ConfigurationError

DIGITS = string.digits


class Characters:
    def __init__(self, characters: str = DIGITS):
        if not characters:
            raise ConfigurationError("character set must not be empty")
        if len(set(characters)) != len(characters):
            raise ConfigurationError(f"character set has repeated characters: {characters!r}")
        self.characters = characters
        self.num_characters = len(self.characters)

    def read(self, indices) -> str:
        out = []
        for i in torch.as_tensor(indices).tolist():
            if not 0 <= i < self.num_characters:
                raise IndexError(f"symbol index {i} outside [0, {self.num_characters})")
            out.append(self.characters[i])
        return ''.join(out)

    def index(self, text: str) -> torch.Tensor:
        return torch.tensor([self.characters.index(c) for c in text], dtype=torch.long)
