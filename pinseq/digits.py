"""Conversions between integer indices and fixed-length symbol-index tensors."""
import torch


def index_to_symbols(index: int, radix: int, length: int) -> torch.Tensor:
    """Positional digits of ``index`` in ``radix``, most significant first.

    Only the low ``length`` digits are kept, so indices of ``radix ** length``
    or more wrap silently.
    """
    out = [0] * length
    pos = length
    while pos > 0 and index > 0:
        pos -= 1
        index, out[pos] = divmod(index, radix)
    return torch.tensor(out, dtype=torch.long)


def symbols_to_index(symbols, radix: int) -> int:
    value = 0
    for digit in torch.as_tensor(symbols).tolist():
        value = value * radix + digit
    return value
