import torch


def is_obvious(symbols) -> bool:
    """True for constant runs and unit-step runs such as 3333, 1234 or 7654.

    Arrays shorter than two symbols are never obvious.
    """
    x = torch.as_tensor(symbols, dtype=torch.long)
    if x.numel() < 2:
        return False
    steps = torch.diff(x)
    first = steps[0]
    if first.abs() > 1:
        return False
    return bool((steps == first).all())
