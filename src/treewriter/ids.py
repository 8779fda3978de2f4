"""Identifier generation."""

import secrets
import string
import time

_ALPHABET = string.digits + string.ascii_lowercase


def to_base36(n: int) -> str:
    """Encode a non-negative integer in base 36.

    0 → "0", 35 → "z", 36 → "10"
    """
    if n < 0:
        raise ValueError("negative value")
    if n == 0:
        return "0"
    digits = []
    while n:
        n, rem = divmod(n, 36)
        digits.append(_ALPHABET[rem])
    return "".join(reversed(digits))


def generate_id(prefix: str = "id_") -> str:
    """Generate a collision-resistant id.

    The millisecond clock in base 36 followed by 8 random base-36
    characters, e.g. "card_lq2x9k3m4f7a0b1c".
    """
    stamp = to_base36(time.time_ns() // 1_000_000)
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(8))
    return f"{prefix}{stamp}{suffix}"
