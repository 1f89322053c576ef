"""Cache keys for layout references."""

from __future__ import annotations

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def layout_hash(reference: str) -> str:
    """Polynomial rolling hash (base 31) of a layout reference, base-36 encoded.

    Runs over UTF-16 code units with signed 32-bit wraparound, so keys stay
    compatible with records written by the web client. Not collision
    resistant; it only deduplicates repeated references of one owner.
    """
    h = 0
    data = reference.encode("utf-16-le")
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = (h * 31 + unit) & 0xFFFFFFFF
    if h & 0x80000000:
        h -= 0x100000000
    return _to_base36(abs(h))


__all__ = ["layout_hash"]
