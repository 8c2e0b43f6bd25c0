"""Global helper functions available to game scripts."""

from __future__ import annotations

import logging
import random

log = logging.getLogger(__name__)


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def get_value_by_bits(value: int, bit: int, count: int = 1) -> int:
    """Return bit ``bit`` (0-31) of ``value``; ``count`` is ignored."""
    if bit > 31 or bit < 0:
        log.error(">>>>>>>CustomFunction.GetValueByBit Arg ERROR!!!!!BitIndex error")
        if bit < 0:
            return 0
    return (value >> bit) & 1


def set_value_by_bits(value: int, bit: int, count: int, new_bit: int) -> int:
    """Return ``value`` with bit ``bit`` set to ``new_bit``; invalid arguments leave it unchanged."""
    if new_bit > 1 or new_bit < 0:
        log.error(">>>>>>>CustomFunction.SetValueByBit Arg ERROR!!!!!nNewBit Must be 0 or 1,")
        return value
    if bit > 31 or bit < 0:
        log.error(">>>>>>>CustomFunction.SetValueByBit Arg ERROR!!!!!BitIndex error")
        return value
    return _to_int32((value & ~(1 << bit)) | (new_bit << bit))


def get_distance_sq(px: int, py: int, pz: int, tx: int, ty: int, tz: int) -> int:
    """Squared distance between two points."""
    return (px - tx) ** 2 + (py - ty) ** 2 + (pz - tz) ** 2


def random_int(low: int, high: int) -> int:
    """Uniform random integer in ``[low, high]``."""
    return random.randint(low, high)


def get_editor_string(a: int, b: int) -> str:
    """Return the placeholder editor string ``"a-b"``."""
    return f"{a}-{b}"


def is_client() -> bool:
    """The simulator never runs as a game client."""
    return False