"""Summaries of simulation results: DPS statistics and damage breakdowns."""

from __future__ import annotations

import math
import random
import string
from collections.abc import Callable, Container, Iterable, Sequence
from dataclasses import dataclass
from typing import Any

DETAIL_TASKS = 5
Z99 = 2.576

NameOf = Callable[[int, int, bool], str]

_LETTERS = string.ascii_uppercase + string.ascii_lowercase
_RNG = random.SystemRandom()


@dataclass
class Damage:
    """One hit recorded during a fight."""

    tick: int
    damage_type: int
    id: int
    level: int
    damage_base: int
    damage_critical: int
    damage_except: int
    critical_rate: float
    is_critical: bool
    is_buff: bool = False


def dps_summary(results: Sequence[int], total: int, speed: int) -> dict[str, Any]:
    """Statistics over completed fight results.

    Raises ValueError when there are no results yet.
    """
    count = len(results)
    if count == 0:
        raise ValueError("no results available")
    avg = sum(results) // count
    squares = sum((r - avg) ** 2 for r in results) % 2**64
    sd = int(math.sqrt(squares // count))
    low = high = avg
    md = 0
    for r in results:
        if r < low:
            low = r
            md = avg - low
        elif r > high:
            high = r
            md = high - avg
    ci99 = int(Z99 * sd / math.sqrt(count))
    return {
        "complete": count >= total,
        "list": list(results),
        "avg": avg,
        "sd": sd,
        "min": low,
        "max": high,
        "md": md,
        "ci99": ci99,
        "speed": speed,
        "current": count,
        "total": total,
    }


def damage_list(details: Iterable[Iterable[Damage]], name_of: NameOf) -> list[list[dict[str, Any]]]:
    """Every hit of every detailed fight, with its display name."""
    return [
        [
            {
                "time": d.tick / 1024.0,
                "type": d.damage_type,
                "id": d.id,
                "level": d.level,
                "damageBase": d.damage_base,
                "damageCritical": d.damage_critical,
                "damageExcept": d.damage_except,
                "criticalRate": d.critical_rate,
                "isCritical": d.is_critical,
                "name": name_of(d.id, d.level, d.is_buff),
            }
            for d in fight
        ]
        for fight in details
    ]


@dataclass
class _Entry:
    id: int
    level: int
    name: str
    count: int
    damage_min: int
    damage_max: int
    damage_sum: int


def damage_analysis(details: Iterable[Iterable[Damage]], name_of: NameOf,
                    detail_count: int = DETAIL_TASKS) -> list[dict[str, Any]]:
    """Per skill-level hit counts, extremes and share of the total damage.

    Counts are averaged over ``detail_count`` fights; a proportion is None when
    the total damage is zero.
    """
    entries: dict[tuple[int, int], _Entry] = {}
    total = 0
    for fight in details:
        for d in fight:
            key = (d.id, d.level)
            entry = entries.get(key)
            if entry is None:
                entries[key] = _Entry(d.id, d.level, name_of(d.id, d.level, d.is_buff),
                                      1, d.damage_base, d.damage_critical, d.damage_except)
            else:
                entry.count += 1
                entry.damage_min = min(entry.damage_min, d.damage_base)
                entry.damage_max = max(entry.damage_max, d.damage_critical)
                entry.damage_sum += d.damage_except
            total += d.damage_except
    return [
        {
            "id": e.id,
            "level": e.level,
            "name": e.name,
            "count": e.count / detail_count,
            "damageMin": e.damage_min,
            "damageMax": e.damage_max,
            "proportion": e.damage_sum / total if total else None,
        }
        for e in entries.values()
    ]


def generate_id(existing: Container[str], length: int = 6) -> str:
    """A random string of letters not found in ``existing``.

    On a collision another ``length`` letters are appended.
    """
    result = ""
    while not result or result in existing:
        result += "".join(_RNG.choice(_LETTERS) for _ in range(length))
    return result