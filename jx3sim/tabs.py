"""Table identifiers, the query wire format and an in-memory table store."""

from __future__ import annotations

import enum
import struct
from collections.abc import Iterable, Mapping

Row = dict[str, str]

_SIZE = struct.Struct("<Q")


class Tab(enum.IntEnum):
    """Data tables that can be queried."""

    skills = 0
    buff = 1
    cooldown = 2
    skillrecipe = 3
    skillevent = 4
    custom_armor = 5
    custom_trinket = 6
    custom_weapon = 7
    ui_skill = 8
    ui_buff = 9


def serialize(rows: Iterable[Mapping[str, str]]) -> bytes:
    """Encode a list of string maps as length-prefixed UTF-8 records."""
    rows = list(rows)
    parts = [_SIZE.pack(len(rows))]
    for row in rows:
        parts.append(_SIZE.pack(len(row)))
        for key, value in row.items():
            for text in (key, value):
                raw = text.encode("utf-8")
                parts.append(_SIZE.pack(len(raw)))
                parts.append(raw)
    return b"".join(parts)


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._view = memoryview(data)
        self._offset = 0

    def take(self, count: int) -> bytes:
        end = self._offset + count
        if end > len(self._view):
            raise ValueError("serialized table data is truncated")
        chunk = bytes(self._view[self._offset:end])
        self._offset = end
        return chunk

    def size(self) -> int:
        return _SIZE.unpack(self.take(_SIZE.size))[0]

    def text(self) -> str:
        return self.take(self.size()).decode("utf-8")


def deserialize(data: bytes) -> list[Row]:
    """Decode bytes produced by :func:`serialize`; trailing bytes are ignored."""
    reader = _Reader(data)
    rows: list[Row] = []
    for _ in range(reader.size()):
        row: Row = {}
        for _ in range(reader.size()):
            key = reader.text()
            row[key] = reader.text()
        rows.append(row)
    return rows


class MemoryTables:
    """Tables held in memory and queried with OR-of-AND conditions."""

    def __init__(self) -> None:
        self._tables: dict[Tab, list[Row]] = {tab: [] for tab in Tab}

    def add_rows(self, tab: Tab, rows: Iterable[Mapping[str, str]]) -> None:
        """Append rows to a table."""
        self._tables[Tab(tab)].extend(dict(row) for row in rows)

    def select(self, tab: Tab, conditions: Iterable[Mapping[str, str]]) -> list[Row]:
        """Return copies of rows matching any condition map (all its pairs)."""
        conditions = [dict(c) for c in conditions]
        return [
            dict(row)
            for row in self._tables[Tab(tab)]
            if any(all(row.get(k) == v for k, v in cond.items()) for cond in conditions)
        ]