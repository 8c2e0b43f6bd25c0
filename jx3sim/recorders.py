"""Optional diagnostic recorders: a text log and a channel-interval table."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class Log:
    """Accumulates text while enabled and writes it to ``log_<name>.tab``."""

    name: str
    enabled: bool = True
    output: bool = False
    data: str = ""

    def __call__(self, text: str) -> None:
        if self.enabled:
            self.data += text
            if self.output:
                print(text)

    def save(self, directory: str | Path) -> Path:
        """Write the collected text into ``directory`` and return the file path."""
        path = Path(directory) / f"log_{self.name}.tab"
        path.write_text(self.data, encoding="utf-8")
        return path


@dataclass(frozen=True)
class ChannelIntervalRecord:
    base: int
    rand: int
    channel_interval: float
    is_buff: bool


@dataclass
class ChannelIntervalRecorder:
    """Records the coefficient of every skill or buff level that deals damage."""

    enabled: bool = True
    records: dict[int, dict[int, ChannelIntervalRecord]] = field(default_factory=dict)

    def record(self, skill_id: int, level: int, base: int, rand: int,
               channel_interval: float, is_buff: bool) -> None:
        if self.enabled:
            self.records.setdefault(skill_id, {})[level] = ChannelIntervalRecord(
                base, rand, channel_interval, is_buff
            )

    def save(self, path: str | Path,
             name_of: Callable[[int, int, bool], str]) -> None:
        """Write the table to ``path`` and stop recording.

        ``name_of(id, level, is_buff)`` supplies the display name of each entry.
        """
        lines = ["Base\tRand\tCoefficient\tSkillID\tSkillLevel\tName\n"]
        for skill_id, levels in self.records.items():
            for level, item in levels.items():
                name = name_of(skill_id, level, item.is_buff)
                lines.append(
                    f"{item.base}\t{item.rand}\t{item.channel_interval:.4f}\t"
                    f"{skill_id}\t{level}\t{name}\n"
                )
        Path(path).write_text("".join(lines), encoding="utf-8")
        self.enabled = False