"""Server configuration: data directories, client type and task limits."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

DEFAULT_CLIENT = "jx3_hd"


class ConfigError(ValueError):
    """Raised when a configuration document cannot be applied."""


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _dump(data: Any, indent: int | None = None) -> str:
    if indent is None:
        return json.dumps(data, sort_keys=True, ensure_ascii=False,
                          separators=(",", ":"))
    return json.dumps(data, sort_keys=True, ensure_ascii=False, indent=indent)


@dataclass
class TaskLimits:
    """Upper bounds that every simulation request must respect."""

    max_delay_network: int = 1000
    max_delay_keyboard: int = 1000
    max_fight_time: int = 1800
    max_fight_count: int = 1000
    allow_custom: bool = True
    max_task_duration: int = 3600

    _INT_KEYS = {
        "maxDelayNetwork": "max_delay_network",
        "maxDelayKeyboard": "max_delay_keyboard",
        "maxFightTime": "max_fight_time",
        "maxFightCount": "max_fight_count",
        "maxTaskDuration": "max_task_duration",
    }

    @classmethod
    def _from_mapping(cls, data: Mapping[str, Any]) -> TaskLimits:
        limits = cls()
        for key, attr in cls._INT_KEYS.items():
            value = data.get(key)
            if _is_int(value):
                setattr(limits, attr, value)
        if isinstance(data.get("allowCustom"), bool):
            limits.allow_custom = data["allowCustom"]
        return limits


@dataclass
class Config:
    """Settings read from ``config.json``; keys of the wrong type are ignored."""

    dir_seasun_game: str = ""
    dir_unpacked: str = ""
    client: str = DEFAULT_CLIENT
    is_utf8: bool = True
    limits: TaskLimits = field(default_factory=TaskLimits)

    @classmethod
    def from_json(cls, data: Any) -> Config:
        """Build a configuration from a parsed JSON document."""
        if not isinstance(data, Mapping):
            data = {}
        config = cls()
        if isinstance(data.get("dirSeasunGame"), str):
            config.dir_seasun_game = data["dirSeasunGame"]
        if isinstance(data.get("dirUnpacked"), str):
            config.dir_unpacked = data["dirUnpacked"]
        client = data.get("clientType")
        if isinstance(client, str) and client:
            config.client = client
        if isinstance(data.get("isUTF8"), bool):
            config.is_utf8 = data["isUTF8"]
        config.limits = TaskLimits._from_mapping(data)
        return config

    @classmethod
    def load(cls, path: str | Path) -> Config:
        """Read ``path`` if it exists; otherwise use the defaults."""
        path = Path(path)
        if not path.exists():
            return cls.from_json({})
        with path.open(encoding="utf-8") as handle:
            return cls.from_json(json.load(handle))

    def status(self, ready: bool, version: str) -> str:
        """Return the JSON status document served at ``/status``."""
        document: dict[str, Any] = {"status": 0 if ready else -1}
        if ready:
            document["data"] = {
                "version": version,
                "userinput": {
                    "maxDelayNetwork": self.limits.max_delay_network,
                    "maxDelayKeyboard": self.limits.max_delay_keyboard,
                    "maxFightTime": self.limits.max_fight_time,
                    "maxFightCount": self.limits.max_fight_count,
                },
                "custom": self.limits.allow_custom,
                "client": self.client,
            }
        return _dump(document)


def configure(path: str | Path, text: str) -> None:
    """Write a new configuration document to ``path``.

    When the document holds an ``update`` key and ``path`` exists, it is merged
    into the existing document and the ``update`` key is dropped.
    Raises :class:`ConfigError` if the document cannot be parsed or written.
    """
    path = Path(path)
    try:
        new = json.loads(text)
        if isinstance(new, dict) and "update" in new and path.exists():
            with path.open(encoding="utf-8") as handle:
                old = json.load(handle)
            if not isinstance(old, dict):
                raise ConfigError("existing configuration is not an object")
            old.update(new)
            old.pop("update", None)
            new = old
        path.write_text(_dump(new, indent=4), encoding="utf-8")
    except ConfigError:
        raise
    except (ValueError, OSError) as exc:
        raise ConfigError(str(exc)) from exc