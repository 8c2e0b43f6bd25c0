"""Simulation tasks: request parsing, a worker pool and result queries."""

from __future__ import annotations

import json
import logging
import re
import threading
import time
from collections.abc import Callable, Collection, Iterator, Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from jx3sim.config import Config
from jx3sim.macro import parse_macros
from jx3sim.report import (
    DETAIL_TASKS,
    Damage,
    NameOf,
    damage_analysis,
    damage_list,
    dps_summary,
    generate_id,
)

log = logging.getLogger(__name__)

UNAVAILABLE = "服务器数据不可用, 请检查 config.json."
NO_DATA = "No data available."
NOT_READY = "Data not available. Try again later."

Simulate = Callable[["TaskData"], "tuple[int, Sequence[Damage]]"]

_INT_PREFIX = re.compile(r"\s*[+-]?\d+")
_ATTRIBUTE_METHODS = ("data", "jx3box")
_CUSTOM_METHODS = ("lua", "jx3")


class TaskError(ValueError):
    """Raised when a simulation request is rejected."""


@dataclass
class TaskData:
    """Everything needed to run the fights of one task."""

    player_type: str
    delay_network: int
    delay_keyboard: int
    fight_time: int
    fight_count: int
    attribute_method: str
    attribute_data: str
    effects: dict[str, str] = field(default_factory=dict)
    fight: str | None = None
    fight_type: int | None = None
    talents: list[int] = field(default_factory=list)
    recipes: dict[int, list[int]] = field(default_factory=dict)


def _dump(document: Any) -> str:
    return json.dumps(document, sort_keys=True, ensure_ascii=False,
                      separators=(",", ":"))


def _reply(status: int, data: str) -> str:
    return json.dumps({"status": status, "data": data}, ensure_ascii=False,
                      separators=(",", ":"))


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _int_list(value: Any) -> list[int]:
    if not isinstance(value, list) or not all(_is_int(v) for v in value):
        raise TypeError("expected a list of integers")
    return list(value)


def _leading_int(text: str) -> int:
    match = _INT_PREFIX.match(text)
    if match is None:
        raise ValueError(f"not an integer: {text!r}")
    return int(match.group())


@contextmanager
def _field_error(name: str, detailed: bool = True) -> Iterator[None]:
    try:
        yield
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        detail = str(exc) if detailed else ""
        raise TaskError(f"字段错误: {name}.{detail}") from exc


def _bounded(doc: dict[str, Any], key: str, limit: int) -> int:
    value = doc.get(key)
    try:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(key)
        number = int(value)
        if number <= 0 or number > limit:
            raise ValueError(key)
    except (TypeError, ValueError, OverflowError) as exc:
        raise TaskError(f"字段非法: {key}.") from exc
    return number


def parse_task_request(text: str, config: Config | None,
                       players: Collection[str]) -> TaskData:
    """Validate a JSON task request against ``config`` and the known ``players``.

    Raises :class:`TaskError` naming the first offending field.
    """
    if config is None:
        raise TaskError(UNAVAILABLE)
    try:
        doc = json.loads(text)
    except ValueError as exc:
        raise TaskError(f"invalid JSON: {exc}") from exc
    if not isinstance(doc, dict):
        doc = {}

    player = doc.get("player")
    if not isinstance(player, str) or player not in players:
        raise TaskError("字段非法: player.")
    limits = config.limits
    delay_network = _bounded(doc, "delayNetwork", limits.max_delay_network)
    delay_keyboard = _bounded(doc, "delayKeyboard", limits.max_delay_keyboard)
    fight_time = _bounded(doc, "fightTime", limits.max_fight_time)
    fight_count = _bounded(doc, "fightCount", limits.max_fight_count)

    with _field_error("attribute"):
        attribute = doc["attribute"]
        method = attribute["method"]
        if method not in _ATTRIBUTE_METHODS:
            raise ValueError(f"unknown method: {method}")
        if method == "data":
            attribute_data = json.dumps(attribute["data"], ensure_ascii=False)
        else:
            pzid = attribute["data"]["pzid"]
            if not isinstance(pzid, str):
                raise TypeError("pzid must be a string")
            attribute_data = pzid

    with _field_error("effects"):
        effects = doc["effects"]
        if not isinstance(effects, dict):
            raise TypeError("effects must be an object")
        effect_map = {key: json.dumps(value, ensure_ascii=False)
                      for key, value in effects.items()}

    data = TaskData(player, delay_network, delay_keyboard, fight_time, fight_count,
                    method, attribute_data, effect_map)

    if "fight" in doc:
        with _field_error("fight"):
            fight = doc["fight"]
            if isinstance(fight, dict):
                method = fight.get("method")
                if "method" in fight and not isinstance(method, str):
                    raise TypeError("method must be a string")
                if method in _CUSTOM_METHODS:
                    if method == "lua":
                        if not limits.allow_custom:
                            raise ValueError("custom fight is not allowed.")
                        script = fight["data"]
                        if not isinstance(script, str):
                            raise TypeError("data must be a string")
                        data.fight = script
                    else:
                        macros = fight["data"]
                        if not isinstance(macros, list) or not all(
                                isinstance(m, str) for m in macros):
                            raise TypeError("data must be a list of strings")
                        data.fight = parse_macros(macros)
                elif _is_int(fight.get("data")):
                    data.fight_type = fight["data"]

    if "talents" in doc:
        with _field_error("talents", detailed=False):
            data.talents = _int_list(doc["talents"])

    if "recipes" in doc:
        with _field_error("recipes", detailed=False):
            recipes = doc["recipes"]
            if not isinstance(recipes, dict):
                raise TypeError("recipes must be an object")
            for key, value in recipes.items():
                data.recipes[_leading_int(key)] = _int_list(value)
    return data


class Task:
    """The results of one running or finished simulation request."""

    def __init__(self, task_id: str, data: TaskData) -> None:
        self.id = task_id
        self.data = data
        self.results: list[int] = []
        self.details: list[list[Damage]] = [
            [] for _ in range(min(data.fight_count, DETAIL_TASKS))
        ]
        self.speed = 0
        self._lock = threading.Lock()
        self._stop = threading.Event()

    @property
    def completed(self) -> int:
        return len(self.results)

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def _details_ready(self) -> bool:
        return self.completed >= DETAIL_TASKS or self.completed >= self.data.fight_count

    def query_dps(self) -> str:
        """JSON with the DPS statistics of the fights finished so far."""
        if self.completed == 0:
            return _dump({"status": 1, "data": NO_DATA})
        with self._lock:
            summary = dps_summary(list(self.results), self.data.fight_count, self.speed)
        return _dump({"status": 0, "data": summary})

    def query_damage_list(self, name_of: NameOf) -> str:
        """JSON with every hit of the detailed fights."""
        if not self._details_ready():
            return _dump({"status": 1, "data": NOT_READY})
        with self._lock:
            return _dump({"status": 0, "data": damage_list(self.details, name_of)})

    def query_damage_analysis(self, name_of: NameOf) -> str:
        """JSON with the per-skill breakdown of the detailed fights."""
        if not self._details_ready():
            return _dump({"status": 1, "data": NOT_READY})
        with self._lock:
            analysis = damage_analysis(self.details, name_of, DETAIL_TASKS)
        return _dump({"status": 0, "data": analysis})


class TaskServer:
    """Runs the fights of each task in a shared pool and tracks the tasks.

    ``simulate(data)`` runs one fight and returns its DPS and its hits.
    A finished task is kept for ``linger`` seconds; a task is abandoned once it
    has run longer than the configured ``maxTaskDuration``.
    """

    def __init__(self, config: Config | None = None, players: Collection[str] = (),
                 simulate: Simulate | None = None, *, workers: int | None = None,
                 linger: float = 60.0, poll: float = 1.0) -> None:
        self._config = config
        self._players = frozenset(players)
        self._simulate = simulate
        self._linger = linger
        self._poll = poll
        self._tasks: dict[str, Task] = {}
        self._lock = threading.Lock()
        self._pool = ThreadPoolExecutor(max_workers=workers)
        self._monitors: list[threading.Thread] = []

    @property
    def available(self) -> bool:
        return self._config is not None and self._simulate is not None

    def create(self, text: str) -> str:
        """Start a task from a JSON request; return the JSON reply."""
        try:
            if self._simulate is None:
                raise TaskError(UNAVAILABLE)
            data = parse_task_request(text, self._config, self._players)
        except TaskError as exc:
            return _reply(-1, str(exc))
        with self._lock:
            task_id = generate_id(self._tasks)
            task = Task(task_id, data)
            self._tasks[task_id] = task
        try:
            futures = self._submit(task)
        except RuntimeError as exc:
            with self._lock:
                self._tasks.pop(task_id, None)
            return _reply(-1, str(exc))
        monitor = threading.Thread(target=self._monitor, args=(task, futures),
                                   name=f"task-{task_id}", daemon=True)
        with self._lock:
            self._monitors.append(monitor)
        monitor.start()
        return _reply(0, task_id)

    def stop(self, task_id: str) -> None:
        """Ask a task to stop; unknown ids are ignored."""
        task = self.get(task_id)
        if task is not None:
            task._stop.set()

    def get(self, task_id: str) -> Task | None:
        with self._lock:
            return self._tasks.get(task_id)

    def shutdown(self) -> None:
        """Stop every task and release the worker pool."""
        with self._lock:
            tasks = list(self._tasks.values())
            monitors = list(self._monitors)
        for task in tasks:
            task._stop.set()
        for monitor in monitors:
            monitor.join()
        self._pool.shutdown(wait=True, cancel_futures=True)

    def _submit(self, task: Task) -> list[Future[int]]:
        detail_count = len(task.details)
        futures = [self._pool.submit(self._run_detail, task, index)
                   for index in range(detail_count)]
        futures.extend(self._pool.submit(self._run_brief, task)
                       for _ in range(task.data.fight_count - detail_count))
        return futures

    def _run_detail(self, task: Task, index: int) -> int:
        assert self._simulate is not None
        dps, damages = self._simulate(task.data)
        with task._lock:
            task.details[index] = list(damages)
        return int(dps)

    def _run_brief(self, task: Task) -> int:
        assert self._simulate is not None
        dps, _ = self._simulate(task.data)
        return int(dps)

    def _monitor(self, task: Task, futures: list[Future[int]]) -> None:
        assert self._config is not None
        limit = self._config.limits.max_task_duration
        start = time.monotonic()
        previous = 0
        while not task.stopped and task.completed < task.data.fight_count:
            if int(time.monotonic() - start) > limit:
                task._stop.set()
                break
            future = futures[task.completed]
            if future.done():
                try:
                    value = future.result()
                except Exception:
                    log.exception("fight of task %s failed", task.id)
                    task._stop.set()
                    break
                with task._lock:
                    task.results.append(value)
            else:
                with task._lock:
                    task.speed = task.completed - previous
                previous = task.completed
                task._stop.wait(self._poll)
        if not task.stopped:
            task._stop.wait(self._linger)
        for future in futures:
            future.cancel()
        with self._lock:
            self._tasks.pop(task.id, None)