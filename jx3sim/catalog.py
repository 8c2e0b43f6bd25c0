"""Cached lookups of buffs, cooldowns, items, skill events and recipes from data tables."""

from __future__ import annotations

import enum
import logging
import re
import threading
from collections.abc import Collection, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Protocol

from jx3sim.tabs import Row, Tab

log = logging.getLogger(__name__)

UNKNOWN_NAME = "未知技能"

_INT_RE = re.compile(r"\s*[+-]?\d+")
_FLOAT_RE = re.compile(r"\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")
_INT_MIN = -(2**31)
_INT_MAX = 2**31 - 1


def _stoi(text: str) -> int:
    """Strict leading-integer parse: raise if no digits or out of 32-bit range."""
    match = _INT_RE.match(text)
    if match is None:
        raise ValueError(f"invalid integer field: {text!r}")
    value = int(match.group())
    if not _INT_MIN <= value <= _INT_MAX:
        raise ValueError(f"integer field out of range: {text!r}")
    return value


def _atoi(text: str) -> int:
    """Lenient leading-integer parse: 0 when nothing can be read."""
    match = _INT_RE.match(text)
    return int(match.group()) if match else 0


def _stod(text: str) -> float:
    match = _FLOAT_RE.match(text)
    if match is None:
        raise ValueError(f"invalid number field: {text!r}")
    return float(match.group())


def _stou32(text: str) -> int:
    match = _INT_RE.match(text)
    if match is None:
        raise ValueError(f"invalid mask field: {text!r}")
    return int(match.group()) % 2**64 & 0xFFFFFFFF


class TableSource(Protocol):
    def select(self, tab: Tab, conditions: Iterable[Mapping[str, str]]) -> list[Row]: ...


@dataclass
class Attrib:
    """One attribute entry of a buff, with its raw and integer values."""

    kind: str
    value_a: str
    value_b: str
    value_a_int: int = 0
    value_b_int: int = 0

    @classmethod
    def parse(cls, kind: str, value_a: str, value_b: str) -> Attrib:
        return cls(kind, value_a, value_b, _atoi(value_a), _atoi(value_b))


@dataclass
class Buff:
    id: int
    level: int
    tab: Row = field(default_factory=dict)
    ui: Row = field(default_factory=dict)
    name: str = ""
    is_stackable: bool = False
    max_stack_num: int = 0
    count: int = 0
    interval: int = 0
    hide: bool = False
    exclude: bool = False
    script_file: str = ""
    can_cancel: bool = False
    min_interval: int = 0
    max_interval: int = 0
    begin_attrib: list[Attrib] = field(default_factory=list)
    active_attrib: list[Attrib] = field(default_factory=list)
    end_time_attrib: list[Attrib] = field(default_factory=list)


@dataclass
class Cooldown:
    id: int
    tab: Row = field(default_factory=dict)
    duration_frame: int = 0
    min_duration_frame: int = 0
    max_duration_frame: int = 0
    max_count: int = 0


class ItemType(enum.Enum):
    Armor = "armor"
    Trinket = "trinket"
    Weapon = "weapon"


_ITEM_TABS = {
    ItemType.Armor: Tab.custom_armor,
    ItemType.Trinket: Tab.custom_trinket,
    ItemType.Weapon: Tab.custom_weapon,
}


@dataclass
class Item:
    id: int
    type: ItemType | None = None
    tab: Row = field(default_factory=dict)
    skill_id: int = 0
    skill_level: int = 0
    cooldown_id: int = 0


@dataclass
class SkillEvent:
    id: int
    tab: Row = field(default_factory=dict)
    type: str = ""
    odds: int = 0
    skill_id: int = 0
    skill_level: int = 0
    skill_caster: str = ""
    skill_target: str = ""
    event_mask1: int = 0
    event_mask2: int = 0
    event_skill_id: int = 0


@dataclass
class SkillRecipe:
    recipe_id: int
    recipe_level: int
    tab: Row = field(default_factory=dict)
    skill_recipe_type: int = 0
    skill_id: int = 0
    cooldown_add1: int = 0
    cooldown_add2: int = 0
    cooldown_add3: int = 0
    damage_add_percent: int = 0
    has_script_file: bool = False


def _flag(row: Row, key: str) -> bool:
    return row.get(key, "") == "1"


class Catalog:
    """Loads records from a table source on first use and caches them.

    ``attributes``, when given, is the set of attribute names a buff may use;
    unknown names are logged and skipped.
    """

    def __init__(self, tables: TableSource,
                 attributes: Collection[str] | None = None) -> None:
        self._tables = tables
        self._attributes = attributes
        self._lock = threading.Lock()
        self._buffs: dict[tuple[int, int], Buff] = {}
        self._cooldowns: dict[int, Cooldown] = {}
        self._items: dict[tuple[ItemType, int], Item] = {}
        self._events: dict[int, SkillEvent] = {}
        self._recipes: dict[tuple[int, int], SkillRecipe] = {}

    def _first(self, tab: Tab, **condition: str) -> Row | None:
        rows = self._tables.select(tab, [condition])
        return rows[0] if rows else None

    # Buffs

    def buff(self, buff_id: int, level: int) -> Buff:
        key = (buff_id, level)
        with self._lock:
            if key not in self._buffs:
                self._buffs[key] = self._load_buff(buff_id, level)
            return self._buffs[key]

    def _load_buff(self, buff_id: int, level: int) -> Buff:
        buff = Buff(buff_id, level)
        row = self._first(Tab.buff, ID=str(buff_id), Level=str(level))
        if row is None:
            log.error("Buff ID %d does not exist.", buff_id)
            return buff
        buff.tab = row
        buff.is_stackable = _flag(row, "IsStackable")
        buff.max_stack_num = _stoi(row.get("MaxStackNum", ""))
        buff.count = _stoi(row.get("Count", ""))
        buff.interval = _stoi(row.get("Interval", ""))
        buff.hide = _flag(row, "Hide")
        buff.exclude = _flag(row, "Exclude")
        buff.script_file = row.get("ScriptFile", "")
        buff.can_cancel = _flag(row, "CanCancel")
        buff.min_interval = _stoi(row.get("MinInterval", ""))
        buff.max_interval = _stoi(row.get("MaxInterval", ""))

        for prefix, target in (
            ("Begin", buff.begin_attrib),
            ("Active", buff.active_attrib),
            ("EndTime", buff.end_time_attrib),
        ):
            target.extend(self._attribs(row, prefix))

        ui_rows = self._tables.select(Tab.ui_buff, [
            {"BuffID": str(buff_id), "Level": str(level)},
            {"BuffID": str(buff_id), "Level": "0"},
        ])
        if ui_rows:
            buff.ui = ui_rows[0]
            buff.name = buff.ui.get("Name", "")
        else:
            buff.name = UNKNOWN_NAME
        return buff

    def _attribs(self, row: Row, prefix: str) -> Iterable[Attrib]:
        index = 1
        while (key := f"{prefix}Attrib{index}") in row:
            name = row[key]
            if not name:
                break
            value_a = row.get(f"{prefix}Value{index}A", "")
            value_b = row.get(f"{prefix}Value{index}B", "")
            index += 1
            if self._attributes is not None and name not in self._attributes:
                log.error("%s unknown attribute: %s", prefix, name)
                continue
            yield Attrib.parse(name, value_a, value_b)

    # Cooldowns

    def cooldown(self, cooldown_id: int) -> Cooldown:
        with self._lock:
            if cooldown_id not in self._cooldowns:
                self._cooldowns[cooldown_id] = self._load_cooldown(cooldown_id)
            return self._cooldowns[cooldown_id]

    def _load_cooldown(self, cooldown_id: int) -> Cooldown:
        cooldown = Cooldown(cooldown_id)
        row = self._first(Tab.cooldown, ID=str(cooldown_id))
        if row is None:
            log.error("Cooldown ID %d does not exist.", cooldown_id)
            return cooldown
        cooldown.tab = row

        def frames(key: str) -> int:
            return int(_stod(row.get(key, "")) * 16 + 0.5)

        cooldown.duration_frame = frames("Duration")
        cooldown.min_duration_frame = frames("MinDuration")
        cooldown.max_duration_frame = frames("MaxDuration")
        cooldown.max_count = _stoi(row.get("MaxCount", ""))
        return cooldown

    # Items

    def item(self, item_type: ItemType, item_id: int) -> Item:
        if not isinstance(item_type, ItemType):
            raise ValueError(f"invalid item type: {item_type!r}")
        key = (item_type, item_id)
        with self._lock:
            if key not in self._items:
                self._items[key] = self._load_item(item_type, item_id)
            return self._items[key]

    def _load_item(self, item_type: ItemType, item_id: int) -> Item:
        item = Item(item_id)
        row = self._first(_ITEM_TABS[item_type], ID=str(item_id))
        if row is None:
            log.error("Item ID %d does not exist.", item_id)
            return item
        item.tab = row
        item.type = item_type
        item.skill_id = _atoi(row.get("SkillID", ""))
        item.skill_level = _atoi(row.get("SkillLevel", ""))
        item.cooldown_id = _atoi(row.get("CoolDownID", ""))
        return item

    # Skill events

    def skill_event(self, event_id: int) -> SkillEvent:
        with self._lock:
            if event_id not in self._events:
                self._events[event_id] = self._load_skill_event(event_id)
            return self._events[event_id]

    def _load_skill_event(self, event_id: int) -> SkillEvent:
        event = SkillEvent(event_id)
        row = self._first(Tab.skillevent, ID=str(event_id))
        if row is None:
            log.error("SkillEvent ID %d does not exist.", event_id)
            return event
        event.tab = row
        event.type = row.get("EventType", "")
        event.odds = _stoi(row.get("Odds", ""))
        event.skill_id = _stoi(row.get("SkillID", ""))
        event.skill_level = _stoi(row.get("SkillLevel", ""))
        event.skill_caster = row.get("SkillCaster", "")
        event.skill_target = row.get("SkillTarget", "")
        event.event_mask1 = _stou32(row.get("EventMask1", ""))
        event.event_mask2 = _stou32(row.get("EventMask2", ""))
        event.event_skill_id = _stoi(row.get("EventSkillID", ""))
        return event

    # Skill recipes

    def recipe(self, recipe_id: int, level: int) -> SkillRecipe:
        key = (recipe_id, level)
        with self._lock:
            if key not in self._recipes:
                self._recipes[key] = self._load_recipe(recipe_id, level)
            return self._recipes[key]

    def _load_recipe(self, recipe_id: int, level: int) -> SkillRecipe:
        recipe = SkillRecipe(recipe_id, level)
        row = self._first(Tab.skillrecipe, RecipeID=str(recipe_id),
                          RecipeLevel=str(level))
        if row is None:
            log.error("Recipe ID %d does not exist.", recipe_id)
            return recipe
        recipe.tab = row
        recipe.skill_recipe_type = _atoi(row.get("SkillRecipeType", ""))
        recipe.skill_id = _atoi(row.get("SkillID", ""))
        recipe.cooldown_add1 = _atoi(row.get("CoolDownAdd1", ""))
        recipe.cooldown_add2 = _atoi(row.get("CoolDownAdd2", ""))
        recipe.cooldown_add3 = _atoi(row.get("CoolDownAdd3", ""))
        recipe.damage_add_percent = _atoi(row.get("DamageAddPercent", ""))
        recipe.has_script_file = bool(row.get("ScriptFile", ""))
        return recipe