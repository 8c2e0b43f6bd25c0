"""Translation of in-game macros into a Lua fight script."""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass

_INT_PREFIX = re.compile(r"\s*[+-]?\d+")
_INT_MIN = -(2**31)
_INT_MAX = 2**31 - 1


def _parse_int(text: str) -> int:
    """Parse a leading decimal integer, ignoring trailing text."""
    match = _INT_PREFIX.match(text)
    if match is None:
        raise ValueError(f"no integer in {text!r}")
    value = int(match.group())
    if not _INT_MIN <= value <= _INT_MAX:
        raise ValueError(f"integer out of range: {text!r}")
    return value


def _rval_buff(text: str) -> str:
    return text or ">0"


def _rval_sun_moon(text: str) -> str:
    if not text:
        return ">0"
    operator, operand = text[0], text[1:]
    if operand == "sun":
        operand = "player.nCurrentSunEnergy"
    elif operand == "moon":
        operand = "player.nCurrentMoonEnergy"
    else:
        try:
            operand = str(_parse_int(operand) * 100)
        except ValueError:
            pass
    return operator + operand


@dataclass(frozen=True)
class _CondType:
    expression: str
    convert: Callable[[str], str] | None = None


_CONDITIONS: dict[str, _CondType] = {
    "buff": _CondType("player:macroBuff", _rval_buff),
    "nobuff": _CondType("player:macroNoBuff"),
    "bufftime": _CondType("player:macroBufftime"),
    "tbuff": _CondType("player:macroTBuff", _rval_buff),
    "tnobuff": _CondType("player:macroTNoBuff"),
    "tbufftime": _CondType("player:macroTBufftime"),
    "sun": _CondType("player.nCurrentSunEnergy", _rval_sun_moon),
    "moon": _CondType("player.nCurrentMoonEnergy", _rval_sun_moon),
}

# Longer keywords first so that "bufftime" is not taken for "buff".
_KEYWORDS = sorted(_CONDITIONS, key=len, reverse=True)

_SEPARATORS = "&|"
_OPERATORS = "=<>"


def convert_condition(cond: str) -> str:
    """Convert a macro condition such as ``buff:X=3&sun<20`` into a Lua expression.

    Returns an empty string for an empty or unrecognised condition; an
    unrecognised term also drops every term after it.
    """
    if not cond:
        return ""
    keyword = next((k for k in _KEYWORDS if cond.startswith(k)), None)
    if keyword is None:
        return ""
    cond_type = _CONDITIONS[keyword]

    end = next((pos for pos, ch in enumerate(cond) if ch in _SEPARATORS), len(cond))
    argument = len(keyword)
    op = next((pos for pos in range(argument, end) if cond[pos] in _OPERATORS), end)

    call = "" if argument == op else f'("{cond[argument + 1:op]}")'
    op_char = cond[op] if op < len(cond) else ""
    equals = "=" if op_char == "=" else ""
    rvalue = cond[op:end]
    if cond_type.convert is not None:
        rvalue = cond_type.convert(rvalue)
    terminator = cond[end] if end < len(cond) else ""
    joiner = {"&": " and ", "|": " or "}.get(terminator, "")
    rest = convert_condition(cond[end + 1:])
    return f"({cond_type.expression}{call}{equals}{rvalue}{joiner}{rest})"


def _condition_of(words: Sequence[str]) -> str:
    return convert_condition(words[1][1:-1])


def _parse_line(line: str, macro_count: int) -> str:
    words = line.split(" ")
    conditional = (
        len(words) == 3 and words[1].startswith("[") and words[1].endswith("]")
    )
    command = words[0]
    if command == "/cast":
        if conditional:
            return (
                f"    if{_condition_of(words)} then\n"
                f'        player:macroSkillCast("{words[2]}");\n'
                "    end\n"
            )
        if len(words) < 2:
            return ""
        return f'    player:macroSkillCast("{words[1]}");\n'
    if command == "/switch":
        idx = 2 if conditional else 1
        if idx >= len(words):
            return ""
        try:
            target = _parse_int(words[idx])
        except ValueError:
            return ""
        if target < 0 or target >= macro_count:
            return ""
        if conditional:
            return (
                f"    if{_condition_of(words)} then\n"
                f"        player.macroIdx = {target};\n"
                "    end\n"
            )
        return f"        player.macroIdx = {target};\n"
    return ""


def parse_macros(macro_list: Sequence[str]) -> str:
    """Build a Lua fight script with one ``MacroN`` function per macro."""
    macros = list(macro_list)
    parts = [f"function Init() end;\nMacroNum = {len(macros)};\n"]
    for index, macro in enumerate(macros):
        parts.append(f"function Macro{index}(player)\n")
        parts.extend(_parse_line(line, len(macros)) for line in macro.split("\n"))
        parts.append("end\n\n")
    return "".join(parts)