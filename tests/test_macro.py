import pytest

from jx3sim.macro import convert_condition, parse_macros


def test_convert_condition_documented_example():
    result = convert_condition("buff:日月同辉=3&nobuff:诛邪镇魔|sun<20")
    assert result == (
        '(player:macroBuff("日月同辉")==3 and '
        '(player:macroNoBuff("诛邪镇魔") or (player.nCurrentSunEnergy<2000)))'
    )


def test_convert_condition_sun_compared_with_moon():
    assert convert_condition("sun>moon") == (
        "(player.nCurrentSunEnergy>player.nCurrentMoonEnergy)"
    )


@pytest.mark.parametrize("cond", ["", "unknown:x", "xyz<3"])
def test_convert_condition_empty_or_unknown(cond):
    assert convert_condition(cond) == ""


def test_convert_condition_buff_without_value_defaults_to_positive():
    result = convert_condition("buff:X")
    assert result.startswith("(player:macroBuff(")
    assert result.endswith(">0)")


def test_convert_condition_prefers_longest_keyword():
    assert convert_condition("bufftime:X<3").startswith("(player:macroBufftime(")
    assert convert_condition("tbufftime:X<3").startswith("(player:macroTBufftime(")
    assert convert_condition("tnobuff:X").startswith("(player:macroTNoBuff(")


def test_convert_condition_unknown_term_drops_rest():
    result = convert_condition("moon<5&bogus|sun<1")
    assert "player.nCurrentMoonEnergy" in result
    assert "player.nCurrentSunEnergy" not in result
    assert " and " in result


def test_convert_condition_moon_non_numeric_kept():
    result = convert_condition("moon<abc")
    assert result.startswith("(player.nCurrentMoonEnergy")
    assert "abc" in result


def test_convert_condition_parentheses_balanced():
    result = convert_condition("buff:A&tbuff:B|moon=1&sun>2")
    assert result.count("(") == result.count(")")
    assert result.count(" and ") == 2
    assert result.count(" or ") == 1


def test_parse_single_cast():
    assert parse_macros(["/cast 技能"]) == (
        "function Init() end;\nMacroNum = 1;\n"
        "function Macro0(player)\n"
        '    player:macroSkillCast("技能");\n'
        "end\n\n"
    )


def test_parse_structure_per_macro():
    macros = ["/cast a", "/cast b", "/cast c"]
    result = parse_macros(macros)
    assert result.startswith(f"function Init() end;\nMacroNum = {len(macros)};\n")
    for index in range(len(macros)):
        assert f"function Macro{index}(player)\n" in result
    assert result.count("end\n\n") == len(macros)


def test_parse_conditional_cast_uses_condition():
    result = parse_macros(["/cast [sun<20] 技能"])
    assert "    if" + convert_condition("sun<20") + " then\n" in result
    assert '        player:macroSkillCast("技能");\n' in result


def test_parse_switch_valid_target():
    result = parse_macros(["/switch 1", "/cast a"])
    assert "player.macroIdx = 1;" in result


def test_parse_switch_conditional():
    result = parse_macros(["/switch [buff:X] 0"])
    assert "    if" + convert_condition("buff:X") + " then\n" in result
    assert "player.macroIdx = 0;" in result


@pytest.mark.parametrize("line", ["/switch 5", "/switch -1", "/switch abc", "/switch"])
def test_parse_switch_invalid_target_ignored(line):
    result = parse_macros([line, "/cast a"])
    assert "macroIdx" not in result


def test_parse_unknown_commands_and_blank_lines_ignored():
    result = parse_macros(["/say hello\n\n/cast x"])
    assert "hello" not in result
    assert result.count("macroSkillCast") == 1


def test_parse_empty_list():
    result = parse_macros([])
    assert "MacroNum = 0;" in result
    assert "function Macro" not in result