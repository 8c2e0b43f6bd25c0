from jx3sim.conv import gbk_to_utf8, utf8_to_gbk


def test_utf8_to_gbk_matches_codec():
    text = "未知技能"
    assert utf8_to_gbk(text.encode("utf-8")) == text.encode("gbk")


def test_round_trip():
    raw = "scripts/skill/江湖/伤害.lua".encode("utf-8")
    assert gbk_to_utf8(utf8_to_gbk(raw)) == raw


def test_ascii_unchanged():
    raw = b"scripts/skill/test.lua"
    assert utf8_to_gbk(raw) == raw
    assert gbk_to_utf8(raw) == raw


def test_invalid_utf8_returned_unchanged():
    raw = b"\xff\xfe\xfd"
    assert utf8_to_gbk(raw) == raw


def test_unencodable_character_returned_unchanged():
    raw = "\U0001f600".encode("utf-8")
    assert utf8_to_gbk(raw) == raw


def test_invalid_gbk_returned_unchanged():
    raw = b"\x81"
    assert gbk_to_utf8(raw) == raw