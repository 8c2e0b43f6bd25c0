"""Conversion between UTF-8 and GBK encoded bytes."""

from __future__ import annotations


def _recode(data: bytes, source: str, target: str) -> bytes:
    try:
        return data.decode(source).encode(target)
    except (UnicodeDecodeError, UnicodeEncodeError):
        return data


def utf8_to_gbk(data: bytes) -> bytes:
    """Re-encode UTF-8 bytes as GBK; return the input unchanged if that fails."""
    return _recode(data, "utf-8", "gbk")


def gbk_to_utf8(data: bytes) -> bytes:
    """Re-encode GBK bytes as UTF-8; return the input unchanged if that fails."""
    return _recode(data, "gbk", "utf-8")