"""Decode stylesheet bytes into text."""

from __future__ import annotations

from charset_normalizer import from_bytes


def decode_content(raw: bytes) -> str:
    """Decode ``raw`` preferring UTF-8, falling back to charset detection."""

    if not raw:
        return ""
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        pass

    best = from_bytes(raw).best()
    if best and best.encoding:
        return raw.decode(best.encoding, errors="replace")
    return raw.decode("utf-8", errors="replace")
