"""Text decoding for registry exports of unknown encoding.

regedit writes UTF-16LE with a BOM by default; hand-edited or converted
files are commonly UTF-8 with or without one.
"""

from __future__ import annotations

import locale

_BOMS: tuple[tuple[bytes, str], ...] = (
    (b"\xef\xbb\xbf", "utf-8"),
    (b"\xff\xfe", "utf-16-le"),
    (b"\xfe\xff", "utf-16-be"),
)


def detect_bom(data: bytes) -> tuple[str, int]:
    """Return ``(codec, bom_length)``; UTF-8 with length 0 when no BOM."""
    for bom, codec in _BOMS:
        if data.startswith(bom):
            return codec, len(bom)
    return "utf-8", 0


def decode_registry_bytes(data: bytes) -> str:
    """Decode *data* to text.  Never raises.

    With a BOM the named codec is always used and undecodable units are
    replaced, so one bad byte costs at most one value.  Without a BOM,
    UTF-8 is tried before the locale codec.  Garbled input may come back
    as garbled text; structural validation rejects it afterwards.
    """
    if not data:
        return ""
    codec, bom_length = detect_bom(data)
    if bom_length:
        # A BOM fixes the codec; damaged units become U+FFFD
        return data[bom_length:].decode(codec, errors="replace")
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        pass
    return data.decode(locale.getpreferredencoding(False) or "utf-8", errors="replace")
