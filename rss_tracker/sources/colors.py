"""Deterministic display colors for sources."""


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def _string_hash(text: str) -> int:
    """
    Java-style rolling string hash over UTF-16 code units.

    The shift operates on the 32-bit truncation of the running value while
    the subtraction and addition do not, so the result can leave the int32
    range. Existing stored colors depend on this exact arithmetic.
    """
    encoded = text.encode("utf-16-le")
    code_units = [
        int.from_bytes(encoded[i:i + 2], "little") for i in range(0, len(encoded), 2)
    ]

    h = 0
    for unit in code_units:
        h = unit + (_to_int32(_to_int32(h) << 5) - h)
    return h


def generate_source_color(name: str) -> str:
    """
    Generate a stable HSL color for a source name.

    Saturation stays within 70-79% and lightness within 45-49% so colors
    remain readable on both light and dark backgrounds.
    """
    h = abs(_string_hash(name))
    hue = h % 360
    saturation = int(70 + (h % 60) / 6)
    lightness = int(50 + (h % 20) / 4 - 5)
    return f"hsl({hue}, {saturation}%, {lightness}%)"
