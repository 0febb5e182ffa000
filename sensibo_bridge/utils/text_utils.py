"""
Text helpers for device display names.
"""
import unicodedata

# Smart punctuation the Sensibo app inserts into room names
_PUNCTUATION = {
    '‘': "'",
    '’': "'",
    '“': '"',
    '”': '"',
    '–': '-',
    '—': '-',
}


def sanitize_device_name(name: str) -> str:
    """
    Normalize a room name for use as an accessory display name.

    Replaces curly quotes and dashes with ASCII, applies NFKC and
    collapses surrounding whitespace.

    Examples:
        >>> sanitize_device_name("Yehuda’s Room ")
        "Yehuda's Room"
    """
    if not name:
        return name

    for old, new in _PUNCTUATION.items():
        name = name.replace(old, new)

    return unicodedata.normalize('NFKC', name).strip()


def humidity_service_name(room_name: str) -> str:
    """Display name for the humidity sensor service of a room."""
    return f"{sanitize_device_name(room_name)} Humidity"
