"""Parsing for compound, comma-separated configuration values.

The additional-headers property packs several HTTP headers into one string:

    X-Scope-OrgID:tenant-1, X-Extra:a\\,b

Commas separate pairs and the first colon of a pair separates name from value.
Either delimiter can be escaped with a backslash to keep it literal.
"""

from types import MappingProxyType
from typing import Any, Mapping, Optional

_ESCAPE = "\\"
_PAIR_DELIMITER = ","
_KEY_VALUE_DELIMITER = ":"


def _split_unescaped(text: str, delimiter: str, maxsplit: int = -1) -> list[str]:
    """Split ``text`` on ``delimiter`` wherever it is not preceded by a backslash.

    The backslash escaping a delimiter is dropped from the output; any other
    backslash is kept, so escapes meant for a later split survive this one.

    Args:
        text: String to split.
        delimiter: Single-character separator.
        maxsplit: Maximum number of splits; -1 means unlimited.
    """
    parts: list[str] = []
    current: list[str] = []
    previous = ""
    for char in text:
        if char == delimiter and previous == _ESCAPE:
            current[-1] = char
        elif char == delimiter and (maxsplit < 0 or len(parts) < maxsplit):
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
        previous = char
    parts.append("".join(current))
    return parts


def parse_additional_headers(value: Optional[str]) -> Mapping[str, str]:
    """Parse ``name:value`` pairs into a read-only header mapping.

    ``None`` or an empty string yields an empty mapping.  Trailing empty pairs
    (``"a:b,"``) are ignored; later duplicates overwrite earlier ones.

    Args:
        value: Raw property value.

    Raises:
        ValueError: If a pair has no unescaped colon.
    """
    if not value:
        return MappingProxyType({})

    pairs = _split_unescaped(value, _PAIR_DELIMITER)
    while pairs and not pairs[-1]:
        pairs.pop()

    headers: dict[str, str] = {}
    for pair in pairs:
        key_value = _split_unescaped(pair, _KEY_VALUE_DELIMITER, maxsplit=1)
        if len(key_value) != 2:
            cause = f"entry {pair!r} has no unescaped '{_KEY_VALUE_DELIMITER}' separating name from value"
            raise ValueError(f"Invalid format for additional headers because {cause}. Value provided is {value}")
        headers[key_value[0].strip()] = key_value[1].strip()
    return MappingProxyType(headers)


def to_header_mapping(value: Any) -> Mapping[str, str]:
    """Accept either the raw compound string or an already-built mapping."""
    if value is None or isinstance(value, str):
        return parse_additional_headers(value)
    if isinstance(value, Mapping):
        return MappingProxyType({str(k): str(v) for k, v in value.items()})
    raise ValueError(f"additional headers must be a string or mapping, got {type(value).__name__}")


def split_list(value: Any) -> Any:
    """Split a comma-separated property into trimmed, non-empty items.

    Non-string input (already a list or set) is passed through untouched.
    """
    if value is None:
        return []
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value
