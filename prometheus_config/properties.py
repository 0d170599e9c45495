"""Reader for ``.properties`` catalog files.

Follows the ``java.util.Properties`` line format catalog files are written in:

  - ``#`` and ``!`` start comment lines; blank lines are skipped.
  - A key ends at the first unescaped ``=``, ``:`` or whitespace; whitespace
    around that separator is ignored.
  - A line ending in an odd number of backslashes continues on the next line,
    whose leading whitespace is dropped.
  - Backslash escapes in keys and values are resolved (``\\t``, ``\\n``, ``\\r``,
    ``\\f``, ``\\uXXXX``; any other escaped character stands for itself), so
    ``a\\\\,b:c`` in a file is the value ``a\\,b:c``.
"""

import logging
from pathlib import Path
from typing import Iterator, Union

logger = logging.getLogger(__name__)

_COMMENT_PREFIXES = ("#", "!")
_WHITESPACE = " \t\f"
_SEPARATORS = "=:"
_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


def _logical_lines(text: str) -> Iterator[str]:
    """Join continuation lines and drop comments and blanks."""
    pending = None
    for raw_line in text.splitlines():
        line = raw_line.lstrip(_WHITESPACE)
        if pending is None and (not line or line.startswith(_COMMENT_PREFIXES)):
            continue
        trailing_backslashes = len(line) - len(line.rstrip("\\"))
        if trailing_backslashes % 2 == 1:
            pending = (pending or "") + line[:-1]
            continue
        yield (pending or "") + line
        pending = None
    if pending:
        yield pending


def _unescape(text: str) -> str:
    """Resolve backslash escapes.

    Raises:
        ValueError: On a malformed ``\\uXXXX`` escape.
    """
    chars: list[str] = []
    index = 0
    while index < len(text):
        char = text[index]
        if char != "\\":
            chars.append(char)
            index += 1
            continue
        if index + 1 == len(text):
            break
        escaped = text[index + 1]
        if escaped == "u":
            digits = text[index + 2 : index + 6]
            if len(digits) != 4 or not set(digits) <= _HEX_DIGITS:
                raise ValueError(f"Malformed \\uxxxx encoding in {text!r}")
            chars.append(chr(int(digits, 16)))
            index += 6
        else:
            chars.append(_ESCAPES.get(escaped, escaped))
            index += 2
    return "".join(chars)


def _split_entry(line: str) -> tuple[str, str]:
    """Split one logical line into its raw key and raw value."""
    end = 0
    escaped = False
    while end < len(line):
        char = line[end]
        if escaped:
            escaped = False
        elif char == "\\":
            escaped = True
        elif char in _SEPARATORS or char in _WHITESPACE:
            break
        end += 1
    rest = line[end:].lstrip(_WHITESPACE)
    if rest[:1] and rest[0] in _SEPARATORS:
        rest = rest[1:].lstrip(_WHITESPACE)
    return line[:end], rest


def parse_properties(text: str) -> dict[str, str]:
    """Parse properties text into a dict; later keys overwrite earlier ones.

    A line with no separator is a key with an empty value, as in Java.

    Raises:
        ValueError: On a malformed ``\\uXXXX`` escape.
    """
    properties: dict[str, str] = {}
    for line in _logical_lines(text):
        key, value = _split_entry(line)
        properties[_unescape(key)] = _unescape(value)
    return properties


def load_properties(path: Union[str, Path]) -> dict[str, str]:
    """Read a catalog file such as ``etc/catalog/prometheus.properties``."""
    path = Path(path)
    properties = parse_properties(path.read_text(encoding="utf-8"))
    logger.debug("Read %d properties from %s", len(properties), path)
    return properties
