"""Duration values with an explicit time unit.

A ``Duration`` keeps the magnitude and unit it was written with (``21d`` stays
21 days rather than collapsing to seconds) and converts to any other unit on
demand.  Text is parsed with the usual ``<number><unit>`` shorthand used in
Prometheus catalog files, e.g. ``500ms``, ``1.5h`` or ``21d``.
"""

import math
import re
from datetime import timedelta
from decimal import Decimal
from enum import Enum
from fractions import Fraction
from functools import total_ordering
from typing import Any, Callable, Union

_DURATION_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([a-zA-Z]+)\s*$")

Number = Union[int, float, Decimal, Fraction]


class TimeUnit(Enum):
    """Supported units, valued by their shorthand suffix."""

    NANOSECONDS = "ns"
    MICROSECONDS = "us"
    MILLISECONDS = "ms"
    SECONDS = "s"
    MINUTES = "m"
    HOURS = "h"
    DAYS = "d"

    @property
    def nanos(self) -> int:
        """Length of one unit in nanoseconds."""
        return _NANOS_PER_UNIT[self]


_NANOS_PER_UNIT = {
    TimeUnit.NANOSECONDS: 1,
    TimeUnit.MICROSECONDS: 1_000,
    TimeUnit.MILLISECONDS: 1_000_000,
    TimeUnit.SECONDS: 1_000_000_000,
    TimeUnit.MINUTES: 60 * 1_000_000_000,
    TimeUnit.HOURS: 60 * 60 * 1_000_000_000,
    TimeUnit.DAYS: 24 * 60 * 60 * 1_000_000_000,
}


@total_ordering
class Duration:
    """An immutable, non-negative length of time in a given unit.

    The magnitude is kept as an exact fraction, so ``4.1m`` is exactly 246 seconds.
    Equality, ordering and hashing use the absolute length, so ``Duration(1, DAYS)``
    equals ``Duration(24, HOURS)``.
    """

    __slots__ = ("_value", "_unit")

    def __init__(self, value: Number, unit: TimeUnit) -> None:
        if isinstance(value, float):
            if math.isnan(value) or math.isinf(value):
                raise ValueError(f"duration must be a finite number: {value}")
            # repr keeps the decimal the caller wrote: 4.1 rather than its binary neighbour
            value = Fraction(repr(value))
        exact = Fraction(value)
        if exact < 0:
            raise ValueError(f"duration is negative: {value}")
        self._value = exact
        self._unit = unit

    @property
    def value(self) -> float:
        return float(self._value)

    @property
    def unit(self) -> TimeUnit:
        return self._unit

    @classmethod
    def parse(cls, text: str) -> "Duration":
        """Parse ``<number><unit>`` text such as ``30s`` or ``1.5 h``.

        Args:
            text: Raw configuration value.

        Raises:
            ValueError: If the text is not a number followed by a known unit.
        """
        match = _DURATION_PATTERN.match(text)
        if match is None:
            raise ValueError(f"duration is not a valid data duration string: {text!r}")
        return cls(Fraction(match.group(1)), TimeUnit(match.group(2)))

    @classmethod
    def from_timedelta(cls, delta: timedelta) -> "Duration":
        micros = (delta.days * 86_400 + delta.seconds) * 1_000_000 + delta.microseconds
        return cls(micros, TimeUnit.MICROSECONDS).convert_to_most_succinct_time_unit()

    def get_value(self, unit: TimeUnit) -> float:
        """Return the magnitude expressed in ``unit``."""
        return float(self._exact_value(unit))

    def _exact_value(self, unit: TimeUnit) -> Fraction:
        return self._nanos() / unit.nanos

    def whole_units(self, unit: TimeUnit) -> int:
        """Return the magnitude in ``unit``, rounded down to an integer without float error."""
        return math.floor(self._exact_value(unit))

    def convert_to(self, unit: TimeUnit) -> "Duration":
        return Duration(self._exact_value(unit), unit)

    def convert_to_most_succinct_time_unit(self) -> "Duration":
        """Pick the largest unit in which the magnitude is still at least 1."""
        best = TimeUnit.NANOSECONDS
        for unit in TimeUnit:
            if self._exact_value(unit) < 1:
                break
            best = unit
        return self.convert_to(best)

    def to_millis(self) -> int:
        return round(self._exact_value(TimeUnit.MILLISECONDS))

    def to_timedelta(self) -> timedelta:
        return timedelta(microseconds=self.get_value(TimeUnit.MICROSECONDS))

    def _nanos(self) -> Fraction:
        return self._value * self._unit.nanos

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Duration):
            return NotImplemented
        return self._nanos() == other._nanos()

    def __lt__(self, other: "Duration") -> bool:
        if not isinstance(other, Duration):
            return NotImplemented
        return self._nanos() < other._nanos()

    def __hash__(self) -> int:
        return hash(self._nanos())

    def __str__(self) -> str:
        return f"{float(self._value):.2f}{self._unit.value}"

    def __repr__(self) -> str:
        return f"Duration({float(self._value)!r}, TimeUnit.{self._unit.name})"


def to_duration(value: Any) -> Duration:
    """Convert raw configuration input into a ``Duration``.

    Accepts ``Duration`` instances, ``timedelta`` objects and unit-suffixed
    strings.  Bare numbers are rejected because the unit would be a guess.
    """
    if isinstance(value, Duration):
        return value
    if isinstance(value, timedelta):
        return Duration.from_timedelta(value)
    if isinstance(value, str):
        return Duration.parse(value)
    raise ValueError(f"duration must be a string with a unit such as '30s', got {type(value).__name__}")


def min_duration(minimum: str) -> Callable[[Duration], Duration]:
    """Build a validator that rejects durations shorter than ``minimum``.

    Args:
        minimum: Lower bound in shorthand form, e.g. ``"1ms"``.
    """
    floor = Duration.parse(minimum)

    def _check(value: Duration) -> Duration:
        if value < floor:
            raise ValueError(f"must be greater than or equal to {minimum}, got {value}")
        return value

    return _check
