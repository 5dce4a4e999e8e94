import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

# prefijo numérico al estilo parseFloat: "12.5abc" -> 12.5
_LEADING_FLOAT = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_DASH_RANGE = re.compile(r"^([\d.,]+)\s*[-–]\s*([\d.,]+)$")
_NON_NUMERIC = re.compile(r"[^\d.,\-]")


class RangeKind(str, Enum):
    RANGE = "range"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"


@dataclass(frozen=True)
class Interval:
    min: float
    max: float
    kind: RangeKind

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max


def _leading_float(text: str) -> Optional[float]:
    m = _LEADING_FLOAT.match((text or "").strip())
    if not m:
        return None
    return float(m.group(0))


def _decimal(text: str) -> Optional[float]:
    return _leading_float(text.replace(",", ".", 1))


def parse_range(range_str: Optional[str]) -> Optional[Interval]:
    """
    Parse a reference range string.

    ``">a"`` and ``"<a"`` give half-open intervals; ``"a-b"`` (hyphen or
    en-dash, ``.`` or ``,`` decimals) gives a closed one. Anything else is None.
    """
    if not range_str or not isinstance(range_str, str):
        return None
    trimmed = range_str.strip()
    if not trimmed:
        return None

    if trimmed.startswith(">"):
        value = _decimal(trimmed[1:])
        if value is None:
            return None
        return Interval(value, math.inf, RangeKind.GREATER_THAN)

    if trimmed.startswith("<"):
        value = _decimal(trimmed[1:])
        if value is None:
            return None
        return Interval(-math.inf, value, RangeKind.LESS_THAN)

    m = _DASH_RANGE.match(trimmed)
    if m:
        low, high = _decimal(m.group(1)), _decimal(m.group(2))
        if low is None or high is None:
            return None
        return Interval(low, high, RangeKind.RANGE)

    return None


def is_within_range(value: float, interval: Interval) -> bool:
    return interval.contains(value)


def parse_numeric_value(value: Union[str, int, float, None]) -> Optional[float]:
    """Extract the number from an OBX-5 value such as ``"12,5 mg/dL"``; None if there is none."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return None if math.isnan(value) else float(value)
    if not isinstance(value, str):
        return None
    cleaned = _NON_NUMERIC.sub("", value).replace(",", ".", 1)
    return _leading_float(cleaned)
