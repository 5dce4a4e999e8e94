"""
Diurnal cortisol reference curve.

Two published anchors (09:30 and 18:30); between them every bound is
interpolated linearly, outside them the nearest anchor applies unchanged.
Values in nmol/L.
"""
import math
import re
from dataclasses import dataclass
from typing import Optional

CORTISOL_CODE = "CORT"
CORTISOL_DISPLAY = "Cortisol Diurnal"

_TIME_PATTERN = re.compile(r"T(\d{2}):(\d{2})")


@dataclass(frozen=True)
class CortisolAnchor:
    time: float
    optimal_min: float
    optimal_max: float
    standard_min: float
    standard_max: float


EARLY_ANCHOR = CortisolAnchor(time=9.5, optimal_min=128.3, optimal_max=321.7, standard_min=133.0, standard_max=537.0)
LATE_ANCHOR = CortisolAnchor(time=18.5, optimal_min=58.3, optimal_max=151.7, standard_min=57.4, standard_max=292.0)


@dataclass(frozen=True)
class CortisolRange:
    optimal_min: float
    optimal_max: float
    standard_min: float
    standard_max: float
    time_used: float
    capped: Optional[str] = None  # "early" | "late" | None

    def standard_range_str(self) -> str:
        return f"{self.standard_min:.1f}-{self.standard_max:.1f}"


def _interpolate(x: float, x1: float, y1: float, x2: float, y2: float) -> float:
    return y1 + (x - x1) * (y2 - y1) / (x2 - x1)


def _from_anchor(anchor: CortisolAnchor, hour: float, capped: str) -> CortisolRange:
    return CortisolRange(
        optimal_min=anchor.optimal_min,
        optimal_max=anchor.optimal_max,
        standard_min=anchor.standard_min,
        standard_max=anchor.standard_max,
        time_used=hour,
        capped=capped,
    )


def hour_from_timestamp(timestamp: Optional[str]) -> Optional[float]:
    """``"2023-01-15T14:30:00"`` -> 14.5; None when no ``T##:##`` is present."""
    if not timestamp or not isinstance(timestamp, str):
        return None
    m = _TIME_PATTERN.search(timestamp)
    if not m:
        return None
    return int(m.group(1)) + int(m.group(2)) / 60


def cortisol_range_at(hour: Optional[float]) -> Optional[CortisolRange]:
    if hour is None or math.isnan(hour):
        return None

    early, late = EARLY_ANCHOR, LATE_ANCHOR
    if hour <= early.time:
        return _from_anchor(early, hour, "early")
    if hour >= late.time:
        return _from_anchor(late, hour, "late")

    return CortisolRange(
        optimal_min=_interpolate(hour, early.time, early.optimal_min, late.time, late.optimal_min),
        optimal_max=_interpolate(hour, early.time, early.optimal_max, late.time, late.optimal_max),
        standard_min=_interpolate(hour, early.time, early.standard_min, late.time, late.standard_min),
        standard_max=_interpolate(hour, early.time, early.standard_max, late.time, late.standard_max),
        time_used=hour,
    )


def cortisol_range_for(collection_time: Optional[str], observation_time: Optional[str] = None) -> Optional[CortisolRange]:
    """Curve for the specimen collection time, falling back to the observation time."""
    return cortisol_range_at(hour_from_timestamp(collection_time or observation_time))
