"""
One status vocabulary for rendering.

The classifier speaks ``below_refrange``/``above_idealrange``..., the AI report
speaks ``low``/``critical_high``...; both are folded into ``CanonicalStatus``
here so the preview and the report badge the same way.
"""
from enum import Enum
from typing import Dict, Optional, Union

from labanalyzer.classification.status import AIStatus, CanonicalStatus, RangeStatus

StatusLike = Union[str, RangeStatus, AIStatus, CanonicalStatus, None]

_STATUS_MAP: Dict[str, CanonicalStatus] = {
    # medical axis
    CanonicalStatus.NORMAL.value: CanonicalStatus.NORMAL,
    AIStatus.LOW.value: CanonicalStatus.LOW,
    RangeStatus.BELOW_REFRANGE.value: CanonicalStatus.LOW,
    AIStatus.HIGH.value: CanonicalStatus.HIGH,
    RangeStatus.ABOVE_REFRANGE.value: CanonicalStatus.HIGH,
    AIStatus.CRITICAL_LOW.value: CanonicalStatus.CRITICAL_LOW,
    AIStatus.CRITICAL_HIGH.value: CanonicalStatus.CRITICAL_HIGH,
    # optimality axis
    RangeStatus.BELOW_IDEALRANGE.value: CanonicalStatus.SUBOPTIMAL,
    CanonicalStatus.SUBOPTIMAL.value: CanonicalStatus.SUBOPTIMAL,
    RangeStatus.ABOVE_IDEALRANGE.value: CanonicalStatus.SUPRAOPTIMAL,
    CanonicalStatus.SUPRAOPTIMAL.value: CanonicalStatus.SUPRAOPTIMAL,
}

_LABELS: Dict[str, Dict[CanonicalStatus, str]] = {
    "en": {
        CanonicalStatus.NORMAL: "Normal",
        CanonicalStatus.LOW: "Low",
        CanonicalStatus.HIGH: "High",
        CanonicalStatus.CRITICAL_LOW: "Critical low",
        CanonicalStatus.CRITICAL_HIGH: "Critical high",
        CanonicalStatus.SUBOPTIMAL: "Below ideal",
        CanonicalStatus.SUPRAOPTIMAL: "Above ideal",
    },
    "de": {
        CanonicalStatus.NORMAL: "Normal",
        CanonicalStatus.LOW: "Niedrig",
        CanonicalStatus.HIGH: "Hoch",
        CanonicalStatus.CRITICAL_LOW: "Kritisch niedrig",
        CanonicalStatus.CRITICAL_HIGH: "Kritisch hoch",
        CanonicalStatus.SUBOPTIMAL: "Unter Idealbereich",
        CanonicalStatus.SUPRAOPTIMAL: "Über Idealbereich",
    },
}

_RED = "text-red-700 bg-red-50 border-red-200"
_YELLOW = "text-yellow-700 bg-yellow-50 border-yellow-200"

_COLORS: Dict[CanonicalStatus, str] = {
    CanonicalStatus.NORMAL: "text-green-700 bg-green-50 border-green-200",
    CanonicalStatus.LOW: _RED,
    CanonicalStatus.HIGH: _RED,
    CanonicalStatus.CRITICAL_LOW: _RED,
    CanonicalStatus.CRITICAL_HIGH: _RED,
    CanonicalStatus.SUBOPTIMAL: _YELLOW,
    CanonicalStatus.SUPRAOPTIMAL: _YELLOW,
}
_NEUTRAL_COLOR = "text-gray-600 bg-gray-50 border-gray-200"

_MEDICAL = {CanonicalStatus.LOW, CanonicalStatus.HIGH, CanonicalStatus.CRITICAL_LOW, CanonicalStatus.CRITICAL_HIGH}
_OPTIMALITY = {CanonicalStatus.SUBOPTIMAL, CanonicalStatus.SUPRAOPTIMAL}


def normalize_status(raw: StatusLike) -> CanonicalStatus:
    if raw is None:
        return CanonicalStatus.UNKNOWN
    key = raw.value if isinstance(raw, Enum) else str(raw)
    # cualquier otra cadena (incluida la vacía) es deliberadamente "unknown"
    return _STATUS_MAP.get(key, CanonicalStatus.UNKNOWN)


def is_abnormal(raw: StatusLike) -> bool:
    return normalize_status(raw) not in (CanonicalStatus.NORMAL, CanonicalStatus.UNKNOWN)


def status_label(status: StatusLike, lang: Optional[str] = "en") -> str:
    """Badge text; ``unknown`` has no label and renders as its own value."""
    status = normalize_status(status)
    labels = _LABELS["de"] if (lang or "").lower().startswith("de") else _LABELS["en"]
    return labels.get(status, status.value)


def status_color(status: CanonicalStatus) -> str:
    return _COLORS.get(status, _NEUTRAL_COLOR)


def row_background(raw: StatusLike) -> str:
    status = normalize_status(raw)
    if status in _MEDICAL:
        return "bg-red-50/60"
    if status in _OPTIMALITY:
        return "bg-yellow-50/60"
    return ""
