"""
Status vocabularies.

Three producers speak different dialects:
  - the deterministic classifier (``RangeStatus``),
  - the AI report, medical axis (``AIStatus``) and hair axis (``HairStatus``),
and the presentation layer only understands ``CanonicalStatus``.
"""
from enum import Enum


class RangeStatus(str, Enum):
    NORMAL = "normal"
    BELOW_REFRANGE = "below_refrange"
    ABOVE_REFRANGE = "above_refrange"
    BELOW_IDEALRANGE = "below_idealrange"
    ABOVE_IDEALRANGE = "above_idealrange"
    UNCLASSIFIED = ""


class AIStatus(str, Enum):
    NORMAL = "normal"
    LOW = "low"
    HIGH = "high"
    CRITICAL_LOW = "critical_low"
    CRITICAL_HIGH = "critical_high"


class HairStatus(str, Enum):
    OPTIMAL = "optimal"
    SUBOPTIMAL = "suboptimal"
    CONCERN = "concern"
    NOT_RELEVANT = "not_relevant"
    UNSET = ""


class CanonicalStatus(str, Enum):
    NORMAL = "normal"
    LOW = "low"
    HIGH = "high"
    CRITICAL_LOW = "critical_low"
    CRITICAL_HIGH = "critical_high"
    SUBOPTIMAL = "suboptimal"
    SUPRAOPTIMAL = "supraoptimal"
    UNKNOWN = "unknown"
