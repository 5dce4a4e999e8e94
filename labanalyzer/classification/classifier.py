"""
Deterministic biomarker classification.

Precedence, first applicable rule wins:
  1. no numeric value               -> unclassified
  2. diurnal cortisol with a time   -> time-curve standard range only
  3. outside the lab reference      -> below/above_refrange
  4. ideal range in the table       -> normal / below/above_idealrange (+ range)
  5. inside the lab reference       -> normal
  6. otherwise                      -> unclassified

A medically abnormal value is never relabelled by the ideal range; the ideal
range only refines values the lab already considers acceptable.
"""
from typing import NamedTuple, Optional

from labanalyzer.classification.cortisol import CORTISOL_CODE, cortisol_range_for
from labanalyzer.classification.ranges import Interval, parse_numeric_value, parse_range
from labanalyzer.classification.reference_table import ReferenceTable, default_reference_table
from labanalyzer.classification.status import RangeStatus
from labanalyzer.parsers.models import Observation


class Classification(NamedTuple):
    status: RangeStatus
    ideal_range: Optional[str] = None


UNCLASSIFIED = Classification(RangeStatus.UNCLASSIFIED, None)


def _against_reference(value: float, interval: Interval) -> RangeStatus:
    if interval.contains(value):
        return RangeStatus.NORMAL
    if value < interval.min:
        return RangeStatus.BELOW_REFRANGE
    return RangeStatus.ABOVE_REFRANGE


def _against_ideal(value: float, interval: Interval) -> RangeStatus:
    if interval.contains(value):
        return RangeStatus.NORMAL
    if value < interval.min:
        return RangeStatus.BELOW_IDEALRANGE
    return RangeStatus.ABOVE_IDEALRANGE


def classify(observation: Observation, table: Optional[ReferenceTable] = None) -> Classification:
    value = parse_numeric_value(observation.value)
    if value is None:
        return UNCLASSIFIED

    code = (observation.code or "").strip()

    if code.upper() == CORTISOL_CODE:
        curve = cortisol_range_for(observation.specimen_collection_time, observation.observation_datetime)
        if curve is not None:
            if curve.standard_min <= value <= curve.standard_max:
                return Classification(RangeStatus.NORMAL)
            if value < curve.standard_min:
                return Classification(RangeStatus.BELOW_REFRANGE)
            return Classification(RangeStatus.ABOVE_REFRANGE)

    lab_range = parse_range(observation.ref_range)
    if lab_range is not None and not lab_range.contains(value):
        return Classification(_against_reference(value, lab_range))

    table = table if table is not None else default_reference_table()
    ideal_str = table.lookup_ideal(code)
    ideal = parse_range(ideal_str)
    if ideal is not None:
        return Classification(_against_ideal(value, ideal), ideal_str)

    if lab_range is not None:
        return Classification(RangeStatus.NORMAL)

    return UNCLASSIFIED
