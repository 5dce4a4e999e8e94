# labanalyzer/validation/validators.py
import json
from dataclasses import dataclass
from typing import Any, List, Union

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from labanalyzer.commons.exceptions import AnalysisError

FALLBACK_SUMMARY = "The AI analysis was completed but the response could not be structured automatically."


def _text(v: Any) -> str:
    # el modelo a veces devuelve números o null
    if v is None:
        return ""
    return str(v).strip()


class ReportBiomarker(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    code: str = ""
    name: str = ""
    value: str = ""
    units: str = ""
    ref_range: str = Field("", alias="refRange")
    # se guarda tal cual: el mapper decide qué es "unknown"
    status: str = ""
    hair_status: str = Field("", alias="hairStatus")
    interpretation: str = ""

    @field_validator("code", "name", "value", "units", "ref_range", "status", "hair_status", "interpretation", mode="before")
    @classmethod
    def _coerce_text(cls, v: Any):
        return _text(v)


class ReportPanel(BaseModel):
    name: str = ""
    biomarkers: List[ReportBiomarker] = Field(default_factory=list)

    @field_validator("name", mode="before")
    @classmethod
    def _coerce_name(cls, v: Any):
        return _text(v)

    @field_validator("biomarkers", mode="before")
    @classmethod
    def _biomarkers_or_empty(cls, v: Any):
        return v if isinstance(v, list) else []


class AnalysisReport(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    medical_record_analysis: str = Field("", alias="medicalRecordAnalysis")
    general_health: str = Field("", alias="generalHealth")
    hair_summary: str = Field("", alias="hairSummary")
    etiology_assessment: str = Field("", alias="etiologyAssessment")
    regenerative_indication: str = Field("", alias="regenerativeIndication")
    panels: List[ReportPanel] = Field(default_factory=list)
    action_plan: List[str] = Field(default_factory=list, alias="actionPlan")

    @field_validator(
        "medical_record_analysis",
        "general_health",
        "hair_summary",
        "etiology_assessment",
        "regenerative_indication",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, v: Any):
        # un null suelto no debe tirar el informe entero
        return _text(v)

    @field_validator("panels", "action_plan", mode="before")
    @classmethod
    def _list_or_empty(cls, v: Any):
        return v if isinstance(v, list) else []


@dataclass(frozen=True)
class StructuredReport:
    report: AnalysisReport


@dataclass(frozen=True)
class FallbackReport:
    """The AI answered but not with parseable JSON; ``raw_text`` is what it said."""

    raw_text: str
    summary: str = FALLBACK_SUMMARY


ReportOutcome = Union[StructuredReport, FallbackReport]


# --------- Utilidades para interpretar la respuesta del modelo ----------
def strip_code_fences(text: str) -> str:
    cleaned = (text or "").strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def parse_ai_response(text: str) -> ReportOutcome:
    """JSON + schema validation; any failure degrades to ``FallbackReport``."""
    try:
        data = json.loads(strip_code_fences(text))
        if not isinstance(data, dict):
            raise ValueError(f"se esperaba un objeto JSON, llegó {type(data).__name__}")
        return StructuredReport(AnalysisReport.model_validate(data))
    except (ValueError, ValidationError) as ex:
        # json.JSONDecodeError es subclase de ValueError
        logger.warning(f"Respuesta de IA no estructurable, se usa fallback: {ex}")
        return FallbackReport(raw_text=text)


def extract_response_text(payload: Any) -> str:
    """Text of ``candidates[0].content.parts[0]`` in a generateContent response."""
    try:
        text = payload["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as ex:
        raise AnalysisError("No response content from the AI service") from ex
    if not text:
        raise AnalysisError("No response content from the AI service")
    return text
