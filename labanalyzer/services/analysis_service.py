# labanalyzer/services/analysis_service.py
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional, Union

from loguru import logger

from labanalyzer.classification.status import HairStatus
from labanalyzer.commons.lab_engine import LabEngine
from labanalyzer.parsers.models import ParsedResult
from labanalyzer.presentation.status_mapper import is_abnormal, normalize_status, status_color, status_label
from labanalyzer.validation.validators import FallbackReport, ReportOutcome, StructuredReport, parse_ai_response

# (prompt, pdf_bytes) -> texto de respuesta; lo provee la capa de red
Analyzer = Callable[[str, Optional[bytes]], Awaitable[str]]

_HAIR_FLAGGED = {HairStatus.SUBOPTIMAL.value, HairStatus.CONCERN.value}


@dataclass
class AnalysisOutcome:
    prompt: str
    report: ReportOutcome
    parsed: Optional[ParsedResult] = None

    @property
    def is_fallback(self) -> bool:
        return isinstance(self.report, FallbackReport)


def normalized_rows(report: ReportOutcome, lang: str = "en") -> List[Dict]:
    """Una fila por biomarcador con el estado canónico (médico y capilar)."""
    if not isinstance(report, StructuredReport):
        return []
    rows = []
    for panel in report.report.panels:
        for bio in panel.biomarkers:
            status = normalize_status(bio.status)
            rows.append(
                {
                    "panel": panel.name,
                    "code": bio.code,
                    "name": bio.name,
                    "value": bio.value,
                    "units": bio.units,
                    "ref_range": bio.ref_range,
                    "status": status.value,
                    "label": status_label(status, lang),
                    "color": status_color(status),
                    "hair_status": bio.hair_status,
                    "abnormal": is_abnormal(status) or bio.hair_status in _HAIR_FLAGGED,
                }
            )
    return rows


class AnalysisService:
    def __init__(self, engine: LabEngine, analyzer: Analyzer):
        self.engine = engine
        self.analyzer = analyzer

    async def _run(self, prompt: str, pdf: Optional[bytes] = None) -> ReportOutcome:
        text = await self.analyzer(prompt, pdf)
        outcome = parse_ai_response(text)
        if isinstance(outcome, FallbackReport):
            logger.warning("Informe de IA degradado a texto plano")
        else:
            logger.info(f"Informe de IA estructurado: {len(outcome.report.panels)} panel(es)")
        return outcome

    async def analyze_hl7(
        self,
        hl7: Union[str, bytes],
        medical_record: Optional[str] = None,
        lang: Optional[str] = None,
        custom_prompt: Optional[str] = None,
    ) -> AnalysisOutcome:
        # EmptyMessageError se propaga: sin segmentos no hay nada que enviar
        raw = self.engine.decode(hl7)
        parsed = self.engine.parse(raw)
        logger.info(f"HL7 {parsed.message_type}: {len(parsed.observations)} observación(es)")
        prompt = self.engine.build_prompt(raw, parsed, medical_record, lang, custom_prompt)
        report = await self._run(prompt)
        return AnalysisOutcome(prompt=prompt, report=report, parsed=parsed)

    async def analyze_pdf(
        self,
        pdf: bytes,
        medical_record: Optional[str] = None,
        lang: Optional[str] = None,
        custom_prompt: Optional[str] = None,
    ) -> AnalysisOutcome:
        prompt = self.engine.build_pdf_prompt(medical_record, lang, custom_prompt)
        logger.info(f"PDF de {len(pdf)} bytes enviado a análisis")
        report = await self._run(prompt, pdf)
        return AnalysisOutcome(prompt=prompt, report=report)
