from dataclasses import asdict
from typing import Any, Dict, Optional, Union

from labanalyzer.classification.reference_table import ReferenceTable
from labanalyzer.commons.encoding import decode_legacy_western_text
from labanalyzer.commons.settings import load_cfg, validate_cfg
from labanalyzer.commons.types import Settings
from labanalyzer.helpers.prompts import build_hl7_analysis_prompt, build_pdf_analysis_prompt
from labanalyzer.parsers.hl7 import parse_hl7_message
from labanalyzer.parsers.models import ParsedResult
from labanalyzer.presentation.status_mapper import normalize_status, row_background, status_color, status_label


class LabEngine:
    """Facade que carga la configuración y expone parse / payload / prompt.

    Acepta una ruta a settings.yaml, un dict ya cargado o un ``Settings``.
    """

    def __init__(self, config_path_or_obj: Union[str, Dict[str, Any], Settings, None] = None):
        if isinstance(config_path_or_obj, Settings):
            self.cfg = config_path_or_obj
        elif isinstance(config_path_or_obj, dict):
            self.cfg = validate_cfg(config_path_or_obj)
        else:
            self.cfg = load_cfg(config_path_or_obj)

        self.reference_table = ReferenceTable.from_yaml(self.cfg.paths.reference_table)

    def decode(self, payload: Union[str, bytes]) -> str:
        if isinstance(payload, (bytes, bytearray)):
            return decode_legacy_western_text(payload)
        return payload

    def parse(self, hl7: Union[str, bytes]) -> ParsedResult:
        return parse_hl7_message(
            self.decode(hl7),
            reference_table=self.reference_table,
            cortisol_aliases=self.cfg.parsers.cortisol_aliases,
            repair_mojibake=self.cfg.parsers.repair_mojibake,
        )

    def to_preview_payload(self, result: ParsedResult, lang: Optional[str] = None) -> Dict:
        """Dict listo para JSON: demografía + tabla de observaciones con su badge."""
        lang = lang or self.cfg.analysis.default_lang
        rows = []
        for o in result.observations:
            canonical = normalize_status(o.range_status)
            rows.append(
                {
                    "code": o.code,
                    "text": o.text,
                    "value": o.value,
                    "units": o.units,
                    "ref_range": o.ref_range,
                    "ideal_range": o.ideal_range,
                    "range_status": o.range_status.value,
                    "status": canonical.value,
                    "label": status_label(canonical, lang),
                    "color": status_color(canonical),
                    "row_class": row_background(canonical),
                    "specimen_collection_time": o.specimen_collection_time,
                    "notes": list(o.notes),
                }
            )
        return {
            "message_type": result.message_type,
            "total_segments": result.total_segments,
            "header": asdict(result.header) if result.header else None,
            "patient": asdict(result.patient) if result.patient else None,
            "orders": [asdict(x) for x in result.orders],
            "observation_requests": [asdict(x) for x in result.observation_requests],
            "observations": rows,
            "notes": [asdict(n) for n in result.notes],
        }

    def build_prompt(
        self,
        raw_hl7: str,
        result: Optional[ParsedResult] = None,
        medical_record: Optional[str] = None,
        lang: Optional[str] = None,
        custom_prompt: Optional[str] = None,
    ) -> str:
        result = result or self.parse(raw_hl7)
        return build_hl7_analysis_prompt(
            result, raw_hl7, medical_record, lang or self.cfg.analysis.default_lang, custom_prompt
        )

    def build_pdf_prompt(
        self, medical_record: Optional[str] = None, lang: Optional[str] = None, custom_prompt: Optional[str] = None
    ) -> str:
        return build_pdf_analysis_prompt(medical_record, lang or self.cfg.analysis.default_lang, custom_prompt)
