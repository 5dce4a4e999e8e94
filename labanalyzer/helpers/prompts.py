"""
Prompt assembly for the external AI service.

The service itself lives outside this package; here we only turn a
``ParsedResult`` into text it can read.
"""
from typing import List, Optional

from labanalyzer.parsers.models import Observation, ParsedResult

DEFAULT_CUSTOM_PROMPT = """You are a clinical biomarker analysis assistant for a dermatology practice specialized in hair regeneration.

The patient presents with active hair loss and seeks an effective treatment solution.

## Diagnostic Principle
Blood tests are used to detect deficiencies, systemic conditions, or modifiers.
Largely normal biomarkers strengthen the likelihood of androgenetic or pattern-based alopecia rather than deficiency-driven shedding.
Do not assume hair loss must be explained by lab abnormalities.
Correlate lab findings with the available clinical data (age, sex, pattern, medical record).

## Therapeutic Framework
PRP and exosome therapies are the primary regenerative treatments and are generally indicated unless contraindicated.
Structured supplementation supports androgen modulation, reduced perifollicular inflammation and a healthier follicular micro-environment.
Do not present vitamin correction alone as definitive treatment unless a severe deficiency clearly explains the hair loss.

## Mandatory: Two Status Fields per Biomarker
- "status" is strictly based on the lab reference range
- "hairStatus" is one of "optimal" | "suboptimal" | "concern" | "not_relevant"
Never override the medical reference interpretation.

## Output Structure
1. General Health Assessment: clinically significant systemic findings only, or "No clinically significant systemic abnormalities identified."
2. Hair-Relevant Biomarker Overview: one sentence, no values restated.
3. Etiology Assessment: one paragraph naming the dominant driver (androgenetic, deficiency-driven, stress-related, inflammatory, mixed).
4. Regenerative Indication: whether PRP / exosome therapy is indicated, whether correction comes first, whether supplementation should accompany therapy.
5. Action Plan: prioritized, no repetition."""

JSON_SCHEMA = """{
  "medicalRecordAnalysis": "Brief analysis of the patient's medical record; empty string if none was provided.",
  "generalHealth": "Section 1: General Health Assessment.",
  "hairSummary": "Section 2: Hair-Relevant Biomarker Overview, one sentence.",
  "etiologyAssessment": "Section 3: Etiology Assessment, one paragraph.",
  "regenerativeIndication": "Section 4: Regenerative Indication.",
  "panels": [
    {
      "name": "Panel name (e.g. Iron & Ferritin, Thyroid, Hormones, Vitamins & Minerals)",
      "biomarkers": [
        {
          "code": "TEST_CODE",
          "name": "Full biomarker name",
          "value": "numeric value",
          "units": "unit of measurement",
          "refRange": "reference range",
          "status": "normal|low|high|critical_low|critical_high  (based ONLY on the lab reference range)",
          "hairStatus": "optimal|suboptimal|concern|not_relevant  (based on hair-health optimal ranges)",
          "interpretation": "Brief interpretation of this value"
        }
      ]
    }
  ],
  "actionPlan": ["Section 5: prioritized action items"]
}"""

OUTPUT_INSTRUCTIONS = "Return ONLY valid JSON, no markdown fences or extra text."


def summarize_observation(obs: Observation) -> str:
    """``CODE: TEXT = VALUE UNITS (ref: RANGE) [STATUS] {ideal: RANGE}``, absent parts omitted."""
    parts = [f"{obs.code}: {obs.text} = {obs.value}"]
    if obs.units:
        parts.append(obs.units)
    if obs.ref_range:
        parts.append(f"(ref: {obs.ref_range})")
    if obs.range_status.value:
        parts.append(f"[{obs.range_status.value}]")
    if obs.ideal_range:
        parts.append(f"{{ideal: {obs.ideal_range}}}")
    return " ".join(parts)


def summarize_observations(result: ParsedResult) -> str:
    return "\n".join(summarize_observation(o) for o in result.observations)


def language_instruction(lang: Optional[str]) -> str:
    if (lang or "").lower().startswith("de"):
        return (
            "CRITICAL - OUTPUT LANGUAGE: Respond ONLY in German (Deutsch). Every field in your JSON "
            "(medicalRecordAnalysis, generalHealth, hairSummary, etiologyAssessment, regenerativeIndication, "
            "panel names, biomarker names, interpretations, actionPlan items) must be written in German."
        )
    return (
        "CRITICAL - OUTPUT LANGUAGE: Respond ONLY in English. Every field in your JSON must be written "
        "in English. Do not mix in any other language."
    )


def patient_context_block(medical_record: Optional[str]) -> str:
    if not medical_record or not medical_record.strip():
        return ""
    return (
        "## Patient Medical Record (from intake questionnaire):\n"
        f"{medical_record.strip()}\n\n"
        "Cross-reference the self-reported conditions, medications, symptoms and history with the lab "
        'results, and summarize the patient profile in the "medicalRecordAnalysis" field.'
    )


def _join_sections(sections: List[str]) -> str:
    return "\n\n".join(s for s in sections if s)


def build_hl7_analysis_prompt(
    result: ParsedResult,
    raw_hl7: str,
    medical_record: Optional[str] = None,
    lang: Optional[str] = "en",
    custom_prompt: Optional[str] = None,
) -> str:
    return _join_sections(
        [
            language_instruction(lang),
            custom_prompt or DEFAULT_CUSTOM_PROMPT,
            patient_context_block(medical_record),
            f"## Parsed Observations:\n{summarize_observations(result)}",
            f"## Raw HL7 Message (for additional context):\n{raw_hl7}",
            "## Output Instructions:\nProvide your analysis as a JSON object with the following "
            f"structure. {OUTPUT_INSTRUCTIONS}",
            JSON_SCHEMA,
        ]
    )


def build_pdf_analysis_prompt(
    medical_record: Optional[str] = None,
    lang: Optional[str] = "en",
    custom_prompt: Optional[str] = None,
) -> str:
    # el PDF va adjunto tal cual; aquí no se lee
    return _join_sections(
        [
            language_instruction(lang),
            custom_prompt or DEFAULT_CUSTOM_PROMPT,
            "The attached PDF contains a laboratory report with blood test results. Extract all "
            "biomarker values and provide a structured medical analysis.",
            patient_context_block(medical_record),
            "## Instructions:\n1. Extract all biomarker values from the PDF\n2. Group them by clinical panel\n"
            "3. Identify abnormal values\n4. Provide clinical interpretation focused on hair health",
            f"Return your analysis as a JSON object with the following structure. {OUTPUT_INSTRUCTIONS}",
            JSON_SCHEMA,
        ]
    )
