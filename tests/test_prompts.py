from labanalyzer.classification.status import RangeStatus
from labanalyzer.helpers.prompts import (
    DEFAULT_CUSTOM_PROMPT,
    JSON_SCHEMA,
    build_hl7_analysis_prompt,
    build_pdf_analysis_prompt,
    language_instruction,
    patient_context_block,
    summarize_observation,
    summarize_observations,
)
from labanalyzer.parsers.models import Observation, ParsedResult


def make_obs(**kw):
    base = dict(set_id=1, value_type="NM", code="FERR", text="Ferritin", value="35")
    base.update(kw)
    return Observation(**base)


def make_result(*observations):
    return ParsedResult(
        header=None,
        patient=None,
        orders=[],
        observation_requests=[],
        observations=list(observations),
        notes=[],
        message_type="ORU",
        total_segments=len(observations),
    )


def test_summary_line_with_every_part():
    o = make_obs(
        units="ng/mL",
        ref_range="22-322",
        range_status=RangeStatus.BELOW_IDEALRANGE,
        ideal_range="70-100",
    )
    assert summarize_observation(o) == "FERR: Ferritin = 35 ng/mL (ref: 22-322) [below_idealrange] {ideal: 70-100}"


def test_summary_line_omits_missing_parts():
    assert summarize_observation(make_obs()) == "FERR: Ferritin = 35"
    o = make_obs(ref_range="22-322", range_status=RangeStatus.NORMAL)
    assert summarize_observation(o) == "FERR: Ferritin = 35 (ref: 22-322) [normal]"


def test_summarize_observations_one_line_each():
    res = make_result(make_obs(), make_obs(code="TSH", text="TSH", value="1.2"))
    assert summarize_observations(res).splitlines() == ["FERR: Ferritin = 35", "TSH: TSH = 1.2"]


def test_language_instruction():
    assert "German" in language_instruction("de")
    assert "German" in language_instruction("DE")
    assert "English" in language_instruction("en")
    assert "English" in language_instruction(None)


def test_patient_context_block():
    assert patient_context_block(None) == ""
    assert patient_context_block("   ") == ""
    block = patient_context_block("  Hashimoto, L-Thyroxin 50µg ")
    assert block.startswith("## Patient Medical Record")
    assert "Hashimoto, L-Thyroxin 50µg\n" in block


def test_hl7_prompt_sections_in_order():
    raw = "MSH|^~\\&|LAB\nOBX|1|NM|FERR^Ferritin||35"
    prompt = build_hl7_analysis_prompt(make_result(make_obs()), raw, medical_record="Alopecia seit 2022", lang="de")
    assert prompt.startswith(language_instruction("de"))
    assert "Alopecia seit 2022" in prompt
    assert "## Parsed Observations:\nFERR: Ferritin = 35" in prompt
    assert raw in prompt
    assert prompt.endswith(JSON_SCHEMA)
    assert prompt.index(DEFAULT_CUSTOM_PROMPT) < prompt.index("## Parsed Observations") < prompt.index(raw)


def test_custom_prompt_replaces_default():
    prompt = build_hl7_analysis_prompt(make_result(), "MSH", custom_prompt="Be brief.")
    assert "Be brief." in prompt
    assert DEFAULT_CUSTOM_PROMPT not in prompt
    assert "## Patient Medical Record" not in prompt


def test_pdf_prompt():
    prompt = build_pdf_analysis_prompt("Eisenmangel", "en")
    assert "attached PDF" in prompt
    assert "Eisenmangel" in prompt
    assert "## Parsed Observations" not in prompt
    assert prompt.endswith(JSON_SCHEMA)
