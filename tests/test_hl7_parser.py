"""
test_hl7_parser.py

Parser HL7 ORU: cabecera, paciente, órdenes, observaciones, notas y
degradación con mensajes incompletos.
"""
import pytest
from loguru import logger

from labanalyzer.classification.reference_table import ReferenceTable
from labanalyzer.classification.status import RangeStatus
from labanalyzer.commons.exceptions import EmptyMessageError
from labanalyzer.parsers.base import format_date, format_datetime, get_field, get_subfield, split_lines
from labanalyzer.parsers.hl7 import parse_hl7_message

TABLE = ReferenceTable.from_records([{"parameter": "FERR", "ideal_range": "70-100"}])

# ----------------- Muestras HL7 embebidas -----------------
MINIMAL = (
    "MSH|^~\\&|LAB|FAC|||20230115143000||ORU^R01|123|P|2.5\n"
    "PID|||X123||Doe^John||19800101|M\n"
    "OBR|1||||||20230115090000\n"
    "OBX|1|NM|FERR^Ferritin||35|ng/mL|22-322||||F\n"
)

FULL = (
    "MSH|^~\\&|LABSYS|MVZ Labor|PRAXIS|HAIR|20240302101500||ORU^R01|MSG0001|P|2.5|||||DE|8859/1\r\n"
    "PID|1|4711|9988^^^^^LABAUTH||Müller^Anna||19850412|F|||Hauptstr. 5^^Berlin^BE^10115^DE||030123456\r\n"
    "NTE|1||Patientin nüchtern\r\n"
    "ORC|RE|ORD-1^PLACER|FIL-9^LAB||CM||^^^20240301083000|||||D123^Schmidt^Eva^^^^^KV\r\n"
    "OBR|1|ORD-1|FIL-9|HAIR^Haarpanel|||20240301083000|||||||||D123^Schmidt^Eva^^^^^KV|||||||||||^^^20240302100000\r\n"
    "OBX|1|NM|FERR^Ferritin^LN||35|ng/mL^ng/mL|22-322|N|||F|||20240301083000\r\n"
    "NTE|1||Messung gem�ss Vorschrift\r\n"
    "NTE|2||Wiederholung empfohlen\r\n"
    "OBX|2|NM|TSH^TSH||1,8|mU/l|0.4-4.0||||F\r\n"
    "OBR|2||||||20240301173000\r\n"
    "OBX|3|NM|CORT17^Cortisol 17 Uhr||200|nmol/l|100-200|||F\r\n"
    "ZZZ|custom|segment\r\n"
    "OBX|4|ST|COMMENT^Befundtext f�r Arzt||siehe Anhang||||||F\r\n"
)


# ----------------- helpers -----------------
def test_format_date():
    assert format_date("20230115") == "2023-01-15"
    assert format_date("2023011") == "2023011"
    assert format_date("") == ""


def test_format_datetime():
    assert format_datetime("20230115143000") == "2023-01-15T14:30:00"
    assert format_datetime("202301151430") == "2023-01-15"
    assert format_datetime("20230115") == "2023-01-15"
    assert format_datetime("2023") == "2023"


def test_field_access_never_raises():
    fields = "OBX|1|NM".split("|")
    assert get_field(fields, 1) == "1"
    assert get_field(fields, 25) == ""
    assert get_subfield("A^B", 1) == "B"
    assert get_subfield("A^B", 5) == ""
    assert get_subfield("", 0) == ""


def test_split_lines_normalizes_endings():
    assert split_lines("A\r\nB\rC\n\n  \nD  ") == ["A", "B", "C", "D"]


# ----------------- Tests -----------------
def test_end_to_end_minimal_message():
    res = parse_hl7_message(MINIMAL, reference_table=TABLE)
    assert res.message_type == "ORU"
    assert res.total_segments == 4
    assert len(res.observations) == 1
    o = res.observations[0]
    assert o.code == "FERR"
    assert o.value == "35"
    assert o.range_status is RangeStatus.BELOW_IDEALRANGE
    assert o.ideal_range == "70-100"
    assert o.specimen_collection_time == "2023-01-15T09:00:00"


def test_minimal_header_and_patient():
    res = parse_hl7_message(MINIMAL, reference_table=TABLE)
    h = res.header
    assert h.sending_app == "LAB"
    assert h.sending_facility == "FAC"
    assert h.message_datetime == "2023-01-15T14:30:00"
    assert (h.message_type.id, h.message_type.trigger) == ("ORU", "R01")
    assert h.control_id == "123"
    assert h.processing_id == "P"
    assert h.version == "2.5"
    assert h.charset is None

    p = res.patient
    # PID-2 vacío: el identificador de PID-3 no se usa como id
    assert p.id == ""
    assert (p.last_name, p.first_name) == ("Doe", "John")
    assert p.birth_date == "1980-01-01"
    assert p.sex == "M"
    assert p.address is None


def test_full_message_structure():
    res = parse_hl7_message(FULL, reference_table=TABLE)
    assert res.total_segments == 13
    assert res.header.charset == "8859/1"

    p = res.patient
    assert p.id == "4711"
    assert p.assigning_authority == "LABAUTH"
    assert p.last_name == "Müller"
    assert p.phone == "030123456"
    assert p.address.street == "Hauptstr. 5"
    assert p.address.city == "Berlin"
    assert p.address.zip == "10115"
    assert p.address.country == "DE"

    assert len(res.orders) == 1
    order = res.orders[0]
    assert order.order_control == "RE"
    assert order.placer_order_number == "ORD-1"
    assert order.filler_order_number == "FIL-9"
    assert order.order_datetime == "2024-03-01T08:30:00"
    assert order.ordering_provider.last == "Schmidt"
    assert order.ordering_provider.authority == "KV"

    assert len(res.observation_requests) == 2
    req = res.observation_requests[0]
    assert (req.panel_code, req.panel_text) == ("HAIR", "Haarpanel")
    assert req.request_datetime == "2024-03-01T08:30:00"
    assert req.result_datetime == "2024-03-02T10:00:00"
    assert req.ordering_provider.id == "D123"


def test_notes_attach_to_previous_observation():
    res = parse_hl7_message(FULL, reference_table=TABLE)
    ferr = res.observations[0]
    assert ferr.notes == ["Messung gemäß Vorschrift", "Wiederholung empfohlen"]
    assert res.observations[1].notes == []
    # la nota antes de cualquier OBX queda libre
    assert len(res.notes) == 1
    assert res.notes[0].set_id == 1
    assert res.notes[0].text == "Patientin nüchtern"


def test_note_after_other_segment_is_free_standing():
    msg = MINIMAL + "OBR|2||||||20230115100000\nNTE|7||Nachforderung\n"
    res = parse_hl7_message(msg, reference_table=TABLE)
    assert res.observations[0].notes == []
    assert [(n.set_id, n.text) for n in res.notes] == [(7, "Nachforderung")]


def test_observation_fields():
    res = parse_hl7_message(FULL, reference_table=TABLE)
    ferr, tsh = res.observations[0], res.observations[1]
    assert ferr.set_id == 1
    assert ferr.value_type == "NM"
    assert ferr.system == "LN"
    assert ferr.units == "ng/mL"
    assert ferr.abnormal_flags == "N"
    assert ferr.status == "F"
    assert ferr.observation_datetime == "2024-03-01T08:30:00"
    assert tsh.value == "1,8"
    assert tsh.range_status is RangeStatus.NORMAL
    assert tsh.ideal_range is None
    assert tsh.specimen_collection_time == "2024-03-01T08:30:00"


def test_cortisol_subtest_is_merged_and_rescaled():
    res = parse_hl7_message(FULL, reference_table=TABLE)
    cort = res.observations[2]
    assert cort.code == "CORT"
    assert cort.text == "Cortisol Diurnal"
    assert cort.specimen_collection_time == "2024-03-01T17:30:00"
    # 17:30 -> interpolado, el 100-200 del laboratorio se sustituye
    assert cort.ref_range != "100-200"
    low, high = (float(x) for x in cort.ref_range.split("-"))
    assert 57.4 < low < 133.0
    assert 292.0 < high < 537.0
    assert cort.range_status is RangeStatus.NORMAL


def test_cortisol_morning_uses_early_anchor():
    msg = (
        "MSH|^~\\&|LAB|FAC|||20230115143000||ORU^R01|1|P|2.5\n"
        "OBR|1||||||20230115080000\n"
        "OBX|1|NM|cort8^Cortisol 8 Uhr||600|nmol/l|100-700|||F\n"
    )
    cort = parse_hl7_message(msg, reference_table=TABLE).observations[0]
    assert cort.code == "CORT"
    assert cort.ref_range == "133.0-537.0"
    assert cort.range_status is RangeStatus.ABOVE_REFRANGE


def test_mojibake_and_unknown_segments():
    res = parse_hl7_message(FULL, reference_table=TABLE)
    comment = res.observations[3]
    assert comment.text == "Befundtext für Arzt"
    assert comment.range_status is RangeStatus.UNCLASSIFIED
    assert len(res.observations) == 4


def test_missing_pid_yields_no_patient():
    msg = "MSH|^~\\&|LAB|FAC|||20230115143000||ORU^R01|1|P|2.5\nOBX|1|NM|FERR^Ferritin||80||||||F\n"
    res = parse_hl7_message(msg, reference_table=TABLE)
    assert res.patient is None
    assert res.observations[0].specimen_collection_time is None
    assert res.observations[0].range_status is RangeStatus.NORMAL
    assert res.observations[0].ideal_range == "70-100"


def test_missing_header_is_unknown_type():
    res = parse_hl7_message("PID|||X1||Doe^Jane\n", reference_table=TABLE)
    assert res.header is None
    assert res.message_type == "Unknown"
    assert res.patient.first_name == "Jane"
    assert res.patient.birth_date == ""


def test_short_segments_degrade_gracefully():
    res = parse_hl7_message("MSH\nPID\nORC\nOBR\nOBX\nNTE\n", reference_table=TABLE)
    assert res.message_type == "Unknown"
    assert res.total_segments == 6
    o = res.observations[0]
    assert o.set_id == 0
    assert o.code == "" and o.value == ""
    assert o.range_status is RangeStatus.UNCLASSIFIED
    assert res.orders[0].ordering_provider is None
    assert res.notes == []


def test_negative_set_id_is_not_propagated():
    res = parse_hl7_message("OBX|-3|NM|X^Y||1\n", reference_table=TABLE)
    assert res.observations[0].set_id == 0


@pytest.mark.parametrize("blank", ["", "   ", "\r\n\r\n", "\n \n\t\n"])
def test_blank_message_raises(blank):
    with pytest.raises(EmptyMessageError):
        parse_hl7_message(blank, reference_table=TABLE)


def test_parsing_is_reentrant():
    a = parse_hl7_message(MINIMAL, reference_table=TABLE)
    b = parse_hl7_message(FULL, reference_table=TABLE)
    c = parse_hl7_message(MINIMAL, reference_table=TABLE)
    assert a == c
    assert a.observations[0] is not b.observations[0]


def test_unknown_segment_is_logged_at_debug():
    records = []
    sink_id = logger.add(lambda m: records.append(m.record), level="DEBUG")
    try:
        res = parse_hl7_message(MINIMAL + "ZPD|custom|data\n", reference_table=TABLE)
    finally:
        logger.remove(sink_id)
    assert res.total_segments == 5
    ignored = [r for r in records if "ZPD" in r["message"]]
    assert [r["level"].name for r in ignored] == ["DEBUG"]
