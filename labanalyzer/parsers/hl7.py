from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

from loguru import logger

from labanalyzer.classification.classifier import classify
from labanalyzer.classification.cortisol import CORTISOL_CODE, CORTISOL_DISPLAY, cortisol_range_for
from labanalyzer.classification.reference_table import ReferenceTable
from labanalyzer.commons.encoding import repair_known_mojibake
from labanalyzer.commons.exceptions import EmptyMessageError
from labanalyzer.parsers.base import (
    _split_fields,
    format_date,
    format_datetime,
    get_field,
    get_subfield,
    parse_set_id,
    split_lines,
)
from labanalyzer.parsers.models import (
    Address,
    MessageHeader,
    MessageType,
    NoteSegment,
    Observation,
    ObservationRequest,
    Order,
    OrderingProvider,
    ParsedResult,
    Patient,
)

DEFAULT_CORTISOL_ALIASES = ("CORT8", "CORT17")


@dataclass
class _ScanState:
    """Todo lo que el recorrido arrastra de un segmento al siguiente."""

    header: Optional[MessageHeader] = None
    patient: Optional[Patient] = None
    orders: List[Order] = field(default_factory=list)
    requests: List[ObservationRequest] = field(default_factory=list)
    observations: List[Observation] = field(default_factory=list)
    notes: List[NoteSegment] = field(default_factory=list)
    current_observation: Optional[Observation] = None
    collection_time: Optional[str] = None
    cortisol_sources: List[str] = field(default_factory=list)


# -------- segment builders --------


def _msh_field(fields: List[str], number: int) -> str:
    # Nota: en MSH la numeración HL7 está desplazada (MSH-1 es el propio "|", MSH-3 => fields[2])
    return get_field(fields, number - 1)


def parse_message_header(fields: List[str]) -> MessageHeader:
    msg_type = _msh_field(fields, 9)
    return MessageHeader(
        sending_app=_msh_field(fields, 3),
        sending_facility=_msh_field(fields, 4),
        message_datetime=format_datetime(_msh_field(fields, 7)),
        message_type=MessageType(id=get_subfield(msg_type, 0), trigger=get_subfield(msg_type, 1)),
        control_id=_msh_field(fields, 10),
        processing_id=_msh_field(fields, 11),
        version=_msh_field(fields, 12),
        charset=_msh_field(fields, 18) or None,
    )


def parse_patient(fields: List[str]) -> Patient:
    name = get_field(fields, 5)
    address = get_field(fields, 11)
    patient = Patient(
        id=get_field(fields, 2),
        assigning_authority=get_subfield(get_field(fields, 3), 5) or None,
        last_name=get_subfield(name, 0),
        first_name=get_subfield(name, 1),
        birth_date=format_date(get_field(fields, 7)),
        sex=get_field(fields, 8),
        phone=get_field(fields, 13) or None,
    )
    # XAD: calle^otro^ciudad^estado^cp^país
    if address:
        patient.address = Address(
            street=get_subfield(address, 0) or None,
            city=get_subfield(address, 2) or None,
            state=get_subfield(address, 3) or None,
            zip=get_subfield(address, 4) or None,
            country=get_subfield(address, 5) or None,
        )
    return patient


def _ordering_provider(field_value: str) -> Optional[OrderingProvider]:
    if not field_value:
        return None
    return OrderingProvider(
        id=get_subfield(field_value, 0) or None,
        last=get_subfield(field_value, 1) or None,
        first=get_subfield(field_value, 2) or None,
        authority=get_subfield(field_value, 7) or None,
    )


def _optional_datetime(raw: str) -> Optional[str]:
    return format_datetime(raw) if raw else None


def parse_order(fields: List[str]) -> Order:
    return Order(
        order_control=get_field(fields, 1),
        placer_order_number=get_subfield(get_field(fields, 2), 0) or None,
        filler_order_number=get_subfield(get_field(fields, 3), 0) or None,
        order_datetime=_optional_datetime(get_subfield(get_field(fields, 7), 3)),
        ordering_provider=_ordering_provider(get_field(fields, 12)),
    )


def parse_observation_request(fields: List[str]) -> ObservationRequest:
    panel = get_field(fields, 4)
    return ObservationRequest(
        panel_code=get_subfield(panel, 0),
        panel_text=get_subfield(panel, 1) or None,
        request_datetime=_optional_datetime(get_field(fields, 7)),
        result_datetime=_optional_datetime(get_subfield(get_field(fields, 27), 3)),
        ordering_provider=_ordering_provider(get_field(fields, 16)),
    )


def parse_observation(
    fields: List[str],
    collection_time: Optional[str],
    reference_table: Optional[ReferenceTable] = None,
    cortisol_aliases: Iterable[str] = DEFAULT_CORTISOL_ALIASES,
) -> Observation:
    ident = get_field(fields, 3)
    code = get_subfield(ident, 0)
    text = repair_known_mojibake(get_subfield(ident, 1))

    # CORT8 / CORT17 son el mismo analito tomado a distintas horas
    is_cortisol = bool(code) and code.upper() in {a.upper() for a in cortisol_aliases}
    if is_cortisol:
        code, text = CORTISOL_CODE, CORTISOL_DISPLAY

    obs = Observation(
        set_id=parse_set_id(get_field(fields, 1)),
        value_type=get_field(fields, 2),
        code=code,
        text=text,
        system=get_subfield(ident, 2) or None,
        value=get_field(fields, 5),
        units=get_subfield(get_field(fields, 6), 0) or None,
        ref_range=get_field(fields, 7) or None,
        abnormal_flags=get_field(fields, 8) or None,
        status=get_field(fields, 11),
        observation_datetime=_optional_datetime(get_field(fields, 14)),
        specimen_collection_time=collection_time or None,
    )

    if is_cortisol:
        curve = cortisol_range_for(obs.specimen_collection_time, obs.observation_datetime)
        if curve is not None:
            obs.ref_range = curve.standard_range_str()

    verdict = classify(obs, reference_table)
    obs.range_status = verdict.status
    obs.ideal_range = verdict.ideal_range
    return obs


# -------- per-segment handlers --------


def _on_msh(state: _ScanState, fields: List[str], ctx: dict):
    state.header = parse_message_header(fields)


def _on_pid(state: _ScanState, fields: List[str], ctx: dict):
    state.patient = parse_patient(fields)


def _on_orc(state: _ScanState, fields: List[str], ctx: dict):
    state.orders.append(parse_order(fields))


def _on_obr(state: _ScanState, fields: List[str], ctx: dict):
    request = parse_observation_request(fields)
    state.requests.append(request)
    state.collection_time = request.request_datetime


def _on_obx(state: _ScanState, fields: List[str], ctx: dict):
    raw_code = get_subfield(get_field(fields, 3), 0)
    obs = parse_observation(fields, state.collection_time, ctx["reference_table"], ctx["cortisol_aliases"])
    if obs.code == CORTISOL_CODE and raw_code.upper() != CORTISOL_CODE:
        state.cortisol_sources.append(raw_code)
    state.observations.append(obs)
    state.current_observation = obs


def _on_nte(state: _ScanState, fields: List[str], ctx: dict):
    text = repair_known_mojibake(get_field(fields, 3))
    if not text:
        return
    if state.current_observation is not None:
        state.current_observation.notes.append(text)
    else:
        state.notes.append(NoteSegment(set_id=parse_set_id(get_field(fields, 1)), text=text))


SEGMENT_HANDLERS: Dict[str, Callable[[_ScanState, List[str], dict], None]] = {
    "MSH": _on_msh,
    "PID": _on_pid,
    "ORC": _on_orc,
    "OBR": _on_obr,
    "OBX": _on_obx,
    "NTE": _on_nte,
}


def parse_hl7_message(
    hl7: str,
    reference_table: Optional[ReferenceTable] = None,
    cortisol_aliases: Iterable[str] = DEFAULT_CORTISOL_ALIASES,
    repair_mojibake: bool = True,
) -> ParsedResult:
    """
    Parse an HL7 v2 ORU message (``|`` fields, ``^`` components) in one pass.

    Only an input with no non-blank line raises (``EmptyMessageError``);
    missing fields come back as empty strings or None.
    """
    text = repair_known_mojibake(hl7) if repair_mojibake else hl7
    lines = split_lines(text)
    if not lines:
        logger.warning("Mensaje HL7 vacío")
        raise EmptyMessageError()

    ctx = {"reference_table": reference_table, "cortisol_aliases": tuple(cortisol_aliases)}
    state = _ScanState()
    for line in lines:
        fields = _split_fields(line)
        tag = fields[0]
        if tag != "NTE":
            # las notas solo se pegan al OBX inmediatamente anterior
            state.current_observation = None
        handler = SEGMENT_HANDLERS.get(tag)
        if handler is None:
            logger.debug(f"Segmento ignorado: {tag[:10]!r}")
            continue
        handler(state, fields, ctx)

    if len(state.cortisol_sources) > 1:
        # ambos sub-tests quedan con el mismo código; no se pueden distinguir aguas abajo
        logger.warning(f"Varios sub-tests de cortisol fusionados en {CORTISOL_CODE}: {state.cortisol_sources}")

    result = ParsedResult(
        header=state.header,
        patient=state.patient,
        orders=state.orders,
        observation_requests=state.requests,
        observations=state.observations,
        notes=state.notes,
        message_type=(state.header.message_type.id if state.header else "") or "Unknown",
        total_segments=len(lines),
    )
    logger.debug(
        f"HL7 parseado: tipo={result.message_type} segmentos={result.total_segments} "
        f"observaciones={len(result.observations)}"
    )
    return result
