# ===============================
# File: labanalyzer/parsers/models.py
# ===============================
from dataclasses import dataclass, field
from typing import List, Optional

from labanalyzer.classification.status import RangeStatus


@dataclass
class MessageType:
    id: str = ""
    trigger: str = ""


@dataclass
class MessageHeader:
    sending_app: str = ""
    sending_facility: str = ""
    message_datetime: str = ""  # YYYY-MM-DDTHH:MM:SS
    message_type: MessageType = field(default_factory=MessageType)
    control_id: str = ""
    processing_id: str = ""
    version: str = ""
    charset: Optional[str] = None


@dataclass
class Address:
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    country: Optional[str] = None


@dataclass
class Patient:
    id: str = ""
    assigning_authority: Optional[str] = None
    last_name: str = ""
    first_name: str = ""
    birth_date: str = ""  # YYYY-MM-DD
    sex: str = ""
    phone: Optional[str] = None
    address: Optional[Address] = None


@dataclass
class OrderingProvider:
    id: Optional[str] = None
    last: Optional[str] = None
    first: Optional[str] = None
    authority: Optional[str] = None


@dataclass
class Order:
    order_control: str = ""
    placer_order_number: Optional[str] = None
    filler_order_number: Optional[str] = None
    order_datetime: Optional[str] = None
    ordering_provider: Optional[OrderingProvider] = None


@dataclass
class ObservationRequest:
    panel_code: str = ""
    panel_text: Optional[str] = None
    request_datetime: Optional[str] = None  # OBR-7, hora de toma de muestra
    result_datetime: Optional[str] = None
    ordering_provider: Optional[OrderingProvider] = None


@dataclass
class Observation:
    set_id: int
    value_type: str
    code: str
    text: str
    value: str
    status: str = ""  # OBX-11 (F, P, C...)
    system: Optional[str] = None
    units: Optional[str] = None
    ref_range: Optional[str] = None
    abnormal_flags: Optional[str] = None
    observation_datetime: Optional[str] = None
    specimen_collection_time: Optional[str] = None
    notes: List[str] = field(default_factory=list)
    range_status: RangeStatus = RangeStatus.UNCLASSIFIED
    ideal_range: Optional[str] = None


@dataclass
class NoteSegment:
    set_id: int
    text: str


@dataclass
class ParsedResult:
    header: Optional[MessageHeader]
    patient: Optional[Patient]
    orders: List[Order]
    observation_requests: List[ObservationRequest]
    observations: List[Observation]
    notes: List[NoteSegment]
    message_type: str
    total_segments: int
