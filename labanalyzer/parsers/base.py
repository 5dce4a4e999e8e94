import re
from typing import List


def _split_fields(seg: str) -> List[str]:
    return seg.split("|")


def _split_comp(val: str) -> List[str]:
    return val.split("^") if val else []


def get_field(fields: List[str], index: int) -> str:
    """Campo posicional (0-based); vacío si no existe."""
    if 0 <= index < len(fields):
        return fields[index] or ""
    return ""


def get_subfield(field: str, index: int) -> str:
    comp = _split_comp(field)
    if 0 <= index < len(comp):
        return comp[index] or ""
    return ""


def split_lines(hl7: str) -> List[str]:
    """Normaliza CR/LF/CRLF a \\n, recorta cada línea y descarta las vacías."""
    normalized = re.sub(r"\r\n|\r", "\n", hl7 or "")
    return [line.strip() for line in normalized.split("\n") if line.strip()]


def parse_set_id(raw: str) -> int:
    m = re.match(r"\s*(\d+)", raw or "")
    return int(m.group(1)) if m else 0


def format_date(hl7_date: str) -> str:
    """YYYYMMDD -> YYYY-MM-DD; cualquier otra cosa se devuelve tal cual."""
    if not hl7_date or len(hl7_date) != 8:
        return hl7_date
    return f"{hl7_date[0:4]}-{hl7_date[4:6]}-{hl7_date[6:8]}"


def format_datetime(hl7_datetime: str) -> str:
    """YYYYMMDD[HHMMSS] -> YYYY-MM-DDTHH:MM:SS (o solo la fecha si falta la hora)."""
    if not hl7_datetime or len(hl7_datetime) < 8:
        return hl7_datetime
    date, time = hl7_datetime[:8], hl7_datetime[8:]
    if len(time) >= 6:
        return f"{format_date(date)}T{time[0:2]}:{time[2:4]}:{time[4:6]}"
    return format_date(date)
