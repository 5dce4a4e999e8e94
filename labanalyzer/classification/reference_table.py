# labanalyzer/classification/reference_table.py
from typing import Iterable, List, Optional

from loguru import logger
from pydantic import ValidationError

from labanalyzer.commons.exceptions import ConfigurationError
from labanalyzer.commons.settings import read_yaml, resource_path
from labanalyzer.commons.types import ReferenceTableEntry

DEFAULT_TABLE_PATH = "configs/reference_table.yaml"


class ReferenceTable:
    """Read-only code -> ideal range lookup."""

    def __init__(self, entries: Iterable[ReferenceTableEntry]):
        self._entries = tuple(entries)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> List[ReferenceTableEntry]:
        return list(self._entries)

    @classmethod
    def from_records(cls, records: Iterable[dict]) -> "ReferenceTable":
        try:
            return cls(ReferenceTableEntry.model_validate(r) for r in records or [])
        except ValidationError as ve:
            raise ConfigurationError(f"Tabla de referencia inválida: {ve}") from ve

    @classmethod
    def from_yaml(cls, path: str) -> "ReferenceTable":
        full = resource_path(path)
        records = read_yaml(full)
        if records is not None and not isinstance(records, list):
            raise ConfigurationError(f"{full}: se esperaba una lista de {{parameter, ideal_range}}")
        table = cls.from_records(records)
        logger.debug(f"Tabla de referencia cargada: {len(table)} parámetros desde {full}")
        return table

    def lookup_ideal(self, code: Optional[str]) -> Optional[str]:
        """Ideal range for ``code`` (case-insensitive, trimmed); first match wins."""
        if not code or not self._entries:
            return None
        wanted = code.strip().upper()
        for entry in self._entries:
            if entry.parameter.upper() == wanted:
                return entry.ideal_range
        return None


_default_table: Optional[ReferenceTable] = None


def default_reference_table() -> ReferenceTable:
    # Se carga una sola vez por proceso; después es de solo lectura
    global _default_table
    if _default_table is None:
        _default_table = ReferenceTable.from_yaml(DEFAULT_TABLE_PATH)
    return _default_table


def lookup_ideal(code: Optional[str]) -> Optional[str]:
    return default_reference_table().lookup_ideal(code)
