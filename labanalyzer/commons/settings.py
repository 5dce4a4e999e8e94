# labanalyzer/commons/settings.py
import os
import sys
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from labanalyzer.commons.exceptions import ConfigurationError
from labanalyzer.commons.types import Settings

PACKAGE_ROOT = Path(__file__).resolve().parent.parent
DEFAULT_SETTINGS = "configs/settings.yaml"


def resource_path(relative_path: str) -> str:
    """Devuelve la ruta absoluta a un recurso, ya sea ejecutando como .exe o desde el paquete"""
    if os.path.isabs(relative_path):
        return relative_path
    if hasattr(sys, "_MEIPASS"):
        # Ejecutable generado por PyInstaller
        base_path = Path(sys._MEIPASS) / "labanalyzer"
    else:
        base_path = PACKAGE_ROOT
    return str(base_path / relative_path)


def read_yaml(path: str) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as ex:
        raise ConfigurationError(f"No se pudo leer {path}: {ex}") from ex


def validate_cfg(raw: Any) -> Settings:
    try:
        return Settings.model_validate(raw)
    except ValidationError as ve:
        raise ConfigurationError(f"Configuración inválida: {ve}") from ve


def load_cfg(path: Optional[str] = None) -> Settings:
    return validate_cfg(read_yaml(resource_path(path or DEFAULT_SETTINGS)) or {})
