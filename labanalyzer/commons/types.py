from typing import Any, Dict, List, Literal

from pydantic import BaseModel, Field, field_validator


class ReferenceTableEntry(BaseModel):
    parameter: str
    ideal_range: str

    @field_validator("parameter")
    @classmethod
    def _strip_parameter(cls, v: str):
        v = (v or "").strip()
        if not v:
            raise ValueError("parameter es obligatorio")
        return v


class PathsCfg(BaseModel):
    logs_root: str = "logs"
    reference_table: str = "configs/reference_table.yaml"


class AnalysisCfg(BaseModel):
    default_lang: Literal["en", "de"] = "en"
    temperature: float = 0.3
    max_output_tokens: int = 8192


class ParsersCfg(BaseModel):
    # sub-tests de cortisol que se fusionan en un solo código
    cortisol_aliases: List[str] = Field(default_factory=lambda: ["CORT8", "CORT17"])
    repair_mojibake: bool = True


class Settings(BaseModel):
    app: Dict[str, Any] = Field(default_factory=dict)
    paths: PathsCfg = Field(default_factory=PathsCfg)
    analysis: AnalysisCfg = Field(default_factory=AnalysisCfg)
    parsers: ParsersCfg = Field(default_factory=ParsersCfg)
