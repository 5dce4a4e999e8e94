import json
import os
from pathlib import Path
from typing import Optional

import typer
from loguru import logger

from labanalyzer.commons.exceptions import EmptyMessageError, LabAnalyzerError
from labanalyzer.commons.lab_engine import LabEngine
from labanalyzer.commons.logger import setup_logging
from labanalyzer.services.analysis_service import normalized_rows
from labanalyzer.validation.validators import FallbackReport, extract_response_text, parse_ai_response

app = typer.Typer(add_completion=False, help="Lab Analyzer: HL7 biomarker parsing and classification")


def _bootstrap(config: Optional[str]) -> LabEngine:
    try:
        engine = LabEngine(config)
    except LabAnalyzerError as ex:
        typer.echo(f"Invalid configuration: {ex}", err=True)
        raise typer.Exit(code=2)
    setup_logging(engine.cfg.paths.logs_root, os.getenv("LOG_LEVEL", "INFO"))
    return engine


def _read_message(engine: LabEngine, path: Path, legacy_encoding: bool) -> str:
    if legacy_encoding:
        return engine.decode(path.read_bytes())
    # bytes inválidos -> U+FFFD, que luego repara repair_known_mojibake
    return path.read_bytes().decode("utf-8-sig", errors="replace")


def _fail(message: str, ex: Exception):
    logger.error(f"{message}: {ex}")
    typer.echo(message, err=True)
    raise typer.Exit(code=1)


@app.command()
def parse(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Mensaje HL7"),
    legacy_encoding: bool = typer.Option(False, "--legacy-encoding", help="Leer como Windows-1252/Latin-1"),
    as_json: bool = typer.Option(False, "--json", help="Imprime el payload completo en JSON"),
    lang: Optional[str] = typer.Option(None, help="en | de"),
    config: Optional[str] = typer.Option(None, help="Ruta a settings.yaml"),
):
    """Parsea un mensaje HL7 y muestra la vista previa de observaciones."""
    engine = _bootstrap(config)
    try:
        result = engine.parse(_read_message(engine, file, legacy_encoding))
    except EmptyMessageError as ex:
        _fail("Could not parse the HL7 message", ex)

    payload = engine.to_preview_payload(result, lang)
    if as_json:
        typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))
        return

    patient = payload["patient"]
    if patient:
        typer.echo(
            f"Patient: {patient['last_name']}, {patient['first_name']} "
            f"({patient['sex']}, {patient['birth_date']}) id={patient['id']}"
        )
    typer.echo(f"Message: {payload['message_type']} ({payload['total_segments']} segments)")
    for row in payload["observations"]:
        ideal = f" ideal {row['ideal_range']}" if row["ideal_range"] else ""
        typer.echo(
            f"{row['code']:<10} {row['text'][:30]:<30} {row['value']:>10} {row['units'] or '':<8} "
            f"{row['ref_range'] or '':<14} {row['label']}{ideal}"
        )


@app.command()
def prompt(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Mensaje HL7"),
    lang: Optional[str] = typer.Option(None, help="en | de"),
    context: Optional[Path] = typer.Option(None, exists=True, dir_okay=False, help="Historia clínica (texto)"),
    legacy_encoding: bool = typer.Option(False, "--legacy-encoding"),
    config: Optional[str] = typer.Option(None, help="Ruta a settings.yaml"),
):
    """Construye el prompt de análisis que se envía al servicio de IA."""
    engine = _bootstrap(config)
    raw = _read_message(engine, file, legacy_encoding)
    medical_record = context.read_text(encoding="utf-8") if context else None
    try:
        typer.echo(engine.build_prompt(raw, medical_record=medical_record, lang=lang))
    except EmptyMessageError as ex:
        _fail("Could not parse the HL7 message", ex)


@app.command()
def interpret(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Respuesta de la IA"),
    lang: Optional[str] = typer.Option(None, help="en | de"),
    config: Optional[str] = typer.Option(None, help="Ruta a settings.yaml"),
):
    """Normaliza los estados de una respuesta de IA (texto o JSON generateContent)."""
    engine = _bootstrap(config)
    text = file.read_text(encoding="utf-8")
    try:
        envelope = json.loads(text)
    except ValueError:
        envelope = None
    try:
        if isinstance(envelope, dict) and "candidates" in envelope:
            text = extract_response_text(envelope)
    except LabAnalyzerError as ex:
        _fail("The AI response has no content", ex)

    outcome = parse_ai_response(text)
    if isinstance(outcome, FallbackReport):
        typer.echo(outcome.summary)
        typer.echo(outcome.raw_text)
        return
    for row in normalized_rows(outcome, lang or engine.cfg.analysis.default_lang):
        flag = "!" if row["abnormal"] else " "
        typer.echo(f"{flag} {row['panel']:<20} {row['code']:<10} {row['value']:>10} {row['status']:<14} {row['label']}")


if __name__ == "__main__":
    app()
