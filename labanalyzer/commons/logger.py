import sys
from datetime import datetime
from pathlib import Path

from loguru import logger

CONSOLE_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {name}:{line} - {message}"


def setup_logging(root: str, level: str = "INFO", console: bool = True, retention: str = "14 days"):
    """Configura loguru: un app.log por día bajo root/YYYY/MM/DD y salida opcional a stderr."""
    logdir = Path(root) / datetime.now().strftime("%Y/%m/%d")
    logdir.mkdir(parents=True, exist_ok=True)
    logger.remove()
    logger.add(
        str(logdir / "app.log"),
        rotation="00:00",
        retention=retention,
        level=level,
        enqueue=True,
        backtrace=True,
        diagnose=False,  # no volcar valores de pacientes en los tracebacks
    )
    if console:
        logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT)
    return logger
