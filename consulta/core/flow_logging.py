import logging
from pathlib import Path

from consulta.core.config import settings

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _category_enabled(category: str | None) -> bool:
    if not settings.FLOW_LOGS_ENABLED:
        return False
    if category == "import":
        return settings.FLOW_LOGS_IMPORT_ENABLED
    if category == "sync":
        return settings.FLOW_LOGS_SYNC_ENABLED
    return True


def flow_info(
    logger: logging.Logger,
    msg: str,
    *args,
    category: str | None = None,
    **kwargs,
) -> None:
    if _category_enabled(category):
        logger.info(msg, *args, **kwargs)


def configure_logging(level: str | None = None, log_file: str | None = None) -> Path | None:
    """Install the root level, a console handler and the optional diagnostic log file.

    Safe to call more than once: handlers are only added when missing.
    Returns the diagnostic log path, or None when file logging is off.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel((level or settings.LOG_LEVEL or "INFO").upper())

    formatter = logging.Formatter(_LOG_FORMAT)
    if not any(type(handler) is logging.StreamHandler for handler in root_logger.handlers):
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        root_logger.addHandler(console)

    target = (log_file if log_file is not None else settings.LOG_FILE).strip()
    if not target:
        return None

    log_path = Path(target).expanduser().resolve()
    log_path.parent.mkdir(parents=True, exist_ok=True)
    already_configured = any(
        isinstance(handler, logging.FileHandler)
        and getattr(handler, "baseFilename", None) == str(log_path)
        for handler in root_logger.handlers
    )
    if not already_configured:
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    root_logger.debug("Logging configured. Writing to %s", log_path)
    return log_path
