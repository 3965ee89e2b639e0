from __future__ import annotations

import logging
import math
import re
import warnings
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any, Union

import pandas as pd
from openpyxl.utils.datetime import from_excel

logger = logging.getLogger(__name__)

CANONICAL_FORMAT = "%Y-%m-%d %H:%M:%S"
DISPLAY_FORMAT = "%d/%m/%Y %H:%M"

_SHEET_TEXT_FORMAT = "%d/%m/%Y %H:%M"
_SHEET_TEXT_PATTERN = re.compile(r"^\d{2}/\d{2}/\d{4} \d{2}:\d{2}$")

# Serials below 1 carry only a time of day; spreadsheet tools show them on day zero.
_SERIAL_DAY_ZERO = date(1899, 12, 31)


@dataclass(frozen=True)
class Normalized:
    value: str


@dataclass(frozen=True)
class Unparsed:
    original: Any


NormalizeOutcome = Union[Normalized, Unparsed]


def format_canonical(value: datetime) -> str:
    return value.strftime(CANONICAL_FORMAT)


def format_display(value: datetime) -> str:
    return value.strftime(DISPLAY_FORMAT)


def parse_canonical(text: str) -> datetime:
    """Parse a canonical storage timestamp. Raises ValueError on anything else."""
    return datetime.strptime(text.strip(), CANONICAL_FORMAT)


def _to_minute(value: datetime) -> datetime:
    return value.replace(second=0, microsecond=0)


def _from_serial(serial: float) -> datetime | None:
    if not math.isfinite(serial) or serial < 0:
        return None
    try:
        converted = from_excel(serial)
    except (OverflowError, ValueError):
        return None
    if isinstance(converted, datetime):
        return converted
    if isinstance(converted, time):
        return datetime.combine(_SERIAL_DAY_ZERO, converted)
    return None


def _from_sheet_text(text: str) -> datetime | None:
    if not _SHEET_TEXT_PATTERN.match(text):
        return None
    try:
        return datetime.strptime(text, _SHEET_TEXT_FORMAT)
    except ValueError:
        return None


def _from_free_text(text: str) -> datetime | None:
    if not text:
        return None
    with warnings.catch_warnings():
        # pandas warns when it has to guess the day/month order; the guess is accepted here.
        warnings.simplefilter("ignore", UserWarning)
        try:
            parsed = pd.to_datetime(text, errors="coerce")
        except (TypeError, ValueError, OverflowError):
            return None
    if parsed is None or pd.isna(parsed):
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.tz_convert("UTC").tz_localize(None)
    return parsed.to_pydatetime()


def normalize(value: Any) -> NormalizeOutcome:
    """
    Convert a sheet date cell into the canonical "YYYY-MM-DD HH:MM:SS" form.

    Accepted inputs, in order:
    - datetime/date objects (openpyxl decodes date-formatted cells itself)
    - numeric spreadsheet serials (1900 date system, fraction = time of day)
    - text in the carrier layout "DD/MM/YYYY HH:MM"
    - any other text pandas can parse

    Time is kept to the minute. Nothing here raises: a value that fails every
    strategy comes back as Unparsed carrying the original input.
    """
    parsed: datetime | None = None
    try:
        if isinstance(value, datetime):
            parsed = value.replace(tzinfo=None)
        elif isinstance(value, date):
            parsed = datetime.combine(value, time.min)
        elif isinstance(value, (int, float)) and not isinstance(value, bool):
            parsed = _from_serial(float(value))
        elif isinstance(value, str):
            text = value.strip()
            parsed = _from_sheet_text(text) or _from_free_text(text)
    except Exception:  # noqa: BLE001 - a single bad cell must not abort an import
        logger.exception("date_normalize_failed value=%r", value)
        return Unparsed(value)

    if parsed is None:
        logger.warning("date_normalize_unparsed value=%r", value)
        return Unparsed(value)
    return Normalized(format_canonical(_to_minute(parsed)))


def normalize_or_original(value: Any) -> Any:
    outcome = normalize(value)
    if isinstance(outcome, Normalized):
        return outcome.value
    return outcome.original
