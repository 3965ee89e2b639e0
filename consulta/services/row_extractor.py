from __future__ import annotations

import logging
import re
import unicodedata
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from io import BytesIO
from pathlib import PurePath
from typing import Any

from openpyxl import load_workbook
from openpyxl.utils import column_index_from_string, get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from consulta.core.config import settings
from consulta.core.flow_logging import flow_info
from consulta.schemas.order import OrderCandidate
from consulta.services.date_normalizer import normalize_or_original, parse_canonical
from consulta.services.order_errors import OrderImportError

logger = logging.getLogger(__name__)

_FIRST_DATA_ROW = 2
_CENTS = Decimal("0.01")
# valor_mercadoria is Numeric(10, 2).
_MAX_VALUE = Decimal("99999999.99")
_READABLE_SUFFIXES = {".xlsx", ".xlsm"}


@dataclass(frozen=True)
class ColumnMap:
    """1-based sheet column indexes for the four fields an import reads."""

    reference: int
    event: int
    event_at: int
    value: int

    @property
    def last_column(self) -> int:
        return max(self.reference, self.event, self.event_at, self.value)

    def describe(self) -> str:
        return ",".join(
            get_column_letter(idx)
            for idx in (self.reference, self.event, self.event_at, self.value)
        )


# Carrier export layout: D=reference, E=last event, F=last event date, Q=merchandise value.
POSITIONAL_COLUMNS = ColumnMap(
    reference=column_index_from_string("D"),
    event=column_index_from_string("E"),
    event_at=column_index_from_string("F"),
    value=column_index_from_string("Q"),
)


def _normalize_header(value: Any) -> str:
    text = unicodedata.normalize("NFKC", str(value or "")).strip().casefold()
    return re.sub(r"\s+", " ", text)


def _header_columns(sheet: Worksheet) -> ColumnMap:
    first_row = next(sheet.iter_rows(min_row=1, max_row=1, values_only=True), ())
    header_pos: dict[str, int] = {}
    for idx, cell in enumerate(first_row, start=1):
        name = _normalize_header(cell)
        if name and name not in header_pos:
            header_pos[name] = idx

    wanted = {
        "reference": settings.ORDER_IMPORT_HEADER_REFERENCE,
        "event": settings.ORDER_IMPORT_HEADER_EVENT,
        "event_at": settings.ORDER_IMPORT_HEADER_EVENT_AT,
        "value": settings.ORDER_IMPORT_HEADER_VALUE,
    }
    resolved: dict[str, int] = {}
    for field, label in wanted.items():
        idx = header_pos.get(_normalize_header(label))
        if idx is None:
            raise OrderImportError(
                code="MISSING_COLUMN",
                message=f"Column '{label}' is required in sheet header.",
            )
        resolved[field] = idx
    return ColumnMap(**resolved)


def resolve_columns(sheet: Worksheet, mode: str | None = None) -> ColumnMap:
    mode = (mode or settings.ORDER_IMPORT_COLUMN_MODE or "positional").strip().lower()
    if mode == "positional":
        return POSITIONAL_COLUMNS
    if mode == "header":
        return _header_columns(sheet)
    raise OrderImportError(
        code="INVALID_COLUMN_MODE",
        message=f"Unsupported import column mode '{mode}'.",
    )


def load_first_sheet(payload: bytes, filename: str = "upload.xlsx") -> Worksheet:
    if not payload:
        raise OrderImportError(code="EMPTY_FILE", message="Uploaded file is empty.")

    suffix = PurePath(filename or "").suffix.lower()
    if suffix == ".xls":
        raise OrderImportError(
            code="UNSUPPORTED_FILE",
            message="Legacy .xls workbooks cannot be read. Save the file as .xlsx.",
        )
    if suffix and suffix not in _READABLE_SUFFIXES:
        raise OrderImportError(
            code="UNSUPPORTED_FILE",
            message=f"Only .xlsx files are supported (got '{suffix}').",
        )

    try:
        workbook = load_workbook(filename=BytesIO(payload), data_only=True)
    except Exception as exc:
        raise OrderImportError(code="INVALID_WORKBOOK", message=f"Invalid workbook: {exc}") from exc

    if not workbook.worksheets:
        raise OrderImportError(code="INVALID_WORKBOOK", message="Workbook has no sheets.")
    return workbook.worksheets[0]


def _is_present(raw: Any) -> bool:
    if raw is None:
        return False
    if isinstance(raw, str):
        return bool(raw.strip())
    return True


def _to_text(raw: Any) -> str:
    if raw is None:
        return ""
    if isinstance(raw, float) and raw.is_integer():
        raw = int(raw)
    return str(raw).strip()


def _is_canonical(text: str) -> bool:
    try:
        parse_canonical(text)
    except ValueError:
        return False
    return True


def _to_value(raw: Any, *, row: int) -> Decimal:
    if raw is None or isinstance(raw, bool):
        return Decimal("0")
    try:
        if isinstance(raw, (int, float, Decimal)):
            value = Decimal(str(raw))
        else:
            text = str(raw).strip()
            value = Decimal(text) if text else Decimal("0")
        if not value.is_finite():
            return Decimal("0")
        value = value.quantize(_CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        logger.warning("order_extract_invalid_value row=%s value=%r", row, raw)
        return Decimal("0")
    if value < 0:
        logger.warning("order_extract_negative_value row=%s value=%s", row, value)
        return Decimal("0")
    if value > _MAX_VALUE:
        logger.warning("order_extract_value_out_of_range row=%s value=%s", row, value)
        return Decimal("0")
    return value


def extract_candidates(sheet: Worksheet, *, columns: ColumnMap | None = None) -> list[OrderCandidate]:
    """
    Read every data row of `sheet` into import candidates.

    Row 1 is the header. A row becomes a candidate only when its reference,
    event label and event date cells are filled; the value cell is optional.
    Event labels are not filtered here (see order_reducer).
    """
    columns = columns or resolve_columns(sheet)
    last_row = sheet.max_row or 0

    candidates: list[OrderCandidate] = []
    unparsed_dates = 0
    for row_index, values in enumerate(
        sheet.iter_rows(
            min_row=_FIRST_DATA_ROW,
            max_row=max(last_row, _FIRST_DATA_ROW - 1),
            max_col=columns.last_column,
            values_only=True,
        ),
        start=_FIRST_DATA_ROW,
    ):
        reference_cell = values[columns.reference - 1]
        event_cell = values[columns.event - 1]
        event_at_cell = values[columns.event_at - 1]
        value_cell = values[columns.value - 1]

        if not (_is_present(reference_cell) and _is_present(event_cell) and _is_present(event_at_cell)):
            continue

        reference = _to_text(reference_cell)
        if not reference:
            continue

        # Unparsed cells keep their original text; the gateway refuses them on insert.
        last_event_at = _to_text(normalize_or_original(event_at_cell))
        if not _is_canonical(last_event_at):
            unparsed_dates += 1
            logger.warning(
                "order_extract_unparsed_date row=%s reference=%s value=%r",
                row_index,
                reference,
                event_at_cell,
            )

        candidates.append(
            OrderCandidate(
                reference=reference,
                merchandise_value=_to_value(value_cell, row=row_index),
                last_event=_to_text(event_cell),
                last_event_at=last_event_at,
            )
        )

    flow_info(
        logger,
        "order_extract sheet=%s columns=%s last_row=%s candidates=%s unparsed_dates=%s",
        sheet.title,
        columns.describe(),
        last_row,
        len(candidates),
        unparsed_dates,
        category="import",
    )
    return candidates
