from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from io import BytesIO

import pandas as pd
from openpyxl.utils import get_column_letter

from consulta.core.config import settings
from consulta.schemas.order import DISPLAY_FIELDS, OrderDisplay
from consulta.services.order_errors import OrderExportError

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@dataclass(frozen=True)
class ExportFile:
    filename: str
    content: bytes


def export_filename(today: date | None = None) -> str:
    today = today or date.today()
    return f"{settings.ORDER_EXPORT_FILENAME_PREFIX}-{today.strftime('%d-%m-%Y')}.xlsx"


def build_export(records: Sequence[OrderDisplay], *, today: date | None = None) -> ExportFile:
    """
    Write the records exactly as displayed into a one-sheet workbook.

    The header row is always present, so an empty display exports as a
    header-only sheet.
    """
    sheet_name = settings.ORDER_EXPORT_SHEET_NAME or "Sheet1"
    rows = [record.model_dump(by_alias=True) for record in records]
    df = pd.DataFrame(rows, columns=list(DISPLAY_FIELDS))

    output = BytesIO()
    try:
        with pd.ExcelWriter(output, engine="openpyxl") as writer:
            df.to_excel(writer, index=False, sheet_name=sheet_name)

            worksheet = writer.sheets[sheet_name]
            for idx, col in enumerate(df.columns, start=1):
                col_lengths = df[col].fillna("").astype(str).str.len()
                max_len = max(col_lengths.max() if not col_lengths.empty else 0, len(col)) + 2
                worksheet.column_dimensions[get_column_letter(idx)].width = max_len
    except (ValueError, TypeError, OSError) as exc:
        logger.exception("order_export_failed rows=%s", len(rows))
        raise OrderExportError(f"Could not build export workbook: {exc}") from exc

    filename = export_filename(today)
    logger.info("order_export filename=%s rows=%s", filename, len(rows))
    return ExportFile(filename=filename, content=output.getvalue())
