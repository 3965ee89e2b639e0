from __future__ import annotations

from datetime import date
from io import BytesIO

from openpyxl import load_workbook

from consulta.core.config import settings
from consulta.schemas.order import DISPLAY_FIELDS, OrderDisplay
from consulta.services.order_export_service import build_export, export_filename


def _rows(content: bytes):
    workbook = load_workbook(BytesIO(content))
    assert workbook.sheetnames == ["Dados Processados"]
    return list(workbook.active.iter_rows(values_only=True))


def test_export_filename_uses_day_month_year():
    assert export_filename(date(2024, 3, 5)) == "ConsultaDafiti-05-03-2024.xlsx"


def test_empty_export_is_header_only():
    export_file = build_export([], today=date(2024, 3, 5))

    assert export_file.filename == "ConsultaDafiti-05-03-2024.xlsx"
    assert _rows(export_file.content) == [DISPLAY_FIELDS]


def test_export_writes_rows_as_displayed():
    records = [
        OrderDisplay(
            id="a1",
            referencia="REF1",
            valorMercadoria=10.5,
            ultimaOcorrencia="Coletado",
            dataUltimaOcorrencia="05/03/2024 14:30",
            status="Resolvido",
            statusUpdatedAt="06/03/2024 08:00",
        ),
        OrderDisplay(
            id="b2",
            referencia="REF2",
            ultimaOcorrencia="Recebido na Base",
            dataUltimaOcorrencia="05/03/2024 15:00",
        ),
    ]

    rows = _rows(build_export(records, today=date(2024, 3, 5)).content)

    assert rows[0] == DISPLAY_FIELDS
    assert rows[1] == ("a1", "REF1", 10.5, "Coletado", "05/03/2024 14:30", "Resolvido", "06/03/2024 08:00")
    assert rows[2][:6] == ("b2", "REF2", 0, "Recebido na Base", "05/03/2024 15:00", "Pendentes")
    assert rows[2][6] is None


def test_export_sheet_and_prefix_follow_settings(monkeypatch):
    monkeypatch.setattr(settings, "ORDER_EXPORT_FILENAME_PREFIX", "Pedidos")

    export_file = build_export([], today=date(2024, 12, 31))

    assert export_file.filename == "Pedidos-31-12-2024.xlsx"
