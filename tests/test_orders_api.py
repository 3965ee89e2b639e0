from __future__ import annotations

from io import BytesIO

from openpyxl import load_workbook

from consulta.schemas.order import DISPLAY_FIELDS
from consulta.services.order_desk import MSG_IMPORT_FAILED, MSG_NO_ROWS

XLSX_HEADERS = {"Content-Type": "application/octet-stream"}


def _import(client, payload: bytes, filename: str = "consulta.xlsx"):
    return client.post(
        "/orders/import",
        params={"filename": filename},
        content=payload,
        headers=XLSX_HEADERS,
    )


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "up"}


def test_import_filters_labels_and_lists_saved_rows(client, sheet_bytes):
    response = _import(
        client,
        sheet_bytes(
            {
                "D2": "REF1",
                "E2": "Coletado",
                "F2": 44927.5,
                "Q2": 10,
                "D3": "REF2",
                "E3": "Em transporte",
                "F3": 44927.5,
                "Q3": 20,
            }
        ),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["inserted"] == 1
    (record,) = body["records"]
    assert record["referencia"] == "REF1"
    assert record["ultimaOcorrencia"] == "Coletado"
    assert record["dataUltimaOcorrencia"] == "01/01/2023 12:00"
    assert record["valorMercadoria"] == 10
    assert record["status"] == "Pendentes"
    assert record["statusUpdatedAt"] is None

    listed = client.get("/orders", params={"days": 1})
    assert listed.status_code == 200
    assert [r["referencia"] for r in listed.json()] == ["REF1"]


def test_import_persists_later_duplicate(client, sheet_bytes):
    _import(
        client,
        sheet_bytes(
            {
                "D2": "A",
                "E2": "Coletado",
                "F2": "05/03/2024 10:00",
                "Q2": 1,
                "D3": "A",
                "E3": "Recebido na Base",
                "F3": "05/03/2024 18:00",
                "Q3": 2,
            }
        ),
    )

    (record,) = client.get("/orders").json()
    assert record["ultimaOcorrencia"] == "Recebido na Base"
    assert record["dataUltimaOcorrencia"] == "05/03/2024 18:00"
    assert record["valorMercadoria"] == 2


def test_import_without_qualifying_rows_is_rejected(client, sheet_bytes):
    response = _import(client, sheet_bytes({"D2": "REF2", "E2": "Em transporte", "F2": 44927.5}))

    assert response.status_code == 400
    assert response.json()["detail"] == MSG_NO_ROWS
    assert client.get("/orders", params={"days": 30}).json() == []


def test_import_rejects_non_workbook_payload(client):
    response = _import(client, b"definitely not xlsx")

    assert response.status_code == 400
    assert response.json()["detail"] == MSG_IMPORT_FAILED


def test_status_change_shows_on_refetch(client, sheet_bytes):
    _import(client, sheet_bytes({"D2": "REF1", "E2": "Coletado", "F2": 44927.5}))
    (record,) = client.get("/orders").json()

    response = client.patch(f"/orders/{record['id']}/status", json={"status": "Resolvido"})

    assert response.status_code == 200
    assert response.json()["status"] == "Resolvido"
    assert response.json()["statusUpdatedAt"]
    (refetched,) = client.get("/orders").json()
    assert refetched["status"] == "Resolvido"
    assert refetched["statusUpdatedAt"] == response.json()["statusUpdatedAt"]


def test_status_change_validation(client):
    invalid = client.patch("/orders/some-id/status", json={"status": "Cancelado"})
    assert invalid.status_code == 422

    missing = client.patch("/orders/some-id/status", json={"status": "Extraviado"})
    assert missing.status_code == 404


def test_list_window_bounds(client):
    assert client.get("/orders", params={"days": -1}).status_code == 422
    assert client.get("/orders", params={"days": 0}).status_code == 422
    assert client.get("/orders", params={"days": 366}).status_code == 422
    assert client.get("/orders", params={"days": 1}).status_code == 200
    assert client.get("/orders", params={"days": 365}).status_code == 200


def test_import_with_oversized_value_is_not_a_server_error(client, sheet_bytes):
    response = _import(
        client,
        sheet_bytes({"D2": "REF1", "E2": "Coletado", "F2": 44927.5, "Q2": "1E+27"}),
    )

    assert response.status_code == 200
    assert response.json()["records"][0]["valorMercadoria"] == 0


def test_export_returns_workbook_of_posted_rows(client, sheet_bytes):
    _import(client, sheet_bytes({"D2": "REF1", "E2": "Coletado", "F2": 44927.5, "Q2": 10}))
    records = client.get("/orders").json()

    response = client.post("/orders/export", json={"records": records})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith(
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )
    assert 'filename="ConsultaDafiti-' in response.headers["content-disposition"]
    rows = list(load_workbook(BytesIO(response.content)).active.iter_rows(values_only=True))
    assert rows[0] == DISPLAY_FIELDS
    assert rows[1][1] == "REF1"


def test_export_of_nothing_is_header_only(client):
    response = client.post("/orders/export", json={"records": []})

    assert response.status_code == 200
    rows = list(load_workbook(BytesIO(response.content)).active.iter_rows(values_only=True))
    assert rows == [DISPLAY_FIELDS]
