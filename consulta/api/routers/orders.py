from io import BytesIO

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from consulta.core.config import settings
from consulta.db.session import get_db
from consulta.schemas.order import (
    OrderDisplay,
    OrderExportRequest,
    OrderImportResult,
    OrderStatusUpdate,
)
from consulta.services.display_state import DisplayState
from consulta.services.order_desk import (
    MSG_EXPORT_FAILED,
    MSG_STATUS_FAILED,
    OrderDesk,
)
from consulta.services.order_errors import OrderExportError, OrderGatewayError
from consulta.services.order_export_service import XLSX_MEDIA_TYPE, build_export
from consulta.services.order_gateway import OrderGateway

router = APIRouter(prefix="/orders", tags=["orders"])

_STATUS_BY_ERROR_KIND = {
    "input": 400,
    "not_found": 404,
    "export": 500,
    "storage": 503,
}


def _raise_for_error(state: DisplayState) -> None:
    if state.error:
        raise HTTPException(
            status_code=_STATUS_BY_ERROR_KIND.get(state.error_kind, 500),
            detail=state.error,
        )


@router.get("", response_model=list[OrderDisplay])
def list_orders_api(
    days: int = Query(settings.ORDER_DEFAULT_WINDOW_DAYS, ge=1, le=365),
    db: Session = Depends(get_db),
):
    state = OrderDesk(db).load_saved(DisplayState(days_to_show=days))
    _raise_for_error(state)
    return list(state.records)


@router.post("/import", response_model=OrderImportResult)
def import_orders_api(
    payload: bytes = Body(...),
    filename: str = Query("upload.xlsx"),
    days: int = Query(settings.ORDER_DEFAULT_WINDOW_DAYS, ge=1, le=365),
    db: Session = Depends(get_db),
):
    outcome = OrderDesk(db).import_workbook(
        DisplayState(days_to_show=days),
        payload,
        (filename or "").strip() or "upload.xlsx",
    )
    _raise_for_error(outcome.state)
    return OrderImportResult(inserted=outcome.inserted, records=list(outcome.state.records))


@router.patch("/{order_id}/status", response_model=OrderDisplay)
def update_order_status_api(order_id: str, payload: OrderStatusUpdate, db: Session = Depends(get_db)):
    try:
        obj = OrderGateway(db).update_status(order_id, payload.status)
    except OrderGatewayError:
        raise HTTPException(status_code=503, detail=MSG_STATUS_FAILED)

    if not obj:
        raise HTTPException(status_code=404, detail="Order not found")
    return obj


@router.post("/export")
def export_orders_api(payload: OrderExportRequest):
    """
    Build the spreadsheet for the rows the client is showing right now.

    The rows come from the request body and are not re-read from storage.
    """
    try:
        export_file = build_export(payload.records)
    except OrderExportError:
        raise HTTPException(status_code=500, detail=MSG_EXPORT_FAILED)

    return StreamingResponse(
        BytesIO(export_file.content),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{export_file.filename}"'},
    )
