from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from pathlib import Path

from sqlalchemy.orm import Session

from consulta.core.flow_logging import flow_info
from consulta.models.order import ORDER_STATUSES
from consulta.services.display_state import DisplayState
from consulta.services.order_errors import (
    InvalidStatusError,
    OrderExportError,
    OrderGatewayError,
    OrderImportError,
)
from consulta.services.order_export_service import ExportFile, build_export
from consulta.services.order_gateway import OrderGateway, window_start
from consulta.services.order_reducer import reduce_candidates
from consulta.services.row_extractor import extract_candidates, load_first_sheet

logger = logging.getLogger(__name__)

MSG_LOAD_FAILED = "Erro ao carregar dados salvos."
MSG_READ_FAILED = "Erro ao ler o arquivo. Por favor, tente novamente."
MSG_EMPTY_FILE = "Arquivo vazio ou inválido."
MSG_NO_ROWS = "Nenhum dado encontrado com os critérios especificados."
MSG_IMPORT_FAILED = "Erro ao processar o arquivo. Verifique se o formato está correto."
MSG_STATUS_FAILED = "Erro ao atualizar o status."
MSG_EXPORT_FAILED = "Erro ao exportar o arquivo."

_IMPORT_MESSAGES = {
    "READ_FAILED": MSG_READ_FAILED,
    "EMPTY_FILE": MSG_EMPTY_FILE,
    "NO_QUALIFYING_ROWS": MSG_NO_ROWS,
}


@dataclass(frozen=True)
class ImportOutcome:
    state: DisplayState
    inserted: int = 0


class OrderDesk:
    """
    Operation boundary for the order desk.

    Every public method takes the caller's DisplayState and hands back a new
    one. Import, storage and export failures are logged and turned into a
    single user-facing message on the returned state, with the rows left as
    they were. The one exception that does escape is StaleDisplayStateError,
    raised before any work when `expect_version` does not match the state.
    """

    def __init__(
        self,
        db: Session,
        *,
        gateway: OrderGateway | None = None,
        today: Callable[[], date] | None = None,
    ) -> None:
        self.db = db
        self.gateway = gateway or OrderGateway(db)
        self._today = today or date.today

    def load_saved(self, state: DisplayState, *, expect_version: int | None = None) -> DisplayState:
        state.expect_version(expect_version)
        start = window_start(state.days_to_show, self._today())
        try:
            records = self.gateway.fetch_since(start)
        except OrderGatewayError as exc:
            logger.error("desk_load_failed days=%s error=%s", state.days_to_show, exc)
            return state.with_error(MSG_LOAD_FAILED, "storage")
        return state.cleared().with_records(records)

    def change_window(
        self,
        state: DisplayState,
        days: int,
        *,
        expect_version: int | None = None,
    ) -> DisplayState:
        state.expect_version(expect_version)
        return self.load_saved(state.with_window(days))

    def import_workbook(
        self,
        state: DisplayState,
        payload: bytes,
        filename: str = "upload.xlsx",
        *,
        expect_version: int | None = None,
    ) -> ImportOutcome:
        state.expect_version(expect_version)
        state = state.cleared()
        try:
            sheet = load_first_sheet(payload, filename)
            candidates = extract_candidates(sheet)
            orders = reduce_candidates(candidates)
            if not orders:
                raise OrderImportError(
                    code="NO_QUALIFYING_ROWS",
                    message="No rows with an accepted last event were found.",
                )
            inserted = self.gateway.insert_batch(orders)
        except OrderImportError as exc:
            logger.error("desk_import_rejected file=%s error=%s", filename, exc)
            message = _IMPORT_MESSAGES.get(exc.code, MSG_IMPORT_FAILED)
            return ImportOutcome(state=state.with_error(message, "input"))
        except OrderGatewayError as exc:
            logger.error("desk_import_failed file=%s error=%s", filename, exc)
            return ImportOutcome(state=state.with_error(MSG_IMPORT_FAILED, "storage"))

        flow_info(
            logger,
            "desk_import file=%s candidates=%s inserted=%s",
            filename,
            len(candidates),
            inserted,
            category="import",
        )
        return ImportOutcome(state=self.load_saved(state), inserted=inserted)

    def import_file(self, state: DisplayState, path: str | Path) -> ImportOutcome:
        path = Path(path)
        try:
            payload = path.read_bytes()
        except OSError as exc:
            logger.error("desk_import_unreadable path=%s error=%s", path, exc)
            return ImportOutcome(state=state.cleared().with_error(MSG_READ_FAILED, "input"))
        return self.import_workbook(state, payload, path.name)

    def stage_status(self, state: DisplayState, order_id: str, status: str) -> DisplayState:
        if status not in ORDER_STATUSES:
            logger.error("desk_status_rejected id=%s status=%r", order_id, status)
            return state.with_error(MSG_STATUS_FAILED, "input")
        return state.stage_status(order_id, status)

    def save_status(
        self,
        state: DisplayState,
        order_id: str,
        *,
        expect_version: int | None = None,
    ) -> DisplayState:
        state.expect_version(expect_version)
        new_status = state.pending_status.get(order_id)
        if not new_status:
            return state

        try:
            updated = self.gateway.update_status(order_id, new_status)
        except (OrderGatewayError, InvalidStatusError) as exc:
            logger.error("desk_status_failed id=%s status=%s error=%s", order_id, new_status, exc)
            return state.with_error(MSG_STATUS_FAILED, "storage")
        if updated is None:
            return state.with_error(MSG_STATUS_FAILED, "not_found")

        return state.cleared().apply_status(order_id, updated.status, updated.status_updated_at)

    def export(self, state: DisplayState) -> tuple[DisplayState, ExportFile | None]:
        try:
            export_file = build_export(list(state.records), today=self._today())
        except OrderExportError as exc:
            logger.error("desk_export_failed rows=%s error=%s", len(state.records), exc)
            return state.with_error(MSG_EXPORT_FAILED, "export"), None
        return state.cleared(), export_file
