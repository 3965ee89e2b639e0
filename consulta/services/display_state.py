from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Iterable

from consulta.schemas.order import OrderDisplay


class StaleDisplayStateError(RuntimeError):
    """Raised when an operation is applied to a display state that has since moved on."""


@dataclass(frozen=True)
class DisplayState:
    """
    What one desk user currently sees: the loaded rows, the day window, the
    status edits staged but not yet saved, and the last error message.

    Never mutated. Every transition returns a new state with `version` bumped,
    so a caller holding an older copy can be detected with `expect_version`.
    """

    records: tuple[OrderDisplay, ...] = ()
    days_to_show: int = 1
    pending_status: dict[str, str] = field(default_factory=dict)
    error: str = ""
    # input | storage | export | not_found
    error_kind: str = ""
    version: int = 0

    def _next(self, **changes) -> "DisplayState":
        return replace(self, version=self.version + 1, **changes)

    def expect_version(self, version: int | None) -> None:
        if version is not None and version != self.version:
            raise StaleDisplayStateError(
                f"display state is at version {self.version}, caller expected {version}"
            )

    def with_records(self, records: Iterable[OrderDisplay]) -> "DisplayState":
        return self._next(records=tuple(records))

    def with_window(self, days: int) -> "DisplayState":
        return self._next(days_to_show=days)

    def with_error(self, message: str, kind: str) -> "DisplayState":
        return self._next(error=message, error_kind=kind)

    def cleared(self) -> "DisplayState":
        if not self.error:
            return self
        return self._next(error="", error_kind="")

    def stage_status(self, order_id: str, status: str) -> "DisplayState":
        pending = dict(self.pending_status)
        pending[order_id] = status
        return self._next(pending_status=pending)

    def apply_status(self, order_id: str, status: str, updated_at: str | None) -> "DisplayState":
        records = tuple(
            record.model_copy(update={"status": status, "status_updated_at": updated_at})
            if record.id == order_id
            else record
            for record in self.records
        )
        pending = {key: value for key, value in self.pending_status.items() if key != order_id}
        return self._next(records=records, pending_status=pending)
