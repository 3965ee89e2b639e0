from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import date, datetime, time, timedelta

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from consulta.core.flow_logging import flow_info
from consulta.models.order import ORDER_STATUSES, Order
from consulta.schemas.order import OrderCandidate, OrderDisplay
from consulta.services.date_normalizer import format_display, parse_canonical
from consulta.services.order_errors import InvalidStatusError, OrderGatewayError

logger = logging.getLogger(__name__)


def window_start(days: int, today: date | None = None) -> datetime:
    """Midnight `days` days before `today`: the lower bound of a "last N days" view."""
    if days < 0:
        raise ValueError("days must be >= 0")
    today = today or date.today()
    return datetime.combine(today - timedelta(days=days), time.min)


class OrderGateway:
    """
    Reads and writes the orders table on behalf of the desk.

    Callers must not expect ids back from insert_batch: the rows they hold
    before persistence have none, and a fetch_since round trip is the only
    authoritative view of what was stored.
    """

    def __init__(self, db: Session, clock: Callable[[], datetime] | None = None) -> None:
        self.db = db
        self._clock = clock or self._now

    @staticmethod
    def _now() -> datetime:
        return datetime.now()

    @staticmethod
    def _validated_status(status: str) -> str:
        if status not in ORDER_STATUSES:
            raise InvalidStatusError(
                f"status must be one of {', '.join(ORDER_STATUSES)} (got {status!r})."
            )
        return status

    @staticmethod
    def to_display(order: Order) -> OrderDisplay:
        return OrderDisplay(
            id=order.id,
            reference=order.referencia,
            merchandise_value=float(order.valor_mercadoria or 0),
            last_event=order.ultima_ocorrencia,
            last_event_at=format_display(order.data_ultima_ocorrencia),
            status=order.status,
            status_updated_at=(
                format_display(order.status_updated_at)
                if order.status_updated_at is not None
                else None
            ),
        )

    def _to_row(self, candidate: OrderCandidate, *, created_at: datetime) -> Order:
        try:
            last_event_at = parse_canonical(candidate.last_event_at)
        except ValueError as exc:
            raise OrderGatewayError(
                f"reference {candidate.reference!r} has an unparsed last event date "
                f"{candidate.last_event_at!r}"
            ) from exc
        return Order(
            referencia=candidate.reference,
            valor_mercadoria=candidate.merchandise_value,
            ultima_ocorrencia=candidate.last_event,
            data_ultima_ocorrencia=last_event_at,
            status=self._validated_status(candidate.status),
            created_at=created_at,
        )

    def insert_batch(self, candidates: Iterable[OrderCandidate]) -> int:
        created_at = self._clock()
        rows = [self._to_row(candidate, created_at=created_at) for candidate in candidates]
        if not rows:
            return 0

        self.db.add_all(rows)
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("order_insert_failed rows=%s", len(rows))
            raise OrderGatewayError(f"Could not insert {len(rows)} orders: {exc}") from exc

        flow_info(logger, "order_insert rows=%s created_at=%s", len(rows), created_at, category="sync")
        return len(rows)

    def fetch_since(self, start: datetime | date) -> list[OrderDisplay]:
        if not isinstance(start, datetime):
            start = datetime.combine(start, time.min)

        stmt = (
            select(Order)
            .where(Order.created_at >= start)
            .order_by(Order.created_at, Order.referencia)
        )
        try:
            orders = list(self.db.execute(stmt).scalars().all())
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("order_fetch_failed start=%s", start)
            raise OrderGatewayError(f"Could not load orders since {start}: {exc}") from exc

        flow_info(logger, "order_fetch start=%s rows=%s", start, len(orders), category="sync")
        return [self.to_display(order) for order in orders]

    def update_status(self, order_id: str, status: str) -> OrderDisplay | None:
        status = self._validated_status(status)
        stamped_at = self._clock()

        # Both fields go out in one UPDATE so they never disagree.
        stmt = (
            update(Order)
            .where(Order.id == order_id)
            .values(status=status, status_updated_at=stamped_at)
        )
        try:
            result = self.db.execute(stmt)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("order_status_update_failed id=%s status=%s", order_id, status)
            raise OrderGatewayError(f"Could not update status of order {order_id}: {exc}") from exc

        if not result.rowcount:
            logger.warning("order_status_update_missing id=%s", order_id)
            return None

        flow_info(logger, "order_status_update id=%s status=%s", order_id, status, category="sync")
        order = self.db.get(Order, order_id)
        return self.to_display(order) if order is not None else None
