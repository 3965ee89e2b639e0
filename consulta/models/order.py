from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import uuid4

from sqlalchemy import DateTime, Numeric, String, Text, func, text
from sqlalchemy.orm import Mapped, mapped_column

from consulta.db.base import Base

ORDER_STATUSES = ("Pendentes", "Resolvido", "Extraviado")
DEFAULT_ORDER_STATUS = "Pendentes"


def _new_order_id() -> str:
    return str(uuid4())


class Order(Base):
    """
    One tracked shipment reference.

    Column names follow the hosted table the desk was first built against
    (Portuguese snake_case); the display layer renames them.
    """
    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_order_id)
    referencia: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    ultima_ocorrencia: Mapped[str] = mapped_column(Text, nullable=False)
    data_ultima_ocorrencia: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    status: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default=DEFAULT_ORDER_STATUS,
        server_default=text("'Pendentes'"),
    )
    valor_mercadoria: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    status_updated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        index=True,
    )

    def __repr__(self) -> str:
        return f"<Order(id={self.id}, referencia={self.referencia}, status={self.status})>"
