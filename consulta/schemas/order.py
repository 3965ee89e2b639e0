from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .base import DisplaySchema

OrderStatus = Literal["Pendentes", "Resolvido", "Extraviado"]

ALLOWED_EVENTS = ("Recebido na Base", "Coletado")

# Display field order; also the export header row.
DISPLAY_FIELDS = (
    "id",
    "referencia",
    "valorMercadoria",
    "ultimaOcorrencia",
    "dataUltimaOcorrencia",
    "status",
    "statusUpdatedAt",
)


class OrderCandidate(BaseModel):
    """A row read from an import sheet, before it is persisted (no id yet)."""

    model_config = ConfigDict(frozen=True)

    reference: str = Field(min_length=1)
    merchandise_value: Decimal = Decimal("0")
    last_event: str
    # Canonical "YYYY-MM-DD HH:MM:SS", or the raw cell text when it could not be parsed.
    last_event_at: str
    status: OrderStatus = "Pendentes"


class OrderDisplay(DisplaySchema):
    id: Optional[str] = None
    reference: str = Field(alias="referencia")
    merchandise_value: float = Field(default=0, alias="valorMercadoria")
    last_event: str = Field(alias="ultimaOcorrencia")
    last_event_at: str = Field(alias="dataUltimaOcorrencia")
    status: OrderStatus = "Pendentes"
    status_updated_at: Optional[str] = Field(default=None, alias="statusUpdatedAt")


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class OrderImportResult(BaseModel):
    inserted: int
    records: List[OrderDisplay]


class OrderExportRequest(BaseModel):
    records: List[OrderDisplay] = []
