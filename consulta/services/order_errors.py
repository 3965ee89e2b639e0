from __future__ import annotations

from dataclasses import dataclass


@dataclass
class OrderImportError(Exception):
    """Input problem with an uploaded sheet: unreadable, unsupported or without usable rows."""

    code: str
    message: str

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class OrderGatewayError(RuntimeError):
    """Raised when the orders table cannot be read or written."""


class InvalidStatusError(ValueError):
    """Raised when a status outside Pendentes/Resolvido/Extraviado is written."""


class OrderExportError(RuntimeError):
    """Raised when the display records cannot be serialized to a workbook."""
