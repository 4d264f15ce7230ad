"""Thread-safe in-memory storage of created invoices."""

from __future__ import annotations

import dataclasses
import logging
import re
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

logger = logging.getLogger(__name__)

_FRACTION = re.compile(r"\.(\d+)")


def _now() -> datetime:
    return datetime.now().astimezone()


def _parse_time(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise ValueError(f"createdAt debe ser una fecha, se obtuvo {value!r}")
    text = value[:-1] + "+00:00" if value.endswith(("Z", "z")) else value
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    try:
        return datetime.fromisoformat(text)
    except ValueError as err:
        raise ValueError(f"createdAt inválido: {value!r}") from err


@dataclass
class FacturaResponse:
    """An invoice as stored and returned by the API."""

    id: str
    factura: Any = field(default_factory=dict)
    xml: str = ""
    created_at: datetime = field(default_factory=_now)
    status: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form; the XML is omitted when empty."""
        to_dict = getattr(self.factura, "to_dict", None)
        factura = to_dict() if callable(to_dict) else self.factura
        data: dict[str, Any] = {"id": self.id, "factura": factura}
        if self.xml:
            data["xml"] = self.xml
        data["createdAt"] = self.created_at.isoformat()
        data["status"] = self.status
        return data

    @classmethod
    def from_dict(cls, data: Any) -> FacturaResponse:
        """Build a response from its JSON form."""
        if not isinstance(data, dict):
            raise ValueError("se esperaba un objeto JSON")
        identificador = data.get("id", "")
        xml = data.get("xml") or ""
        status = data.get("status", "")
        for nombre, valor in (("id", identificador), ("xml", xml), ("status", status)):
            if not isinstance(valor, str):
                raise ValueError(f"{nombre} debe ser una cadena, se obtuvo {valor!r}")
        created = data.get("createdAt")
        return cls(
            id=identificador,
            factura=data.get("factura") or {},
            xml=xml,
            created_at=_now() if created is None else _parse_time(created),
            status=status,
        )


class FacturaStorage:
    """In-memory invoice store safe for concurrent use."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._facturas: dict[str, FacturaResponse] = {}
        self._next_id = 1

    def store(self, id: str, factura: FacturaResponse) -> None:
        """Store an invoice under the given id, replacing any previous one."""
        with self._lock:
            self._facturas[id] = factura

    def get(self, id: str) -> FacturaResponse | None:
        """Return a copy of the stored invoice, or None when absent."""
        with self._lock:
            factura = self._facturas.get(id)
        return None if factura is None else dataclasses.replace(factura)

    def get_all(self) -> list[FacturaResponse]:
        """Return copies of all invoices without their XML."""
        with self._lock:
            facturas = list(self._facturas.values())
        return [dataclasses.replace(factura, xml="") for factura in facturas]

    def next_id(self) -> int:
        """Hand out the next numeric id."""
        with self._lock:
            identificador = self._next_id
            self._next_id += 1
        return identificador

    def count(self) -> int:
        """Number of stored invoices."""
        with self._lock:
            return len(self._facturas)


class LoggingFacturaStorage:
    """Storage wrapper that logs every operation."""

    def __init__(self, underlying: Any) -> None:
        self._underlying = underlying

    def store(self, id: str, factura: FacturaResponse) -> None:
        logger.info("Almacenando factura: %s", id)
        self._underlying.store(id, factura)

    def get(self, id: str) -> FacturaResponse | None:
        logger.info("Buscando factura: %s", id)
        factura = self._underlying.get(id)
        if factura is None:
            logger.info("Factura no encontrada: %s", id)
        return factura

    def get_all(self) -> list[FacturaResponse]:
        logger.info("Listando todas las facturas")
        return self._underlying.get_all()

    def next_id(self) -> int:
        identificador = self._underlying.next_id()
        logger.info("Generando nuevo ID: %d", identificador)
        return identificador

    def count(self) -> int:
        total = self._underlying.count()
        logger.info("Total de facturas: %d", total)
        return total