"""HTTP handlers for health, API documentation and in-memory invoices."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Callable, Optional

from werkzeug.wrappers import Request, Response

from facturacion_sri.responses import write_error_response, write_json_response
from facturacion_sri.storage import FacturaResponse

SERVICE_NAME = "SRI Facturación Electrónica API"
API_VERSION = "1.0.0"

# WSGI environ key under which the application places the invoice factory.
FACTURA_FACTORY_KEY = "facturacion_sri.crear_factura"

_FACTURAS_PREFIX = "/api/facturas/"

_ENDPOINTS = {
    "GET /health": "Health check del servicio",
    "GET /api/facturas": "Listar todas las facturas (memoria)",
    "POST /api/facturas": "Crear nueva factura (memoria)",
    "GET /api/facturas/{id}": "Obtener factura por ID (memoria)",
    "POST /api/facturas/db": "Crear nueva factura (base de datos)",
    "GET /api/facturas/db/list": "Listar facturas (base de datos)",
    "GET /api/facturas/db/{id}": "Obtener factura por ID (base de datos)",
    "PUT /api/facturas/db/{id}/estado": "Actualizar estado de factura",
    "GET /api/estadisticas": "Obtener estadísticas de facturas",
    "POST /api/clientes": "Guardar cliente",
    "GET /api/clientes/buscar?cedula=XXX": "Buscar cliente por cédula",
    "GET /api/sri/estado?clave=XXX": "Consultar estado en SRI",
    "GET /api/auditoria?tabla=XXX": "Obtener registros de auditoría",
    "POST /api/respaldos": "Crear respaldo manual de la base de datos",
    "GET /api/respaldos/listar": "Listar todos los respaldos disponibles",
}

_EXAMPLE_REQUEST = {
    "url": "/api/facturas",
    "method": "POST",
    "body": {
        "clienteNombre": "Juan Perez",
        "clienteCedula": "1713175071",
        "productos": [
            {
                "codigo": "PROD001",
                "descripcion": "Producto de ejemplo",
                "cantidad": 1.0,
                "precioUnitario": 100.0,
            }
        ],
        "includeXML": True,
    },
}

FacturaFactory = Callable[[dict], Any]


def _now() -> datetime:
    return datetime.now().astimezone()


@dataclass
class HealthResponse:
    """Body of the health check."""

    status: str = "healthy"
    timestamp: datetime = field(default_factory=_now)
    version: str = API_VERSION
    service: str = SERVICE_NAME

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "timestamp": self.timestamp.isoformat(),
            "version": self.version,
            "service": self.service,
        }


def _generar_xml(factura: Any) -> str:
    generar = getattr(factura, "generar_xml", None)
    if not callable(generar):
        raise ValueError("la factura no puede generar XML")
    xml = generar()
    return xml.decode("utf-8") if isinstance(xml, (bytes, bytearray)) else str(xml)


def _factory_from(request: Request) -> Optional[FacturaFactory]:
    factory = request.environ.get(FACTURA_FACTORY_KEY)
    return factory if callable(factory) else None


def handle_health(request: Request) -> Response:
    """GET /health."""
    if request.method != "GET":
        return write_error_response(405, "Solo método GET permitido")
    return write_json_response(200, HealthResponse().to_dict())


def handle_root(request: Request) -> Response:
    """GET /api: basic API documentation."""
    if request.method != "GET":
        return write_error_response(405, "Solo método GET permitido")
    docs = {
        "service": SERVICE_NAME,
        "version": API_VERSION,
        "endpoints": dict(_ENDPOINTS),
        "example_request": _EXAMPLE_REQUEST,
    }
    return write_json_response(200, docs)


def handle_list_facturas(request: Request, storage: Any) -> Response:
    """List every stored invoice, without XML."""
    facturas = storage.get_all()
    total = storage.count()
    return write_json_response(
        200,
        {
            "facturas": [factura.to_dict() for factura in facturas],
            "total": total,
            "message": f"Se encontraron {total} facturas",
        },
    )


def _handle_create_factura(request: Request, storage: Any) -> Response:
    try:
        body = json.loads(request.get_data(as_text=True))
    except ValueError as err:
        return write_error_response(400, f"JSON inválido: {err}")
    if not isinstance(body, dict):
        return write_error_response(400, "JSON inválido: se esperaba un objeto")

    include_xml = body.pop("includeXML", None) or False
    if not isinstance(include_xml, bool):
        return write_error_response(400, "JSON inválido: includeXML debe ser booleano")

    crear_factura = _factory_from(request)
    if crear_factura is None:
        return write_error_response(
            500, "Error creando factura: no hay generador de facturas configurado"
        )
    try:
        factura = crear_factura(body)
    except ValueError as err:
        return write_error_response(400, f"Error creando factura: {err}")

    identificador = f"FAC-{storage.next_id():06d}"
    respuesta = FacturaResponse(id=identificador, factura=factura, status="created")

    if include_xml:
        try:
            respuesta.xml = _generar_xml(factura)
        except ValueError as err:
            return write_error_response(500, f"Error generando XML: {err}")

    storage.store(identificador, respuesta)
    return write_json_response(201, respuesta.to_dict())


def handle_facturas(request: Request, storage: Any) -> Response:
    """/api/facturas: GET lists, POST creates with the factory found in the request environ."""
    if request.method == "GET":
        return handle_list_facturas(request, storage)
    if request.method == "POST":
        return _handle_create_factura(request, storage)
    return write_error_response(405, "Métodos permitidos: GET, POST")


def handle_factura_by_id(request: Request, storage: Any) -> Response:
    """GET /api/facturas/{id}, with ?includeXML=true to add the XML."""
    if request.method != "GET":
        return write_error_response(405, "Solo método GET permitido")

    identificador = request.path.removeprefix(_FACTURAS_PREFIX)
    if not identificador:
        return write_error_response(400, "ID de factura requerido")

    factura = storage.get(identificador)
    if factura is None:
        return write_error_response(404, "Factura no encontrada")

    if request.args.get("includeXML") == "true" and not factura.xml:
        try:
            factura = replace(factura, xml=_generar_xml(factura.factura))
        except ValueError as err:
            return write_error_response(500, f"Error generando XML: {err}")

    return write_json_response(200, factura.to_dict())