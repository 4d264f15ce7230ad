import json
from dataclasses import dataclass
from unittest import mock

import pytest
from werkzeug.test import Client
from werkzeug.wrappers import Request

from facturacion_sri.server import Server, main
from facturacion_sri.storage import FacturaResponse, FacturaStorage


@dataclass
class _FakeFactura:
    cliente_nombre: str
    cliente_cedula: str

    def to_dict(self):
        return {"clienteNombre": self.cliente_nombre, "clienteCedula": self.cliente_cedula}

    def generar_xml(self):
        return b"<factura><infoTributaria><ambiente>1</ambiente></infoTributaria></factura>"


def _body(resp):
    return json.loads(resp.get_data(as_text=True))


def _request(nombre, cedula, productos, include_xml=None):
    data = {"clienteNombre": nombre, "clienteCedula": cedula, "productos": productos}
    if include_xml is not None:
        data["includeXML"] = include_xml
    return data


PRODUCTO = {"codigo": "LAPTOP001", "descripcion": "Laptop Dell", "cantidad": 1.0, "precioUnitario": 450.0}


@pytest.fixture
def server(tmp_path):
    return Server(
        "8080",
        storage=FacturaStorage(),
        static_dir=tmp_path / "missing",
    )


@pytest.fixture
def client(server):
    return Client(server)


def test_new_server_port():
    srv = Server("8080", static_dir="/nonexistent/static")
    assert srv.port == "8080"
    assert srv.storage.count() == 0


def test_health_get(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    body = _body(resp)
    assert body["status"] == "healthy"
    assert body["service"] == "SRI Facturación Electrónica API"
    assert body["version"] == "1.0.0"


def test_health_post_not_allowed(client):
    resp = client.post("/health")
    assert resp.status_code == 405
    assert _body(resp)["error"] is True


def test_root_docs(client):
    resp = client.get("/api")
    assert resp.status_code == 200
    body = _body(resp)
    assert body["service"] == "SRI Facturación Electrónica API"
    assert "GET /health" in body["endpoints"]


def test_root_post_not_allowed(client):
    assert client.post("/api").status_code == 405


def test_create_factura_invalid_json(client, server):
    resp = client.post("/api/facturas", data="invalid json", content_type="application/json")
    assert resp.status_code == 400
    assert _body(resp)["error"] is True
    assert server.storage.count() == 0


def test_create_factura_without_factory_fails(client, server):
    resp = client.post("/api/facturas", json=_request("A", "1713175071", [PRODUCTO]))
    assert resp.status_code == 500
    assert _body(resp)["error"] is True
    assert server.storage.count() == 0


def test_list_facturas(client, server):
    server.storage.store("FAC-000001", FacturaResponse(id="FAC-000001", status="created"))
    server.storage.store("FAC-000002", FacturaResponse(id="FAC-000002", status="created"))
    resp = client.get("/api/facturas")
    assert resp.status_code == 200
    body = _body(resp)
    assert body["total"] == 2
    assert len(body["facturas"]) == 2


def test_facturas_unsupported_method(client):
    resp = client.delete("/api/facturas")
    assert resp.status_code == 405


@pytest.fixture
def stored(server):
    server.storage.store(
        "FAC-000001",
        FacturaResponse(
            id="FAC-000001",
            status="created",
            factura=_FakeFactura("Test Cliente", "1713175071"),
        ),
    )
    return server


def test_factura_by_id_found(client, stored):
    resp = client.get("/api/facturas/FAC-000001")
    assert resp.status_code == 200
    assert _body(resp)["id"] == "FAC-000001"


def test_factura_by_id_with_xml(client, stored):
    resp = client.get("/api/facturas/FAC-000001?includeXML=true")
    assert resp.status_code == 200
    assert "<factura>" in _body(resp)["xml"]


def test_factura_by_id_not_found(client, stored):
    resp = client.get("/api/facturas/FAC-999999")
    assert resp.status_code == 404
    assert _body(resp)["error"] is True


def test_factura_by_id_empty(client, stored):
    resp = client.get("/api/facturas/")
    assert resp.status_code == 400
    assert _body(resp)["error"] is True


def test_factura_by_id_method_not_allowed(client, stored):
    resp = client.post("/api/facturas/FAC-000001")
    assert resp.status_code == 405
    assert _body(resp)["error"] is True


def test_dispatch_unknown_path(server):
    request = Request.from_values("/desconocido")
    resp = server.dispatch(request)
    assert resp.status_code == 404
    assert resp.get_data(as_text=True) == "404 page not found\n"


def test_responses_carry_cors_headers(client):
    resp = client.get("/health")
    assert resp.headers["Access-Control-Allow-Origin"] == "*"


def test_router_is_wrapped_app(server):
    resp = Client(server.router()).open("/health", method="OPTIONS")
    assert resp.status_code == 200
    assert resp.get_data(as_text=True) == ""


def test_static_serves_existing_file_and_spa_index(tmp_path):
    static = tmp_path / "dist"
    static.mkdir()
    (static / "index.html").write_text("<html>index</html>", encoding="utf-8")
    (static / "app.js").write_text("console.log(1)", encoding="utf-8")
    client = Client(Server("8080", static_dir=static))

    asset = client.get("/app.js")
    assert asset.status_code == 200
    assert asset.get_data(as_text=True) == "console.log(1)"

    spa = client.get("/facturas/nueva")
    assert spa.status_code == 200
    assert spa.get_data(as_text=True) == "<html>index</html>"

    root = client.get("/")
    assert root.get_data(as_text=True) == "<html>index</html>"


def test_static_api_paths_are_not_served(tmp_path):
    static = tmp_path / "dist"
    static.mkdir()
    (static / "index.html").write_text("<html>index</html>", encoding="utf-8")
    client = Client(Server("8080", static_dir=static))
    resp = client.get("/api/desconocido")
    assert resp.status_code == 404


def test_static_fallback_page_mentions_port(tmp_path):
    static = tmp_path / "dist"
    static.mkdir()
    client = Client(Server("9191", static_dir=static))
    resp = client.get("/cualquier")
    assert resp.status_code == 200
    assert resp.mimetype == "text/html"
    assert "9191" in resp.get_data(as_text=True)


def test_without_static_dir_root_is_not_found(client):
    assert client.get("/").status_code == 404


def test_start_runs_on_configured_port(tmp_path):
    srv = Server("8181", static_dir=tmp_path / "missing")
    with mock.patch("facturacion_sri.server.run_simple") as run:
        srv.start()
    args = run.call_args.args
    assert args[0] == "0.0.0.0"
    assert args[1] == 8181
    assert args[2] is srv.router()


def test_main_uses_port_argument(tmp_path):
    with mock.patch("facturacion_sri.server.run_simple") as run:
        result = main(["--port", "9090", "--static-dir", str(tmp_path / "missing")])
    assert result == 0
    assert run.call_args.args[1] == 9090