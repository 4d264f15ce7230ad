import json
from datetime import datetime, timezone

import pytest

from facturacion_sri.responses import write_error_response, write_json_response


@pytest.mark.parametrize(
    "status, data, expected_fragments",
    [
        (200, {"message": "success"}, ["success", "message"]),
        (
            201,
            {"id": "FAC-000001", "status": "created", "details": {"total": 115.0}},
            ["FAC-000001", "created", "total", "115"],
        ),
    ],
)
def test_write_json_response_with_data(status, data, expected_fragments):
    response = write_json_response(status, data)
    body = response.get_data(as_text=True)
    assert response.status_code == status
    assert response.headers["Content-Type"] == "application/json"
    for fragment in expected_fragments:
        assert fragment in body
    assert json.loads(body) == data


def test_write_json_response_none_has_empty_body():
    response = write_json_response(204, None)
    assert response.status_code == 204
    assert response.headers["Content-Type"] == "application/json"
    assert response.get_data(as_text=True).strip() == ""


def test_write_json_response_is_compact_with_trailing_newline():
    response = write_json_response(200, {"a": 1, "b": [1, 2]})
    assert response.get_data(as_text=True) == '{"a":1,"b":[1,2]}\n'


def test_write_json_response_escapes_html_characters():
    response = write_json_response(200, {"xml": "<factura>&</factura>"})
    body = response.get_data(as_text=True)
    assert "<" not in body
    assert "\\u003cfactura\\u003e" in body
    assert json.loads(body) == {"xml": "<factura>&</factura>"}


def test_write_json_response_keeps_non_ascii_text():
    response = write_json_response(200, {"service": "Facturación"})
    assert "Facturación" in response.get_data(as_text=True)


def test_write_json_response_serializes_datetimes():
    moment = datetime(2025, 6, 27, 10, 30, tzinfo=timezone.utc)
    response = write_json_response(200, {"when": moment})
    assert json.loads(response.get_data(as_text=True)) == {"when": "2025-06-27T10:30:00+00:00"}


@pytest.mark.parametrize(
    "status, message",
    [
        (400, "Datos inválidos"),
        (404, "Recurso no encontrado"),
        (500, "Error interno del servidor"),
    ],
)
def test_write_error_response(status, message):
    response = write_error_response(status, message)
    body = response.get_data(as_text=True)
    assert response.status_code == status
    assert response.headers["Content-Type"] == "application/json"
    assert '"error":true' in body
    assert f'"message":"{message}"' in body
    assert f'"status":{status}' in body