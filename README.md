# facturacion-sri

Building blocks for electronic invoicing under the rules of Ecuador's tax
authority (SRI):

- **Configuration** (`facturacion_sri.config`): the issuing company, the
  environment (test or production), the signing certificate, SRI connection
  settings and the local database, loaded from a JSON file and validated.
- **Access keys** (*claves de acceso*): the 49-character key every electronic
  document carries, closed by a modulo-11 check digit.
- **An HTTP API** (`facturacion_sri.server`) served as a WSGI application,
  with a health check, a self-describing index and an in-memory invoice
  store.

## Running the server

```
facturacion-sri
```

starts the server on all interfaces, port 8080. Options:

- `--port PORT` – port to listen on (default `8080`).
- `--static-dir DIR` – directory holding a built web frontend (default
  `./web/dist`).

Routes:

| Method | Path                 | Purpose                                        |
|--------|----------------------|------------------------------------------------|
| GET    | `/health`            | Status, timestamp, version and service name    |
| GET    | `/api`               | Description of the API and an example request  |
| GET    | `/api/facturas`      | List stored invoices (without their XML)       |
| POST   | `/api/facturas`      | Create an invoice (see below)                  |
| GET    | `/api/facturas/{id}` | One invoice; `?includeXML=true` adds its XML   |

Every API response is JSON. Errors have the shape
`{"error": true, "message": "...", "status": <code>}`; a wrong method gives
405, an unknown invoice 404. All responses carry permissive CORS headers,
and `OPTIONS` preflight requests are answered directly with an empty body.
Each request is logged with method, path, status, duration and remote
address through the `logging` module.

If the static directory exists, any other path is served from it, falling
back to its `index.html` (for client-side routing), and to a small
development page when there is no `index.html`. Paths under `/api/` that
match no route give 404.

`Server` is itself a WSGI application, so it can be mounted under any WSGI
server:

```python
from facturacion_sri.server import Server

app = Server(port="8080", static_dir="./web/dist")
```

A `storage` argument accepts any object with `store`, `get`, `get_all`,
`next_id` and `count` methods; by default a thread-safe in-memory
`FacturaStorage` is used. `LoggingFacturaStorage` wraps another store and
logs every operation.

### Creating invoices

The package does not itself know how to turn a request body into an
invoice. `POST /api/facturas` looks up a callable in the WSGI environ under
the key `facturacion_sri.handlers.FACTURA_FACTORY_KEY`; without one, it
answers 500 with *"no hay generador de facturas configurado"*. To enable it,
wrap the server and supply your own factory:

```python
from facturacion_sri.handlers import FACTURA_FACTORY_KEY
from facturacion_sri.server import Server

def crear_factura(body: dict):
    ...  # build and return an invoice; raise ValueError on bad input

server = Server()

def app(environ, start_response):
    environ[FACTURA_FACTORY_KEY] = crear_factura
    return server(environ, start_response)
```

The factory receives the JSON body without its `includeXML` field. A
`ValueError` becomes a 400 response. The created invoice is stored under an
id of the form `FAC-000001` and returned with status 201. If the returned
object has a `to_dict()` method it is used for the JSON form; when
`includeXML` is true, or `?includeXML=true` is passed on lookup, its
`generar_xml()` method provides the XML.

### What the package does not do

There is no database storage (invoices live in memory and are lost on
restart), no client or customer records, no PDF output, no XML signing, and
no communication with the SRI web services. The configuration holds the
settings such features would use, but nothing in the package acts on them.

## Configuration

```json
{
  "empresa": {
    "razonSocial": "EMPRESA DEMO S.A.",
    "ruc": "1234567890001",
    "establecimiento": "001",
    "puntoEmision": "001",
    "direccion": "Av. Principal 123"
  },
  "ambiente": {
    "codigo": "1",
    "descripcion": "Ambiente de Pruebas",
    "tipoEmision": "1"
  }
}
```

```python
from facturacion_sri.config import ConfigError, cargar_configuracion

try:
    config = cargar_configuracion("config.json")
except ConfigError as exc:
    print(f"Configuración inválida: {exc}")
```

`cargar_configuracion` returns a `FacturacionConfig` made of `EmpresaConfig`,
`AmbienteConfig`, `CertificadoConfig`, `SRIConfig` and `DatabaseConfig`.
`FacturacionConfig.from_dict()` and `to_dict()` convert to and from the JSON
form shown above.

`validar_configuracion()` requires a company name, a 13-character RUC, an
establishment, an emission point and an environment code of `"1"` (test) or
`"2"` (production), raising `ConfigError` otherwise. It then calls
`aplicar_valores_por_defecto()`, which fills unset settings: a 30-second SRI
timeout, 3 retries, the default signature policy id, `./facturacion.db` as
database path with 10 connections, and the reception and authorisation
endpoints matching the environment.

`configuracion_por_defecto()` returns a ready-made development
configuration for the test environment.

## Access keys

```python
from datetime import date

from facturacion_sri.config import (
    ContadorSecuencial,
    configuracion_por_defecto,
    generar_clave_acceso,
    validar_clave_acceso,
)

config = configuracion_por_defecto()
contador = ContadorSecuencial()

clave = generar_clave_acceso(config, contador, date(2025, 6, 27), "12345678")
assert len(clave) == 49
validar_clave_acceso(clave)  # raises ConfigError if the key is malformed
```

The key is the issue date (`ddmmyyyy`), document type `01` (invoice), RUC,
environment code, establishment and emission point, a nine-digit sequence
number, an eight-digit numeric code and the emission type, followed by the
check digit. Omitted arguments default to today's date, a shared
module-level counter and a code taken from the current time.

`ContadorSecuencial.siguiente()` increments the counter and returns the new
value zero-padded to nine digits (a counter created with the default start
of 1 first returns `"000000002"`); it is safe to share between threads.
`calcular_digito_verificador()` computes the modulo-11 check digit on its
own, and `validar_clave_acceso()` rejects keys that are not 49 characters
long or whose last digit does not match.

## Running the tests

Install the `test` extra and run `pytest` from the project directory.