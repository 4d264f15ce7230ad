"""HTTP server: routing, static frontend and startup."""

from __future__ import annotations

import argparse
import logging
import mimetypes
from pathlib import Path
from typing import Any, Callable, Iterable, Optional

from werkzeug.security import safe_join
from werkzeug.serving import run_simple
from werkzeug.wrappers import Request, Response

from facturacion_sri.handlers import (
    handle_factura_by_id,
    handle_facturas,
    handle_health,
    handle_root,
)
from facturacion_sri.middleware import middleware_chain
from facturacion_sri.storage import FacturaStorage

logger = logging.getLogger(__name__)

DEFAULT_STATIC_DIR = "./web/dist"

Handler = Callable[[Request], Response]

_DEV_PAGE = """
<!DOCTYPE html>
<html>
<head>
    <title>Facturación SRI - Desarrollo</title>
    <style>
        body { font-family: Arial, sans-serif; margin: 40px; background: #f5f5f5; }
        .container { background: white; padding: 30px; border-radius: 8px; }
        .api-list { background: #ecf0f1; padding: 15px; border-radius: 5px; margin: 20px 0; }
        .endpoint { margin: 5px 0; font-family: monospace; }
    </style>
</head>
<body>
    <div class="container">
        <h1>Sistema de Facturación Electrónica SRI</h1>
        <h2>Servidor API Activo</h2>
        <div>
            <h3>Frontend en Desarrollo</h3>
            <p>Para ver la aplicación web completa:</p>
            <ol>
                <li>Abre otra terminal</li>
                <li>Ejecuta: <code>cd web && pnpm dev</code></li>
                <li>Visita: <a href="http://localhost:4321">http://localhost:4321</a></li>
            </ol>
        </div>
        <div class="api-list">
            <h3>Endpoints API Disponibles</h3>
            <div class="endpoint">GET /health - Health check</div>
            <div class="endpoint">GET /api/facturas - Listar facturas</div>
            <div class="endpoint">POST /api/facturas - Crear factura</div>
            <div class="endpoint">GET /api/facturas/{id} - Obtener factura</div>
            <div class="endpoint">GET /api - Documentación</div>
        </div>
        <p><strong>Modo:</strong> Desarrollo | <strong>Puerto:</strong> {port}</p>
    </div>
</body>
</html>
"""


def _not_found() -> Response:
    return Response("404 page not found\n", status=404, mimetype="text/plain")


def _serve_file(path: Path) -> Response:
    mimetype = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    return Response(path.read_bytes(), status=200, mimetype=mimetype)


class Server:
    """Routes requests to the API handlers and the static frontend."""

    def __init__(
        self,
        port: str | int = "8080",
        storage: Any = None,
        static_dir: str | Path = DEFAULT_STATIC_DIR,
    ) -> None:
        self.port = str(port)
        self.storage = storage if storage is not None else FacturaStorage()
        self.static_dir = Path(static_dir)

        self._exact: dict[str, Handler] = {
            "/health": handle_health,
            "/api/facturas": lambda request: handle_facturas(request, self.storage),
            "/api": handle_root,
        }
        self._prefixes: dict[str, Handler] = {
            "/api/facturas/": lambda request: handle_factura_by_id(request, self.storage),
        }
        self._setup_static_files()
        self._app = middleware_chain(self._wsgi)

    def _setup_static_files(self) -> None:
        if not self.static_dir.is_dir():
            logger.warning(
                "Frontend no encontrado en %s. Ejecuta 'cd web && pnpm build' "
                "para generar archivos estáticos",
                self.static_dir,
            )
            return
        self._prefixes["/"] = self._handle_static
        logger.info("Archivos estáticos configurados desde: %s", self.static_dir)

    def _handle_static(self, request: Request) -> Response:
        path = request.path
        if path.startswith("/api/"):
            return _not_found()

        relative = path.lstrip("/")
        joined = safe_join(str(self.static_dir), relative) if relative else str(self.static_dir)
        if joined is not None:
            target = Path(joined)
            if target.is_dir():
                target = target / "index.html"
            if target.is_file():
                return _serve_file(target)

        index = self.static_dir / "index.html"
        if index.is_file():
            return _serve_file(index)
        return Response(
            _DEV_PAGE.replace("{port}", self.port),
            status=200,
            mimetype="text/html",
        )

    def dispatch(self, request: Request) -> Response:
        """Choose the handler for a request: exact path first, then longest prefix."""
        path = request.path
        handler = self._exact.get(path)
        if handler is None:
            matches = [prefix for prefix in self._prefixes if path.startswith(prefix)]
            if not matches:
                return _not_found()
            handler = self._prefixes[max(matches, key=len)]
        return handler(request)

    def _wsgi(self, environ: dict, start_response: Callable[..., Any]) -> Iterable[bytes]:
        response = self.dispatch(Request(environ))
        return response(environ, start_response)

    def router(self) -> Callable[[dict, Callable[..., Any]], Iterable[bytes]]:
        """The WSGI application with middleware applied."""
        return self._app

    def start(self) -> None:
        """Serve on all interfaces at the configured port until interrupted."""
        logger.info("Servidor iniciado en http://localhost:%s", self.port)
        logger.info("Health check: http://localhost:%s/health", self.port)
        logger.info("Frontend: http://localhost:%s/ (requiere build)", self.port)
        logger.info("API docs: http://localhost:%s/api", self.port)
        logger.info("Desarrollo frontend: cd web && pnpm dev (puerto 4321)")
        run_simple("0.0.0.0", int(self.port), self._app, threaded=True)

    def __call__(self, environ: dict, start_response: Callable[..., Any]) -> Iterable[bytes]:
        return self._app(environ, start_response)


def main(argv: Optional[list[str]] = None) -> int:
    """Start the HTTP server."""
    parser = argparse.ArgumentParser(description="Servidor de facturación electrónica SRI")
    parser.add_argument("--port", default="8080", help="puerto de escucha")
    parser.add_argument(
        "--static-dir", default=DEFAULT_STATIC_DIR, help="directorio del frontend compilado"
    )
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")
    Server(args.port, static_dir=args.static_dir).start()
    return 0