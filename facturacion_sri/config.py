"""System configuration: issuer data, environment, SRI settings and access keys."""

from __future__ import annotations

import json
import threading
import time
from dataclasses import dataclass, field, fields
from datetime import date, datetime
from pathlib import Path
from typing import Any

_KEY = "json"
_SECTION = "section"

_POLICY_ID_DEFAULT = "https://www.sri.gob.ec/politica-de-firma"
_ENDPOINTS = {
    "1": (
        "https://celcer.sri.gob.ec/comprobantes-electronicos-ws/RecepcionComprobantesOffline",
        "https://celcer.sri.gob.ec/comprobantes-electronicos-ws/AutorizacionComprobantesOffline",
    ),
    "2": (
        "https://cel.sri.gob.ec/comprobantes-electronicos-ws/RecepcionComprobantesOffline",
        "https://cel.sri.gob.ec/comprobantes-electronicos-ws/AutorizacionComprobantesOffline",
    ),
}


class ConfigError(Exception):
    """Raised when the configuration cannot be read, parsed or validated."""


def _str(key: str) -> Any:
    return field(default="", metadata={_KEY: key})


def _int(key: str) -> Any:
    return field(default=0, metadata={_KEY: key})


@dataclass
class EmpresaConfig:
    """Issuing company."""

    razon_social: str = _str("razonSocial")
    ruc: str = _str("ruc")
    establecimiento: str = _str("establecimiento")
    punto_emision: str = _str("puntoEmision")
    direccion: str = _str("direccion")


@dataclass
class AmbienteConfig:
    """Environment: code "1" is testing, "2" is production."""

    codigo: str = _str("codigo")
    descripcion: str = _str("descripcion")
    tipo_emision: str = _str("tipoEmision")


@dataclass
class CertificadoConfig:
    """Location and password of the digital certificate."""

    ruta_archivo: str = _str("rutaArchivo")
    password: str = _str("password")


@dataclass
class SRIConfig:
    """Settings for the SRI web services."""

    timeout_segundos: int = _int("timeoutSegundos")
    max_reintentos: int = _int("maxReintentos")
    policy_id: str = _str("policyID")
    policy_hash: str = _str("policyHash")
    endpoint_recepcion: str = _str("endpointRecepcion")
    endpoint_autorizacion: str = _str("endpointAutorizacion")


@dataclass
class DatabaseConfig:
    """Database location and connection limit."""

    ruta: str = _str("ruta")
    max_conexiones: int = _int("maxConexiones")


def _section(key: str, cls: type) -> Any:
    return field(default_factory=cls, metadata={_KEY: key, _SECTION: cls})


def _section_from_dict(cls: type, data: Any, path: str) -> Any:
    if data is None:
        return cls()
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: se esperaba un objeto, se obtuvo {type(data).__name__}")
    kwargs: dict[str, Any] = {}
    for f in fields(cls):
        key = f.metadata[_KEY]
        value = data.get(key)
        if value is None:
            continue
        if isinstance(f.default, int):
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(f"{path}.{key}: se esperaba un entero, se obtuvo {value!r}")
        elif not isinstance(value, str):
            raise ConfigError(f"{path}.{key}: se esperaba una cadena, se obtuvo {value!r}")
        kwargs[f.name] = value
    return cls(**kwargs)


def _section_to_dict(section: Any) -> dict[str, Any]:
    return {f.metadata[_KEY]: getattr(section, f.name) for f in fields(section)}


@dataclass
class FacturacionConfig:
    """Complete system configuration."""

    empresa: EmpresaConfig = _section("empresa", EmpresaConfig)
    ambiente: AmbienteConfig = _section("ambiente", AmbienteConfig)
    certificado: CertificadoConfig = _section("certificado", CertificadoConfig)
    sri: SRIConfig = _section("sri", SRIConfig)
    database: DatabaseConfig = _section("database", DatabaseConfig)

    @classmethod
    def from_dict(cls, data: Any) -> FacturacionConfig:
        """Build a configuration from its JSON object form."""
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigError(f"se esperaba un objeto, se obtuvo {type(data).__name__}")
        kwargs = {
            f.name: _section_from_dict(f.metadata[_SECTION], data.get(f.metadata[_KEY]), f.metadata[_KEY])
            for f in fields(cls)
        }
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON object form of this configuration."""
        return {f.metadata[_KEY]: _section_to_dict(getattr(self, f.name)) for f in fields(self)}


def cargar_configuracion(archivo_config: str | Path) -> FacturacionConfig:
    """Read, parse and validate a JSON configuration file."""
    try:
        text = Path(archivo_config).read_text(encoding="utf-8")
    except OSError as err:
        raise ConfigError(
            f"error leyendo archivo de configuración {archivo_config}: {err}"
        ) from err
    try:
        config = FacturacionConfig.from_dict(json.loads(text))
    except (json.JSONDecodeError, ConfigError) as err:
        raise ConfigError(f"error parseando JSON de configuración: {err}") from err
    try:
        validar_configuracion(config)
    except ConfigError as err:
        raise ConfigError(f"configuración inválida: {err}") from err
    return config


def validar_configuracion(config: FacturacionConfig) -> FacturacionConfig:
    """Check required fields, then fill in defaults for optional ones."""
    empresa = config.empresa
    if not empresa.razon_social:
        raise ConfigError("razón social de la empresa es requerida")
    if not empresa.ruc:
        raise ConfigError("RUC de la empresa es requerido")
    if len(empresa.ruc) != 13:
        raise ConfigError(f"RUC debe tener exactamente 13 dígitos, tiene {len(empresa.ruc)}")
    if not empresa.establecimiento:
        raise ConfigError("establecimiento es requerido")
    if not empresa.punto_emision:
        raise ConfigError("punto de emisión es requerido")

    codigo = config.ambiente.codigo
    if not codigo:
        raise ConfigError("código de ambiente es requerido")
    if codigo not in ("1", "2"):
        raise ConfigError("código de ambiente debe ser '1' (pruebas) o '2' (producción)")

    aplicar_valores_por_defecto(config)
    return config


def aplicar_valores_por_defecto(config: FacturacionConfig) -> FacturacionConfig:
    """Fill unset optional settings with their defaults, in place."""
    sri = config.sri
    if sri.timeout_segundos == 0:
        sri.timeout_segundos = 30
    if sri.max_reintentos == 0:
        sri.max_reintentos = 3
    if not sri.policy_id:
        sri.policy_id = _POLICY_ID_DEFAULT

    db = config.database
    if not db.ruta:
        db.ruta = "./facturacion.db"
    if db.max_conexiones == 0:
        db.max_conexiones = 10

    recepcion, autorizacion = _ENDPOINTS["1" if config.ambiente.codigo == "1" else "2"]
    if not sri.endpoint_recepcion:
        sri.endpoint_recepcion = recepcion
    if not sri.endpoint_autorizacion:
        sri.endpoint_autorizacion = autorizacion
    return config


def configuracion_por_defecto() -> FacturacionConfig:
    """Return the development configuration used when no file is present."""
    config = FacturacionConfig(
        empresa=EmpresaConfig(
            razon_social="EMPRESA DEMO S.A.",
            ruc="1234567890001",
            establecimiento="001",
            punto_emision="001",
            direccion="Av. Amazonas y Naciones Unidas",
        ),
        ambiente=AmbienteConfig(
            codigo="1",
            descripcion="Ambiente de Pruebas",
            tipo_emision="1",
        ),
        sri=SRIConfig(timeout_segundos=30, max_reintentos=3, policy_id=_POLICY_ID_DEFAULT),
        database=DatabaseConfig(ruta="./facturacion.db", max_conexiones=10),
    )
    return aplicar_valores_por_defecto(config)


class ContadorSecuencial:
    """Thread-safe counter that hands out nine-digit sequence numbers."""

    def __init__(self, inicial: int = 1) -> None:
        self._valor = inicial
        self._lock = threading.Lock()

    def siguiente(self) -> str:
        """Increment the counter and return the new value, zero-padded to 9 digits."""
        with self._lock:
            self._valor += 1
            valor = self._valor
        return f"{valor:09d}"


_contador_global = ContadorSecuencial()


def calcular_digito_verificador(clave: str) -> int:
    """Modulo-11 check digit; weights run 7..2 from the left, non-digits count as 0."""
    suma = 0
    factor = 7
    for caracter in clave:
        digito = int(caracter) if caracter in "0123456789" else 0
        suma += digito * factor
        factor -= 1
        if factor < 2:
            factor = 7
    digito_verificador = 11 - suma % 11
    if digito_verificador == 10:
        return 1
    if digito_verificador == 11:
        return 0
    return digito_verificador


def generar_clave_acceso(
    config: FacturacionConfig,
    contador: ContadorSecuencial | None = None,
    fecha: date | datetime | None = None,
    codigo_numerico: int | str | None = None,
) -> str:
    """Build an invoice access key from the configuration and a fresh sequence number."""
    fecha = fecha or datetime.now()
    contador = contador or _contador_global
    if codigo_numerico is None:
        codigo_numerico = time.time_ns() % 100_000_000
    if isinstance(codigo_numerico, int):
        codigo_numerico = f"{codigo_numerico:08d}"

    empresa = config.empresa
    clave_sin_dv = "".join(
        (
            fecha.strftime("%d%m%Y"),
            "01",
            empresa.ruc,
            config.ambiente.codigo,
            empresa.establecimiento + empresa.punto_emision,
            contador.siguiente(),
            codigo_numerico,
            config.ambiente.tipo_emision,
        )
    )
    return clave_sin_dv + str(calcular_digito_verificador(clave_sin_dv))


def validar_clave_acceso(clave_acceso: str) -> None:
    """Raise ConfigError unless the key has 49 characters and a correct check digit."""
    if len(clave_acceso) != 49:
        raise ConfigError(
            f"clave de acceso debe tener 49 dígitos, tiene {len(clave_acceso)}"
        )
    clave_sin_dv, dv = clave_acceso[:48], clave_acceso[48:]
    if dv not in "0123456789":
        raise ConfigError(f"dígito verificador inválido: {dv!r}")
    esperado = calcular_digito_verificador(clave_sin_dv)
    actual = int(dv)
    if actual != esperado:
        raise ConfigError(
            f"dígito verificador incorrecto: esperado {esperado}, obtenido {actual}"
        )