[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "facturacion-sri"
version = "1.0.0"
description = "Electronic invoicing helpers for Ecuador's SRI: configuration, access keys and a small WSGI API"
requires-python = ">=3.10"
keywords = ["sri", "ecuador", "factura", "facturacion electronica", "clave de acceso", "wsgi"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Web Environment",
    "Intended Audience :: Developers",
    "Intended Audience :: Financial and Insurance Industry",
    "Natural Language :: Spanish",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: WSGI :: Application",
    "Topic :: Office/Business :: Financial :: Accounting",
]
dependencies = [
    "werkzeug",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
facturacion-sri = "facturacion_sri.server:main"

[tool.hatch.build.targets.wheel]
packages = ["facturacion_sri"]

[tool.hatch.build.targets.sdist]
include = [
    "facturacion_sri",
    "tests",
]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
