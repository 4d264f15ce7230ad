"""SRI electronic invoicing: configuration, access keys and a WSGI API with in-memory storage."""

__version__ = "1.0.0"

__all__ = ["__version__"]