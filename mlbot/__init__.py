"""mlbot - Mercado Livre question auto-responder."""

__version__ = "0.1.0"
