"""Mercado Livre REST API access."""

from .client import MarketplaceClient

__all__ = ["MarketplaceClient"]
