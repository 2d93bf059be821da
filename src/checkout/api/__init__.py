"""Checkout domain API package."""

from checkout.api.routes import checkout_router

__all__ = ["checkout_router"]
