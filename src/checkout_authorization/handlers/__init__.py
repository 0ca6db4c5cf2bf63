"""Checkout entry points."""

from checkout_authorization.handlers.checkout import build_clients, open_checkout

__all__ = ["build_clients", "open_checkout"]
