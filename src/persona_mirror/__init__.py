"""Recover messages from chat exports and build personas from them."""

__version__ = "0.1.0"
