"""API route handlers."""
from . import clients, metrics

__all__ = ["clients", "metrics"]
