"""HTTP handlers."""
from studio.handlers.api import setup_routes

__all__ = ["setup_routes"]
