"""aiohttp middlewares."""
from studio.middlewares.admin_api import admin_api_auth_middleware
from studio.middlewares.error_handler import error_middleware

__all__ = ["admin_api_auth_middleware", "error_middleware"]
