"""Admin API middleware for aiohttp - checks the admin bearer token."""
import hmac
import logging
from typing import Callable

from aiohttp import web

from studio.keys import SETTINGS_KEY

logger = logging.getLogger(__name__)


def extract_bearer_token(header: str | None) -> str | None:
    """Token from an ``Authorization: Bearer <token>`` header."""
    if not header:
        return None
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


@web.middleware
async def admin_api_auth_middleware(request: web.Request, handler: Callable):
    """Protect /api/admin/* endpoints.

    Session management lives with the identity provider in front of this
    service; here only the shared admin token is checked, and only when one
    is configured.
    """
    if not request.path.startswith('/api/admin/'):
        return await handler(request)

    expected = request.app[SETTINGS_KEY].admin_api_token
    if not expected:
        return await handler(request)

    token = extract_bearer_token(request.headers.get('Authorization'))
    if not token or not hmac.compare_digest(token.encode(), expected.encode()):
        logger.warning(f"Rejected admin request to {request.path} from {request.remote}")
        return web.json_response(
            {"error": "Unauthorized", "message": "Admin token required", "retryable": False},
            status=401,
        )

    return await handler(request)
