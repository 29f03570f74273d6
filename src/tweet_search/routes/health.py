"""Liveness endpoint."""

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from .. import __version__


async def health(request: Request) -> JSONResponse:
    """Report liveness and whether a search token is configured.

    No MCP server is launched here; searches start their own.
    """
    settings = request.app.state.settings
    return JSONResponse(
        {
            "status": "ok",
            "version": __version__,
            "tokenConfigured": bool(settings.token),
        }
    )


health_routes = [
    Route("/health", health, methods=["GET"]),
]
