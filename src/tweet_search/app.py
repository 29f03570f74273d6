"""Tweet Search web application.

Creates the Starlette ASGI application:
- / - Search UI
- /api/dialog - Search endpoint (POST)
- /health - Health check
"""

from __future__ import annotations

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.routing import Route

from .config import Settings, load_settings
from .routes import dialog_routes, health_routes, ui_routes
from .routes.dialog import ConnectionFactory
from .sdk import Connection


def create_app(
    settings: Settings | None = None,
    *,
    connection_factory: ConnectionFactory | None = None,
) -> Starlette:
    """Create the web application.

    Args:
        settings: Settings to use (default: loaded from the environment)
        connection_factory: Builds one Connection per request (default: Connection)

    Returns:
        Configured Starlette application
    """
    routes: list[Route] = []
    routes.extend(health_routes)
    routes.extend(ui_routes)
    routes.extend(dialog_routes)

    # CORS middleware for local development
    middleware = [
        Middleware(
            CORSMiddleware,
            allow_origins=["http://localhost:*", "http://127.0.0.1:*"],
            allow_methods=["*"],
            allow_headers=["*"],
        ),
    ]

    app = Starlette(routes=routes, middleware=middleware)
    app.state.settings = settings or load_settings()
    app.state.connection_factory = connection_factory or Connection
    return app
