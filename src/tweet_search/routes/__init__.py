"""HTTP routes."""

from .dialog import dialog_routes
from .health import health_routes
from .ui import ui_routes

__all__ = [
    "dialog_routes",
    "health_routes",
    "ui_routes",
]
