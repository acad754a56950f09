"""Access control API routes."""

from services.access_control.routes.acs import router as acs_router

__all__ = [
    "acs_router",
]
