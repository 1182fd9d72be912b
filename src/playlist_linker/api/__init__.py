"""HTTP routers for the Playlist Linker service."""

from .auth import router as auth_router
from .webhook import router as webhook_router

__all__ = ["auth_router", "webhook_router"]
