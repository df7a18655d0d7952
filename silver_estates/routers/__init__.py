"""
API route handlers for the remote store service.
"""

from .auth import router as auth_router
from .tables import router as tables_router

__all__ = ["auth_router", "tables_router"]
