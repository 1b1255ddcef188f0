"""API package initialization."""

from offplan.api.sync import router as sync_router

__all__ = [
    "sync_router",
]
