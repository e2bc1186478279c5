"""Routers package for the resort API."""

from resort.server.routers.admin import router as admin_router
from resort.server.routers.chat import router as chat_router
from resort.server.routers.health import router as health_router
from resort.server.routers.knowledge import router as knowledge_router
from resort.server.routers.payments import router as payments_router

__all__ = [
    "admin_router",
    "chat_router",
    "health_router",
    "knowledge_router",
    "payments_router",
]
