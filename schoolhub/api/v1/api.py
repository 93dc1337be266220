"""API router for version 1."""
from fastapi import APIRouter

from schoolhub.api.v1.endpoints import (
    auth,
    messages,
    notifications,
    realtime_ws,
    users,
)


api_router = APIRouter()
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(notifications.router)
api_router.include_router(messages.router)
api_router.include_router(realtime_ws.router)
