# app/routers/v1/__init__.py

from app.routers.v1.user_action import router as user_action_router

__all__ = [
    "user_action_router",
]
