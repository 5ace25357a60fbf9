"""API route aggregation.

All routers registered here get mounted in main.py under /api/v1.

Learn: Authentication is applied per route inside the users router
(register, login and refresh-token must stay open), so nothing is
attached at the include_router level here.
"""

from fastapi import APIRouter

from videotube.api.health import router as health_router
from videotube.api.users import router as users_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(users_router, tags=["users"])
