"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Auth is applied at the include_router level using FastAPI's
dependencies parameter, so no protected handler can run (or touch the
database) without a verified token. Health and auth routers are open.
"""

from fastapi import APIRouter, Depends

from tasklist.api.auth import router as auth_router
from tasklist.api.health import router as health_router
from tasklist.api.todos import router as todos_router
from tasklist.auth.dependencies import get_current_user

# All protected routers require authentication
_auth = [Depends(get_current_user)]

api_router = APIRouter()

# Open routes, no auth required
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])

# Protected routes require a valid bearer token
api_router.include_router(todos_router, tags=["todos"], dependencies=_auth)
