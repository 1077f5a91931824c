from fastapi import APIRouter

from .health import router as health_router
from .levels import router as levels_router
from .login import router as login_router
from .tasks import router as tasks_router

# Main API router with /api prefix
router = APIRouter(prefix="/api")
router.include_router(login_router)
router.include_router(levels_router)
router.include_router(tasks_router)

# Root-level routers (no /api prefix), mounted separately in main.py
# - health_router: /health
