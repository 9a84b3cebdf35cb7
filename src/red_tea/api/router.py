"""Main API router aggregation."""

from fastapi import APIRouter

from red_tea.api.admin import router as admin_router
from red_tea.api.files import router as files_router
from red_tea.api.posts import router as posts_router
from red_tea.api.users import router as users_router
from red_tea.api.webhooks import router as webhooks_router

# Main API router
api_router = APIRouter(prefix="/api")

# Include all sub-routers
api_router.include_router(users_router)
api_router.include_router(posts_router)
api_router.include_router(admin_router)
api_router.include_router(files_router)
api_router.include_router(webhooks_router)
