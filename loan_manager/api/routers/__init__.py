from fastapi import APIRouter

from loan_manager.api.routers import admin, auth, health, loans

api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(auth.router)
api_router.include_router(loans.router)
api_router.include_router(admin.router)

__all__ = ["api_router"]
