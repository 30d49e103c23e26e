# API routes
from fastapi import APIRouter
from app.api.patients import router as patients_router
from app.api.quota import router as quota_router
from app.api.deliveries import router as deliveries_router
from app.api.notifications import router as notifications_router

# Combine all routers
router = APIRouter()
router.include_router(patients_router)
router.include_router(quota_router)
router.include_router(deliveries_router)
router.include_router(notifications_router)

__all__ = ["router"]
