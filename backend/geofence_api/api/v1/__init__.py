"""API v1 router aggregation."""
from fastapi import APIRouter

from geofence_api.api.v1.geofences import router as geofences_router

router = APIRouter()

router.include_router(geofences_router)
