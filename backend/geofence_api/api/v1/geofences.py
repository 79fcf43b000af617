"""Geofence API endpoints."""
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from geofence_api.database import get_db
from geofence_api.schemas.geofence import (
    GeofenceCreate,
    GeofenceListResponse,
    GeofenceResponse,
    GeofenceUpdate,
)
from geofence_api.services.geofence_service import GeofenceService
from geofence_api.services.geofence_store import GeofenceStore

router = APIRouter(prefix="/geofences", tags=["Geofences"])


def get_geofence_service(db: AsyncSession = Depends(get_db)) -> GeofenceService:
    """Build a request-scoped service with its own logger."""
    return GeofenceService(
        GeofenceStore(db),
        logging.getLogger("geofence_api.geofences"),
    )


@router.post("", response_model=GeofenceResponse, status_code=status.HTTP_201_CREATED)
async def create_geofence(
    data: GeofenceCreate,
    service: GeofenceService = Depends(get_geofence_service),
):
    """
    Create a new geofence.

    At least one of `geojson` (a FeatureCollection of Polygons) or a
    non-empty `circles` list is required. Returns 409 if the name is taken.
    """
    return await service.create(data)


@router.get("", response_model=GeofenceListResponse)
async def list_geofences(service: GeofenceService = Depends(get_geofence_service)):
    """List all geofences, newest first."""
    return await service.list_all()


@router.get("/{geofence_id}", response_model=GeofenceResponse)
async def get_geofence(
    geofence_id: UUID,
    service: GeofenceService = Depends(get_geofence_service),
):
    """Get a geofence by ID."""
    return await service.get(geofence_id)


@router.patch("/{geofence_id}", response_model=GeofenceResponse)
async def update_geofence(
    geofence_id: UUID,
    data: GeofenceUpdate,
    service: GeofenceService = Depends(get_geofence_service),
):
    """
    Partially update a geofence.

    Omitted keys are left unchanged; `"geojson": null` removes the polygon
    shape and `"circles": null` (or `[]`) removes all circles.
    """
    return await service.update(geofence_id, data)


@router.delete("/{geofence_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_geofence(
    geofence_id: UUID,
    service: GeofenceService = Depends(get_geofence_service),
):
    """Delete a geofence."""
    await service.delete(geofence_id)
    return None
