"""Services exports."""
from geofence_api.services.geofence_service import GeofenceService
from geofence_api.services.geofence_store import GeofenceStore
from geofence_api.services.row_mapper import map_row
from geofence_api.services.statements import build_insert, build_update

__all__ = [
    "GeofenceService",
    "GeofenceStore",
    "map_row",
    "build_insert",
    "build_update",
]
