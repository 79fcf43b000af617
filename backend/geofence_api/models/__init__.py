"""Model exports."""
from geofence_api.models.geofence import Geofence

__all__ = [
    "Geofence",
]
