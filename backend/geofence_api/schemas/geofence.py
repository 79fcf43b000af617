"""Pydantic schemas for geofence zones.

Request schemas only check the JSON shape; geometric and format rules are
enforced by ``geofence_api.utils.validation`` so every violation is reported
with a path-qualified message.
"""
from datetime import datetime
from typing import Any, List, Literal, Optional
from uuid import UUID
from pydantic import BaseModel
from pydantic.alias_generators import to_camel

AlertType = Literal["Enter", "Exit", "Both"]


class CamelModel(BaseModel):
    """Base schema exposing camelCase keys on the wire."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


# --- Style ---
class StyleSchema(CamelModel):
    """Zone display style."""
    fill_color: str
    stroke_color: str
    fill_opacity: float
    stroke_width: float


class StyleUpdate(CamelModel):
    """Partial style update."""
    fill_color: Optional[str] = None
    stroke_color: Optional[str] = None
    fill_opacity: Optional[float] = None
    stroke_width: Optional[float] = None


# --- Shapes ---
class CircleSchema(CamelModel):
    """Circle given as a [longitude, latitude] center and a radius."""
    center: List[float]
    radius: float


class MultiPolygonSchema(BaseModel):
    """GeoJSON MultiPolygon as stored and returned."""
    type: Literal["MultiPolygon"] = "MultiPolygon"
    coordinates: List[List[List[List[float]]]]


# --- Geofence ---
class GeofenceCreate(CamelModel):
    """Geofence creation schema."""
    name: str
    alert_type: str
    categories: List[str]
    style: StyleSchema
    # Untrusted GeoJSON FeatureCollection of Polygon features
    geojson: Optional[dict[str, Any]] = None
    circles: Optional[List[dict[str, Any]]] = None


class GeofenceUpdate(CamelModel):
    """Geofence partial update schema.

    A key that is omitted leaves the column untouched; ``geojson: null`` or
    ``circles: null`` clears the stored shape.
    """
    name: Optional[str] = None
    alert_type: Optional[str] = None
    categories: Optional[List[str]] = None
    style: Optional[StyleUpdate] = None
    geojson: Optional[dict[str, Any]] = None
    circles: Optional[List[dict[str, Any]]] = None


class GeofenceResponse(CamelModel):
    """Geofence response schema."""
    id: UUID
    name: str
    alert_type: AlertType
    categories: List[str]
    style: StyleSchema
    polygon_shape: Optional[MultiPolygonSchema] = None
    circles: Optional[List[CircleSchema]] = None
    created_at: datetime
    updated_at: datetime


class GeofenceListResponse(BaseModel):
    """All geofences, newest first."""
    geofences: List[GeofenceResponse]
    total: int
