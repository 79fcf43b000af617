"""Rebuild the public zone representation from a stored ``geofences`` row."""
import json
import logging
from typing import Any, Mapping, Optional

from geofence_api.schemas.geofence import GeofenceResponse

_default_logger = logging.getLogger(__name__)


def _decode_geojson(value: Any) -> Optional[dict]:
    """ST_AsGeoJSON output arrives as text from asyncpg; accept decoded dicts too."""
    if value is None:
        return None
    if isinstance(value, (str, bytes)):
        return json.loads(value)
    return dict(value)


def map_row(row: Mapping[str, Any], logger: Optional[logging.Logger] = None) -> GeofenceResponse:
    """Map a raw row to a ``GeofenceResponse``.

    ``polygonShape`` is present only when the geometry column is non-null.
    ``circles`` is present only when centers and radii are both non-null and
    have the same length; a length mismatch drops the circles and logs a
    ``circle_data_mismatch`` warning instead of pairing them wrongly.
    """
    logger = logger or _default_logger

    view: dict[str, Any] = {
        "id": row["id"],
        "name": row["name"],
        "alert_type": row["alert_type"],
        "categories": list(row["categories"] or []),
        "style": {
            "fill_color": row["fill_color"],
            "stroke_color": row["stroke_color"],
            "fill_opacity": row["fill_opacity"],
            "stroke_width": row["stroke_width"],
        },
        "created_at": row["created_at"],
        "updated_at": row["updated_at"],
    }

    polygon_shape = _decode_geojson(row.get("geometry"))
    if polygon_shape is not None:
        view["polygon_shape"] = polygon_shape

    centers_geometry = _decode_geojson(row.get("circle_centers"))
    radii = row.get("circle_radii")
    if centers_geometry is not None and radii is not None:
        centers = centers_geometry.get("coordinates") or []
        if len(centers) == len(radii):
            view["circles"] = [
                {"center": center, "radius": radius} for center, radius in zip(centers, radii)
            ]
        else:
            logger.warning(
                "circle_data_mismatch: zone %s has %d circle centers but %d radii; circles omitted",
                row["id"],
                len(centers),
                len(radii),
            )

    return GeofenceResponse.model_validate(view)
