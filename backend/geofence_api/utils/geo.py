"""Conversion of validated shape input into canonical storage geometries."""
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence

from geofence_api.exceptions import ValidationError

# Every stored geometry is WGS 84 longitude/latitude
WGS84_SRID = 4326


@dataclass(frozen=True)
class NormalizedShapes:
    """Canonical storage form of a zone's shapes.

    ``centers`` and ``radii`` are either both set with equal length or both None.
    """
    polygon_shape: Optional[dict] = None
    centers: Optional[dict] = None
    radii: Optional[list[float]] = None


def to_multipolygon(feature_collection: Mapping[str, Any]) -> dict:
    """Aggregate Polygon features into one MultiPolygon, keeping feature and ring order."""
    coordinates = []
    for index, feature in enumerate(feature_collection["features"]):
        geometry = feature.get("geometry") or {}
        if geometry.get("type") != "Polygon":
            raise ValidationError(
                "All features must be Polygon features", ("geojson", "features", index, "geometry", "type")
            )
        coordinates.append(geometry["coordinates"])

    return {"type": "MultiPolygon", "coordinates": coordinates}


def to_centers_and_radii(circles: Sequence[Mapping[str, Any]]) -> tuple[dict, list[float]]:
    """Split circles into a MultiPoint of centers and a same-order radius list."""
    centers = []
    radii = []
    for circle in circles:
        centers.append(list(circle["center"]))
        radii.append(float(circle["radius"]))

    return {"type": "MultiPoint", "coordinates": centers}, radii


def normalize_shapes(
    polygon_input: Optional[Mapping[str, Any]] = None,
    circle_input: Optional[Sequence[Mapping[str, Any]]] = None,
) -> NormalizedShapes:
    """Normalize already-validated shape input. An empty circle list yields no circles."""
    polygon_shape = to_multipolygon(polygon_input) if polygon_input is not None else None

    centers = radii = None
    if circle_input:
        centers, radii = to_centers_and_radii(circle_input)

    return NormalizedShapes(polygon_shape=polygon_shape, centers=centers, radii=radii)
