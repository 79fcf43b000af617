"""Validation of untrusted geofence input.

Every check fails fast: the first violation raises ``ValidationError`` with a
message naming the offending feature, ring and point (in that order) and a
``path`` tuple locating it in the request body. Nothing here touches the
database.
"""
import math
import re
from typing import Any, Mapping, Optional, Sequence

from geofence_api.exceptions import ValidationError

NAME_PATTERN = re.compile(r"^ORG-[a-zA-Z0-9]+-[a-zA-Z0-9]+$")
HEX_COLOR_PATTERN = re.compile(r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$")
ALERT_TYPES = ("Enter", "Exit", "Both")

MIN_RING_POINTS = 4


def _is_number(value: Any) -> bool:
    # bool is an int subclass but never a coordinate
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_coordinate(value: Any) -> bool:
    # ints are never NaN; huge ints are left to the range checks
    return _is_number(value) and not (isinstance(value, float) and math.isnan(value))


def _is_finite_number(value: Any) -> bool:
    if not _is_number(value):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # int beyond double precision
        return False


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _check_ring(ring: Any, feature_index: int, ring_index: int, path: tuple) -> None:
    where = f"ring {ring_index} of feature {feature_index}"

    if not _is_sequence(ring):
        raise ValidationError(f"Ring {ring_index} of feature {feature_index} must be an array", path)

    if len(ring) < MIN_RING_POINTS:
        raise ValidationError(
            f"Ring {ring_index} of feature {feature_index} must have at least "
            f"{MIN_RING_POINTS} points to form a valid polygon",
            path,
        )

    first, last = ring[0], ring[-1]
    if not (_is_sequence(first) and len(first) == 2 and _is_sequence(last) and len(last) == 2):
        raise ValidationError(f"Points in {where} must be [longitude, latitude] arrays", path)

    if first[0] != last[0] or first[1] != last[1]:
        raise ValidationError(
            f"Ring {ring_index} of feature {feature_index} must be closed "
            "(first and last points must be identical)",
            path,
        )

    for point_index, point in enumerate(ring):
        point_path = path + (point_index,)
        label = f"point {point_index} in {where}"

        if not _is_sequence(point) or len(point) != 2:
            raise ValidationError(
                f"Point {point_index} in {where} must be a [longitude, latitude] array", point_path
            )

        longitude, latitude = point
        if not _is_coordinate(longitude):
            raise ValidationError(f"Longitude of {label} must be a number", point_path)
        if not _is_coordinate(latitude):
            raise ValidationError(f"Latitude of {label} must be a number", point_path)

        if not -180 <= longitude <= 180:
            raise ValidationError(f"Longitude of {label} must be between -180 and 180", point_path)
        if not -90 <= latitude <= 90:
            raise ValidationError(f"Latitude of {label} must be between -90 and 90", point_path)


def validate_feature_collection(geojson: Any, path: tuple = ("geojson",)) -> None:
    """Assert that ``geojson`` is a FeatureCollection of well-formed Polygons."""
    if not isinstance(geojson, Mapping):
        raise ValidationError("GeoJSON must be an object", path)

    if geojson.get("type") != "FeatureCollection":
        raise ValidationError("GeoJSON must be a FeatureCollection", path + ("type",))

    features = geojson.get("features")
    if not _is_sequence(features) or len(features) == 0:
        raise ValidationError("GeoJSON must have at least one feature", path + ("features",))

    for feature_index, feature in enumerate(features):
        feature_path = path + ("features", feature_index)

        if not isinstance(feature, Mapping):
            raise ValidationError(f"Feature at index {feature_index} must be an object", feature_path)

        if feature.get("type") != "Feature":
            raise ValidationError(
                f"Feature at index {feature_index} must have type 'Feature'", feature_path + ("type",)
            )

        geometry = feature.get("geometry")
        if not isinstance(geometry, Mapping):
            raise ValidationError(
                f"Feature at index {feature_index} must have a geometry object",
                feature_path + ("geometry",),
            )

        if geometry.get("type") != "Polygon":
            raise ValidationError(
                f"Feature at index {feature_index} must have a Polygon geometry",
                feature_path + ("geometry", "type"),
            )

        rings = geometry.get("coordinates")
        coordinates_path = feature_path + ("geometry", "coordinates")
        if not _is_sequence(rings):
            raise ValidationError(
                f"Feature at index {feature_index} must have coordinates array", coordinates_path
            )

        for ring_index, ring in enumerate(rings):
            _check_ring(ring, feature_index, ring_index, coordinates_path + (ring_index,))


def validate_circles(circles: Any, path: tuple = ("circles",)) -> None:
    """Assert that ``circles`` is a list of ``{center: [lon, lat], radius}``."""
    if not _is_sequence(circles):
        raise ValidationError("Circles must be an array", path)

    for index, circle in enumerate(circles):
        circle_path = path + (index,)

        if not isinstance(circle, Mapping):
            raise ValidationError(f"Circle at index {index} must be an object", circle_path)

        radius = circle.get("radius")
        if not _is_finite_number(radius) or radius <= 0:
            raise ValidationError(
                f"Circle at index {index} must have a positive radius", circle_path + ("radius",)
            )

        center = circle.get("center")
        center_path = circle_path + ("center",)
        if not _is_sequence(center) or len(center) != 2:
            raise ValidationError(
                f"Circle at index {index} must have a center as [longitude, latitude]", center_path
            )

        longitude, latitude = center
        if not (_is_coordinate(longitude) and _is_coordinate(latitude)):
            raise ValidationError(f"Circle at index {index} must have numeric coordinates", center_path)

        if not -180 <= longitude <= 180:
            raise ValidationError(
                f"Circle at index {index} has invalid longitude (must be between -180 and 180)",
                center_path,
            )
        if not -90 <= latitude <= 90:
            raise ValidationError(
                f"Circle at index {index} has invalid latitude (must be between -90 and 90)",
                center_path,
            )


def validate_shapes(polygon_input: Any = None, circle_input: Any = None) -> None:
    """Validate whichever shape inputs are present."""
    if polygon_input is not None:
        validate_feature_collection(polygon_input)
    if circle_input is not None:
        validate_circles(circle_input)


def validate_name(name: Any) -> None:
    if not isinstance(name, str) or not NAME_PATTERN.match(name):
        raise ValidationError("Name must be in format ORG-{type}-{location}", ("name",))


def validate_alert_type(alert_type: Any) -> None:
    if alert_type not in ALERT_TYPES:
        raise ValidationError(
            f"Alert type must be one of {', '.join(ALERT_TYPES)}", ("alertType",)
        )


def validate_categories(categories: Optional[Sequence[Any]]) -> None:
    if not categories:
        raise ValidationError("At least one category is required", ("categories",))
    for index, category in enumerate(categories):
        if not isinstance(category, str) or not category.strip():
            raise ValidationError(
                f"Category at index {index} must be a non-empty string", ("categories", index)
            )


def validate_style(style: Mapping[str, Any]) -> None:
    """Check the style keys that are present (snake_case field names)."""
    fill_opacity = style.get("fill_opacity")
    if fill_opacity is not None and not (_is_finite_number(fill_opacity) and 0 <= fill_opacity <= 1):
        raise ValidationError("Fill opacity must be between 0 and 1", ("style", "fillOpacity"))

    stroke_width = style.get("stroke_width")
    if stroke_width is not None and not (_is_finite_number(stroke_width) and stroke_width > 0):
        raise ValidationError("Stroke width must be greater than 0", ("style", "strokeWidth"))

    for key, label, alias in (
        ("fill_color", "Fill color", "fillColor"),
        ("stroke_color", "Stroke color", "strokeColor"),
    ):
        color = style.get(key)
        if color is not None and not HEX_COLOR_PATTERN.match(color):
            raise ValidationError(
                f"{label} must be a valid hex color (e.g., #FF9900 or #F90)", ("style", alias)
            )
