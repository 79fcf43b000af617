"""Geofence write pipeline and read orchestration.

Writes run validate -> normalize -> name pre-check -> build and execute ->
read back and map. The steps are not wrapped in one transaction: the unique
constraint on ``name`` is the authoritative guard, and a violation raised by
the store is reported exactly like a failed pre-check.
"""
import logging
import uuid
from typing import Any, Awaitable, Optional, TypeVar
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from geofence_api.exceptions import ConflictError, NotFoundError, PersistenceError, ValidationError
from geofence_api.schemas.geofence import (
    GeofenceCreate,
    GeofenceListResponse,
    GeofenceResponse,
    GeofenceUpdate,
)
from geofence_api.services.geofence_store import GeofenceStore
from geofence_api.services.row_mapper import map_row
from geofence_api.services.statements import (
    CLEAR,
    FieldUpdate,
    Set,
    build_insert,
    build_update,
    tri_state,
)
from geofence_api.utils.audit import log_audit_event
from geofence_api.utils.geo import normalize_shapes, to_centers_and_radii, to_multipolygon
from geofence_api.utils.validation import (
    validate_alert_type,
    validate_categories,
    validate_circles,
    validate_feature_collection,
    validate_name,
    validate_shapes,
    validate_style,
)

T = TypeVar("T")

NAME_CONSTRAINT = "uq_geofences_name"
UNIQUE_VIOLATION = "23505"

# Scalar request fields that may be changed but never cleared, with their wire names
_REQUIRED_SCALARS = {
    "name": "name",
    "alert_type": "alertType",
    "categories": "categories",
}
_STYLE_FIELDS = {
    "fill_color": "fillColor",
    "stroke_color": "strokeColor",
    "fill_opacity": "fillOpacity",
    "stroke_width": "strokeWidth",
}


def _is_name_conflict(exc: IntegrityError) -> bool:
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    return sqlstate == UNIQUE_VIOLATION or NAME_CONSTRAINT in str(orig)


class GeofenceService:
    """Coordinates validation, normalization and persistence of geofences."""

    def __init__(self, store: GeofenceStore, logger: Optional[logging.Logger] = None):
        self.store = store
        self.logger = logger or logging.getLogger(__name__)

    async def _call(self, action: str, awaitable: Awaitable[T]) -> T:
        try:
            return await awaitable
        except IntegrityError as e:
            if _is_name_conflict(e):
                raise ConflictError("Geofence with this name already exists") from e
            self.logger.error("Failed to %s geofence: %s", action, e, exc_info=True)
            raise PersistenceError(f"Failed to {action} geofence") from e
        except SQLAlchemyError as e:
            self.logger.error("Failed to %s geofence: %s", action, e, exc_info=True)
            raise PersistenceError(f"Failed to {action} geofence") from e

    async def _ensure_name_available(self, name: str, exclude_id: Optional[UUID] = None) -> None:
        is_unique = await self._call("check", self.store.is_name_unique(name, exclude_id))
        if not is_unique:
            raise ConflictError("Geofence with this name already exists")

    async def _read_back(self, zone_id: UUID) -> GeofenceResponse:
        row = await self._call("load", self.store.find_by_id(zone_id))
        if row is None:
            raise NotFoundError(f"Geofence with ID {zone_id} not found")
        return map_row(row, self.logger)

    async def create(self, data: GeofenceCreate) -> GeofenceResponse:
        """Create a geofence from a polygon collection and/or a circle list."""
        validate_name(data.name)
        validate_alert_type(data.alert_type)
        validate_categories(data.categories)
        style = data.style.model_dump()
        validate_style(style)

        if data.geojson is None and not data.circles:
            raise ValidationError("Either geojson or circles must be provided")

        validate_shapes(data.geojson, data.circles)
        shapes = normalize_shapes(data.geojson, data.circles)

        await self._ensure_name_available(data.name)

        zone_id = uuid.uuid4()
        statement = build_insert(
            {
                "name": data.name,
                "alert_type": data.alert_type,
                "categories": list(data.categories),
                **style,
            },
            shapes.polygon_shape,
            shapes.centers,
            shapes.radii,
            zone_id=zone_id,
        )
        await self._call("create", self.store.execute_write(statement))

        log_audit_event(
            "geofence_created",
            details={
                "geofence_id": zone_id,
                "name": data.name,
                "polygons": len(shapes.polygon_shape["coordinates"]) if shapes.polygon_shape else 0,
                "circles": len(shapes.radii) if shapes.radii else 0,
            },
            logger=self.logger,
        )
        return await self._read_back(zone_id)

    def _collect_update_fields(self, payload: dict[str, Any]) -> dict[str, FieldUpdate]:
        """Validate a partial payload and translate it into tri-state column updates."""
        fields: dict[str, FieldUpdate] = {}

        for key, alias in _REQUIRED_SCALARS.items():
            update = tri_state(payload, key)
            if update is CLEAR:
                raise ValidationError(f"{alias} cannot be null", (alias,))
            if isinstance(update, Set):
                fields[key] = update

        if "name" in fields:
            validate_name(fields["name"].value)
        if "alert_type" in fields:
            validate_alert_type(fields["alert_type"].value)
        if "categories" in fields:
            validate_categories(fields["categories"].value)

        style = tri_state(payload, "style")
        if style is CLEAR:
            raise ValidationError("style cannot be null", ("style",))
        if isinstance(style, Set):
            for key, alias in _STYLE_FIELDS.items():
                update = tri_state(style.value, key)
                if update is CLEAR:
                    raise ValidationError(f"{alias} cannot be null", ("style", alias))
                if isinstance(update, Set):
                    fields[key] = update
            validate_style(style.value)

        polygon = tri_state(payload, "geojson")
        if polygon is CLEAR:
            fields["geometry"] = CLEAR
        elif isinstance(polygon, Set):
            validate_feature_collection(polygon.value)
            fields["geometry"] = Set(to_multipolygon(polygon.value))

        # Centers and radii always change together
        circles = tri_state(payload, "circles")
        if circles is CLEAR or (isinstance(circles, Set) and not circles.value):
            fields["circle_centers"] = CLEAR
            fields["circle_radii"] = CLEAR
        elif isinstance(circles, Set):
            validate_circles(circles.value)
            centers, radii = to_centers_and_radii(circles.value)
            fields["circle_centers"] = Set(centers)
            fields["circle_radii"] = Set(radii)

        return fields

    async def update(self, zone_id: UUID, data: GeofenceUpdate) -> GeofenceResponse:
        """Apply a partial update; omitted keys are left untouched."""
        fields = self._collect_update_fields(data.model_dump(exclude_unset=True))

        if "name" in fields:
            # An unknown id is reported as not found before any name conflict
            if await self._call("load", self.store.find_by_id(zone_id)) is None:
                raise NotFoundError(f"Geofence with ID {zone_id} not found")
            await self._ensure_name_available(fields["name"].value, exclude_id=zone_id)

        statement = build_update(zone_id, fields)
        affected_id = await self._call("update", self.store.execute_write(statement))
        if affected_id is None:
            raise NotFoundError(f"Geofence with ID {zone_id} not found")

        log_audit_event(
            "geofence_updated",
            details={"geofence_id": zone_id, "fields": sorted(fields)},
            logger=self.logger,
        )
        return await self._read_back(zone_id)

    async def get(self, zone_id: UUID) -> GeofenceResponse:
        return await self._read_back(zone_id)

    async def list_all(self) -> GeofenceListResponse:
        rows = await self._call("list", self.store.find_all())
        total = await self._call("count", self.store.count_all())
        return GeofenceListResponse(
            geofences=[map_row(row, self.logger) for row in rows],
            total=total,
        )

    async def delete(self, zone_id: UUID) -> None:
        deleted = await self._call("delete", self.store.delete(zone_id))
        if not deleted:
            raise NotFoundError(f"Geofence with ID {zone_id} not found")
        log_audit_event("geofence_deleted", details={"geofence_id": zone_id}, logger=self.logger)
