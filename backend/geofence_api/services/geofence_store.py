"""Execution of geofence statements against PostGIS."""
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import delete, func, select, text
from sqlalchemy.engine import RowMapping
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from geofence_api.models.geofence import Geofence
from geofence_api.services.statements import Statement

# Geometries are read back as GeoJSON text at full double precision;
# the row mapper decodes them
GEOJSON_MAX_DECIMALS = 15
_SELECT_GEOFENCES = """
    SELECT
        "id",
        "name",
        "alert_type",
        "categories",
        "fill_color",
        "stroke_color",
        "fill_opacity",
        "stroke_width",
        "created_at",
        "updated_at",
        ST_AsGeoJSON("geometry", {decimals}) AS geometry,
        ST_AsGeoJSON("circle_centers", {decimals}) AS circle_centers,
        "circle_radii"
    FROM "geofences"
""".format(decimals=GEOJSON_MAX_DECIMALS)


class GeofenceStore:
    """Thin wrapper around an ``AsyncSession`` for the geofences table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_all(self) -> list[RowMapping]:
        result = await self.db.execute(
            text(_SELECT_GEOFENCES + ' ORDER BY "created_at" DESC')
        )
        return list(result.mappings().all())

    async def find_by_id(self, zone_id: UUID) -> Optional[RowMapping]:
        result = await self.db.execute(
            text(_SELECT_GEOFENCES + ' WHERE "id" = :zone_id LIMIT 1'),
            {"zone_id": zone_id},
        )
        return result.mappings().first()

    async def count_all(self) -> int:
        result = await self.db.execute(select(func.count(Geofence.id)))
        return result.scalar_one()

    async def is_name_unique(self, name: str, exclude_id: Optional[UUID] = None) -> bool:
        query = select(func.count(Geofence.id)).where(Geofence.name == name)
        if exclude_id is not None:
            query = query.where(Geofence.id != exclude_id)
        result = await self.db.execute(query)
        return result.scalar_one() == 0

    async def execute_write(self, statement: Statement) -> Optional[Any]:
        """Run an INSERT/UPDATE ... RETURNING id and commit.

        Returns the affected id, or None when no row matched.
        """
        try:
            result = await self.db.execute(statement.to_clause())
            affected_id = result.scalar_one_or_none()
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise
        return affected_id

    async def delete(self, zone_id: UUID) -> bool:
        try:
            result = await self.db.execute(
                delete(Geofence).where(Geofence.id == zone_id).returning(Geofence.id)
            )
            deleted = result.scalar_one_or_none() is not None
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise
        return deleted
