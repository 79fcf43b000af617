"""Geofence zone model."""
import uuid
from datetime import datetime
from sqlalchemy import DateTime, Float, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import ARRAY, UUID
from geoalchemy2 import Geometry
from sqlalchemy.orm import Mapped, mapped_column

from geofence_api.database import Base
from geofence_api.utils.geo import WGS84_SRID


class Geofence(Base):
    """Named alert zone made of polygons and/or circles."""

    __tablename__ = "geofences"
    __table_args__ = (UniqueConstraint("name", name="uq_geofences_name"),)

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    alert_type: Mapped[str] = mapped_column(String(10), nullable=False)  # Enter, Exit, Both
    categories: Mapped[list[str]] = mapped_column(ARRAY(String), nullable=False)

    # Display style
    fill_color: Mapped[str] = mapped_column(String(7), nullable=False)
    stroke_color: Mapped[str] = mapped_column(String(7), nullable=False)
    fill_opacity: Mapped[float] = mapped_column(Float, nullable=False)
    stroke_width: Mapped[float] = mapped_column(Float, nullable=False)

    # Spatial data (PostGIS)
    geometry = mapped_column(Geometry("MULTIPOLYGON", srid=WGS84_SRID), nullable=True)
    # Circle centers and radii are parallel: same length, same order
    circle_centers = mapped_column(Geometry("MULTIPOINT", srid=WGS84_SRID), nullable=True)
    circle_radii: Mapped[list[float] | None] = mapped_column(ARRAY(Float), nullable=True)  # meters

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
