"""Shared fixtures. No test here needs a live database: the store is mocked."""
import uuid
from datetime import datetime
from unittest.mock import AsyncMock

import pytest

from geofence_api.services.geofence_service import GeofenceService

SAMPLE_GEOFENCE_UUID = uuid.UUID("b2c3d4e5-f6a7-8901-bcde-f12345678901")

SQUARE_RING = [[0, 0], [0, 1], [1, 1], [1, 0], [0, 0]]


def make_feature_collection(*rings_per_feature):
    """FeatureCollection with one Polygon feature per ring list."""
    return {
        "type": "FeatureCollection",
        "features": [
            {"type": "Feature", "properties": {}, "geometry": {"type": "Polygon", "coordinates": rings}}
            for rings in rings_per_feature
        ],
    }


def make_row(**overrides):
    """Raw ``geofences`` row as returned by GeofenceStore."""
    row = {
        "id": SAMPLE_GEOFENCE_UUID,
        "name": "ORG-geofence-nyc",
        "alert_type": "Both",
        "categories": ["security", "fleet"],
        "fill_color": "#FF9900",
        "stroke_color": "#333",
        "fill_opacity": 0.4,
        "stroke_width": 2.0,
        "created_at": datetime(2026, 10, 1, 12, 0, 0),
        "updated_at": datetime(2026, 10, 1, 12, 0, 0),
        "geometry": None,
        "circle_centers": None,
        "circle_radii": None,
    }
    row.update(overrides)
    return row


@pytest.fixture
def create_payload() -> dict:
    """Valid POST body using wire (camelCase) keys."""
    return {
        "name": "ORG-geofence-nyc",
        "alertType": "Both",
        "categories": ["security", "fleet"],
        "style": {
            "fillColor": "#FF9900",
            "strokeColor": "#333",
            "fillOpacity": 0.4,
            "strokeWidth": 2,
        },
        "geojson": make_feature_collection([SQUARE_RING]),
        "circles": [{"center": [10, 20], "radius": 5}],
    }


@pytest.fixture
def mock_store() -> AsyncMock:
    """GeofenceStore stand-in with a free name and an existing row."""
    store = AsyncMock()
    store.is_name_unique = AsyncMock(return_value=True)
    store.execute_write = AsyncMock(return_value=SAMPLE_GEOFENCE_UUID)
    store.find_by_id = AsyncMock(return_value=make_row())
    store.find_all = AsyncMock(return_value=[make_row()])
    store.count_all = AsyncMock(return_value=1)
    store.delete = AsyncMock(return_value=True)
    return store


@pytest.fixture
def service(mock_store: AsyncMock) -> GeofenceService:
    return GeofenceService(mock_store)
