"""Unit tests for GeofenceService orchestration with a mocked store."""
import logging
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from geofence_api.exceptions import ConflictError, NotFoundError, PersistenceError, ValidationError
from geofence_api.schemas.geofence import GeofenceCreate, GeofenceUpdate
from geofence_api.services.geofence_service import GeofenceService
from tests.conftest import SAMPLE_GEOFENCE_UUID, SQUARE_RING, make_feature_collection

pytestmark = pytest.mark.unit


def written_statement(store: AsyncMock):
    return store.execute_write.call_args.args[0]


# =============================================================================
# create
# =============================================================================


async def test_create_runs_pipeline_in_order(service, mock_store, create_payload):
    view = await service.create(GeofenceCreate.model_validate(create_payload))

    mock_store.is_name_unique.assert_awaited_once_with("ORG-geofence-nyc", None)
    statement = written_statement(mock_store)
    assert statement.text.startswith('INSERT INTO "geofences"')
    assert '"geometry"' in statement.text and '"circle_radii"' in statement.text
    # Read back using the generated id bound as the trailing parameter
    mock_store.find_by_id.assert_awaited_once_with(statement.params[-1])
    assert view.id == SAMPLE_GEOFENCE_UUID


async def test_create_with_circles_only(service, mock_store, create_payload):
    del create_payload["geojson"]
    await service.create(GeofenceCreate.model_validate(create_payload))

    assert '"geometry"' not in written_statement(mock_store).text


async def test_create_requires_a_shape(service, mock_store, create_payload):
    create_payload.pop("geojson")
    create_payload["circles"] = []

    with pytest.raises(ValidationError, match="Either geojson or circles must be provided"):
        await service.create(GeofenceCreate.model_validate(create_payload))
    mock_store.execute_write.assert_not_awaited()


async def test_create_rejects_bad_name_before_store(service, mock_store, create_payload):
    create_payload["name"] = "geofence-nyc"

    with pytest.raises(ValidationError, match="ORG-"):
        await service.create(GeofenceCreate.model_validate(create_payload))
    mock_store.is_name_unique.assert_not_awaited()


async def test_create_rejects_invalid_geometry(service, mock_store, create_payload):
    create_payload["geojson"] = make_feature_collection([[[0, 0], [0, 1], [1, 1], [1, 0]]])

    with pytest.raises(ValidationError, match="Ring 0 of feature 0 must be closed") as excinfo:
        await service.create(GeofenceCreate.model_validate(create_payload))
    assert excinfo.value.path[:3] == ("geojson", "features", 0)
    mock_store.execute_write.assert_not_awaited()


async def test_create_rejects_empty_categories(service, create_payload):
    create_payload["categories"] = []
    with pytest.raises(ValidationError, match="At least one category is required"):
        await service.create(GeofenceCreate.model_validate(create_payload))


async def test_create_precheck_conflict(service, mock_store, create_payload):
    mock_store.is_name_unique.return_value = False

    with pytest.raises(ConflictError):
        await service.create(GeofenceCreate.model_validate(create_payload))
    mock_store.execute_write.assert_not_awaited()


async def test_create_constraint_violation_is_conflict(service, mock_store, create_payload):
    """Two creates racing past the pre-check: the unique constraint decides."""
    mock_store.execute_write.side_effect = IntegrityError(
        "INSERT", {}, Exception('duplicate key value violates unique constraint "uq_geofences_name"')
    )

    with pytest.raises(ConflictError, match="already exists"):
        await service.create(GeofenceCreate.model_validate(create_payload))


async def test_create_store_failure_is_generic(service, mock_store, create_payload, caplog):
    mock_store.execute_write.side_effect = OperationalError(
        "INSERT", {}, Exception("connection to server at 10.0.0.5 lost")
    )

    with caplog.at_level(logging.ERROR):
        with pytest.raises(PersistenceError) as excinfo:
            await service.create(GeofenceCreate.model_validate(create_payload))

    assert excinfo.value.message == "Failed to create geofence"
    assert "10.0.0.5" not in excinfo.value.message
    assert "10.0.0.5" in caplog.text


async def test_create_emits_audit_event_on_injected_logger(mock_store, create_payload, caplog):
    logger = logging.getLogger("tests.geofences")
    service = GeofenceService(mock_store, logger)

    with caplog.at_level(logging.INFO, logger="tests.geofences"):
        await service.create(GeofenceCreate.model_validate(create_payload))

    assert '"event": "geofence_created"' in caplog.text
    assert '"circles": 1' in caplog.text


async def test_create_stores_geometries_in_wgs84(service, mock_store, create_payload):
    await service.create(GeofenceCreate.model_validate(create_payload))

    text = written_statement(mock_store).text
    assert text.count("), 4326)") == 2


# =============================================================================
# update
# =============================================================================


async def test_update_without_fields_only_touches_timestamp(service, mock_store):
    await service.update(SAMPLE_GEOFENCE_UUID, GeofenceUpdate())

    statement = written_statement(mock_store)
    assert statement.text.startswith('UPDATE "geofences" SET "updated_at" = NOW() WHERE')
    assert statement.params == [SAMPLE_GEOFENCE_UUID]
    mock_store.is_name_unique.assert_not_awaited()


async def test_update_null_geojson_clears_polygon(service, mock_store):
    await service.update(SAMPLE_GEOFENCE_UUID, GeofenceUpdate.model_validate({"geojson": None}))

    statement = written_statement(mock_store)
    assert '"geometry" = NULL' in statement.text
    assert "ST_GeomFromGeoJSON" not in statement.text
    assert '"circle_centers"' not in statement.text


@pytest.mark.parametrize("circles", [None, []])
async def test_update_clearing_circles_clears_both_columns(service, mock_store, circles):
    await service.update(SAMPLE_GEOFENCE_UUID, GeofenceUpdate.model_validate({"circles": circles}))

    statement = written_statement(mock_store)
    assert '"circle_centers" = NULL' in statement.text
    assert '"circle_radii" = NULL' in statement.text


async def test_update_circles_sets_both_columns(service, mock_store):
    payload = {"circles": [{"center": [1, 2], "radius": 3}, {"center": [4, 5], "radius": 6}]}
    await service.update(SAMPLE_GEOFENCE_UUID, GeofenceUpdate.model_validate(payload))

    statement = written_statement(mock_store)
    assert statement.params[1:3] == [3.0, 6.0]
    assert statement.params[-1] == SAMPLE_GEOFENCE_UUID


async def test_update_style_fields_individually(service, mock_store):
    payload = {"style": {"fillOpacity": 0.8}, "alertType": "Exit"}
    await service.update(SAMPLE_GEOFENCE_UUID, GeofenceUpdate.model_validate(payload))

    statement = written_statement(mock_store)
    assert '"alert_type" = :p1' in statement.text
    assert '"fill_opacity" = :p2' in statement.text
    assert '"fill_color"' not in statement.text
    assert statement.params == ["Exit", 0.8, SAMPLE_GEOFENCE_UUID]


@pytest.mark.parametrize(
    "payload, message",
    [
        ({"name": None}, "name cannot be null"),
        ({"categories": None}, "categories cannot be null"),
        ({"style": None}, "style cannot be null"),
        ({"style": {"strokeWidth": None}}, "strokeWidth cannot be null"),
        ({"style": {"strokeWidth": -1}}, "Stroke width must be greater than 0"),
        ({"categories": []}, "At least one category is required"),
        ({"alertType": "Sometimes"}, "Alert type must be one of"),
        ({"circles": [{"center": [200, 20], "radius": 5}]}, "Circle at index 0 has invalid longitude"),
    ],
)
async def test_update_validation_errors(service, mock_store, payload, message):
    with pytest.raises(ValidationError, match=message):
        await service.update(SAMPLE_GEOFENCE_UUID, GeofenceUpdate.model_validate(payload))
    mock_store.execute_write.assert_not_awaited()


async def test_update_name_checks_uniqueness_excluding_self(service, mock_store):
    payload = {"name": "ORG-depot-sfo", "geojson": make_feature_collection([SQUARE_RING])}
    await service.update(SAMPLE_GEOFENCE_UUID, GeofenceUpdate.model_validate(payload))

    mock_store.is_name_unique.assert_awaited_once_with("ORG-depot-sfo", SAMPLE_GEOFENCE_UUID)
    assert "ST_GeomFromGeoJSON" in written_statement(mock_store).text


async def test_update_name_conflict(service, mock_store):
    mock_store.is_name_unique.return_value = False
    with pytest.raises(ConflictError):
        await service.update(SAMPLE_GEOFENCE_UUID, GeofenceUpdate.model_validate({"name": "ORG-a-b"}))


async def test_rename_unknown_id_is_not_found_before_conflict(service, mock_store):
    mock_store.find_by_id.return_value = None
    mock_store.is_name_unique.return_value = False

    with pytest.raises(NotFoundError):
        await service.update(SAMPLE_GEOFENCE_UUID, GeofenceUpdate.model_validate({"name": "ORG-a-b"}))
    mock_store.is_name_unique.assert_not_awaited()
    mock_store.execute_write.assert_not_awaited()


async def test_update_unknown_id(service, mock_store):
    mock_store.execute_write.return_value = None
    with pytest.raises(NotFoundError):
        await service.update(SAMPLE_GEOFENCE_UUID, GeofenceUpdate.model_validate({"alertType": "Exit"}))
    mock_store.find_by_id.assert_not_awaited()


# =============================================================================
# reads and delete
# =============================================================================


async def test_get_unknown_id(service, mock_store):
    mock_store.find_by_id.return_value = None
    with pytest.raises(NotFoundError, match=str(SAMPLE_GEOFENCE_UUID)):
        await service.get(SAMPLE_GEOFENCE_UUID)


async def test_list_all_returns_total(service):
    result = await service.list_all()

    assert result.total == 1
    assert result.geofences[0].name == "ORG-geofence-nyc"


async def test_read_failure_is_persistence_error(service, mock_store):
    mock_store.find_all.side_effect = OperationalError("SELECT", {}, Exception("boom"))
    with pytest.raises(PersistenceError, match="Failed to list geofence"):
        await service.list_all()


async def test_delete(service, mock_store):
    await service.delete(SAMPLE_GEOFENCE_UUID)
    mock_store.delete.assert_awaited_once_with(SAMPLE_GEOFENCE_UUID)


async def test_delete_unknown_id(service, mock_store):
    mock_store.delete.return_value = False
    with pytest.raises(NotFoundError):
        await service.delete(SAMPLE_GEOFENCE_UUID)
