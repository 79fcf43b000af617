import os
import json
import asyncio
import logging
import sys

# Add parent directory to path to import geofence_api modules
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from pydantic import ValidationError as SchemaError

from geofence_api.database import AsyncSessionLocal
from geofence_api.exceptions import ConflictError, ValidationError
from geofence_api.schemas.geofence import GeofenceCreate
from geofence_api.services.geofence_service import GeofenceService
from geofence_api.services.geofence_store import GeofenceStore

logger = logging.getLogger("geofence_api.import")


async def import_geofences(file_path):
    """Create every geofence listed in a JSON array file.

    Each entry uses the same body as ``POST /geofences``. Entries that fail
    validation or whose name already exists are skipped and reported.
    """
    logger.info("Reading geofences from %s...", file_path)
    with open(file_path, 'r', encoding='utf-8') as f:
        entries = json.load(f)

    if not isinstance(entries, list):
        logger.error("Expected a JSON array of geofences")
        return 1

    created = skipped = 0
    async with AsyncSessionLocal() as session:
        service = GeofenceService(GeofenceStore(session), logger)
        for index, entry in enumerate(entries):
            try:
                zone = await service.create(GeofenceCreate.model_validate(entry))
            except SchemaError as e:
                skipped += 1
                logger.warning("Skipping entry %d: %s", index, e)
                continue
            except (ValidationError, ConflictError) as e:
                skipped += 1
                logger.warning("Skipping entry %d (%s): %s", index, entry.get("name"), e.message)
                continue
            created += 1
            logger.info("Created %s (%s)", zone.name, zone.id)

    logger.info("Imported %d geofences, skipped %d.", created, skipped)
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    if len(sys.argv) < 2:
        print("Usage: python scripts/import_geofences.py <geofences.json>")
        sys.exit(1)

    file_path = sys.argv[1]
    if not os.path.exists(file_path):
        print(f"File not found: {file_path}")
        sys.exit(1)

    sys.exit(asyncio.run(import_geofences(file_path)))
