"""Alembic environment for the geofences schema.

Autogenerate compares against ``geofence_api`` metadata only and renders
PostGIS columns through GeoAlchemy2's helpers, so generated revisions import
``Geometry`` and keep spatial indexes out of the diff.
"""
from logging.config import fileConfig
import asyncio

from geoalchemy2 import alembic_helpers
from sqlalchemy import pool
from sqlalchemy.ext.asyncio import create_async_engine

from alembic import context

from geofence_api.config import get_settings
from geofence_api.database import Base
from geofence_api.models import Geofence  # noqa: F401 registers the table

# Tables PostGIS creates in the public schema alongside ours
POSTGIS_TABLES = {"spatial_ref_sys", "topology", "layer"}

config = context.config
database_url = get_settings().DATABASE_URL

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def include_object(object, name, type_, reflected, compare_to):
    """Ignore extension-owned tables and defer spatial objects to GeoAlchemy2."""
    if type_ == "table" and (name in POSTGIS_TABLES or name not in target_metadata.tables):
        return False
    return alembic_helpers.include_object(object, name, type_, reflected, compare_to)


def _configure(**kwargs) -> None:
    context.configure(
        target_metadata=target_metadata,
        include_object=include_object,
        process_revision_directives=alembic_helpers.writer,
        render_item=alembic_helpers.render_item,
        compare_type=True,
        **kwargs,
    )


def run_migrations_offline() -> None:
    """Emit SQL for the configured database without connecting."""
    _configure(url=database_url, literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection):
    _configure(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations():
    connectable = create_async_engine(database_url, poolclass=pool.NullPool)

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_async_migrations())
