"""create geofences table

Revision ID: 3f9c2a7d1b40
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql
from geoalchemy2 import Geometry


# revision identifiers, used by Alembic.
revision: str = '3f9c2a7d1b40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS postgis")
    op.create_table(
        'geofences',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('alert_type', sa.String(length=10), nullable=False),
        sa.Column('categories', postgresql.ARRAY(sa.String()), nullable=False),
        sa.Column('fill_color', sa.String(length=7), nullable=False),
        sa.Column('stroke_color', sa.String(length=7), nullable=False),
        sa.Column('fill_opacity', sa.Float(), nullable=False),
        sa.Column('stroke_width', sa.Float(), nullable=False),
        # spatial_index=False: the GiST indexes are created explicitly below
        sa.Column('geometry', Geometry('MULTIPOLYGON', srid=4326, spatial_index=False), nullable=True),
        sa.Column('circle_centers', Geometry('MULTIPOINT', srid=4326, spatial_index=False), nullable=True),
        sa.Column('circle_radii', postgresql.ARRAY(sa.Float()), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name', name='uq_geofences_name'),
        sa.CheckConstraint(
            "alert_type IN ('Enter', 'Exit', 'Both')", name='ck_geofences_alert_type'
        ),
        sa.CheckConstraint(
            "coalesce(ST_NumGeometries(circle_centers), 0) = coalesce(cardinality(circle_radii), 0)",
            name='ck_geofences_circle_pairs',
        ),
    )
    op.create_index(
        'ix_geofences_geometry', 'geofences', ['geometry'], postgresql_using='gist'
    )
    op.create_index(
        'ix_geofences_circle_centers', 'geofences', ['circle_centers'], postgresql_using='gist'
    )
    op.create_index('ix_geofences_created_at', 'geofences', ['created_at'])


def downgrade() -> None:
    op.drop_index('ix_geofences_created_at', table_name='geofences')
    op.drop_index('ix_geofences_circle_centers', table_name='geofences')
    op.drop_index('ix_geofences_geometry', table_name='geofences')
    op.drop_table('geofences')
