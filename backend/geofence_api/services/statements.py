"""Parameterized write statements for the ``geofences`` table.

Statements are assembled as an ordered list of ``(column, expression)`` pairs
plus a parallel parameter list and rendered to text only at the end. Every
user-supplied value, including each element of an array, becomes a numbered
bind parameter (``:p1``, ``:p2``, ...); only column names and fixed SQL syntax
are written inline.
"""
import json
import uuid
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence, Union

from sqlalchemy import text
from sqlalchemy.sql.expression import TextClause

from geofence_api.utils.geo import WGS84_SRID

TABLE_NAME = "geofences"
DEFAULT_SRID = WGS84_SRID

# Scalar columns in the order they are written on insert
SCALAR_COLUMNS = (
    "name",
    "alert_type",
    "categories",
    "fill_color",
    "stroke_color",
    "fill_opacity",
    "stroke_width",
)
GEOMETRY_COLUMNS = ("geometry", "circle_centers")
RADII_COLUMN = "circle_radii"


# --- Tri-state update values ---
class _Unset:
    """Field absent from the update: leave the column untouched."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"


class _Clear:
    """Field explicitly set to null: store NULL."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "CLEAR"


UNSET = _Unset()
CLEAR = _Clear()


@dataclass(frozen=True)
class Set:
    """Field present with a new value."""
    value: Any


FieldUpdate = Union[_Unset, _Clear, Set]


def tri_state(payload: Mapping[str, Any], key: str) -> FieldUpdate:
    """Read ``key`` from a ``model_dump(exclude_unset=True)`` dict as a tagged value."""
    if key not in payload:
        return UNSET
    value = payload[key]
    if value is None:
        return CLEAR
    return Set(value)


# --- Statement assembly ---
@dataclass
class Statement:
    """Rendered SQL text plus its positional parameters (``params[0]`` binds ``:p1``)."""
    text: str
    params: list = field(default_factory=list)

    def bind_params(self) -> dict[str, Any]:
        return {f"p{index}": value for index, value in enumerate(self.params, start=1)}

    def to_clause(self) -> TextClause:
        return text(self.text).bindparams(**self.bind_params())


class StatementBuilder:
    """Collects column assignments and numbers bind parameters in append order."""

    def __init__(self, srid: int = DEFAULT_SRID):
        self.srid = int(srid)
        self._assignments: list[tuple[str, str]] = []
        self._params: list[Any] = []

    @property
    def next_index(self) -> int:
        return len(self._params) + 1

    def _bind(self, value: Any) -> str:
        self._params.append(value)
        return f":p{len(self._params)}"

    def add_value(self, column: str, value: Any) -> None:
        self._assignments.append((column, self._bind(value)))

    def add_geometry(self, column: str, geometry: Mapping[str, Any]) -> None:
        placeholder = self._bind(json.dumps(geometry))
        self._assignments.append(
            (column, f"ST_SetSRID(ST_GeomFromGeoJSON(CAST({placeholder} AS text)), {self.srid})")
        )

    def add_float_array(self, column: str, values: Sequence[float]) -> None:
        elements = ", ".join(
            f"CAST({self._bind(float(value))} AS double precision)" for value in values
        )
        self._assignments.append((column, f"ARRAY[{elements}]::double precision[]"))

    def add_null(self, column: str) -> None:
        self._assignments.append((column, "NULL"))

    def add_literal(self, column: str, sql: str) -> None:
        """Assign fixed SQL (e.g. ``NOW()``). Never pass user input here."""
        self._assignments.append((column, sql))

    def render_insert(self, table: str, id_column: str, id_value: Any) -> Statement:
        self._assignments.append((id_column, self._bind(id_value)))
        columns = ", ".join(f'"{column}"' for column, _ in self._assignments)
        values = ", ".join(expression for _, expression in self._assignments)
        sql = f'INSERT INTO "{table}" ({columns}) VALUES ({values}) RETURNING "{id_column}"'
        return Statement(sql, list(self._params))

    def render_update(self, table: str, id_column: str, id_value: Any) -> Statement:
        assignments = ", ".join(f'"{column}" = {expression}' for column, expression in self._assignments)
        predicate = self._bind(id_value)
        sql = (
            f'UPDATE "{table}" SET {assignments} '
            f'WHERE "{id_column}" = {predicate} RETURNING "{id_column}"'
        )
        return Statement(sql, list(self._params))


def build_insert(
    scalars: Mapping[str, Any],
    polygon_shape: Optional[Mapping[str, Any]] = None,
    centers: Optional[Mapping[str, Any]] = None,
    radii: Optional[Sequence[float]] = None,
    *,
    zone_id: Optional[uuid.UUID] = None,
    srid: int = DEFAULT_SRID,
) -> Statement:
    """Build the INSERT for a new zone.

    All scalar columns are required. Shape columns are omitted entirely when
    their value is absent. The new identifier is bound last.
    """
    missing = [column for column in SCALAR_COLUMNS if scalars.get(column) is None]
    if missing:
        raise ValueError(f"Missing required columns: {', '.join(missing)}")

    builder = StatementBuilder(srid)
    for column in SCALAR_COLUMNS:
        builder.add_value(column, scalars[column])

    if polygon_shape is not None:
        builder.add_geometry("geometry", polygon_shape)
    if centers is not None:
        builder.add_geometry("circle_centers", centers)
    if radii is not None:
        builder.add_float_array(RADII_COLUMN, radii)

    builder.add_literal("created_at", "NOW()")
    builder.add_literal("updated_at", "NOW()")
    return builder.render_insert(TABLE_NAME, "id", zone_id or uuid.uuid4())


def build_update(
    zone_id: Any,
    fields: Mapping[str, FieldUpdate],
    *,
    srid: int = DEFAULT_SRID,
) -> Statement:
    """Build a partial UPDATE from tri-state ``fields`` keyed by column name.

    Missing keys behave like ``UNSET``. ``circle_centers`` and ``circle_radii``
    are independent here; callers keep them consistent.
    """
    unknown = set(fields) - set(SCALAR_COLUMNS) - set(GEOMETRY_COLUMNS) - {RADII_COLUMN}
    if unknown:
        raise ValueError(f"Unknown columns: {', '.join(sorted(unknown))}")

    builder = StatementBuilder(srid)

    for column in SCALAR_COLUMNS:
        update = fields.get(column, UNSET)
        if isinstance(update, Set):
            builder.add_value(column, update.value)
        elif update is CLEAR:
            builder.add_null(column)

    for column in GEOMETRY_COLUMNS:
        update = fields.get(column, UNSET)
        if isinstance(update, Set):
            builder.add_geometry(column, update.value)
        elif update is CLEAR:
            builder.add_null(column)

    update = fields.get(RADII_COLUMN, UNSET)
    if isinstance(update, Set):
        builder.add_float_array(RADII_COLUMN, update.value)
    elif update is CLEAR:
        builder.add_null(RADII_COLUMN)

    builder.add_literal("updated_at", "NOW()")
    return builder.render_update(TABLE_NAME, "id", zone_id)
