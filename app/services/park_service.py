"""
=============================================================================
PARQUES ADMIN - PARK SERVICE
=============================================================================

Park listing, park detail aggregation and the parks dashboard.

Features:
    - Park listing with equality filters, substring search and the
      "has all of these amenities" filter
    - Park detail: the park row plus images, documents, amenities,
      activities, assets and a tree health summary in one nested object
    - Per-park collection lookups (amenities, images, documents, trees)
    - Per-park counters (activities, volunteers, trees, assets, incidents,
      concessions, evaluations)
    - Dashboard totals and distributions

Schema drift:
    Installations differ in column names (``image_url`` vs ``url``,
    ``is_primary`` vs ``primary``, four spellings of tree health). Each
    query introspects its tables first and only references confirmed
    columns.

Partial failure:
    The park row is required; its errors propagate. Each dependent
    collection is loaded through ``fetch_dependent``; a broken collection
    falls back to its empty default and is listed in ``dataWarnings``.
    Queries run one after the other on the request session, without a
    surrounding transaction.
=============================================================================
"""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Tuple

from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.introspection import SchemaIntrospector, first_present
from app.db.query_builder import BuiltQuery, SelectQuery
from app.schemas.park import (
    CategoryCount,
    DataWarning,
    MultimediaStats,
    MunicipalityCount,
    ParkDashboardStats,
    ParkStats,
)
from app.services.asset_service import AssetFilterParams, AssetService
from app.services.dependent_fetch import (
    CollectionUnavailable,
    FetchOutcome,
    fetch_dependent,
)
from app.services.tree_health import (
    HEALTH_COLUMN_CANDIDATES,
    empty_tree_summary,
    summarize_health_counts,
)

logger = logging.getLogger(__name__)

PARK_COLUMNS = (
    "id",
    "name",
    "municipality_id",
    "park_type",
    "description",
    "address",
    "postal_code",
    "latitude",
    "longitude",
    "area",
    "green_area",
    "foundation_year",
    "administrator",
    "conservation_status",
    "regulation_url",
    "opening_hours",
    "contact_email",
    "contact_phone",
    "video_url",
)
PARK_SEARCH_COLUMNS = ("name", "description", "address")

IMAGE_URL_CANDIDATES = ("image_url", "url")
IMAGE_PRIMARY_CANDIDATES = ("is_primary", "primary")

DOCUMENT_TABLE_CANDIDATES = ("park_documents", "documents")
DOCUMENT_COLUMNS = (
    "id",
    "title",
    "file_url",
    "file_type",
    "file_size",
    "description",
    "category",
    "created_at",
)

AMENITY_COLUMNS = ("id", "name", "icon", "category", "icon_type", "custom_icon_url")
PLACEMENT_COLUMNS = (
    "module_name",
    "location_latitude",
    "location_longitude",
    "surface_area",
    "status",
    "description",
)

ACTIVITY_COLUMNS = ("id", "title", "description", "start_date", "end_date", "category", "location")

RESOLVED_INCIDENT_STATUSES = ("resolved", "closed")


class ParkSchemaError(CollectionUnavailable):
    """The parks table is missing or lacks its identity columns."""


@dataclass(frozen=True)
class ParkFilterParams:
    """Filter parameters for park listing queries."""
    municipality_id: Optional[int] = None
    park_type: Optional[str] = None
    postal_code: Optional[str] = None
    conservation_status: Optional[str] = None
    search: Optional[str] = None
    amenity_ids: Tuple[int, ...] = ()

    def equality_filters(self) -> Dict[str, Any]:
        return {
            "municipality_id": self.municipality_id,
            "park_type": self.park_type,
            "postal_code": self.postal_code,
            "conservation_status": self.conservation_status,
        }


def main_image_url(images: Sequence[Dict[str, Any]]) -> Optional[str]:
    """URL of the image flagged primary; None when nothing is flagged."""
    for image in images:
        if image.get("isPrimary"):
            return image.get("imageUrl")
    return None


def _percentage(count: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return round(min(count / total, 1.0) * 100, 1)


class ParkService:
    """Service for park queries and aggregations."""
    def __init__(self, db: Session, introspector: Optional[SchemaIntrospector] = None):
        self.db = db
        self.introspector = introspector or SchemaIntrospector(db, settings.DB_SCHEMA)

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def _rows(self, built: BuiltQuery) -> List[Dict[str, Any]]:
        rows = self.db.execute(built.statement(), built.bind_params()).mappings().all()
        return [dict(row) for row in rows]

    def _scalar(self, built: BuiltQuery) -> Any:
        row = self.db.execute(built.statement(), built.bind_params()).mappings().first()
        if not row:
            return None
        return row.get("value")

    def _park_scoped_columns(self, table: str, *required: str) -> Set[str]:
        """Columns of a table that hangs off ``parks`` through ``park_id``."""
        columns = self.introspector.table_columns(table)
        if not columns:
            raise CollectionUnavailable(f"table {table} not found")
        missing = [column for column in ("park_id",) + required if column not in columns]
        if missing:
            raise CollectionUnavailable(f"{table} lacks {', '.join(missing)}")
        return columns

    def _collect(
        self, loaders: Sequence[Tuple[str, Callable[[], Any], Callable[[], Any]]]
    ) -> List[FetchOutcome]:
        return [
            fetch_dependent(self.db, name, loader, default)
            for name, loader, default in loaders
        ]

    # ------------------------------------------------------------------
    # Park rows
    # ------------------------------------------------------------------

    def _park_columns(self) -> Set[str]:
        columns = self.introspector.table_columns("parks")
        if not {"id", "name"} <= columns:
            raise ParkSchemaError("parks table not found or missing id/name")
        return columns

    def build_park_query(self, columns: Set[str]) -> SelectQuery:
        query = SelectQuery("parks", alias="p")
        query.select_present(columns, PARK_COLUMNS)

        if "municipality_id" in columns:
            municipality_columns = self.introspector.table_columns("municipalities")
            if {"id", "name"} <= municipality_columns:
                query.left_join(
                    "municipalities",
                    "m",
                    f"{query.col('municipality_id')} = {query.col('id', 'm')}",
                )
                query.select("name", key="municipalityName", alias="m")
                if "state" in municipality_columns:
                    query.select("state", key="municipalityState", alias="m")
        return query

    def get_park_row(self, park_id: int) -> Optional[Dict[str, Any]]:
        query = self.build_park_query(self._park_columns())
        query.where_eq("id", park_id)
        rows = self._rows(query.build())
        return rows[0] if rows else None

    def park_exists(self, park_id: int) -> bool:
        self._park_columns()
        query = SelectQuery("parks")
        query.select_expr("1", "found")
        query.where_eq("id", park_id)
        return bool(self._rows(query.build()))

    # ------------------------------------------------------------------
    # Dependent collections
    # ------------------------------------------------------------------

    def load_images(self, park_id: int) -> List[Dict[str, Any]]:
        columns = self._park_scoped_columns("park_images")
        url_column = first_present(columns, IMAGE_URL_CANDIDATES)
        if url_column is None:
            raise CollectionUnavailable("park_images has no image url column")
        primary_column = first_present(columns, IMAGE_PRIMARY_CANDIDATES)

        query = SelectQuery("park_images")
        query.select_present(columns, ("id",))
        query.select(url_column, key="imageUrl")
        query.select_present(columns, ("caption",))
        if primary_column:
            query.select(primary_column, key="isPrimary")
        query.select_present(columns, ("created_at",))
        query.where_eq("park_id", park_id)

        if primary_column:
            query.order_by(primary_column, descending=True, nulls_last=True)
        if "created_at" in columns:
            query.order_by("created_at")
        if "id" in columns:
            query.order_by("id")
        return self._rows(query.build())

    def load_documents(self, park_id: int) -> List[Dict[str, Any]]:
        found = self.introspector.first_existing_table(DOCUMENT_TABLE_CANDIDATES)
        if found is None:
            raise CollectionUnavailable("no park documents table found")
        table, columns = found
        if "park_id" not in columns:
            raise CollectionUnavailable(f"{table} lacks park_id")

        query = SelectQuery(table)
        query.select_present(columns, DOCUMENT_COLUMNS)
        if not query.keys:
            raise CollectionUnavailable(f"{table} has no document columns")
        query.where_eq("park_id", park_id)
        if "created_at" in columns:
            query.order_by("created_at", descending=True)
        if "id" in columns:
            query.order_by("id", descending=True)
        return self._rows(query.build())

    def load_amenities(self, park_id: int) -> List[Dict[str, Any]]:
        link_columns = self._park_scoped_columns("park_amenities", "amenity_id")
        amenity_columns = self.introspector.table_columns("amenities")
        if "id" not in amenity_columns:
            raise CollectionUnavailable("table amenities not found")

        query = SelectQuery("park_amenities", alias="pa")
        query.join("amenities", "a", f"{query.col('amenity_id')} = {query.col('id', 'a')}")
        query.select_present(amenity_columns, AMENITY_COLUMNS, alias="a")
        query.select_present(link_columns, ("id",), alias="pa", keys={"id": "placementId"})
        query.select_present(link_columns, PLACEMENT_COLUMNS, alias="pa")
        query.where_eq("park_id", park_id)

        if "category" in amenity_columns:
            query.order_by("category", alias="a")
        if "name" in amenity_columns:
            query.order_by("name", alias="a")
        query.order_by("id", alias="a")
        return self._rows(query.build())

    def _join_primary_activity_image(self, query: SelectQuery) -> None:
        columns = self.introspector.table_columns("activity_images")
        url_column = first_present(columns, IMAGE_URL_CANDIDATES)
        primary_column = first_present(columns, IMAGE_PRIMARY_CANDIDATES)
        if "activity_id" not in columns or not url_column or not primary_column:
            query.select_expr("NULL", "imageUrl")
            return
        query.left_join(
            "activity_images",
            "ai",
            f"{query.col('id')} = {query.col('activity_id', 'ai')}"
            f" AND {query.col(primary_column, 'ai')} = TRUE",
        )
        query.select(url_column, key="imageUrl", alias="ai")

    def load_activities(self, park_id: int) -> List[Dict[str, Any]]:
        columns = self._park_scoped_columns("activities")

        query = SelectQuery("activities", alias="a")
        query.select_present(columns, ACTIVITY_COLUMNS)
        if not query.keys:
            raise CollectionUnavailable("activities has no activity columns")
        self._join_primary_activity_image(query)
        query.where_eq("park_id", park_id)

        if "start_date" in columns:
            query.order_by("start_date", descending=True, nulls_last=True)
        if "id" in columns:
            query.order_by("id", descending=True)
        query.limit(settings.PARK_DETAIL_ACTIVITY_LIMIT)
        return self._rows(query.build())

    def load_assets(self, park_id: int) -> List[Dict[str, Any]]:
        self._park_scoped_columns("assets")
        asset_service = AssetService(self.db, introspector=self.introspector)
        return asset_service.list_assets(
            AssetFilterParams(park_id=park_id), with_park_name=False
        )

    def load_tree_summary(self, park_id: int) -> Dict[str, Any]:
        columns = self._park_scoped_columns("trees")
        health_column = first_present(columns, HEALTH_COLUMN_CANDIDATES)

        query = SelectQuery("trees", alias="t")
        if health_column:
            query.select(health_column, key="health")
        query.select_expr("COUNT(*)", "count")
        query.where_eq("park_id", park_id)
        if health_column:
            query.group_by(query.col(health_column))
        return summarize_health_counts(self._rows(query.build()))

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    def get_park_detail(self, park_id: int) -> Optional[Dict[str, Any]]:
        """Park row with every dependent collection attached, or None."""
        park = self.get_park_row(park_id)
        if park is None:
            return None

        outcomes = self._collect(
            [
                ("images", lambda: self.load_images(park_id), list),
                ("documents", lambda: self.load_documents(park_id), list),
                ("amenities", lambda: self.load_amenities(park_id), list),
                ("activities", lambda: self.load_activities(park_id), list),
                ("assets", lambda: self.load_assets(park_id), list),
                ("trees", lambda: self.load_tree_summary(park_id), empty_tree_summary),
            ]
        )

        detail = dict(park)
        for outcome in outcomes:
            detail[outcome.name] = outcome.data
        detail["mainImageUrl"] = main_image_url(detail["images"])
        detail["dataWarnings"] = [outcome.as_warning() for outcome in outcomes if not outcome.ok]

        if detail["dataWarnings"]:
            logger.info(
                "Park %s detail assembled with degraded collections: %s",
                park_id,
                [warning["collection"] for warning in detail["dataWarnings"]],
            )
        return detail

    def _load_primary_images(self, park_ids: List[int]) -> Dict[int, str]:
        columns = self._park_scoped_columns("park_images")
        url_column = first_present(columns, IMAGE_URL_CANDIDATES)
        primary_column = first_present(columns, IMAGE_PRIMARY_CANDIDATES)
        if url_column is None:
            raise CollectionUnavailable("park_images has no image url column")
        if primary_column is None:
            return {}

        query = SelectQuery("park_images")
        query.distinct_on(query.col("park_id"))
        query.select("park_id")
        query.select(url_column, key="imageUrl")
        query.where_any("park_id", park_ids)
        query.where(f"{query.col(primary_column)} = TRUE")
        query.order_by("park_id")
        if "id" in columns:
            query.order_by("id")
        return {row["parkId"]: row["imageUrl"] for row in self._rows(query.build())}

    def _load_amenity_summaries(self, park_ids: List[int]) -> Dict[int, List[Dict[str, Any]]]:
        self._park_scoped_columns("park_amenities", "amenity_id")
        amenity_columns = self.introspector.table_columns("amenities")
        if "id" not in amenity_columns:
            raise CollectionUnavailable("table amenities not found")

        query = SelectQuery("park_amenities", alias="pa")
        query.join("amenities", "a", f"{query.col('amenity_id')} = {query.col('id', 'a')}")
        query.select("park_id")
        query.select_present(amenity_columns, ("id", "name", "icon"), alias="a")
        query.where_any("park_id", park_ids)
        query.order_by("park_id")
        if "name" in amenity_columns:
            query.order_by("name", alias="a")

        grouped: Dict[int, List[Dict[str, Any]]] = defaultdict(list)
        for row in self._rows(query.build()):
            park_id = row.pop("parkId")
            grouped[park_id].append(row)
        return dict(grouped)

    def list_parks(self, params: ParkFilterParams) -> List[Dict[str, Any]]:
        """Parks matching ``params`` ordered by name, with main image and amenities."""
        columns = self._park_columns()

        for column, value in params.equality_filters().items():
            if value is not None and column not in columns:
                logger.warning("Park filter on missing column %s; no rows can match", column)
                return []

        query = self.build_park_query(columns)
        for column, value in params.equality_filters().items():
            query.where_eq(column, value)
        query.where_ilike(
            [column for column in PARK_SEARCH_COLUMNS if column in columns],
            params.search,
        )
        if params.amenity_ids:
            link_columns = self.introspector.table_columns("park_amenities")
            if not {"park_id", "amenity_id"} <= link_columns:
                logger.warning("park_amenities unavailable; amenity filter matches nothing")
                return []
            query.where_contains_all(
                "id", "park_amenities", "park_id", "amenity_id", params.amenity_ids
            )
        query.order_by("name")
        query.order_by("id")

        parks = self._rows(query.build())
        if not parks:
            return []

        park_ids = [park["id"] for park in parks]
        images, amenities = self._collect(
            [
                ("mainImages", lambda: self._load_primary_images(park_ids), dict),
                ("amenities", lambda: self._load_amenity_summaries(park_ids), dict),
            ]
        )
        for park in parks:
            park["mainImageUrl"] = images.data.get(park["id"])
            park["amenities"] = amenities.data.get(park["id"], [])
        return parks

    # ------------------------------------------------------------------
    # Per-park collections
    # ------------------------------------------------------------------

    def list_park_images(self, park_id: int) -> Optional[List[Dict[str, Any]]]:
        if not self.park_exists(park_id):
            return None
        return self.load_images(park_id)

    def list_park_documents(self, park_id: int) -> Optional[List[Dict[str, Any]]]:
        if not self.park_exists(park_id):
            return None
        return self.load_documents(park_id)

    def list_park_amenities(self, park_id: int) -> Optional[List[Dict[str, Any]]]:
        if not self.park_exists(park_id):
            return None
        return self.load_amenities(park_id)

    def get_tree_summary(self, park_id: int) -> Optional[Dict[str, Any]]:
        if not self.park_exists(park_id):
            return None
        return self.load_tree_summary(park_id)

    def _has_primary_image(self, park_id: int) -> bool:
        columns = self._park_scoped_columns("park_images")
        primary_column = first_present(columns, IMAGE_PRIMARY_CANDIDATES)
        if primary_column is None:
            return False
        query = SelectQuery("park_images")
        query.select_expr("COUNT(*)", "value")
        query.where_eq("park_id", park_id)
        query.where(f"{query.col(primary_column)} = TRUE")
        return int(self._scalar(query.build()) or 0) > 0

    def _count_documents(self, park_id: int) -> int:
        found = self.introspector.first_existing_table(DOCUMENT_TABLE_CANDIDATES)
        if found is None:
            raise CollectionUnavailable("no park documents table found")
        return self._count_park_rows(found[0], park_id)

    def get_multimedia_stats(self, park_id: int) -> Optional[MultimediaStats]:
        if not self.park_exists(park_id):
            return None
        images, documents, primary = self._collect(
            [
                ("images", lambda: self._count_park_rows("park_images", park_id), int),
                ("documents", lambda: self._count_documents(park_id), int),
                ("primaryImage", lambda: self._has_primary_image(park_id), bool),
            ]
        )
        return MultimediaStats(
            park_id=park_id,
            total_images=images.data,
            total_documents=documents.data,
            has_primary_image=primary.data,
            data_warnings=[
                DataWarning(**outcome.as_warning())
                for outcome in (images, documents, primary)
                if not outcome.ok
            ],
        )

    # ------------------------------------------------------------------
    # Per-park statistics
    # ------------------------------------------------------------------

    def _count_park_rows(
        self, table: str, park_id: int, equals: Optional[Tuple[str, Any]] = None
    ) -> int:
        columns = self._park_scoped_columns(table)
        query = SelectQuery(table)
        query.select_expr("COUNT(*)", "value")
        query.where_eq("park_id", park_id)
        if equals is not None:
            column, value = equals
            if column not in columns:
                raise CollectionUnavailable(f"{table} lacks {column}")
            query.where_eq(column, value)
        return int(self._scalar(query.build()) or 0)

    def _pending_incident_count(self, park_id: int) -> int:
        columns = self._park_scoped_columns("incidents")
        query = SelectQuery("incidents")
        query.select_expr("COUNT(*)", "value")
        query.where_eq("park_id", park_id)
        if "status" in columns:
            query.where(
                f"NOT (COALESCE({query.col('status')}, '') = ANY({{}}))",
                list(RESOLVED_INCIDENT_STATUSES),
            )
        return int(self._scalar(query.build()) or 0)

    def _average_evaluation(self, park_id: int) -> float:
        self._park_scoped_columns("park_evaluations", "overall_rating")
        query = SelectQuery("park_evaluations")
        query.select_expr(f"COALESCE(AVG({query.col('overall_rating')}), 0)", "value")
        query.where_eq("park_id", park_id)
        return round(float(self._scalar(query.build()) or 0), 2)

    def get_park_stats(self, park_id: int) -> Optional[ParkStats]:
        """Park-scoped counters; each one defaults to zero when unavailable."""
        if not self.park_exists(park_id):
            return None
        outcomes = {
            outcome.name: outcome
            for outcome in self._collect(
                [
                    ("totalActivities", lambda: self._count_park_rows("activities", park_id), int),
                    (
                        "activeVolunteers",
                        lambda: self._count_park_rows("volunteers", park_id, ("status", "active")),
                        int,
                    ),
                    ("trees", lambda: self.load_tree_summary(park_id), empty_tree_summary),
                    ("totalAssets", lambda: self._count_park_rows("assets", park_id), int),
                    ("pendingIncidents", lambda: self._pending_incident_count(park_id), int),
                    (
                        "activeConcessions",
                        lambda: self._count_park_rows("active_concessions", park_id),
                        int,
                    ),
                    (
                        "totalEvaluations",
                        lambda: self._count_park_rows("park_evaluations", park_id),
                        int,
                    ),
                    ("averageEvaluation", lambda: self._average_evaluation(park_id), float),
                ]
            )
        }
        trees = outcomes["trees"].data
        return ParkStats(
            park_id=park_id,
            total_activities=outcomes["totalActivities"].data,
            active_volunteers=outcomes["activeVolunteers"].data,
            total_trees=trees["total"],
            trees_by_health=trees["byHealth"],
            total_assets=outcomes["totalAssets"].data,
            pending_incidents=outcomes["pendingIncidents"].data,
            active_concessions=outcomes["activeConcessions"].data,
            total_evaluations=outcomes["totalEvaluations"].data,
            average_evaluation=outcomes["averageEvaluation"].data,
            data_warnings=[
                DataWarning(**outcome.as_warning())
                for outcome in outcomes.values()
                if not outcome.ok
            ],
        )

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------

    def _table_count(
        self, table: str, equals: Optional[Tuple[str, Any]] = None
    ) -> int:
        columns = self.introspector.table_columns(table)
        if not columns:
            raise CollectionUnavailable(f"table {table} not found")
        query = SelectQuery(table)
        query.select_expr("COUNT(*)", "value")
        if equals is not None:
            column, value = equals
            if column not in columns:
                raise CollectionUnavailable(f"{table} lacks {column}")
            query.where_eq(column, value)
        return int(self._scalar(query.build()) or 0)

    def _recent_incident_count(self) -> int:
        columns = self.introspector.table_columns("incidents")
        if "created_at" not in columns:
            raise CollectionUnavailable("incidents.created_at not found")
        query = SelectQuery("incidents")
        query.select_expr("COUNT(*)", "value")
        query.where(
            f"{query.col('created_at')} >= CURRENT_DATE - {{}} * INTERVAL '1 day'",
            settings.DASHBOARD_INCIDENT_WINDOW_DAYS,
        )
        return int(self._scalar(query.build()) or 0)

    def _park_sum(self, column: str) -> float:
        columns = self._park_columns()
        if column not in columns:
            raise CollectionUnavailable(f"parks.{column} not found")
        query = SelectQuery("parks")
        query.select_expr(f"COALESCE(SUM({query.col(column)}), 0)", "value")
        return float(self._scalar(query.build()) or 0)

    def _park_distribution(self, column: str) -> List[Dict[str, Any]]:
        columns = self._park_columns()
        if column not in columns:
            raise CollectionUnavailable(f"parks.{column} not found")
        query = SelectQuery("parks")
        query.select(column, key="label")
        query.select_expr("COUNT(*)", "count")
        query.where(f"{query.col(column)} IS NOT NULL")
        query.group_by(query.col(column))
        query.order_by_expr('"count" DESC')
        query.order_by(column)
        return self._rows(query.build())

    def _parks_by_municipality(self) -> List[Dict[str, Any]]:
        columns = self._park_columns()
        municipality_columns = self.introspector.table_columns("municipalities")
        if "municipality_id" not in columns or not {"id", "name"} <= municipality_columns:
            raise CollectionUnavailable("municipalities not linked to parks")
        query = SelectQuery("parks", alias="p")
        query.join(
            "municipalities", "m", f"{query.col('municipality_id')} = {query.col('id', 'm')}"
        )
        query.select("name", key="municipalityName", alias="m")
        query.select_expr(f"COUNT({query.col('id')})", "count")
        query.group_by(query.col("id", "m"), query.col("name", "m"))
        query.order_by_expr('"count" DESC')
        query.order_by("name", alias="m")
        return self._rows(query.build())

    def get_dashboard_stats(self) -> ParkDashboardStats:
        outcomes = {
            outcome.name: outcome
            for outcome in self._collect(
                [
                    ("totalParks", lambda: self._table_count("parks"), int),
                    ("totalSurface", lambda: self._park_sum("area"), float),
                    ("totalGreenArea", lambda: self._park_sum("green_area"), float),
                    ("totalActivities", lambda: self._table_count("activities"), int),
                    (
                        "totalVolunteers",
                        lambda: self._table_count("volunteers", ("status", "active")),
                        int,
                    ),
                    ("totalTrees", lambda: self._table_count("trees"), int),
                    ("totalAmenities", lambda: self._table_count("amenities"), int),
                    ("totalInstructors", lambda: self._table_count("instructors"), int),
                    ("totalIncidents", self._recent_incident_count, int),
                    ("totalAssets", lambda: self._table_count("assets"), int),
                    ("parksByType", lambda: self._park_distribution("park_type"), list),
                    (
                        "conservationStatus",
                        lambda: self._park_distribution("conservation_status"),
                        list,
                    ),
                    ("parksByMunicipality", self._parks_by_municipality, list),
                ]
            )
        }

        total_parks = outcomes["totalParks"].data

        def _distribution(name: str) -> List[CategoryCount]:
            return [
                CategoryCount(
                    label=str(row["label"]),
                    count=int(row["count"]),
                    percentage=_percentage(int(row["count"]), total_parks),
                )
                for row in outcomes[name].data
            ]

        return ParkDashboardStats(
            total_parks=total_parks,
            total_surface=outcomes["totalSurface"].data,
            total_green_area=outcomes["totalGreenArea"].data,
            total_activities=outcomes["totalActivities"].data,
            total_volunteers=outcomes["totalVolunteers"].data,
            total_trees=outcomes["totalTrees"].data,
            total_amenities=outcomes["totalAmenities"].data,
            total_instructors=outcomes["totalInstructors"].data,
            total_incidents=outcomes["totalIncidents"].data,
            total_assets=outcomes["totalAssets"].data,
            parks_by_type=_distribution("parksByType"),
            conservation_status=_distribution("conservationStatus"),
            parks_by_municipality=[
                MunicipalityCount(
                    municipality_name=str(row["municipalityName"]),
                    count=int(row["count"]),
                )
                for row in outcomes["parksByMunicipality"].data
            ],
            data_warnings=[
                DataWarning(**outcome.as_warning())
                for outcome in outcomes.values()
                if not outcome.ok
            ],
        )
