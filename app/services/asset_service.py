"""
=============================================================================
PARQUES ADMIN - ASSET INVENTORY SERVICE
=============================================================================

Listing and detail of park assets (benches, lighting, irrigation, vehicles)
with their lifecycle fields.

Features:
    - Equality filters by category, park, status and condition
    - Substring search over the descriptive columns present in the schema
    - "Maintenance due" filter on next_maintenance_date
    - Category and park names joined when those tables exist

Every optional column is confirmed through the schema introspector before
it is selected, so installations missing e.g. ``serial_number`` still list.
=============================================================================
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Set

from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.introspection import SchemaIntrospector
from app.db.query_builder import SelectQuery
from app.services.dependent_fetch import CollectionUnavailable

logger = logging.getLogger(__name__)

ASSET_COLUMNS = (
    "id",
    "name",
    "description",
    "serial_number",
    "category_id",
    "park_id",
    "location_description",
    "latitude",
    "longitude",
    "manufacturer",
    "model",
    "status",
    "condition",
    "acquisition_date",
    "acquisition_cost",
    "current_value",
    "maintenance_frequency",
    "last_maintenance_date",
    "next_maintenance_date",
    "expected_lifespan",
    "notes",
    "created_at",
    "updated_at",
)

ASSET_SEARCH_COLUMNS = ("name", "description", "serial_number", "model", "manufacturer")

CATEGORY_COLUMNS = {"name": "categoryName", "icon": "categoryIcon", "color": "categoryColor"}


@dataclass(frozen=True)
class AssetFilterParams:
    """Filter parameters for asset listing queries."""
    category_id: Optional[int] = None
    park_id: Optional[int] = None
    status: Optional[str] = None
    condition: Optional[str] = None
    search: Optional[str] = None
    maintenance_due: bool = False


class AssetService:
    """Service for asset inventory queries."""
    def __init__(self, db: Session, introspector: Optional[SchemaIntrospector] = None):
        self.db = db
        self.introspector = introspector or SchemaIntrospector(db, settings.DB_SCHEMA)

    def _asset_columns(self) -> Set[str]:
        columns = self.introspector.table_columns("assets")
        if not columns or "id" not in columns:
            raise CollectionUnavailable("table assets not found")
        return columns

    def build_asset_query(self, columns: Set[str], with_park_name: bool = True) -> SelectQuery:
        query = SelectQuery("assets", alias="a")
        query.select_present(columns, ASSET_COLUMNS)

        if "category_id" in columns:
            category_columns = self.introspector.table_columns("asset_categories")
            if "id" in category_columns:
                query.left_join(
                    "asset_categories",
                    "c",
                    f"{query.col('category_id')} = {query.col('id', 'c')}",
                )
                for column, key in CATEGORY_COLUMNS.items():
                    if column in category_columns:
                        query.select(column, key=key, alias="c")

        if with_park_name and "park_id" in columns:
            park_columns = self.introspector.table_columns("parks")
            if {"id", "name"} <= park_columns:
                query.left_join(
                    "parks", "p", f"{query.col('park_id')} = {query.col('id', 'p')}"
                )
                query.select("name", key="parkName", alias="p")
        return query

    def list_assets(
        self, params: AssetFilterParams, with_park_name: bool = True
    ) -> List[Dict[str, Any]]:
        columns = self._asset_columns()

        requested = {
            "category_id": params.category_id,
            "park_id": params.park_id,
            "status": params.status,
            "condition": params.condition,
        }
        missing = [name for name, value in requested.items() if value is not None and name not in columns]
        if missing:
            logger.warning("Asset filter on missing columns %s; no rows can match", missing)
            return []
        if params.maintenance_due and "next_maintenance_date" not in columns:
            logger.warning("assets.next_maintenance_date missing; maintenance filter matches nothing")
            return []

        query = self.build_asset_query(columns, with_park_name=with_park_name)
        for column, value in requested.items():
            query.where_eq(column, value)
        query.where_ilike(
            [column for column in ASSET_SEARCH_COLUMNS if column in columns],
            params.search,
        )
        if params.maintenance_due:
            query.where(f"{query.col('next_maintenance_date')} <= CURRENT_DATE")

        if "name" in columns:
            query.order_by("name")
        query.order_by("id")

        built = query.build()
        rows = self.db.execute(built.statement(), built.bind_params()).mappings().all()
        return [dict(row) for row in rows]

    def get_asset(self, asset_id: int) -> Optional[Dict[str, Any]]:
        columns = self._asset_columns()
        query = self.build_asset_query(columns)
        query.where_eq("id", asset_id)
        built = query.build()
        row = self.db.execute(built.statement(), built.bind_params()).mappings().first()
        return dict(row) if row else None
