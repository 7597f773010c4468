"""Amenity catalog lookups."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.introspection import SchemaIntrospector
from app.db.query_builder import SelectQuery
from app.services.dependent_fetch import CollectionUnavailable

logger = logging.getLogger(__name__)

CATALOG_COLUMNS = ("id", "name", "icon", "category", "icon_type", "custom_icon_url", "description")


class AmenityService:
    def __init__(self, db: Session, introspector: Optional[SchemaIntrospector] = None):
        self.db = db
        self.introspector = introspector or SchemaIntrospector(db, settings.DB_SCHEMA)

    def list_amenities(self) -> List[Dict[str, Any]]:
        """Every amenity in the catalog, ordered by name."""
        columns = self.introspector.table_columns("amenities")
        if "id" not in columns:
            raise CollectionUnavailable("table amenities not found")

        query = SelectQuery("amenities")
        query.select_present(columns, CATALOG_COLUMNS)
        if "name" in columns:
            query.order_by("name")
        query.order_by("id")

        built = query.build()
        rows = self.db.execute(built.statement(), built.bind_params()).mappings().all()
        logger.debug("Loaded %d amenities", len(rows))
        return [dict(row) for row in rows]
