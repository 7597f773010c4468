"""
Asset inventory endpoints.

Endpoints:
    GET /assets - List assets (filters: categoryId, parkId, status,
                  condition, search, maintenanceDue)
    GET /assets/{asset_id} - Asset detail
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.api import deps
from app.services.asset_service import AssetFilterParams, AssetService
from app.utils.identifiers import parse_entity_id, parse_optional_id

router = APIRouter()


def get_asset_service(db: Session = Depends(deps.get_db)) -> AssetService:
    """Return asset service bound to request DB session."""
    return AssetService(db)


@router.get("", summary="Listar activos")
def list_assets(
    category_id: Optional[str] = Query(None, alias="categoryId"),
    park_id: Optional[str] = Query(None, alias="parkId"),
    status: Optional[str] = Query(None, description="Estado operativo"),
    condition: Optional[str] = Query(None, description="Condicion fisica"),
    search: Optional[str] = Query(None, max_length=100, description="Buscar"),
    maintenance_due: bool = Query(
        False, alias="maintenanceDue", description="Solo con mantenimiento vencido"
    ),
    service: AssetService = Depends(get_asset_service),
) -> List[Dict[str, Any]]:
    params = AssetFilterParams(
        category_id=parse_optional_id(category_id, "categoryId"),
        park_id=parse_optional_id(park_id, "parkId"),
        status=status or None,
        condition=condition or None,
        search=search.strip() if search and search.strip() else None,
        maintenance_due=maintenance_due,
    )
    return service.list_assets(params)


@router.get("/{asset_id}", summary="Detalle de activo")
def get_asset(
    asset_id: str,
    service: AssetService = Depends(get_asset_service),
) -> Dict[str, Any]:
    asset = service.get_asset(parse_entity_id(asset_id, "asset_id"))
    if asset is None:
        raise HTTPException(status_code=404, detail="Asset not found")
    return asset
