"""
=============================================================================
PARQUES ADMIN - PARK ENDPOINTS
=============================================================================

Endpoints:
    GET /parks - List parks with filters (``?simple=true`` for selectors)
    GET /parks/dashboard - Aggregate figures for the admin dashboard
    GET /parks/{park_id} - Park with all of its dependent collections
    GET /parks/{park_id}/amenities - Amenity placements of a park
    GET /parks/{park_id}/images - Images of a park
    GET /parks/{park_id}/documents - Documents of a park
    GET /parks/{park_id}/trees/summary - Tree health summary
    GET /parks/{park_id}/multimedia-stats - Image/document counts
    GET /parks/{park_id}/stats - Per-park counters

Identifiers are validated before any query runs; a malformed id answers
400 and an unknown park answers 404.
=============================================================================
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.api import deps
from app.schemas.park import (
    MultimediaStats,
    ParkDashboardStats,
    ParkSimpleItem,
    ParkStats,
)
from app.services.park_service import ParkFilterParams, ParkService
from app.utils.identifiers import parse_entity_id, parse_id_list, parse_optional_id

router = APIRouter()

PARK_NOT_FOUND = "Park not found"


def get_park_service(db: Session = Depends(deps.get_db)) -> ParkService:
    """Return park service bound to request DB session."""
    return ParkService(db)


def _not_found(value: Optional[Any]) -> Any:
    if value is None:
        raise HTTPException(status_code=404, detail=PARK_NOT_FOUND)
    return value


@router.get(
    "",
    summary="Listar parques",
    description="Lista parques con filtros; `amenities=3,7` exige todas las amenidades.",
)
def list_parks(
    municipality_id: Optional[str] = Query(None, alias="municipalityId"),
    park_type: Optional[str] = Query(None, alias="parkType"),
    postal_code: Optional[str] = Query(None, alias="postalCode"),
    conservation_status: Optional[str] = Query(None, alias="conservationStatus"),
    search: Optional[str] = Query(None, max_length=100, description="Buscar"),
    amenities: Optional[str] = Query(None, description="IDs separados por coma"),
    simple: bool = Query(False, description="Solo id, nombre y direccion"),
    service: ParkService = Depends(get_park_service),
) -> List[Dict[str, Any]]:
    params = ParkFilterParams(
        municipality_id=parse_optional_id(municipality_id, "municipalityId"),
        park_type=park_type or None,
        postal_code=postal_code or None,
        conservation_status=conservation_status or None,
        search=search.strip() if search and search.strip() else None,
        amenity_ids=tuple(parse_id_list(amenities, "amenities")),
    )
    parks = service.list_parks(params)
    if simple:
        return [
            ParkSimpleItem(
                id=park["id"], name=park["name"], address=park.get("address")
            ).model_dump(by_alias=True)
            for park in parks
        ]
    return parks


@router.get(
    "/dashboard",
    response_model=ParkDashboardStats,
    response_model_by_alias=True,
    summary="Estadisticas del tablero de parques",
)
def get_dashboard(
    service: ParkService = Depends(get_park_service),
) -> ParkDashboardStats:
    return service.get_dashboard_stats()


@router.get("/{park_id}", summary="Detalle de parque")
def get_park_detail(
    park_id: str,
    service: ParkService = Depends(get_park_service),
) -> Dict[str, Any]:
    return _not_found(service.get_park_detail(parse_entity_id(park_id, "park_id")))


@router.get("/{park_id}/amenities", summary="Amenidades del parque")
def list_park_amenities(
    park_id: str,
    service: ParkService = Depends(get_park_service),
) -> List[Dict[str, Any]]:
    return _not_found(service.list_park_amenities(parse_entity_id(park_id, "park_id")))


@router.get("/{park_id}/images", summary="Imagenes del parque")
def list_park_images(
    park_id: str,
    service: ParkService = Depends(get_park_service),
) -> List[Dict[str, Any]]:
    return _not_found(service.list_park_images(parse_entity_id(park_id, "park_id")))


@router.get("/{park_id}/documents", summary="Documentos del parque")
def list_park_documents(
    park_id: str,
    service: ParkService = Depends(get_park_service),
) -> List[Dict[str, Any]]:
    return _not_found(service.list_park_documents(parse_entity_id(park_id, "park_id")))


@router.get("/{park_id}/trees/summary", summary="Resumen de arbolado por estado")
def get_tree_summary(
    park_id: str,
    service: ParkService = Depends(get_park_service),
) -> Dict[str, Any]:
    return _not_found(service.get_tree_summary(parse_entity_id(park_id, "park_id")))


@router.get(
    "/{park_id}/multimedia-stats",
    response_model=MultimediaStats,
    response_model_by_alias=True,
    summary="Conteo de imagenes y documentos",
)
def get_multimedia_stats(
    park_id: str,
    service: ParkService = Depends(get_park_service),
) -> MultimediaStats:
    return _not_found(service.get_multimedia_stats(parse_entity_id(park_id, "park_id")))


@router.get(
    "/{park_id}/stats",
    response_model=ParkStats,
    response_model_by_alias=True,
    summary="Estadisticas del parque",
)
def get_park_stats(
    park_id: str,
    service: ParkService = Depends(get_park_service),
) -> ParkStats:
    return _not_found(service.get_park_stats(parse_entity_id(park_id, "park_id")))
