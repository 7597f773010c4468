from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api import deps
from app.services.amenity_service import AmenityService

router = APIRouter()


def get_amenity_service(db: Session = Depends(deps.get_db)) -> AmenityService:
    return AmenityService(db)


@router.get("", summary="Catalogo de amenidades")
def list_amenities(
    service: AmenityService = Depends(get_amenity_service),
) -> List[Dict[str, Any]]:
    return service.list_amenities()
