"""
Parques Admin Services Module.

Services:
    - ParkService: park listing, detail aggregation and dashboard
    - AssetService: asset inventory
    - AmenityService: amenity catalog
"""
from app.services.amenity_service import AmenityService
from app.services.asset_service import AssetService
from app.services.park_service import ParkService

__all__ = ["AmenityService", "AssetService", "ParkService"]
