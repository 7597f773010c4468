# Exportar todos los routers
from . import amenities, assets, parks

__all__ = ["amenities", "assets", "parks"]
