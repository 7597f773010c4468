# Exportar todos los routers
from . import health

__all__ = ["health"]
