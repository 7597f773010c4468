from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Serializes with the camelCase keys the web clients expect."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DataWarning(CamelModel):
    """A dependent collection that was replaced by its default."""
    collection: str
    status: str
    message: Optional[str] = None


class ParkSimpleItem(CamelModel):
    """Lightweight park entry used by form selectors (``?simple=true``)."""
    id: int
    name: str
    address: Optional[str] = None


class CategoryCount(CamelModel):
    label: str
    count: int
    percentage: float = Field(0.0, ge=0, le=100)


class MunicipalityCount(CamelModel):
    municipality_name: str
    count: int


class ParkDashboardStats(CamelModel):
    """Aggregates for the parks dashboard; unavailable figures default to zero."""
    total_parks: int = 0
    total_surface: float = 0.0
    total_green_area: float = 0.0
    total_activities: int = 0
    total_volunteers: int = 0
    total_trees: int = 0
    total_amenities: int = 0
    total_instructors: int = 0
    total_incidents: int = 0
    total_assets: int = 0
    parks_by_type: List[CategoryCount] = Field(default_factory=list)
    conservation_status: List[CategoryCount] = Field(default_factory=list)
    parks_by_municipality: List[MunicipalityCount] = Field(default_factory=list)
    data_warnings: List[DataWarning] = Field(default_factory=list)


class MultimediaStats(CamelModel):
    park_id: int
    total_images: int = 0
    total_documents: int = 0
    has_primary_image: bool = False
    data_warnings: List[DataWarning] = Field(default_factory=list)


class ParkStats(CamelModel):
    """Per-park counters shown on the park detail page."""
    park_id: int
    total_activities: int = 0
    active_volunteers: int = 0
    total_trees: int = 0
    trees_by_health: Dict[str, int] = Field(default_factory=dict)
    total_assets: int = 0
    pending_incidents: int = 0
    active_concessions: int = 0
    total_evaluations: int = 0
    average_evaluation: float = 0.0
    data_warnings: List[DataWarning] = Field(default_factory=list)
