"""
Outcome of loading one dependent collection of an aggregate.

A park page keeps rendering when, say, the amenities join breaks: the
collection is replaced by its default and the outcome records why, so the
degradation shows up in the response and in the logs instead of vanishing.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


class CollectionUnavailable(Exception):
    """The schema lacks the table or column a collection needs."""


class FetchStatus(str, Enum):
    LOADED = "loaded"
    DEGRADED = "degraded"
    FAILED = "failed"


@dataclass(frozen=True)
class FetchOutcome:
    name: str
    status: FetchStatus
    data: Any
    warning: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == FetchStatus.LOADED

    def as_warning(self) -> Dict[str, Any]:
        return {
            "collection": self.name,
            "status": self.status.value,
            "message": self.warning,
        }


def fetch_dependent(
    db: Session,
    name: str,
    loader: Callable[[], Any],
    default: Callable[[], Any],
) -> FetchOutcome:
    """Run ``loader`` and turn schema gaps or query errors into a defaulted outcome."""
    try:
        data = loader()
    except CollectionUnavailable as exc:
        logger.warning("Collection %s unavailable: %s", name, exc)
        return FetchOutcome(name, FetchStatus.DEGRADED, default(), str(exc))
    except SQLAlchemyError as exc:
        logger.warning("Collection %s query failed: %s", name, exc)
        # A failed statement aborts the transaction; later loaders need a clean one.
        db.rollback()
        return FetchOutcome(
            name, FetchStatus.FAILED, default(), f"{name} could not be loaded"
        )
    return FetchOutcome(name, FetchStatus.LOADED, data)
