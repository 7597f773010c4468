import pytest
from sqlalchemy.exc import OperationalError

from app.services.dependent_fetch import (
    CollectionUnavailable,
    FetchStatus,
    fetch_dependent,
)


class _Session:
    def __init__(self):
        self.rollbacks = 0

    def rollback(self):
        self.rollbacks += 1


def test_loaded_outcome_keeps_data_even_when_empty():
    db = _Session()

    outcome = fetch_dependent(db, "images", lambda: [], list)

    assert outcome.status == FetchStatus.LOADED
    assert outcome.ok
    assert outcome.data == []
    assert db.rollbacks == 0


def test_schema_gap_degrades_without_rollback():
    db = _Session()

    def loader():
        raise CollectionUnavailable("table trees not found")

    outcome = fetch_dependent(db, "trees", loader, dict)

    assert outcome.status == FetchStatus.DEGRADED
    assert outcome.data == {}
    assert outcome.as_warning() == {
        "collection": "trees",
        "status": "degraded",
        "message": "table trees not found",
    }
    assert db.rollbacks == 0


def test_query_error_fails_and_rolls_back():
    db = _Session()

    def loader():
        raise OperationalError("SELECT ...", {}, Exception("relation does not exist"))

    outcome = fetch_dependent(db, "amenities", loader, list)

    assert outcome.status == FetchStatus.FAILED
    assert outcome.data == []
    assert outcome.warning == "amenities could not be loaded"
    assert db.rollbacks == 1


def test_other_errors_propagate():
    def loader():
        raise KeyError("imageUrl")

    with pytest.raises(KeyError):
        fetch_dependent(_Session(), "images", loader, list)
