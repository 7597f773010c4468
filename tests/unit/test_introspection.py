import pytest
from sqlalchemy.exc import OperationalError

from app.db.introspection import SchemaIntrospector, first_present


def test_table_columns_returns_catalog_columns(fake_db):
    db = fake_db({"trees": ["id", "park_id", "estado"]})

    assert SchemaIntrospector(db).table_columns("trees") == {"id", "park_id", "estado"}


def test_table_columns_is_empty_for_missing_table(fake_db):
    assert SchemaIntrospector(fake_db({})).table_columns("trees") == set()


def test_table_exists(fake_db):
    introspector = SchemaIntrospector(fake_db({"parks": ["id"]}))

    assert introspector.table_exists("parks") is True
    assert introspector.table_exists("trees") is False


def test_first_present_follows_candidate_order():
    columns = {"condition", "estado"}

    assert first_present(columns, ("health_condition", "estado", "health", "condition")) == "estado"
    assert first_present(columns, ("health",)) is None


def test_first_existing_table_falls_back(fake_db):
    db = fake_db({"documents": ["id", "park_id", "title"]})

    table, columns = SchemaIntrospector(db).first_existing_table(("park_documents", "documents"))

    assert table == "documents"
    assert "title" in columns


def test_catalog_errors_propagate():
    class BrokenSession:
        def execute(self, statement, params=None):
            raise OperationalError("SELECT column_name", params, Exception("connection lost"))

    with pytest.raises(OperationalError):
        SchemaIntrospector(BrokenSession()).table_columns("parks")


def test_every_call_reads_the_catalog(fake_db):
    db = fake_db({"parks": ["id", "name"]})
    introspector = SchemaIntrospector(db)

    assert introspector.table_columns("parks") == {"id", "name"}
    db.schema["parks"].append("video_url")
    assert "video_url" in introspector.table_columns("parks")
