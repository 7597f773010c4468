import pytest
from sqlalchemy.exc import OperationalError

from app.core.config import settings
from app.services.park_service import ParkFilterParams, ParkSchemaError, ParkService
from app.services.tree_health import empty_tree_summary

PARK_ROW = {"id": 1, "name": "Parque Colomos", "parkType": "urbano", "municipalityName": "Guadalajara"}

DETAIL_KEYS = {"images", "documents", "amenities", "activities", "assets", "trees"}


def _detail_responders(**overrides):
    responders = {
        'FROM "parks" "p"': [dict(PARK_ROW)],
        'FROM "park_images"': [
            {"id": 10, "imageUrl": "https://cdn/a.jpg", "isPrimary": False},
            {"id": 11, "imageUrl": "https://cdn/b.jpg", "isPrimary": True},
        ],
        'FROM "park_documents"': [{"id": 3, "title": "Reglamento"}],
        'FROM "park_amenities" "pa"': [{"id": 5, "name": "Juegos", "placementId": 40}],
        'FROM "activities" "a"': [{"id": 8, "title": "Yoga", "imageUrl": None}],
        'FROM "assets" "a"': [{"id": 2, "name": "Banca", "categoryName": "Mobiliario"}],
        'FROM "trees"': [{"health": "Bueno", "count": 5}, {"health": "seco", "count": 2}],
    }
    responders.update(overrides)
    return list(responders.items())


def test_detail_attaches_every_collection(fake_db, full_schema):
    db = fake_db(full_schema, _detail_responders())

    detail = ParkService(db).get_park_detail(1)

    assert DETAIL_KEYS <= set(detail)
    assert detail["name"] == "Parque Colomos"
    assert detail["mainImageUrl"] == "https://cdn/b.jpg"
    assert detail["amenities"] == [{"id": 5, "name": "Juegos", "placementId": 40}]
    assert detail["trees"] == {
        "total": 7,
        "byHealth": {"Bueno": 5, "Regular": 0, "Malo": 2, "Desconocido": 0},
    }
    assert detail["dataWarnings"] == []
    assert db.rollbacks == 0


def test_detail_of_missing_park_is_none_and_skips_collections(fake_db, full_schema):
    db = fake_db(full_schema, [])

    assert ParkService(db).get_park_detail(99) is None
    assert len(db.statements) == 1


def test_detail_queries_are_scoped_by_park(fake_db, full_schema):
    db = fake_db(full_schema, _detail_responders())

    ParkService(db).get_park_detail(1)

    for table in ('"park_images"', '"park_documents"', '"park_amenities"', '"activities"', '"assets"', '"trees"'):
        statements = db.data_statements(f"FROM {table}")
        assert len(statements) == 1
        sql, params = statements[0]
        assert '"park_id" = :p1' in sql
        assert params["p1"] == 1


def test_images_without_primary_column(fake_db, full_schema):
    full_schema["park_images"] = ["id", "park_id", "url", "created_at"]
    db = fake_db(
        full_schema,
        _detail_responders(**{'FROM "park_images"': [{"id": 10, "imageUrl": "https://cdn/a.jpg"}]}),
    )

    detail = ParkService(db).get_park_detail(1)

    sql, _ = db.data_statements('FROM "park_images"')[0]
    assert '"url" AS "imageUrl"' in sql
    assert "isPrimary" not in sql
    assert detail["mainImageUrl"] is None


def test_no_flagged_image_means_no_main_image(fake_db, full_schema):
    db = fake_db(
        full_schema,
        _detail_responders(**{'FROM "park_images"': [{"id": 10, "imageUrl": "https://cdn/a.jpg", "isPrimary": False}]}),
    )

    assert ParkService(db).get_park_detail(1)["mainImageUrl"] is None


def test_missing_trees_table_degrades_to_empty_summary(fake_db, full_schema):
    del full_schema["trees"]
    db = fake_db(full_schema, _detail_responders())

    detail = ParkService(db).get_park_detail(1)

    assert detail["trees"] == empty_tree_summary()
    assert detail["dataWarnings"] == [
        {"collection": "trees", "status": "degraded", "message": "table trees not found"}
    ]


def test_failed_collection_is_emptied_and_later_collections_still_load(fake_db, full_schema):
    db = fake_db(
        full_schema,
        _detail_responders(
            **{'FROM "park_amenities" "pa"': OperationalError("SELECT", {}, Exception("boom"))}
        ),
    )

    detail = ParkService(db).get_park_detail(1)

    assert detail["amenities"] == []
    assert detail["activities"] == [{"id": 8, "title": "Yoga", "imageUrl": None}]
    assert db.rollbacks == 1
    assert detail["dataWarnings"] == [
        {"collection": "amenities", "status": "failed", "message": "amenities could not be loaded"}
    ]


def test_tree_health_column_resolution_order(fake_db, full_schema):
    full_schema["trees"] = ["id", "park_id", "condition", "estado"]
    db = fake_db(full_schema, _detail_responders())

    ParkService(db).get_park_detail(1)

    sql, _ = db.data_statements('FROM "trees"')[0]
    assert '"t"."estado" AS "health"' in sql
    assert 'GROUP BY "t"."estado"' in sql


def test_trees_without_health_column_count_as_unknown(fake_db, full_schema):
    full_schema["trees"] = ["id", "park_id"]
    db = fake_db(full_schema, _detail_responders(**{'FROM "trees"': [{"count": 4}]}))

    detail = ParkService(db).get_park_detail(1)

    assert detail["trees"]["byHealth"]["Desconocido"] == 4
    assert "GROUP BY" not in db.data_statements('FROM "trees"')[0][0]


def test_activities_join_primary_image_and_are_limited(fake_db, full_schema):
    db = fake_db(full_schema, _detail_responders())

    ParkService(db).get_park_detail(1)

    sql, params = db.data_statements('FROM "activities"')[0]
    assert 'LEFT JOIN "activity_images" "ai"' in sql
    assert '"ai"."is_primary" = TRUE' in sql
    assert 'ORDER BY "a"."start_date" DESC NULLS LAST' in sql
    assert params[f"p{len(params)}"] == settings.PARK_DETAIL_ACTIVITY_LIMIT


def test_activities_without_image_table_select_null_image(fake_db, full_schema):
    del full_schema["activity_images"]
    db = fake_db(full_schema, _detail_responders())

    ParkService(db).get_park_detail(1)

    sql, _ = db.data_statements('FROM "activities"')[0]
    assert 'NULL AS "imageUrl"' in sql
    assert "activity_images" not in sql


def test_documents_fall_back_to_legacy_table(fake_db, full_schema):
    full_schema["documents"] = full_schema.pop("park_documents")
    db = fake_db(full_schema, _detail_responders(**{'FROM "documents"': [{"id": 1, "title": "Plano"}]}))

    detail = ParkService(db).get_park_detail(1)

    assert detail["documents"] == [{"id": 1, "title": "Plano"}]


def test_missing_parks_table_raises(fake_db, full_schema):
    del full_schema["parks"]

    with pytest.raises(ParkSchemaError):
        ParkService(fake_db(full_schema, [])).get_park_detail(1)


def test_list_parks_requires_every_requested_amenity(fake_db, full_schema):
    db = fake_db(
        full_schema,
        [
            ("DISTINCT ON", [{"parkId": 2, "imageUrl": "https://cdn/b.jpg"}]),
            ('FROM "park_amenities" "pa"', [{"parkId": 1, "id": 5, "name": "Juegos", "icon": "slide"}]),
            ('FROM "parks" "p"', [{"id": 1, "name": "Alamo"}, {"id": 2, "name": "Colomos"}]),
        ],
    )

    parks = ParkService(db).list_parks(ParkFilterParams(amenity_ids=(5,)))

    sql, params = db.data_statements('FROM "parks" "p"')[0]
    assert 'HAVING COUNT(DISTINCT "amenity_id") = :p2' in sql
    assert params["p1"] == [5] and params["p2"] == 1
    assert 'ORDER BY "p"."name" ASC' in sql
    assert parks == [
        {"id": 1, "name": "Alamo", "mainImageUrl": None, "amenities": [{"id": 5, "name": "Juegos", "icon": "slide"}]},
        {"id": 2, "name": "Colomos", "mainImageUrl": "https://cdn/b.jpg", "amenities": []},
    ]


def test_list_parks_batches_dependent_lookups(fake_db, full_schema):
    rows = [{"id": index, "name": f"Parque {index}"} for index in range(1, 26)]
    db = fake_db(full_schema, [('FROM "parks" "p"', rows)])

    ParkService(db).list_parks(ParkFilterParams())

    assert len(db.statements) == 3
    for needle in ('FROM "park_images"', 'FROM "park_amenities" "pa"'):
        sql, params = db.data_statements(needle)[0]
        assert '"park_id" = ANY(:p1)' in sql
        assert params["p1"] == list(range(1, 26))


def test_list_parks_applies_filters_and_search(fake_db, full_schema):
    db = fake_db(full_schema, [])

    ParkService(db).list_parks(
        ParkFilterParams(municipality_id=4, park_type="urbano", search="colomos")
    )

    sql, params = db.data_statements('FROM "parks" "p"')[0]
    assert '"p"."municipality_id" = :p1' in sql
    assert '"p"."park_type" = :p2' in sql
    assert "COALESCE(\"p\".\"address\", '') ILIKE :p3" in sql
    assert params == {"p1": 4, "p2": "urbano", "p3": "%colomos%"}


def test_list_parks_filter_on_missing_column_matches_nothing(fake_db, full_schema):
    full_schema["parks"].remove("postal_code")
    db = fake_db(full_schema, [('FROM "parks" "p"', [{"id": 1, "name": "Alamo"}])])

    assert ParkService(db).list_parks(ParkFilterParams(postal_code="44100")) == []
    assert db.statements == []


def test_list_parks_without_rows_skips_dependent_queries(fake_db, full_schema):
    db = fake_db(full_schema, [])

    assert ParkService(db).list_parks(ParkFilterParams()) == []
    assert len(db.statements) == 1


def test_park_collections_return_none_for_unknown_park(fake_db, full_schema):
    service = ParkService(fake_db(full_schema, []))

    assert service.list_park_images(5) is None
    assert service.list_park_amenities(5) is None
    assert service.list_park_documents(5) is None
    assert service.get_tree_summary(5) is None
    assert service.get_multimedia_stats(5) is None


def test_multimedia_stats(fake_db, full_schema):
    db = fake_db(
        full_schema,
        [
            ('AS "found"', [{"found": 1}]),
            ('"is_primary" = TRUE', [{"value": 1}]),
            ('FROM "park_images"', [{"value": 3}]),
            ('FROM "park_documents"', [{"value": 2}]),
        ],
    )

    stats = ParkService(db).get_multimedia_stats(1)

    assert stats.total_images == 3
    assert stats.total_documents == 2
    assert stats.has_primary_image is True
    assert stats.data_warnings == []


def test_dashboard_stats(fake_db, full_schema):
    db = fake_db(
        full_schema,
        [
            ('SUM("area")', [{"value": 1200.5}]),
            ('SUM("green_area")', [{"value": 800}]),
            ('COUNT(*) AS "value"\nFROM "parks"', [{"value": 4}]),
            ('COUNT(*) AS "value"\nFROM "trees"', [{"value": 150}]),
            ('GROUP BY "park_type"', [{"label": "urbano", "count": 3}, {"label": "lineal", "count": 1}]),
            ('GROUP BY "m"."id"', [{"municipalityName": "Guadalajara", "count": 4}]),
        ],
    )

    stats = ParkService(db).get_dashboard_stats()

    assert stats.total_parks == 4
    assert stats.total_surface == 1200.5
    assert stats.total_green_area == 800.0
    assert stats.total_trees == 150
    assert stats.total_volunteers == 0
    assert [(item.label, item.count, item.percentage) for item in stats.parks_by_type] == [
        ("urbano", 3, 75.0),
        ("lineal", 1, 25.0),
    ]
    assert stats.conservation_status == []
    assert stats.parks_by_municipality[0].municipality_name == "Guadalajara"
    degraded = {warning.collection for warning in stats.data_warnings}
    assert degraded == {"totalVolunteers", "totalInstructors", "totalIncidents"}


def test_assets_without_park_link_degrade(fake_db, full_schema):
    full_schema["assets"] = ["id", "name", "status"]
    db = fake_db(full_schema, _detail_responders())

    detail = ParkService(db).get_park_detail(1)

    assert detail["assets"] == []
    assert detail["dataWarnings"] == [
        {"collection": "assets", "status": "degraded", "message": "assets lacks park_id"}
    ]
    assert db.data_statements('FROM "assets"') == []


def test_park_collections_require_parks_table(fake_db, full_schema):
    del full_schema["parks"]
    service = ParkService(fake_db(full_schema, []))

    with pytest.raises(ParkSchemaError):
        service.list_park_images(1)
    with pytest.raises(ParkSchemaError):
        service.get_multimedia_stats(1)


def test_images_order_primary_first_then_oldest(fake_db, full_schema):
    db = fake_db(full_schema, _detail_responders())

    ParkService(db).get_park_detail(1)

    sql, _ = db.data_statements('FROM "park_images"')[0]
    assert 'ORDER BY "is_primary" DESC NULLS LAST, "created_at" ASC, "id" ASC' in sql


def test_detail_statements_repeat_identically(fake_db, full_schema):
    db = fake_db(full_schema, _detail_responders())
    service = ParkService(db)

    first = service.get_park_detail(1)
    first_statements = list(db.statements)
    db.statements.clear()
    second = service.get_park_detail(1)

    assert db.statements == first_statements
    assert first == second


def test_park_stats(fake_db, full_schema):
    full_schema.update(
        {
            "volunteers": ["id", "park_id", "status"],
            "incidents": ["id", "park_id", "status"],
            "park_evaluations": ["id", "park_id", "overall_rating"],
        }
    )
    db = fake_db(
        full_schema,
        [
            ('AS "found"', [{"found": 1}]),
            ('FROM "activities"', [{"value": 6}]),
            ('FROM "volunteers"', [{"value": 3}]),
            ('FROM "trees"', [{"health": "bueno", "count": 8}, {"health": "regular", "count": 2}]),
            ('FROM "assets"', [{"value": 11}]),
            ('FROM "incidents"', [{"value": 2}]),
            ('AVG("overall_rating")', [{"value": 4.5}]),
            ('FROM "park_evaluations"', [{"value": 9}]),
        ],
    )

    stats = ParkService(db).get_park_stats(1)

    assert stats.total_activities == 6
    assert stats.active_volunteers == 3
    assert stats.total_trees == 10
    assert stats.trees_by_health == {"Bueno": 8, "Regular": 2, "Malo": 0, "Desconocido": 0}
    assert stats.total_assets == 11
    assert stats.pending_incidents == 2
    assert stats.total_evaluations == 9
    assert stats.average_evaluation == 4.5
    assert stats.active_concessions == 0
    assert [warning.collection for warning in stats.data_warnings] == ["activeConcessions"]

    volunteers_sql, volunteers_params = db.data_statements('FROM "volunteers"')[0]
    assert '"status" = :p2' in volunteers_sql
    assert volunteers_params == {"p1": 1, "p2": "active"}
    incidents_sql, incidents_params = db.data_statements('FROM "incidents"')[0]
    assert "NOT (COALESCE(\"status\", '') = ANY(:p2))" in incidents_sql
    assert incidents_params["p2"] == ["resolved", "closed"]


def test_park_stats_of_unknown_park(fake_db, full_schema):
    assert ParkService(fake_db(full_schema, [])).get_park_stats(3) is None
