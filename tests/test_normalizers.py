from __future__ import annotations

from bizdirectory.normalizers import (
    AREA_ID_FIELDS,
    AREA_NAME_FIELDS,
    coalesce,
    normalize_areas,
    normalize_cities,
    normalize_option,
    unwrap_list,
)


def test_coalesce_takes_first_non_empty_candidate():
    record = {"id": "", "_id": None, "value": "  ", "code": 42}
    assert coalesce(record, AREA_ID_FIELDS) == "42"
    assert coalesce({}, AREA_ID_FIELDS) is None


def test_coalesce_skips_structured_values():
    assert coalesce({"name": {"en": "Clifton"}, "label": "Clifton"}, AREA_NAME_FIELDS) == "Clifton"


def test_normalize_option_id_falls_back_to_name():
    assert normalize_option({"label": "DHA"}, AREA_ID_FIELDS, AREA_NAME_FIELDS) == {"id": "DHA", "name": "DHA"}


def test_normalize_option_drops_records_without_name():
    assert normalize_option({"id": 7}, AREA_ID_FIELDS, AREA_NAME_FIELDS) is None
    assert normalize_option("Clifton", AREA_ID_FIELDS, AREA_NAME_FIELDS) is None


def test_unwrap_list_envelopes():
    assert unwrap_list([1, 2]) == [1, 2]
    assert unwrap_list({"data": [1]}) == [1]
    assert unwrap_list({"items": [2]}) == [2]
    assert unwrap_list({"areas": [3]}) == [3]
    assert unwrap_list({"results": [4]}) == [4]
    assert unwrap_list({"city_list": [5]}) == [5]
    assert unwrap_list({"data": {"nested": []}}) == []
    assert unwrap_list(None) == []
    assert unwrap_list("oops") == []


def test_normalize_areas_mixed_shapes():
    payload = {
        "data": [
            {"id": 1, "name": "Clifton"},
            {"_id": "abc", "label": "DHA"},
            {"value": "g9", "title": "G-9"},
            {"code": "JT", "name": "  Johar Town  "},
            {"id": 5},
            {"name": ""},
            "garbage",
        ]
    }

    assert normalize_areas(payload) == [
        {"id": "1", "name": "Clifton"},
        {"id": "abc", "name": "DHA"},
        {"id": "g9", "name": "G-9"},
        {"id": "JT", "name": "Johar Town"},
    ]


def test_normalize_cities_upstream_shapes():
    payload = {
        "status": "1",
        "city_list": [
            {"CityId": "789", "CityName": "Karachi"},
            {"city_id": 12, "city_name": "Lahore"},
            {"id": "isb", "name": "Islamabad"},
            {"CityId": "0"},
        ],
    }

    assert normalize_cities(payload) == [
        {"id": "789", "name": "Karachi"},
        {"id": "12", "name": "Lahore"},
        {"id": "isb", "name": "Islamabad"},
    ]
