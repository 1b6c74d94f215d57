"""Reshape upstream city/area lists into ``{"id": ..., "name": ...}`` options.

Each upstream spells its fields differently. Every target field has an
ordered tuple of candidate source fields; the first non-empty one wins.
"""
from __future__ import annotations

from typing import Any, Iterable, Optional

AREA_ID_FIELDS = ("id", "_id", "value", "code")
AREA_NAME_FIELDS = ("name", "label", "title")

CITY_ID_FIELDS = ("id", "CityId", "city_id", "code")
CITY_NAME_FIELDS = ("name", "CityName", "city_name")

ENVELOPE_KEYS = ("data", "items", "areas", "results", "city_list")


def _usable(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list, bool)):
        return None
    text = str(value).strip()
    return text or None


def coalesce(record: dict[str, Any], candidates: Iterable[str]) -> Optional[str]:
    for key in candidates:
        value = _usable(record.get(key))
        if value is not None:
            return value
    return None


def normalize_option(
    record: Any,
    id_fields: tuple[str, ...],
    name_fields: tuple[str, ...],
) -> Optional[dict[str, str]]:
    """Canonical option for one record, or None when it has no usable name."""
    if not isinstance(record, dict):
        return None
    name = coalesce(record, name_fields)
    if name is None:
        return None
    return {"id": coalesce(record, id_fields) or name, "name": name}


def normalize_options(
    records: Iterable[Any],
    id_fields: tuple[str, ...],
    name_fields: tuple[str, ...],
) -> list[dict[str, str]]:
    options = []
    for record in records:
        option = normalize_option(record, id_fields, name_fields)
        if option is not None:
            options.append(option)
    return options


def unwrap_list(payload: Any) -> list[Any]:
    """The record list from a bare list or from the first known envelope key."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in ENVELOPE_KEYS:
            value = payload.get(key)
            if isinstance(value, list):
                return value
    return []


def normalize_areas(payload: Any) -> list[dict[str, str]]:
    return normalize_options(unwrap_list(payload), AREA_ID_FIELDS, AREA_NAME_FIELDS)


def normalize_cities(payload: Any) -> list[dict[str, str]]:
    return normalize_options(unwrap_list(payload), CITY_ID_FIELDS, CITY_NAME_FIELDS)
