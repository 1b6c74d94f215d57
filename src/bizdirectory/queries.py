from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Optional

from sqlalchemy import and_, or_, true
from sqlalchemy.sql.elements import ColumnElement

from .models import Business

# Columns the free-text ``q`` parameter is matched against
TEXT_SEARCH_COLUMNS = (
    Business.name,
    Business.description,
    Business.category,
    Business.province,
    Business.city,
    Business.area,
)

_EXACT_MATCH_COLUMNS = {
    "category": Business.category,
    "sub_category": Business.sub_category,
    "province": Business.province,
    "city": Business.city,
    "area": Business.area,
    "status": Business.status,
}


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


@dataclass(frozen=True)
class BusinessQuery:
    """Optional listing filters as received from the query string."""

    category: Optional[str] = None
    sub_category: Optional[str] = None
    province: Optional[str] = None
    city: Optional[str] = None
    area: Optional[str] = None
    status: Optional[str] = None
    q: Optional[str] = None

    def cleaned(self) -> "BusinessQuery":
        return BusinessQuery(**{f.name: _clean(getattr(self, f.name)) for f in fields(self)})


def escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def text_search_clause(q: str) -> ColumnElement[bool]:
    pattern = f"%{escape_like(q)}%"
    return or_(*[column.ilike(pattern, escape="\\") for column in TEXT_SEARCH_COLUMNS])


def build_business_filter(query: BusinessQuery) -> ColumnElement[bool]:
    """Conjunction of one exact-match clause per supplied parameter.

    Values are not checked against known enumerations: an unknown status
    simply matches nothing. A non-blank ``q`` adds an OR group of
    case-insensitive substring matches.
    """
    query = query.cleaned()
    clauses: list[ColumnElement[bool]] = []
    for attr, column in _EXACT_MATCH_COLUMNS.items():
        value = getattr(query, attr)
        if value is not None:
            clauses.append(column == value)
    if query.q:
        clauses.append(text_search_clause(query.q))
    if not clauses:
        return true()
    return and_(*clauses)
