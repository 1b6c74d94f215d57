from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from .errors import NotFoundError
from .listings import parse_positive_int
from .models import Category
from .queries import escape_like
from .slugs import slugify_name

DEFAULT_LIST_LIMIT = 10
MAX_LIST_LIMIT = 200

# Used when a stored category has no subcategories of its own
DEFAULT_SUBCATEGORIES: dict[str, list[dict[str, str]]] = {
    "beauty-salon": [
        {"name": "Hair Care", "slug": "hair-care"},
        {"name": "Makeup", "slug": "makeup"},
        {"name": "Skin Care", "slug": "skin-care"},
        {"name": "Nail Salon", "slug": "nail-salon"},
        {"name": "Spa", "slug": "spa"},
    ],
    "automotive": [
        {"name": "Car Repair", "slug": "car-repair"},
        {"name": "Car Wash", "slug": "car-wash"},
        {"name": "Tyres & Wheels", "slug": "tyres-wheels"},
        {"name": "Car Accessories", "slug": "car-accessories"},
        {"name": "Showroom", "slug": "showroom"},
    ],
    "restaurants": [
        {"name": "Fast Food", "slug": "fast-food"},
        {"name": "BBQ", "slug": "bbq"},
        {"name": "Pakistani", "slug": "pakistani"},
        {"name": "Chinese", "slug": "chinese"},
        {"name": "Cafe", "slug": "cafe"},
    ],
    "healthcare": [
        {"name": "Clinic", "slug": "clinic"},
        {"name": "Hospital", "slug": "hospital"},
        {"name": "Pharmacy", "slug": "pharmacy"},
        {"name": "Dentist", "slug": "dentist"},
        {"name": "Laboratory", "slug": "laboratory"},
    ],
    "education": [
        {"name": "School", "slug": "school"},
        {"name": "College", "slug": "college"},
        {"name": "University", "slug": "university"},
        {"name": "Coaching", "slug": "coaching"},
        {"name": "Training Center", "slug": "training-center"},
    ],
    "shopping": [
        {"name": "Clothing", "slug": "clothing"},
        {"name": "Electronics", "slug": "electronics"},
        {"name": "Groceries", "slug": "groceries"},
        {"name": "Footwear", "slug": "footwear"},
        {"name": "Jewelry", "slug": "jewelry"},
    ],
}


def serialize_category(row: Category) -> dict[str, Any]:
    slug = row.slug or slugify_name(row.name)
    subcategories = row.subcategories if row.subcategories else DEFAULT_SUBCATEGORIES.get(slug, [])
    return {
        "name": row.name,
        "slug": slug,
        "icon": row.icon,
        "description": row.description,
        "count": row.count,
        "subcategories": subcategories,
    }


def list_categories(session: Session, q: Optional[str] = None, limit: Optional[str] = None) -> list[dict[str, Any]]:
    safe_limit = min(parse_positive_int(limit, DEFAULT_LIST_LIMIT), MAX_LIST_LIMIT)
    stmt = select(Category).where(Category.is_active.isnot(False))
    query = (q or "").strip()
    if query:
        pattern = f"%{escape_like(query)}%"
        stmt = stmt.where(or_(Category.name.ilike(pattern, escape="\\"), Category.slug.ilike(pattern, escape="\\")))
    rows = session.execute(stmt.order_by(Category.count.desc(), Category.name).limit(safe_limit)).scalars().all()
    return [serialize_category(row) for row in rows]


def get_category(session: Session, slug: str) -> dict[str, Any]:
    row = session.execute(
        select(Category).where(Category.slug == slug).where(Category.is_active.isnot(False))
    ).scalar_one_or_none()
    if row is None:
        raise NotFoundError("Category")
    return serialize_category(row)
