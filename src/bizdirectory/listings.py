from __future__ import annotations

import logging
import math
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from .errors import NotFoundError
from .media import build_cdn_url
from .models import Business, Category
from .queries import escape_like

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 12
MAX_LIMIT = 100
# Keeps (page - 1) * MAX_LIMIT well inside a signed 64-bit OFFSET
MAX_PAGE = 10**15

SUGGESTION_MIN_QUERY = 2
SUGGESTION_BUSINESS_LIMIT = 5
SUGGESTION_CATEGORY_LIMIT = 3


def parse_positive_int(raw: Optional[str], default: int) -> int:
    """Parse a user-supplied number; anything unusable yields ``default``."""
    if raw is None:
        return default
    try:
        value = int(str(raw).strip())
    except ValueError:
        return default
    return value if value >= 1 else default


def parse_page_params(page: Optional[str], limit: Optional[str]) -> tuple[int, int]:
    return (
        min(parse_positive_int(page, DEFAULT_PAGE), MAX_PAGE),
        min(parse_positive_int(limit, DEFAULT_LIMIT), MAX_LIMIT),
    )


def parse_cursor(after: Optional[str]) -> Optional[datetime]:
    if not after or not after.strip():
        return None
    raw = after.strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def serialize_business(row: Business, cloud_name: Optional[str] = None) -> dict[str, Any]:
    logo_url = row.logo_url or build_cdn_url(row.logo_public_id, cloud_name)
    return {
        "id": str(row.id),
        "name": row.name,
        "slug": row.slug,
        "category": row.category,
        "subCategory": row.sub_category,
        "province": row.province,
        "city": row.city,
        "area": row.area,
        "postalCode": row.postal_code,
        "address": row.address,
        "phone": row.phone,
        "contactPerson": row.contact_person,
        "whatsapp": row.whatsapp,
        "email": row.email,
        "description": row.description,
        "websiteUrl": row.website_url,
        "facebookUrl": row.facebook_url,
        "gmbUrl": row.gmb_url,
        "youtubeUrl": row.youtube_url,
        "logoUrl": logo_url,
        "logoPublicId": row.logo_public_id,
        "status": row.status,
        "ratingAvg": row.rating_avg,
        "ratingCount": row.rating_count,
        "createdAt": _isoformat(row.created_at),
        "updatedAt": _isoformat(row.updated_at),
    }


def list_businesses(
    session: Session,
    predicate: ColumnElement[bool],
    page: int = DEFAULT_PAGE,
    limit: int = DEFAULT_LIMIT,
    after: Optional[datetime] = None,
    cloud_name: Optional[str] = None,
) -> dict[str, Any]:
    """One page of matching businesses, newest first, plus the total count.

    With ``after`` the page is the ``limit`` rows created strictly before that
    instant and ``page`` no longer drives the offset.
    """
    total = int(session.execute(select(func.count(Business.id)).where(predicate)).scalar() or 0)

    stmt = select(Business).where(predicate)
    if after is not None:
        stmt = stmt.where(Business.created_at < after)
        offset = 0
    else:
        offset = (page - 1) * limit
    stmt = stmt.order_by(Business.created_at.desc(), Business.id.desc()).offset(offset).limit(limit)

    rows = session.execute(stmt).scalars().all()
    logger.debug("Listing page=%d limit=%d returned %d of %d", page, limit, len(rows), total)

    next_cursor = _isoformat(rows[-1].created_at) if len(rows) == limit else None
    return {
        "items": [serialize_business(row, cloud_name) for row in rows],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit),
            "nextCursor": next_cursor,
        },
    }


def _parse_uuid(value: str) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(value)
    except (ValueError, AttributeError, TypeError):
        return None


def find_business(session: Session, business_id: Optional[str] = None, slug: Optional[str] = None) -> Business:
    """Look a business up by slug, or by id with a silent fallback to slug.

    A ``business_id`` that is not a UUID is treated as a slug instead of an error.
    """
    row: Optional[Business] = None
    if slug:
        row = session.execute(select(Business).where(Business.slug == slug)).scalar_one_or_none()
    elif business_id:
        business_uuid = _parse_uuid(business_id)
        if business_uuid is not None:
            row = session.get(Business, business_uuid)
        else:
            row = session.execute(select(Business).where(Business.slug == business_id)).scalar_one_or_none()
    if row is None:
        raise NotFoundError("Business")
    return row


def search_suggestions(session: Session, q: Optional[str]) -> dict[str, list[dict[str, Any]]]:
    query = (q or "").strip()
    if len(query) < SUGGESTION_MIN_QUERY:
        return {"businesses": [], "categories": []}

    pattern = f"%{escape_like(query)}%"
    businesses = session.execute(
        select(Business)
        .where(Business.status == "approved")
        .where(or_(Business.name.ilike(pattern, escape="\\"), Business.description.ilike(pattern, escape="\\")))
        .order_by(Business.created_at.desc())
        .limit(SUGGESTION_BUSINESS_LIMIT)
    ).scalars().all()
    categories = session.execute(
        select(Category)
        .where(Category.name.ilike(pattern, escape="\\"))
        .order_by(Category.name)
        .limit(SUGGESTION_CATEGORY_LIMIT)
    ).scalars().all()

    return {
        "businesses": [
            {
                "id": str(row.id),
                "name": row.name,
                "slug": row.slug,
                "city": row.city,
                "category": row.category,
                "logoUrl": row.logo_url,
            }
            for row in businesses
        ],
        "categories": [{"name": row.name, "slug": row.slug} for row in categories],
    }


def listed_business_slugs(session: Session) -> list[str]:
    return list(
        session.execute(
            select(Business.slug).where(Business.status == "approved").order_by(Business.created_at.desc())
        ).scalars()
    )
