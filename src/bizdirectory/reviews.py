"""Reviews and the rating aggregate cached on each business.

The aggregate is always recomputed from the review rows, never adjusted
incrementally, and written back with a single UPDATE whose values are scalar
subqueries. Concurrent writers therefore cannot lose each other's reviews:
whichever UPDATE commits last has seen every committed review.
"""
from __future__ import annotations

import logging
import uuid
from typing import Any, Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .models import Business, Review, utc_now
from .schemas import ReviewSubmission

logger = logging.getLogger(__name__)

REVIEW_PAGE_SIZE = 200


def _aggregate_subqueries(business_id: str):
    avg_q = select(func.avg(Review.rating)).where(Review.business_id == business_id).scalar_subquery()
    count_q = select(func.count(Review.id)).where(Review.business_id == business_id).scalar_subquery()
    return avg_q, count_q


def rating_aggregate(session: Session, business_id: str) -> dict[str, Any]:
    row = session.execute(
        select(func.avg(Review.rating), func.count(Review.id)).where(Review.business_id == business_id)
    ).one()
    avg, count = row
    return {"avg": float(avg) if avg is not None else 0.0, "count": int(count or 0)}


def store_rating_aggregate(session: Session, business_id: str) -> bool:
    """Recompute the aggregate inside one UPDATE scoped by business id.

    Returns False, without writing, when ``business_id`` is not a valid
    business reference.
    """
    try:
        business_uuid = uuid.UUID(business_id)
    except (ValueError, AttributeError, TypeError):
        logger.warning("Skipping rating update for unrecognised business id %r", business_id)
        return False

    avg_q, count_q = _aggregate_subqueries(business_id)
    result = session.execute(
        update(Business)
        .where(Business.id == business_uuid)
        .values(rating_avg=func.coalesce(avg_q, 0), rating_count=count_q, updated_at=utc_now())
        .execution_options(synchronize_session=False)
    )
    return bool(result.rowcount)


def list_reviews(session: Session, business: Business) -> dict[str, Any]:
    business_id = str(business.id)
    rows = session.execute(
        select(Review)
        .where(Review.business_id == business_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .limit(REVIEW_PAGE_SIZE)
    ).scalars().all()

    aggregate = rating_aggregate(session, business_id)
    try:
        with session.begin_nested():
            store_rating_aggregate(session, business_id)
    except SQLAlchemyError as exc:
        logger.warning("Could not refresh cached rating for business %s: %s", business_id, exc)
    return {
        "reviews": [serialize_review(row) for row in rows],
        "ratingAvg": aggregate["avg"],
        "ratingCount": aggregate["count"],
    }


def submit_review(session: Session, payload: ReviewSubmission) -> dict[str, Any]:
    review = Review(
        business_id=payload.business_id,
        name=payload.name,
        rating=payload.rating,
        comment=payload.comment,
    )
    session.add(review)
    session.flush()

    store_rating_aggregate(session, payload.business_id)
    aggregate = rating_aggregate(session, payload.business_id)
    return {"ratingAvg": aggregate["avg"], "ratingCount": aggregate["count"]}


def serialize_review(row: Review) -> dict[str, Optional[Any]]:
    return {
        "id": str(row.id),
        "businessId": row.business_id,
        "name": row.name,
        "rating": row.rating,
        "comment": row.comment,
        "createdAt": row.created_at.isoformat() if row.created_at else None,
    }
