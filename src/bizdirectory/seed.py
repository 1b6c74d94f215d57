"""Default reference data inserted on first initialisation."""
from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .models import Category, City

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = [
    {"name": "Restaurants", "slug": "restaurants", "icon": "🍽️", "description": "Food and dining establishments"},
    {"name": "Healthcare", "slug": "healthcare", "icon": "🏥", "description": "Medical and healthcare services"},
    {"name": "Education", "slug": "education", "icon": "🎓", "description": "Educational institutions and services"},
    {"name": "Automotive", "slug": "automotive", "icon": "🚗", "description": "Car services and automotive businesses"},
    {"name": "Beauty & Salon", "slug": "beauty-salon", "icon": "💄", "description": "Beauty and salon services"},
    {"name": "Shopping", "slug": "shopping", "icon": "🛍️", "description": "Retail and shopping centers"},
]

DEFAULT_CITIES = [
    {"name": "Karachi", "slug": "karachi", "province": "Sindh"},
    {"name": "Lahore", "slug": "lahore", "province": "Punjab"},
    {"name": "Islamabad", "slug": "islamabad", "province": "Federal Capital"},
    {"name": "Rawalpindi", "slug": "rawalpindi", "province": "Punjab"},
    {"name": "Faisalabad", "slug": "faisalabad", "province": "Punjab"},
    {"name": "Multan", "slug": "multan", "province": "Punjab"},
]


def seed_reference_data(session: Session) -> dict[str, int]:
    """Insert default categories and cities into empty tables only."""
    inserted = {"categories": 0, "cities": 0}

    if not session.execute(select(func.count(Category.id))).scalar():
        session.add_all(Category(**values) for values in DEFAULT_CATEGORIES)
        inserted["categories"] = len(DEFAULT_CATEGORIES)
        logger.info("Inserted %d default categories", len(DEFAULT_CATEGORIES))

    if not session.execute(select(func.count(City.id))).scalar():
        session.add_all(City(country="Pakistan", **values) for values in DEFAULT_CITIES)
        inserted["cities"] = len(DEFAULT_CITIES)
        logger.info("Inserted %d default cities", len(DEFAULT_CITIES))

    session.flush()
    return inserted
