from __future__ import annotations

import logging
import re
import time
from typing import Callable, Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .db import session_scope
from .errors import SlugConflict
from .models import Business
from .queries import escape_like

logger = logging.getLogger(__name__)

MAX_SLUG_LENGTH = 120
MAX_INSERT_ATTEMPTS = 5

_DISALLOWED_RE = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE_RE = re.compile(r"\s+")
_HYPHENS_RE = re.compile(r"-+")


def slugify_name(name: str) -> str:
    """Derive a URL-safe slug; non-ASCII letters are dropped, not transliterated."""
    value = (name or "").lower().strip()
    value = _DISALLOWED_RE.sub("", value)
    value = _WHITESPACE_RE.sub("-", value)
    value = _HYPHENS_RE.sub("-", value)
    value = value[:MAX_SLUG_LENGTH].strip("-")
    if not value:
        return f"business-{int(time.time() * 1000)}"
    return value


def next_free_slug(session: Session, base: str) -> str:
    """Smallest of ``base``, ``base-1``, ``base-2``... not yet stored.

    Only a hint: the unique index on ``businesses.slug`` is what guarantees
    uniqueness when two submissions race for the same candidate.
    """
    taken = set(
        session.execute(
            select(Business.slug).where(
                or_(
                    Business.slug == base,
                    Business.slug.like(f"{escape_like(base)}-%", escape="\\"),
                )
            )
        ).scalars()
    )
    if base not in taken:
        return base
    suffix = 1
    while f"{base}-{suffix}" in taken:
        suffix += 1
    return f"{base}-{suffix}"


def _is_slug_violation(exc: IntegrityError) -> bool:
    return "slug" in str(exc.orig).lower()


def insert_with_unique_slug(
    base: str,
    build_row: Callable[[str], Business],
    after_insert: Optional[Callable[[Session, Business], None]] = None,
) -> Business:
    """Insert the row built for a free slug, retrying on unique-index collisions.

    Each attempt runs in its own transaction so a collision rolls back cleanly
    and the next attempt re-reads the taken slugs.
    """
    for attempt in range(1, MAX_INSERT_ATTEMPTS + 1):
        try:
            with session_scope() as session:
                slug = next_free_slug(session, base)
                row = build_row(slug)
                session.add(row)
                session.flush()
                if after_insert is not None:
                    after_insert(session, row)
            return row
        except IntegrityError as exc:
            if not _is_slug_violation(exc):
                raise
            logger.info("Slug collision for %r on attempt %d, retrying", base, attempt)
    raise SlugConflict(base, MAX_INSERT_ATTEMPTS)
