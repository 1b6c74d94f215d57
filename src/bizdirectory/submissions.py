"""New business submissions.

Order matters: the payload is validated before anything is uploaded or
written, the logo upload may fail without failing the submission, and the
category counter is bumped in the same transaction as the insert.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from .media import CloudinaryUploader
from .models import Business, Category
from .schemas import BusinessSubmission, validate_payload
from .slugs import insert_with_unique_slug, slugify_name

logger = logging.getLogger(__name__)

# (filename, content, content type) of an uploaded file
LogoFile = tuple[str, bytes, Optional[str]]


def _bump_category_count(session: Session, row: Business) -> None:
    session.execute(
        update(Category)
        .where(Category.slug == row.category)
        .values(count=Category.count + 1)
        .execution_options(synchronize_session=False)
    )


def submit_business(
    form: dict[str, Any],
    logo: Optional[LogoFile] = None,
    uploader: Optional[CloudinaryUploader] = None,
) -> Business:
    """Validate, upload the logo, and store a new ``pending`` listing.

    Raises ``SubmissionInvalid`` before any side effect when the form is invalid.
    """
    if "subCategory" not in form and "subcategory" in form:
        form = {**form, "subCategory": form["subcategory"]}
    payload = validate_payload(BusinessSubmission, form)

    uploaded = None
    if logo is not None and uploader is not None:
        filename, content, content_type = logo
        uploaded = uploader.upload(filename, content, content_type)
        if uploaded is None:
            logger.info("Storing %r without a logo", payload.name)

    values = payload.model_dump()

    def build_row(slug: str) -> Business:
        return Business(
            slug=slug,
            status="pending",
            logo_url=uploaded.url if uploaded else None,
            logo_public_id=uploaded.public_id if uploaded else None,
            **values,
        )

    row = insert_with_unique_slug(slugify_name(payload.name), build_row, after_insert=_bump_category_count)
    logger.info("Stored business %s with slug %s", row.id, row.slug)
    return row
