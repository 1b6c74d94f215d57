"""Payload validation for business and review submissions.

Validation failures are flattened into ``[{"field": ..., "message": ...}]``
so the API can return one readable message per offending form field.
"""
from __future__ import annotations

import re
from typing import Any, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationError, field_validator

from .errors import SubmissionInvalid

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)

# (field, pydantic error type) -> message shown to the submitter
_FRIENDLY_MESSAGES = {
    ("name", "string_too_short"): "Business name is required",
    ("name", "string_too_long"): "Name too long",
    ("category", "string_too_short"): "Category is required",
    ("province", "string_too_short"): "Province is required",
    ("city", "string_too_short"): "City is required",
    ("address", "string_too_short"): "Address is required",
    ("address", "string_too_long"): "Address too long",
    ("phone", "string_too_short"): "Phone number is required",
    ("phone", "string_too_long"): "Phone number too long",
    ("email", "value_error"): "Invalid email format",
    ("description", "string_too_short"): "Description must be at least 10 characters",
    ("description", "string_too_long"): "Description too long",
    ("businessId", "string_too_short"): "businessId is required",
    ("comment", "string_too_short"): "Please add a bit more detail",
    ("comment", "string_too_long"): "Comment too long",
    ("rating", "greater_than_equal"): "Rating must be between 1 and 5",
    ("rating", "less_than_equal"): "Rating must be between 1 and 5",
    ("rating", "int_parsing"): "Rating must be a whole number",
    ("rating", "int_from_float"): "Rating must be a whole number",
}


def ensure_url(value: Optional[str]) -> Optional[str]:
    if not value:
        return value
    if _SCHEME_RE.match(value):
        return value
    return f"https://{value}"


class BusinessSubmission(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True, extra="ignore")

    name: str = Field(min_length=1, max_length=100)
    category: str = Field(min_length=1)
    sub_category: Optional[str] = Field(None, alias="subCategory")
    province: str = Field(min_length=1)
    city: str = Field(min_length=1)
    area: Optional[str] = None
    postal_code: Optional[str] = Field(None, alias="postalCode")
    address: str = Field(min_length=1, max_length=500)
    phone: str = Field(min_length=1, max_length=20)
    contact_person: Optional[str] = Field(None, alias="contactPerson")
    whatsapp: Optional[str] = None
    email: EmailStr
    description: str = Field(min_length=10, max_length=1000)
    website_url: Optional[str] = Field(None, alias="websiteUrl")
    facebook_url: Optional[str] = Field(None, alias="facebookUrl")
    gmb_url: Optional[str] = Field(None, alias="gmbUrl")
    youtube_url: Optional[str] = Field(None, alias="youtubeUrl")

    @field_validator(
        "sub_category",
        "area",
        "postal_code",
        "contact_person",
        "whatsapp",
        "website_url",
        "facebook_url",
        "gmb_url",
        "youtube_url",
        mode="before",
    )
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("website_url", "facebook_url", "gmb_url", "youtube_url")
    @classmethod
    def _with_scheme(cls, value: Optional[str]) -> Optional[str]:
        return ensure_url(value)


class ReviewSubmission(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True, extra="ignore")

    business_id: str = Field(min_length=1, alias="businessId")
    name: str = Field(min_length=1, max_length=100)
    rating: int = Field(ge=1, le=5)
    comment: str = Field(min_length=3, max_length=1000)


def format_validation_errors(exc: ValidationError) -> list[dict[str, str]]:
    errors = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err["loc"]) or "__root__"
        message = _FRIENDLY_MESSAGES.get((field, err["type"]), err["msg"])
        if err["type"] == "missing":
            message = f"{field} is required"
        errors.append({"field": field, "message": message})
    return errors


Model = TypeVar("Model", bound=BaseModel)


def validate_payload(model: type[Model], data: dict[str, Any]) -> Model:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise SubmissionInvalid(format_validation_errors(exc)) from exc
