from __future__ import annotations

import pytest

from bizdirectory.errors import SubmissionInvalid
from bizdirectory.schemas import BusinessSubmission, ensure_url, validate_payload


def _form(**overrides) -> dict:
    form = {
        "name": "Al-Noor Café #1",
        "category": "restaurants",
        "province": "Punjab",
        "city": "Lahore",
        "address": "12 Food Street",
        "phone": "03001234567",
        "email": "owner@alnoor.pk",
        "description": "Traditional food since 1990.",
    }
    form.update(overrides)
    return form


def test_valid_submission_is_normalized():
    payload = validate_payload(
        BusinessSubmission,
        _form(
            name="  Al-Noor Café #1  ",
            subCategory="",
            postalCode="54000",
            websiteUrl="alnoor.pk",
            facebookUrl="https://facebook.com/alnoor",
            gmbUrl="   ",
        ),
    )

    assert payload.name == "Al-Noor Café #1"
    assert payload.sub_category is None
    assert payload.postal_code == "54000"
    assert payload.website_url == "https://alnoor.pk"
    assert payload.facebook_url == "https://facebook.com/alnoor"
    assert payload.gmb_url is None


def test_errors_are_reported_per_field():
    with pytest.raises(SubmissionInvalid) as excinfo:
        validate_payload(BusinessSubmission, _form(name="", email="not-an-email", description="short"))

    messages = {error["field"]: error["message"] for error in excinfo.value.errors}
    assert messages == {
        "name": "Business name is required",
        "email": "Invalid email format",
        "description": "Description must be at least 10 characters",
    }


def test_missing_required_fields():
    with pytest.raises(SubmissionInvalid) as excinfo:
        validate_payload(BusinessSubmission, {})

    fields = {error["field"] for error in excinfo.value.errors}
    assert fields == {"name", "category", "province", "city", "address", "phone", "email", "description"}
    assert {"field": "city", "message": "city is required"} in excinfo.value.errors


def test_length_limits():
    with pytest.raises(SubmissionInvalid) as excinfo:
        validate_payload(BusinessSubmission, _form(name="x" * 101, phone="1" * 21, address="a" * 501))

    assert {error["field"] for error in excinfo.value.errors} == {"name", "phone", "address"}


@pytest.mark.parametrize(
    "value,expected",
    [
        (None, None),
        ("", ""),
        ("example.com", "https://example.com"),
        ("http://example.com", "http://example.com"),
        ("HTTPS://example.com", "HTTPS://example.com"),
    ],
)
def test_ensure_url(value, expected):
    assert ensure_url(value) == expected
