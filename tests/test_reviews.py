from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import text

import bizdirectory.reviews as reviews_module
from bizdirectory.db import session_scope
from bizdirectory.errors import SubmissionInvalid
from bizdirectory.models import Business, Review
from bizdirectory.reviews import (
    REVIEW_PAGE_SIZE,
    list_reviews,
    rating_aggregate,
    store_rating_aggregate,
    submit_review,
)
from bizdirectory.schemas import ReviewSubmission, validate_payload

BASE_TIME = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _submit(business_id: str, rating: int, comment: str = "Great food and service") -> dict:
    payload = validate_payload(
        ReviewSubmission,
        {"businessId": business_id, "name": "Ayesha", "rating": rating, "comment": comment},
    )
    with session_scope() as session:
        return submit_review(session, payload)


def test_three_reviews_average_four(db_session, make_business):
    business = make_business("Karahi House")
    business_id = str(business.id)

    _submit(business_id, 5)
    _submit(business_id, 3)
    result = _submit(business_id, 4)

    assert result == {"ratingAvg": 4, "ratingCount": 3}

    stored = db_session.get(Business, business.id)
    db_session.refresh(stored)
    assert stored.rating_avg == 4
    assert stored.rating_count == 3
    assert stored.updated_at is not None


def test_aggregate_is_exact_mean(db_session, make_business):
    business_id = str(make_business("Chai Wala").id)

    _submit(business_id, 5)
    result = _submit(business_id, 4)
    result = _submit(business_id, 4)

    assert result["ratingCount"] == 3
    assert result["ratingAvg"] == pytest.approx(13 / 3)


def test_aggregate_with_no_reviews(db_session, make_business):
    business = make_business("Empty")

    assert rating_aggregate(db_session, str(business.id)) == {"avg": 0.0, "count": 0}


def test_list_reviews_newest_first_and_writes_back(db_session, make_business):
    business = make_business("Tikka Corner")
    business_id = str(business.id)
    for i, rating in enumerate([2, 4]):
        db_session.add(
            Review(
                business_id=business_id,
                name=f"Reviewer {i}",
                rating=rating,
                comment="Solid experience",
                created_at=BASE_TIME + timedelta(minutes=i),
            )
        )
    db_session.commit()

    with session_scope() as session:
        result = list_reviews(session, session.get(Business, business.id))

    assert [review["name"] for review in result["reviews"]] == ["Reviewer 1", "Reviewer 0"]
    assert result["reviews"][0]["businessId"] == business_id
    assert result["ratingAvg"] == 3
    assert result["ratingCount"] == 2

    stored = db_session.get(Business, business.id)
    db_session.refresh(stored)
    assert stored.rating_avg == 3
    assert stored.rating_count == 2


def test_list_reviews_is_capped(db_session, make_business):
    business = make_business("Busy Place")
    business_id = str(business.id)
    db_session.add_all(
        Review(business_id=business_id, name="R", rating=5, comment="Nice one") for _ in range(REVIEW_PAGE_SIZE + 5)
    )
    db_session.commit()

    with session_scope() as session:
        result = list_reviews(session, session.get(Business, business.id))

    assert len(result["reviews"]) == REVIEW_PAGE_SIZE
    assert result["ratingCount"] == REVIEW_PAGE_SIZE + 5


def test_malformed_business_id_skips_cached_update(db_session):
    result = _submit("not-a-uuid", 5)

    assert result == {"ratingAvg": 5, "ratingCount": 1}
    with session_scope() as session:
        assert store_rating_aggregate(session, "not-a-uuid") is False


@pytest.mark.parametrize(
    "payload,field",
    [
        ({"businessId": "x", "name": "A", "rating": 0, "comment": "Good"}, "rating"),
        ({"businessId": "x", "name": "A", "rating": 6, "comment": "Good"}, "rating"),
        ({"businessId": "x", "name": "A", "rating": 4.5, "comment": "Good"}, "rating"),
        ({"businessId": "x", "name": "A", "rating": 4, "comment": "  ok  "}, "comment"),
        ({"businessId": "x", "name": "", "rating": 4, "comment": "Good"}, "name"),
        ({"name": "A", "rating": 4, "comment": "Good"}, "businessId"),
    ],
)
def test_review_validation(payload, field):
    with pytest.raises(SubmissionInvalid) as excinfo:
        validate_payload(ReviewSubmission, payload)
    assert [error["field"] for error in excinfo.value.errors] == [field]


def test_list_reviews_still_answers_when_write_back_fails(db_session, make_business, monkeypatch):
    business = make_business("Nihari Point")
    db_session.add(Review(business_id=str(business.id), name="Bilal", rating=5, comment="Best nihari"))
    db_session.commit()

    def failing_store(session, business_id):
        session.execute(text("UPDATE no_such_table SET x = 1"))

    monkeypatch.setattr(reviews_module, "store_rating_aggregate", failing_store)

    with session_scope() as session:
        result = list_reviews(session, session.get(Business, business.id))

    assert result["ratingAvg"] == 5
    assert result["ratingCount"] == 1
    assert [review["name"] for review in result["reviews"]] == ["Bilal"]
