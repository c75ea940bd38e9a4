"""
API tests

Exercise routing, auth dependencies and error mapping with the services
mocked. The client is used without its context manager so the lifespan
(MongoDB connection) does not run.
"""

import pytest
from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from collegehub.dependencies import get_current_user
from collegehub.main import app
from collegehub.models.review import RatingSummary
from collegehub.routers import admissions, colleges, reviews
from collegehub.services.application_service import SubmissionError
from collegehub.services.content_validator import SPAM_MESSAGE, ContentRejectedError
from tests.helpers import TWENTY_WORDS

REVIEW_BODY = {
    "college_id": "college_1",
    "title": "Great place to learn",
    "content": TWENTY_WORDS,
    "ratings": {
        "overall": 4,
        "academics": 4,
        "campus_life": 4,
        "facilities": 4,
        "location": 4,
        "value": 4,
    },
    "would_recommend": True,
    "student_type": "current",
}


@pytest.fixture
def client():
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def as_student(student):
    app.dependency_overrides[get_current_user] = lambda: student
    return student


@pytest.fixture
def as_admin(admin):
    app.dependency_overrides[get_current_user] = lambda: admin
    return admin


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_protected_route_requires_token(client):
    response = client.post("/api/v1/reviews", json=REVIEW_BODY)

    assert response.status_code == 401


def test_admin_route_forbidden_for_students(client, as_student):
    response = client.get("/api/v1/reviews/admin/reported")

    assert response.status_code == 403


def test_rejected_review_lists_reasons(client, as_student):
    with patch.object(
        reviews.review_service,
        "create_review",
        AsyncMock(side_effect=ContentRejectedError([SPAM_MESSAGE, SPAM_MESSAGE])),
    ):
        response = client.post("/api/v1/reviews", json=REVIEW_BODY)

    assert response.status_code == 400
    assert response.json()["detail"]["errors"] == [SPAM_MESSAGE, SPAM_MESSAGE]


def test_duplicate_review_is_bad_request(client, as_student):
    with patch.object(
        reviews.review_service,
        "create_review",
        AsyncMock(side_effect=ValueError("You have already reviewed this college")),
    ):
        response = client.post("/api/v1/reviews", json=REVIEW_BODY)

    assert response.status_code == 400
    assert response.json()["detail"] == "You have already reviewed this college"


def test_invalid_rating_fails_validation(client, as_student):
    body = {**REVIEW_BODY, "ratings": {**REVIEW_BODY["ratings"], "overall": 6}}

    response = client.post("/api/v1/reviews", json=body)

    assert response.status_code == 422


def test_moderation_message(client, as_admin):
    with patch.object(reviews.review_service, "moderate_review", AsyncMock(return_value=True)):
        response = client.post(
            "/api/v1/reviews/admin/review_1/moderate", json={"action": "remove", "reason": "Spam"}
        )

    assert response.status_code == 200
    assert response.json()["message"] == "Review removed successfully"


def test_recompute_rating_endpoint(client, as_admin):
    summary = RatingSummary(average_rating=4.0, total_reviews=3)
    with patch.object(colleges.college_service, "recompute_rating", AsyncMock(return_value=summary)):
        response = client.post("/api/v1/colleges/college_1/recompute-rating")

    assert response.status_code == 200
    assert response.json()["average_rating"] == 4.0
    assert response.json()["total_reviews"] == 3


def test_unknown_college_is_not_found(client):
    with patch.object(colleges.college_service, "get_by_slug", AsyncMock(return_value=None)):
        response = client.get("/api/v1/colleges/no-such-college")

    assert response.status_code == 404


def test_incomplete_submission_lists_missing_fields(client, as_student):
    with patch.object(
        admissions.application_service,
        "submit_application",
        AsyncMock(side_effect=SubmissionError(["GPA is required"])),
    ):
        response = client.post("/api/v1/admissions/applications/app_1/submit")

    assert response.status_code == 400
    assert response.json()["detail"]["errors"] == ["GPA is required"]
