"""
Tests for Application Service

Progress tracking, submission checks and draft-only rules.
"""

import re
from datetime import datetime, timezone

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from collegehub.models.application import (
    Application,
    ApplicationCreate,
    ApplicationData,
    ApplicationUpdate,
)
from collegehub.services.application_service import (
    ApplicationService,
    SubmissionError,
    calculate_progress,
    generate_application_number,
    validate_for_submission,
)

LONG_ESSAY = "I want to study environmental engineering because " * 4


def _complete_data(**overrides) -> ApplicationData:
    data = {
        "personal_info": {
            "first_name": "Jamie",
            "last_name": "Rivera",
            "email": "jamie@university.edu",
            "phone": "555-0100",
            "date_of_birth": datetime(2006, 4, 2, tzinfo=timezone.utc),
        },
        "academic_info": {"current_education": "high-school", "gpa": 3.8},
        "essays": [{"question": "Why us?", "response": LONG_ESSAY}],
        "extracurriculars": [{"activity": "Robotics club"}],
        "work_experience": [{"company": "Campus Cafe"}],
    }
    data.update(overrides)
    return ApplicationData(**data)


def _application_doc(status="draft", data=None) -> dict:
    return Application(
        application_id="app_1",
        application_number="APP-123456-ABCDE",
        applicant_id="user_1",
        college_id="college_1",
        program="Computer Science",
        degree_level="bachelor",
        status=status,
        application_data=data or ApplicationData(),
    ).model_dump()


# =============================================================================
# Pure helpers
# =============================================================================


def test_application_number_format():
    number = generate_application_number(now_ms=1700000123456)

    assert number.startswith("APP-123456-")
    assert re.fullmatch(r"APP-\d{6}-[A-Z0-9]{5}", number)


def test_progress_of_empty_application():
    progress = calculate_progress(ApplicationData())

    assert progress.percentage == 0
    assert progress.completed_sections == 0
    assert progress.total_sections == 5
    assert progress.is_complete is False


def test_progress_of_complete_application():
    progress = calculate_progress(_complete_data())

    assert progress.percentage == 100
    assert progress.is_complete is True
    assert all(progress.sections.values())


def test_progress_counts_partial_sections():
    progress = calculate_progress(_complete_data(extracurriculars=[], work_experience=[]))

    assert progress.completed_sections == 3
    assert progress.percentage == 60


def test_short_essay_leaves_section_incomplete():
    progress = calculate_progress(
        _complete_data(essays=[{"question": "Why us?", "response": "Because."}])
    )

    assert progress.sections["essays"] == 0


def test_submission_errors_for_empty_application():
    errors = validate_for_submission(ApplicationData())

    assert "First name is required" in errors
    assert "Date of birth is required" in errors
    assert "GPA is required" in errors
    assert "At least one essay is required" in errors


def test_submission_error_names_short_essay():
    data = _complete_data(essays=[
        {"question": "Why us?", "response": LONG_ESSAY},
        {"question": "Tell us about a challenge", "response": "Too short"},
    ])

    assert validate_for_submission(data) == ["Essay 2 must be at least 100 characters"]


def test_complete_application_is_submittable():
    assert validate_for_submission(_complete_data()) == []


# =============================================================================
# ApplicationService
# =============================================================================


class TestApplicationService:

    @pytest.fixture
    def mock_db(self):
        with patch("collegehub.services.application_service.get_db") as mock_get_db:
            db = MagicMock()
            db.applications.find_one = AsyncMock(return_value=None)
            db.applications.insert_one = AsyncMock()
            db.applications.update_one = AsyncMock()
            db.applications.delete_one = AsyncMock()
            db.users.update_one = AsyncMock()
            db.colleges.find_one = AsyncMock(
                return_value={"college_id": "college_1", "admissions": {"application_fee": 75}}
            )
            mock_get_db.return_value = db
            yield db

    @pytest.fixture
    def service(self):
        service = ApplicationService()
        service.audit = MagicMock()
        service.audit.log_admin_action = AsyncMock()
        service.get_application = AsyncMock(return_value={"application_id": "app_1"})
        return service

    @pytest.mark.asyncio
    async def test_create_prefills_from_user_and_college(self, service, mock_db, student):
        data = ApplicationCreate(college_id="college_1", program="Biology", degree_level="bachelor")

        await service.create_application(student, data)

        doc = mock_db.applications.insert_one.call_args[0][0]
        personal = doc["application_data"]["personal_info"]
        assert personal["first_name"] == "Jamie"
        assert personal["last_name"] == "Rivera"
        assert personal["email"] == student.email
        assert doc["fees"]["application_fee"] == 75
        assert doc["status"] == "draft"
        mock_db.users.update_one.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_create_duplicate_program(self, service, mock_db, student):
        mock_db.applications.find_one = AsyncMock(return_value=_application_doc())
        data = ApplicationCreate(college_id="college_1", program="Computer Science", degree_level="bachelor")

        with pytest.raises(ValueError):
            await service.create_application(student, data)

        mock_db.applications.insert_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_merges_sections(self, service, mock_db):
        mock_db.applications.find_one = AsyncMock(return_value=_application_doc(data=_complete_data()))

        await service.update_application(
            "user_1", "app_1", ApplicationUpdate(application_data={"essays": []})
        )

        stored = mock_db.applications.update_one.call_args[0][1]["$set"]["application_data"]
        assert stored["essays"] == []
        assert stored["personal_info"]["first_name"] == "Jamie"

    @pytest.mark.asyncio
    async def test_update_submitted_application_rejected(self, service, mock_db):
        mock_db.applications.find_one = AsyncMock(return_value=_application_doc(status="submitted"))

        with pytest.raises(ValueError, match="after submission"):
            await service.update_application("user_1", "app_1", ApplicationUpdate(application_data={}))

    @pytest.mark.asyncio
    async def test_submit_incomplete_application(self, service, mock_db):
        mock_db.applications.find_one = AsyncMock(return_value=_application_doc())

        with pytest.raises(SubmissionError) as exc_info:
            await service.submit_application("user_1", "app_1")

        assert "First name is required" in exc_info.value.errors
        mock_db.applications.update_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_submit_complete_application(self, service, mock_db):
        mock_db.applications.find_one = AsyncMock(return_value=_application_doc(data=_complete_data()))

        await service.submit_application("user_1", "app_1")

        update = mock_db.applications.update_one.call_args[0][1]["$set"]
        assert update["status"] == "submitted"
        assert update["submitted_at"] is not None

    @pytest.mark.asyncio
    async def test_submit_twice(self, service, mock_db):
        mock_db.applications.find_one = AsyncMock(return_value=_application_doc(status="submitted"))

        with pytest.raises(ValueError, match="already been submitted"):
            await service.submit_application("user_1", "app_1")

    @pytest.mark.asyncio
    async def test_delete_only_drafts(self, service, mock_db):
        mock_db.applications.find_one = AsyncMock(return_value=_application_doc(status="accepted"))

        with pytest.raises(ValueError):
            await service.delete_application("user_1", "app_1")

        mock_db.applications.delete_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_accept_sets_decision_date_and_note(self, service, mock_db, admin):
        mock_db.applications.find_one = AsyncMock(return_value=_application_doc(status="submitted"))

        await service.update_status(admin, "app_1", "accepted", notes="Strong essays")

        update = mock_db.applications.update_one.call_args[0][1]
        assert update["$set"]["status"] == "accepted"
        assert "decision_date" in update["$set"]
        assert update["$push"]["notes"]["content"] == "Strong essays"
        assert update["$push"]["notes"]["added_by"] == admin.user_id
        service.audit.log_admin_action.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_admin_cannot_reset_to_draft(self, service, mock_db, admin):
        with pytest.raises(ValueError):
            await service.update_status(admin, "app_1", "draft")
