"""
Tests for Review Service

Submission, editing, voting, reporting and moderation, with the rating
aggregator and audit service mocked out.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from pymongo.errors import DuplicateKeyError

from collegehub.models.review import ReviewCreate, ReviewUpdate
from collegehub.services.content_validator import ContentRejectedError
from collegehub.services.review_service import ReviewService, annotate_quality
from tests.helpers import TWENTY_WORDS, make_cursor, review_doc


def _create_data(**overrides):
    data = {
        "college_id": "college_1",
        "title": "Great place to learn",
        "content": TWENTY_WORDS,
        "ratings": {
            "overall": 4,
            "academics": 5,
            "campus_life": 4,
            "facilities": 3,
            "location": 4,
            "value": 3,
        },
        "pros": ["Strong faculty"],
        "cons": [],
        "would_recommend": True,
        "student_type": "current",
    }
    data.update(overrides)
    return ReviewCreate(**data)


class TestReviewService:

    @pytest.fixture
    def mock_db(self):
        with patch("collegehub.services.review_service.get_db") as mock_get_db:
            db = MagicMock()
            db.colleges.find_one = AsyncMock(return_value={"college_id": "college_1"})
            db.reviews.find_one = AsyncMock(return_value=None)
            db.reviews.insert_one = AsyncMock()
            db.reviews.update_one = AsyncMock(return_value=MagicMock(modified_count=1))
            db.reviews.find_one_and_update = AsyncMock(return_value=None)
            mock_get_db.return_value = db
            yield db

    @pytest.fixture
    def service(self):
        service = ReviewService()
        service.aggregator = MagicMock()
        service.aggregator.on_review_set_changed = AsyncMock()
        service.audit = MagicMock()
        service.audit.log_admin_action = AsyncMock()
        service.get_review = AsyncMock(return_value={"review_id": "review_1"})
        return service

    # =========================================================================
    # Create
    # =========================================================================

    @pytest.mark.asyncio
    async def test_create_review_success(self, service, mock_db, student):
        result = await service.create_review(student, _create_data())

        assert result == {"review_id": "review_1"}

        mock_db.reviews.insert_one.assert_awaited_once()
        doc = mock_db.reviews.insert_one.call_args[0][0]
        assert doc["user_id"] == student.user_id
        assert doc["college_id"] == "college_1"
        assert doc["helpful"] == {"voters": [], "count": 0}
        assert doc["reported"] == {"voters": [], "count": 0}
        assert doc["is_active"] is True

        service.aggregator.on_review_set_changed.assert_awaited_once_with("college_1")

    @pytest.mark.asyncio
    async def test_create_review_unknown_college(self, service, mock_db, student):
        mock_db.colleges.find_one = AsyncMock(return_value=None)

        result = await service.create_review(student, _create_data())

        assert result is None
        mock_db.reviews.insert_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_create_review_rejects_spam(self, service, mock_db, student):
        data = _create_data(content=TWENTY_WORDS + " Amazinggggg place")

        with pytest.raises(ContentRejectedError) as exc_info:
            await service.create_review(student, data)

        assert "Content appears to be spam" in exc_info.value.errors
        mock_db.reviews.insert_one.assert_not_awaited()
        service.aggregator.on_review_set_changed.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_create_review_twice_for_same_college(self, service, mock_db, student):
        mock_db.reviews.find_one = AsyncMock(return_value=review_doc())

        with pytest.raises(ValueError, match="already reviewed"):
            await service.create_review(student, _create_data())

        mock_db.reviews.insert_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_create_review_race_hits_unique_index(self, service, mock_db, student):
        mock_db.reviews.insert_one = AsyncMock(side_effect=DuplicateKeyError("dup"))

        with pytest.raises(ValueError, match="already reviewed"):
            await service.create_review(student, _create_data())

        service.aggregator.on_review_set_changed.assert_not_awaited()

    # =========================================================================
    # Update / Delete
    # =========================================================================

    @pytest.mark.asyncio
    async def test_update_merges_ratings_per_field(self, service, mock_db):
        mock_db.reviews.find_one = AsyncMock(return_value=review_doc(college_id="college_7"))

        await service.update_review("user_1", "review_1", ReviewUpdate(ratings={"overall": 2}))

        update = mock_db.reviews.update_one.call_args[0][1]["$set"]
        assert update["ratings.overall"] == 2
        assert "ratings" not in update
        assert "ratings.academics" not in update
        service.aggregator.on_review_set_changed.assert_awaited_once_with("college_7")

    @pytest.mark.asyncio
    async def test_update_revalidates_changed_content(self, service, mock_db):
        mock_db.reviews.find_one = AsyncMock(return_value=review_doc())

        with pytest.raises(ContentRejectedError):
            await service.update_review(
                "user_1",
                "review_1",
                ReviewUpdate(content="Honestly the dorms were fine and the food was okay overall."),
            )

        mock_db.reviews.update_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_other_users_review(self, service, mock_db):
        result = await service.update_review("user_2", "review_1", ReviewUpdate(would_recommend=False))

        assert result is None
        mock_db.reviews.update_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete_review_refreshes_rating(self, service, mock_db):
        mock_db.reviews.find_one_and_update = AsyncMock(return_value=review_doc())

        assert await service.delete_review("user_1", "review_1") is True

        update = mock_db.reviews.find_one_and_update.call_args[0][1]
        assert update["$set"]["is_active"] is False
        service.aggregator.on_review_set_changed.assert_awaited_once_with("college_1")

    @pytest.mark.asyncio
    async def test_delete_missing_review(self, service, mock_db):
        assert await service.delete_review("user_1", "missing") is False
        service.aggregator.on_review_set_changed.assert_not_awaited()

    # =========================================================================
    # Helpful / Report
    # =========================================================================

    @pytest.mark.asyncio
    async def test_vote_helpful_adds_voter(self, service, mock_db):
        mock_db.reviews.find_one_and_update = AsyncMock(
            return_value={"helpful": {"voters": ["user_1"], "count": 1}}
        )

        result = await service.vote_helpful("user_1", "review_1")

        assert result == {"helpful": {"voters": ["user_1"], "count": 1}, "user_voted": True}
        pipeline = mock_db.reviews.find_one_and_update.call_args[0][1]
        assert "$setUnion" in pipeline[0]["$set"]["helpful.voters"]
        assert pipeline[1]["$set"]["helpful.count"] == {"$size": "$helpful.voters"}

    @pytest.mark.asyncio
    async def test_withdraw_helpful_vote(self, service, mock_db):
        mock_db.reviews.find_one_and_update = AsyncMock(
            return_value={"helpful": {"voters": [], "count": 0}}
        )

        result = await service.vote_helpful("user_1", "review_1", helpful=False)

        assert result["user_voted"] is False
        pipeline = mock_db.reviews.find_one_and_update.call_args[0][1]
        assert "$setDifference" in pipeline[0]["$set"]["helpful.voters"]

    @pytest.mark.asyncio
    async def test_report_review(self, service, mock_db):
        mock_db.reviews.find_one = AsyncMock(return_value=review_doc())

        assert await service.report_review("user_2", "review_1", "Off topic") is True
        mock_db.reviews.update_one.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_report_review_twice(self, service, mock_db):
        mock_db.reviews.find_one = AsyncMock(
            return_value=review_doc(reported={"voters": ["user_2"], "count": 1})
        )

        with pytest.raises(ValueError, match="already reported"):
            await service.report_review("user_2", "review_1")

        mock_db.reviews.update_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_concurrent_duplicate_report(self, service, mock_db):
        mock_db.reviews.find_one = AsyncMock(return_value=review_doc())
        mock_db.reviews.update_one = AsyncMock(return_value=MagicMock(modified_count=0))

        with pytest.raises(ValueError):
            await service.report_review("user_2", "review_1")

    # =========================================================================
    # Moderation
    # =========================================================================

    @pytest.mark.asyncio
    async def test_moderate_remove(self, service, mock_db, admin):
        mock_db.reviews.find_one = AsyncMock(return_value=review_doc(college_id="college_3"))

        assert await service.moderate_review(admin, "review_1", "remove", "Spam") is True

        update = mock_db.reviews.update_one.call_args[0][1]
        assert update["$set"]["is_active"] is False
        service.aggregator.on_review_set_changed.assert_awaited_once_with("college_3")
        assert service.audit.log_admin_action.call_args.kwargs["action"] == "review_remove"

    @pytest.mark.asyncio
    async def test_moderate_approve_clears_reports(self, service, mock_db, admin):
        mock_db.reviews.find_one = AsyncMock(
            return_value=review_doc(reported={"voters": ["a", "b"], "count": 2})
        )

        await service.moderate_review(admin, "review_1", "approve")

        update = mock_db.reviews.update_one.call_args[0][1]
        assert update["$set"]["reported"] == {"voters": [], "count": 0}
        service.aggregator.on_review_set_changed.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_moderate_warn_only_audits(self, service, mock_db, admin):
        mock_db.reviews.find_one = AsyncMock(return_value=review_doc())

        await service.moderate_review(admin, "review_1", "warn")

        mock_db.reviews.update_one.assert_not_awaited()
        service.audit.log_admin_action.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_moderate_missing_review(self, service, mock_db, admin):
        assert await service.moderate_review(admin, "missing", "remove") is False
        service.audit.log_admin_action.assert_not_awaited()

    # =========================================================================
    # Listing
    # =========================================================================

    @pytest.mark.asyncio
    async def test_quality_sort_ranks_by_score(self, service, mock_db):
        low = review_doc(2, review_id="low")
        high = review_doc(5, review_id="high", helpful={"voters": ["a", "b"], "count": 2})
        mock_db.reviews.count_documents = AsyncMock(return_value=2)
        mock_db.reviews.find.return_value = make_cursor([low, high])

        reviews, total = await service._find_page({"is_active": True}, "quality", "desc", 1, 10)

        assert total == 2
        assert [r["review_id"] for r in reviews] == ["high", "low"]
        assert all("quality" in r for r in reviews)


def test_annotate_quality_adds_score_and_sentiment():
    review = annotate_quality(review_doc(5, pros=["Great labs"]))

    assert set(review["quality"]) == {"score", "sentiment"}
    assert review["quality"]["sentiment"] == "positive"
