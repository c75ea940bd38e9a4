"""Tests for College Service search and admin flows."""

import re

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from collegehub.models.college import CollegeCreate
from collegehub.models.review import RatingSummary
from collegehub.services.college_service import CollegeService


def _create_data(**overrides):
    data = {
        "name": "Harbor State University",
        "description": "A large public research university on the coast with strong programs.",
        "location": {"city": "Portland", "state": "ME"},
        "type": "public",
        "size": "large",
    }
    data.update(overrides)
    return CollegeCreate(**data)


class TestSearchQuery:

    @pytest.fixture
    def service(self):
        return CollegeService()

    def test_defaults_to_active_colleges(self, service):
        assert service.build_search_query() == {"is_active": True}

    def test_all_filters(self, service):
        query = service.build_search_query(
            type="private",
            size="all",
            state="CA",
            min_tuition=1000,
            max_tuition=40000,
            min_rating=4,
            featured=True,
        )

        assert query["type"] == "private"
        assert "size" not in query
        assert query["location.state"] == "CA"
        assert query["costs.tuition.out_of_state"] == {"$gte": 1000, "$lte": 40000}
        assert query["rating_summary.average_rating"] == {"$gte": 4}
        assert query["featured"] is True

    def test_search_text_is_escaped(self, service):
        query = service.build_search_query(search="St. Mary (CA)")

        assert query["$or"][0]["name"]["$regex"] == re.escape("St. Mary (CA)")


class TestCollegeAdmin:

    @pytest.fixture
    def mock_db(self):
        with patch("collegehub.services.college_service.get_db") as mock_get_db:
            db = MagicMock()
            db.colleges.find_one = AsyncMock(return_value=None)
            db.colleges.insert_one = AsyncMock()
            db.colleges.update_one = AsyncMock()
            mock_get_db.return_value = db
            yield db

    @pytest.fixture
    def service(self):
        service = CollegeService()
        service.audit = MagicMock()
        service.audit.log_admin_action = AsyncMock()
        service.aggregator = MagicMock()
        return service

    @pytest.mark.asyncio
    async def test_create_starts_with_zero_rating(self, service, mock_db, admin):
        await service.create_college(admin, _create_data())

        doc = mock_db.colleges.insert_one.call_args[0][0]
        assert doc["slug"] == "harbor-state-university"
        assert doc["rating_summary"] == RatingSummary().model_dump()
        service.audit.log_admin_action.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_create_with_taken_slug(self, service, mock_db, admin):
        mock_db.colleges.find_one = AsyncMock(return_value={"college_id": "other"})

        with pytest.raises(ValueError, match="slug"):
            await service.create_college(admin, _create_data(slug="harbor"))

        mock_db.colleges.insert_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_generated_slug_avoids_collision(self, service, mock_db, admin):
        mock_db.colleges.find_one = AsyncMock(side_effect=[{"college_id": "other"}, None, None])

        await service.create_college(admin, _create_data())

        doc = mock_db.colleges.insert_one.call_args[0][0]
        assert doc["slug"] == "harbor-state-university-1"

    @pytest.mark.asyncio
    async def test_recompute_rating_uses_aggregator(self, service, mock_db, admin):
        summary = RatingSummary(average_rating=4.5, total_reviews=2)
        mock_db.colleges.find_one = AsyncMock(return_value={"college_id": "college_1"})
        service.aggregator.recompute_college_rating = AsyncMock(return_value=summary)

        result = await service.recompute_rating(admin, "college_1")

        assert result == summary
        service.aggregator.recompute_college_rating.assert_awaited_once_with("college_1")

    @pytest.mark.asyncio
    async def test_recompute_rating_unknown_college(self, service, mock_db, admin):
        service.aggregator.recompute_college_rating = AsyncMock()

        assert await service.recompute_rating(admin, "missing") is None
        service.aggregator.recompute_college_rating.assert_not_awaited()
