"""Tests for User Service."""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from collegehub.models.user import ProfileUpdate
from collegehub.services.user_service import UserService


class TestUserService:

    @pytest.fixture
    def stored_user(self):
        return {
            "user_id": "user_1",
            "name": "Jamie Rivera",
            "email": "jamie@university.edu",
            "password_hash": "hashed",
            "saved_colleges": ["college_1"],
        }

    @pytest.fixture
    def mock_db(self, stored_user):
        with patch("collegehub.services.user_service.get_db") as mock_get_db:
            db = MagicMock()
            db.users.find_one = AsyncMock(return_value=stored_user)
            db.users.update_one = AsyncMock(return_value=MagicMock(matched_count=1))
            db.colleges.find_one = AsyncMock(return_value={"college_id": "college_2"})
            mock_get_db.return_value = db
            yield db

    @pytest.fixture
    def service(self):
        return UserService()

    @pytest.mark.asyncio
    async def test_save_new_college(self, service, mock_db):
        assert await service.toggle_saved_college("user_1", "college_2") is True

        update = mock_db.users.update_one.call_args[0][1]
        assert update == {"$addToSet": {"saved_colleges": "college_2"}}

    @pytest.mark.asyncio
    async def test_unsave_saved_college(self, service, mock_db):
        assert await service.toggle_saved_college("user_1", "college_1") is False

        update = mock_db.users.update_one.call_args[0][1]
        assert update == {"$pull": {"saved_colleges": "college_1"}}

    @pytest.mark.asyncio
    async def test_save_unknown_college(self, service, mock_db):
        mock_db.colleges.find_one = AsyncMock(return_value=None)

        assert await service.toggle_saved_college("user_1", "missing") is None
        mock_db.users.update_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_profile_update_writes_nested_paths(self, service, mock_db):
        await service.update_profile(
            "user_1", ProfileUpdate(name="Jamie R", phone="555-0100")
        )

        update = mock_db.users.update_one.call_args[0][1]["$set"]
        assert update["name"] == "Jamie R"
        assert update["profile.phone"] == "555-0100"
        assert "updated_at" in update
