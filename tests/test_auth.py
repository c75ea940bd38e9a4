"""
Tests for Authentication Service

Password hashing, JWT handling and the credential flows.
"""

from datetime import timedelta

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from pydantic import ValidationError

from collegehub.models.user import RegisterRequest
from collegehub.services.auth_service import (
    AuthService,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from collegehub.utils.timezone_utils import utc_now


# =============================================================================
# Password / Token helpers
# =============================================================================


def test_password_hash_roundtrip():
    hashed = hash_password("Secret123")

    assert hashed != "Secret123"
    assert verify_password("Secret123", hashed) is True
    assert verify_password("secret123", hashed) is False


def test_token_carries_user_id():
    token = create_access_token("user_42")

    assert decode_access_token(token) == "user_42"


def test_expired_token_is_rejected():
    token = create_access_token("user_42", expires_delta=timedelta(seconds=-5))

    assert decode_access_token(token) is None


def test_garbage_token_is_rejected():
    assert decode_access_token("not-a-jwt") is None


def test_weak_password_rejected_at_registration():
    with pytest.raises(ValidationError):
        RegisterRequest(name="Jamie", email="jamie@university.edu", password="alllowercase1")


# =============================================================================
# AuthService
# =============================================================================


class TestAuthService:

    @pytest.fixture
    def mock_db(self):
        with patch("collegehub.services.auth_service.get_db") as mock_get_db:
            db = MagicMock()
            db.users.find_one = AsyncMock(return_value=None)
            db.users.insert_one = AsyncMock()
            db.users.update_one = AsyncMock(return_value=MagicMock(matched_count=1))
            mock_get_db.return_value = db
            yield db

    @pytest.fixture
    def service(self):
        return AuthService()

    @pytest.fixture
    def stored_user(self):
        return {
            "user_id": "user_1",
            "name": "Jamie Rivera",
            "email": "jamie@university.edu",
            "password_hash": hash_password("Secret123"),
            "role": "student",
        }

    @pytest.mark.asyncio
    async def test_register_stores_hash_not_password(self, service, mock_db):
        data = RegisterRequest(name="Jamie Rivera", email="Jamie@University.edu", password="Secret123")

        user, token = await service.register(data)

        doc = mock_db.users.insert_one.call_args[0][0]
        assert doc["email"] == "jamie@university.edu"
        assert doc["password_hash"] != "Secret123"
        assert "password" not in doc
        assert doc["email_verification_token"]
        assert decode_access_token(token) == user.user_id

    @pytest.mark.asyncio
    async def test_register_duplicate_email(self, service, mock_db, stored_user):
        mock_db.users.find_one = AsyncMock(return_value=stored_user)
        data = RegisterRequest(name="Jamie Rivera", email="jamie@university.edu", password="Secret123")

        with pytest.raises(ValueError, match="already exists"):
            await service.register(data)

        mock_db.users.insert_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_login_success(self, service, mock_db, stored_user):
        mock_db.users.find_one = AsyncMock(return_value=stored_user)

        user, token = await service.login("JAMIE@university.edu", "Secret123")

        assert user.user_id == "user_1"
        assert decode_access_token(token) == "user_1"
        mock_db.users.find_one.assert_awaited_once_with({"email": "jamie@university.edu"})

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, service, mock_db, stored_user):
        mock_db.users.find_one = AsyncMock(return_value=stored_user)

        with pytest.raises(ValueError, match="Invalid credentials"):
            await service.login("jamie@university.edu", "Wrong123")

    @pytest.mark.asyncio
    async def test_login_unknown_email(self, service, mock_db):
        with pytest.raises(ValueError, match="Invalid credentials"):
            await service.login("nobody@university.edu", "Secret123")

    @pytest.mark.asyncio
    async def test_forgot_password_unknown_email(self, service, mock_db):
        mock_db.users.update_one = AsyncMock(return_value=MagicMock(matched_count=0))

        assert await service.forgot_password("nobody@university.edu") is None

    @pytest.mark.asyncio
    async def test_reset_password_with_expired_token(self, service, mock_db, stored_user):
        stored_user.update(
            password_reset_token="tok",
            password_reset_expires=(utc_now() - timedelta(minutes=1)).replace(tzinfo=None),
        )
        mock_db.users.find_one = AsyncMock(return_value=stored_user)

        with pytest.raises(ValueError, match="expired"):
            await service.reset_password("tok", "NewSecret1")

        mock_db.users.update_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_reset_password_clears_token(self, service, mock_db, stored_user):
        stored_user.update(
            password_reset_token="tok",
            password_reset_expires=utc_now() + timedelta(minutes=30),
        )
        mock_db.users.find_one = AsyncMock(return_value=stored_user)

        await service.reset_password("tok", "NewSecret1")

        update = mock_db.users.update_one.call_args[0][1]
        assert verify_password("NewSecret1", update["$set"]["password_hash"])
        assert "password_reset_token" in update["$unset"]

    @pytest.mark.asyncio
    async def test_change_password_requires_current(self, service, mock_db, stored_user):
        mock_db.users.find_one = AsyncMock(return_value=stored_user)

        with pytest.raises(ValueError, match="Current password"):
            await service.change_password("user_1", "Wrong123", "NewSecret1")

    @pytest.mark.asyncio
    async def test_verify_email_with_unknown_token(self, service, mock_db):
        mock_db.users.update_one = AsyncMock(return_value=MagicMock(matched_count=0))

        with pytest.raises(ValueError):
            await service.verify_email("nope")
