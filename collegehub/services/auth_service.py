"""
Authentication Service

Password hashing, JWT issue/verification and the account flows built on
them (register, login, password reset, email verification).
"""

import logging
import secrets
import uuid
from datetime import timedelta
from typing import Optional, Tuple

from jose import JWTError, jwt
from passlib.context import CryptContext
from pymongo.errors import DuplicateKeyError

from collegehub.config import settings
from collegehub.database import get_db
from collegehub.models.user import RegisterRequest, User
from collegehub.utils.timezone_utils import ensure_utc, utc_now

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """Hash password with bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash."""
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    expire = utc_now() + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    return jwt.encode(
        {"sub": user_id, "exp": expire}, settings.jwt_secret, algorithm=settings.jwt_algorithm
    )


def decode_access_token(token: str) -> Optional[str]:
    """Return the user_id a token was issued for, or None if invalid or expired."""
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    return payload.get("sub")


class AuthService:
    """Account lifecycle: registration, login and credential recovery."""

    async def register(self, data: RegisterRequest) -> Tuple[User, str]:
        """
        Create a student account and issue a token.

        Raises ValueError if the email is taken.
        """
        db = get_db()
        email = data.email.lower()

        if await db.users.find_one({"email": email}):
            raise ValueError("User already exists with this email")

        user = User(
            user_id=str(uuid.uuid4()),
            name=data.name,
            email=email,
            password_hash=hash_password(data.password),
            email_verification_token=secrets.token_urlsafe(32),
        )

        try:
            await db.users.insert_one(user.to_document())
        except DuplicateKeyError:
            raise ValueError("User already exists with this email")

        logger.info(f"Registered user {user.user_id}")
        return user, create_access_token(user.user_id)

    async def login(self, email: str, password: str) -> Tuple[User, str]:
        """Raises ValueError with a generic message on any credential mismatch."""
        db = get_db()

        doc = await db.users.find_one({"email": email.lower()})
        if not doc or not verify_password(password, doc["password_hash"]):
            raise ValueError("Invalid credentials")

        user = User(**doc)
        return user, create_access_token(user.user_id)

    async def get_user_by_token(self, token: str) -> Optional[User]:
        user_id = decode_access_token(token)
        if not user_id:
            return None

        doc = await get_db().users.find_one({"user_id": user_id})
        return User(**doc) if doc else None

    async def forgot_password(self, email: str) -> Optional[str]:
        """
        Issue a password reset token.

        There is no mail delivery; the token is returned to the caller.
        Returns None if no account uses the email.
        """
        db = get_db()
        token = secrets.token_urlsafe(32)
        expires = utc_now() + timedelta(minutes=settings.password_reset_expire_minutes)

        result = await db.users.update_one(
            {"email": email.lower()},
            {"$set": {"password_reset_token": token, "password_reset_expires": expires}},
        )
        if result.matched_count == 0:
            return None

        return token

    async def reset_password(self, token: str, password: str) -> None:
        db = get_db()

        doc = await db.users.find_one({"password_reset_token": token})
        expires = doc.get("password_reset_expires") if doc else None
        if not doc or not expires or ensure_utc(expires) <= utc_now():
            raise ValueError("Invalid or expired reset token")

        await db.users.update_one(
            {"user_id": doc["user_id"]},
            {
                "$set": {"password_hash": hash_password(password), "updated_at": utc_now()},
                "$unset": {"password_reset_token": "", "password_reset_expires": ""},
            },
        )

    async def change_password(
        self, user_id: str, current_password: str, new_password: str
    ) -> bool:
        """Returns False if the user does not exist."""
        db = get_db()

        doc = await db.users.find_one({"user_id": user_id})
        if not doc:
            return False

        if not verify_password(current_password, doc["password_hash"]):
            raise ValueError("Current password is incorrect")

        await db.users.update_one(
            {"user_id": user_id},
            {"$set": {"password_hash": hash_password(new_password), "updated_at": utc_now()}},
        )
        return True

    async def verify_email(self, token: str) -> None:
        db = get_db()

        result = await db.users.update_one(
            {"email_verification_token": token},
            {
                "$set": {"is_email_verified": True, "updated_at": utc_now()},
                "$unset": {"email_verification_token": ""},
            },
        )
        if result.matched_count == 0:
            raise ValueError("Invalid verification token")

    async def resend_verification(self, user: User) -> str:
        if user.is_email_verified:
            raise ValueError("Email is already verified")

        token = secrets.token_urlsafe(32)
        await get_db().users.update_one(
            {"user_id": user.user_id}, {"$set": {"email_verification_token": token}}
        )
        return token
