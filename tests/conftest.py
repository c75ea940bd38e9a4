import pytest

from collegehub.models.user import User


@pytest.fixture
def student():
    return User(
        user_id="user_1",
        name="Jamie Rivera",
        email="jamie@university.edu",
        password_hash="hashed",
    )


@pytest.fixture
def admin():
    return User(
        user_id="admin_1",
        name="Site Admin",
        email="admin@university.edu",
        password_hash="hashed",
        role="admin",
    )
