"""
Seed a development database with an admin account and sample colleges.

Existing colleges and the seeded admin are replaced. Rating summaries are
rebuilt from whatever reviews exist afterwards.

Usage:
    python scripts/seed_database.py
"""

import asyncio
import logging
import os
import uuid

from collegehub.database import close_db, get_db, init_db
from collegehub.models.college import (
    Admissions,
    College,
    Costs,
    Location,
    Stats,
    Tuition,
)
from collegehub.models.user import User, UserRole
from collegehub.services.auth_service import hash_password
from collegehub.services.rating_aggregator import RatingAggregator
from collegehub.utils.slugify import slugify

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

ADMIN_EMAIL = os.getenv("SEED_ADMIN_EMAIL", "admin@collegehub.dev")
ADMIN_PASSWORD = os.getenv("SEED_ADMIN_PASSWORD", "Admin123")

SAMPLE_COLLEGES = [
    {
        "name": "Harbor State University",
        "description": "A large public research university on the coast with strong "
        "engineering, marine science and business programs.",
        "location": Location(city="Portland", state="ME"),
        "type": "public",
        "size": "large",
        "established_year": 1865,
        "admissions": Admissions(acceptance_rate=62, application_fee=50),
        "costs": Costs(tuition=Tuition(in_state=11800, out_of_state=32400)),
        "stats": Stats(total_students=24500),
        "featured": True,
    },
    {
        "name": "Whitfield College",
        "description": "A small private liberal arts college known for close faculty "
        "mentorship, small seminars and a residential campus.",
        "location": Location(city="Northfield", state="MN"),
        "type": "private",
        "size": "small",
        "established_year": 1874,
        "admissions": Admissions(acceptance_rate=28, application_fee=65),
        "costs": Costs(tuition=Tuition(in_state=58200, out_of_state=58200)),
        "stats": Stats(total_students=2100),
    },
    {
        "name": "Mesa Valley Community College",
        "description": "An open-enrollment community college offering associate degrees, "
        "certificates and transfer pathways to state universities.",
        "location": Location(city="Grand Junction", state="CO"),
        "type": "community",
        "size": "medium",
        "established_year": 1925,
        "admissions": Admissions(acceptance_rate=100, application_fee=0),
        "costs": Costs(tuition=Tuition(in_state=4200, out_of_state=9800)),
        "stats": Stats(total_students=8700),
    },
]


async def seed_admin():
    db = get_db()
    admin = User(
        user_id=str(uuid.uuid4()),
        name="CollegeHub Admin",
        email=ADMIN_EMAIL,
        password_hash=hash_password(ADMIN_PASSWORD),
        role=UserRole.ADMIN,
        is_email_verified=True,
    )
    await db.users.delete_many({"email": admin.email})
    await db.users.insert_one(admin.to_document())
    logger.info(f"Seeded admin {admin.email}")


async def seed_colleges():
    db = get_db()
    await db.colleges.delete_many({})

    for data in SAMPLE_COLLEGES:
        college = College(college_id=str(uuid.uuid4()), slug=slugify(data["name"]), **data)
        await db.colleges.insert_one(college.model_dump())
        logger.info(f"Seeded college {college.slug}")


async def main():
    await init_db()
    try:
        await seed_admin()
        await seed_colleges()
        await RatingAggregator().recompute_all()
    finally:
        await close_db()


if __name__ == "__main__":
    asyncio.run(main())
