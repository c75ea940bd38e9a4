"""Slug helpers for human-readable college URLs."""

import re
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorCollection


def slugify(text: str) -> str:
    """Lowercase, hyphenate whitespace and drop anything that is not a word char or hyphen."""
    slug = str(text).lower().strip()
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"[^\w-]+", "", slug)
    slug = re.sub(r"--+", "-", slug)
    return slug.strip("-")


async def generate_unique_slug(
    collection: AsyncIOMotorCollection,
    base: str,
    exclude_id: Optional[str] = None,
    id_field: str = "college_id",
) -> str:
    """
    Return a slug for `base` that no other document in `collection` uses.

    Appends -1, -2, ... until a free slug is found. `exclude_id` lets a
    document keep its own slug on update.
    """
    root = slugify(base)
    slug = root
    counter = 1

    while True:
        query = {"slug": slug}
        if exclude_id:
            query[id_field] = {"$ne": exclude_id}

        if not await collection.find_one(query):
            return slug

        slug = f"{root}-{counter}"
        counter += 1
