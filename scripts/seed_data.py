"""Create a dashboard user and list the budget category taxonomies.

Identity lives with an external provider; this script only anchors a user id
that callers then send in the x-user-id header.

Usage:
    python scripts/seed_data.py --email me@example.com --name "Me"
"""

import argparse
import asyncio

from lifedash.categorization.rules import BUSINESS_CATEGORIES, CATEGORIES
from lifedash.db.session import AsyncSessionLocal, async_engine, init_models
from lifedash.models.user import User
from lifedash.repositories.user import UserRepository


async def seed_user(email: str, full_name: str) -> User:
    """Create the user unless the email is already registered."""
    await init_models()
    async with AsyncSessionLocal() as session:
        repo = UserRepository(session)
        existing = await repo.get_by_email(email)
        if existing is not None:
            return existing
        return await repo.create(User(email=email, full_name=full_name))


def print_reference_data() -> None:
    """Print the category labels each taxonomy can produce."""
    print("\nPersonal categories (matched on description):")
    for category in CATEGORIES:
        print(f"  - {category}")

    print("\nBusiness categories (matched on expense account):")
    for category in BUSINESS_CATEGORIES:
        print(f"  - {category}")


async def main(email: str, full_name: str) -> None:
    try:
        user = await seed_user(email, full_name)
    finally:
        await async_engine.dispose()

    print(f"User {user.email}: x-user-id = {user.id}")
    print_reference_data()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--email", required=True)
    parser.add_argument("--name", default="Dashboard Owner")
    args = parser.parse_args()
    asyncio.run(main(args.email, args.name))
