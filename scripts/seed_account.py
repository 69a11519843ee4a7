"""
Seed Account

Creates an admin or applicant account and prints a signed access token for it.
Useful for local development, where the identity service is not running.

Usage:
    python scripts/seed_account.py admin@example.com --first-name Ada --last-name Admin --role admin
"""

import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from admissions.core.database import async_session_maker, engine  # noqa: E402
from admissions.core.security import create_access_token  # noqa: E402
from admissions.modules.users.models import UserRole  # noqa: E402
from admissions.modules.users.repository import UserRepository  # noqa: E402


async def seed_account(email: str, first_name: str, last_name: str, role: UserRole) -> None:
    """Create the account if missing and print an access token for it."""
    async with async_session_maker() as db:
        user = await UserRepository.get_by_email(db, email)

        if user:
            print(f"Account already exists: {email}")
        else:
            user = await UserRepository.create(
                db,
                email=email,
                first_name=first_name,
                last_name=last_name,
                role=role,
            )
            await db.commit()
            print("Account created successfully!")

        print(f"  ID: {user.id}")
        print(f"  Role: {user.role.value}")
        print(f"  Status: {user.application_status.value}")

        token = create_access_token(
            str(user.id),
            additional_claims={"email": user.email, "role": user.role.value, "name": user.full_name},
        )
        print(f"  Access token: {token}")

    await engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Create an account and print an access token.")
    parser.add_argument("email")
    parser.add_argument("--first-name", required=True)
    parser.add_argument("--last-name", required=True)
    parser.add_argument("--role", choices=[r.value for r in UserRole], default=UserRole.APPLICANT.value)
    args = parser.parse_args()

    asyncio.run(seed_account(args.email, args.first_name, args.last_name, UserRole(args.role)))


if __name__ == "__main__":
    main()
