"""
Script to create an organization and an admin user for local testing.
"""

import argparse
import asyncio

from sqlmodel import select

from app.core.auth import hash_password
from app.core.database import get_session_context, init_db
from app.models.organization import Organization
from app.models.user import User
from app.services.members import ensure_system_roles


async def create_admin(email: str, password: str, org_name: str, full_name: str | None = None):
    await init_db()
    email = email.lower()

    async with get_session_context() as session:
        result = await session.execute(select(Organization).where(Organization.name == org_name))
        org = result.scalars().first()
        if not org:
            org = Organization(name=org_name)
            session.add(org)
            await session.flush()
            print(f"Created organization: {org_name}")
        await ensure_system_roles(session, org.id)

        result = await session.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()
        if not user:
            user = User(
                email=email,
                full_name=full_name,
                password_hash=hash_password(password),
                organization_id=org.id,
                role="admin",
            )
            session.add(user)
            print(f"Created admin: {email}")
        else:
            user.organization_id = org.id
            user.role = "admin"
            user.role_id = None
            session.add(user)
            print(f"User {email} already exists; made admin of {org_name}.")

    print("Done.")


def main():
    parser = argparse.ArgumentParser(description="Create a local admin user.")
    parser.add_argument("--email", required=True, help="Email address for the user")
    parser.add_argument("--password", required=True, help="Password for the user")
    parser.add_argument("--org", default="Local Studio", help="Organization name")
    parser.add_argument("--name", default=None, help="Full name")
    args = parser.parse_args()

    asyncio.run(create_admin(args.email, args.password, args.org, args.name))


if __name__ == "__main__":
    main()
