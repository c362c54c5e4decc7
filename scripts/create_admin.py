#!/usr/bin/env python
"""
Script untuk membuat admin user di WellAuth.
Admin dibutuhkan untuk unlock manual akun yang terkunci.
Usage: python scripts/create_admin.py [--non-interactive <email> <password>]
"""

import asyncio
import sys
import getpass
from pathlib import Path
from typing import Optional

# Add parent directory to path
sys.path.append(str(Path(__file__).parent.parent))

from wellauth.core.config import settings
from wellauth.core.constants import UserRole
from wellauth.core.security import security
from wellauth.db.session import SessionLocal, init_db, close_db
from wellauth.models.user import User
from wellauth.services.identity import LocalIdentityProvider


def get_user_input() -> dict:
    """Get admin user details from user input."""
    print("\n=== Create Admin User ===\n")

    while True:
        email = input("Admin email address: ").strip()
        if '@' in email and '.' in email:
            break
        print("Invalid email format. Please try again.")

    while True:
        password = getpass.getpass("Admin password: ")
        if len(password) < settings.PASSWORD_MIN_LENGTH:
            print(f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters long.")
            continue

        confirm_password = getpass.getpass("Confirm password: ")
        if password != confirm_password:
            print("Passwords do not match. Please try again.")
            continue

        break

    full_name = input("Full name (optional): ").strip() or None

    return {
        "email": email.lower(),
        "password": password,
        "full_name": full_name
    }


async def create_admin_user(email: str, password: str, full_name: Optional[str] = None) -> User:
    """
    Create admin user in database.

    Args:
        email: Admin email
        password: Admin password
        full_name: Full name (optional)

    Returns:
        Created admin user
    """
    async with SessionLocal() as db:
        identity = LocalIdentityProvider(db)

        if await identity.get_user_by_email(email):
            raise ValueError(f"User with email {email} already exists")

        admin_user = User(
            u_email=email.lower(),
            u_full_name=full_name,
            u_password_hash=security.hash_password(password),
            u_role=UserRole.ADMIN.value,
            u_is_active=True
        )
        db.add(admin_user)
        await db.commit()
        return admin_user


async def main():
    """Main function."""
    try:
        print("Initializing database connection...")
        await init_db()

        if len(sys.argv) > 1 and sys.argv[1] == "--non-interactive":
            if len(sys.argv) != 4:
                print("Usage: python create_admin.py --non-interactive <email> <password>")
                sys.exit(1)

            user_data = {
                "email": sys.argv[2],
                "password": sys.argv[3],
                "full_name": None
            }
        else:
            user_data = get_user_input()

        print("\nCreating admin user...")
        admin_user = await create_admin_user(**user_data)

        print("\nAdmin user created successfully!")
        print(f"   Email: {admin_user.u_email}")
        print(f"   ID: {admin_user.u_id}")
        print(f"   Role: {admin_user.u_role}")

    except KeyboardInterrupt:
        print("\n\nOperation cancelled by user.")
        sys.exit(0)
    except ValueError as e:
        print(f"\nError creating admin user: {e}")
        sys.exit(1)
    finally:
        await close_db()


if __name__ == "__main__":
    asyncio.run(main())
