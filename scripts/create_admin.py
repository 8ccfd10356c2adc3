#!/usr/bin/env python3
"""
Script to create an admin account for the dashboard.

Usage:
    python scripts/create_admin.py --email admin@example.com
    (the password is prompted for and never echoed)
"""

import asyncio
import argparse
import getpass
import sys
from pathlib import Path

# Add parent directory to path to import the service package
sys.path.insert(0, str(Path(__file__).parent.parent))

from apikey_service.database import AsyncSessionLocal, init_db, close_db
from apikey_service.core.exceptions import KeyServiceException
from apikey_service.models.admin import Admin
from apikey_service.services.admin_service import AdminSessionService


async def create_admin(email: str, password: str) -> Admin:
    """Create an admin account and return it."""
    async with AsyncSessionLocal() as session:
        return await AdminSessionService(session).register(email, password)


async def main():
    """Main function."""
    parser = argparse.ArgumentParser(description="Create an admin account")
    parser.add_argument("--email", required=True, help="Admin email address (required)")
    args = parser.parse_args()

    password = getpass.getpass("Password: ")
    if password != getpass.getpass("Repeat password: "):
        print("Passwords do not match", file=sys.stderr)
        sys.exit(1)

    await init_db()

    try:
        admin = await create_admin(args.email, password)
    except KeyServiceException as e:
        print(f"Error creating admin: {e.detail}", file=sys.stderr)
        sys.exit(1)
    finally:
        await close_db()

    print(f"Admin created: id={admin.id} email={admin.email}")


if __name__ == "__main__":
    asyncio.run(main())
