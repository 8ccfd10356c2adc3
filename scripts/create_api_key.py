#!/usr/bin/env python3
"""
Script to issue a standalone API key (not owned by any user).

Usage:
    python scripts/create_api_key.py
    python scripts/create_api_key.py --expires-in-days 90
"""

import asyncio
import argparse
import sys
from datetime import timedelta
from pathlib import Path
from typing import Optional

# Add parent directory to path to import the service package
sys.path.insert(0, str(Path(__file__).parent.parent))

from apikey_service.core.timeutils import utcnow
from apikey_service.database import AsyncSessionLocal, init_db, close_db
from apikey_service.models.api_key import ApiKey
from apikey_service.services.key_service import KeyLifecycleService


async def create_api_key(expires_in_days: Optional[int] = None) -> ApiKey:
    """
    Issue a new standalone API key.

    Args:
        expires_in_days: Optional display-only expiry, in days from now

    Returns:
        The stored ApiKey row (key_value holds the plain key)
    """
    expires_at = utcnow() + timedelta(days=expires_in_days) if expires_in_days else None
    async with AsyncSessionLocal() as session:
        return await KeyLifecycleService(session).issue_standalone_key(expires_at=expires_at)


async def main():
    """Main function."""
    parser = argparse.ArgumentParser(
        description="Issue a standalone API key"
    )
    parser.add_argument(
        "--expires-in-days",
        type=int,
        default=None,
        help="Expiry date to record with the key (shown in listings, not enforced)"
    )

    args = parser.parse_args()

    await init_db()

    try:
        api_key = await create_api_key(expires_in_days=args.expires_in_days)
    except Exception as e:
        print(f"Error creating API key: {str(e)}", file=sys.stderr)
        sys.exit(1)
    finally:
        await close_db()

    print("\n" + "=" * 70)
    print("API KEY CREATED")
    print("=" * 70)
    print(f"ID: {api_key.id}")
    print(f"Status: {'Active' if api_key.is_active else 'Inactive'}")
    if api_key.expires_at:
        print(f"Expires: {api_key.expires_at.isoformat()}")
    print(f"\nAPI Key: {api_key.key_value}\n")
    print("Send it as 'Authorization: Bearer <key>' or as apiKey in the POST /cekapi body.")
    print("=" * 70 + "\n")


if __name__ == "__main__":
    asyncio.run(main())
