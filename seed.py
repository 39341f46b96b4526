#!/usr/bin/env python3
"""
seed.py -- Create or reset the built-in staff accounts.

Usage:
  python seed.py --password 'S3cure!Passw0rd'
  SEED_PASSWORD='S3cure!Passw0rd' python seed.py
  python seed.py --password '...' --database-url sqlite:///other.db

Both accounts (employee1, auditor) get the same password and the EMPLOYEE
role. Running it again resets their hashes; it never deletes anything.

Environment variables:
  SEED_PASSWORD   Used when --password is not given.
  DATABASE_URL    Used when --database-url is not given.
"""

import argparse
import sys
from typing import Optional

from auth.hashing import PasswordHasher
from auth.models import Role
from auth.store import CredentialStore
from core import validation
from core.config import get_settings
from core.errors import ValidationError

SEED_ACCOUNTS = ("employee1", "auditor")


def seed_accounts(store: CredentialStore, hasher: PasswordHasher, password: str) -> list[str]:
    """Upsert every seed account with password. Returns the seeded usernames.

    Raises ValidationError if password does not meet the strong policy.
    """
    validation.require("password_strong", password, label="password")
    secret_hash = hasher.hash(password)
    seeded = []
    for username in SEED_ACCOUNTS:
        record = store.upsert(username, secret_hash, Role.EMPLOYEE)
        seeded.append(record.identity)
    return seeded


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="securepay-seed",
        description="Create or reset the SecurePay staff accounts.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python seed.py --password 'S3cure!Passw0rd'
  SEED_PASSWORD='S3cure!Passw0rd' python seed.py
        """,
    )
    parser.add_argument(
        "--password",
        metavar="SECRET",
        help="Password for every seed account (default: $SEED_PASSWORD)",
    )
    parser.add_argument(
        "--database-url",
        metavar="URL",
        help="SQLAlchemy database URL (default: $DATABASE_URL or securepay.db)",
    )
    args = parser.parse_args(argv)

    settings = get_settings()
    password = args.password or settings.seed_password
    if not password:
        parser.error("a password is required: pass --password or set SEED_PASSWORD")

    store = CredentialStore(args.database_url or settings.database_url)
    try:
        seeded = seed_accounts(store, PasswordHasher(rounds=settings.bcrypt_rounds), password)
    except ValidationError as e:
        print(f"  [!] {e.reason}", file=sys.stderr)
        return 1
    finally:
        store.close()

    for username in seeded:
        print(f"  Seeded {username}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
