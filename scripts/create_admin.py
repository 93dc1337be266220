"""CLI script to create an administrator account."""
from __future__ import annotations

import argparse
import getpass
import sys

from schoolhub.db.session import SessionLocal
from schoolhub.services.auth import AccountAlreadyExistsError, AuthService


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Create an administrator who can broadcast notifications",
    )
    parser.add_argument("--email", required=True, help="Login email of the new admin")
    parser.add_argument("--username", default="admin", help="Display name (default: admin)")
    parser.add_argument(
        "--password",
        help="Password for the account (prompted for when omitted)",
    )

    args = parser.parse_args()
    password = args.password or getpass.getpass("Admin password: ")
    if len(password) < 8:
        print("Password must be at least 8 characters long.")
        sys.exit(1)

    db = SessionLocal()
    try:
        admin = AuthService(db).create_admin(args.email, args.username, password)
    except AccountAlreadyExistsError as exc:
        print(f"Admin not created: {exc.message}")
        sys.exit(1)
    finally:
        db.close()

    print(f"Admin user created: {admin.email} ({admin.id})")


if __name__ == "__main__":
    main()
