#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

from storefront.core.config import IS_DEV, SUPER_ADMIN_EMAIL, SUPER_ADMIN_USERNAME  # noqa: E402
from storefront.core.database import SessionLocal, engine  # noqa: E402
import storefront.models  # noqa: E402,F401
from storefront.services.bootstrap import ensure_tables_exist, upsert_super_admin  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create or promote the storefront super admin.")
    parser.add_argument("--username", default=SUPER_ADMIN_USERNAME, help="Super admin username")
    parser.add_argument("--email", default=SUPER_ADMIN_EMAIL, help="Super admin email")
    parser.add_argument("--password", help="Password (required when creating)")
    parser.add_argument(
        "--reset-password",
        action="store_true",
        help="Overwrite the password of an existing account",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()

    try:
        ensure_tables_exist(engine)
    except RuntimeError as exc:
        print(str(exc))
        return 1

    db = SessionLocal()
    try:
        user, created = upsert_super_admin(
            db,
            username=args.username,
            email=args.email,
            password=args.password,
            reset_password=args.reset_password,
        )
    except ValueError as exc:
        print(str(exc))
        return 1
    finally:
        db.close()

    action = "created" if created else "updated"
    print(f"Super admin {action}: id={user.id} username={user.username}")
    if IS_DEV and args.password:
        print(f"DEV summary -> Username: {user.username} | Password: {args.password}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
