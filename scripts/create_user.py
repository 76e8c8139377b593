"""Create a user in the MongoDB database.

Usage:
  python scripts/create_user.py --email alice@example.com --password '...' --role admin

NOTE: This is intended for local/dev.
"""

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from garden_site.auth.crud import USER_ROLES, create_user
from garden_site.config import load_config
from garden_site.db import MongoDatabase
from garden_site.storage import Storage


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--email", required=True)
    ap.add_argument("--password", required=True)
    ap.add_argument("--username")
    ap.add_argument("--name")
    ap.add_argument("--role", choices=list(USER_ROLES), default="user")
    args = ap.parse_args()

    cfg = load_config()
    with MongoDatabase(cfg.DB_URI, cfg.DB_NAME) as database:
        try:
            u = create_user(
                Storage(database),
                email=args.email,
                password=args.password,
                username=args.username,
                name=args.name,
                role=args.role,
            )
        except ValueError as e:
            raise SystemExit(f"Could not create user: {e}")

    print("Created user:")
    print(u)


if __name__ == "__main__":
    main()
