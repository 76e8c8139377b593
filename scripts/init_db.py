import argparse
import sys
from pathlib import Path

# Ensure project root is on sys.path when running as a script
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from garden_site.auth.crud import bootstrap_admin_if_needed
from garden_site.config import load_config
from garden_site.db import MongoDatabase
from garden_site.storage import Storage
from garden_site.storage.seed import create_sample_subscriptions, seed_demo_data


def main() -> None:
    ap = argparse.ArgumentParser(description="Create indexes and seed an empty database.")
    ap.add_argument("--no-seed", action="store_true", help="only create indexes and the bootstrap admin")
    ap.add_argument("--subscriptions", action="store_true", help="also insert the sample subscription plans")
    args = ap.parse_args()

    cfg = load_config()
    with MongoDatabase(cfg.DB_URI, cfg.DB_NAME) as database:
        storage = Storage(database)
        if args.no_seed or not cfg.SEED_DEMO_DATA:
            bootstrap_admin_if_needed(cfg, storage)
        else:
            seed_demo_data(storage, cfg)
        if args.subscriptions:
            create_sample_subscriptions(storage)
        counts = database.collection_counts()

    print(f"DB initialized: {cfg.DB_NAME}")
    for name, n in counts.items():
        print(f"  {name}: {n}")


if __name__ == "__main__":
    main()
