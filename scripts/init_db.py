from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

import bizdirectory.models  # noqa: F401,E402
from bizdirectory import db as db_module  # noqa: E402
from bizdirectory.seed import seed_reference_data  # noqa: E402


def main() -> None:
    parser = argparse.ArgumentParser(description="Create tables and insert default categories and cities")
    parser.add_argument("--skip-create", action="store_true", help="Only seed; tables are managed by Alembic")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    db_module.wait_for_database()
    if not args.skip_create:
        db_module.Base.metadata.create_all(bind=db_module._engine)

    with db_module.session_scope() as session:
        inserted = seed_reference_data(session)
    print(f"Inserted {inserted['categories']} categories and {inserted['cities']} cities")


if __name__ == "__main__":
    main()
