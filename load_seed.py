"""Create tables and load the seed garage sales into an empty database.

Usage: python load_seed.py [--force]
"""
import sys

from dotenv import load_dotenv

# Load environment variables from .env
load_dotenv()


def main(argv):
    from garage_sales import crud
    from garage_sales.db import Base, SessionLocal, engine
    from garage_sales.models import GarageSale
    from garage_sales.seed import seed_records

    force = "--force" in argv
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        existing = db.query(GarageSale).count()
        if existing and not force:
            print(f"Database already holds {existing} listing(s); pass --force to add the seed data anyway.")
            return 0
        records = seed_records()
        for record in records:
            record = dict(record)
            user_id = record.pop("user_id")
            record.pop("id")
            crud.create_listing(db, user_id, record)
        print(f"Inserted {len(records)} seed listing(s).")
        return 0
    except Exception as e:
        print(f"Failed to load seed data: {e}")
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
