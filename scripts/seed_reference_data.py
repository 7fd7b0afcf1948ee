"""
Seed the contravention type catalog and the default training course.
Existing rows are left unchanged. Run from the project root with .env loaded.

Usage:
  python scripts/seed_reference_data.py
"""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.db.session import SessionLocal, create_sqlite_tables
from app.services.contravention_type_service import seed_default_types
from app.services.training_service import seed_default_course


def main():
    create_sqlite_tables()
    db = SessionLocal()
    try:
        created = seed_default_types(db)
        print(f"Contravention types created: {created}")
        course = seed_default_course(db)
        print(f"Default course: {course.name if course else 'already present'}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
