"""
Fiscal-year reset for cron. Zeroes every points ledger once per fiscal year;
runs within an already-processed fiscal year are no-ops.

Usage:
  python scripts/run_fiscal_reset.py
  python scripts/run_fiscal_reset.py --as-of 2027-04-01T00:05:00+08:00
  python scripts/run_fiscal_reset.py --status
"""
import argparse
import sys
from datetime import datetime
from pathlib import Path

# Add project root so app is importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.core.logging import setup_logging, get_logger
from app.db.session import SessionLocal
from app.services import fiscal_year_service

logger = get_logger("scripts.run_fiscal_reset")


def main():
    parser = argparse.ArgumentParser(description="Run the fiscal-year points reset")
    parser.add_argument("--as-of", type=datetime.fromisoformat, default=None,
                        help="Evaluate the boundary at this ISO-8601 instant instead of now")
    parser.add_argument("--status", action="store_true", help="Print fiscal-year status and exit")
    args = parser.parse_args()

    setup_logging()
    db = SessionLocal()
    try:
        if args.status:
            status = fiscal_year_service.get_fiscal_year_status(db, now=args.as_of)
            print(f"{status['fiscal_year_label']}: {status['fiscal_year_start']} - {status['fiscal_year_end']}, "
                  f"{status['days_until_reset']} days until reset, "
                  f"{status['employees_with_points']} employees with points")
            return

        result = fiscal_year_service.reset_at_fiscal_boundary(db, now=args.as_of)
        if result["performed"]:
            print(f"{result['fiscal_year_label']}: reset {result['employees_reset']} employees "
                  f"({result['total_points_reset']} points cleared)")
        elif result["baseline"]:
            print(f"{result['fiscal_year_label']}: baseline recorded, nothing to reset")
        else:
            print(f"{result['fiscal_year_label']}: already reset, nothing to do")
    except Exception:
        db.rollback()
        logger.exception("Fiscal reset failed")
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    main()
