#!/usr/bin/env python3
"""
Create or upgrade the feedback table, its status enum and its indexes.
Same work as POST /support/init, for use from deploy scripts.
"""

import argparse
import sys

from src.lib.feedback.service import FeedbackService
from src.lib.logging_config import configure_logging
from src.models.sql.database import DATABASE_URL, SessionLocal


def init_schema() -> bool:
    """Run the idempotent schema statements and print the resulting columns."""
    print(f"Connecting to database: {DATABASE_URL.split('@')[-1]}")

    db = SessionLocal()
    try:
        columns = FeedbackService(db).initialize_schema()
    except Exception as e:
        db.rollback()
        print(f"✗ Schema initialization failed: {e}")
        return False
    finally:
        db.close()

    print("✓ Feedback schema ready")
    print(f"\nfeedback has {len(columns)} columns:")
    for column in columns:
        print(f"  - {column['column_name']} ({column['data_type']})")
    return True


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Initialize the feedback schema")
    parser.add_argument(
        "--log-format",
        choices=["json", "simple"],
        default="simple",
        help="Log output format (default: simple)",
    )
    args = parser.parse_args(argv)

    configure_logging(args.log_format)
    return 0 if init_schema() else 1


if __name__ == "__main__":
    sys.exit(main())
