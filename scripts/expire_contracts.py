#!/usr/bin/env python3
"""
Script to expire contracts whose expiry date has passed before signing.
This can be run manually or via cron job.
"""

import os
import sys
import argparse

# Add the parent directory to the Python path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from kontrak import create_app
from kontrak.core.contracts import expire_overdue_contracts
from kontrak.db.session import get_session
from kontrak.logging_config import configure_logging

logger = configure_logging("kontrak.expire", "kontrak.log")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Expire unsigned contracts past their expiry date")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be expired without changing anything"
    )

    args = parser.parse_args(argv)

    logger.info("Starting expiry sweep of unsigned contracts")
    logger.info(f"Dry run: {args.dry_run}")

    app = create_app()
    try:
        with app.app_context():
            expired = expire_overdue_contracts(get_session(), dry_run=args.dry_run)
        logger.info(f"Expiry sweep completed. Contracts affected: {len(expired)}")
    except Exception:
        logger.exception("Error during expiry sweep")
        sys.exit(1)


if __name__ == "__main__":
    main()
