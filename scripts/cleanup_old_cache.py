#!/usr/bin/env python
# scripts/cleanup_old_cache.py

import argparse
import datetime
import os
import sys

# Run from the command line; the package lives one directory up.
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from sqlalchemy.exc import SQLAlchemyError

from prayerclock import create_app
from prayerclock.services.engine import get_engine


def cleanup_old_cache(max_age_days=None):
    """
    Deletes cached prayer days and Hijri dates written more than `max_age_days`
    ago (CACHE_EVICTION_DAYS by default). Reads never fail because of age, so
    this sweep is the only thing that removes stale rows.
    """
    app = create_app(os.getenv('FLASK_CONFIG') or 'default')
    with app.app_context():
        print("--- Starting the Cache Cleanup Script ---")
        max_age_days = max_age_days or app.config.get('CACHE_EVICTION_DAYS', 30)
        cutoff = datetime.datetime.utcnow() - datetime.timedelta(days=max_age_days)
        print(f"INFO: Deleting rows written before {cutoff.isoformat()} ({max_age_days} days).")

        try:
            deleted = get_engine().store.delete_older_than(cutoff)
        except SQLAlchemyError as e:
            print(f"ERROR: The deletion failed and was rolled back. Details: {e}")
            return 1

        if deleted["prayerTimes"] or deleted["hijriDates"]:
            print(f"SUCCESS: Deleted {deleted['prayerTimes']} prayer days and {deleted['hijriDates']} Hijri dates.")
        else:
            print("INFO: No expired rows found.")
        print("--- Cleanup script finished. ---")
        return 0


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description="Delete expired cache rows.")
    parser.add_argument('--days', type=int, help="Maximum row age in days.")
    cli_args = parser.parse_args()
    sys.exit(cleanup_old_cache(cli_args.days))
