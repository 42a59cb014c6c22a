#!/usr/bin/env python
# scripts/precache_offline_months.py

import argparse
import os
import sys

# Run from the command line; the package lives one directory up.
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from prayerclock import create_app
from prayerclock.services.engine import get_engine
from prayerclock.services.errors import PrefetchAlreadyRunningError


def precache_offline_months(zone=None, provider=None):
    """
    Downloads the prefetch horizon (the rest of this year plus the first months
    of next year) into the Local Store so the clock can run offline.

    Meant for a scheduler (cron) or a one-off run after changing provider.
    Months already complete in the store are skipped, so repeated runs are cheap.
    Returns a process exit code.
    """
    app = create_app(os.getenv('FLASK_CONFIG') or 'default')
    with app.app_context():
        print("--- Starting the Offline Prefetch Script ---")
        engine = get_engine()
        if provider:
            engine.settings_source.update(provider=provider)
        settings = engine.settings_source.current
        print(f"INFO: Active provider key: {settings.provider_key}")

        before = engine.prefetch_manager.check_cache_status(zone)
        print(f"INFO: Cached before run: {before.cached_months}/{before.total_months} months, {before.cached_days}/{before.total_days} days.")
        if before.is_fully_cached:
            print("INFO: Everything is already cached. Exiting.")
            return 0

        try:
            result = engine.prefetch_manager.prefetch(zone)
        except PrefetchAlreadyRunningError as e:
            print(f"WARN: {e}")
            return 1

        summary = result.to_dict()
        for key, value in summary.items():
            print(f"  {key}: {value}")
        print("--- Offline prefetch script finished. ---")
        return 0 if result.failed_months == 0 else 2


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description="Prefetch prayer times for offline use.")
    parser.add_argument('--zone', help="Zone (or region for the AlAdhan provider). Defaults to the configured one.")
    parser.add_argument('--provider', help="Provider to prefetch for, e.g. SCRAPE_DIRECT or ACJU_DIRECT.")
    cli_args = parser.parse_args()
    sys.exit(precache_offline_months(zone=cli_args.zone, provider=cli_args.provider))
