#!/usr/bin/env python3
"""
Seed the starter mission catalog.

Usage:
    python -m valorhub.scripts.seed_missions [--database-url URL]

Missions whose title already exists are skipped, so the script can be run
repeatedly.
"""
import argparse
import sys

from dotenv import load_dotenv


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Seed the starter mission catalog")
    parser.add_argument("--database-url", help="Override DATABASE_URL")
    args = parser.parse_args(argv)

    load_dotenv()

    from valorhub.core.config import settings
    from valorhub.core.database import create_all_tables, init_engine
    from valorhub.core.logging import configure_logging
    from valorhub.features.missions.service import STARTER_MISSIONS, seed_missions

    configure_logging(settings.ENV)
    if args.database_url:
        init_engine(args.database_url)
    create_all_tables()

    created = seed_missions()
    for mission in created:
        print(f"✅ Added mission: {mission.title}")
    print(f"Seeded {len(created)} of {len(STARTER_MISSIONS)} starter missions ({len(STARTER_MISSIONS) - len(created)} already present)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
