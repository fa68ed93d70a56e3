"""Cancellations database management CLI.

Creates and drops the relational schema used when the domain runs against
a SQL provider (see the production overlay in ``cancellations/domain.toml``).
With the default in-memory provider both commands are no-ops.

Usage:
    python src/manage.py setup-db   # Create all tables
    python src/manage.py drop-db    # Drop all tables
"""

import argparse
import sys


def _domain():
    from cancellations.domain import cancellations

    print("Initializing cancellations domain...")
    cancellations.init()
    return cancellations


def setup_databases():
    from cancellations.utils.db import setup_db

    providers = setup_db(_domain())
    if providers:
        print(f"  Schema ready for: {', '.join(providers)}")
    else:
        print("  No relational providers configured, nothing to create.")
    print("Done.")


def drop_databases():
    from cancellations.utils.db import drop_db

    providers = drop_db(_domain())
    if providers:
        print(f"  Schema dropped for: {', '.join(providers)}")
    else:
        print("  No relational providers configured, nothing to drop.")
    print("Done.")


def main():
    parser = argparse.ArgumentParser(description="Cancellations database management")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_databases()
    elif args.command == "drop-db":
        drop_databases()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
