"""
EasyProp migration helper

Examples:
  # Prepare the data directory and check configuration
  easyprop-migrate setup

  # Create the Supabase storage buckets
  easyprop-migrate setup-buckets

  # Import one export file
  easyprop-migrate import properties --data-dir ./migration/data

  # Import everything, then check the results
  easyprop-migrate import-all
  easyprop-migrate validate
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from easyprop.core.config import settings
from easyprop.core.exceptions import EasyPropException
from easyprop.core.logging import get_logger, setup_logging
from easyprop.db.base import SessionLocal, engine
from easyprop.db.init_db import check_connection, init_db
from easyprop.migration.checks import prepare_environment, validate_import
from easyprop.migration.importers import TABLE_ORDER, ImportResult, import_all, import_table
from easyprop.services.storage import storage_client

logger = get_logger(__name__)

ALEMBIC_INI = Path(__file__).resolve().parents[3] / "alembic.ini"


def print_json(data, indent=2):
    """Pretty print JSON data"""
    print(json.dumps(data, indent=indent, ensure_ascii=False, default=str))


def print_result(result: ImportResult):
    status = "ok" if result.ok else "with errors"
    print(f"{result.table}: {result.imported}/{result.total} imported, {result.failed} failed ({status})")
    for error in result.errors[:10]:
        print(f"  - {error}")


def cmd_setup(args) -> int:
    report = prepare_environment(args.data_dir)
    print(f"Data directory: {report['data_dir']}{' (created)' if report['created'] else ''}")
    for f in report["files"]:
        mark = "present" if f["present"] else "MISSING"
        print(f"  {f['file']}: {mark} ({f['size_kb']} KB)")
    for name in report["missing_settings"]:
        print(f"  setting {name}: MISSING")
    if not report["env_file_present"]:
        print("  .env file not found in the working directory")
    print("Setup complete" if report["ready"] else "Setup incomplete")
    return 0 if report["ready"] else 1


def cmd_setup_buckets(args) -> int:
    try:
        results = storage_client.ensure_buckets()
    except EasyPropException as e:
        logger.error("Bucket setup failed", error=e.message)
        print(f"Error: {e.message}")
        return 1
    for result in results:
        print(f"{result['bucket']}: {'created' if result['created'] else 'already exists'}")
    return 0


def cmd_test_connection(args) -> int:
    url = engine.url.render_as_string(hide_password=True)
    if check_connection():
        print(f"Connected to {url}")
        return 0
    print(f"Could not connect to {url}")
    return 1


def cmd_create_tables(args) -> int:
    init_db()
    print("Tables created")
    return 0


def cmd_upgrade(args) -> int:
    """Apply Alembic revisions (initial schema, tours, tour visitor ids)"""
    from alembic import command
    from alembic.config import Config

    config = Config(str(ALEMBIC_INI))
    config.set_main_option("sqlalchemy.url", settings.get_database_url)
    command.upgrade(config, args.revision)
    print(f"Database upgraded to {args.revision}")
    return 0


def cmd_import(args) -> int:
    db = SessionLocal()
    try:
        result = import_table(db, args.table, args.data_dir)
    finally:
        db.close()
    print_result(result)
    return 0 if result.ok else 1


def cmd_import_all(args) -> int:
    db = SessionLocal()
    try:
        results = import_all(db, args.data_dir)
    finally:
        db.close()
    for result in results:
        print_result(result)
    return 0 if all(r.ok for r in results) else 1


def cmd_validate(args) -> int:
    db = SessionLocal()
    try:
        report = validate_import(db)
    finally:
        db.close()
    print_json(report)
    if report["total_records"] == 0:
        print("No data found. Export the legacy tables, place the JSON files in the data directory and run the importers.")
    return 0


def cmd_recalculate_cities(args) -> int:
    from easyprop.services.users import recalculate_all_users_total_cities

    db = SessionLocal()
    try:
        updated = recalculate_all_users_total_cities(db)
    finally:
        db.close()
    print(f"Recalculated total cities for {updated} users")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="easyprop-migrate",
        description="EasyProp data migration utilities",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    setup_parser = subparsers.add_parser("setup", help="Create the data directory and check prerequisites")
    setup_parser.add_argument("--data-dir", help="Directory holding <table>_export.json files")

    subparsers.add_parser("setup-buckets", help="Create the property image and profile photo storage buckets")
    subparsers.add_parser("test-connection", help="Check database connectivity")
    subparsers.add_parser("create-tables", help="Create any missing tables from the models")

    upgrade_parser = subparsers.add_parser("upgrade", help="Apply Alembic revisions")
    upgrade_parser.add_argument("revision", nargs="?", default="head", help="Target revision")

    import_parser = subparsers.add_parser("import", help="Import one export file")
    import_parser.add_argument("table", choices=TABLE_ORDER)
    import_parser.add_argument("--data-dir", help="Directory holding <table>_export.json files")

    all_parser = subparsers.add_parser("import-all", help="Import every export file in order")
    all_parser.add_argument("--data-dir", help="Directory holding <table>_export.json files")

    subparsers.add_parser("validate", help="Count imported rows and run sanity checks")
    subparsers.add_parser("recalculate-cities", help="Recompute every user's total_cities stat")
    return parser


COMMANDS = {
    "setup": cmd_setup,
    "setup-buckets": cmd_setup_buckets,
    "test-connection": cmd_test_connection,
    "create-tables": cmd_create_tables,
    "upgrade": cmd_upgrade,
    "import": cmd_import,
    "import-all": cmd_import_all,
    "validate": cmd_validate,
    "recalculate-cities": cmd_recalculate_cities,
}


def main(argv: Optional[List[str]] = None) -> int:
    setup_logging()
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    try:
        return COMMANDS[args.command](args)
    except SQLAlchemyError as e:
        logger.error("Migration command failed", command=args.command, error=str(e))
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
