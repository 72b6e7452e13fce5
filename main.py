"""
Entry point for the Squarespace to WordPress migration tool.
"""

import argparse
import sys

from squarespace_migrator.migration_tool import SquarespaceMigrationTool
from squarespace_migrator.utils.errors import MigrationError
from squarespace_migrator.utils.pre_flight_checks import PreFlightCheckError, run_wordpress_pre_flight_checks

CONFIG_FILE = "config/migration_config.json"


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Migrate the blog posts of a Squarespace export into WordPress."
    )
    parser.add_argument(
        "--config",
        default=CONFIG_FILE,
        help="Path to the JSON configuration file",
    )
    parser.add_argument(
        "--xml",
        default=None,
        help="Path to the Squarespace XML export (overrides migration.xml_file)",
    )
    parser.add_argument(
        "--dry-run",
        dest="dry_run",
        action="store_true",
        default=None,
        help="Convert posts without writing anything to WordPress",
    )
    parser.add_argument(
        "--no-dry-run",
        dest="dry_run",
        action="store_false",
        help="Create the posts and media in WordPress",
    )
    parser.add_argument("--limit", type=int, default=None, help="Maximum number of posts to process")
    parser.add_argument("--offset", type=int, default=None, help="Number of posts to skip first")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """
    Main function to run the Squarespace to WordPress migration tool.
    """
    args = parse_args(argv)
    tool = SquarespaceMigrationTool(config_file=args.config)
    tool.log_message("Starting Squarespace to WordPress migration.")

    if args.dry_run is not None:
        tool.migration["dry_run"] = args.dry_run
    if args.limit is not None:
        tool.migration["limit"] = args.limit
    if args.offset is not None:
        tool.migration["offset"] = args.offset

    if not tool.dry_run:
        try:
            run_wordpress_pre_flight_checks(tool.config)
        except PreFlightCheckError as e:
            tool.log_message(f"Pre-flight checks failed: {e}", level="ERROR")
            return 1

    try:
        result = tool.run(args.xml)
    except MigrationError as e:
        tool.log_message(f"Migration aborted: {e}", level="ERROR")
        return 1

    tool.log_message(f"Migration process finished: {result.summary()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
