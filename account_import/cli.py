"""Command-line entry points.

``account-import`` imports a workbook into PostgreSQL or the REST API
(selected by ``USE_API``), or with ``--generate`` writes a synthetic
workbook instead. ``account-import-mockapi`` serves the mock REST API.
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

from account_import.backends import create_backend
from account_import.config import ImporterConfig
from account_import.exceptions import ImporterError
from account_import.generators import DataGenerator, GeneratorConfig
from account_import.importer import Importer
from account_import.logging import format_duration, setup_logging
from account_import.spreadsheet import write_workbook

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Import customers, accounts and links from an Excel workbook"
    )
    parser.add_argument(
        "--file",
        type=Path,
        default=Path("test_data.xlsx"),
        help="Excel file to import or generate (default: test_data.xlsx)",
    )
    parser.add_argument(
        "--env-file",
        type=str,
        default=None,
        help="Path to a .env file (default: search from the working directory)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Override LOG_LEVEL (DEBUG, INFO, WARNING, ...)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Resolve IDs in memory without touching the database or API",
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create the PostgreSQL tables if they do not exist before importing",
    )

    gen_group = parser.add_argument_group("test data generation")
    gen_group.add_argument(
        "--generate",
        action="store_true",
        help="Generate a test workbook instead of importing",
    )
    gen_group.add_argument(
        "--rows",
        type=int,
        default=100000,
        help="Number of customers (and accounts) to generate (default: 100000)",
    )
    gen_group.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for reproducible output",
    )
    gen_group.add_argument(
        "--multi-account-chance",
        type=float,
        default=0.3,
        help="Chance of a second linked account per customer (default: 0.3)",
    )
    gen_group.add_argument(
        "--third-account-chance",
        type=float,
        default=0.1,
        help="Chance of a third linked account, given a second (default: 0.1)",
    )
    return parser


def run_generate(args: argparse.Namespace, parser: argparse.ArgumentParser) -> None:
    """Generate a workbook as described by ``args``."""
    start = time.perf_counter()
    try:
        config = GeneratorConfig(
            num_customers=args.rows,
            multi_account_chance=args.multi_account_chance,
            third_account_chance=args.third_account_chance,
        )
    except ValueError as e:
        parser.error(str(e))
    generator = DataGenerator(config, seed=args.seed)
    customers = generator.generate_customers()
    accounts = generator.generate_accounts()
    links = generator.generate_links()
    write_workbook(args.file, customers, accounts, links)

    summary = generator.summary
    logger.info("Generation Summary:")
    logger.info("------------------")
    logger.info("Total Customers: %d", summary.customer_count)
    logger.info("Total Accounts:  %d", summary.account_count)
    logger.info("Total Links:     %d", summary.link_count)
    logger.info("File generated successfully: %s", args.file)
    logger.info("Total generation time: %s", format_duration(time.perf_counter() - start))


def run_import(args: argparse.Namespace, config: ImporterConfig) -> None:
    """Import ``args.file`` into the configured backend."""
    config.validate()

    logger.info("=" * 60)
    logger.info("Account Import")
    logger.info("=" * 60)
    logger.info("File: %s", args.file)
    if args.dry_run:
        logger.info("Backend: DRY RUN")
    elif config.api.use_api:
        logger.info("Backend: API %s (%d req/s)", config.api.base_url, config.api.rate_limit)
    else:
        logger.info(
            "Backend: PostgreSQL %s:%d/%s (batch size %d)",
            config.postgres.host,
            config.postgres.port,
            config.postgres.database,
            config.batch_size,
        )
    logger.info("=" * 60)

    backend = create_backend(config, dry_run=args.dry_run, create_tables=args.create_tables)
    with backend:
        summary = Importer(backend).import_file(args.file)
    summary.log()


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = ImporterConfig.from_env(args.env_file)
    except ImporterError as e:
        setup_logging()
        logger.error("%s", e)
        return 1

    setup_logging(args.log_level or config.log_level, config.log_format)

    try:
        if args.generate:
            run_generate(args, parser)
        else:
            run_import(args, config)
    except ImporterError as e:
        logger.error("%s", e)
        return 1
    return 0


def build_mockapi_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the mock customer/account API")
    parser.add_argument("--host", type=str, default="127.0.0.1", help="Bind address")
    parser.add_argument("--port", type=int, default=3000, help="Port to run mock API on")
    parser.add_argument(
        "--api-key",
        type=str,
        default=None,
        help="Require this bearer token on every request",
    )
    parser.add_argument("--log-level", type=str, default="INFO", help="Log level")
    return parser


def mockapi_main(argv: list[str] | None = None) -> int:
    """Serve the mock API until interrupted."""
    from account_import.mockapi import create_app

    args = build_mockapi_parser().parse_args(argv)
    setup_logging(args.log_level)
    app = create_app(api_key=args.api_key)
    logger.info("Starting mock API server on %s:%d", args.host, args.port)
    app.run(host=args.host, port=args.port, threaded=True)
    return 0


if __name__ == "__main__":
    sys.exit(main())
