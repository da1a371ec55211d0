"""
Command line entry point.

    accounter -d ledger.db -f prices.csv -u alice [-m README.md] [-v]

Loads the price file into the ledger as `alice`'s items and prints the
settlement as CSV on stdout. With -v the file is only validated.

Exit codes: 0 success, 1 rejected input or storage failure, 2 bad arguments.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from pydantic import ValidationError

from accounter import __version__
from accounter.audit import AuditLogger
from accounter.config import RunConfig, get_settings
from accounter.export import write_settlement_csv
from accounter.ingest import IngestionError
from accounter.orchestrator import LedgerRunFlow
from accounter.services.storage import StorageError
from accounter.validation import BatchRejectedError, BatchValidator


EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="accounter",
        description="Load item prices into a shared ledger and settle balances between users.",
    )
    parser.add_argument(
        "-d", "--database", type=Path, required=True,
        help="ledger database file to load into",
    )
    parser.add_argument(
        "-f", "--filename", type=Path, required=True,
        help="item price file to load (name,price rows without header)",
    )
    parser.add_argument(
        "-u", "--user",
        help="user the items are attributed to (default: ACCOUNTER_DEFAULT_USER)",
    )
    parser.add_argument(
        "-v", "--validate", action="store_true",
        help="only validate the price file, do not touch the database",
    )
    parser.add_argument(
        "-m", "--markdown", type=Path,
        help="write the whole ledger as a markdown table to this file",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    return parser


def configure_logging(level: str) -> None:
    """Route structlog's stdlib loggers to stderr at the given level."""
    logging.basicConfig(
        level=getattr(logging, level),
        stream=sys.stderr,
        format="%(message)s",
        force=True,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    app_settings = get_settings().app
    configure_logging(app_settings.log_level)

    user = args.user or app_settings.default_user
    if not user:
        parser.error("a user is required (-u/--user or ACCOUNTER_DEFAULT_USER)")

    try:
        config = RunConfig(
            database=args.database,
            filename=args.filename,
            user=user,
            validate_only=args.validate,
            markdown=args.markdown,
            csv_delimiter=app_settings.csv_delimiter,
        )
    except ValidationError as e:
        parser.error(str(e))

    audit_logger = AuditLogger()
    validator = BatchValidator()
    flow = LedgerRunFlow(validator=validator, audit_logger=audit_logger)

    try:
        outcome = flow.run(config)
    except BatchRejectedError as e:
        print(validator.get_summary(e.result), file=sys.stderr)
        return EXIT_FAILURE
    except (IngestionError, StorageError, OSError) as e:
        audit_logger.log_error(error_type=type(e).__name__, error_message=str(e))
        print(f"error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    if outcome.validate_only:
        print(validator.get_summary(outcome.validation))
        return EXIT_OK

    for warning in outcome.validation.warnings:
        print(f"warning: {warning}", file=sys.stderr)

    write_settlement_csv(outcome.settlement, sys.stdout)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
