#!/usr/bin/env python3
"""
Drive share report CLI.

Modes:
  start      clear the report (and checkpoint), write the header, list every file
  continue   list again without clearing the report
  reset      same as start

Without --checkpoint-db, "continue" restarts the listing from the first page and appends
every file again. With --checkpoint-db it resumes from the saved page and skips files
already in the report.

Sinks:
  --spreadsheet-id ID [--sheet-name NAME]   Google Sheets tab (header bolded and frozen)
  --csv PATH                                local CSV file instead of Sheets

Examples:
  python main.py start --credentials sa.json --owner someone@example.com --spreadsheet-id 1AbC...
  python main.py continue --credentials sa.json --csv report.csv --checkpoint-db report.db
"""
from __future__ import annotations
import argparse
import sys
import logging

from google.auth.exceptions import TransportError
from googleapiclient.errors import HttpError

from drive_share_report.checkpoint import CheckpointStore, CheckpointMismatch
from drive_share_report.config import ReportConfig, DEFAULT_MONTHS_BACK, DEFAULT_PAGE_SIZE, DEFAULT_SHEET_NAME
from drive_share_report.drive_client import DriveClient, build_services
from drive_share_report.runner import start_report, continue_report, reset_report
from drive_share_report.sink import SheetsSink, CsvSink

MODES = {
    "start": start_report,
    "continue": continue_report,
    "reset": reset_report,
}


def setup_logging(log_file: str, verbose: bool) -> logging.Logger:
    logger = logging.getLogger("drive_share_report")
    logger.setLevel(logging.INFO)

    # File handler (INFO+)
    fh = logging.FileHandler(log_file, encoding="utf-8")
    fh.setLevel(logging.INFO)
    fh.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    logger.addHandler(fh)

    # Console handler (WARNING+ unless verbose)
    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(logging.INFO if verbose else logging.WARNING)
    ch.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    logger.addHandler(ch)

    return logger


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Report files owned by a user in Google Drive and how they are shared.")
    p.add_argument("mode", choices=sorted(MODES), help="start/reset a report or continue an existing one")
    p.add_argument("--credentials", required=True, help="Path to service account JSON")
    p.add_argument("--subject", help="User to impersonate (domain-wide delegation)")
    p.add_argument("--owner", help="Only report files owned by this email")
    p.add_argument("--months-back", type=int, default=DEFAULT_MONTHS_BACK,
                   help=f"Size of the 'recent' window in months (default {DEFAULT_MONTHS_BACK})")
    p.add_argument("--page-size", type=int, default=DEFAULT_PAGE_SIZE,
                   help=f"files().list page size (default {DEFAULT_PAGE_SIZE})")
    p.add_argument("--spreadsheet-id", help="Google Sheets spreadsheet to write the report to")
    p.add_argument("--sheet-name", default=DEFAULT_SHEET_NAME, help="Tab name in the spreadsheet")
    p.add_argument("--csv", help="Write the report to a local CSV instead of Sheets")
    p.add_argument("--checkpoint-db", help="SQLite file used to resume a report without duplicating rows")
    p.add_argument("--log-file", default="drive_share_report.log", help="Path to log file for per-file logs")
    p.add_argument("--verbose", action="store_true", help="Also print INFO messages to console")
    p.add_argument("--no-progress", action="store_true", help="Hide the progress bar")
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    if not args.csv and not args.spreadsheet_id:
        print("Either --spreadsheet-id or --csv must be provided", file=sys.stderr)
        sys.exit(2)
    try:
        config = ReportConfig.from_args(args)
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(2)

    logger = setup_logging(args.log_file, args.verbose)
    logger.info("Starting mode=%s owner=%s months_back=%d", args.mode, config.owner_email, config.months_back)

    try:
        creds, drive_service, sheets_service = build_services(args.credentials, subject=args.subject)
    except (OSError, ValueError) as e:
        logger.error("Failed to load credentials %s: %s", args.credentials, e)
        print(f"Could not load service account credentials: {e}", file=sys.stderr)
        sys.exit(2)
    logger.info("Using service account %s", creds.service_account_email)
    drive = DriveClient(service=drive_service)

    if config.csv_path:
        sink = CsvSink(config.csv_path)
    else:
        sink = SheetsSink(sheets_service, config.spreadsheet_id, config.sheet_name, logger=logger)
    checkpoint = CheckpointStore(config.checkpoint_db) if config.checkpoint_db else None

    try:
        result = MODES[args.mode](drive, sink, config, checkpoint=checkpoint, logger=logger,
                                  show_progress=not args.no_progress)
    except CheckpointMismatch as e:
        logger.error("%s", e)
        print(f"{e}", file=sys.stderr)
        sys.exit(2)
    except (HttpError, TransportError, OSError, ValueError) as e:
        logger.exception("Report pass aborted: %s", e)
        print("Report pass aborted. See log for details.", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.warning("Interrupted; rows appended so far are kept")
        sys.exit(130)
    finally:
        if checkpoint is not None:
            checkpoint.close()

    print(f"Appended {result.appended} rows ({result.skipped} already reported, "
          f"{result.lookup_failures} permission lookups failed).")


if __name__ == "__main__":
    main()
