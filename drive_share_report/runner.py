"""
Listing pass: query -> paginated listing -> per-file share lookup -> row projection -> sink.

start_report / reset_report clear the sink (and checkpoint) before listing.
continue_report lists without clearing. Without a CheckpointStore it re-lists from the first
page and re-appends every row; with one it resumes from the saved page and skips files
already appended.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from tqdm import tqdm

from drive_share_report.checkpoint import CheckpointStore
from drive_share_report.config import ReportConfig
from drive_share_report.drive_client import build_query
from drive_share_report.report import HEADERS, TimeWindow, project_row
from drive_share_report.shares import inspect_shares


@dataclass
class PassResult:
    appended: int = 0
    skipped: int = 0
    lookup_failures: int = 0


def run_pass(drive, sink, config: ReportConfig, checkpoint: Optional[CheckpointStore] = None,
             logger: Optional[logging.Logger] = None, now: Optional[datetime] = None,
             show_progress: bool = True) -> PassResult:
    logger = logger or logging.getLogger("drive_share_report")
    window = TimeWindow.ending_at(config.months_back, now=now)
    query = build_query(config.owner_email)
    logger.info("Listing pass: q=%r window boundary=%s", query, window.boundary.isoformat())

    page_token = None
    on_page = None
    done = set()
    if checkpoint is not None:
        page_token = checkpoint.begin(query, sink.identity)
        done = checkpoint.processed_ids()
        on_page = checkpoint.save_page_token
        if page_token:
            logger.info("Resuming from saved page token")

    result = PassResult()
    pbar = tqdm(unit="file", desc="Reporting", dynamic_ncols=True, disable=not show_progress)
    try:
        for record in drive.iter_files(query, page_size=config.page_size, page_token=page_token, on_page=on_page):
            if record.id in done:
                logger.info("Skipping %s (%s): already in report", record.id, record.name)
                result.skipped += 1
                pbar.update(1)
                continue

            share_info = inspect_shares(drive, record.id, logger=logger)
            if share_info.lookup_failed:
                result.lookup_failures += 1
            row = project_row(record, share_info, window, queried_owner=config.owner_email or "")
            sink.append(row)
            # an interrupt between these two writes re-appends this one row on resume
            if checkpoint is not None:
                checkpoint.mark_processed(record.id)
                done.add(record.id)
            result.appended += 1
            logger.info("Appended %s (%s) shares=%d", record.id, record.name, share_info.share_count)
            pbar.update(1)
    finally:
        pbar.close()

    logger.info("Pass finished: appended=%d skipped=%d lookup_failures=%d",
                result.appended, result.skipped, result.lookup_failures)
    return result


def start_report(drive, sink, config: ReportConfig, checkpoint: Optional[CheckpointStore] = None,
                 logger: Optional[logging.Logger] = None, **kwargs) -> PassResult:
    logger = logger or logging.getLogger("drive_share_report")
    sink.initialize(HEADERS)
    if checkpoint is not None:
        checkpoint.reset()
    logger.info("Report initialized")
    return run_pass(drive, sink, config, checkpoint=checkpoint, logger=logger, **kwargs)


reset_report = start_report


def continue_report(drive, sink, config: ReportConfig, checkpoint: Optional[CheckpointStore] = None,
                    logger: Optional[logging.Logger] = None, **kwargs) -> PassResult:
    return run_pass(drive, sink, config, checkpoint=checkpoint, logger=logger, **kwargs)
