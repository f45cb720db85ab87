"""
Row projection for the share report.

A row is built from a FileRecord, its ShareInfo and the TimeWindow of the current pass.
The window boundary is computed once per pass so every row in a pass is compared
against the same instant.

Columns (fixed order):
  Title, Queried Owner, File ID, Last Modified, Owner, Type, Created,
  Modified In Window, Created Before Window, Modified In Window, Shared With Others, Share Count
"""
from __future__ import annotations
import calendar
from datetime import datetime, timezone
from typing import NamedTuple, Optional

from drive_share_report.drive_client import FileRecord
from drive_share_report.shares import ShareInfo

HEADERS = [
    "Title",
    "Queried Owner",
    "File ID",
    "Last Modified",
    "Owner",
    "Type",
    "Created",
    "Modified In Window",
    "Created Before Window, Modified In Window",
    "Shared With Others",
    "Share Count",
]


class ReportRow(NamedTuple):
    title: str
    queried_owner: str
    file_id: str
    modified: datetime
    owner: str
    mime_type: str
    created: datetime
    modified_in_window: bool
    stale_but_recently_modified: bool
    shared_with_others: bool
    share_count: int


def parse_timestamp(value: str) -> datetime:
    """
    Parse an RFC 3339 timestamp as returned by Drive ("2024-06-01T10:00:00.000Z").
    Naive values are taken to be UTC. Raises ValueError on malformed input.
    """
    if not value:
        raise ValueError("empty timestamp")
    s = value.strip()
    if s.endswith("Z") or s.endswith("z"):
        s = s[:-1] + "+00:00"
    dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def subtract_months(dt: datetime, months: int) -> datetime:
    # clamp the day, e.g. Mar 31 - 1 month -> Feb 28/29
    total = dt.year * 12 + (dt.month - 1) - months
    year, month = divmod(total, 12)
    month += 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


class TimeWindow(NamedTuple):
    months_back: int
    boundary: datetime

    @classmethod
    def ending_at(cls, months_back: int, now: Optional[datetime] = None) -> "TimeWindow":
        if months_back < 0:
            raise ValueError("months_back must be >= 0")
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return cls(months_back, subtract_months(now.astimezone(timezone.utc), months_back))


def project_row(record: FileRecord, share_info: ShareInfo, window: TimeWindow, queried_owner: str = "") -> ReportRow:
    created = parse_timestamp(record.created_time)
    modified = parse_timestamp(record.modified_time)
    modified_in_window = modified >= window.boundary
    stale_but_recent = created < window.boundary and modified_in_window
    return ReportRow(
        title=record.name,
        queried_owner=queried_owner or "",
        file_id=record.id,
        modified=modified,
        owner=", ".join(e for e in record.owner_emails if e),
        mime_type=record.mime_type,
        created=created,
        modified_in_window=modified_in_window,
        stale_but_recently_modified=stale_but_recent,
        shared_with_others=share_info.shared_with_others,
        share_count=share_info.share_count,
    )
