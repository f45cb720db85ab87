"""
Reduce a file's permission list to "is it shared, and with how many".
A failed lookup never aborts a pass: it yields a best-effort ShareInfo flagged lookup_failed.
"""
from __future__ import annotations
from typing import Iterable, NamedTuple, Optional
import logging

OWNER_ROLE = "owner"


class ShareInfo(NamedTuple):
    shared_with_others: bool
    share_count: int
    lookup_failed: bool = False


LOOKUP_FAILED = ShareInfo(False, 0, lookup_failed=True)


def count_shares(permissions: Iterable[dict]) -> ShareInfo:
    count = sum(1 for p in permissions if p.get("role") != OWNER_ROLE)
    return ShareInfo(count > 0, count)


def inspect_shares(drive, file_id: str, logger: Optional[logging.Logger] = None) -> ShareInfo:
    logger = logger or logging.getLogger("drive_share_report")
    try:
        permissions = drive.list_permissions(file_id)
    except Exception as e:
        logger.warning("Permission lookup failed for %s; reporting 0 shares: %s", file_id, e)
        return LOOKUP_FAILED
    return count_shares(permissions)
