"""
Static configuration for a report pass, read once when the pass starts.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

DEFAULT_MONTHS_BACK = 12
DEFAULT_PAGE_SIZE = 100
MAX_PAGE_SIZE = 1000  # files().list upper bound
DEFAULT_SHEET_NAME = "Report"


@dataclass(frozen=True)
class ReportConfig:
    months_back: int = DEFAULT_MONTHS_BACK
    owner_email: Optional[str] = None
    page_size: int = DEFAULT_PAGE_SIZE
    spreadsheet_id: Optional[str] = None
    sheet_name: str = DEFAULT_SHEET_NAME
    csv_path: Optional[str] = None
    checkpoint_db: Optional[str] = None

    def __post_init__(self):
        if self.months_back < 0:
            raise ValueError("months_back must be >= 0")
        if not 1 <= self.page_size <= MAX_PAGE_SIZE:
            raise ValueError(f"page_size must be between 1 and {MAX_PAGE_SIZE}")
        if self.owner_email is not None and not self.owner_email.strip():
            object.__setattr__(self, "owner_email", None)

    @classmethod
    def from_args(cls, args) -> "ReportConfig":
        return cls(
            months_back=args.months_back,
            owner_email=args.owner,
            page_size=args.page_size,
            spreadsheet_id=args.spreadsheet_id,
            sheet_name=args.sheet_name,
            csv_path=args.csv,
            checkpoint_db=args.checkpoint_db,
        )
