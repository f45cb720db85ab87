"""
Report sinks. Each sink supports:
  initialize(headers)  clear the destination and write the header row
  append(row)          add one row after the existing ones
  identity             string naming the destination; checkpoints are tied to it

Rows are never reordered or deduplicated by a sink; each append is an independent write,
so a pass interrupted between rows leaves every earlier row in place.
"""
from __future__ import annotations
import csv
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence, Any

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def _cell(value: Any) -> Any:
    # Sheets JSON accepts bool/int/str directly; None would leave a hole
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.strftime(TIMESTAMP_FORMAT)
    return value


def _sheets_cell(value: Any) -> Any:
    """
    Cell value for a USER_ENTERED write. Text from Drive (titles, emails, types) gets a leading
    apostrophe so Sheets stores it verbatim: "=IMPORTXML(..." stays text, "001234" stays "001234".
    Datetimes are sent unquoted so Sheets parses them as dates.
    """
    if isinstance(value, str) and value:
        return "'" + value
    return _cell(value)


class SheetsSink:
    def __init__(self, service, spreadsheet_id: str, sheet_name: str = "Report",
                 logger: Optional[logging.Logger] = None):
        if not spreadsheet_id:
            raise ValueError("spreadsheet_id required for SheetsSink")
        self.service = service
        self.spreadsheet_id = spreadsheet_id
        self.sheet_name = sheet_name
        self.logger = logger or logging.getLogger("drive_share_report")

    @property
    def identity(self) -> str:
        return f"sheets:{self.spreadsheet_id}/{self.sheet_name}"

    @property
    def _range(self) -> str:
        return "'" + self.sheet_name.replace("'", "''") + "'"

    def _sheet_id(self) -> int:
        """
        Return the numeric sheetId for sheet_name, adding the tab if the spreadsheet lacks it.
        """
        meta = self.service.spreadsheets().get(spreadsheetId=self.spreadsheet_id,
                                               fields="sheets(properties(sheetId,title))").execute()
        for sheet in meta.get("sheets", []):
            props = sheet.get("properties", {})
            if props.get("title") == self.sheet_name:
                return props["sheetId"]
        resp = self.service.spreadsheets().batchUpdate(
            spreadsheetId=self.spreadsheet_id,
            body={"requests": [{"addSheet": {"properties": {"title": self.sheet_name}}}]},
        ).execute()
        self.logger.info("Added sheet %r to spreadsheet %s", self.sheet_name, self.spreadsheet_id)
        return resp["replies"][0]["addSheet"]["properties"]["sheetId"]

    def initialize(self, headers: Sequence[str]):
        sheet_id = self._sheet_id()
        values = self.service.spreadsheets().values()
        values.clear(spreadsheetId=self.spreadsheet_id, range=self._range, body={}).execute()
        values.update(spreadsheetId=self.spreadsheet_id, range=f"{self._range}!A1",
                      valueInputOption="RAW", body={"values": [list(headers)]}).execute()
        requests = [
            {
                "repeatCell": {
                    "range": {"sheetId": sheet_id, "startRowIndex": 0, "endRowIndex": 1},
                    "cell": {"userEnteredFormat": {"textFormat": {"bold": True}}},
                    "fields": "userEnteredFormat.textFormat.bold",
                }
            },
            {
                "updateSheetProperties": {
                    "properties": {"sheetId": sheet_id, "gridProperties": {"frozenRowCount": 1}},
                    "fields": "gridProperties.frozenRowCount",
                }
            },
        ]
        self.service.spreadsheets().batchUpdate(spreadsheetId=self.spreadsheet_id,
                                                body={"requests": requests}).execute()
        self.logger.info("Initialized sheet %r with %d header columns", self.sheet_name, len(headers))

    def append(self, row: Sequence[Any]):
        self.service.spreadsheets().values().append(
            spreadsheetId=self.spreadsheet_id,
            range=f"{self._range}!A1",
            valueInputOption="USER_ENTERED",
            insertDataOption="INSERT_ROWS",
            body={"values": [[_sheets_cell(v) for v in row]]},
        ).execute()


class CsvSink:
    """
    Local CSV report. The header cannot be bolded or frozen; it is simply the first line.
    """
    def __init__(self, path: str):
        self.path = Path(path)

    @property
    def identity(self) -> str:
        return f"csv:{self.path.resolve()}"

    def initialize(self, headers: Sequence[str]):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", newline="", encoding="utf-8") as fh:
            writer = csv.writer(fh)
            writer.writerow(list(headers))

    def append(self, row: Sequence[Any]):
        with open(self.path, "a", newline="", encoding="utf-8") as fh:
            writer = csv.writer(fh)
            writer.writerow([_cell(v) for v in row])
