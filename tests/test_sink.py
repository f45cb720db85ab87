from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from conftest import read_csv
from drive_share_report.report import HEADERS
from drive_share_report.sink import CsvSink, SheetsSink


def _sheets_service(titles=("Report",)):
    service = MagicMock()
    spreadsheets = service.spreadsheets.return_value
    spreadsheets.get.return_value.execute.return_value = {
        "sheets": [{"properties": {"sheetId": 10 + i, "title": t}} for i, t in enumerate(titles)]
    }
    spreadsheets.batchUpdate.return_value.execute.return_value = {
        "replies": [{"addSheet": {"properties": {"sheetId": 99, "title": "Report"}}}]
    }
    return service


def test_sheets_initialize_clears_writes_bolds_and_freezes():
    service = _sheets_service()
    SheetsSink(service, "sheet-1").initialize(HEADERS)

    values = service.spreadsheets.return_value.values.return_value
    values.clear.assert_called_once_with(spreadsheetId="sheet-1", range="'Report'", body={})
    update_kwargs = values.update.call_args.kwargs
    assert update_kwargs["range"] == "'Report'!A1"
    assert update_kwargs["body"] == {"values": [HEADERS]}

    requests = service.spreadsheets.return_value.batchUpdate.call_args.kwargs["body"]["requests"]
    bold = requests[0]["repeatCell"]
    assert bold["range"] == {"sheetId": 10, "startRowIndex": 0, "endRowIndex": 1}
    assert bold["cell"]["userEnteredFormat"]["textFormat"]["bold"] is True
    frozen = requests[1]["updateSheetProperties"]["properties"]
    assert frozen == {"sheetId": 10, "gridProperties": {"frozenRowCount": 1}}


def test_sheets_initialize_adds_missing_tab():
    service = _sheets_service(titles=("Sheet1",))
    SheetsSink(service, "sheet-1").initialize(HEADERS)

    calls = service.spreadsheets.return_value.batchUpdate.call_args_list
    assert "addSheet" in calls[0].kwargs["body"]["requests"][0]
    assert calls[1].kwargs["body"]["requests"][0]["repeatCell"]["range"]["sheetId"] == 99


def test_sheets_append_inserts_one_row():
    service = _sheets_service()
    SheetsSink(service, "sheet-1", sheet_name="Owner's files").append(("Budget", None, True, 2))

    kwargs = service.spreadsheets.return_value.values.return_value.append.call_args.kwargs
    assert kwargs["range"] == "'Owner''s files'!A1"
    assert kwargs["insertDataOption"] == "INSERT_ROWS"
    assert kwargs["body"] == {"values": [["'Budget", "", True, 2]]}


def _appended_values(service):
    return service.spreadsheets.return_value.values.return_value.append.call_args.kwargs["body"]["values"][0]


def test_sheets_append_keeps_formula_titles_as_text():
    service = _sheets_service()
    SheetsSink(service, "sheet-1").append(('=IMPORTXML("http://example.com","//a")', "@owner", "-1", "001234"))

    assert _appended_values(service) == [
        '\'=IMPORTXML("http://example.com","//a")', "'@owner", "'-1", "'001234",
    ]


def test_sheets_append_sends_timestamps_unquoted():
    service = _sheets_service()
    SheetsSink(service, "sheet-1").append(("2024-01-01", datetime(2024, 6, 1, 10, 0, tzinfo=timezone.utc)))

    assert _appended_values(service) == ["'2024-01-01", "2024-06-01 10:00:00"]


def test_sheets_sink_requires_spreadsheet_id():
    with pytest.raises(ValueError):
        SheetsSink(MagicMock(), "")


def test_csv_initialize_then_append(tmp_path):
    sink = CsvSink(str(tmp_path / "out" / "report.csv"))
    sink.initialize(["a", "b"])
    sink.append(("x", 1))
    sink.append(("x", 1))

    assert read_csv(sink.path) == [["a", "b"], ["x", "1"], ["x", "1"]]


def test_csv_initialize_clears_previous_rows(tmp_path):
    sink = CsvSink(str(tmp_path / "report.csv"))
    sink.initialize(["a"])
    sink.append(("old",))
    sink.initialize(["a"])

    assert read_csv(sink.path) == [["a"]]


def test_csv_formats_timestamps(tmp_path):
    sink = CsvSink(str(tmp_path / "report.csv"))
    sink.initialize(["t"])
    sink.append((datetime(2024, 6, 1, 10, 0, tzinfo=timezone.utc),))

    assert read_csv(sink.path)[1] == ["2024-06-01 10:00:00"]


def test_sink_identity_names_destination(tmp_path):
    assert SheetsSink(MagicMock(), "abc", "Tab").identity == "sheets:abc/Tab"
    assert CsvSink(str(tmp_path / "r.csv")).identity == CsvSink(str(tmp_path / "." / "r.csv")).identity
