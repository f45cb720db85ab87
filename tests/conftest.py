from __future__ import annotations
import csv
from typing import Dict, List, Optional

import pytest

from drive_share_report.drive_client import DriveClient


class _Request:
    def __init__(self, fn):
        self._fn = fn

    def execute(self):
        return self._fn()


class _Files:
    def __init__(self, svc):
        self.svc = svc

    def list(self, **kwargs):
        self.svc.list_calls.append(kwargs)

        def run():
            if self.svc.list_error is not None:
                raise self.svc.list_error
            return self.svc.pages[kwargs.get("pageToken")]
        return _Request(run)


class _Permissions:
    def __init__(self, svc):
        self.svc = svc

    def list(self, **kwargs):
        self.svc.permission_calls.append(kwargs)

        def run():
            value = self.svc.perms[kwargs["fileId"]]
            if isinstance(value, Exception):
                raise value
            return {"permissions": value}
        return _Request(run)


class FakeDriveService:
    """
    pages: {page_token_or_None: {"files": [...], "nextPageToken": ...}}
    permissions: {file_id: [permission dicts] or an Exception to raise}
    """
    def __init__(self, pages: Dict[Optional[str], dict], permissions: Optional[Dict[str, object]] = None):
        self.pages = pages
        self.perms = permissions or {}
        self.list_calls: List[dict] = []
        self.permission_calls: List[dict] = []
        self.list_error: Optional[Exception] = None

    def files(self):
        return _Files(self)

    def permissions(self):
        return _Permissions(self)


def make_file(file_id, name, created="2023-01-01T00:00:00.000Z", modified="2024-06-01T00:00:00.000Z",
              owner="owner@example.com", mime_type="application/pdf"):
    return {
        "id": file_id,
        "name": name,
        "mimeType": mime_type,
        "owners": [{"emailAddress": owner, "displayName": "Owner"}],
        "createdTime": created,
        "modifiedTime": modified,
    }


@pytest.fixture
def two_file_service():
    pages = {
        None: {"files": [make_file("f1", "Budget")], "nextPageToken": "p2"},
        "p2": {"files": [make_file("f2", "Notes", created="2024-06-01T00:00:00.000Z")]},
    }
    permissions = {
        "f1": [
            {"id": "0", "type": "user", "role": "owner", "emailAddress": "owner@example.com"},
            {"id": "1", "type": "user", "role": "reader", "emailAddress": "a@example.com"},
            {"id": "2", "type": "user", "role": "writer", "emailAddress": "b@example.com"},
        ],
        "f2": [{"id": "0", "type": "user", "role": "owner", "emailAddress": "owner@example.com"}],
    }
    return FakeDriveService(pages, permissions)


@pytest.fixture
def two_file_drive(two_file_service):
    return DriveClient(service=two_file_service)


def read_csv(path) -> List[List[str]]:
    with open(path, newline="", encoding="utf-8") as fh:
        return list(csv.reader(fh))
