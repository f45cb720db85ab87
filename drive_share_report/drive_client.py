"""
DriveClient: list non-folder, non-trashed files (optionally for one owner) and read their permissions.

- build_query() produces the `q` string for files().list.
- iter_files() follows nextPageToken lazily so memory is bounded by one page.
- Only the fields the report needs are requested.

Usage:
    drive = DriveClient(service_account_file="sa.json")
    for record in drive.iter_files(build_query("someone@example.com")):
        ...
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, List, Iterator, Callable, Dict, Any
from google.oauth2 import service_account
from googleapiclient.discovery import build

SCOPES = [
    "https://www.googleapis.com/auth/drive.metadata.readonly",
    "https://www.googleapis.com/auth/spreadsheets",
]
FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
FILE_FIELDS = "nextPageToken, files(id,name,mimeType,owners(emailAddress),createdTime,modifiedTime)"
PERMISSION_FIELDS = "nextPageToken, permissions(id,type,role,emailAddress)"
DEFAULT_PAGE_SIZE = 100


@dataclass(frozen=True)
class FileRecord:
    id: str
    name: str
    mime_type: str
    created_time: str
    modified_time: str
    owner_emails: List[str] = field(default_factory=list)

    @classmethod
    def from_api(cls, resource: Dict[str, Any]) -> "FileRecord":
        owners = [o.get("emailAddress", "") for o in resource.get("owners", []) or []]
        return cls(
            id=resource["id"],
            name=resource.get("name", ""),
            mime_type=resource.get("mimeType", ""),
            created_time=resource.get("createdTime", ""),
            modified_time=resource.get("modifiedTime", ""),
            owner_emails=owners,
        )


def _quote(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


def build_query(owner_email: Optional[str] = None) -> str:
    """
    Query for every file that is not a folder and not in the trash.
    When owner_email is given the listing is restricted to files that user owns.
    """
    q = f"mimeType != '{FOLDER_MIME_TYPE}' and trashed = false"
    if owner_email:
        q += f" and '{_quote(owner_email)}' in owners"
    return q


def build_services(service_account_file: str, subject: Optional[str] = None, scopes: Optional[list] = None):
    """
    Returns (credentials, drive_service, sheets_service) for a service account.
    subject impersonates a domain user when domain-wide delegation is set up.
    """
    creds = service_account.Credentials.from_service_account_file(service_account_file, scopes=scopes or SCOPES)
    if subject:
        creds = creds.with_subject(subject)
    drive = build("drive", "v3", credentials=creds, cache_discovery=False)
    sheets = build("sheets", "v4", credentials=creds, cache_discovery=False)
    return creds, drive, sheets


class DriveClient:
    def __init__(self, service=None, service_account_file: Optional[str] = None, subject: Optional[str] = None):
        if service is not None:
            self.service = service
            self.service_account_email = None
        elif service_account_file:
            creds, self.service, _ = build_services(service_account_file, subject=subject)
            self.service_account_email = creds.service_account_email  # useful for debugging / sharing
        else:
            raise ValueError("service or service_account_file required for DriveClient")

    def iter_files(self, query: str, page_size: int = DEFAULT_PAGE_SIZE, page_token: Optional[str] = None,
                   on_page: Optional[Callable[[Optional[str]], None]] = None) -> Iterator[FileRecord]:
        """
        Yield FileRecords for every page of the listing, in the order the API returns them.

        page_token starts the listing from a previously saved cursor.
        on_page(next_token) is called once all records of a page have been yielded;
        next_token is None after the last page.
        Errors from files().list are not caught.
        """
        while True:
            resp = self.service.files().list(q=query, pageSize=page_size, pageToken=page_token,
                                             fields=FILE_FIELDS).execute()
            for f in resp.get("files", []):
                yield FileRecord.from_api(f)
            page_token = resp.get("nextPageToken")
            if on_page is not None:
                on_page(page_token)
            if not page_token:
                break

    def list_files(self, query: str, page_size: int = DEFAULT_PAGE_SIZE) -> List[FileRecord]:
        return list(self.iter_files(query, page_size=page_size))

    def list_permissions(self, file_id: str) -> List[dict]:
        """
        Return every permission entry on the file (role and identity fields only).
        """
        permissions: List[dict] = []
        page_token = None
        while True:
            resp = self.service.permissions().list(fileId=file_id, fields=PERMISSION_FIELDS,
                                                   pageToken=page_token).execute()
            permissions.extend(resp.get("permissions", []))
            page_token = resp.get("nextPageToken")
            if not page_token:
                return permissions
