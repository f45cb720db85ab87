#!/usr/bin/env python3
"""
Quick debug: list the first page of files a service account sees for an owner, with share counts.
Usage:
  python scripts/debug_list_drive_files.py --credentials sa.json --owner someone@example.com
"""
import argparse

from drive_share_report.drive_client import DriveClient, build_query
from drive_share_report.shares import inspect_shares


def main():
    p = argparse.ArgumentParser()
    p.add_argument("--credentials", required=True)
    p.add_argument("--owner")
    p.add_argument("--subject")
    p.add_argument("--limit", type=int, default=20)
    args = p.parse_args()

    drive = DriveClient(service_account_file=args.credentials, subject=args.subject)
    print("Service account email:", drive.service_account_email)

    q = build_query(args.owner)
    print("Query:", q)
    shown = 0
    for record in drive.iter_files(q, page_size=args.limit):
        info = inspect_shares(drive, record.id)
        status = "lookup failed" if info.lookup_failed else f"shares={info.share_count}"
        print(f"- id={record.id} name={record.name} mimeType={record.mime_type} "
              f"modifiedTime={record.modified_time} owners={record.owner_emails} {status}")
        shown += 1
        if shown >= args.limit:
            break
    if not shown:
        print("No files visible (service account likely lacks access or owner filter matches nothing).")


if __name__ == '__main__':
    main()
