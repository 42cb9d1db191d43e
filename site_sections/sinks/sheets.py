# site_sections/sinks/sheets.py
"""
Google Sheets export through the Sheets API v4 with a service account.
"""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Optional, Sequence

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from site_sections.crawler.models import PageRecord
from site_sections.errors import ExportFailure, SetupError
from site_sections.sinks.base import HEADER, table

__all__ = ["GoogleSheetsSink", "SHEETS_SCOPE", "clear_range"]

logger = logging.getLogger("SiteSections")

SHEETS_SCOPE = "https://www.googleapis.com/auth/spreadsheets"

_CELL_RE = re.compile(r"^([A-Za-z]+)(\d*)$")


def _column_index(letters: str) -> int:
    index = 0
    for ch in letters.upper():
        index = index * 26 + (ord(ch) - ord("A") + 1)
    return index


def _column_letters(index: int) -> str:
    letters = ""
    while index:
        index, rem = divmod(index - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


def clear_range(start: str, width: int = len(HEADER)) -> str:
    """Whole columns covered by the export, e.g. ``Crawl!A1`` -> ``Crawl!A:G``."""
    sheet, _, cell = start.rpartition("!")
    match = _CELL_RE.match(cell)
    if not match:
        raise ValueError(f"unsupported start cell {start!r}")
    first = _column_index(match.group(1))
    span = f"{_column_letters(first)}:{_column_letters(first + width - 1)}"
    return f"{sheet}!{span}" if sheet else span


class GoogleSheetsSink:
    """Full-replace writer for one spreadsheet range."""

    def __init__(self, spreadsheet_id: Optional[str], credentials_path: Path, start: str = "A1") -> None:
        self.spreadsheet_id = spreadsheet_id
        self.credentials_path = Path(credentials_path)
        self.start = start
        self._credentials: Any = None
        self._clear_range = ""

    def _load_credentials(self) -> Any:
        if not self.credentials_path.is_file():
            raise SetupError(
                f"Credentials file not found at {self.credentials_path}. "
                "Make sure GOOGLE_APPLICATION_CREDENTIALS points to the right file."
            )
        try:
            return service_account.Credentials.from_service_account_file(
                str(self.credentials_path), scopes=[SHEETS_SCOPE]
            )
        except (ValueError, OSError) as exc:
            raise SetupError(f"Invalid credentials file {self.credentials_path}: {exc}") from exc

    def validate(self) -> None:
        """Load the service account and fetch a token; fail before any crawling."""
        if not self.spreadsheet_id:
            raise SetupError("No spreadsheet id configured (set GOOGLE_SHEET_ID or sheet_id).")
        try:
            self._clear_range = clear_range(self.start)
        except ValueError as exc:
            raise SetupError(
                f"Invalid sheet_range {self.start!r}: expected a start cell such as A1 or Sheet1!A1"
            ) from exc
        credentials = self._load_credentials()
        try:
            credentials.refresh(Request())
        except GoogleAuthError as exc:
            raise SetupError(
                f"Could not authenticate with Google Sheets: {exc}. "
                "Check the network connection and the configured credentials."
            ) from exc
        self._credentials = credentials
        logger.debug("Google Sheets credentials OK for %s", self.spreadsheet_id)

    def write(self, records: Sequence[PageRecord]) -> None:
        if self._credentials is None:
            self.validate()
        try:
            service = build("sheets", "v4", credentials=self._credentials, cache_discovery=False)
            values = service.spreadsheets().values()
            values.clear(
                spreadsheetId=self.spreadsheet_id, range=self._clear_range, body={}
            ).execute()
            values.update(
                spreadsheetId=self.spreadsheet_id,
                range=self.start,
                valueInputOption="RAW",
                body={"values": table(records)},
            ).execute()
        except (HttpError, GoogleAuthError, OSError) as exc:
            raise ExportFailure(f"Google Sheets export failed: {exc}") from exc
        logger.info("📊 Exported %d rows to Google Sheet", len(records))
