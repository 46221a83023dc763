"""Google Sheets client: merchant rule source and transaction store"""

import asyncio
import logging
from typing import Any, List

from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from sms_ledger.config import settings
from sms_ledger.domain.exceptions import RuleSourceError, StoreWriteError
from sms_ledger.domain.models import TransactionRecord
from sms_ledger.infrastructure.observability.metrics import store_failure_counter

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
TOKEN_URI = "https://oauth2.googleapis.com/token"

SHEETS_ERRORS = (HttpError, GoogleAuthError, OSError)


class SheetsClient:
    """Client for a Google Sheets spreadsheet holding rules and transactions"""

    def __init__(
        self,
        spreadsheet_id: str | None = None,
        client_email: str | None = None,
        private_key: str | None = None,
        rules_range: str | None = None,
        transactions_range: str | None = None,
    ):
        self.spreadsheet_id = spreadsheet_id or settings.google_sheets_id
        self.client_email = client_email or settings.google_client_email
        # Keys pasted into .env usually carry literal "\n" sequences
        self.private_key = (private_key or settings.google_private_key).replace("\\n", "\n")
        self.rules_range = rules_range or settings.rules_range
        self.transactions_range = transactions_range or settings.transactions_range
        self.max_retries = settings.store_max_retries
        self.backoff_base = settings.store_backoff_base
        self._service = None

    @property
    def configured(self) -> bool:
        return bool(self.spreadsheet_id and self.client_email and self.private_key)

    def _values(self) -> Any:
        if self._service is None:
            credentials = service_account.Credentials.from_service_account_info(
                {
                    "type": "service_account",
                    "client_email": self.client_email,
                    "private_key": self.private_key,
                    "token_uri": TOKEN_URI,
                },
                scopes=SCOPES,
            )
            self._service = build("sheets", "v4", credentials=credentials, cache_discovery=False)
        return self._service.spreadsheets().values()

    def _get_rows(self) -> List[List[Any]]:
        result = self._values().get(spreadsheetId=self.spreadsheet_id, range=self.rules_range).execute()
        return result.get("values", [])

    def _append(self, row: List[Any]) -> None:
        self._values().append(
            spreadsheetId=self.spreadsheet_id,
            range=self.transactions_range,
            valueInputOption="USER_ENTERED",
            insertDataOption="INSERT_ROWS",
            body={"values": [row]},
        ).execute()

    async def fetch_rule_rows(self) -> List[List[Any]]:
        """
        Read (pattern, merchant, category, priority) rows from the rules range.

        Raises:
            RuleSourceError: When not configured or the Sheets API fails
        """
        if not self.configured:
            raise RuleSourceError("Google Sheets credentials are not configured")
        try:
            return await asyncio.to_thread(self._get_rows)
        except HttpError as e:
            raise RuleSourceError(f"Sheets API error: {e.resp.status}") from e
        except (GoogleAuthError, OSError) as e:
            raise RuleSourceError(f"Sheets API unavailable: {e}") from e

    async def append_transaction(self, record: TransactionRecord) -> None:
        """
        Append one transaction row with retry logic.

        Retry strategy:
        - Exponential backoff: base, 2*base, 4*base, ...
        - Retries on Sheets API errors, auth transport errors and network failures

        Raises:
            StoreWriteError: When not configured or every attempt failed
        """
        if not self.configured:
            raise StoreWriteError("Google Sheets credentials are not configured")

        row = record.to_row()
        attempt = 0
        while True:
            try:
                await asyncio.to_thread(self._append, row)
                return
            except SHEETS_ERRORS as e:
                attempt += 1
                store_failure_counter.inc()

                if attempt >= self.max_retries:
                    raise StoreWriteError(f"Failed to write to Google Sheets: {e}") from e

                backoff = self.backoff_base * (2 ** (attempt - 1))
                logging.warning(
                    f"Sheets append failed, retrying in {backoff}s: {e}",
                    extra={"step": "store_append", "attempt": attempt},
                )
                await asyncio.sleep(backoff)
