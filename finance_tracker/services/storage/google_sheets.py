"""
Google Sheets Storage Implementation

Google Sheets is used as the hosted table store because:
1. Users can view and fix their data directly in Sheets
2. No database setup required
3. Access is over HTTPS with a service-account key

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No foreign keys: deleting a category never fails because of references
- Limited query capabilities (we sort and filter in Python)

One worksheet per resource, one record per row, header row first.
The implementation follows the abstract interface, so another backend can
replace it without touching the store.
"""

import json
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from finance_tracker.config import GoogleSheetsSettings, get_settings
from finance_tracker.models.audit import AuditEvent, AuditEventType, AuditSeverity
from finance_tracker.models.finance import Category, Transaction
from finance_tracker.services.storage.interface import (
    AuditStorageInterface,
    CategoryStorageInterface,
    ConnectionError,
    DuplicateError,
    NotFoundError,
    StorageError,
    TransactionStorageInterface,
)
from finance_tracker.services.storage.mapping import (
    CATEGORY_COLUMNS,
    TRANSACTION_COLUMNS,
    MalformedRowError,
    category_to_record,
    record_to_category,
    record_to_row,
    record_to_transaction,
    row_to_record,
    transaction_to_record,
)


logger = structlog.get_logger(__name__)

# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and worksheet lookup. Only establishing the
    connection is retried; reads and writes are not.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=SCOPES,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError as e:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                ) from e
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}") from e

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound as e:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                ) from e
        return self._spreadsheet

    def get_worksheet(self, title: str, columns: list[str], rows: int = 1000) -> gspread.Worksheet:
        """Get a worksheet, creating it with a header row if missing."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_transactions_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(self._settings.transactions_sheet_name, TRANSACTION_COLUMNS)

    def get_categories_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(self._settings.categories_sheet_name, CATEGORY_COLUMNS)

    def get_audit_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(
            self._settings.audit_sheet_name,
            AUDIT_COLUMNS,
            rows=5000,  # More rows for audit log
        )


class _SheetTable(ABC):
    """Row lookup shared by the record storages. Column A holds the id."""

    columns: list[str] = []

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @abstractmethod
    def _sheet(self) -> gspread.Worksheet:
        """The worksheet this table lives in."""
        pass

    def _records(self, sheet: gspread.Worksheet) -> list[tuple[int, dict[str, str]]]:
        """All data rows as (sheet row number, record), header skipped."""
        records = []
        for row_number, row in enumerate(sheet.get_all_values()[1:], start=2):
            if not row or not row[0]:  # Skip empty rows
                continue
            records.append((row_number, row_to_record(row, self.columns)))
        return records

    def _find(
        self,
        sheet: gspread.Worksheet,
        record_id: str,
    ) -> Optional[tuple[int, dict[str, str]]]:
        for row_number, record in self._records(sheet):
            if record["id"] == record_id:
                return row_number, record
        return None

    def _write_row(self, sheet: gspread.Worksheet, row_number: int, record: dict) -> None:
        sheet.update(
            values=[record_to_row(record, self.columns)],
            range_name=f"A{row_number}",
        )


class GoogleSheetsTransactionStorage(_SheetTable, TransactionStorageInterface):
    """
    Google Sheets implementation of transaction storage.

    `created_at` is stamped when a row is appended and kept on update.
    """

    columns = TRANSACTION_COLUMNS

    def _sheet(self) -> gspread.Worksheet:
        return self._client.get_transactions_sheet()

    async def list_transactions(
        self,
        order_by_date_desc: bool = True,
    ) -> list[Transaction]:
        """List transactions, skipping rows that can't be parsed."""
        try:
            sheet = self._sheet()
            transactions = []
            for row_number, record in self._records(sheet):
                try:
                    transactions.append(record_to_transaction(record))
                except MalformedRowError as e:
                    logger.warning(
                        "malformed_row_skipped",
                        sheet="transactions",
                        row=row_number,
                        error=str(e),
                    )
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to list transactions: {e}") from e

        if order_by_date_desc:
            transactions.sort(key=lambda t: t.date, reverse=True)
        return transactions

    async def insert_transaction(self, transaction: Transaction) -> Transaction:
        """Append a transaction row."""
        try:
            sheet = self._sheet()
            if self._find(sheet, transaction.id) is not None:
                raise DuplicateError(f"Transaction already exists: {transaction.id}")
            record = transaction_to_record(
                transaction,
                created_at=datetime.now(timezone.utc),
            )
            sheet.append_row(
                record_to_row(record, self.columns),
                value_input_option="RAW",
            )
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save transaction: {e}") from e
        return record_to_transaction(record)

    async def update_transaction(
        self,
        transaction_id: str,
        transaction: Transaction,
    ) -> Transaction:
        """Rewrite an existing transaction row in place."""
        try:
            sheet = self._sheet()
            found = self._find(sheet, transaction_id)
            if found is None:
                raise NotFoundError(f"Transaction not found: {transaction_id}")
            row_number, existing = found

            updated = transaction.model_copy(update={"id": transaction_id})
            record = transaction_to_record(updated)
            record["created_at"] = existing["created_at"]
            record["user_id"] = existing["user_id"]
            self._write_row(sheet, row_number, record)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update transaction: {e}") from e
        return record_to_transaction(record)

    async def delete_transaction(self, transaction_id: str) -> None:
        """Delete a transaction row. Missing ids are ignored."""
        try:
            sheet = self._sheet()
            found = self._find(sheet, transaction_id)
            if found is None:
                logger.info("delete_missing_row", sheet="transactions", id=transaction_id)
                return
            sheet.delete_rows(found[0])
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete transaction: {e}") from e


class GoogleSheetsCategoryStorage(_SheetTable, CategoryStorageInterface):
    """Google Sheets implementation of category storage."""

    columns = CATEGORY_COLUMNS

    def _sheet(self) -> gspread.Worksheet:
        return self._client.get_categories_sheet()

    async def list_categories(self) -> list[Category]:
        try:
            sheet = self._sheet()
            categories = []
            for row_number, record in self._records(sheet):
                try:
                    categories.append(record_to_category(record))
                except MalformedRowError as e:
                    logger.warning(
                        "malformed_row_skipped",
                        sheet="categories",
                        row=row_number,
                        error=str(e),
                    )
            return categories
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to list categories: {e}") from e

    async def insert_category(self, category: Category) -> Category:
        try:
            sheet = self._sheet()
            if self._find(sheet, category.id) is not None:
                raise DuplicateError(f"Category already exists: {category.id}")
            record = category_to_record(category)
            sheet.append_row(
                record_to_row(record, self.columns),
                value_input_option="RAW",
            )
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save category: {e}") from e
        return record_to_category(record)

    async def update_category(self, category_id: str, category: Category) -> Category:
        try:
            sheet = self._sheet()
            found = self._find(sheet, category_id)
            if found is None:
                raise NotFoundError(f"Category not found: {category_id}")
            row_number, existing = found

            record = category_to_record(
                category.model_copy(update={"id": category_id}),
                user_id=existing["user_id"] or None,
            )
            self._write_row(sheet, row_number, record)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update category: {e}") from e
        return record_to_category(record)

    async def delete_category(self, category_id: str) -> None:
        try:
            sheet = self._sheet()
            found = self._find(sheet, category_id)
            if found is None:
                logger.info("delete_missing_row", sheet="categories", id=category_id)
                return
            sheet.delete_rows(found[0])
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete category: {e}") from e


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        record = row_to_record(row, AUDIT_COLUMNS)
        return AuditEvent(
            event_id=UUID(record["event_id"]),
            timestamp=datetime.fromisoformat(record["timestamp"]),
            event_type=AuditEventType(record["event_type"]),
            severity=AuditSeverity(record["severity"]),
            entity_type=record["entity_type"] or None,
            entity_id=record["entity_id"] or None,
            description=record["description"],
            details=json.loads(record["details_json"]) if record["details_json"] else {},
            error_message=record["error_message"] or None,
            is_user_action=record["is_user_action"].lower() == "true",
        )

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event. Failures are logged, never raised."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            # Audit logging must not break the main flow
            logger.warning(
                "audit_append_failed",
                error=str(e),
                event_id=str(event.event_id),
            )
            return False

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """Get recent events, newest first."""
        try:
            sheet = self._client.get_audit_sheet()
            all_rows = sheet.get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}") from e

        events = []
        for row in all_rows:
            if not row or not row[0]:
                continue
            try:
                events.append(self._row_to_event(row))
            except (KeyError, ValueError) as e:
                logger.warning("malformed_audit_row_skipped", error=str(e))

        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
