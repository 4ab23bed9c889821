"""
Finance Store

The single source of truth for transactions and categories.

The store enforces the boundaries:
- State changes only through `dispatch`, which runs the pure reducer
- Every action that touches storage marks loading, calls the storage,
  commits on success, records a readable error and re-raises on failure
- Nothing is global: the app builds one store at start-up and passes it
  to the views

Overlapping actions are not coordinated. The last write to the in-memory
lists wins.
"""

from collections.abc import Callable, Sequence
from contextlib import asynccontextmanager
from enum import Enum
from typing import Any, Optional

import structlog
from pydantic import BaseModel, ConfigDict

from finance_tracker.analytics import balance, resolve_category
from finance_tracker.audit import AuditLogger
from finance_tracker.config import Settings, StorageBackend, get_settings
from finance_tracker.models.finance import (
    DEFAULT_CATEGORIES,
    Balance,
    Category,
    Transaction,
    TransactionType,
    ValidationResult,
)
from finance_tracker.services.storage import (
    CategoryStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsCategoryStorage,
    GoogleSheetsClient,
    GoogleSheetsTransactionStorage,
    InMemoryCategoryStorage,
    InMemoryTransactionStorage,
    TransactionStorageInterface,
)


logger = structlog.get_logger(__name__)


# =============================================================================
# STATE AND ACTIONS
# =============================================================================

class FinanceState(BaseModel):
    """Everything the views render from."""
    model_config = ConfigDict(frozen=True)

    transactions: tuple[Transaction, ...] = ()
    categories: tuple[Category, ...] = ()
    loading: bool = False
    error: Optional[str] = None


def initial_state() -> FinanceState:
    """No transactions yet; the default categories until storage answers."""
    return FinanceState(categories=DEFAULT_CATEGORIES)


class ActionType(str, Enum):
    SET_TRANSACTIONS = "set_transactions"
    ADD_TRANSACTION = "add_transaction"
    UPDATE_TRANSACTION = "update_transaction"
    DELETE_TRANSACTION = "delete_transaction"
    SET_CATEGORIES = "set_categories"
    ADD_CATEGORY = "add_category"
    UPDATE_CATEGORY = "update_category"
    DELETE_CATEGORY = "delete_category"
    SET_LOADING = "set_loading"
    SET_ERROR = "set_error"


class Action(BaseModel):
    """A named state change. The payload shape depends on the type."""
    model_config = ConfigDict(frozen=True)

    type: ActionType
    payload: Any = None


def finance_reducer(state: FinanceState, action: Action) -> FinanceState:
    """
    Apply one action to the state and return the new state.

    Pure: the input state is never modified. Updates replace the record
    with the same id and keep list order; deletes drop it by id.
    """
    payload = action.payload

    if action.type == ActionType.SET_TRANSACTIONS:
        return state.model_copy(update={"transactions": tuple(payload)})
    elif action.type == ActionType.ADD_TRANSACTION:
        return state.model_copy(update={"transactions": state.transactions + (payload,)})
    elif action.type == ActionType.UPDATE_TRANSACTION:
        return state.model_copy(update={
            "transactions": tuple(
                payload if t.id == payload.id else t for t in state.transactions
            ),
        })
    elif action.type == ActionType.DELETE_TRANSACTION:
        return state.model_copy(update={
            "transactions": tuple(t for t in state.transactions if t.id != payload),
        })
    elif action.type == ActionType.SET_CATEGORIES:
        return state.model_copy(update={"categories": tuple(payload)})
    elif action.type == ActionType.ADD_CATEGORY:
        return state.model_copy(update={"categories": state.categories + (payload,)})
    elif action.type == ActionType.UPDATE_CATEGORY:
        return state.model_copy(update={
            "categories": tuple(
                payload if c.id == payload.id else c for c in state.categories
            ),
        })
    elif action.type == ActionType.DELETE_CATEGORY:
        return state.model_copy(update={
            "categories": tuple(c for c in state.categories if c.id != payload),
        })
    elif action.type == ActionType.SET_LOADING:
        return state.model_copy(update={"loading": bool(payload)})
    elif action.type == ActionType.SET_ERROR:
        return state.model_copy(update={"error": payload})
    return state


Listener = Callable[[FinanceState], None]


def unseeded_defaults(categories: Sequence[Category]) -> tuple[Category, ...]:
    """
    Defaults still to insert.

    Seeding inserts the defaults in order, so a stored list that is a
    proper prefix of them is an unfinished seed. Any other non-empty list
    belongs to the user and is left alone.
    """
    stored = [c.id for c in categories]
    defaults = [c.id for c in DEFAULT_CATEGORIES]
    if len(stored) < len(defaults) and stored == defaults[:len(stored)]:
        return DEFAULT_CATEGORIES[len(stored):]
    return ()


# =============================================================================
# STORE
# =============================================================================

class FinanceStore:
    """
    Holds the state and runs actions against storage.

    Storages and the audit logger are injected, so tests run against the
    in-memory backend and the app against Google Sheets.
    """

    def __init__(
        self,
        transaction_storage: TransactionStorageInterface,
        category_storage: CategoryStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        state: Optional[FinanceState] = None,
    ):
        self._transactions = transaction_storage
        self._categories = category_storage
        self._audit_logger = audit_logger or AuditLogger()
        self._state = state or initial_state()
        self._listeners: list[Listener] = []

    @property
    def state(self) -> FinanceState:
        return self._state

    def dispatch(self, action: Action) -> FinanceState:
        """Run the reducer and notify listeners."""
        self._state = finance_reducer(self._state, action)
        for listener in list(self._listeners):
            listener(self._state)
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call `listener` after every dispatch. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        """Load everything from storage. Call once at application start."""
        await self.load()

    async def stop(self) -> None:
        """Detach all listeners. Pending storage calls are not cancelled."""
        self._listeners.clear()

    # -------------------------------------------------------------------------
    # Storage-backed actions
    # -------------------------------------------------------------------------

    @asynccontextmanager
    async def _remote_action(
        self,
        name: str,
        error_message: str,
        entity_id: Optional[str] = None,
    ):
        """
        Loading/error bookkeeping around one storage call.

        On failure the readable `error_message` goes into the state and the
        original exception propagates to the caller.
        """
        self.dispatch(Action(type=ActionType.SET_ERROR, payload=None))
        self.dispatch(Action(type=ActionType.SET_LOADING, payload=True))
        try:
            yield
        except Exception as e:
            logger.error("store_action_failed", action=name, error=str(e))
            self.dispatch(Action(type=ActionType.SET_ERROR, payload=error_message))
            await self._audit_logger.log_action_failed(name, str(e), entity_id)
            raise
        finally:
            self.dispatch(Action(type=ActionType.SET_LOADING, payload=False))

    async def load(self) -> None:
        """
        Fetch transactions (newest first) and categories.

        On first run the remote category list is empty; the defaults are
        inserted one by one and the stored copies committed. A seed that
        failed part way is finished on the next load.
        """
        async with self._remote_action("load", "Failed to load data"):
            transactions = await self._transactions.list_transactions(order_by_date_desc=True)
            self.dispatch(Action(type=ActionType.SET_TRANSACTIONS, payload=transactions))

            categories = await self._categories.list_categories()
            missing = unseeded_defaults(categories)
            for category in missing:
                categories.append(await self._categories.insert_category(category))
            if missing:
                await self._audit_logger.log_categories_seeded([c.id for c in missing])
            self.dispatch(Action(type=ActionType.SET_CATEGORIES, payload=categories))

        await self._audit_logger.log_data_loaded(len(transactions), len(categories))

    async def add_transaction(self, transaction: Transaction) -> Transaction:
        async with self._remote_action(
            "add_transaction", "Failed to add transaction", transaction.id
        ):
            saved = await self._transactions.insert_transaction(transaction)
            self.dispatch(Action(type=ActionType.ADD_TRANSACTION, payload=saved))
        await self._audit_logger.log_saved("transaction", saved.id, saved.title)
        return saved

    async def update_transaction(
        self,
        transaction_id: str,
        transaction: Transaction,
    ) -> Transaction:
        async with self._remote_action(
            "update_transaction", "Failed to update transaction", transaction_id
        ):
            updated = await self._transactions.update_transaction(transaction_id, transaction)
            self.dispatch(Action(type=ActionType.UPDATE_TRANSACTION, payload=updated))
        await self._audit_logger.log_updated("transaction", updated.id, updated.title)
        return updated

    async def delete_transaction(self, transaction_id: str) -> None:
        async with self._remote_action(
            "delete_transaction", "Failed to delete transaction", transaction_id
        ):
            await self._transactions.delete_transaction(transaction_id)
            self.dispatch(Action(type=ActionType.DELETE_TRANSACTION, payload=transaction_id))
        await self._audit_logger.log_deleted("transaction", transaction_id)

    async def add_category(self, category: Category) -> Category:
        async with self._remote_action(
            "add_category", "Failed to add category", category.id
        ):
            saved = await self._categories.insert_category(category)
            self.dispatch(Action(type=ActionType.ADD_CATEGORY, payload=saved))
        await self._audit_logger.log_saved("category", saved.id, saved.name)
        return saved

    async def update_category(self, category_id: str, category: Category) -> Category:
        async with self._remote_action(
            "update_category", "Failed to update category", category_id
        ):
            updated = await self._categories.update_category(category_id, category)
            self.dispatch(Action(type=ActionType.UPDATE_CATEGORY, payload=updated))
        await self._audit_logger.log_updated("category", updated.id, updated.name)
        return updated

    async def delete_category(self, category_id: str) -> None:
        """
        Delete a category. Transactions that reference it are left alone
        and render as Uncategorized.
        """
        async with self._remote_action(
            "delete_category", "Failed to delete category", category_id
        ):
            await self._categories.delete_category(category_id)
            self.dispatch(Action(type=ActionType.DELETE_CATEGORY, payload=category_id))
        await self._audit_logger.log_deleted("category", category_id)

    async def report_validation_failure(self, entity_type: str, result: ValidationResult) -> None:
        """Audit form input that was rejected before reaching storage."""
        issues = [issue.model_dump() for issue in result.issues if issue.severity == "error"]
        await self._audit_logger.log_validation_failed(entity_type, issues)

    # -------------------------------------------------------------------------
    # Derived views of the state
    # -------------------------------------------------------------------------

    def get_balance(self) -> Balance:
        return balance(self._state.transactions)

    def category_for(self, transaction: Transaction) -> Category:
        """The transaction's category, or Uncategorized if it was deleted."""
        return resolve_category(self._state.categories, transaction.category_id)

    def recent_transactions(self, limit: int = 5) -> list[Transaction]:
        return sorted(self._state.transactions, key=lambda t: t.date, reverse=True)[:limit]

    def categories_of_type(self, transaction_type: Optional[TransactionType] = None) -> list[Category]:
        if transaction_type is None:
            return list(self._state.categories)
        return [c for c in self._state.categories if c.type == transaction_type]

    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        return next((t for t in self._state.transactions if t.id == transaction_id), None)

    def get_category(self, category_id: str) -> Optional[Category]:
        return next((c for c in self._state.categories if c.id == category_id), None)


# =============================================================================
# FACTORY
# =============================================================================

def create_store(
    settings: Optional[Settings] = None,
    seed_transactions: Sequence[Transaction] = (),
) -> FinanceStore:
    """
    Build a store wired to the configured backend.

    Falls back to in-memory storage (with a warning) when Google Sheets
    isn't configured or can't be reached, so the app still opens.

    Args:
        settings: Defaults to get_settings()
        seed_transactions: Initial contents for the in-memory backend
    """
    settings = settings or get_settings()
    backend = settings.app.storage_backend

    if backend == StorageBackend.GOOGLE_SHEETS:
        try:
            sheets_client = GoogleSheetsClient(settings.google_sheets)
            sheets_client.get_spreadsheet()
            return FinanceStore(
                transaction_storage=GoogleSheetsTransactionStorage(sheets_client),
                category_storage=GoogleSheetsCategoryStorage(sheets_client),
                audit_logger=AuditLogger(GoogleSheetsAuditStorage(sheets_client)),
            )
        except Exception as e:
            # Storage not configured or unreachable - continue without it
            logger.warning("storage_not_configured", backend=backend.value, error=str(e))

    transaction_storage = InMemoryTransactionStorage(list(seed_transactions))
    return FinanceStore(
        transaction_storage=transaction_storage,
        category_storage=InMemoryCategoryStorage(transactions=transaction_storage),
        audit_logger=AuditLogger(),
    )
