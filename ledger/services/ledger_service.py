from __future__ import annotations
import copy
import logging
import threading
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Union

from pydantic import BaseModel

from ledger.commands import parse_command
from ledger.config import DATA_DIR, LEDGER_JSON, Settings, load_settings
from ledger.errors import ImmutableEntry, LedgerError, PersistenceError
from ledger.models.invoice import Invoice
from ledger.models.purchase import PurchaseOrder
from ledger.models.state import LedgerState
from ledger.services import reports
from ledger.services.allocator import PaymentAllocator
from ledger.services.chart_of_accounts import ChartOfAccounts
from ledger.services.conversions import ConversionService
from ledger.services.documents import DocumentService
from ledger.services.expenses import ExpenseService
from ledger.services.journal_engine import JournalEngine
from ledger.storage.repo import SnapshotRepository
from ledger.storage.snapshot import export_snapshot, import_snapshot

logger = logging.getLogger(__name__)


class _Tx:
    """Services liés à la copie de travail d'une transaction."""

    def __init__(self, state: LedgerState, settings: Settings) -> None:
        self.state = state
        self.accounts = ChartOfAccounts(state)
        self.journal = JournalEngine(state)
        self.payments = PaymentAllocator(state)
        self.expenses = ExpenseService(state)
        self.documents = DocumentService(state, settings.numbering)
        self.conversions = ConversionService(state, settings.payment_terms_days)


def _delete_journal_entry(tx: _Tx, cmd) -> Any:
    entry = tx.journal.get(cmd.entry_id)
    if entry.source != "manual":
        # dépenses et paiements gardent la main sur leurs écritures
        raise ImmutableEntry(
            entry.id, f"Journal entry {entry.id} is owned by a {entry.source} record and cannot be reversed here"
        )
    return tx.journal.reverse(entry.id)


def _update_journal_entry(tx: _Tx, cmd) -> Any:
    tx.journal.reject_edit(cmd.entry.id)


# type de commande -> handler(tx, cmd)
HANDLERS: Dict[str, Callable[[_Tx, Any], Any]] = {
    # factures
    "AddInvoice": lambda tx, c: tx.documents.add_invoice(c.invoice),
    "UpdateInvoice": lambda tx, c: tx.documents.update_invoice(c.invoice),
    "DeleteInvoice": lambda tx, c: tx.documents.delete_invoice(c.invoice_id),
    "SetInvoiceStatus": lambda tx, c: tx.documents.set_invoice_status(c.invoice_id, c.status),
    "AddPaymentToInvoice": lambda tx, c: tx.payments.add_payment_to_invoice(c.invoice_id, c.payment),
    "ReceiveCustomerPayment": lambda tx, c: tx.payments.allocate_customer_payment(c.customer_id, c.payment),
    "MarkOverdueInvoices": lambda tx, c: tx.documents.mark_overdue_invoices(c.as_of),
    # achats
    "AddPurchaseOrder": lambda tx, c: tx.documents.add_purchase_order(c.purchase_order),
    "UpdatePurchaseOrder": lambda tx, c: tx.documents.update_purchase_order(c.purchase_order),
    "DeletePurchaseOrder": lambda tx, c: tx.documents.delete_purchase_order(c.po_id),
    "SetPurchaseOrderStatus": lambda tx, c: tx.documents.set_purchase_order_status(c.po_id, c.status),
    "AddPaymentToPurchaseOrder": lambda tx, c: tx.payments.add_payment_to_purchase_order(c.po_id, c.payment),
    "MakeSupplierPayment": lambda tx, c: tx.payments.allocate_supplier_payment(c.supplier_id, c.payment),
    "ReceivePurchaseOrderStock": lambda tx, c: tx.documents.receive_purchase_order_stock(c.po_id),
    # dépenses
    "AddExpense": lambda tx, c: tx.expenses.add_expense(c.expense),
    "UpdateExpense": lambda tx, c: tx.expenses.update_expense(c.expense),
    "DeleteExpense": lambda tx, c: tx.expenses.delete_expense(c.expense_id),
    # comptes & journal
    "AddAccount": lambda tx, c: tx.accounts.create_account(c.account),
    "UpdateAccount": lambda tx, c: tx.accounts.update_account(c.account),
    "DeleteAccount": lambda tx, c: tx.accounts.delete_account(c.account_id),
    "AddJournalEntry": lambda tx, c: tx.journal.create_manual_entry(c.date, c.memo, c.items),
    "UpdateJournalEntry": _update_journal_entry,
    "DeleteJournalEntry": _delete_journal_entry,
    # devis, tiers, livraisons, avoirs, stock, fabrication
    "AddQuote": lambda tx, c: tx.documents.add_quote(c.quote),
    "UpdateQuote": lambda tx, c: tx.documents.update_quote(c.quote),
    "DeleteQuote": lambda tx, c: tx.documents.delete_quote(c.quote_id),
    "AddCustomer": lambda tx, c: tx.documents.add_customer(c.customer),
    "UpdateCustomer": lambda tx, c: tx.documents.update_customer(c.customer),
    "DeleteCustomer": lambda tx, c: tx.documents.delete_customer(c.customer_id),
    "AddSupplier": lambda tx, c: tx.documents.add_supplier(c.supplier),
    "UpdateSupplier": lambda tx, c: tx.documents.update_supplier(c.supplier),
    "DeleteSupplier": lambda tx, c: tx.documents.delete_supplier(c.supplier_id),
    "AddDeliveryChallan": lambda tx, c: tx.documents.add_delivery_challan(c.challan),
    "UpdateDeliveryChallan": lambda tx, c: tx.documents.update_delivery_challan(c.challan),
    "DeleteDeliveryChallan": lambda tx, c: tx.documents.delete_delivery_challan(c.challan_id),
    "AddCreditNote": lambda tx, c: tx.documents.add_credit_note(c.credit_note),
    "UpdateCreditNote": lambda tx, c: tx.documents.update_credit_note(c.credit_note),
    "DeleteCreditNote": lambda tx, c: tx.documents.delete_credit_note(c.credit_note_id),
    "AddInventoryItem": lambda tx, c: tx.documents.add_inventory_item(c.item),
    "UpdateInventoryItem": lambda tx, c: tx.documents.update_inventory_item(c.item),
    "DeleteInventoryItem": lambda tx, c: tx.documents.delete_inventory_item(c.item_id),
    "AddJobOrder": lambda tx, c: tx.documents.add_job_order(c.job),
    "UpdateJobOrder": lambda tx, c: tx.documents.update_job_order(c.job),
    "DeleteJobOrder": lambda tx, c: tx.documents.delete_job_order(c.job_id),
    # conversions
    "ConvertQuoteToJob": lambda tx, c: tx.conversions.convert_quote_to_job(c.quote_id),
    "ConvertQuoteToInvoice": lambda tx, c: tx.conversions.convert_quote_to_invoice(c.quote_id),
    "ConvertInvoiceToChallan": lambda tx, c: tx.conversions.convert_invoice_to_challan(c.invoice_id),
}


class LedgerService:
    """
    Point d'entrée unique du grand livre.
    - `dispatch(cmd)` exécute une commande dans une transaction
    - l'état vivant n'est jamais muté : chaque commit le remplace (revision + 1)
    - persistance après commit, avec reprise via `flush()`
    """

    def __init__(
        self,
        data_dir: Optional[Union[str, Path]] = None,
        *,
        settings: Optional[Settings] = None,
        repository: Optional[SnapshotRepository] = None,
        persist: bool = True,
    ) -> None:
        base = Path(data_dir) if data_dir else DATA_DIR
        self.settings = settings or load_settings(base)
        self.persist = persist
        self.repo = repository
        if self.repo is None and persist:
            self.repo = SnapshotRepository(
                base / LEDGER_JSON,
                backup_enabled=self.settings.storage.backup_enabled,
                backup_keep=self.settings.storage.backup_keep,
            )
        self._lock = threading.RLock()
        self._dirty = False
        self._state = self._load()

    # ---------------- Chargement ---------------- #

    def _load(self) -> LedgerState:
        data = self.repo.load() if self.repo is not None else None
        if data is not None:
            state = import_snapshot(data)
            logger.info("Loaded ledger revision %d (%d entries)", state.revision, len(state.journal_entries))
            return state
        state = LedgerState()
        created = ChartOfAccounts(state).bootstrap(self.settings.opening_balances)
        logger.info("New ledger with %d system accounts", len(created))
        return state

    @property
    def state(self) -> LedgerState:
        return self._state

    @property
    def revision(self) -> int:
        return self._state.revision

    @property
    def dirty(self) -> bool:
        return self._dirty

    # ---------------- Transactions ---------------- #

    @contextmanager
    def transaction(self, label: str = "transaction") -> Iterator[_Tx]:
        """
        Copie de travail de l'état ; remplacée atomiquement à la sortie sans erreur.
        Toute exception abandonne la copie : l'état vivant et la révision restent inchangés.
        """
        with self._lock:
            work = self._state.model_copy(deep=True)
            try:
                yield _Tx(work, self.settings)
            except LedgerError as e:
                logger.warning("%s rejected [%s]: %s", label, e.code, e)
                raise
            work.revision = self._state.revision + 1
            self._state = work
            logger.info("%s committed (revision %d)", label, work.revision)
            self._dirty = True
        self.flush()

    def dispatch(self, cmd: Union[BaseModel, dict]) -> Any:
        if isinstance(cmd, dict):
            cmd = parse_command(cmd)
        handler = HANDLERS[cmd.type]
        with self.transaction(cmd.type) as tx:
            result = handler(tx, cmd)
        # copie détachée : le résultat ne doit jamais donner accès à l'état commité
        return copy.deepcopy(result)

    # ---------------- Persistance ---------------- #

    def flush(self) -> bool:
        """
        Écrit l'instantané courant si un commit n'a pas encore été persisté.
        `persist_retries` tentatives, puis PersistenceError (l'état reste commité, `dirty` reste vrai).
        """
        if self.repo is None or not self._dirty:
            return False
        with self._lock:
            state = self._state
            data = export_snapshot(state)
            retries = self.settings.storage.persist_retries
            last_error: Optional[OSError] = None
            for attempt in range(1, retries + 1):
                try:
                    self.repo.save(data)
                except OSError as e:
                    last_error = e
                    logger.warning("Persist of revision %d failed (attempt %d/%d): %s",
                                   state.revision, attempt, retries, e)
                    continue
                if state is self._state:
                    self._dirty = False
                return True
            raise PersistenceError(
                f"Could not persist revision {state.revision} after {retries} attempts: {last_error}"
            ) from last_error

    def snapshot(self) -> Dict[str, Any]:
        return export_snapshot(self._state)

    # ---------------- Requêtes ---------------- #

    def account_balances(self) -> Dict[str, int]:
        return reports.account_balances(self._state)

    def list_invoices(self, status: Optional[str] = None) -> List[Invoice]:
        return copy.deepcopy(reports.list_invoices(self._state, status))

    def list_purchase_orders(self, status: Optional[str] = None) -> List[PurchaseOrder]:
        return copy.deepcopy(reports.list_purchase_orders(self._state, status))

    def ledger_transactions(self, account_id: str, start: Optional[date] = None, end: Optional[date] = None):
        return reports.ledger_transactions(self._state, account_id, start, end)

    def trial_balance(self, as_of: Optional[date] = None):
        return reports.trial_balance(self._state, as_of)

    def balance_sheet(self, as_of: date):
        return reports.balance_sheet(self._state, as_of)

    def profit_and_loss(self, start: date, end: date):
        return reports.profit_and_loss(self._state, start, end)

    def aged_receivables(self, as_of: date):
        return reports.aged_receivables(self._state, as_of)

    def aged_payables(self, as_of: date):
        return reports.aged_payables(self._state, as_of)
