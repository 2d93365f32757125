from __future__ import annotations
from pydantic import Field
from typing import List, Optional, TypeVar
from .common import LedgerModel
from .account import Account
from .journal import JournalEntry
from .party import Customer, Supplier
from .invoice import Invoice
from .purchase import PurchaseOrder
from .quote import Quote
from .job import JobOrder
from .challan import DeliveryChallan
from .credit_note import CreditNote
from .expense import Expense
from .inventory import InventoryItem

SCHEMA_VERSION = 1

T = TypeVar("T")


def find_by_id(items: List[T], obj_id: str) -> Optional[T]:
    for it in items:
        if getattr(it, "id", None) == obj_id:
            return it
    return None


def index_of(items: List[T], obj_id: str) -> int:
    for i, it in enumerate(items):
        if getattr(it, "id", None) == obj_id:
            return i
    return -1


class LedgerState(LedgerModel):
    """
    Agrégat complet : comptes + documents + journal.
    Une seule instance « vivante » à la fois ; chaque commande travaille sur une copie.
    Les listes conservent l'ordre d'insertion (départage de la ventilation).
    """

    schema_version: int = SCHEMA_VERSION
    revision: int = 0

    accounts: List[Account] = Field(default_factory=list)
    journal_entries: List[JournalEntry] = Field(default_factory=list)

    customers: List[Customer] = Field(default_factory=list)
    suppliers: List[Supplier] = Field(default_factory=list)
    invoices: List[Invoice] = Field(default_factory=list)
    purchase_orders: List[PurchaseOrder] = Field(default_factory=list)
    quotes: List[Quote] = Field(default_factory=list)
    job_orders: List[JobOrder] = Field(default_factory=list)
    delivery_challans: List[DeliveryChallan] = Field(default_factory=list)
    credit_notes: List[CreditNote] = Field(default_factory=list)
    expenses: List[Expense] = Field(default_factory=list)
    inventory_items: List[InventoryItem] = Field(default_factory=list)

    # ---------------- Recherches ---------------- #

    def account(self, account_id: str) -> Optional[Account]:
        return find_by_id(self.accounts, account_id)

    def journal_entry(self, entry_id: str) -> Optional[JournalEntry]:
        return find_by_id(self.journal_entries, entry_id)

    def invoice(self, invoice_id: str) -> Optional[Invoice]:
        return find_by_id(self.invoices, invoice_id)

    def purchase_order(self, po_id: str) -> Optional[PurchaseOrder]:
        return find_by_id(self.purchase_orders, po_id)

    def customer(self, customer_id: str) -> Optional[Customer]:
        return find_by_id(self.customers, customer_id)

    def supplier(self, supplier_id: str) -> Optional[Supplier]:
        return find_by_id(self.suppliers, supplier_id)

    def reversal_of(self, entry_id: str) -> Optional[JournalEntry]:
        for e in self.journal_entries:
            if e.reversal_of_id == entry_id:
                return e
        return None
