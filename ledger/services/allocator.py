from __future__ import annotations
import logging
from typing import List, Optional, Tuple, Union

from pydantic import BaseModel, Field

from ledger.errors import DocumentNotFound, InvalidPayment
from ledger.models.account import ACCOUNTS_PAYABLE, ACCOUNTS_RECEIVABLE
from ledger.models.document import BilledDocument
from ledger.models.invoice import Invoice
from ledger.models.journal import JournalEntry
from ledger.models.party import Party
from ledger.models.payment import Payment, PaymentRequest
from ledger.models.purchase import PurchaseOrder
from ledger.models.state import LedgerState
from ledger.services.chart_of_accounts import ChartOfAccounts
from ledger.services.journal_engine import JournalEngine, two_line_items

logger = logging.getLogger(__name__)

# documents exclus de la ventilation
INVOICE_SKIP_STATUSES = {"PAID", "DRAFT", "CREDITED"}
PO_SKIP_STATUSES = {"PAID", "CANCELLED"}


class AllocationResult(BaseModel):
    updated: List[Union[Invoice, PurchaseOrder]] = Field(default_factory=list)
    journal_entry: Optional[JournalEntry] = None
    unapplied_cent: int = 0


class PaymentAllocator:
    """
    Ventilation d'un règlement global sur les documents d'un tiers, du plus ancien au plus récent.
    Une seule écriture pour le montant total ; le reliquat devient un avoir du tiers.
    """

    def __init__(self, state: LedgerState) -> None:
        self.state = state
        self.accounts = ChartOfAccounts(state)
        self.journal = JournalEngine(state)

    # ---------------- Validation ---------------- #

    def _check_request(self, req: PaymentRequest, *, asset_only: bool) -> None:
        if req.amount_cent <= 0:
            raise InvalidPayment(f"Payment amount must be positive (got {req.amount_cent})",
                                 amount_cent=req.amount_cent)
        if not req.account_id:
            raise InvalidPayment("A deposit/source account is required")
        acc = self.accounts.get(req.account_id)
        if asset_only and acc.type != "ASSET":
            raise InvalidPayment(f"Customer payments must be deposited to an asset account ({acc.id} is {acc.type})",
                                 account_id=acc.id)

    @staticmethod
    def _distribute(docs: List[BilledDocument], req: PaymentRequest) -> Tuple[List[BilledDocument], int]:
        remaining = req.amount_cent
        touched: List[BilledDocument] = []
        for doc in docs:
            if remaining <= 0:
                break
            due = doc.balance_due_cent()
            if due <= 0:
                continue
            applied = min(remaining, due)
            doc.payments = [*doc.payments, Payment.from_request(req, amount_cent=applied)]
            touched.append(doc)
            remaining -= applied
        return touched, remaining

    def _keep_credit(self, party: Party, unapplied_cent: int) -> None:
        if unapplied_cent > 0:
            party.credit_balance_cent = party.credit_balance_cent + unapplied_cent
            logger.warning("Unapplied payment of %d cents kept as credit for %s", unapplied_cent, party.id)

    # ---------------- Clients ---------------- #

    def allocate_customer_payment(self, customer_id: str, req: PaymentRequest) -> AllocationResult:
        customer = self.state.customer(customer_id)
        if customer is None:
            raise DocumentNotFound("customer", customer_id)
        self._check_request(req, asset_only=True)

        candidates = [
            inv for inv in self.state.invoices
            if inv.customer_id == customer_id and inv.status not in INVOICE_SKIP_STATUSES
        ]
        # tri stable : à date égale, l'ordre d'insertion est conservé
        candidates.sort(key=lambda inv: inv.issue_date)
        touched, remaining = self._distribute(candidates, req)

        entry = self.journal.post(
            req.date,
            f"Payment received from {customer.name}",
            two_line_items(req.account_id, ACCOUNTS_RECEIVABLE, req.amount_cent),
            source="customer-payment",
        )
        self._keep_credit(customer, remaining)
        return AllocationResult(updated=touched, journal_entry=entry, unapplied_cent=max(0, remaining))

    def add_payment_to_invoice(self, invoice_id: str, req: PaymentRequest) -> Tuple[Invoice, JournalEntry]:
        inv = self.state.invoice(invoice_id)
        if inv is None:
            raise DocumentNotFound("invoice", invoice_id)
        self._check_request(req, asset_only=True)
        self._check_single(inv, req, inv.document_number or inv.id)
        if inv.is_credited():
            raise InvalidPayment(f"Invoice {invoice_id} is credited", invoice_id=invoice_id)

        inv.payments = [*inv.payments, Payment.from_request(req)]
        entry = self.journal.post(
            req.date,
            f"Payment for invoice {inv.document_number or inv.id}",
            two_line_items(req.account_id, ACCOUNTS_RECEIVABLE, req.amount_cent),
            source="invoice-payment",
        )
        return inv, entry

    # ---------------- Fournisseurs ---------------- #

    def allocate_supplier_payment(self, supplier_id: str, req: PaymentRequest) -> AllocationResult:
        supplier = self.state.supplier(supplier_id)
        if supplier is None:
            raise DocumentNotFound("supplier", supplier_id)
        self._check_request(req, asset_only=False)

        candidates = [
            po for po in self.state.purchase_orders
            if po.supplier_id == supplier_id and po.status not in PO_SKIP_STATUSES
        ]
        candidates.sort(key=lambda po: po.order_date)
        touched, remaining = self._distribute(candidates, req)

        entry = self.journal.post(
            req.date,
            f"Payment made to {supplier.name}",
            two_line_items(ACCOUNTS_PAYABLE, req.account_id, req.amount_cent),
            source="supplier-payment",
        )
        self._keep_credit(supplier, remaining)
        return AllocationResult(updated=touched, journal_entry=entry, unapplied_cent=max(0, remaining))

    def add_payment_to_purchase_order(self, po_id: str, req: PaymentRequest) -> Tuple[PurchaseOrder, JournalEntry]:
        po = self.state.purchase_order(po_id)
        if po is None:
            raise DocumentNotFound("purchase order", po_id)
        self._check_request(req, asset_only=False)
        self._check_single(po, req, po.po_number or po.id)
        if po.manual_status == "CANCELLED":
            raise InvalidPayment(f"Purchase order {po_id} is cancelled", po_id=po_id)

        po.payments = [*po.payments, Payment.from_request(req)]
        entry = self.journal.post(
            req.date,
            f"Payment for purchase order {po.po_number or po.id}",
            two_line_items(ACCOUNTS_PAYABLE, req.account_id, req.amount_cent),
            source="po-payment",
        )
        return po, entry

    @staticmethod
    def _check_single(doc: BilledDocument, req: PaymentRequest, label: str) -> None:
        # pas de surpaiement sur un document précis : passer par le règlement global
        due = doc.balance_due_cent()
        if req.amount_cent > due:
            raise InvalidPayment(
                f"Payment of {req.amount_cent} exceeds balance due {due} on {label}",
                amount_cent=req.amount_cent,
                balance_due_cent=due,
            )
