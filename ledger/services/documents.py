from __future__ import annotations
import logging
from datetime import date
from typing import Any, Dict, List, Optional

from ledger.config import NumberingSettings
from ledger.errors import (
    AlreadyReceived,
    CreditNoteFinalized,
    DocumentNotFound,
    DocumentValidationError,
)
from ledger.models.challan import DeliveryChallan
from ledger.models.credit_note import CreditNote
from ledger.models.inventory import InventoryItem
from ledger.models.invoice import Invoice
from ledger.models.job import JobOrder
from ledger.models.party import Customer, Supplier
from ledger.models.purchase import PurchaseOrder
from ledger.models.quote import Quote
from ledger.models.state import LedgerState, find_by_id, index_of
from ledger.services.numbering import next_document_number
from ledger.status import (
    MANUAL_INVOICE_STATUSES,
    MANUAL_PO_STATUSES,
    check_manual_transition,
    is_overdue,
)

logger = logging.getLogger(__name__)

# kind -> attribut de LedgerState
COLLECTIONS: Dict[str, str] = {
    "invoice": "invoices",
    "purchase order": "purchase_orders",
    "quote": "quotes",
    "customer": "customers",
    "supplier": "suppliers",
    "delivery challan": "delivery_challans",
    "credit note": "credit_notes",
    "inventory item": "inventory_items",
    "job order": "job_orders",
}


class DocumentService:
    """
    CRUD des documents + règles qui ne touchent pas le journal :
    numérotation, protection des statuts, avoirs, réception de stock.
    Les paiements ne passent jamais par ici (cf. PaymentAllocator).
    """

    def __init__(self, state: LedgerState, numbering: Optional[NumberingSettings] = None) -> None:
        self.state = state
        self.numbering = numbering or NumberingSettings()

    # ---------------- Helpers génériques ---------------- #

    def _items(self, kind: str) -> List[Any]:
        return getattr(self.state, COLLECTIONS[kind])

    def get(self, kind: str, obj_id: str) -> Any:
        obj = find_by_id(self._items(kind), obj_id)
        if obj is None:
            raise DocumentNotFound(kind, obj_id)
        return obj

    def _add(self, kind: str, obj: Any) -> Any:
        items = self._items(kind)
        if index_of(items, obj.id) >= 0:
            raise DocumentValidationError(f"{kind} with id={obj.id} already exists")
        items.append(obj)
        return obj

    def _replace(self, kind: str, obj: Any) -> Any:
        items = self._items(kind)
        idx = index_of(items, obj.id)
        if idx < 0:
            raise DocumentNotFound(kind, obj.id)
        items[idx] = obj
        return obj

    def _remove(self, kind: str, obj_id: str) -> Any:
        items = self._items(kind)
        idx = index_of(items, obj_id)
        if idx < 0:
            raise DocumentNotFound(kind, obj_id)
        return items.pop(idx)

    def _require_customer(self, customer_id: str) -> None:
        if self.state.customer(customer_id) is None:
            raise DocumentValidationError(f"Unknown customer {customer_id}", customer_id=customer_id)

    def _require_supplier(self, supplier_id: str) -> None:
        if self.state.supplier(supplier_id) is None:
            raise DocumentValidationError(f"Unknown supplier {supplier_id}", supplier_id=supplier_id)

    @staticmethod
    def _same_payments(stored, incoming) -> bool:
        return [p.model_dump() for p in stored] == [p.model_dump() for p in incoming]

    # ---------------- Factures ---------------- #

    def add_invoice(self, inv: Invoice) -> Invoice:
        self._require_customer(inv.customer_id)
        if inv.payments:
            raise DocumentValidationError("Payments are recorded with payment commands, not on creation")
        if inv.credit_note_id:
            raise DocumentValidationError("A new invoice cannot carry a credit note")
        if not inv.document_number:
            inv = inv.model_copy(update={"document_number": next_document_number(
                (i.document_number for i in self.state.invoices), self.numbering.invoice_prefix)})
        return self._add("invoice", inv)

    def update_invoice(self, inv: Invoice) -> Invoice:
        current: Invoice = self.get("invoice", inv.id)
        self._require_customer(inv.customer_id)
        if not self._same_payments(current.payments, inv.payments):
            raise DocumentValidationError(f"Payments of invoice {inv.id} are append-only")
        if inv.manual_status != current.manual_status:
            check_manual_transition(
                inv.id, current.status, inv.manual_status,
                allowed=MANUAL_INVOICE_STATUSES,
                has_payments=current.has_payments(),
                credited=current.is_credited(),
            )
        # les liens sont gérés par les conversions / avoirs
        updated = inv.model_copy(update={
            "payments": current.payments,
            "challan_id": current.challan_id,
            "credit_note_id": current.credit_note_id,
            "quote_id": current.quote_id,
        })
        return self._replace("invoice", updated)

    def delete_invoice(self, invoice_id: str) -> Invoice:
        inv: Invoice = self.get("invoice", invoice_id)
        if inv.has_payments():
            raise DocumentValidationError(f"Invoice {invoice_id} has payments and cannot be deleted")
        if inv.is_credited():
            raise DocumentValidationError(f"Invoice {invoice_id} is credited and cannot be deleted")
        for job in self.state.job_orders:
            if job.invoice_id == invoice_id:
                job.invoice_id = None
        return self._remove("invoice", invoice_id)

    def set_invoice_status(self, invoice_id: str, status: str) -> Invoice:
        inv: Invoice = self.get("invoice", invoice_id)
        check_manual_transition(
            invoice_id, inv.status, status,
            allowed=MANUAL_INVOICE_STATUSES,
            has_payments=inv.has_payments(),
            credited=inv.is_credited(),
        )
        inv.manual_status = status
        return inv

    def mark_overdue_invoices(self, on: date) -> List[Invoice]:
        """Passe en OVERDUE les factures SENT échues et sans paiement."""
        changed = []
        for inv in self.state.invoices:
            if is_overdue(inv.manual_status, inv.status, inv.due_date, on):
                inv.manual_status = "OVERDUE"
                changed.append(inv)
        if changed:
            logger.info("%d invoice(s) marked overdue", len(changed))
        return changed

    # ---------------- Bons de commande ---------------- #

    def add_purchase_order(self, po: PurchaseOrder) -> PurchaseOrder:
        self._require_supplier(po.supplier_id)
        if po.payments:
            raise DocumentValidationError("Payments are recorded with payment commands, not on creation")
        if po.stock_received:
            raise DocumentValidationError("Stock is received with the stock receipt command")
        if not po.po_number:
            po = po.model_copy(update={"po_number": next_document_number(
                (p.po_number for p in self.state.purchase_orders), self.numbering.purchase_order_prefix)})
        return self._add("purchase order", po)

    def update_purchase_order(self, po: PurchaseOrder) -> PurchaseOrder:
        current: PurchaseOrder = self.get("purchase order", po.id)
        self._require_supplier(po.supplier_id)
        if not self._same_payments(current.payments, po.payments):
            raise DocumentValidationError(f"Payments of purchase order {po.id} are append-only")
        if po.manual_status != current.manual_status:
            check_manual_transition(
                po.id, current.status, po.manual_status,
                allowed=MANUAL_PO_STATUSES,
                has_payments=current.has_payments(),
            )
        updated = po.model_copy(update={"payments": current.payments, "stock_received": current.stock_received})
        return self._replace("purchase order", updated)

    def delete_purchase_order(self, po_id: str) -> PurchaseOrder:
        po: PurchaseOrder = self.get("purchase order", po_id)
        if po.has_payments():
            raise DocumentValidationError(f"Purchase order {po_id} has payments and cannot be deleted")
        return self._remove("purchase order", po_id)

    def set_purchase_order_status(self, po_id: str, status: str) -> PurchaseOrder:
        po: PurchaseOrder = self.get("purchase order", po_id)
        check_manual_transition(
            po_id, po.status, status,
            allowed=MANUAL_PO_STATUSES,
            has_payments=po.has_payments(),
        )
        po.manual_status = status
        return po

    def receive_purchase_order_stock(self, po_id: str) -> PurchaseOrder:
        po: PurchaseOrder = self.get("purchase order", po_id)
        if po.stock_received:
            raise AlreadyReceived(po_id)
        for it in po.items:
            if not it.inventory_item_id:
                continue
            stock: InventoryItem = self.get("inventory item", it.inventory_item_id)
            stock.stock_quantity = stock.stock_quantity + it.quantity
        po.stock_received = True
        return po

    # ---------------- Devis ---------------- #

    def add_quote(self, q: Quote) -> Quote:
        self._require_customer(q.customer_id)
        if q.converted_to_job_id or q.converted_to_invoice_id or q.status == "CONVERTED":
            raise DocumentValidationError("A new quote cannot be already converted")
        if not q.quote_number:
            q = q.model_copy(update={"quote_number": next_document_number(
                (x.quote_number for x in self.state.quotes), self.numbering.quote_prefix)})
        return self._add("quote", q)

    def update_quote(self, q: Quote) -> Quote:
        current: Quote = self.get("quote", q.id)
        self._require_customer(q.customer_id)
        converted = bool(current.converted_to_job_id or current.converted_to_invoice_id)
        if q.status == "CONVERTED" and not converted:
            raise DocumentValidationError("Quotes become CONVERTED through a conversion command")
        updated = q.model_copy(update={
            "converted_to_job_id": current.converted_to_job_id,
            "converted_to_invoice_id": current.converted_to_invoice_id,
            "status": "CONVERTED" if converted else q.status,
        })
        return self._replace("quote", updated)

    def delete_quote(self, quote_id: str) -> Quote:
        return self._remove("quote", quote_id)

    # ---------------- Tiers ---------------- #

    def add_customer(self, c: Customer) -> Customer:
        return self._add("customer", c)

    def update_customer(self, c: Customer) -> Customer:
        current: Customer = self.get("customer", c.id)
        return self._replace("customer", c.model_copy(update={"credit_balance_cent": current.credit_balance_cent}))

    def delete_customer(self, customer_id: str) -> Customer:
        self.get("customer", customer_id)
        refs = [
            *(i.id for i in self.state.invoices if i.customer_id == customer_id),
            *(q.id for q in self.state.quotes if q.customer_id == customer_id),
            *(n.id for n in self.state.credit_notes if n.customer_id == customer_id),
            *(j.id for j in self.state.job_orders if j.customer_id == customer_id),
            *(ch.id for ch in self.state.delivery_challans if ch.customer_id == customer_id),
        ]
        if refs:
            raise DocumentValidationError(f"Customer {customer_id} still has documents", references=refs)
        return self._remove("customer", customer_id)

    def add_supplier(self, s: Supplier) -> Supplier:
        return self._add("supplier", s)

    def update_supplier(self, s: Supplier) -> Supplier:
        current: Supplier = self.get("supplier", s.id)
        return self._replace("supplier", s.model_copy(update={"credit_balance_cent": current.credit_balance_cent}))

    def delete_supplier(self, supplier_id: str) -> Supplier:
        self.get("supplier", supplier_id)
        refs = [p.id for p in self.state.purchase_orders if p.supplier_id == supplier_id]
        if refs:
            raise DocumentValidationError(f"Supplier {supplier_id} still has purchase orders", references=refs)
        return self._remove("supplier", supplier_id)

    # ---------------- Bons de livraison ---------------- #

    def add_delivery_challan(self, ch: DeliveryChallan) -> DeliveryChallan:
        self._require_customer(ch.customer_id)
        if not ch.challan_number:
            ch = ch.model_copy(update={"challan_number": next_document_number(
                (x.challan_number for x in self.state.delivery_challans), self.numbering.challan_prefix)})
        return self._add("delivery challan", ch)

    def update_delivery_challan(self, ch: DeliveryChallan) -> DeliveryChallan:
        current: DeliveryChallan = self.get("delivery challan", ch.id)
        self._require_customer(ch.customer_id)
        return self._replace("delivery challan", ch.model_copy(update={"invoice_id": current.invoice_id}))

    def delete_delivery_challan(self, challan_id: str) -> DeliveryChallan:
        ch: DeliveryChallan = self._remove("delivery challan", challan_id)
        # libère la facture d'origine pour une nouvelle conversion
        if ch.invoice_id:
            inv = self.state.invoice(ch.invoice_id)
            if inv is not None and inv.challan_id == ch.id:
                inv.challan_id = None
        return ch

    # ---------------- Avoirs ---------------- #

    def add_credit_note(self, note: CreditNote) -> CreditNote:
        self._require_customer(note.customer_id)
        if not note.credit_note_number:
            note = note.model_copy(update={"credit_note_number": next_document_number(
                (n.credit_note_number for n in self.state.credit_notes), self.numbering.credit_note_prefix)})
        self._check_original(note)
        if note.is_finalized():
            self._apply_credit(note)
        return self._add("credit note", note)

    def update_credit_note(self, note: CreditNote) -> CreditNote:
        current: CreditNote = self.get("credit note", note.id)
        if current.is_finalized():
            raise CreditNoteFinalized(note.id, "edited")
        self._require_customer(note.customer_id)
        self._check_original(note)
        if note.is_finalized():
            self._apply_credit(note)
        return self._replace("credit note", note)

    def delete_credit_note(self, note_id: str) -> CreditNote:
        current: CreditNote = self.get("credit note", note_id)
        if current.is_finalized():
            raise CreditNoteFinalized(note_id, "deleted")
        return self._remove("credit note", note_id)

    def _check_original(self, note: CreditNote) -> Invoice:
        inv = self.state.invoice(note.original_invoice_id)
        if inv is None:
            raise DocumentNotFound("invoice", note.original_invoice_id)
        if inv.customer_id != note.customer_id:
            raise DocumentValidationError(
                f"Credit note customer {note.customer_id} does not match invoice customer {inv.customer_id}")
        return inv

    def _apply_credit(self, note: CreditNote) -> None:
        inv = self._check_original(note)
        if inv.credit_note_id and inv.credit_note_id != note.id:
            raise DocumentValidationError(
                f"Invoice {inv.id} is already credited by {inv.credit_note_id}", invoice_id=inv.id)
        inv.credit_note_id = note.id
        logger.info("Invoice %s credited by %s", inv.document_number, note.credit_note_number)

    # ---------------- Stock ---------------- #

    def add_inventory_item(self, it: InventoryItem) -> InventoryItem:
        return self._add("inventory item", it)

    def update_inventory_item(self, it: InventoryItem) -> InventoryItem:
        return self._replace("inventory item", it)

    def delete_inventory_item(self, item_id: str) -> InventoryItem:
        return self._remove("inventory item", item_id)

    # ---------------- Fabrication ---------------- #

    def add_job_order(self, job: JobOrder) -> JobOrder:
        self._require_customer(job.customer_id)
        if job.quote_id:
            raise DocumentValidationError("Jobs are linked to a quote through the conversion command")
        if job.invoice_id:
            inv = self.get("invoice", job.invoice_id)
            if inv.customer_id != job.customer_id:
                raise DocumentValidationError(
                    f"Job customer {job.customer_id} does not match invoice customer {inv.customer_id}")
        return self._add("job order", job)

    def update_job_order(self, job: JobOrder) -> JobOrder:
        current: JobOrder = self.get("job order", job.id)
        self._require_customer(job.customer_id)
        # liens posés par les conversions
        updated = job.model_copy(update={"quote_id": current.quote_id, "invoice_id": current.invoice_id})
        return self._replace("job order", updated)

    def delete_job_order(self, job_id: str) -> JobOrder:
        job: JobOrder = self._remove("job order", job_id)
        # libère le devis d'origine pour une nouvelle conversion
        if job.quote_id:
            q = find_by_id(self.state.quotes, job.quote_id)
            if q is not None and q.converted_to_job_id == job.id:
                q.converted_to_job_id = None
                if not q.converted_to_invoice_id:
                    q.status = "ACCEPTED"
        return job
