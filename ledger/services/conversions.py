from __future__ import annotations
import logging
from datetime import date, timedelta
from typing import Optional

from ledger.errors import AlreadyConverted, DocumentNotFound
from ledger.models.challan import DeliveryChallan, DeliveryChallanItem
from ledger.models.common import gen_id, today
from ledger.models.invoice import Invoice
from ledger.models.job import JobOrder
from ledger.models.quote import Quote
from ledger.models.state import LedgerState, find_by_id

logger = logging.getLogger(__name__)


class ConversionService:
    """
    Devis -> commande de fabrication, devis -> facture, facture -> bon de livraison.
    Aucune écriture comptable ; le lien posé sur le document source empêche une double conversion.
    """

    def __init__(self, state: LedgerState, payment_terms_days: int = 30) -> None:
        self.state = state
        self.payment_terms_days = payment_terms_days

    def _quote(self, quote_id: str) -> Quote:
        q = find_by_id(self.state.quotes, quote_id)
        if q is None:
            raise DocumentNotFound("quote", quote_id)
        return q

    # Devis -> job
    def convert_quote_to_job(self, quote_id: str, on: Optional[date] = None) -> JobOrder:
        q = self._quote(quote_id)
        if q.converted_to_job_id:
            raise AlreadyConverted("quote", quote_id, q.converted_to_job_id)

        job = JobOrder(
            job_name=f"Job from Quote #{q.quote_number}",
            customer_id=q.customer_id,
            order_date=on or today(),
            description="\n".join(f"{it.name} (Qty: {it.quantity:g})" for it in q.items),
            quantity=q.total_quantity(),
            price_cent=q.total_cent(),
            notes=f"Converted from Quote #{q.quote_number}.\n{q.notes}".rstrip(),
            quote_id=q.id,
            invoice_id=q.converted_to_invoice_id,
        )
        self.state.job_orders.append(job)
        q.status = "CONVERTED"
        q.converted_to_job_id = job.id
        logger.info("Quote %s converted to job %s", q.quote_number, job.id)
        return job

    # Devis -> facture
    def convert_quote_to_invoice(self, quote_id: str, on: Optional[date] = None) -> Invoice:
        q = self._quote(quote_id)
        if q.converted_to_invoice_id:
            raise AlreadyConverted("quote", quote_id, q.converted_to_invoice_id)

        issue = on or today()
        inv = Invoice(
            document_number=f"INV-FROM-{q.quote_number}",
            customer_id=q.customer_id,
            issue_date=issue,
            due_date=issue + timedelta(days=self.payment_terms_days),
            items=[it.model_copy(update={"id": gen_id()}) for it in q.items],
            manual_status="DRAFT",
            notes=q.notes,
            discount_cent=q.discount_cent,
            selected_terms=list(q.selected_terms),
            quote_id=q.id,
        )
        self.state.invoices.append(inv)
        q.status = "CONVERTED"
        q.converted_to_invoice_id = inv.id
        # la commande déjà issue du devis suit la facture
        job = find_by_id(self.state.job_orders, q.converted_to_job_id) if q.converted_to_job_id else None
        if job is not None:
            job.invoice_id = inv.id
        logger.info("Quote %s converted to invoice %s", q.quote_number, inv.document_number)
        return inv

    # Facture -> bon de livraison
    def convert_invoice_to_challan(self, invoice_id: str, on: Optional[date] = None) -> DeliveryChallan:
        inv = self.state.invoice(invoice_id)
        if inv is None:
            raise DocumentNotFound("invoice", invoice_id)
        if inv.challan_id:
            raise AlreadyConverted("invoice", invoice_id, inv.challan_id)

        challan = DeliveryChallan(
            challan_number=f"DCH-FROM-{inv.document_number}",
            customer_id=inv.customer_id,
            issue_date=on or today(),
            items=[
                DeliveryChallanItem(
                    id=gen_id(),
                    name=it.name,
                    description=it.description,
                    quantity=it.quantity,
                    inventory_item_id=it.inventory_item_id,
                )
                for it in inv.items
            ],
            notes=f"Generated from Invoice #{inv.document_number}",
            invoice_id=inv.id,
        )
        self.state.delivery_challans.append(challan)
        inv.challan_id = challan.id
        return challan
