from __future__ import annotations
from pydantic import Field, computed_field
from typing import List, Optional
from datetime import date, timedelta
from .common import Item, line_total_cent, today
from .document import BilledDocument
from ledger.status import InvoiceStatus, ManualInvoiceStatus, derive_invoice_status


class InvoiceItem(Item):
    rate_cent: int = Field(default=0, ge=0)

    def total_cent(self) -> int:
        return line_total_cent(self.quantity, self.rate_cent)


class Invoice(BilledDocument):
    document_number: str = ""
    customer_id: str
    issue_date: date = Field(default_factory=today)
    due_date: date = Field(default_factory=lambda: today() + timedelta(days=30))
    items: List[InvoiceItem] = Field(default_factory=list)

    # seul statut éditable ; PAID / PARTIALLY_PAID / CREDITED sont calculés
    manual_status: ManualInvoiceStatus = "DRAFT"

    reminder_date: Optional[date] = None
    quote_id: Optional[str] = None
    challan_id: Optional[str] = None
    credit_note_id: Optional[str] = None
    selected_terms: List[str] = Field(default_factory=list)

    def subtotal_cent(self) -> int:
        return sum(it.total_cent() for it in self.items)

    def is_credited(self) -> bool:
        return self.credit_note_id is not None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def status(self) -> InvoiceStatus:
        return derive_invoice_status(
            self.grand_total_cent(), self.paid_total_cent(), self.manual_status, self.is_credited()
        )
