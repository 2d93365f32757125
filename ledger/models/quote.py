from __future__ import annotations
from pydantic import Field
from typing import List, Literal, Optional
from datetime import date, timedelta
from .common import LedgerModel, gen_id, today
from .invoice import InvoiceItem

QuoteStatus = Literal["DRAFT", "SENT", "ACCEPTED", "DECLINED", "CONVERTED"]

class Quote(LedgerModel):
    id: str = Field(default_factory=gen_id)
    quote_number: str = ""
    customer_id: str
    status: QuoteStatus = "DRAFT"

    issue_date: date = Field(default_factory=today)
    expiry_date: date = Field(default_factory=lambda: today() + timedelta(days=30))
    items: List[InvoiceItem] = Field(default_factory=list)
    discount_cent: int = Field(default=0, ge=0)
    notes: str = ""
    selected_terms: List[str] = Field(default_factory=list)

    # liens de conversion (idempotence)
    converted_to_job_id: Optional[str] = None
    converted_to_invoice_id: Optional[str] = None

    # helpers
    def subtotal_cent(self) -> int:
        return sum(it.total_cent() for it in self.items)

    def total_cent(self) -> int:
        return self.subtotal_cent() - self.discount_cent

    def total_quantity(self) -> float:
        return sum(it.quantity for it in self.items)
