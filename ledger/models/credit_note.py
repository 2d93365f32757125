from __future__ import annotations
from pydantic import Field, model_validator
from typing import List, Literal
from datetime import date
from .common import LedgerModel, gen_id, today
from .invoice import InvoiceItem

CreditNoteStatus = Literal["DRAFT", "FINALIZED"]


class CreditNote(LedgerModel):
    id: str = Field(default_factory=gen_id)
    credit_note_number: str = ""
    original_invoice_id: str
    customer_id: str
    issue_date: date = Field(default_factory=today)
    items: List[InvoiceItem] = Field(default_factory=list)
    status: CreditNoteStatus = "DRAFT"
    reason: str = ""
    subtotal_cent: int = 0
    tax_amount_cent: int = 0
    total_cent: int = 0

    @model_validator(mode="after")
    def _totals(self) -> "CreditNote":
        # les avoirs ne reprennent ni remise ni report (cf. facture d'origine)
        subtotal = sum(it.total_cent() for it in self.items)
        if self.subtotal_cent != subtotal or self.total_cent != subtotal + self.tax_amount_cent:
            object.__setattr__(self, "subtotal_cent", subtotal)
            object.__setattr__(self, "total_cent", subtotal + self.tax_amount_cent)
        return self

    def is_finalized(self) -> bool:
        return self.status == "FINALIZED"
