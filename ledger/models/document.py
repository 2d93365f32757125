from __future__ import annotations
from pydantic import Field
from typing import List
from .common import LedgerModel, gen_id
from .payment import Payment


class BilledDocument(LedgerModel):
    """
    Base commune facture / bon de commande :
    grand total = sous-total + report - remise + taxe ; reste dû = grand total - payé.
    Les sous-classes fournissent `subtotal_cent()`.
    """

    id: str = Field(default_factory=gen_id)
    payments: List[Payment] = Field(default_factory=list)
    previous_due_cent: int = 0
    discount_cent: int = Field(default=0, ge=0)
    tax_amount_cent: int = Field(default=0, ge=0)
    notes: str = ""

    def subtotal_cent(self) -> int:  # pragma: no cover - surchargé
        raise NotImplementedError

    def grand_total_cent(self) -> int:
        return self.subtotal_cent() + self.previous_due_cent - self.discount_cent + self.tax_amount_cent

    def paid_total_cent(self) -> int:
        return sum(p.amount_cent for p in self.payments)

    def balance_due_cent(self) -> int:
        return self.grand_total_cent() - self.paid_total_cent()

    def has_payments(self) -> bool:
        return self.paid_total_cent() > 0
