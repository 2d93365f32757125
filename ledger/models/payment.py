from __future__ import annotations
from pydantic import ConfigDict, Field
from typing import Literal, Optional
import datetime as dt
from .common import LedgerModel, gen_id, today

PaymentMethod = Literal["Cash", "Bank Transfer", "Credit Card", "Other"]


class PaymentRequest(LedgerModel):
    """Paiement saisi par l'utilisateur, avant ventilation sur les documents."""
    date: dt.date = Field(default_factory=today)
    amount_cent: int
    method: PaymentMethod = "Cash"
    account_id: str
    notes: Optional[str] = None


class Payment(PaymentRequest):
    """Paiement rattaché à une facture / un bon de commande (immuable)."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=gen_id)

    @classmethod
    def from_request(cls, req: PaymentRequest, amount_cent: Optional[int] = None) -> "Payment":
        data = req.model_dump(exclude={"id"})
        if amount_cent is not None:
            data["amount_cent"] = amount_cent
        return cls(**data)
