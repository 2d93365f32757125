from __future__ import annotations
from pydantic import Field, model_validator
from typing import Optional
import datetime as dt
from .common import LedgerModel, gen_id, today


class Expense(LedgerModel):
    id: str = Field(default_factory=gen_id)
    date: dt.date = Field(default_factory=today)
    description: str = ""
    amount_cent: int = Field(gt=0)
    debit_account_id: str   # compte de charge
    credit_account_id: str  # compte de trésorerie d'où sort l'argent
    attachment: Optional[str] = None
    journal_entry_id: Optional[str] = None

    @model_validator(mode="after")
    def _distinct_accounts(self) -> "Expense":
        if self.debit_account_id == self.credit_account_id:
            raise ValueError("debit_account_id and credit_account_id must differ")
        return self
