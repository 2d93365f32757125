from __future__ import annotations
from pydantic import ConfigDict, Field
from typing import List, Literal, Optional
import datetime as dt
from .common import LedgerModel, gen_id, today

EntrySource = Literal[
    "manual", "invoice-payment", "customer-payment", "supplier-payment",
    "po-payment", "expense", "reversal",
]


class JournalEntryItem(LedgerModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=gen_id)
    account_id: str
    debit_cent: int = Field(default=0, ge=0)
    credit_cent: int = Field(default=0, ge=0)
    description: Optional[str] = None


class JournalEntry(LedgerModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=gen_id)
    date: dt.date = Field(default_factory=today)
    memo: str = ""
    items: List[JournalEntryItem] = Field(default_factory=list)
    source: EntrySource = "manual"
    reversal_of_id: Optional[str] = None

    # helpers
    def total_debit_cent(self) -> int:
        return sum(it.debit_cent for it in self.items)

    def total_credit_cent(self) -> int:
        return sum(it.credit_cent for it in self.items)

    def account_ids(self) -> List[str]:
        return [it.account_id for it in self.items]
