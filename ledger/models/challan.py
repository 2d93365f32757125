from __future__ import annotations
from pydantic import Field
from typing import List, Optional
from datetime import date
from .common import Item, LedgerModel, gen_id, today

class DeliveryChallanItem(Item):
    pass

class DeliveryChallan(LedgerModel):
    id: str = Field(default_factory=gen_id)
    challan_number: str = ""
    customer_id: str
    issue_date: date = Field(default_factory=today)
    items: List[DeliveryChallanItem] = Field(default_factory=list)
    notes: str = ""
    invoice_id: Optional[str] = None
