from __future__ import annotations
from pydantic import Field
from typing import Literal, Optional
from datetime import date
from .common import LedgerModel, gen_id, today

JobStatus = Literal["PENDING", "DESIGNING", "PRINTING", "COMPLETED", "DELIVERED"]

class JobOrder(LedgerModel):
    id: str = Field(default_factory=gen_id)
    job_name: str
    customer_id: str
    order_date: date = Field(default_factory=today)
    due_date: Optional[date] = None
    status: JobStatus = "PENDING"
    description: str = ""
    quantity: float = 0.0
    price_cent: int = 0
    notes: str = ""
    quote_id: Optional[str] = None
    invoice_id: Optional[str] = None
