from __future__ import annotations
from pydantic import Field, computed_field
from typing import List, Optional
from datetime import date
from .common import Item, line_total_cent, today
from .document import BilledDocument
from ledger.status import ManualPurchaseOrderStatus, PurchaseOrderStatus, derive_purchase_order_status


class PurchaseOrderItem(Item):
    unit_cost_cent: int = Field(default=0, ge=0)

    def total_cent(self) -> int:
        return line_total_cent(self.quantity, self.unit_cost_cent)


class PurchaseOrder(BilledDocument):
    po_number: str = ""
    supplier_id: str
    order_date: date = Field(default_factory=today)
    expected_delivery_date: Optional[date] = None
    items: List[PurchaseOrderItem] = Field(default_factory=list)
    manual_status: ManualPurchaseOrderStatus = "PENDING"
    selected_terms: List[str] = Field(default_factory=list)
    stock_received: bool = False

    def subtotal_cent(self) -> int:
        return sum(it.total_cent() for it in self.items)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def status(self) -> PurchaseOrderStatus:
        return derive_purchase_order_status(self.grand_total_cent(), self.paid_total_cent(), self.manual_status)
