from __future__ import annotations
from pydantic import Field
from .common import LedgerModel, gen_id


class InventoryItem(LedgerModel):
  id: str = Field(default_factory=gen_id)
  name: str
  sku: str = ""
  category: str = ""
  stock_quantity: float = 0.0
  reorder_level: float = 0.0
  supplier: str = ""
  unit_cost_cent: int = 0

  def is_low_stock(self) -> bool:
    return self.stock_quantity <= self.reorder_level
