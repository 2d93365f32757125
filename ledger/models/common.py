from pydantic import BaseModel, ConfigDict, Field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
import uuid

def gen_id() -> str:
    return str(uuid.uuid4())

def today() -> date:
    return date.today()

def line_total_cent(quantity: float, rate_cent: int) -> int:
    """qty × prix unitaire, arrondi au centime (demi vers le haut)."""
    total = Decimal(str(quantity)) * Decimal(int(rate_cent))
    return int(total.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

class LedgerModel(BaseModel):
    # tolère d'anciennes clés (ex: "status" calculé) dans les JSON
    model_config = ConfigDict(extra="ignore", validate_assignment=True)

class Item(LedgerModel):
    id: str = Field(default_factory=gen_id)
    name: str
    description: str = ""
    quantity: float = Field(default=1.0, ge=0)
    inventory_item_id: str | None = None
