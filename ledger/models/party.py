from pydantic import EmailStr, Field
from .common import LedgerModel, gen_id

class Party(LedgerModel):
    id: str = Field(default_factory=gen_id)
    name: str
    email: EmailStr | None = None
    phone: str | None = None
    address: str | None = None
    opening_balance_cent: int = 0
    # reliquat de paiement non ventilé (avance client / fournisseur)
    credit_balance_cent: int = Field(default=0, ge=0)

class Customer(Party):
    pass

class Supplier(Party):
    linked_inventory_item_ids: list[str] = Field(default_factory=list)
