from __future__ import annotations
from pydantic import Field
from typing import Dict, List, Literal
from .common import LedgerModel, gen_id

AccountType = Literal["ASSET", "LIABILITY", "EQUITY", "REVENUE", "EXPENSE"]

CASH = "asset-cash"
ACCOUNTS_RECEIVABLE = "asset-ar"
INVENTORY = "asset-inventory"
ACCOUNTS_PAYABLE = "liability-ap"
OWNER_EQUITY = "equity-owner"
SALES_REVENUE = "revenue-sales"
COST_OF_GOODS_SOLD = "expense-cogs"


class Account(LedgerModel):
    id: str = Field(default_factory=gen_id)
    name: str
    type: AccountType
    balance_cent: int = 0  # net cumulé des écritures (hors solde d'ouverture)
    opening_balance_cent: int = 0
    is_system_account: bool = False

    def report_balance_cent(self) -> int:
        return self.opening_balance_cent + self.balance_cent


# id -> (nom, type) ; créés au démarrage, jamais supprimés ni retypés
SYSTEM_ACCOUNTS: Dict[str, tuple[str, AccountType]] = {
    CASH: ("Cash on Hand", "ASSET"),
    ACCOUNTS_RECEIVABLE: ("Accounts Receivable", "ASSET"),
    INVENTORY: ("Inventory", "ASSET"),
    ACCOUNTS_PAYABLE: ("Accounts Payable", "LIABILITY"),
    OWNER_EQUITY: ("Owner's Equity", "EQUITY"),
    SALES_REVENUE: ("Sales Revenue", "REVENUE"),
    COST_OF_GOODS_SOLD: ("Cost of Goods Sold", "EXPENSE"),
}


def system_accounts(opening_balances: Dict[str, int] | None = None) -> List[Account]:
    opening = opening_balances or {}
    return [
        Account(id=acc_id, name=name, type=acc_type, opening_balance_cent=int(opening.get(acc_id, 0)),
                is_system_account=True)
        for acc_id, (name, acc_type) in SYSTEM_ACCOUNTS.items()
    ]
