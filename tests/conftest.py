"""
Shared fixtures: a bootstrapped ledger state, a persisted LedgerService
in a temporary data directory, and small builders for documents.
"""
from datetime import date

import pytest

from ledger.config import Settings
from ledger.models.account import Account
from ledger.models.invoice import Invoice, InvoiceItem
from ledger.models.party import Customer, Supplier
from ledger.models.payment import PaymentRequest
from ledger.models.purchase import PurchaseOrder, PurchaseOrderItem
from ledger.models.state import LedgerState
from ledger.services.chart_of_accounts import ChartOfAccounts
from ledger.services.ledger_service import LedgerService

OFFICE = "expense-office"
BANK = "asset-bank"
LOAN = "liability-loan"


def custom_accounts():
    return [
        Account(id=OFFICE, name="Office Supplies", type="EXPENSE"),
        Account(id=BANK, name="Bank Account", type="ASSET"),
        Account(id=LOAN, name="Bank Loan", type="LIABILITY"),
    ]


def make_state() -> LedgerState:
    state = LedgerState()
    coa = ChartOfAccounts(state)
    coa.bootstrap()
    for acc in custom_accounts():
        coa.create_account(acc)
    return state


def make_invoice(customer_id: str, amount_cent: int, *, issue: date = date(2024, 1, 1),
                 due: date = date(2024, 1, 31), status: str = "SENT", **kw) -> Invoice:
    return Invoice(
        customer_id=customer_id,
        issue_date=issue,
        due_date=due,
        manual_status=status,
        items=[InvoiceItem(name="Service", quantity=1, rate_cent=amount_cent)],
        **kw,
    )


def make_po(supplier_id: str, amount_cent: int, *, order: date = date(2024, 1, 1), **kw) -> PurchaseOrder:
    return PurchaseOrder(
        supplier_id=supplier_id,
        order_date=order,
        manual_status=kw.pop("status", "ORDERED"),
        items=[PurchaseOrderItem(name="Stock", quantity=1, unit_cost_cent=amount_cent)],
        **kw,
    )


def pay(amount_cent: int, account_id: str = "asset-cash", on: date = date(2024, 2, 1)) -> PaymentRequest:
    return PaymentRequest(date=on, amount_cent=amount_cent, account_id=account_id, method="Cash")


@pytest.fixture
def state() -> LedgerState:
    return make_state()


@pytest.fixture
def customer(state) -> Customer:
    c = Customer(name="Acme Events", email="billing@acme-events.com")
    state.customers.append(c)
    return c


@pytest.fixture
def supplier(state) -> Supplier:
    s = Supplier(name="Sound Parts Ltd")
    state.suppliers.append(s)
    return s


@pytest.fixture
def settings() -> Settings:
    return Settings.model_validate({"storage": {"backup_enabled": False, "persist_retries": 2}})


@pytest.fixture
def service(tmp_path, settings) -> LedgerService:
    svc = LedgerService(tmp_path, settings=settings)
    for acc in custom_accounts():
        svc.dispatch({"type": "AddAccount", "account": acc.model_dump()})
    return svc


@pytest.fixture
def service_customer(service) -> Customer:
    return service.dispatch({"type": "AddCustomer", "customer": {"name": "Acme Events"}})
