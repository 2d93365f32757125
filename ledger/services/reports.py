"""
Projections en lecture seule sur l'état : grand livre, balance, bilan,
compte de résultat, balances âgées.
Toutes sont des fonctions pures de LedgerState ; même journal -> mêmes totaux.
"""
from __future__ import annotations
import datetime as dt
from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, Field

from ledger.errors import AccountNotFound
from ledger.models.account import Account
from ledger.models.document import BilledDocument
from ledger.models.invoice import Invoice
from ledger.models.journal import JournalEntry
from ledger.models.purchase import PurchaseOrder
from ledger.models.state import LedgerState

AGING_BUCKETS = ("Current", "1-30 Days", "31-60 Days", "61-90 Days", "90+ Days")


class LedgerLine(BaseModel):
    date: dt.date
    entry_id: str
    details: str
    debit_cent: int
    credit_cent: int
    balance_cent: int


class TrialBalanceRow(BaseModel):
    account_id: str
    name: str
    type: str
    debit_cent: int
    credit_cent: int


class BalanceSheet(BaseModel):
    as_of: dt.date
    assets: Dict[str, int] = Field(default_factory=dict)
    liabilities: Dict[str, int] = Field(default_factory=dict)
    equity: Dict[str, int] = Field(default_factory=dict)
    net_income_cent: int = 0

    @property
    def total_assets_cent(self) -> int:
        return sum(self.assets.values())

    @property
    def total_liabilities_cent(self) -> int:
        return sum(self.liabilities.values())

    @property
    def total_equity_cent(self) -> int:
        return sum(self.equity.values()) + self.net_income_cent


class ProfitAndLoss(BaseModel):
    start: dt.date
    end: dt.date
    revenue: Dict[str, int] = Field(default_factory=dict)
    expenses: Dict[str, int] = Field(default_factory=dict)

    @property
    def total_revenue_cent(self) -> int:
        return sum(self.revenue.values())

    @property
    def total_expenses_cent(self) -> int:
        return sum(self.expenses.values())

    @property
    def net_profit_cent(self) -> int:
        return self.total_revenue_cent - self.total_expenses_cent


class AgingRow(BaseModel):
    party_id: str
    name: str
    buckets: List[int] = Field(default_factory=lambda: [0] * len(AGING_BUCKETS))

    @property
    def total_cent(self) -> int:
        return sum(self.buckets)


class AgingReport(BaseModel):
    as_of: dt.date
    rows: List[AgingRow] = Field(default_factory=list)

    @property
    def totals(self) -> List[int]:
        return [sum(r.buckets[i] for r in self.rows) for i in range(len(AGING_BUCKETS))]


# ---------- Helpers ---------- #

def _entries_between(entries: Iterable[JournalEntry], start: Optional[dt.date], end: Optional[dt.date]):
    for e in entries:
        if start is not None and e.date < start:
            continue
        if end is not None and e.date > end:
            continue
        yield e


def net_by_account(state: LedgerState, start: Optional[dt.date] = None, end: Optional[dt.date] = None) -> Dict[str, int]:
    """Σ (débit - crédit) par compte sur la période (bornes incluses)."""
    out: Dict[str, int] = {a.id: 0 for a in state.accounts}
    for e in _entries_between(state.journal_entries, start, end):
        for it in e.items:
            out[it.account_id] = out.get(it.account_id, 0) + it.debit_cent - it.credit_cent
    return out


def _account(state: LedgerState, account_id: str) -> Account:
    acc = state.account(account_id)
    if acc is None:
        raise AccountNotFound(account_id)
    return acc


# ---------- Requêtes ---------- #

def account_balances(state: LedgerState) -> Dict[str, int]:
    return {a.id: a.balance_cent for a in state.accounts}


def list_invoices(state: LedgerState, status: Optional[str] = None) -> List[Invoice]:
    return [i for i in state.invoices if status is None or i.status == status]


def list_purchase_orders(state: LedgerState, status: Optional[str] = None) -> List[PurchaseOrder]:
    return [p for p in state.purchase_orders if status is None or p.status == status]


def ledger_transactions(
    state: LedgerState,
    account_id: str,
    start: Optional[dt.date] = None,
    end: Optional[dt.date] = None,
) -> List[LedgerLine]:
    """
    Grand livre d'un compte : lignes triées par date (tri stable),
    solde courant = ouverture + mouvements antérieurs à `start` + lignes.
    """
    acc = _account(state, account_id)
    running = acc.opening_balance_cent
    rows: List[Tuple[dt.date, JournalEntry, int, int]] = []
    for e in state.journal_entries:
        for it in e.items:
            if it.account_id != account_id:
                continue
            if start is not None and e.date < start:
                running += it.debit_cent - it.credit_cent
            elif end is None or e.date <= end:
                rows.append((e.date, e, it.debit_cent, it.credit_cent))
    rows.sort(key=lambda r: r[0])

    out: List[LedgerLine] = []
    for d, e, debit, credit in rows:
        running += debit - credit
        out.append(LedgerLine(
            date=d, entry_id=e.id, details=e.memo or "Journal Entry",
            debit_cent=debit, credit_cent=credit, balance_cent=running,
        ))
    return out


def trial_balance(state: LedgerState, as_of: Optional[dt.date] = None) -> List[TrialBalanceRow]:
    net = net_by_account(state, end=as_of)
    rows = []
    for a in state.accounts:
        bal = a.opening_balance_cent + net.get(a.id, 0)
        rows.append(TrialBalanceRow(
            account_id=a.id, name=a.name, type=a.type,
            debit_cent=max(bal, 0), credit_cent=max(-bal, 0),
        ))
    return rows


def balance_sheet(state: LedgerState, as_of: dt.date) -> BalanceSheet:
    net = net_by_account(state, end=as_of)
    sheet = BalanceSheet(as_of=as_of)
    revenue = expenses = 0
    for a in state.accounts:
        bal = a.opening_balance_cent + net.get(a.id, 0)
        if a.type == "ASSET":
            sheet.assets[a.name] = bal
        elif a.type == "LIABILITY":
            sheet.liabilities[a.name] = -bal  # solde créditeur affiché en positif
        elif a.type == "EQUITY":
            sheet.equity[a.name] = -bal
        elif a.type == "REVENUE":
            revenue += -bal
        elif a.type == "EXPENSE":
            expenses += bal
    sheet.net_income_cent = revenue - expenses
    sheet.assets = {k: v for k, v in sheet.assets.items() if v}
    sheet.liabilities = {k: v for k, v in sheet.liabilities.items() if v}
    sheet.equity = {k: v for k, v in sheet.equity.items() if v}
    return sheet


def profit_and_loss(state: LedgerState, start: dt.date, end: dt.date) -> ProfitAndLoss:
    net = net_by_account(state, start=start, end=end)
    pnl = ProfitAndLoss(start=start, end=end)
    for a in state.accounts:
        amount = net.get(a.id, 0)
        if not amount:
            continue
        if a.type == "REVENUE":
            pnl.revenue[a.name] = -amount
        elif a.type == "EXPENSE":
            pnl.expenses[a.name] = amount
    return pnl


def _bucket(days_past_due: int) -> int:
    if days_past_due <= 0:
        return 0
    if days_past_due <= 30:
        return 1
    if days_past_due <= 60:
        return 2
    if days_past_due <= 90:
        return 3
    return 4


def _aging(docs: Iterable[Tuple[str, str, Optional[dt.date], BilledDocument]], as_of: dt.date) -> AgingReport:
    report = AgingReport(as_of=as_of)
    rows: Dict[str, AgingRow] = {}
    for party_id, name, due, doc in docs:
        balance = doc.balance_due_cent()
        if balance <= 0:
            continue
        days = (as_of - due).days if due is not None else 0
        row = rows.setdefault(party_id, AgingRow(party_id=party_id, name=name))
        row.buckets[_bucket(days)] += balance
    report.rows = list(rows.values())
    return report


def aged_receivables(state: LedgerState, as_of: dt.date) -> AgingReport:
    def docs():
        for inv in state.invoices:
            if inv.status in ("PAID", "DRAFT", "CREDITED"):
                continue
            customer = state.customer(inv.customer_id)
            if customer is None:
                continue
            yield customer.id, customer.name, inv.due_date, inv
    return _aging(docs(), as_of)


def aged_payables(state: LedgerState, as_of: dt.date) -> AgingReport:
    def docs():
        for po in state.purchase_orders:
            if po.status in ("PAID", "CANCELLED"):
                continue
            supplier = state.supplier(po.supplier_id)
            if supplier is None:
                continue
            # pas d'échéance sur un bon de commande : la date de livraison prévue en tient lieu
            yield supplier.id, supplier.name, po.expected_delivery_date or po.order_date, po
    return _aging(docs(), as_of)
