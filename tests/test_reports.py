from datetime import date

import pytest

from conftest import BANK, LOAN, OFFICE, make_invoice, make_po, pay
from ledger.errors import AccountNotFound
from ledger.services import reports
from ledger.services.allocator import PaymentAllocator
from ledger.services.journal_engine import JournalEngine, two_line_items


@pytest.fixture
def booked(state):
    """Apport, vente au comptant, dépense de fournitures, emprunt."""
    state.account("asset-cash").opening_balance_cent = 1_000
    engine = JournalEngine(state)
    engine.post(date(2024, 1, 5), "Owner investment", two_line_items("asset-cash", "equity-owner", 50_000))
    engine.post(date(2024, 2, 1), "Cash sale", two_line_items("asset-cash", "revenue-sales", 20_000))
    engine.post(date(2024, 2, 10), "Paper", two_line_items(OFFICE, "asset-cash", 3_000))
    engine.post(date(2024, 3, 1), "Loan", two_line_items(BANK, LOAN, 100_000))
    return state


def test_general_ledger_running_balance(booked):
    rows = reports.ledger_transactions(booked, "asset-cash")
    assert [r.balance_cent for r in rows] == [51_000, 71_000, 68_000]
    assert [r.details for r in rows] == ["Owner investment", "Cash sale", "Paper"]


def test_general_ledger_window_starts_from_prior_activity(booked):
    rows = reports.ledger_transactions(booked, "asset-cash", start=date(2024, 2, 5))
    assert len(rows) == 1
    assert rows[0].credit_cent == 3_000
    assert rows[0].balance_cent == 68_000


def test_general_ledger_unknown_account(booked):
    with pytest.raises(AccountNotFound):
        reports.ledger_transactions(booked, "missing")


def test_trial_balance_is_balanced_without_opening_balances(state):
    engine = JournalEngine(state)
    engine.post(date(2024, 1, 5), "x", two_line_items("asset-cash", "equity-owner", 7_000))
    engine.post(date(2024, 1, 6), "y", two_line_items(OFFICE, "asset-cash", 2_000))
    rows = reports.trial_balance(state)
    assert sum(r.debit_cent for r in rows) == sum(r.credit_cent for r in rows) == 7_000


def test_balance_sheet(booked):
    sheet = reports.balance_sheet(booked, date(2024, 12, 31))

    assert sheet.assets == {"Cash on Hand": 68_000, "Bank Account": 100_000}
    assert sheet.liabilities == {"Bank Loan": 100_000}
    assert sheet.equity == {"Owner's Equity": 50_000}
    assert sheet.net_income_cent == 17_000
    # actif = passif + capitaux propres, hors solde d'ouverture de la caisse
    assert sheet.total_assets_cent == sheet.total_liabilities_cent + sheet.total_equity_cent + 1_000


def test_balance_sheet_as_of_ignores_later_entries(booked):
    sheet = reports.balance_sheet(booked, date(2024, 1, 31))
    assert sheet.assets == {"Cash on Hand": 51_000}
    assert sheet.liabilities == {}
    assert sheet.net_income_cent == 0


def test_profit_and_loss(booked):
    pnl = reports.profit_and_loss(booked, date(2024, 2, 1), date(2024, 2, 28))
    assert pnl.revenue == {"Sales Revenue": 20_000}
    assert pnl.expenses == {"Office Supplies": 3_000}
    assert pnl.net_profit_cent == 17_000

    empty = reports.profit_and_loss(booked, date(2024, 3, 1), date(2024, 3, 31))
    assert empty.net_profit_cent == 0


def test_aged_receivables(state, customer):
    as_of = date(2024, 6, 30)
    current = make_invoice(customer.id, 1_000, due=date(2024, 7, 15))
    late_10 = make_invoice(customer.id, 2_000, due=date(2024, 6, 20))
    late_45 = make_invoice(customer.id, 3_000, due=date(2024, 5, 16))
    late_200 = make_invoice(customer.id, 4_000, due=date(2023, 12, 13))
    draft = make_invoice(customer.id, 9_999, due=date(2023, 1, 1), status="DRAFT")
    state.invoices.extend([current, late_10, late_45, late_200, draft])
    PaymentAllocator(state).add_payment_to_invoice(late_200.id, pay(1_500))

    report = reports.aged_receivables(state, as_of)

    assert len(report.rows) == 1
    row = report.rows[0]
    assert row.name == "Acme Events"
    assert row.buckets == [1_000, 2_000, 3_000, 0, 2_500]
    assert row.total_cent == 8_500
    assert report.totals == row.buckets


def test_aged_payables_use_expected_delivery(state, supplier):
    po = make_po(supplier.id, 5_000, order=date(2024, 1, 1), expected_delivery_date=date(2024, 3, 1))
    state.purchase_orders.append(po)
    report = reports.aged_payables(state, date(2024, 4, 15))
    assert report.rows[0].buckets == [0, 0, 5_000, 0, 0]


def test_list_filters_on_derived_status(state, customer):
    a = make_invoice(customer.id, 1_000)
    b = make_invoice(customer.id, 1_000)
    state.invoices.extend([a, b])
    PaymentAllocator(state).add_payment_to_invoice(a.id, pay(1_000))

    assert [i.id for i in reports.list_invoices(state, "PAID")] == [a.id]
    assert [i.id for i in reports.list_invoices(state, "SENT")] == [b.id]
    assert len(reports.list_invoices(state)) == 2


def test_report_rows_serialize_to_json(booked):
    line = reports.ledger_transactions(booked, "asset-cash")[0]
    assert line.model_dump(mode="json") == {
        "date": "2024-01-05", "entry_id": line.entry_id, "details": "Owner investment",
        "debit_cent": 50_000, "credit_cent": 0, "balance_cent": 51_000,
    }
    sheet = reports.balance_sheet(booked, date(2024, 12, 31)).model_dump(mode="json")
    assert sheet["as_of"] == "2024-12-31"
    assert sheet["net_income_cent"] == 17_000
