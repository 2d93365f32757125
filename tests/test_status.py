from datetime import date

import pytest

from conftest import make_invoice, make_po, pay
from ledger.errors import StatusWriteProtected
from ledger.services.allocator import PaymentAllocator
from ledger.services.documents import DocumentService
from ledger.status import (
    MANUAL_INVOICE_STATUSES,
    check_manual_transition,
    derive_invoice_status,
    derive_purchase_order_status,
    is_overdue,
)


@pytest.mark.parametrize(
    "grand, paid, manual, credited, expected",
    [
        (10_000, 0, "SENT", False, "SENT"),
        (10_000, 0, "DRAFT", False, "DRAFT"),
        (10_000, 1, "SENT", False, "PARTIALLY_PAID"),
        (10_000, 10_000, "OVERDUE", False, "PAID"),
        (10_000, 12_000, "SENT", False, "PAID"),
        (10_000, 10_000, "SENT", True, "CREDITED"),
        (0, 0, "SENT", False, "SENT"),
    ],
)
def test_derive_invoice_status(grand, paid, manual, credited, expected):
    assert derive_invoice_status(grand, paid, manual, credited) == expected


def test_derive_purchase_order_status():
    assert derive_purchase_order_status(500, 0, "ORDERED") == "ORDERED"
    assert derive_purchase_order_status(500, 100, "ORDERED") == "PARTIALLY_PAID"
    assert derive_purchase_order_status(500, 500, "ORDERED") == "PAID"


def test_payment_statuses_are_not_writable():
    for requested in ("PAID", "PARTIALLY_PAID", "CREDITED"):
        with pytest.raises(StatusWriteProtected):
            check_manual_transition("inv", "SENT", requested, allowed=MANUAL_INVOICE_STATUSES, has_payments=False)


def test_paid_invoice_cannot_be_moved_back_by_hand(state, customer):
    inv = make_invoice(customer.id, 1_000)
    state.invoices.append(inv)
    PaymentAllocator(state).add_payment_to_invoice(inv.id, pay(1_000))

    with pytest.raises(StatusWriteProtected) as exc:
        DocumentService(state).set_invoice_status(inv.id, "SENT")
    assert exc.value.current == "PAID"
    assert inv.status == "PAID"


def test_update_cannot_smuggle_a_status_change(state, customer):
    inv = make_invoice(customer.id, 1_000)
    state.invoices.append(inv)
    PaymentAllocator(state).add_payment_to_invoice(inv.id, pay(400))

    edited = inv.model_copy(update={"manual_status": "DRAFT"})
    with pytest.raises(StatusWriteProtected):
        DocumentService(state).update_invoice(edited)


def test_manual_status_moves_freely_without_payments(state, customer):
    inv = make_invoice(customer.id, 1_000, status="DRAFT")
    state.invoices.append(inv)
    docs = DocumentService(state)
    docs.set_invoice_status(inv.id, "SENT")
    assert inv.status == "SENT"
    docs.set_invoice_status(inv.id, "DRAFT")
    assert inv.status == "DRAFT"


def test_paid_purchase_order_status_is_protected(state, supplier):
    po = make_po(supplier.id, 1_000)
    state.purchase_orders.append(po)
    PaymentAllocator(state).add_payment_to_purchase_order(po.id, pay(1_000))
    with pytest.raises(StatusWriteProtected):
        DocumentService(state).set_purchase_order_status(po.id, "CANCELLED")


def test_is_overdue():
    due = date(2024, 1, 31)
    assert is_overdue("SENT", "SENT", due, date(2024, 2, 1))
    assert not is_overdue("SENT", "SENT", due, due)
    assert not is_overdue("DRAFT", "DRAFT", due, date(2024, 3, 1))
    assert not is_overdue("SENT", "PARTIALLY_PAID", due, date(2024, 3, 1))


def test_mark_overdue_only_touches_unpaid_sent_invoices(state, customer):
    late = make_invoice(customer.id, 1_000, due=date(2024, 1, 31))
    draft = make_invoice(customer.id, 1_000, due=date(2024, 1, 31), status="DRAFT")
    not_due = make_invoice(customer.id, 1_000, due=date(2024, 6, 30))
    state.invoices.extend([late, draft, not_due])

    changed = DocumentService(state).mark_overdue_invoices(date(2024, 3, 1))

    assert [i.id for i in changed] == [late.id]
    assert late.status == "OVERDUE"
    assert draft.status == "DRAFT"
    assert not_due.status == "SENT"
