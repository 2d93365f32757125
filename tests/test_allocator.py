from datetime import date

import pytest

from conftest import BANK, OFFICE, make_invoice, make_po, pay
from ledger.errors import AccountNotFound, DocumentNotFound, InvalidPayment
from ledger.services.allocator import PaymentAllocator


class TestCustomerPayment:
    def test_oldest_invoice_is_paid_first(self, state, customer):
        """100 $ + 50 $ ouverts, règlement de 120 $ : la première soldée, 20 $ sur la seconde."""
        first = make_invoice(customer.id, 10_000, issue=date(2024, 1, 1))
        second = make_invoice(customer.id, 5_000, issue=date(2024, 1, 15))
        state.invoices.extend([second, first])  # ordre d'insertion inversé : le tri se fait par date

        result = PaymentAllocator(state).allocate_customer_payment(customer.id, pay(12_000))

        assert state.invoice(first.id).status == "PAID"
        assert state.invoice(second.id).status == "PARTIALLY_PAID"
        assert state.invoice(second.id).paid_total_cent() == 2_000
        assert [d.id for d in result.updated] == [first.id, second.id]
        assert result.unapplied_cent == 0

        entry = result.journal_entry
        assert entry.source == "customer-payment"
        assert entry.total_debit_cent() == 12_000
        assert state.account("asset-cash").balance_cent == 12_000
        assert state.account("asset-ar").balance_cent == -12_000

    def test_same_day_invoices_keep_insertion_order(self, state, customer):
        a = make_invoice(customer.id, 3_000)
        b = make_invoice(customer.id, 3_000)
        state.invoices.extend([a, b])

        PaymentAllocator(state).allocate_customer_payment(customer.id, pay(3_000))

        assert state.invoice(a.id).status == "PAID"
        assert state.invoice(b.id).status == "SENT"

    def test_draft_paid_and_credited_invoices_are_skipped(self, state, customer):
        draft = make_invoice(customer.id, 1_000, status="DRAFT", issue=date(2023, 1, 1))
        credited = make_invoice(customer.id, 1_000, issue=date(2023, 2, 1), credit_note_id="cn-1")
        open_ = make_invoice(customer.id, 1_000, issue=date(2023, 3, 1))
        state.invoices.extend([draft, credited, open_])

        result = PaymentAllocator(state).allocate_customer_payment(customer.id, pay(1_000))

        assert [d.id for d in result.updated] == [open_.id]
        assert draft.payments == [] and credited.payments == []

    def test_overpayment_is_kept_as_customer_credit(self, state, customer):
        state.invoices.append(make_invoice(customer.id, 5_000))

        result = PaymentAllocator(state).allocate_customer_payment(customer.id, pay(8_000))

        assert result.unapplied_cent == 3_000
        assert state.customer(customer.id).credit_balance_cent == 3_000
        # l'écriture couvre tout l'argent reçu
        assert result.journal_entry.total_debit_cent() == 8_000

    def test_payment_without_open_invoices_becomes_credit(self, state, customer):
        result = PaymentAllocator(state).allocate_customer_payment(customer.id, pay(500))
        assert result.updated == []
        assert result.unapplied_cent == 500

    def test_deposit_must_be_an_asset_account(self, state, customer):
        with pytest.raises(InvalidPayment):
            PaymentAllocator(state).allocate_customer_payment(customer.id, pay(500, account_id=OFFICE))
        assert state.journal_entries == []

    @pytest.mark.parametrize("amount", [0, -100])
    def test_non_positive_amount(self, state, customer, amount):
        with pytest.raises(InvalidPayment):
            PaymentAllocator(state).allocate_customer_payment(customer.id, pay(amount))

    def test_unknown_customer_and_account(self, state, customer):
        allocator = PaymentAllocator(state)
        with pytest.raises(DocumentNotFound):
            allocator.allocate_customer_payment("ghost", pay(100))
        with pytest.raises(AccountNotFound):
            allocator.allocate_customer_payment(customer.id, pay(100, account_id="nope"))


class TestSingleInvoicePayment:
    def test_payment_is_recorded_and_posted(self, state, customer):
        inv = make_invoice(customer.id, 10_000)
        state.invoices.append(inv)

        updated, entry = PaymentAllocator(state).add_payment_to_invoice(inv.id, pay(4_000, account_id=BANK))

        assert updated.status == "PARTIALLY_PAID"
        assert updated.balance_due_cent() == 6_000
        assert entry.source == "invoice-payment"
        assert state.account(BANK).balance_cent == 4_000
        assert state.account("asset-ar").balance_cent == -4_000

    def test_reused_payment_record_gets_fresh_ids(self, state, customer):
        first = make_invoice(customer.id, 1_000)
        second = make_invoice(customer.id, 1_000)
        state.invoices.extend([first, second])
        allocator = PaymentAllocator(state)

        allocator.add_payment_to_invoice(first.id, pay(500))
        recorded = state.invoice(first.id).payments[0]
        # un Payment déjà rattaché resoumis comme demande
        allocator.add_payment_to_invoice(first.id, recorded)
        allocator.add_payment_to_invoice(second.id, recorded)

        ids = [p.id for inv in state.invoices for p in inv.payments]
        assert len(ids) == len(set(ids)) == 3
        assert state.invoice(first.id).status == "PAID"

    def test_overpaying_one_invoice_is_refused(self, state, customer):
        inv = make_invoice(customer.id, 1_000)
        state.invoices.append(inv)
        with pytest.raises(InvalidPayment) as exc:
            PaymentAllocator(state).add_payment_to_invoice(inv.id, pay(1_001))
        assert exc.value.balance_due_cent == 1_000
        assert inv.payments == []

    def test_credited_invoice_refuses_payment(self, state, customer):
        inv = make_invoice(customer.id, 1_000, credit_note_id="cn-1")
        state.invoices.append(inv)
        with pytest.raises(InvalidPayment):
            PaymentAllocator(state).add_payment_to_invoice(inv.id, pay(100))


class TestSupplierPayment:
    def test_oldest_purchase_order_first(self, state, supplier):
        old = make_po(supplier.id, 7_000, order=date(2024, 1, 1))
        new = make_po(supplier.id, 7_000, order=date(2024, 2, 1))
        cancelled = make_po(supplier.id, 7_000, order=date(2023, 1, 1), status="CANCELLED")
        state.purchase_orders.extend([new, cancelled, old])

        result = PaymentAllocator(state).allocate_supplier_payment(supplier.id, pay(10_000))

        assert old.status == "PAID"
        assert new.paid_total_cent() == 3_000
        assert cancelled.payments == []
        assert result.journal_entry.source == "supplier-payment"
        assert state.account("liability-ap").balance_cent == 10_000
        assert state.account("asset-cash").balance_cent == -10_000

    def test_cancelled_order_refuses_direct_payment(self, state, supplier):
        po = make_po(supplier.id, 1_000, status="CANCELLED")
        state.purchase_orders.append(po)
        with pytest.raises(InvalidPayment):
            PaymentAllocator(state).add_payment_to_purchase_order(po.id, pay(100))

    def test_direct_payment_posts_po_payment(self, state, supplier):
        po = make_po(supplier.id, 1_000)
        state.purchase_orders.append(po)
        _, entry = PaymentAllocator(state).add_payment_to_purchase_order(po.id, pay(1_000))
        assert entry.source == "po-payment"
        assert po.status == "PAID"
