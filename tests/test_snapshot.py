import json
from datetime import date

import pytest

from conftest import OFFICE, make_invoice, pay
from ledger.errors import SnapshotIntegrityError
from ledger.models.expense import Expense
from ledger.services.allocator import PaymentAllocator
from ledger.services.expenses import ExpenseService
from ledger.storage.repo import SnapshotRepository
from ledger.storage.snapshot import check_integrity, export_snapshot, import_snapshot


@pytest.fixture
def busy_state(state, customer):
    inv = make_invoice(customer.id, 10_000)
    state.invoices.append(inv)
    PaymentAllocator(state).add_payment_to_invoice(inv.id, pay(4_000))
    ExpenseService(state).add_expense(
        Expense(date=date(2024, 2, 3), amount_cent=2_500, debit_account_id=OFFICE, credit_account_id="asset-cash"))
    return state


def test_export_import_preserves_balances_and_journal(busy_state):
    data = json.loads(json.dumps(export_snapshot(busy_state)))
    restored = import_snapshot(data)

    assert {a.id: a.balance_cent for a in restored.accounts} == {a.id: a.balance_cent for a in busy_state.accounts}
    assert [e.id for e in restored.journal_entries] == [e.id for e in busy_state.journal_entries]
    assert restored.invoices[0].status == "PARTIALLY_PAID"
    assert restored.expenses[0].journal_entry_id == busy_state.expenses[0].journal_entry_id


def test_clean_state_has_no_problems(busy_state):
    assert check_integrity(busy_state) == []


def test_tampered_balance_is_rejected(busy_state):
    data = export_snapshot(busy_state)
    cash = next(a for a in data["accounts"] if a["id"] == "asset-cash")
    cash["balance_cent"] += 1

    with pytest.raises(SnapshotIntegrityError) as exc:
        import_snapshot(data)
    assert exc.value.code == "SNAPSHOT_INTEGRITY"
    assert any("asset-cash" in p for p in exc.value.problems)


def test_unbalanced_entry_and_unknown_account_are_reported(busy_state):
    data = export_snapshot(busy_state)
    entry = data["journal_entries"][0]
    entry["items"][0]["debit_cent"] += 5
    entry["items"][1]["account_id"] = "ghost"

    with pytest.raises(SnapshotIntegrityError) as exc:
        import_snapshot(data)
    problems = " | ".join(exc.value.problems)
    assert "unbalanced" in problems
    assert "unknown account ghost" in problems


def test_missing_or_retyped_system_account(busy_state):
    data = export_snapshot(busy_state)
    data["accounts"] = [a for a in data["accounts"] if a["id"] != "equity-owner"]
    next(a for a in data["accounts"] if a["id"] == "revenue-sales")["type"] = "EXPENSE"

    with pytest.raises(SnapshotIntegrityError) as exc:
        import_snapshot(data)
    problems = " | ".join(exc.value.problems)
    assert "missing system account equity-owner" in problems
    assert "revenue-sales altered" in problems


def test_malformed_records_are_reported_as_integrity_errors(busy_state):
    data = export_snapshot(busy_state)
    data["expenses"][0]["credit_account_id"] = OFFICE
    data["invoices"][0]["payments"][0]["amount_cent"] = "lots"

    with pytest.raises(SnapshotIntegrityError) as exc:
        import_snapshot(data)
    problems = " | ".join(exc.value.problems)
    assert "expenses.0" in problems
    assert "invoices.0.payments.0.amount_cent" in problems


class TestRepository:
    def test_missing_file_loads_as_none(self, tmp_path):
        assert SnapshotRepository(tmp_path / "ledger.json").load() is None

    def test_save_skips_identical_and_older_revisions(self, tmp_path):
        repo = SnapshotRepository(tmp_path / "ledger.json", backup_enabled=False)
        assert repo.save({"revision": 2, "accounts": []}) is True
        assert repo.save({"revision": 2, "accounts": []}) is False
        assert repo.save({"revision": 1, "accounts": ["stale"]}) is False
        assert repo.load() == {"revision": 2, "accounts": []}
        assert repo.stored_revision() == 2

    def test_backups_are_rotated(self, tmp_path):
        repo = SnapshotRepository(tmp_path / "ledger.json", backup_enabled=True, backup_keep=2)
        for rev in range(1, 6):
            repo.save({"revision": rev})
        backups = list(tmp_path.glob("ledger.*.bak.json"))
        assert len(backups) == 2

    def test_corrupt_file_is_copied_aside(self, tmp_path):
        path = tmp_path / "ledger.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(SnapshotIntegrityError):
            SnapshotRepository(path).load()
        assert (tmp_path / "ledger.corrupt.json").exists()
