from __future__ import annotations
import logging
from typing import Optional, Tuple

from ledger.errors import DocumentNotFound, DocumentValidationError
from ledger.models.expense import Expense
from ledger.models.journal import JournalEntry
from ledger.models.state import LedgerState, index_of
from ledger.services.journal_engine import JournalEngine, two_line_items

logger = logging.getLogger(__name__)


class ExpenseService:
    """
    Dépenses : une écriture à deux lignes par dépense.
    Modification = contre-passation de l'ancienne écriture + nouvelle écriture ;
    suppression = contre-passation seule. Le journal garde tout.
    """

    def __init__(self, state: LedgerState) -> None:
        self.state = state
        self.journal = JournalEngine(state)

    def get(self, expense_id: str) -> Expense:
        idx = index_of(self.state.expenses, expense_id)
        if idx < 0:
            raise DocumentNotFound("expense", expense_id)
        return self.state.expenses[idx]

    def _post(self, x: Expense) -> JournalEntry:
        return self.journal.post(
            x.date,
            f"Expense: {x.description}" if x.description else "Expense",
            two_line_items(x.debit_account_id, x.credit_account_id, x.amount_cent, x.description or None),
            source="expense",
        )

    def add_expense(self, x: Expense) -> Tuple[Expense, JournalEntry]:
        if index_of(self.state.expenses, x.id) >= 0:
            raise DocumentValidationError(f"Expense {x.id} already exists")
        entry = self._post(x)
        stored = x.model_copy(update={"journal_entry_id": entry.id})
        self.state.expenses.append(stored)
        return stored, entry

    def update_expense(self, x: Expense) -> Tuple[Expense, Optional[JournalEntry], JournalEntry]:
        old = self.get(x.id)
        reversal = self._reverse_for(old)
        entry = self._post(x)
        stored = x.model_copy(update={"journal_entry_id": entry.id})
        self.state.expenses[index_of(self.state.expenses, x.id)] = stored
        return stored, reversal, entry

    def delete_expense(self, expense_id: str) -> Optional[JournalEntry]:
        old = self.get(expense_id)
        reversal = self._reverse_for(old)
        self.state.expenses.pop(index_of(self.state.expenses, expense_id))
        return reversal

    def _reverse_for(self, x: Expense) -> Optional[JournalEntry]:
        if x.journal_entry_id is None:
            # dépense importée sans écriture : rien à contre-passer
            logger.warning("Expense %s has no journal entry, nothing to reverse", x.id)
            return None
        return self.journal.reverse(x.journal_entry_id)
