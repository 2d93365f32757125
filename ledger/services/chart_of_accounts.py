from __future__ import annotations
import logging
from typing import Dict, List, Optional

from ledger.errors import (
    AccountInUse,
    AccountNotFound,
    DuplicateAccount,
    DuplicateSystemAccount,
    SystemAccountProtected,
)
from ledger.models.account import SYSTEM_ACCOUNTS, Account, system_accounts
from ledger.models.state import LedgerState, index_of

logger = logging.getLogger(__name__)


class ChartOfAccounts:
    """
    Plan comptable d'un état donné.
    - seul `apply_delta` touche `balance_cent`
    - comptes système : jamais supprimés, jamais retypés
    - un compte référencé (journal, dépense, paiement) ne peut pas être supprimé
    """

    def __init__(self, state: LedgerState) -> None:
        self.state = state

    # ---------------- Lecture ---------------- #

    def get(self, account_id: str) -> Account:
        acc = self.state.account(account_id)
        if acc is None:
            raise AccountNotFound(account_id)
        return acc

    def require(self, account_ids: List[str]) -> None:
        for acc_id in account_ids:
            self.get(acc_id)

    def balances(self) -> Dict[str, int]:
        return {a.id: a.balance_cent for a in self.state.accounts}

    # ---------------- Soldes ---------------- #

    def apply_delta(self, account_id: str, debit_cent: int, credit_cent: int) -> Account:
        acc = self.get(account_id)
        acc.balance_cent = acc.balance_cent + debit_cent - credit_cent
        return acc

    # ---------------- CRUD ---------------- #

    def bootstrap(self, opening_balances: Optional[Dict[str, int]] = None) -> List[Account]:
        """Crée les comptes système manquants (démarrage ou état vide)."""
        created = []
        for acc in system_accounts(opening_balances):
            if self.state.account(acc.id) is None:
                self.state.accounts.append(acc)
                created.append(acc)
        if created:
            logger.info("Created %d system accounts", len(created))
        return created

    def create_account(self, account: Account) -> Account:
        if account.id in SYSTEM_ACCOUNTS or account.is_system_account:
            raise DuplicateSystemAccount(account.id)
        if self.state.account(account.id) is not None:
            raise DuplicateAccount(account.id)
        # le solde courant ne vient jamais de l'appelant
        acc = account.model_copy(update={"balance_cent": 0})
        self.state.accounts.append(acc)
        return acc

    def update_account(self, account: Account) -> Account:
        current = self.get(account.id)
        if current.is_system_account and account.type != current.type:
            raise SystemAccountProtected(account.id, "retype")
        current.name = account.name
        current.type = account.type
        current.opening_balance_cent = account.opening_balance_cent
        return current

    def delete_account(self, account_id: str) -> None:
        acc = self.get(account_id)
        if acc.is_system_account:
            raise SystemAccountProtected(account_id, "delete")
        refs = self.references(account_id)
        if refs:
            raise AccountInUse(account_id, refs)
        self.state.accounts.pop(index_of(self.state.accounts, account_id))

    def references(self, account_id: str) -> List[str]:
        refs: List[str] = []
        for e in self.state.journal_entries:
            if account_id in e.account_ids():
                refs.append(f"journal entry {e.id}")
        for x in self.state.expenses:
            if account_id in (x.debit_account_id, x.credit_account_id):
                refs.append(f"expense {x.id}")
        for doc in [*self.state.invoices, *self.state.purchase_orders]:
            for p in doc.payments:
                if p.account_id == account_id:
                    refs.append(f"payment {p.id}")
        return refs
