from __future__ import annotations
import logging
from datetime import date
from typing import Iterable, List, Optional, Union

from ledger.errors import EntryAlreadyReversed, EntryNotFound, ImmutableEntry, UnbalancedEntry
from ledger.models.journal import EntrySource, JournalEntry, JournalEntryItem
from ledger.models.state import LedgerState
from ledger.services.chart_of_accounts import ChartOfAccounts

logger = logging.getLogger(__name__)

ItemLike = Union[JournalEntryItem, dict]


def _to_item(it: ItemLike) -> JournalEntryItem:
    if isinstance(it, JournalEntryItem):
        return it
    return JournalEntryItem(**it)


def validate_items(items: List[JournalEntryItem]) -> None:
    """
    Invariant d'équilibre : Σ débit == Σ crédit > 0, au moins deux lignes,
    chaque ligne porte un débit OU un crédit.
    """
    debit = sum(it.debit_cent for it in items)
    credit = sum(it.credit_cent for it in items)
    if len(items) < 2:
        raise UnbalancedEntry(debit, credit, "A journal entry needs at least two lines")
    for it in items:
        if it.debit_cent and it.credit_cent:
            raise UnbalancedEntry(debit, credit, f"Line {it.id} has both a debit and a credit")
    if debit != credit or debit <= 0:
        raise UnbalancedEntry(debit, credit)


def two_line_items(debit_account_id: str, credit_account_id: str, amount_cent: int,
                   description: Optional[str] = None) -> List[JournalEntryItem]:
    return [
        JournalEntryItem(account_id=debit_account_id, debit_cent=amount_cent, description=description),
        JournalEntryItem(account_id=credit_account_id, credit_cent=amount_cent, description=description),
    ]


class JournalEngine:
    """
    Moteur d'écritures : journal append-only + application des deltas.
    Tout est validé avant la moindre écriture ; une écriture postée n'est jamais modifiée.
    """

    def __init__(self, state: LedgerState) -> None:
        self.state = state
        self.accounts = ChartOfAccounts(state)

    def post(
        self,
        entry_date: date,
        memo: str,
        items: Iterable[ItemLike],
        source: EntrySource = "manual",
        reversal_of_id: Optional[str] = None,
    ) -> JournalEntry:
        lines = [_to_item(it) for it in items]
        validate_items(lines)
        self.accounts.require([it.account_id for it in lines])

        entry = JournalEntry(date=entry_date, memo=memo, items=lines, source=source, reversal_of_id=reversal_of_id)
        self.state.journal_entries.append(entry)
        for it in lines:
            self.accounts.apply_delta(it.account_id, it.debit_cent, it.credit_cent)
        logger.debug("Posted entry %s (%s, %d cents)", entry.id, source, entry.total_debit_cent())
        return entry

    def create_manual_entry(self, entry_date: date, memo: str, items: Iterable[ItemLike]) -> JournalEntry:
        return self.post(entry_date, memo, items, source="manual")

    def get(self, entry_id: str) -> JournalEntry:
        entry = self.state.journal_entry(entry_id)
        if entry is None:
            raise EntryNotFound(entry_id)
        return entry

    def reverse(self, entry_id: str, on: Optional[date] = None, memo: Optional[str] = None) -> JournalEntry:
        """Poste l'écriture miroir (débit <-> crédit) ; l'originale reste au journal."""
        original = self.get(entry_id)
        if original.reversal_of_id is not None:
            raise EntryAlreadyReversed(entry_id, f"Journal entry {entry_id} is itself a reversal")
        if self.state.reversal_of(entry_id) is not None:
            raise EntryAlreadyReversed(entry_id)

        mirror = [
            JournalEntryItem(
                account_id=it.account_id,
                debit_cent=it.credit_cent,
                credit_cent=it.debit_cent,
                description=it.description,
            )
            for it in original.items
        ]
        return self.post(
            on or original.date,
            memo or f"Reversal of: {original.memo}",
            mirror,
            source="reversal",
            reversal_of_id=original.id,
        )

    def reject_edit(self, entry_id: str) -> None:
        self.get(entry_id)
        raise ImmutableEntry(entry_id)
