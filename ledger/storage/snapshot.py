from __future__ import annotations
import logging
from typing import Any, Dict, List

from pydantic import ValidationError

from ledger.errors import SnapshotIntegrityError
from ledger.models.account import SYSTEM_ACCOUNTS
from ledger.models.state import SCHEMA_VERSION, LedgerState
from ledger.services.reports import net_by_account

logger = logging.getLogger(__name__)


def export_snapshot(state: LedgerState) -> Dict[str, Any]:
    """Instantané JSON complet (comptes, documents, journal)."""
    return state.model_dump(mode="json")


def check_integrity(state: LedgerState) -> List[str]:
    """
    Contrôles au chargement :
    - comptes système présents et bien typés
    - écritures équilibrées, comptes référencés existants
    - solde de chaque compte == Σ (débit - crédit) de ses lignes
    """
    problems: List[str] = []
    if state.schema_version > SCHEMA_VERSION:
        problems.append(f"unsupported schema version {state.schema_version}")

    for acc_id, (_, acc_type) in SYSTEM_ACCOUNTS.items():
        acc = state.account(acc_id)
        if acc is None:
            problems.append(f"missing system account {acc_id}")
        elif acc.type != acc_type or not acc.is_system_account:
            problems.append(f"system account {acc_id} altered ({acc.type}, system={acc.is_system_account})")

    seen = set()
    for acc in state.accounts:
        if acc.id in seen:
            problems.append(f"duplicate account id {acc.id}")
        seen.add(acc.id)

    for e in state.journal_entries:
        debit, credit = e.total_debit_cent(), e.total_credit_cent()
        if debit != credit or debit <= 0:
            problems.append(f"entry {e.id} unbalanced (debit={debit}, credit={credit})")
        for acc_id in e.account_ids():
            if acc_id not in seen:
                problems.append(f"entry {e.id} references unknown account {acc_id}")

    net = net_by_account(state)
    for acc in state.accounts:
        expected = net.get(acc.id, 0)
        if acc.balance_cent != expected:
            problems.append(f"account {acc.id} balance {acc.balance_cent} != journal total {expected}")
    return problems


def import_snapshot(data: Dict[str, Any]) -> LedgerState:
    """JSON -> LedgerState validé ; toute incohérence lève SnapshotIntegrityError."""
    try:
        state = LedgerState.model_validate(data)
    except ValidationError as e:
        problems = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
        logger.error("Snapshot rejected: %d invalid field(s)", len(problems))
        raise SnapshotIntegrityError(problems) from e
    problems = check_integrity(state)
    if problems:
        logger.error("Snapshot rejected: %d problem(s)", len(problems))
        raise SnapshotIntegrityError(problems)
    return state
