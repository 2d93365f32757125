from __future__ import annotations
from typing import Any, List, Optional


class LedgerError(Exception):
    """
    Erreur typée du noyau comptable.
    - `code` : identifiant stable, lisible par l'UI
    - les attributs supplémentaires portent le contexte (ids, montants)
    """

    code = "LEDGER_ERROR"

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        for k, v in context.items():
            setattr(self, k, v)


# ---------------- Écritures ---------------- #

class UnbalancedEntry(LedgerError):
    code = "UNBALANCED_ENTRY"

    def __init__(self, debit_cent: int, credit_cent: int, message: Optional[str] = None) -> None:
        super().__init__(
            message or f"Entry is not balanced: debit={debit_cent} credit={credit_cent}",
            debit_cent=debit_cent,
            credit_cent=credit_cent,
        )


class EntryNotFound(LedgerError):
    code = "ENTRY_NOT_FOUND"

    def __init__(self, entry_id: str) -> None:
        super().__init__(f"Journal entry {entry_id} not found", entry_id=entry_id)


class EntryAlreadyReversed(LedgerError):
    code = "ENTRY_ALREADY_REVERSED"

    def __init__(self, entry_id: str, message: Optional[str] = None) -> None:
        super().__init__(message or f"Journal entry {entry_id} is already reversed", entry_id=entry_id)


class ImmutableEntry(LedgerError):
    code = "IMMUTABLE_ENTRY"

    def __init__(self, entry_id: str, message: Optional[str] = None) -> None:
        super().__init__(
            message or f"Journal entry {entry_id} is posted and cannot be edited; reverse it instead",
            entry_id=entry_id,
        )


# ---------------- Comptes ---------------- #

class AccountNotFound(LedgerError):
    code = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_id: str) -> None:
        super().__init__(f"Account {account_id} not found", account_id=account_id)


class DuplicateSystemAccount(LedgerError):
    code = "DUPLICATE_SYSTEM_ACCOUNT"

    def __init__(self, account_id: str) -> None:
        super().__init__(f"{account_id} is a reserved system account", account_id=account_id)


class DuplicateAccount(LedgerError):
    code = "DUPLICATE_ACCOUNT"

    def __init__(self, account_id: str) -> None:
        super().__init__(f"Account {account_id} already exists", account_id=account_id)


class SystemAccountProtected(LedgerError):
    code = "SYSTEM_ACCOUNT_PROTECTED"

    def __init__(self, account_id: str, action: str) -> None:
        super().__init__(f"Cannot {action} system account {account_id}", account_id=account_id, action=action)


class AccountInUse(LedgerError):
    code = "ACCOUNT_IN_USE"

    def __init__(self, account_id: str, references: List[str]) -> None:
        super().__init__(
            f"Account {account_id} is referenced by {', '.join(references)}",
            account_id=account_id,
            references=references,
        )


# ---------------- Documents ---------------- #

class DocumentNotFound(LedgerError):
    code = "DOCUMENT_NOT_FOUND"

    def __init__(self, kind: str, document_id: str) -> None:
        super().__init__(f"{kind} {document_id} not found", kind=kind, document_id=document_id)


class DocumentValidationError(LedgerError):
    code = "DOCUMENT_INVALID"


class AlreadyConverted(LedgerError):
    code = "ALREADY_CONVERTED"

    def __init__(self, kind: str, document_id: str, target_id: str) -> None:
        super().__init__(
            f"{kind} {document_id} was already converted ({target_id})",
            kind=kind,
            document_id=document_id,
            target_id=target_id,
        )


class AlreadyReceived(LedgerError):
    code = "ALREADY_RECEIVED"

    def __init__(self, po_id: str) -> None:
        super().__init__(f"Stock for purchase order {po_id} was already received", po_id=po_id)


class InvalidPayment(LedgerError):
    code = "INVALID_PAYMENT"


class StatusWriteProtected(LedgerError):
    code = "STATUS_WRITE_PROTECTED"

    def __init__(self, document_id: str, current: str, requested: str) -> None:
        super().__init__(
            f"Status of {document_id} is managed by payments ({current} -> {requested} refused)",
            document_id=document_id,
            current=current,
            requested=requested,
        )


class CreditNoteFinalized(LedgerError):
    code = "CREDIT_NOTE_FINALIZED"

    def __init__(self, credit_note_id: str, action: str) -> None:
        super().__init__(
            f"Credit note {credit_note_id} is finalized and cannot be {action}",
            credit_note_id=credit_note_id,
            action=action,
        )


# ---------------- Persistance ---------------- #

class SnapshotIntegrityError(LedgerError):
    code = "SNAPSHOT_INTEGRITY"

    def __init__(self, problems: List[str]) -> None:
        super().__init__("Snapshot failed validation: " + "; ".join(problems), problems=problems)


class PersistenceError(LedgerError):
    code = "PERSISTENCE_FAILED"
