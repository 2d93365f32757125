from __future__ import annotations
from typing import Literal, get_args

from ledger.errors import StatusWriteProtected

InvoiceStatus = Literal["DRAFT", "SENT", "PAID", "PARTIALLY_PAID", "OVERDUE", "CREDITED"]
ManualInvoiceStatus = Literal["DRAFT", "SENT", "OVERDUE"]

PurchaseOrderStatus = Literal[
    "PENDING", "ORDERED", "PARTIALLY_RECEIVED", "COMPLETED", "CANCELLED", "PARTIALLY_PAID", "PAID"
]
ManualPurchaseOrderStatus = Literal["PENDING", "ORDERED", "PARTIALLY_RECEIVED", "COMPLETED", "CANCELLED"]

# statuts pilotés uniquement par les paiements / avoirs
PAYMENT_STATUSES = frozenset({"PAID", "PARTIALLY_PAID"})
PROTECTED_INVOICE_STATUSES = PAYMENT_STATUSES | {"CREDITED"}

MANUAL_INVOICE_STATUSES = frozenset(get_args(ManualInvoiceStatus))
MANUAL_PO_STATUSES = frozenset(get_args(ManualPurchaseOrderStatus))


def derive_invoice_status(
    grand_total_cent: int,
    paid_total_cent: int,
    manual_status: str,
    credited: bool = False,
) -> str:
    """
    Statut affiché d'une facture.
    Un avoir finalisé l'emporte, puis les paiements ; sinon le statut manuel
    (DRAFT / SENT / OVERDUE) reste tel quel.
    """
    if credited:
        return "CREDITED"
    if paid_total_cent > 0 and paid_total_cent >= grand_total_cent:
        return "PAID"
    if paid_total_cent > 0:
        return "PARTIALLY_PAID"
    return manual_status


def derive_purchase_order_status(grand_total_cent: int, paid_total_cent: int, manual_status: str) -> str:
    if paid_total_cent > 0 and paid_total_cent >= grand_total_cent:
        return "PAID"
    if paid_total_cent > 0:
        return "PARTIALLY_PAID"
    return manual_status


def check_manual_transition(
    document_id: str,
    current: str,
    requested: str,
    *,
    allowed: frozenset,
    has_payments: bool,
    credited: bool = False,
) -> None:
    """Refuse toute édition manuelle qui entre dans / sort d'un statut piloté par les paiements."""
    if requested not in allowed:
        raise StatusWriteProtected(document_id, current, requested)
    if has_payments or credited or current in PROTECTED_INVOICE_STATUSES:
        raise StatusWriteProtected(document_id, current, requested)


def is_overdue(manual_status: str, derived_status: str, due_date, today) -> bool:
    return (
        manual_status == "SENT"
        and derived_status == "SENT"
        and due_date is not None
        and due_date < today
    )

