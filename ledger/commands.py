"""
Commandes acceptées par LedgerService.dispatch.
Chaque commande porte un `type` ; `Command` est l'union discriminée,
ce qui permet de valider directement un payload JSON venant de l'UI :

    cmd = parse_command({"type": "DeleteExpense", "expense_id": "..."})
"""
from __future__ import annotations
from typing import Annotated, List, Literal, Union
import datetime as dt

from pydantic import BaseModel, Field, TypeAdapter

from ledger.models.account import Account
from ledger.models.challan import DeliveryChallan
from ledger.models.common import today
from ledger.models.credit_note import CreditNote
from ledger.models.expense import Expense
from ledger.models.inventory import InventoryItem
from ledger.models.invoice import Invoice
from ledger.models.job import JobOrder
from ledger.models.journal import JournalEntry, JournalEntryItem
from ledger.models.party import Customer, Supplier
from ledger.models.payment import PaymentRequest
from ledger.models.purchase import PurchaseOrder
from ledger.models.quote import Quote


# ---------------- Factures ---------------- #

class AddInvoice(BaseModel):
    type: Literal["AddInvoice"] = "AddInvoice"
    invoice: Invoice

class UpdateInvoice(BaseModel):
    type: Literal["UpdateInvoice"] = "UpdateInvoice"
    invoice: Invoice

class DeleteInvoice(BaseModel):
    type: Literal["DeleteInvoice"] = "DeleteInvoice"
    invoice_id: str

class SetInvoiceStatus(BaseModel):
    type: Literal["SetInvoiceStatus"] = "SetInvoiceStatus"
    invoice_id: str
    # volontairement large : la protection est vérifiée à l'exécution
    status: str

class AddPaymentToInvoice(BaseModel):
    type: Literal["AddPaymentToInvoice"] = "AddPaymentToInvoice"
    invoice_id: str
    payment: PaymentRequest

class ReceiveCustomerPayment(BaseModel):
    type: Literal["ReceiveCustomerPayment"] = "ReceiveCustomerPayment"
    customer_id: str
    payment: PaymentRequest

class MarkOverdueInvoices(BaseModel):
    type: Literal["MarkOverdueInvoices"] = "MarkOverdueInvoices"
    as_of: dt.date = Field(default_factory=today)


# ---------------- Achats ---------------- #

class AddPurchaseOrder(BaseModel):
    type: Literal["AddPurchaseOrder"] = "AddPurchaseOrder"
    purchase_order: PurchaseOrder

class UpdatePurchaseOrder(BaseModel):
    type: Literal["UpdatePurchaseOrder"] = "UpdatePurchaseOrder"
    purchase_order: PurchaseOrder

class DeletePurchaseOrder(BaseModel):
    type: Literal["DeletePurchaseOrder"] = "DeletePurchaseOrder"
    po_id: str

class SetPurchaseOrderStatus(BaseModel):
    type: Literal["SetPurchaseOrderStatus"] = "SetPurchaseOrderStatus"
    po_id: str
    status: str

class AddPaymentToPurchaseOrder(BaseModel):
    type: Literal["AddPaymentToPurchaseOrder"] = "AddPaymentToPurchaseOrder"
    po_id: str
    payment: PaymentRequest

class MakeSupplierPayment(BaseModel):
    type: Literal["MakeSupplierPayment"] = "MakeSupplierPayment"
    supplier_id: str
    payment: PaymentRequest

class ReceivePurchaseOrderStock(BaseModel):
    type: Literal["ReceivePurchaseOrderStock"] = "ReceivePurchaseOrderStock"
    po_id: str


# ---------------- Dépenses ---------------- #

class AddExpense(BaseModel):
    type: Literal["AddExpense"] = "AddExpense"
    expense: Expense

class UpdateExpense(BaseModel):
    type: Literal["UpdateExpense"] = "UpdateExpense"
    expense: Expense

class DeleteExpense(BaseModel):
    type: Literal["DeleteExpense"] = "DeleteExpense"
    expense_id: str


# ---------------- Comptes & journal ---------------- #

class AddAccount(BaseModel):
    type: Literal["AddAccount"] = "AddAccount"
    account: Account

class UpdateAccount(BaseModel):
    type: Literal["UpdateAccount"] = "UpdateAccount"
    account: Account

class DeleteAccount(BaseModel):
    type: Literal["DeleteAccount"] = "DeleteAccount"
    account_id: str

class AddJournalEntry(BaseModel):
    type: Literal["AddJournalEntry"] = "AddJournalEntry"
    date: dt.date = Field(default_factory=today)
    memo: str = ""
    items: List[JournalEntryItem]

class UpdateJournalEntry(BaseModel):
    type: Literal["UpdateJournalEntry"] = "UpdateJournalEntry"
    entry: JournalEntry

class DeleteJournalEntry(BaseModel):
    type: Literal["DeleteJournalEntry"] = "DeleteJournalEntry"
    entry_id: str


# ---------------- Devis, tiers, livraisons, avoirs, stock, fabrication ---------------- #

class AddQuote(BaseModel):
    type: Literal["AddQuote"] = "AddQuote"
    quote: Quote

class UpdateQuote(BaseModel):
    type: Literal["UpdateQuote"] = "UpdateQuote"
    quote: Quote

class DeleteQuote(BaseModel):
    type: Literal["DeleteQuote"] = "DeleteQuote"
    quote_id: str

class AddCustomer(BaseModel):
    type: Literal["AddCustomer"] = "AddCustomer"
    customer: Customer

class UpdateCustomer(BaseModel):
    type: Literal["UpdateCustomer"] = "UpdateCustomer"
    customer: Customer

class DeleteCustomer(BaseModel):
    type: Literal["DeleteCustomer"] = "DeleteCustomer"
    customer_id: str

class AddSupplier(BaseModel):
    type: Literal["AddSupplier"] = "AddSupplier"
    supplier: Supplier

class UpdateSupplier(BaseModel):
    type: Literal["UpdateSupplier"] = "UpdateSupplier"
    supplier: Supplier

class DeleteSupplier(BaseModel):
    type: Literal["DeleteSupplier"] = "DeleteSupplier"
    supplier_id: str

class AddDeliveryChallan(BaseModel):
    type: Literal["AddDeliveryChallan"] = "AddDeliveryChallan"
    challan: DeliveryChallan

class UpdateDeliveryChallan(BaseModel):
    type: Literal["UpdateDeliveryChallan"] = "UpdateDeliveryChallan"
    challan: DeliveryChallan

class DeleteDeliveryChallan(BaseModel):
    type: Literal["DeleteDeliveryChallan"] = "DeleteDeliveryChallan"
    challan_id: str

class AddCreditNote(BaseModel):
    type: Literal["AddCreditNote"] = "AddCreditNote"
    credit_note: CreditNote

class UpdateCreditNote(BaseModel):
    type: Literal["UpdateCreditNote"] = "UpdateCreditNote"
    credit_note: CreditNote

class DeleteCreditNote(BaseModel):
    type: Literal["DeleteCreditNote"] = "DeleteCreditNote"
    credit_note_id: str

class AddInventoryItem(BaseModel):
    type: Literal["AddInventoryItem"] = "AddInventoryItem"
    item: InventoryItem

class UpdateInventoryItem(BaseModel):
    type: Literal["UpdateInventoryItem"] = "UpdateInventoryItem"
    item: InventoryItem

class DeleteInventoryItem(BaseModel):
    type: Literal["DeleteInventoryItem"] = "DeleteInventoryItem"
    item_id: str

class AddJobOrder(BaseModel):
    type: Literal["AddJobOrder"] = "AddJobOrder"
    job: JobOrder

class UpdateJobOrder(BaseModel):
    type: Literal["UpdateJobOrder"] = "UpdateJobOrder"
    job: JobOrder

class DeleteJobOrder(BaseModel):
    type: Literal["DeleteJobOrder"] = "DeleteJobOrder"
    job_id: str


# ---------------- Conversions ---------------- #

class ConvertQuoteToJob(BaseModel):
    type: Literal["ConvertQuoteToJob"] = "ConvertQuoteToJob"
    quote_id: str

class ConvertQuoteToInvoice(BaseModel):
    type: Literal["ConvertQuoteToInvoice"] = "ConvertQuoteToInvoice"
    quote_id: str

class ConvertInvoiceToChallan(BaseModel):
    type: Literal["ConvertInvoiceToChallan"] = "ConvertInvoiceToChallan"
    invoice_id: str


Command = Annotated[
    Union[
        AddInvoice, UpdateInvoice, DeleteInvoice, SetInvoiceStatus, AddPaymentToInvoice,
        ReceiveCustomerPayment, MarkOverdueInvoices,
        AddPurchaseOrder, UpdatePurchaseOrder, DeletePurchaseOrder, SetPurchaseOrderStatus,
        AddPaymentToPurchaseOrder, MakeSupplierPayment, ReceivePurchaseOrderStock,
        AddExpense, UpdateExpense, DeleteExpense,
        AddAccount, UpdateAccount, DeleteAccount,
        AddJournalEntry, UpdateJournalEntry, DeleteJournalEntry,
        AddQuote, UpdateQuote, DeleteQuote,
        AddCustomer, UpdateCustomer, DeleteCustomer,
        AddSupplier, UpdateSupplier, DeleteSupplier,
        AddDeliveryChallan, UpdateDeliveryChallan, DeleteDeliveryChallan,
        AddCreditNote, UpdateCreditNote, DeleteCreditNote,
        AddInventoryItem, UpdateInventoryItem, DeleteInventoryItem,
        AddJobOrder, UpdateJobOrder, DeleteJobOrder,
        ConvertQuoteToJob, ConvertQuoteToInvoice, ConvertInvoiceToChallan,
    ],
    Field(discriminator="type"),
]

_command_adapter: TypeAdapter = TypeAdapter(Command)


def parse_command(data: dict) -> BaseModel:
    return _command_adapter.validate_python(data)
