from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, Dict, List, Optional


class PIStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"
    SENT = "SENT"


class PaymentStatus(str, Enum):
    UNPAID = "UNPAID"
    PARTIAL = "PARTIAL"
    PAID = "PAID"


class PaymentRecordStatus(str, Enum):
    PENDING = "PENDING"
    VERIFIED = "VERIFIED"
    REJECTED = "REJECTED"


class CollectionSource(str, Enum):
    BUYER_PORTAL = "BUYER_PORTAL"
    ADMIN_DIRECT = "ADMIN_DIRECT"
    EMAIL = "EMAIL"
    PHONE_CALL = "PHONE_CALL"
    IN_PERSON = "IN_PERSON"
    OTHER = "OTHER"


class Currency(str, Enum):
    USD = "USD"
    INR = "INR"


# Documents owned by the remote API. Unknown fields are kept as-is.

def _zero_if_missing(value):
    return 0 if value is None or value == "" else value


class PIItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    product_id: Optional[str] = None
    part_number: Optional[str] = None
    product_name: Optional[str] = None
    description: Optional[str] = None
    quantity: float = 0
    unit_price: float = 0
    total_price: Optional[float] = None
    uom: Optional[str] = None
    hsn_code: Optional[str] = None

    missing_amount_is_zero = field_validator("quantity", "unit_price", mode="before")(_zero_if_missing)


class ProformaInvoice(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = Field(default=None, alias="_id")
    performa_invoice_id: Optional[str] = None
    performa_invoice_number: Optional[str] = None
    customer_name: Optional[str] = None
    quotation_id: Optional[str] = None
    items: List[PIItem] = []
    subtotal: float = 0
    tax: float = 0
    shipping: float = 0
    igst_18: float = 0
    igst_28: float = 0
    bank_charges: float = 0
    duty: float = 0
    freight: float = 0
    debit_note: float = 0
    debit_note_reason: Optional[str] = None
    exchange_rate: Optional[float] = None
    total_amount: float = 0
    payment_received: float = 0
    payment_status: Optional[str] = None
    dispatch_status: Optional[str] = None
    status: Optional[str] = None
    issue_date: Optional[str] = None
    valid_until: Optional[str] = None

    missing_amount_is_zero = field_validator(
        "subtotal", "tax", "shipping", "igst_18", "igst_28", "bank_charges", "duty", "freight",
        "debit_note", "total_amount", "payment_received", mode="before",
    )(_zero_if_missing)


class PaymentRecord(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = Field(default=None, alias="_id")
    payment_id: Optional[str] = None
    proforma_invoice_id: Optional[str] = None
    amount: float = 0
    payment_exchange_rate: Optional[float] = None
    currency: Optional[str] = None
    payment_method: Optional[str] = None
    transaction_id: Optional[str] = None
    payment_date: Optional[str] = None
    proof_file_url: Optional[str] = None
    status: Optional[str] = None
    recorded_amount: Optional[float] = None
    verification_notes: Optional[str] = None
    collection_source: Optional[str] = None
    notes: Optional[str] = None

    missing_amount_is_zero = field_validator("amount", mode="before")(_zero_if_missing)


class ShippingInfo(BaseModel):
    hsn_code: Optional[str] = ""
    awb_number: Optional[str] = ""
    shipping_by: Optional[str] = ""
    notes: Optional[str] = ""


class Dispatch(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = Field(default=None, alias="_id")
    dispatch_id: Optional[str] = None
    source_type: Optional[str] = None
    source_id: Optional[str] = None
    items: List[PIItem] = []
    shipping_info: ShippingInfo = ShippingInfo()
    invoice_number: Optional[str] = None
    exchange_rate: Optional[float] = None
    dispatch_date: Optional[str] = None

    missing_shipping_info = field_validator("shipping_info", mode="before")(lambda value: value or {})


class Invoice(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = Field(default=None, alias="_id")
    invoice_number: Optional[str] = None
    proforma_invoice_id: Optional[str] = None
    customer_name: Optional[str] = None
    items: List[PIItem] = []
    subtotal: float = 0
    tax: float = 0
    shipping: float = 0
    total_amount: float = 0
    exchange_rate: Optional[float] = None
    invoice_date: Optional[str] = None
    due_date: Optional[str] = None

    missing_amount_is_zero = field_validator(
        "subtotal", "tax", "shipping", "total_amount", mode="before",
    )(_zero_if_missing)


# Computed results

class PITotals(BaseModel):
    subtotal: float
    subtotal_inr: float
    additional_charges: float
    debit_note: float
    total_amount: float
    grand_total_inr: float


class AccountStatus(BaseModel):
    total_amount: float
    payment_received: float
    payment_status: PaymentStatus
    payment_percentage: float
    remaining_amount: float
    advance_amount: float
    exchange_rate: float
    total_amount_inr: float
    payment_received_inr: float
    remaining_amount_inr: float


class DispatchSummary(BaseModel):
    invoice_subtotal: float
    invoice_tax: float
    invoice_shipping: float
    invoice_total: float
    payment_received: float
    pi_total: float
    amount_applied_to_invoice: float
    invoice_balance_due: float
    remaining_items_total: float
    advance_credit: float
    remaining_pi_due: float
    items_to_dispatch: List[Dict[str, Any]]
    tax_rate: float


# Request bodies

class AdditionalCharges(BaseModel):
    igst_18: float = 0
    igst_28: float = 0
    bank_charges: float = 0
    duty: float = 0
    freight: float = 0


class PaymentForm(BaseModel):
    amount: float
    currency: Currency = Currency.USD
    payment_method: str = "BANK_TRANSFER"
    transaction_id: str = ""
    payment_date: Optional[str] = None
    notes: str = ""
    payment_exchange_rate: Optional[float] = None
    collection_source: CollectionSource = CollectionSource.ADMIN_DIRECT
    generate_invoice: bool = False


class DispatchLine(BaseModel):
    model_config = ConfigDict(extra="allow")

    product_id: Optional[str] = None
    product_name: Optional[str] = None
    part_number: Optional[str] = None
    unit_price: float = 0
    invoice_quantity: float = 0
    original_quantity: float = 0
    hsn_code: Optional[str] = ""
    has_inventory: bool = False
    inventory_quantity: float = 0


class DispatchRequest(BaseModel):
    items: List[DispatchLine]
    shipping_info: ShippingInfo = ShippingInfo()
    generate_invoice: bool = True
    invoice_number: Optional[str] = None
    exchange_rate: Optional[float] = None
    dispatch_type: str = "STANDARD"
    dispatch_without_payment: bool = False
    project_name: Optional[str] = None


class DispatchSummaryRequest(BaseModel):
    items: List[DispatchLine]


class EditItemsRequest(BaseModel):
    items: List[PIItem]
    charges: AdditionalCharges = AdditionalCharges()
    debit_note: float = 0
    debit_note_reason: str = ""
    exchange_rate: Optional[float] = None
    valid_until: Optional[str] = None


class ExchangeRateUpdate(BaseModel):
    exchange_rate: float


class RenewRequest(BaseModel):
    validity_days: int = 30


class GenerateInvoiceRequest(BaseModel):
    custom_invoice_number: Optional[str] = None
    invoice_type: str = "TAX_INVOICE"
    invoice_date: Optional[str] = None
    due_date: Optional[str] = None
    exchange_rate: Optional[float] = None
    bank_details: Optional[Dict[str, Any]] = None
    bank_account_type: Optional[str] = None
    include_dispatch_info: bool = False
    notes: str = ""
    po_number: str = ""
    hsn_sac: str = ""
    awb_number: Optional[str] = ""
    shipping_method: str = "BYAIR"
    tax_type: str = "IGST"
    tax_rate: float = 18
    terms_preset: str = "STANDARD"


class VerifyPaymentRequest(BaseModel):
    recorded_amount: Optional[float] = None
    verification_notes: Optional[str] = None


class RejectPaymentRequest(BaseModel):
    verification_notes: Optional[str] = None


class InvoiceNumberMarkRequest(BaseModel):
    number: int
    reason: Optional[str] = None
