import logging
import re
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional

from config import settings
from finance import (
    as_amount,
    calculate_dispatch_summary,
    calculate_pi_totals,
    clamp_dispatch_quantity,
    exchange_rate_of,
    payment_amount_in_usd,
    remaining_amount,
)
from invoice_numbers import default_invoice_number
from models import (
    CollectionSource,
    Currency,
    DispatchLine,
    DispatchRequest,
    EditItemsRequest,
    GenerateInvoiceRequest,
    PaymentForm,
    PaymentRecord,
    PaymentRecordStatus,
    PaymentStatus,
    PIStatus,
)
from services.dispatches import SOURCE_PROFORMA_INVOICE

logger = logging.getLogger(__name__)

COLLECTION_SOURCE_LABELS = {
    CollectionSource.BUYER_PORTAL: "Buyer Portal",
    CollectionSource.ADMIN_DIRECT: "Admin Direct",
    CollectionSource.EMAIL: "Email",
    CollectionSource.PHONE_CALL: "Phone Call",
    CollectionSource.IN_PERSON: "In Person",
    CollectionSource.OTHER: "Other",
}

VALIDITY_PERIODS = {7: "7_DAYS", 15: "15_DAYS", 30: "30_DAYS"}


class WorkflowError(Exception):
    def __init__(self, message: str, status_code: int = 400, errors: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.errors = errors or {}


def _now():
    return datetime.now(timezone.utc)


def _require(result):
    if not result.success:
        raise WorkflowError(result.error, status_code=result.status_code or 500)
    return result.data


def pi_id_of(pi):
    return pi.get("_id") or pi.get("performa_invoice_id") or pi.get("id")


def collection_source_label(source):
    try:
        return COLLECTION_SOURCE_LABELS[CollectionSource(source)]
    except ValueError:
        return str(source)


# Payments

def start_payment_collection(pi: dict, payment_records, today: Optional[date] = None) -> dict:
    """Default collection form for a PI plus the buyer submissions still pending on it."""
    form = PaymentForm(
        amount=remaining_amount(pi),
        payment_date=(today or date.today()).isoformat(),
        payment_exchange_rate=exchange_rate_of(pi),
        collection_source=CollectionSource.ADMIN_DIRECT,
    )
    result = payment_records.get_by_proforma_invoice(pi_id_of(pi))
    pending = []
    if result.success:
        records = (result.data or {}).get("records") or []
        pending = [record for record in records if record.get("status") == PaymentRecordStatus.PENDING.value]
    else:
        logger.warning(f"Could not load payment records for PI {pi_id_of(pi)}: {result.error}")
    return {"form": form, "pending_records": pending}


def form_from_payment_record(pi: dict, record: dict, today: Optional[date] = None) -> PaymentForm:
    submitted = PaymentRecord.model_validate(record)
    payment_date = submitted.payment_date[:10] if submitted.payment_date else None
    return PaymentForm(
        amount=submitted.amount,
        currency=submitted.currency or Currency.USD,
        payment_method=submitted.payment_method or "BANK_TRANSFER",
        transaction_id=submitted.transaction_id or "",
        payment_date=payment_date or (today or date.today()).isoformat(),
        notes=submitted.notes or "",
        payment_exchange_rate=exchange_rate_of(pi),
        collection_source=CollectionSource.BUYER_PORTAL,
    )


def collect_payment(pi: dict, form: PaymentForm, payment_records, payment_record_id: Optional[str] = None, proof_file=None) -> dict:
    """Record money received against a PI.

    With ``payment_record_id`` the buyer's own submission is verified at the
    converted amount; otherwise an admin collection record is created, with
    ``proof_file`` attached when given.
    """
    if form.amount <= 0:
        raise WorkflowError("Payment amount must be greater than 0")
    if form.payment_exchange_rate is not None and form.payment_exchange_rate <= 0:
        raise WorkflowError("Exchange rate must be greater than 0")

    payment_rate = form.payment_exchange_rate or exchange_rate_of(pi)
    amount_usd = payment_amount_in_usd(form.amount, form.currency, payment_rate)
    if amount_usd <= 0:
        raise WorkflowError("Payment amount must be greater than 0")
    currency = form.currency.value

    if payment_record_id:
        record = _require(payment_records.verify(payment_record_id, {
            "recorded_amount": amount_usd,
            "verification_notes": form.notes or "Payment verified and recorded by admin",
            "payment_exchange_rate": payment_rate,
            "payment_method": form.payment_method,
            "payment_date": form.payment_date,
            "transaction_id": form.transaction_id,
            "generate_invoice": form.generate_invoice,
        }))
        message = f"Payment of {currency} {form.amount} verified and recorded!"
    else:
        if proof_file is not None and len(proof_file[1]) > settings.MAX_PROOF_FILE_SIZE:
            raise WorkflowError("File size must be less than 5MB")
        record = _require(payment_records.admin_collect({
            "proforma_invoice_id": pi_id_of(pi),
            "amount": amount_usd,
            "currency": currency,
            "transaction_id": form.transaction_id,
            "payment_method": form.payment_method,
            "payment_date": form.payment_date,
            "notes": form.notes,
            "collection_source": form.collection_source.value,
            "payment_exchange_rate": payment_rate,
        }, proof_file))
        message = f"Payment of {currency} {form.amount} collected via {collection_source_label(form.collection_source)}!"

    invoice = (record or {}).get("invoice") if isinstance(record, dict) else None
    if form.generate_invoice and invoice:
        message += f" Invoice #{invoice.get('invoice_number')} generated."

    logger.info(f"Collected {amount_usd:.2f} USD on PI {pi_id_of(pi)}")
    return {"record": record, "invoice": invoice, "amount_usd": amount_usd, "message": message}


# Dispatch

def dispatch_items(pi: dict) -> List[DispatchLine]:
    return [
        DispatchLine(
            **{
                **item,
                "invoice_quantity": item.get("quantity") or 0,
                "original_quantity": item.get("quantity") or 0,
                "hsn_code": item.get("hsn_code") or "",
                "has_inventory": bool(item.get("has_inventory")),
                "inventory_quantity": item.get("inventory_quantity") or 0,
            }
        )
        for item in pi.get("items") or []
    ]


def remove_dispatch_item(lines: List[DispatchLine], index: int) -> List[DispatchLine]:
    if not 0 <= index < len(lines):
        raise WorkflowError("Invalid item index")
    if len(lines) <= 1:
        raise WorkflowError("Cannot remove item: At least one item must remain in the invoice.")
    line = lines[index]
    if line.has_inventory:
        raise WorkflowError(
            f'Cannot remove "{line.product_name}": This product has inventory '
            f"({line.inventory_quantity:g} units available). Items with inventory cannot be removed."
        )
    return [other for i, other in enumerate(lines) if i != index]


def _clamped_lines(pi, lines):
    # The bound is the PI quantity, whatever original_quantity the caller sends
    pi_quantities = {item.get("product_id"): as_amount(item.get("quantity")) for item in pi.get("items") or []}
    clamped = []
    for line in lines:
        if line.product_id not in pi_quantities:
            raise WorkflowError(f'"{line.product_name or line.product_id}" is not on this PI')
        limit = pi_quantities[line.product_id]
        clamped.append({
            **line.model_dump(),
            "original_quantity": limit,
            "invoice_quantity": clamp_dispatch_quantity(line.invoice_quantity, limit),
        })
    return clamped


def preview_dispatch(pi: dict, lines: List[DispatchLine]):
    return calculate_dispatch_summary(pi, _clamped_lines(pi, lines))


def confirm_dispatch(pi: dict, request: DispatchRequest, dispatches, now: Optional[datetime] = None) -> dict:
    lines = _clamped_lines(pi, request.items)
    to_dispatch = [line for line in lines if line["invoice_quantity"] > 0]
    if not to_dispatch:
        raise WorkflowError("Please include at least one item with quantity greater than 0")

    summary = calculate_dispatch_summary(pi, to_dispatch)
    invoice_number = None
    if request.generate_invoice:
        invoice_number = request.invoice_number or default_invoice_number(now)

    payload = {
        "source_type": SOURCE_PROFORMA_INVOICE,
        "source_id": pi_id_of(pi),
        "items": [
            {
                "product_id": line.get("product_id"),
                "product_name": line.get("product_name"),
                "part_number": line.get("part_number"),
                "quantity": line["invoice_quantity"],
                "unit_price": line.get("unit_price"),
                "hsn_code": line.get("hsn_code") or "",
            }
            for line in to_dispatch
        ],
        "shipping_info": request.shipping_info.model_dump(),
        "dispatch_type": request.dispatch_type,
        "project_name": request.project_name if request.dispatch_without_payment else None,
        "generate_invoice": request.generate_invoice,
        "invoice_number": invoice_number,
        "exchange_rate": request.exchange_rate or exchange_rate_of(pi),
        "notes": request.shipping_info.notes,
    }
    data = _require(dispatches.create(payload)) or {}

    dispatch = data.get("dispatch") or {}
    invoice = data.get("invoice")
    fully_dispatched = bool(data.get("is_fully_dispatched"))

    message = f"Dispatch {dispatch.get('dispatch_id')} created successfully!"
    if invoice:
        message += f" Invoice {invoice.get('invoice_number')} generated."
    if not fully_dispatched:
        message += " (Partial dispatch - remaining items pending)"

    logger.info(f"Dispatched {len(to_dispatch)} item(s) from PI {pi_id_of(pi)}")
    return {
        "dispatch": dispatch,
        "invoice": invoice,
        "is_fully_dispatched": fully_dispatched,
        "summary": summary,
        "message": message,
    }


# Editing

def add_product(items, product):
    items = [dict(item) for item in items]
    for item in items:
        if item.get("product_id") == product.get("product_id"):
            item["quantity"] = as_amount(item.get("quantity")) + 1
            item["total_price"] = item["quantity"] * as_amount(item.get("unit_price"))
            return items
    price = as_amount(product.get("your_price") or product.get("list_price"))
    items.append({
        "product_id": product.get("product_id"),
        "part_number": product.get("part_number"),
        "product_name": product.get("product_name"),
        "quantity": 1,
        "unit_price": price,
        "total_price": price,
    })
    return items


def validate_items(items):
    errors = {}
    for index, item in enumerate(items):
        if as_amount(item.get("quantity")) <= 0:
            errors[f"qty_{index}"] = "Quantity must be > 0"
        if as_amount(item.get("unit_price")) < 0:
            errors[f"price_{index}"] = "Price cannot be negative"
    return errors


def save_edited_items(pi: dict, request: EditItemsRequest, proforma_invoices, now: Optional[datetime] = None, edited_by: str = "admin") -> dict:
    items = [item.model_dump(exclude_none=True) for item in request.items]
    if not items:
        raise WorkflowError("PI must have at least one item")
    errors = validate_items(items)
    if errors:
        raise WorkflowError("Invalid items", errors=errors)

    now = now or _now()
    rate = request.exchange_rate or exchange_rate_of(pi)
    charges = request.charges.model_dump()
    totals = calculate_pi_totals(items, charges, request.debit_note, rate)

    changes = {
        "items": [
            {
                "product_id": item.get("product_id"),
                "part_number": item.get("part_number"),
                "product_name": item.get("product_name"),
                "quantity": item["quantity"],
                "unit_price": item["unit_price"],
                "total_price": item["quantity"] * item["unit_price"],
            }
            for item in items
        ],
        "subtotal": totals.subtotal,
        "subtotal_inr": totals.subtotal_inr,
        "igst_18": charges["igst_18"],
        "igst_28": charges["igst_28"],
        "bank_charges": charges["bank_charges"],
        "duty": charges["duty"],
        "custom_duty": charges["duty"],
        "freight": charges["freight"],
        "logistic_charges": charges["freight"],
        "debit_note": totals.debit_note,
        "debit_note_reason": request.debit_note_reason,
        "total_amount": totals.total_amount,
        "grand_total_inr": totals.grand_total_inr,
        "exchange_rate": rate,
        "valid_until": request.valid_until or pi.get("valid_until"),
        "last_edited": now.isoformat(),
        "last_sent_date": now.isoformat(),
        "edit_history": [
            *(pi.get("edit_history") or []),
            {
                "edited_at": now.isoformat(),
                "edited_by": edited_by,
                "changes": "Items updated and sent to buyer",
                "previous_total": pi.get("total_amount"),
                "new_total": totals.total_amount,
            },
        ],
    }
    _require(proforma_invoices.update(pi_id_of(pi), changes))
    logger.info(f"PI {pi_id_of(pi)} items updated, total {pi.get('total_amount')} -> {totals.total_amount}")
    return {**pi, **changes}


def update_exchange_rate(pi: dict, new_rate: float, proforma_invoices, now: Optional[datetime] = None, changed_by: str = "admin") -> dict:
    if not new_rate or new_rate <= 0:
        raise WorkflowError("Exchange rate must be greater than 0")
    now = now or _now()
    _require(proforma_invoices.update(pi_id_of(pi), {"exchange_rate": new_rate}))
    return {
        **pi,
        "exchange_rate": new_rate,
        "exchange_rate_history": [
            *(pi.get("exchange_rate_history") or []),
            {
                "previous_rate": pi.get("exchange_rate"),
                "new_rate": new_rate,
                "changed_at": now.isoformat(),
                "changed_by": changed_by,
            },
        ],
    }


# Lifecycle

def renew_pi(pi: dict, validity_days: int, proforma_invoices, now: Optional[datetime] = None, renewed_by: str = "admin") -> dict:
    """Extend the validity of a PI and put it back to PENDING."""
    if validity_days not in VALIDITY_PERIODS:
        raise WorkflowError("Validity must be 7, 15 or 30 days")
    now = now or _now()
    valid_until = (now + timedelta(days=validity_days)).isoformat()
    changes = {
        "valid_until": valid_until,
        "validity_period": VALIDITY_PERIODS[validity_days],
        "status": PIStatus.PENDING.value,
        "renewal_count": (pi.get("renewal_count") or 0) + 1,
        "last_renewed": now.isoformat(),
        "renewal_history": [
            *(pi.get("renewal_history") or []),
            {
                "renewed_at": now.isoformat(),
                "previous_valid_until": pi.get("valid_until"),
                "new_valid_until": valid_until,
                "renewed_by": renewed_by,
            },
        ],
    }
    _require(proforma_invoices.update(pi_id_of(pi), changes))
    return {**pi, **changes}


def reactivate_pi(pi: dict, proforma_invoices, now: Optional[datetime] = None, reactivated_by: str = "admin") -> dict:
    now = now or _now()
    valid_until = (now + timedelta(days=settings.DEFAULT_VALIDITY_DAYS)).isoformat()
    changes = {
        "status": PIStatus.APPROVED.value,
        "valid_until": valid_until,
        "validity_period": VALIDITY_PERIODS[30],
        "reactivated_at": now.isoformat(),
        "reactivation_history": [
            *(pi.get("reactivation_history") or []),
            {
                "reactivated_at": now.isoformat(),
                "previous_status": pi.get("status"),
                "previous_valid_until": pi.get("valid_until"),
                "new_valid_until": valid_until,
                "reactivated_by": reactivated_by,
            },
        ],
    }
    _require(proforma_invoices.update(pi_id_of(pi), changes))
    return {**pi, **changes}


def clone_pi(pi, proforma_invoices):
    pi_id = pi_id_of(pi)
    # Ids of the form PI-xxxx were never saved to the remote API
    if not pi_id or str(pi_id).startswith("PI-"):
        raise WorkflowError("Cannot clone this PI - invalid ID. Please save it to database first.")
    data = _require(proforma_invoices.clone(pi_id)) or {}
    cloned = data.get("proforma") or {}
    return {"proforma": cloned, "message": f"PI cloned successfully! New PI: {cloned.get('proforma_number')}"}


def approve_pi(pi_id, proforma_invoices):
    return _require(proforma_invoices.approve(pi_id))


def reject_pi(pi_id, proforma_invoices):
    return _require(proforma_invoices.reject(pi_id))


# Invoicing

def generate_invoice(pi: dict, request: GenerateInvoiceRequest, invoices, now: Optional[datetime] = None) -> dict:
    """Raise the final invoice of a fully paid PI.

    Returns the PI fields to update. When the remote API reports the invoice
    already exists, the PI is marked as invoiced under the number it names.
    """
    if pi.get("payment_status") != PaymentStatus.PAID.value:
        raise WorkflowError("Invoice can only be generated after full payment is received.")
    if pi.get("invoice_generated"):
        raise WorkflowError("Invoice has already been generated for this PI.", status_code=409)

    now = now or _now()
    pi_id = pi_id_of(pi)
    payload = request.model_dump()
    payload.update({
        "proforma_invoice_id": pi_id,
        "custom_invoice_number": request.custom_invoice_number or default_invoice_number(now),
        "invoice_date": request.invoice_date or now.date().isoformat(),
        "due_date": request.due_date or (now + timedelta(days=settings.INVOICE_DUE_DAYS)).date().isoformat(),
        "exchange_rate": request.exchange_rate or exchange_rate_of(pi),
    })

    result = invoices.create_from_pi(payload)
    if not result.success:
        if result.error and "already exists" in result.error:
            existing = _existing_invoice_number(result.error)
            logger.info(f"Invoice {existing} already exists for PI {pi_id}")
            return {"invoice_generated": True, "invoice_number": existing, "already_exists": True}
        raise WorkflowError(result.error, status_code=result.status_code or 500)

    invoice = (result.data or {}).get("invoice") or result.data or {}
    invoice_id = invoice.get("_id") or invoice.get("invoice_id")
    return {
        "invoice_generated": True,
        "invoice_id": invoice_id,
        "invoice_number": invoice.get("invoice_number"),
        "invoices_generated": [
            *(pi.get("invoices_generated") or []),
            {
                "invoice_id": invoice_id,
                "invoice_number": invoice.get("invoice_number"),
                "total": invoice.get("total_amount"),
                "items_count": len(invoice.get("items") or pi.get("items") or []),
                "created_at": invoice.get("created_at") or now.isoformat(),
            },
        ],
        "already_exists": False,
    }


def _existing_invoice_number(error):
    match = re.search(r"Invoice (INV-\d+) already exists", error)
    return match.group(1) if match else "Generated"
