from typing import Iterable, Optional

from config import settings
from models import AccountStatus, Currency, DispatchSummary, PaymentStatus, PITotals

CHARGE_FIELDS = ("igst_18", "igst_28", "bank_charges", "duty", "freight")

# Older PIs store duty and freight under these names
CHARGE_ALIASES = {"duty": "custom_duty", "freight": "logistic_charges"}


def as_amount(value):
    if value is None or value == "":
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def exchange_rate_of(doc: Optional[dict]) -> float:
    rate = as_amount((doc or {}).get("exchange_rate"))
    return rate if rate > 0 else settings.DEFAULT_EXCHANGE_RATE


def to_inr(amount, rate):
    return as_amount(amount) * as_amount(rate)


def line_total(item):
    return as_amount(item.get("quantity")) * as_amount(item.get("unit_price"))


def calculate_subtotal(items):
    return sum(line_total(item) for item in items)


def charges_of(pi):
    charges = {}
    for field in CHARGE_FIELDS:
        value = pi.get(field)
        if not value and field in CHARGE_ALIASES:
            value = pi.get(CHARGE_ALIASES[field])
        charges[field] = as_amount(value)
    return charges


def additional_charges(charges):
    return sum(as_amount(charges.get(field)) for field in CHARGE_FIELDS)


def calculate_total(subtotal, charges, debit_note):
    return as_amount(subtotal) + additional_charges(charges) - as_amount(debit_note)


def calculate_pi_totals(items: Iterable[dict], charges: dict, debit_note, exchange_rate) -> PITotals:
    items = list(items)
    subtotal = calculate_subtotal(items)
    total = calculate_total(subtotal, charges, debit_note)
    return PITotals(
        subtotal=subtotal,
        subtotal_inr=to_inr(subtotal, exchange_rate),
        additional_charges=additional_charges(charges),
        debit_note=as_amount(debit_note),
        total_amount=total,
        grand_total_inr=to_inr(total, exchange_rate),
    )


def payment_amount_in_usd(amount, currency, payment_exchange_rate):
    # INR is converted at the rate agreed at payment time
    amount = as_amount(amount)
    if currency == Currency.USD:
        return amount
    rate = as_amount(payment_exchange_rate) or settings.DEFAULT_EXCHANGE_RATE
    return amount / rate


def payment_percentage(pi: dict) -> float:
    total = as_amount(pi.get("total_amount"))
    if total == 0:
        return 0.0
    return min(100.0, as_amount(pi.get("payment_received")) / total * 100)


def remaining_amount(pi: dict) -> float:
    return max(0.0, as_amount(pi.get("total_amount")) - as_amount(pi.get("payment_received")))


def advance_amount(pi):
    return max(0.0, as_amount(pi.get("payment_received")) - as_amount(pi.get("total_amount")))


def derive_payment_status(total_amount, payment_received) -> PaymentStatus:
    total = as_amount(total_amount)
    received = as_amount(payment_received)
    if received <= 0:
        return PaymentStatus.UNPAID
    if received >= total:
        return PaymentStatus.PAID
    return PaymentStatus.PARTIAL


def account_status(pi: dict) -> AccountStatus:
    rate = exchange_rate_of(pi)
    total = as_amount(pi.get("total_amount"))
    received = as_amount(pi.get("payment_received"))
    remaining = remaining_amount(pi)
    stored_status = pi.get("payment_status")
    if stored_status not in {status.value for status in PaymentStatus}:
        stored_status = derive_payment_status(total, received)
    return AccountStatus(
        total_amount=total,
        payment_received=received,
        payment_status=stored_status,
        payment_percentage=payment_percentage(pi),
        remaining_amount=remaining,
        advance_amount=advance_amount(pi),
        exchange_rate=rate,
        total_amount_inr=to_inr(total, rate),
        payment_received_inr=to_inr(received, rate),
        remaining_amount_inr=to_inr(remaining, rate),
    )


def total_due(pis):
    return sum(remaining_amount(pi) for pi in pis)


def clamp_dispatch_quantity(quantity, limit):
    return max(0.0, min(as_amount(quantity), as_amount(limit)))


def effective_tax_rate(pi: dict) -> float:
    tax = as_amount(pi.get("tax"))
    subtotal = as_amount(pi.get("subtotal"))
    if tax and subtotal:
        return tax / subtotal * 100
    return settings.DEFAULT_TAX_RATE


def calculate_dispatch_summary(pi: dict, items: Iterable[dict]) -> DispatchSummary:
    """How the money received on a PI lands on one dispatch.

    Items are dispatch lines carrying ``invoice_quantity``. Payment is applied
    to this dispatch's invoice first; whatever exceeds it is advance credit
    against the items not dispatched yet.
    """
    items_to_dispatch = [item for item in items if as_amount(item.get("invoice_quantity")) > 0]
    invoice_subtotal = sum(
        as_amount(item.get("unit_price")) * as_amount(item.get("invoice_quantity")) for item in items_to_dispatch
    )
    tax_rate = effective_tax_rate(pi)
    invoice_tax = invoice_subtotal * tax_rate / 100
    invoice_shipping = as_amount(pi.get("shipping"))
    invoice_total = invoice_subtotal + invoice_tax + invoice_shipping

    payment_received = as_amount(pi.get("payment_received"))
    pi_total = as_amount(pi.get("total_amount"))

    amount_applied = min(payment_received, invoice_total)
    remaining_items_total = pi_total - invoice_total
    advance_credit = max(0.0, payment_received - invoice_total)

    return DispatchSummary(
        invoice_subtotal=invoice_subtotal,
        invoice_tax=invoice_tax,
        invoice_shipping=invoice_shipping,
        invoice_total=invoice_total,
        payment_received=payment_received,
        pi_total=pi_total,
        amount_applied_to_invoice=amount_applied,
        invoice_balance_due=max(0.0, invoice_total - amount_applied),
        remaining_items_total=remaining_items_total,
        advance_credit=advance_credit,
        remaining_pi_due=max(0.0, remaining_items_total - advance_credit),
        items_to_dispatch=items_to_dispatch,
        tax_rate=tax_rate,
    )


ONES = (
    "", "One", "Two", "Three", "Four", "Five", "Six", "Seven", "Eight", "Nine", "Ten",
    "Eleven", "Twelve", "Thirteen", "Fourteen", "Fifteen", "Sixteen", "Seventeen",
    "Eighteen", "Nineteen",
)
TENS = ("", "", "Twenty", "Thirty", "Forty", "Fifty", "Sixty", "Seventy", "Eighty", "Ninety")


def _below_thousand(number):
    words = []
    if number >= 100:
        words.append(f"{ONES[number // 100]} Hundred")
        number %= 100
    if number >= 20:
        words.append(TENS[number // 10] + (f" {ONES[number % 10]}" if number % 10 else ""))
    elif number:
        words.append(ONES[number])
    return " ".join(words)


def number_to_words(number: int) -> str:
    """Indian numbering: crore, lakh, thousand."""
    if number == 0:
        return "Zero"
    words = []
    for divisor, label in ((10_000_000, "Crore"), (100_000, "Lakh"), (1000, "Thousand")):
        if number >= divisor:
            words.append(f"{number_to_words(number // divisor)} {label}")
            number %= divisor
    if number:
        words.append(_below_thousand(number))
    return " ".join(words)


def amount_in_words(amount, currency_word: str = "Rupees", fraction_word: str = "Paisa") -> str:
    cents = round(as_amount(amount) * 100)
    whole, fraction = divmod(cents, 100)
    text = f"{currency_word} {number_to_words(whole)}"
    if fraction:
        text += f" and {number_to_words(fraction)} {fraction_word}"
    return f"{text} Only"
