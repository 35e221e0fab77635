import os
from io import BytesIO

from jinja2 import Environment, FileSystemLoader, select_autoescape
from xhtml2pdf import pisa

from config import settings
from finance import (
    additional_charges,
    amount_in_words,
    as_amount,
    calculate_subtotal,
    charges_of,
    exchange_rate_of,
    line_total,
    remaining_amount,
    to_inr,
)
from models import Dispatch, Invoice, ProformaInvoice

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

env = Environment(
    loader=FileSystemLoader(os.path.join(BASE_DIR, "templates")),
    autoescape=select_autoescape(["html"]),
)


def format_currency(value) -> str:
    return f"{as_amount(value):,.2f}"


env.filters["money"] = format_currency


def _company():
    return {
        "name": settings.COMPANY_NAME,
        "address": settings.COMPANY_ADDRESS,
        "gstin": settings.COMPANY_GSTIN,
        "iec": settings.COMPANY_IEC,
    }


def _bank(bank_details: dict = None):
    if bank_details:
        return bank_details
    return {
        "bankName": settings.BANK_NAME,
        "branch": settings.BANK_BRANCH,
        "accountNo": settings.BANK_ACCOUNT_NO,
        "ifsc": settings.BANK_IFSC,
    }


def _lines(items, rate):
    lines = []
    for item in items:
        total = line_total(item)
        lines.append({
            **item,
            "description": item.get("product_name") or item.get("description") or "",
            "uom": item.get("uom") or "EA",
            "line_total": total,
            "line_total_inr": to_inr(total, rate),
        })
    return lines


def render_proforma_invoice(pi: dict, bank_details: dict = None) -> str:
    doc = ProformaInvoice.model_validate(pi)
    rate = exchange_rate_of(pi)
    items = [item.model_dump() for item in doc.items]
    subtotal = calculate_subtotal(items)
    charges = charges_of(pi)
    grand_total = doc.total_amount or subtotal + doc.tax + doc.shipping
    grand_total_inr = to_inr(grand_total, rate)
    template = env.get_template("proforma_invoice.html")
    return template.render(
        pi=doc,
        company=_company(),
        bank=_bank(bank_details),
        items=_lines(items, rate),
        total_quantity=sum(as_amount(item.get("quantity")) for item in items),
        exchange_rate=rate,
        subtotal=subtotal,
        subtotal_inr=to_inr(subtotal, rate),
        charges={name: to_inr(value, rate) for name, value in charges.items()},
        charges_total_inr=to_inr(additional_charges(charges), rate),
        debit_note_inr=to_inr(doc.debit_note, rate),
        grand_total=grand_total,
        grand_total_inr=grand_total_inr,
        amount_words=amount_in_words(grand_total_inr),
        balance_due=remaining_amount(pi),
    )


def render_invoice(invoice: dict, bank_details: dict = None) -> str:
    doc = Invoice.model_validate(invoice)
    rate = exchange_rate_of(invoice)
    items = [item.model_dump() for item in doc.items]
    subtotal = doc.subtotal or calculate_subtotal(items)
    total = doc.total_amount or subtotal + doc.tax + doc.shipping
    total_inr = to_inr(total, rate)
    template = env.get_template("invoice.html")
    return template.render(
        invoice=doc,
        company=_company(),
        bank=_bank(bank_details),
        items=_lines(items, rate),
        exchange_rate=rate,
        subtotal=subtotal,
        total=total,
        total_inr=total_inr,
        amount_words=amount_in_words(total_inr),
    )


def render_dispatch(dispatch: dict, pi: dict = None) -> str:
    doc = Dispatch.model_validate(dispatch)
    rate = exchange_rate_of(dispatch)
    items = [item.model_dump() for item in doc.items]
    template = env.get_template("dispatch.html")
    return template.render(
        dispatch=doc,
        pi=pi or {},
        company=_company(),
        items=_lines(items, rate),
        total_quantity=sum(as_amount(item.get("quantity")) for item in items),
        exchange_rate=rate,
        total=calculate_subtotal(items),
    )


def generate_pdf(html_content: str) -> bytes:
    pdf_buffer = BytesIO()

    result = pisa.CreatePDF(
        src=html_content,
        dest=pdf_buffer,
        encoding="utf-8"
    )

    if result.err:
        raise RuntimeError("Failed to generate PDF")

    return pdf_buffer.getvalue()
