from fastapi import FastAPI, HTTPException, Depends, File, Form, UploadFile, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, StreamingResponse
from io import BytesIO
from typing import Optional
from config import settings
from models import (
    DispatchRequest,
    DispatchSummaryRequest,
    EditItemsRequest,
    ExchangeRateUpdate,
    GenerateInvoiceRequest,
    InvoiceNumberMarkRequest,
    PaymentForm,
    RejectPaymentRequest,
    RenewRequest,
    VerifyPaymentRequest,
)
from database import get_db, init_db, get_auth_token, set_auth_token, clear_auth_token, mark_invoice_number, SessionLocal, USED, SKIPPED, RESERVED
from api_client import ApiClient
from services import DispatchesService, InvoicesService, PaymentRecordsService, ProformaInvoicesService
from services.dispatches import SOURCE_PROFORMA_INVOICE
from finance import account_status
from invoice_numbers import next_invoice_number
import pi_listing
import print_preview
import workflows
from workflows import WorkflowError
from sqlalchemy.orm import Session
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_PREFIX}/openapi.json"
)

# Initialize database and seed the remote API token if one is configured
init_db()
if settings.API_AUTH_TOKEN:
    with SessionLocal() as db:
        if not get_auth_token(db):
            set_auth_token(db, settings.API_AUTH_TOKEN)

# Enable CORS
origins = [origin for origin in settings.ORIGINS.split(",") if origin]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(WorkflowError)
async def workflow_error_handler(request: Request, exc: WorkflowError):
    content = {"detail": exc.message}
    if exc.errors:
        content["errors"] = exc.errors
    return JSONResponse(status_code=exc.status_code, content=content)


def get_api_client(db: Session = Depends(get_db)):
    """Remote API client authenticated with the stored token"""
    return ApiClient(
        token_provider=lambda: get_auth_token(db),
        on_unauthorized=lambda: clear_auth_token(db),
    )


def _data(result):
    if not result.success:
        raise HTTPException(status_code=result.status_code or 500, detail=result.error)
    return result.data


def _load_pi(pi_id: str, client: ApiClient) -> dict:
    data = _data(ProformaInvoicesService(client).get_by_id(pi_id)) or {}
    pi = data.get("proformaInvoice") or data
    if not pi:
        raise HTTPException(status_code=404, detail="Proforma invoice not found")
    return pi


def _pi_list(data) -> list:
    if isinstance(data, dict):
        return data.get("proformaInvoices") or []
    return data or []


def _pdf_response(html: str, filename: str):
    try:
        pdf = print_preview.generate_pdf(html)
    except RuntimeError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return StreamingResponse(
        BytesIO(pdf),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# Proforma invoices

@app.get(f"{settings.API_V1_PREFIX}/proforma-invoices")
async def list_proforma_invoices(
    tab: str = pi_listing.TAB_ALL,
    search: Optional[str] = None,
    status: Optional[str] = None,
    dispatched: Optional[str] = None,
    sort_by: str = "issue_date",
    sort_order: str = "desc",
    page: int = 0,
    rows_per_page: int = 10,
    client: ApiClient = Depends(get_api_client),
):
    if tab not in pi_listing.TABS:
        raise HTTPException(status_code=400, detail=f"Unknown tab: {tab}")
    pis = _pi_list(_data(ProformaInvoicesService(client).get_all()))
    filtered = pi_listing.filter_pis(pis, tab, search, status, dispatched)
    try:
        filtered = pi_listing.sort_pis(filtered, sort_by, sort_order)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "proformaInvoices": pi_listing.paginate(filtered, page, rows_per_page),
        "total": len(filtered),
        "counts": pi_listing.tab_counts(pis),
        "statistics": pi_listing.statistics(pis),
    }


@app.get(f"{settings.API_V1_PREFIX}/proforma-invoices/{{pi_id}}")
async def get_proforma_invoice(pi_id: str, client: ApiClient = Depends(get_api_client)):
    return _load_pi(pi_id, client)


@app.get(f"{settings.API_V1_PREFIX}/proforma-invoices/{{pi_id}}/account")
async def get_account_summary(pi_id: str, client: ApiClient = Depends(get_api_client)):
    pi = _load_pi(pi_id, client)
    records = PaymentRecordsService(client).get_by_proforma_invoice(pi_id)
    return {
        "account": account_status(pi),
        "payment_records": (records.data or {}).get("records") or [],
    }


@app.put(f"{settings.API_V1_PREFIX}/proforma-invoices/{{pi_id}}/items")
async def edit_items(pi_id: str, request: EditItemsRequest, client: ApiClient = Depends(get_api_client)):
    pi = _load_pi(pi_id, client)
    proforma = workflows.save_edited_items(pi, request, ProformaInvoicesService(client))
    return {"message": "PI updated successfully", "proforma": proforma}


@app.put(f"{settings.API_V1_PREFIX}/proforma-invoices/{{pi_id}}/exchange-rate")
async def change_exchange_rate(pi_id: str, request: ExchangeRateUpdate, client: ApiClient = Depends(get_api_client)):
    pi = _load_pi(pi_id, client)
    proforma = workflows.update_exchange_rate(pi, request.exchange_rate, ProformaInvoicesService(client))
    return {"message": f"Exchange rate updated to {request.exchange_rate}", "proforma": proforma}


@app.post(f"{settings.API_V1_PREFIX}/proforma-invoices/{{pi_id}}/renew")
async def renew(pi_id: str, request: RenewRequest, client: ApiClient = Depends(get_api_client)):
    pi = _load_pi(pi_id, client)
    proforma = workflows.renew_pi(pi, request.validity_days, ProformaInvoicesService(client))
    return {"message": f"PI renewed for {request.validity_days} days", "proforma": proforma}


@app.post(f"{settings.API_V1_PREFIX}/proforma-invoices/{{pi_id}}/reactivate")
async def reactivate(pi_id: str, client: ApiClient = Depends(get_api_client)):
    pi = _load_pi(pi_id, client)
    proforma = workflows.reactivate_pi(pi, ProformaInvoicesService(client))
    return {"message": "PI reactivated", "proforma": proforma}


@app.post(f"{settings.API_V1_PREFIX}/proforma-invoices/{{pi_id}}/clone")
async def clone(pi_id: str, client: ApiClient = Depends(get_api_client)):
    pi = _load_pi(pi_id, client)
    return workflows.clone_pi(pi, ProformaInvoicesService(client))


@app.put(f"{settings.API_V1_PREFIX}/proforma-invoices/{{pi_id}}/approve")
async def approve(pi_id: str, client: ApiClient = Depends(get_api_client)):
    return {"message": "PI approved", "proforma": workflows.approve_pi(pi_id, ProformaInvoicesService(client))}


@app.put(f"{settings.API_V1_PREFIX}/proforma-invoices/{{pi_id}}/reject")
async def reject(pi_id: str, client: ApiClient = Depends(get_api_client)):
    return {"message": "PI rejected", "proforma": workflows.reject_pi(pi_id, ProformaInvoicesService(client))}


# Payments

@app.get(f"{settings.API_V1_PREFIX}/proforma-invoices/{{pi_id}}/payments/new")
async def new_payment(pi_id: str, client: ApiClient = Depends(get_api_client)):
    pi = _load_pi(pi_id, client)
    return workflows.start_payment_collection(pi, PaymentRecordsService(client))


@app.get(f"{settings.API_V1_PREFIX}/proforma-invoices/{{pi_id}}/payments/from-record/{{record_id}}")
async def payment_form_from_record(pi_id: str, record_id: str, client: ApiClient = Depends(get_api_client)):
    pi = _load_pi(pi_id, client)
    record = _data(PaymentRecordsService(client).get_by_id(record_id)) or {}
    return workflows.form_from_payment_record(pi, record)


@app.post(f"{settings.API_V1_PREFIX}/proforma-invoices/{{pi_id}}/payments")
async def collect_payment(
    pi_id: str,
    amount: float = Form(...),
    currency: str = Form("USD"),
    payment_method: str = Form("BANK_TRANSFER"),
    transaction_id: str = Form(""),
    payment_date: Optional[str] = Form(None),
    notes: str = Form(""),
    payment_exchange_rate: Optional[float] = Form(None),
    collection_source: str = Form("ADMIN_DIRECT"),
    generate_invoice: bool = Form(False),
    payment_record_id: Optional[str] = Form(None),
    proof_file: Optional[UploadFile] = File(None),
    client: ApiClient = Depends(get_api_client),
):
    pi = _load_pi(pi_id, client)
    try:
        form = PaymentForm(
            amount=amount,
            currency=currency,
            payment_method=payment_method,
            transaction_id=transaction_id,
            payment_date=payment_date,
            notes=notes,
            payment_exchange_rate=payment_exchange_rate,
            collection_source=collection_source,
            generate_invoice=generate_invoice,
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    proof = None
    if proof_file is not None and proof_file.filename:
        proof = (proof_file.filename, await proof_file.read(), proof_file.content_type)

    return workflows.collect_payment(pi, form, PaymentRecordsService(client), payment_record_id, proof)


@app.get(f"{settings.API_V1_PREFIX}/payment-records")
async def list_payment_records(page: int = 1, limit: int = 20, status: Optional[str] = None, client: ApiClient = Depends(get_api_client)):
    params = {"page": page, "limit": limit}
    if status:
        params["status"] = status
    result = PaymentRecordsService(client).get_all(params)
    return {"records": _data(result), "pagination": result.pagination}


@app.get(f"{settings.API_V1_PREFIX}/payment-records/pending")
async def list_pending_payment_records(page: int = 1, limit: int = 20, client: ApiClient = Depends(get_api_client)):
    result = PaymentRecordsService(client).get_pending({"page": page, "limit": limit})
    return {"records": _data(result), "pagination": result.pagination}


@app.put(f"{settings.API_V1_PREFIX}/payment-records/{{record_id}}/verify")
async def verify_payment_record(record_id: str, request: VerifyPaymentRequest, client: ApiClient = Depends(get_api_client)):
    record = _data(PaymentRecordsService(client).verify(record_id, request.model_dump(exclude_none=True)))
    return {"message": "Payment verified", "record": record}


@app.put(f"{settings.API_V1_PREFIX}/payment-records/{{record_id}}/reject")
async def reject_payment_record(record_id: str, request: RejectPaymentRequest, client: ApiClient = Depends(get_api_client)):
    record = _data(PaymentRecordsService(client).reject(record_id, request.model_dump(exclude_none=True)))
    return {"message": "Payment rejected", "record": record}


# Dispatch

@app.get(f"{settings.API_V1_PREFIX}/proforma-invoices/{{pi_id}}/dispatch/items")
async def get_dispatch_items(pi_id: str, client: ApiClient = Depends(get_api_client)):
    pi = _load_pi(pi_id, client)
    return {"items": workflows.dispatch_items(pi)}


@app.post(f"{settings.API_V1_PREFIX}/proforma-invoices/{{pi_id}}/dispatch/summary")
async def dispatch_summary(pi_id: str, request: DispatchSummaryRequest, client: ApiClient = Depends(get_api_client)):
    pi = _load_pi(pi_id, client)
    return workflows.preview_dispatch(pi, request.items)


@app.post(f"{settings.API_V1_PREFIX}/proforma-invoices/{{pi_id}}/dispatch")
async def confirm_dispatch(pi_id: str, request: DispatchRequest, client: ApiClient = Depends(get_api_client)):
    pi = _load_pi(pi_id, client)
    return workflows.confirm_dispatch(pi, request, DispatchesService(client))


@app.get(f"{settings.API_V1_PREFIX}/proforma-invoices/{{pi_id}}/dispatches")
async def list_pi_dispatches(pi_id: str, client: ApiClient = Depends(get_api_client)):
    return _data(DispatchesService(client).get_by_source(SOURCE_PROFORMA_INVOICE, pi_id))


# Invoices

@app.post(f"{settings.API_V1_PREFIX}/proforma-invoices/{{pi_id}}/invoice")
async def generate_invoice(
    pi_id: str,
    request: GenerateInvoiceRequest,
    client: ApiClient = Depends(get_api_client),
    db: Session = Depends(get_db),
):
    pi = _load_pi(pi_id, client)
    series_number = None
    if not request.custom_invoice_number:
        series_number = next_invoice_number(db)
        request.custom_invoice_number = series_number["invoice_number"]

    outcome = workflows.generate_invoice(pi, request, InvoicesService(client))
    if series_number and not outcome["already_exists"]:
        mark_invoice_number(db, series_number["number"], USED)

    changes = {key: value for key, value in outcome.items() if key != "already_exists"}
    _data(ProformaInvoicesService(client).update(pi_id, changes))
    if outcome["already_exists"]:
        message = f"Invoice {outcome['invoice_number']} already exists for this PI"
    else:
        message = f"Invoice {outcome['invoice_number']} generated successfully!"
    return {"message": message, **outcome}


@app.get(f"{settings.API_V1_PREFIX}/invoice-series/next")
async def get_next_invoice_number(db: Session = Depends(get_db)):
    return next_invoice_number(db)


def _mark(db: Session, request: InvoiceNumberMarkRequest, kind: str):
    try:
        mark = mark_invoice_number(db, request.number, kind, request.reason)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"number": mark.number, "kind": mark.kind, "reason": mark.reason}


@app.post(f"{settings.API_V1_PREFIX}/invoice-series/reserve")
async def reserve_invoice_number(request: InvoiceNumberMarkRequest, db: Session = Depends(get_db)):
    return _mark(db, request, RESERVED)


@app.post(f"{settings.API_V1_PREFIX}/invoice-series/skip")
async def skip_invoice_number(request: InvoiceNumberMarkRequest, db: Session = Depends(get_db)):
    return _mark(db, request, SKIPPED)


# Print preview

@app.get(f"{settings.API_V1_PREFIX}/proforma-invoices/{{pi_id}}/preview", response_class=HTMLResponse)
async def preview_proforma_invoice(pi_id: str, client: ApiClient = Depends(get_api_client)):
    return print_preview.render_proforma_invoice(_load_pi(pi_id, client))


@app.get(f"{settings.API_V1_PREFIX}/proforma-invoices/{{pi_id}}/pdf")
async def download_proforma_invoice(pi_id: str, client: ApiClient = Depends(get_api_client)):
    pi = _load_pi(pi_id, client)
    html = print_preview.render_proforma_invoice(pi)
    return _pdf_response(html, f"{pi.get('performa_invoice_number') or pi_id}.pdf")


def _load_invoice(invoice_id: str, client: ApiClient) -> dict:
    invoice = _data(InvoicesService(client).get_by_id(invoice_id))
    if not invoice:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return invoice


@app.get(f"{settings.API_V1_PREFIX}/invoices/{{invoice_id}}/preview", response_class=HTMLResponse)
async def preview_invoice(invoice_id: str, client: ApiClient = Depends(get_api_client)):
    return print_preview.render_invoice(_load_invoice(invoice_id, client))


@app.get(f"{settings.API_V1_PREFIX}/invoices/{{invoice_id}}/pdf")
async def download_invoice(invoice_id: str, client: ApiClient = Depends(get_api_client)):
    invoice = _load_invoice(invoice_id, client)
    html = print_preview.render_invoice(invoice)
    return _pdf_response(html, f"{invoice.get('invoice_number') or invoice_id}.pdf")


def _load_dispatch(dispatch_id: str, client: ApiClient):
    data = _data(DispatchesService(client).get_by_id(dispatch_id)) or {}
    dispatch = data.get("dispatch") or data
    if not dispatch:
        raise HTTPException(status_code=404, detail="Dispatch not found")
    pi = None
    if dispatch.get("source_type") == SOURCE_PROFORMA_INVOICE and dispatch.get("source_id"):
        result = ProformaInvoicesService(client).get_by_id(dispatch["source_id"])
        if result.success:
            pi = (result.data or {}).get("proformaInvoice") or result.data
    return dispatch, pi


@app.get(f"{settings.API_V1_PREFIX}/dispatches/{{dispatch_id}}/preview", response_class=HTMLResponse)
async def preview_dispatch(dispatch_id: str, client: ApiClient = Depends(get_api_client)):
    dispatch, pi = _load_dispatch(dispatch_id, client)
    return print_preview.render_dispatch(dispatch, pi)


@app.get(f"{settings.API_V1_PREFIX}/dispatches/{{dispatch_id}}/pdf")
async def download_dispatch(dispatch_id: str, client: ApiClient = Depends(get_api_client)):
    dispatch, pi = _load_dispatch(dispatch_id, client)
    html = print_preview.render_dispatch(dispatch, pi)
    return _pdf_response(html, f"{dispatch.get('dispatch_id') or dispatch_id}.pdf")


@app.get("/")
async def root():
    return {"message": "PI Desk API is running"}
