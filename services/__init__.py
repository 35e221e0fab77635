from services.base import ServiceResult
from services.auth import AuthService
from services.dispatches import DispatchesService
from services.invoices import InvoicesService
from services.payment_records import PaymentRecordsService
from services.proforma_invoices import ProformaInvoicesService

__all__ = [
    "ServiceResult",
    "AuthService",
    "DispatchesService",
    "InvoicesService",
    "PaymentRecordsService",
    "ProformaInvoicesService",
]
