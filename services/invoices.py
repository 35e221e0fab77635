from endpoints import INVOICES
from services.base import BaseService


def _unwrap_invoice(result, fallback_to_body):
    if not result.success:
        return result
    data = result.data if isinstance(result.data, dict) else {}
    invoice = data.get("invoice")
    if invoice is None and fallback_to_body:
        invoice = result.data
    result.data = invoice
    return result


class InvoicesService(BaseService):
    name = "Invoices Service"

    def get_all(self, params=None):
        return self._call(
            "fetching all",
            lambda: self.client.get(INVOICES.LIST, params=params or {}),
            "Failed to fetch invoices",
            empty=list,
            with_pagination=True,
        )

    def get_my_invoices(self, params=None):
        return self._call(
            "fetching my invoices",
            lambda: self.client.get(INVOICES.MY, params=params or {}),
            "Failed to fetch invoices",
            empty=list,
            with_pagination=True,
        )

    def get_by_id(self, invoice_id):
        result = self._call(
            "fetching by ID",
            lambda: self.client.get(INVOICES.GET(invoice_id)),
            "Failed to fetch invoice",
        )
        return _unwrap_invoice(result, fallback_to_body=True)

    def get_by_pi(self, pi_id):
        """The invoice generated from a PI, or ``None`` when there is none yet."""
        result = self._call(
            "fetching by PI",
            lambda: self.client.get(INVOICES.BY_PI(pi_id)),
            "Failed to fetch invoice",
        )
        return _unwrap_invoice(result, fallback_to_body=False)

    def create_from_pi(self, data):
        return self._call(
            "creating from PI",
            lambda: self.client.post(INVOICES.CREATE_FROM_PI, json=data),
            "Failed to create invoice",
        )

    def create_from_order(self, data):
        return self._call(
            "creating from order",
            lambda: self.client.post(INVOICES.CREATE, json=data),
            "Failed to create invoice",
        )

    def create_manual(self, data):
        return self._call(
            "creating manual invoice",
            lambda: self.client.post(INVOICES.CREATE_MANUAL, json=data),
            "Failed to create invoice",
        )

    def update(self, invoice_id, data):
        return self._call(
            "updating",
            lambda: self.client.put(INVOICES.UPDATE(invoice_id), json=data),
            "Failed to update invoice",
        )

    def update_items(self, invoice_id, items):
        return self._call(
            "updating items",
            lambda: self.client.put(INVOICES.UPDATE_ITEMS(invoice_id), json={"items": items}),
            "Failed to update invoice items",
        )

    def update_status(self, invoice_id, status):
        return self._call(
            "updating status",
            lambda: self.client.put(INVOICES.UPDATE_STATUS(invoice_id), json={"status": status}),
            "Failed to update invoice status",
        )

    def delete(self, invoice_id):
        return self._call(
            "deleting",
            lambda: self.client.delete(INVOICES.DELETE(invoice_id)),
            "Failed to delete invoice",
        )

    def duplicate(self, invoice_id):
        return self._call(
            "duplicating",
            lambda: self.client.post(INVOICES.DUPLICATE(invoice_id)),
            "Failed to duplicate invoice",
        )

    def download_pdf(self, invoice_id):
        """Server-rendered PDF bytes."""
        return self._call(
            "downloading PDF",
            lambda: {"data": self.client.get_raw(INVOICES.PDF(invoice_id))},
            "Failed to download PDF",
        )
