from endpoints import PROFORMA_INVOICES
from services.base import BaseService

ALLOCATION_STATUSES = ("APPROVED", "PENDING", "SENT")


def _empty_list_page():
    return {"proformaInvoices": [], "pagination": {}}


class ProformaInvoicesService(BaseService):
    name = "Proforma Invoices Service"

    def get_all(self, params=None):
        return self._call(
            "fetching all",
            lambda: self.client.get(PROFORMA_INVOICES.LIST, params=params or {}),
            "Failed to fetch proforma invoices",
            empty=_empty_list_page,
        )

    def get_by_id(self, pi_id):
        return self._call(
            "fetching by ID",
            lambda: self.client.get(PROFORMA_INVOICES.GET(pi_id)),
            "Failed to fetch proforma invoice",
        )

    def create(self, pi_data):
        return self._call(
            "creating",
            lambda: self.client.post(PROFORMA_INVOICES.CREATE, json=pi_data),
            "Failed to create proforma invoice",
        )

    def update(self, pi_id, pi_data):
        return self._call(
            "updating",
            lambda: self.client.put(PROFORMA_INVOICES.UPDATE(pi_id), json=pi_data),
            "Failed to update proforma invoice",
        )

    def delete(self, pi_id):
        result = self._call(
            "deleting",
            lambda: self.client.delete(PROFORMA_INVOICES.DELETE(pi_id)),
            "Failed to delete proforma invoice",
        )
        result.data = None
        return result

    def get_for_allocation(self, statuses=ALLOCATION_STATUSES):
        """PIs that can still have supplier stock allocated to them."""
        return self._call(
            "fetching for allocation",
            lambda: self.client.get(PROFORMA_INVOICES.LIST, params={"status": ",".join(statuses)}),
            "Failed to fetch proforma invoices",
            empty=lambda: {"proformaInvoices": []},
        )

    def get_my_proformas(self, params=None):
        return self._call(
            "fetching my proformas",
            lambda: self.client.get(PROFORMA_INVOICES.MY, params=params or {}),
            "Failed to fetch proforma invoices",
            empty=lambda: {"proformaInvoices": []},
        )

    def approve(self, pi_id):
        return self._call(
            "approving",
            lambda: self.client.put(PROFORMA_INVOICES.APPROVE(pi_id)),
            "Failed to approve proforma invoice",
        )

    def reject(self, pi_id):
        return self._call(
            "rejecting",
            lambda: self.client.put(PROFORMA_INVOICES.REJECT(pi_id)),
            "Failed to reject proforma invoice",
        )

    def convert_to_order(self, pi_id, order_data=None):
        return self._call(
            "converting to order",
            lambda: self.client.post(PROFORMA_INVOICES.CONVERT_TO_ORDER(pi_id), json=order_data or {}),
            "Failed to convert to order",
        )

    def get_open_pis(self, params=None):
        """PIs with items still to dispatch."""
        result = self._call(
            "fetching open PIs",
            lambda: self.client.get(PROFORMA_INVOICES.OPEN, params=params or {}),
            "Failed to fetch open proforma invoices",
            empty=list,
            with_pagination=True,
        )
        if result.success and result.data is None:
            result.data = []
        return result

    def get_completed_pis(self, params=None):
        result = self._call(
            "fetching completed PIs",
            lambda: self.client.get(PROFORMA_INVOICES.COMPLETED, params=params or {}),
            "Failed to fetch completed proforma invoices",
            empty=list,
            with_pagination=True,
        )
        if result.success and result.data is None:
            result.data = []
        return result

    def clone(self, pi_id):
        """Copy a PI under a new number with payments reset."""
        return self._call(
            "cloning",
            lambda: self.client.post(PROFORMA_INVOICES.CLONE(pi_id)),
            "Failed to clone proforma invoice",
        )
