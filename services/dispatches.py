from endpoints import DISPATCHES
from services.base import BaseService

SOURCE_PROFORMA_INVOICE = "PROFORMA_INVOICE"
SOURCE_ORDER = "ORDER"


class DispatchesService(BaseService):
    name = "Dispatches Service"

    def get_my_dispatches(self, params=None):
        return self._call(
            "fetching my dispatches",
            lambda: self.client.get(DISPATCHES.MY, params=params or {}),
            "Failed to fetch dispatches",
            empty=list,
            with_pagination=True,
        )

    def get_all(self, params=None):
        return self._call(
            "fetching all",
            lambda: self.client.get(DISPATCHES.LIST, params=params or {}),
            "Failed to fetch dispatches",
            empty=list,
            with_pagination=True,
        )

    def get_by_id(self, dispatch_id):
        return self._call(
            "fetching by ID",
            lambda: self.client.get(DISPATCHES.GET(dispatch_id)),
            "Failed to fetch dispatch",
        )

    def get_by_source(self, source_type, source_id):
        return self._call(
            "fetching by source",
            lambda: self.client.get(DISPATCHES.BY_SOURCE(source_type, source_id)),
            "Failed to fetch dispatches for source",
            empty=lambda: {"dispatches": []},
        )

    def get_summary(self, source_type, source_id):
        """Dispatched vs. ordered quantities per item of a source document."""
        return self._call(
            "fetching summary",
            lambda: self.client.get(DISPATCHES.SUMMARY(source_type, source_id)),
            "Failed to fetch dispatch summary",
        )

    def create(self, dispatch_data):
        """Create a dispatch; the response carries ``dispatch``, ``invoice`` and ``is_fully_dispatched``."""
        return self._call(
            "creating",
            lambda: self.client.post(DISPATCHES.CREATE, json=dispatch_data),
            "Failed to create dispatch",
        )

    def delete(self, dispatch_id):
        result = self._call(
            "deleting",
            lambda: self.client.delete(DISPATCHES.DELETE(dispatch_id)),
            "Failed to delete dispatch",
        )
        result.data = None
        return result

    def dispatch_from_pi(self, pi_id, dispatch_data):
        return self.create({"source_type": SOURCE_PROFORMA_INVOICE, "source_id": pi_id, **dispatch_data})

    def dispatch_from_order(self, order_id, dispatch_data):
        return self.create({"source_type": SOURCE_ORDER, "source_id": order_id, **dispatch_data})
