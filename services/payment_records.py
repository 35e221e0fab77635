from endpoints import PAYMENT_RECORDS
from services.base import BaseService

BUYER_UPDATE_FIELDS = ("amount", "transaction_id", "payment_method", "payment_date", "notes")

ADMIN_UPDATE_FIELDS = (
    "amount",
    "recorded_amount",
    "transaction_id",
    "payment_method",
    "payment_date",
    "notes",
    "verification_notes",
    "payment_exchange_rate",
)

ADMIN_COLLECT_FIELDS = (
    "currency",
    "transaction_id",
    "payment_method",
    "payment_date",
    "notes",
    "collection_source",
    "payment_exchange_rate",
)


def _form_fields(data, fields, skip_empty=False):
    form = {}
    for field in fields:
        value = data.get(field)
        if value is None:
            continue
        if skip_empty and not value:
            continue
        form[field] = str(value)
    return form


class PaymentRecordsService(BaseService):
    name = "Payment Records Service"

    def get_all(self, params=None):
        return self._call(
            "fetching all",
            lambda: self.client.get(PAYMENT_RECORDS.LIST, params=params or {}),
            "Failed to fetch payment records",
            empty=list,
            with_pagination=True,
        )

    def get_pending(self, params=None):
        return self._call(
            "fetching pending",
            lambda: self.client.get(PAYMENT_RECORDS.PENDING, params=params or {}),
            "Failed to fetch pending payment records",
            empty=list,
            with_pagination=True,
        )

    def get_my_records(self, params=None):
        return self._call(
            "fetching my records",
            lambda: self.client.get(PAYMENT_RECORDS.MY, params=params or {}),
            "Failed to fetch payment records",
            empty=list,
            with_pagination=True,
        )

    def get_by_proforma_invoice(self, pi_id):
        return self._call(
            "fetching by PI",
            lambda: self.client.get(PAYMENT_RECORDS.BY_PI(pi_id)),
            "Failed to fetch payment records",
            empty=lambda: {"records": []},
        )

    def get_by_id(self, record_id):
        return self._call(
            "fetching by ID",
            lambda: self.client.get(PAYMENT_RECORDS.GET(record_id)),
            "Failed to fetch payment record",
        )

    def create(self, payment_data, proof_file=None):
        if proof_file is not None:
            request = lambda: self.client.post(
                PAYMENT_RECORDS.CREATE,
                data=_form_fields(payment_data, payment_data.keys()),
                files={"proof_file": proof_file},
            )
        else:
            request = lambda: self.client.post(PAYMENT_RECORDS.CREATE, json=payment_data)
        return self._call("creating", request, "Failed to submit payment record")

    def verify(self, record_id, verification_data=None):
        """Mark a record verified; ``recorded_amount`` overrides the submitted amount."""
        return self._call(
            "verifying",
            lambda: self.client.put(PAYMENT_RECORDS.VERIFY(record_id), json=verification_data or {}),
            "Failed to verify payment",
        )

    def reject(self, record_id, rejection_data=None):
        return self._call(
            "rejecting",
            lambda: self.client.put(PAYMENT_RECORDS.REJECT(record_id), json=rejection_data or {}),
            "Failed to reject payment",
        )

    def update_proof(self, record_id, proof_file):
        return self._call(
            "updating proof",
            lambda: self.client.put(
                PAYMENT_RECORDS.UPDATE_PROOF(record_id),
                data={},
                files={"proof_file": proof_file},
            ),
            "Failed to update payment proof",
        )

    def update(self, record_id, data, proof_file=None):
        """Edit a PENDING record (buyer). Only fields present in ``data`` are sent."""
        form = _form_fields(data, ("amount", "notes"))
        form.update(_form_fields(data, ("transaction_id", "payment_method", "payment_date"), skip_empty=True))
        files = {"proof_file": proof_file} if proof_file is not None else None
        return self._call(
            "updating record",
            lambda: self.client.put(PAYMENT_RECORDS.UPDATE(record_id), data=form, files=files),
            "Failed to update payment record",
        )

    def admin_update(self, record_id, data, proof_file=None):
        """Correct any record, verified ones included (admin)."""
        form = _form_fields(data, ADMIN_UPDATE_FIELDS)
        files = {"proof_file": proof_file} if proof_file is not None else None
        return self._call(
            "admin updating",
            lambda: self.client.put(PAYMENT_RECORDS.ADMIN_UPDATE(record_id), data=form, files=files),
            "Failed to update payment record",
        )

    def admin_collect(self, data, proof_file=None):
        """Record a payment the buyer reported by phone, email or in person."""
        form = {
            "proforma_invoice_id": str(data["proforma_invoice_id"]),
            "amount": str(data["amount"]),
        }
        form.update(_form_fields(data, ADMIN_COLLECT_FIELDS, skip_empty=True))
        files = {"proof_file": proof_file} if proof_file is not None else None
        return self._call(
            "admin collecting",
            lambda: self.client.post(PAYMENT_RECORDS.ADMIN_COLLECT, data=form, files=files),
            "Failed to collect payment",
        )
