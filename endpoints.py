"""Paths of the remote REST API, relative to API_BASE_URL."""


class AUTH:
    LOGIN = "/auth/login"
    LOGOUT = "/auth/logout"
    REFRESH_TOKEN = "/auth/refresh"
    ME = "/auth/me"


class PROFORMA_INVOICES:
    LIST = "/proforma-invoices"
    MY = "/proforma-invoices/my"
    # PIs with remaining items to dispatch
    OPEN = "/proforma-invoices/open"
    # Fully dispatched PIs
    COMPLETED = "/proforma-invoices/completed"
    CREATE = "/proforma-invoices"

    @staticmethod
    def GET(pi_id):
        return f"/proforma-invoices/{pi_id}"

    @staticmethod
    def UPDATE(pi_id):
        return f"/proforma-invoices/{pi_id}"

    @staticmethod
    def DELETE(pi_id):
        return f"/proforma-invoices/{pi_id}"

    @staticmethod
    def APPROVE(pi_id):
        return f"/proforma-invoices/{pi_id}/approve"

    @staticmethod
    def REJECT(pi_id):
        return f"/proforma-invoices/{pi_id}/reject"

    @staticmethod
    def CONVERT_TO_ORDER(pi_id):
        return f"/proforma-invoices/{pi_id}/convert-to-order"

    @staticmethod
    def CLONE(pi_id):
        return f"/proforma-invoices/{pi_id}/clone"


class PAYMENT_RECORDS:
    LIST = "/payment-records"
    MY = "/payment-records/my"
    PENDING = "/payment-records/pending"
    CREATE = "/payment-records"
    ADMIN_COLLECT = "/payment-records/admin-collect"

    @staticmethod
    def GET(record_id):
        return f"/payment-records/{record_id}"

    @staticmethod
    def BY_PI(pi_id):
        return f"/payment-records/by-pi/{pi_id}"

    @staticmethod
    def VERIFY(record_id):
        return f"/payment-records/{record_id}/verify"

    @staticmethod
    def REJECT(record_id):
        return f"/payment-records/{record_id}/reject"

    @staticmethod
    def UPDATE(record_id):
        return f"/payment-records/{record_id}/update"

    @staticmethod
    def UPDATE_PROOF(record_id):
        return f"/payment-records/{record_id}/update-proof"

    @staticmethod
    def ADMIN_UPDATE(record_id):
        return f"/payment-records/{record_id}/admin-update"


class DISPATCHES:
    LIST = "/dispatches"
    MY = "/dispatches/my"
    CREATE = "/dispatches"

    @staticmethod
    def GET(dispatch_id):
        return f"/dispatches/{dispatch_id}"

    @staticmethod
    def DELETE(dispatch_id):
        return f"/dispatches/{dispatch_id}"

    @staticmethod
    def BY_SOURCE(source_type, source_id):
        return f"/dispatches/by-source/{source_type}/{source_id}"

    @staticmethod
    def SUMMARY(source_type, source_id):
        return f"/dispatches/summary/{source_type}/{source_id}"


class INVOICES:
    LIST = "/invoices"
    MY = "/invoices/my"
    CREATE = "/invoices"
    CREATE_MANUAL = "/invoices/manual"
    CREATE_FROM_PI = "/invoices/from-pi"

    @staticmethod
    def GET(invoice_id):
        return f"/invoices/{invoice_id}"

    @staticmethod
    def BY_PI(pi_id):
        return f"/invoices/by-pi/{pi_id}"

    @staticmethod
    def UPDATE(invoice_id):
        return f"/invoices/{invoice_id}"

    @staticmethod
    def UPDATE_ITEMS(invoice_id):
        return f"/invoices/{invoice_id}/items"

    @staticmethod
    def UPDATE_STATUS(invoice_id):
        return f"/invoices/{invoice_id}/status"

    @staticmethod
    def DELETE(invoice_id):
        return f"/invoices/{invoice_id}"

    @staticmethod
    def DUPLICATE(invoice_id):
        return f"/invoices/{invoice_id}/duplicate"

    @staticmethod
    def PDF(invoice_id):
        return f"/invoices/{invoice_id}/pdf"
