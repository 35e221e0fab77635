import pytest
from fastapi.testclient import TestClient

from api_client import ApiError
from main import app, get_api_client


@pytest.fixture
def api(client):
    app.dependency_overrides[get_api_client] = lambda: client
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_root(api):
    response = api.get("/")

    assert response.status_code == 200
    assert response.json() == {"message": "PI Desk API is running"}


def test_list_filters_by_tab(api, client):
    client.get.return_value = {"data": {"proformaInvoices": [
        {"_id": "1", "status": "APPROVED", "payment_status": "PAID", "total_amount": 100, "payment_received": 100},
        {"_id": "2", "status": "APPROVED", "payment_status": "PARTIAL", "total_amount": 100, "payment_received": 40},
    ]}}

    response = api.get("/api/v1/proforma-invoices", params={"tab": "partial"})

    body = response.json()
    assert response.status_code == 200
    assert [pi["_id"] for pi in body["proformaInvoices"]] == ["2"]
    assert body["counts"]["paid"] == 1
    assert body["statistics"]["total_due"] == 60


def test_list_rejects_unknown_tab(api):
    assert api.get("/api/v1/proforma-invoices", params={"tab": "archived"}).status_code == 400


def test_list_tolerates_unparseable_issue_date(api, client):
    client.get.return_value = {"data": {"proformaInvoices": [
        {"_id": "1", "status": "APPROVED", "total_amount": 100, "issue_date": "07/01/2024"},
        {"_id": "2", "status": "APPROVED", "total_amount": 100, "issue_date": "2024-07-02T00:00:00Z"},
    ]}}

    response = api.get("/api/v1/proforma-invoices")

    assert response.status_code == 200
    assert [pi["_id"] for pi in response.json()["proformaInvoices"]] == ["2", "1"]


def test_upstream_failure_keeps_status(api, client):
    client.get.side_effect = ApiError("Proforma invoice not found", 404)

    response = api.get("/api/v1/proforma-invoices/missing")

    assert response.status_code == 404
    assert response.json()["detail"] == "Proforma invoice not found"


def test_account_summary(api, client, pi):
    client.get.side_effect = [{"data": pi}, {"data": {"records": [{"_id": "r1"}]}}]

    response = api.get("/api/v1/proforma-invoices/pi123/account")

    body = response.json()
    assert body["account"]["remaining_amount"] == 600
    assert body["account"]["payment_percentage"] == 40
    assert body["payment_records"] == [{"_id": "r1"}]


def test_collect_payment_multipart(api, client, pi):
    client.get.return_value = {"data": pi}
    client.post.return_value = {"data": {"_id": "r9"}}

    response = api.post(
        "/api/v1/proforma-invoices/pi123/payments",
        data={"amount": "8000", "currency": "INR", "payment_exchange_rate": "80", "collection_source": "PHONE_CALL"},
        files={"proof_file": ("receipt.pdf", b"%PDF-1.4", "application/pdf")},
    )

    assert response.status_code == 200
    assert response.json()["message"] == "Payment of INR 8000.0 collected via Phone Call!"
    kwargs = client.post.call_args.kwargs
    assert kwargs["data"]["amount"] == "100.0"
    assert kwargs["files"]["proof_file"] == ("receipt.pdf", b"%PDF-1.4", "application/pdf")


def test_collect_payment_validation_error(api, client, pi):
    client.get.return_value = {"data": pi}

    response = api.post("/api/v1/proforma-invoices/pi123/payments", data={"amount": "0"})

    assert response.status_code == 400
    assert response.json()["detail"] == "Payment amount must be greater than 0"


def test_edit_items_reports_line_errors(api, client, pi):
    client.get.return_value = {"data": pi}

    response = api.put("/api/v1/proforma-invoices/pi123/items", json={"items": [{"product_id": "p1", "quantity": 0}]})

    assert response.status_code == 400
    assert response.json()["errors"] == {"qty_0": "Quantity must be > 0"}


def test_dispatch_summary(api, client, pi):
    client.get.return_value = {"data": pi}

    response = api.post(
        "/api/v1/proforma-invoices/pi123/dispatch/summary",
        json={"items": [{"product_id": "p1", "unit_price": 50, "invoice_quantity": 4, "original_quantity": 10}]},
    )

    body = response.json()
    assert body["invoice_subtotal"] == 200
    assert body["tax_rate"] == 10


def test_dispatch_summary_caps_at_pi_quantity(api, client, pi):
    client.get.return_value = {"data": pi}

    response = api.post(
        "/api/v1/proforma-invoices/pi123/dispatch/summary",
        json={"items": [{"product_id": "p1", "unit_price": 50, "invoice_quantity": 500, "original_quantity": 500}]},
    )

    assert response.json()["invoice_subtotal"] == 500


def test_dispatch_rejects_product_not_on_pi(api, client, pi):
    client.get.return_value = {"data": pi}

    response = api.post(
        "/api/v1/proforma-invoices/pi123/dispatch",
        json={"items": [{"product_id": "p99", "product_name": "Gearbox", "invoice_quantity": 3}]},
    )

    assert response.status_code == 400
    assert response.json()["detail"] == '"Gearbox" is not on this PI'
    client.post.assert_not_called()


def test_clone_unsaved_pi_is_rejected(api, client, pi):
    client.get.return_value = {"data": {**pi, "_id": "PI-1721000000"}}

    response = api.post("/api/v1/proforma-invoices/PI-1721000000/clone")

    assert response.status_code == 400


def test_generate_invoice_uses_invoice_series(api, client, pi, db):
    client.get.return_value = {"data": {**pi, "payment_status": "PAID", "payment_received": 1000}}
    client.post.return_value = {"data": {"invoice": {"_id": "inv1", "invoice_number": "0001"}}}
    client.put.return_value = {"data": {}}

    response = api.post("/api/v1/proforma-invoices/pi123/invoice", json={})

    assert response.status_code == 200
    assert response.json()["message"] == "Invoice 0001 generated successfully!"
    assert client.post.call_args.kwargs["json"]["custom_invoice_number"] == "0001"
    assert api.get("/api/v1/invoice-series/next").json() == {"number": 2, "invoice_number": "0002"}


def test_reserve_and_skip_invoice_numbers(api, db):
    assert api.post("/api/v1/invoice-series/reserve", json={"number": 1}).status_code == 200
    assert api.post("/api/v1/invoice-series/skip", json={"number": 2, "reason": "Voided"}).json()["kind"] == "SKIPPED"

    assert api.get("/api/v1/invoice-series/next").json()["number"] == 3


def test_proforma_invoice_preview_is_html(api, client, pi):
    client.get.return_value = {"data": pi}

    response = api.get("/api/v1/proforma-invoices/pi123/preview")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "PROFORMA INVOICE" in response.text
