from api_client import ApiError
from endpoints import DISPATCHES
from services import DispatchesService


def test_get_my_dispatches(client):
    dispatches = [{"_id": "1", "dispatch_id": "DSP-00001"}]
    client.get.return_value = {"data": dispatches, "pagination": {"total": 1}}

    result = DispatchesService(client).get_my_dispatches({"page": 2})

    assert result.success is True
    assert result.data == dispatches
    client.get.assert_called_once_with(DISPATCHES.MY, params={"page": 2})


def test_get_my_dispatches_error(client):
    client.get.side_effect = ApiError("Failed to fetch", 500)

    result = DispatchesService(client).get_my_dispatches()

    assert result.success is False
    assert result.error == "Failed to fetch"
    assert result.data == []


def test_get_by_id_not_found(client):
    client.get.side_effect = ApiError("Dispatch not found", 404)

    result = DispatchesService(client).get_by_id("nope")

    assert result.success is False
    assert result.error == "Dispatch not found"
    assert result.status_code == 404


def test_get_by_source_error_returns_empty_dispatches(client):
    client.get.side_effect = ApiError("boom", 500)

    result = DispatchesService(client).get_by_source("PROFORMA_INVOICE", "pi123")

    assert result.data == {"dispatches": []}


def test_get_summary(client):
    summary = {"items": [{"product_id": "p1", "ordered": 10, "dispatched": 4}]}
    client.get.return_value = {"data": summary}

    result = DispatchesService(client).get_summary("PROFORMA_INVOICE", "pi123")

    client.get.assert_called_once_with(DISPATCHES.SUMMARY("PROFORMA_INVOICE", "pi123"))
    assert result.data == summary


def test_create(client):
    client.post.return_value = {"data": {"dispatch_id": "DSP-00001"}}

    result = DispatchesService(client).create({"items": []})

    assert result.success is True
    assert result.data["dispatch_id"] == "DSP-00001"


def test_delete_returns_no_data(client):
    client.delete.return_value = {"data": {"deleted": True}}

    result = DispatchesService(client).delete("1")

    assert result.success is True
    assert result.data is None


def test_delete_error(client):
    client.delete.side_effect = ApiError("Cannot delete", 409)

    result = DispatchesService(client).delete("1")

    assert result.success is False
    assert result.error == "Cannot delete"


def test_dispatch_from_pi_sets_source(client):
    client.post.return_value = {"data": {"dispatch_id": "DSP-00002"}}

    result = DispatchesService(client).dispatch_from_pi("pi123", {"items": [{"product_id": "p1", "quantity": 2}]})

    assert result.success is True
    client.post.assert_called_once_with(DISPATCHES.CREATE, json={
        "source_type": "PROFORMA_INVOICE",
        "source_id": "pi123",
        "items": [{"product_id": "p1", "quantity": 2}],
    })


def test_dispatch_from_order_sets_source(client):
    client.post.return_value = {"data": {}}

    DispatchesService(client).dispatch_from_order("ord1", {"items": []})

    client.post.assert_called_once_with(DISPATCHES.CREATE, json={"source_type": "ORDER", "source_id": "ord1", "items": []})
