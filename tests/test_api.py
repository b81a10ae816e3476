from fastapi.testclient import TestClient

from conftest import RecordingShell
from till.api import create_api
from till.errors import TransactionFailure
from till.inventory import InventoryStore
from till.schemas import InventoryItemCreate


class BrokenShell(RecordingShell):
    def inventory_changed(self) -> None:
        raise RuntimeError("window already closed")


def _make_client(sessions, shell=None) -> tuple[TestClient, InventoryStore, RecordingShell]:
    inventory = InventoryStore(sessions)
    for name, category in (("Flour", "Kitchen"), ("Cheese", "Kitchen"), ("Cola", "Bar")):
        inventory.add_item(InventoryItemCreate(name=name, category=category, quantity_label="full"))
    shell = shell or RecordingShell()
    return TestClient(create_api(inventory, shell)), inventory, shell


def test_health_check(sessions) -> None:
    client, _, _ = _make_client(sessions)
    with client:
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "healthy"}


def test_list_inventory(sessions) -> None:
    client, _, _ = _make_client(sessions)
    with client:
        resp = client.get("/inventory")
        assert resp.status_code == 200
        data = resp.json()
        assert [item["name"] for item in data] == ["Cola", "Cheese", "Flour"]
        assert data[0] == {"id": 3, "name": "Cola", "category": "Bar", "quantity_label": "full", "needs_purchase": False}


def test_update_single_item_signals_refresh(sessions) -> None:
    client, inventory, shell = _make_client(sessions)
    with client:
        resp = client.post("/inventory/update", json={"id": 1, "quantity_label": "half a bag", "needs_purchase": True})
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "message": "1 inventory items updated"}

    flour = next(item for item in inventory.list_items() if item.id == 1)
    assert flour.quantity_label == "half a bag"
    assert flour.needs_purchase is True
    assert ("inventory_changed", None) in shell.events


def test_update_batch_with_empty_patch(sessions) -> None:
    client, inventory, _ = _make_client(sessions)
    with client:
        resp = client.post(
            "/inventory/update",
            json=[{"id": 1, "quantity_label": "empty"}, {"id": 2}, {"id": 3, "needs_purchase": True}],
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["message"] == "2 inventory items updated, 1 skipped (nothing to change)"
    assert [item.name for item in inventory.shopping_list()] == ["Cola"]


def test_update_with_unknown_id_rolls_back(sessions) -> None:
    client, inventory, shell = _make_client(sessions)
    before = inventory.list_items()
    with client:
        resp = client.post(
            "/inventory/update",
            json=[{"id": 1, "quantity_label": "empty"}, {"id": 42, "quantity_label": "empty"}],
        )
        assert resp.status_code == 404
        body = resp.json()
        assert body["success"] is False
        assert "42" in body["message"]
    assert inventory.list_items() == before
    assert ("inventory_changed", None) not in shell.events


def test_malformed_payload_is_rejected(sessions) -> None:
    client, _, _ = _make_client(sessions)
    with client:
        resp = client.post("/inventory/update", json={"quantity_label": "no id"})
        assert resp.status_code == 422
        assert resp.json()["success"] is False

        resp = client.post("/inventory/update", content=b"not json", headers={"content-type": "application/json"})
        assert resp.status_code == 422


def test_store_failure_maps_to_server_error(sessions, monkeypatch) -> None:
    client, inventory, _ = _make_client(sessions)

    def _fail(patches):
        raise TransactionFailure("database is locked")

    monkeypatch.setattr(inventory, "batch_update", _fail)
    with client:
        resp = client.post("/inventory/update", json={"id": 1, "quantity_label": "empty"})
        assert resp.status_code == 500
        assert resp.json() == {"success": False, "message": "inventory update rolled back: database is locked"}


def test_refresh_failure_does_not_fail_the_request(sessions) -> None:
    client, inventory, _ = _make_client(sessions, shell=BrokenShell())
    with client:
        resp = client.post("/inventory/update", json={"id": 2, "needs_purchase": True})
        assert resp.status_code == 200
    assert [item.name for item in inventory.shopping_list()] == ["Cheese"]
