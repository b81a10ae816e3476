import logging
import threading

import pytest
from sqlalchemy import event

from till.errors import InventoryItemNotFound
from till.inventory import InventoryStore
from till.schemas import InventoryItemCreate, InventoryPatch


def _make_store(sessions, names=("Flour", "Cheese", "Tomato", "Ham", "Olives")) -> InventoryStore:
    store = InventoryStore(sessions)
    for name in names:
        store.add_item(InventoryItemCreate(name=name, category="Kitchen", quantity_label="full"))
    return store


def _by_id(store: InventoryStore) -> dict:
    return {item.id: item for item in store.list_items()}


def test_list_items_sorted_by_category_then_name(sessions) -> None:
    store = InventoryStore(sessions)
    store.add_item(InventoryItemCreate(name="Napkins", category="Bar"))
    store.add_item(InventoryItemCreate(name="Cheese", category="Kitchen"))
    store.add_item(InventoryItemCreate(name="Beer", category="Bar"))

    assert [item.name for item in store.list_items()] == ["Beer", "Napkins", "Cheese"]


def test_batch_update_applies_partial_fields(sessions) -> None:
    store = _make_store(sessions)

    result = store.batch_update(
        [
            InventoryPatch(id=1, quantity_label="half a bag"),
            InventoryPatch(id=2, needs_purchase=True),
        ]
    )

    assert result.updated == [1, 2]
    items = _by_id(store)
    assert items[1].quantity_label == "half a bag"
    assert items[1].needs_purchase is False
    assert items[2].quantity_label == "full"
    assert items[2].needs_purchase is True
    assert [item.name for item in store.shopping_list()] == ["Cheese"]


def test_batch_update_rolls_back_when_one_item_is_missing(sessions) -> None:
    store = _make_store(sessions)
    store.batch_update([InventoryPatch(id=3, quantity_label="empty")])
    before = _by_id(store)

    patches = [InventoryPatch(id=item_id, quantity_label="restocked") for item_id in (1, 2)]
    patches.append(InventoryPatch(id=99, quantity_label="restocked"))
    patches.extend(InventoryPatch(id=item_id, quantity_label="restocked") for item_id in (4, 5))

    with pytest.raises(InventoryItemNotFound) as excinfo:
        store.batch_update(patches)

    assert excinfo.value.entity_id == 99
    assert _by_id(store) == before


def test_empty_patch_is_skipped_with_warning(sessions, caplog) -> None:
    store = _make_store(sessions)

    with caplog.at_level(logging.WARNING, logger="till.inventory"):
        result = store.batch_update([InventoryPatch(id=1), InventoryPatch(id=2, needs_purchase=True)])

    assert result.skipped == [1]
    assert result.updated == [2]
    assert "skipped" in result.message
    assert any("skipped" in record.getMessage() for record in caplog.records)


def _race(engine, store: InventoryStore, patches: dict[str, InventoryPatch]) -> list[str]:
    """Run one batch_update per writer at the same moment; returns writer names in commit order."""
    commit_order: list[str] = []

    def _record_commit(conn) -> None:
        name = threading.current_thread().name
        if name in patches:
            commit_order.append(name)

    event.listen(engine, "commit", _record_commit)
    start = threading.Barrier(len(patches))
    errors: list[BaseException] = []

    def _writer(name: str) -> None:
        start.wait()
        try:
            store.batch_update([patches[name]])
        except BaseException as exc:
            errors.append(exc)

    threads = [threading.Thread(target=_writer, args=(name,), name=name) for name in patches]
    try:
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)
    finally:
        event.remove(engine, "commit", _record_commit)

    assert errors == []
    assert sorted(commit_order) == sorted(patches)
    return commit_order


def test_concurrent_updates_last_commit_wins(engine, sessions) -> None:
    store = _make_store(sessions, names=("Flour",))

    commit_order = _race(
        engine,
        store,
        {
            "writer-a": InventoryPatch(id=1, quantity_label="writer-a"),
            "writer-b": InventoryPatch(id=1, quantity_label="writer-b"),
        },
    )

    assert store.list_items()[0].quantity_label == commit_order[-1]


def test_concurrent_needs_purchase_flips_last_commit_wins(engine, sessions) -> None:
    store = _make_store(sessions, names=("Flour",))
    patches = {
        "mark-needed": InventoryPatch(id=1, needs_purchase=True),
        "mark-stocked": InventoryPatch(id=1, needs_purchase=False),
    }

    commit_order = _race(engine, store, patches)

    item = store.list_items()[0]
    assert item.needs_purchase is patches[commit_order[-1]].needs_purchase
    assert item.quantity_label == "full"
