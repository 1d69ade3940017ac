import json

import pytest

from pocketbook import config
from pocketbook.domain import ExpenseRecord, GoalRecord, IncomeRecord, InventoryItem, TaxSnapshot
from pocketbook.records import (
    DEFAULT_PROFILE_NAME,
    MASCOT_AVATARS,
    ExpenseStore,
    GoalStore,
    IncomeStore,
    InventoryStore,
    ProfileStore,
    TaxStore,
)
from pocketbook.storage import MemoryStorage


def make_income(id, amount, category="Salary"):
    return IncomeRecord(id=id, name=f"income {id}", amount=amount, date="2024-01-05", category=category)


def make_expense(id, amount, is_paid=True, category="Rent"):
    return ExpenseRecord(id=id, name=f"expense {id}", amount=amount, category=category, is_paid=is_paid)


def test_income_store_add_update_remove_keeps_order():
    storage = MemoryStorage()
    store = IncomeStore(storage)
    store.add("2024-01", make_income("a", 100))
    store.add("2024-01", make_income("b", 200))
    store.add("2024-01", make_income("c", 300))

    store.update("2024-01", make_income("b", 250))
    assert [r.amount for r in store.load("2024-01")] == [100, 250, 300]

    store.remove("2024-01", "a")
    assert [r.id for r in store.load("2024-01")] == ["b", "c"]
    assert store.load("2024-02") == ()


def test_income_store_writes_wire_format():
    storage = MemoryStorage()
    IncomeStore(storage).add("2024-01", make_income("a", 100))
    stored = json.loads(storage.get("month_2024-01_receitas"))
    assert stored == [{"id": "a", "nome": "income a", "valor": 100, "data": "2024-01-05", "categoria": "Salary"}]


def test_expense_store_toggle_paid():
    storage = MemoryStorage()
    store = ExpenseStore(storage)
    store.add("2024-01", make_expense("e1", 50))
    store.toggle_paid("2024-01", "e1")
    assert store.load("2024-01")[0].is_paid is False
    store.toggle_paid("2024-01", "e1")
    assert store.load("2024-01")[0].is_paid is True


def test_goal_store_set_amount():
    storage = MemoryStorage()
    store = GoalStore(storage)
    store.add("2024-01", GoalRecord("g1", "Trip", 1000, 0, "Travel"))
    store.set_amount("2024-01", "g1", 400)
    assert store.load("2024-01")[0].current_amount == 400
    assert storage.get("month_2024-01_metas") is not None


def test_malformed_json_fails_closed():
    storage = MemoryStorage({"month_2024-01_despesas": "[{oops"})
    assert ExpenseStore(storage).load("2024-01") == ()


def test_malformed_records_are_skipped_on_load():
    good = {"id": "e1", "name": "Rent", "amount": 100, "category": "Rent", "isPaid": True}
    bad = {"id": "e2", "name": "Broken", "category": "Rent", "isPaid": True}
    storage = MemoryStorage({"month_2024-01_despesas": json.dumps([good, bad, "junk"])})
    loaded = ExpenseStore(storage).load("2024-01")
    assert [e.id for e in loaded] == ["e1"]


def test_non_list_payload_yields_empty():
    storage = MemoryStorage({"month_2024-01_receitas": json.dumps({"id": "x"})})
    assert IncomeStore(storage).load("2024-01") == ()


def test_tax_store_defaults_and_save():
    storage = MemoryStorage()
    store = TaxStore(storage)
    assert store.load("2024-01") == TaxSnapshot()
    store.save("2024-01", TaxSnapshot(5000, 300, 800, 40))
    assert store.load("2024-01").total_taxes == 340
    assert json.loads(storage.get("month_2024-01_impostos"))["impostoRenda"] == 300


def test_tax_store_malformed_snapshot():
    storage = MemoryStorage({"month_2024-01_impostos": json.dumps({"impostoRenda": "lots"})})
    assert TaxStore(storage).load("2024-01") == TaxSnapshot()


def test_inventory_store_is_global_and_mark_bought():
    storage = MemoryStorage()
    store = InventoryStore(storage)
    store.add(InventoryItem("i1", "Rice", 1, 3, "kg", "Food"))
    store.add(InventoryItem("i2", "Soap", 2, 2, "un", "Cleaning"))
    store.mark_bought("i1")
    items = store.load()
    assert items[0].current_quantity == 3
    assert storage.get("market_inventory") is not None
    store.remove("i2")
    assert [i.id for i in store.load()] == ["i1"]


def test_profile_defaults():
    profile = ProfileStore(MemoryStorage())
    assert profile.name == DEFAULT_PROFILE_NAME
    assert profile.avatar == MASCOT_AVATARS[0]
    assert profile.theme == "light"
    assert profile.language == config.DEFAULT_LANGUAGE


def test_profile_save_and_toggle():
    storage = MemoryStorage()
    profile = ProfileStore(storage)
    profile.save_profile("Ana", MASCOT_AVATARS[2])
    assert storage.get("profile_name") == "Ana"
    assert profile.avatar == MASCOT_AVATARS[2]
    assert profile.toggle_theme() == "dark"
    assert storage.get("theme") == "dark"
    assert profile.toggle_theme() == "light"
    profile.set_language("pt")
    assert profile.language == "pt"
    with pytest.raises(ValueError):
        profile.set_language("fr")


def test_unreadable_records_survive_a_write():
    broken = {"id": "1", "nome": "Salário", "valor": None, "data": "2024-01-05", "categoria": "Salário"}
    storage = MemoryStorage({"month_2024-01_receitas": json.dumps([broken])})
    store = IncomeStore(storage)
    store.add("2024-01", make_income("2", 100))

    assert [r.id for r in store.load("2024-01")] == ["2"]
    stored = json.loads(storage.get("month_2024-01_receitas"))
    assert [r["id"] for r in stored] == ["2", "1"]
    assert stored[1] == broken


def test_unreadable_records_survive_toggle_and_remove():
    good = {"id": "e1", "name": "Rent", "amount": 100, "category": "Rent", "isPaid": True}
    bad = {"id": "e2", "name": "Broken", "category": "Rent", "isPaid": True}
    storage = MemoryStorage({"month_2024-01_despesas": json.dumps([good, bad, "junk"])})
    store = ExpenseStore(storage)
    store.toggle_paid("2024-01", "e1")
    store.remove("2024-01", "e1")
    assert json.loads(storage.get("month_2024-01_despesas")) == [bad, "junk"]


def test_unparsable_list_text_is_kept_on_write():
    storage = MemoryStorage({"month_2024-01_despesas": "[{oops"})
    ExpenseStore(storage).add("2024-01", make_expense("e1", 10))
    stored = json.loads(storage.get("month_2024-01_despesas"))
    assert stored[0]["id"] == "e1"
    assert stored[1] == "[{oops"


def test_inventory_keeps_unreadable_items():
    bad = {"id": "i9", "name": "Beans", "currentQuantity": None, "idealQuantity": 2,
           "unit": "kg", "category": "Food"}
    storage = MemoryStorage({"market_inventory": json.dumps([bad])})
    store = InventoryStore(storage)
    store.add(InventoryItem("i1", "Rice", 1, 3, "kg", "Food"))
    store.mark_bought("i1")
    assert [i.id for i in store.load()] == ["i1"]
    assert json.loads(storage.get("market_inventory"))[1] == bad


def test_inventory_update_replaces_item():
    storage = MemoryStorage()
    store = InventoryStore(storage)
    store.add(InventoryItem("i1", "Rice", 1, 3, "kg", "Food"))
    store.update(InventoryItem("i1", "Brown rice", 2, 5, "kg", "Food"))
    item = store.load()[0]
    assert (item.name, item.current_quantity, item.ideal_quantity) == ("Brown rice", 2, 5)
