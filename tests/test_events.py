from datetime import date, datetime

from pocketbook.events import (
    BALANCE_COMPUTED, EXPENSE_SAVED, STOCK_CHANGED,
    Event, EventBus, event_bus,
    low_stock_handler, negative_balance_handler, overdue_expense_handler,
)


def make_event(name, payload):
    return Event(name=name, ts=datetime.now().isoformat(), payload=payload)


def test_event_creation():
    event = make_event(EXPENSE_SAVED, {"id": "e1", "is_paid": False})
    assert event.name == EXPENSE_SAVED
    assert event.payload["id"] == "e1"


def test_event_bus_subscribe_and_publish():
    bus = EventBus()
    seen = []

    def handler(event: Event, payload: dict) -> dict:
        seen.append(payload)
        return {"processed": True}

    bus.subscribe(EXPENSE_SAVED, handler)
    results = bus.publish(EXPENSE_SAVED, {"id": "e1"})

    assert results == [{"processed": True}]
    assert seen == [{"id": "e1"}]


def test_subscribe_twice_runs_once():
    bus = EventBus()

    def handler(event: Event, payload: dict) -> dict:
        return {"n": 1}

    bus.subscribe(STOCK_CHANGED, handler)
    bus.subscribe(STOCK_CHANGED, handler)
    assert len(bus.publish(STOCK_CHANGED, {})) == 1


def test_publish_without_subscribers():
    assert EventBus().publish(BALANCE_COMPUTED, {"month": "2024-01"}) == []


def test_event_bus_unsubscribe():
    bus = EventBus()
    calls = []

    def handler(event: Event, payload: dict) -> dict:
        calls.append(payload)
        return {}

    bus.subscribe(EXPENSE_SAVED, handler)
    bus.publish(EXPENSE_SAVED, {"id": "a"})
    bus.unsubscribe(EXPENSE_SAVED, handler)
    bus.publish(EXPENSE_SAVED, {"id": "b"})
    assert len(calls) == 1


def test_overdue_expense_handler():
    payload = {"id": "e1", "name": "Rent", "is_paid": False,
               "due_date": "2024-01-10", "today": date(2024, 1, 15)}
    result = overdue_expense_handler(make_event(EXPENSE_SAVED, payload), payload)
    assert "overdue" in result["alert"]
    assert result["expense_id"] == "e1"
    assert result["days_late"] == 5
    assert payload["due_date"] == "2024-01-10"


def test_overdue_expense_handler_no_alert():
    today = date(2024, 1, 15)
    for payload in (
        {"is_paid": True, "due_date": "2024-01-10", "today": today},
        {"is_paid": False, "due_date": "2024-01-20", "today": today},
        {"is_paid": False, "today": today},
        {"is_paid": False, "due_date": "soon", "today": today},
    ):
        assert overdue_expense_handler(make_event(EXPENSE_SAVED, payload), payload) == {}


def test_negative_balance_handler():
    payload = {"month": "2024-02", "month_balance": -1250.5}
    result = negative_balance_handler(make_event(BALANCE_COMPUTED, payload), payload)
    assert result["alert"] == "Attention: 2024-02 closes 1,250.50 in the red"
    assert negative_balance_handler(make_event(BALANCE_COMPUTED, {}), {"month_balance": 0}) == {}


def test_low_stock_handler():
    payload = {"id": "rice", "name": "Rice", "unit": "kg", "current_quantity": 1, "ideal_quantity": 3}
    result = low_stock_handler(make_event(STOCK_CHANGED, payload), payload)
    assert result["alert"] == "Low stock: Rice (1/3 kg)"
    assert result["missing"] == 2

    no_unit = dict(payload, unit="")
    assert low_stock_handler(make_event(STOCK_CHANGED, no_unit), no_unit)["alert"] == "Low stock: Rice (1/3)"

    full = dict(payload, current_quantity=3)
    assert low_stock_handler(make_event(STOCK_CHANGED, full), full) == {}


def test_default_handlers_registered():
    payload = {"id": "milk", "name": "Milk", "unit": "l", "current_quantity": 0, "ideal_quantity": 6}
    results = event_bus.publish(STOCK_CHANGED, payload)
    assert any("alert" in r for r in results)
