from datetime import date, datetime
from typing import Callable, Dict, List, NamedTuple

__all__ = [
    'event_bus', 'EXPENSE_SAVED', 'BALANCE_COMPUTED', 'STOCK_CHANGED',
    'Event', 'EventBus', 'register_default_handlers',
]


class Event(NamedTuple):
    name: str
    ts: str
    payload: dict


class EventBus:
    def __init__(self):
        self._subscribers: Dict[str, List[Callable[[Event, dict], dict]]] = {}

    def subscribe(self, name: str, handler: Callable[[Event, dict], dict]) -> None:
        handlers = self._subscribers.setdefault(name, [])
        if handler not in handlers:
            handlers.append(handler)

    def publish(self, name: str, payload: dict) -> List[dict]:
        handlers = self._subscribers.get(name)
        if not handlers:
            return []
        event = Event(name=name, ts=datetime.now().isoformat(), payload=payload)
        return [handler(event, payload) for handler in handlers]

    def unsubscribe(self, name: str, handler: Callable[[Event, dict], dict]) -> None:
        if handler in self._subscribers.get(name, []):
            self._subscribers[name].remove(handler)


EXPENSE_SAVED = "EXPENSE_SAVED"
BALANCE_COMPUTED = "BALANCE_COMPUTED"
STOCK_CHANGED = "STOCK_CHANGED"

event_bus = EventBus()


def overdue_expense_handler(event: Event, payload: dict) -> dict:
    if payload.get("is_paid") or not payload.get("due_date"):
        return {}
    try:
        due = date.fromisoformat(payload["due_date"])
    except ValueError:
        return {}
    today = payload.get("today") or date.today()
    if due < today:
        return {
            "alert": f"Expense '{payload.get('name', '')}' is overdue since {due.isoformat()}",
            "expense_id": payload.get("id"),
            "days_late": (today - due).days,
        }
    return {}


def negative_balance_handler(event: Event, payload: dict) -> dict:
    month_balance = payload.get("month_balance", 0)
    if month_balance < 0:
        return {
            "alert": f"Attention: {payload.get('month', '')} closes {abs(month_balance):,.2f} in the red",
            "month": payload.get("month"),
            "month_balance": month_balance,
        }
    return {}


def low_stock_handler(event: Event, payload: dict) -> dict:
    current = payload.get("current_quantity", 0)
    ideal = payload.get("ideal_quantity", 0)
    if current < ideal:
        unit = payload.get("unit", "")
        return {
            "alert": f"Low stock: {payload.get('name', '')} ({current:g}/{ideal:g}{' ' + unit if unit else ''})",
            "item_id": payload.get("id"),
            "missing": ideal - current,
        }
    return {}


def register_default_handlers():
    event_bus.subscribe(EXPENSE_SAVED, overdue_expense_handler)
    event_bus.subscribe(BALANCE_COMPUTED, negative_balance_handler)
    event_bus.subscribe(STOCK_CHANGED, low_stock_handler)


register_default_handlers()
