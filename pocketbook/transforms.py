import math
import time
from collections import defaultdict
from datetime import date
from functools import reduce
from typing import Dict, Optional, Tuple, TypeVar

from pocketbook.domain import (
    ExpenseRecord,
    GoalRecord,
    InventoryItem,
    ShoppingListItem,
    TaxSnapshot,
)

R = TypeVar("R")


def new_record_id() -> str:
    # millisecond timestamp, same shape as the ids already in stored data
    return str(int(time.time() * 1000))


def add_record(records: Tuple[R, ...], record: R) -> Tuple[R, ...]:
    return records + (record,)


def replace_record(records: Tuple[R, ...], record: R) -> Tuple[R, ...]:
    return tuple(record if r.id == record.id else r for r in records)


def remove_record(records: Tuple[R, ...], record_id: str) -> Tuple[R, ...]:
    return tuple(filter(lambda r: r.id != record_id, records))


def toggle_paid(
    expenses: Tuple[ExpenseRecord, ...], expense_id: str
) -> Tuple[ExpenseRecord, ...]:
    return tuple(
        ExpenseRecord(
            id=e.id,
            name=e.name,
            amount=e.amount,
            category=e.category,
            is_paid=not e.is_paid if e.id == expense_id else e.is_paid,
            tax=e.tax,
            due_date=e.due_date,
        )
        for e in expenses
    )


def set_goal_amount(
    goals: Tuple[GoalRecord, ...], goal_id: str, amount: float
) -> Tuple[GoalRecord, ...]:
    return tuple(
        GoalRecord(
            id=g.id,
            name=g.name,
            target_amount=g.target_amount,
            current_amount=amount if g.id == goal_id else g.current_amount,
            category=g.category,
            deadline=g.deadline,
        )
        for g in goals
    )


def mark_bought(
    items: Tuple[InventoryItem, ...], item_id: str
) -> Tuple[InventoryItem, ...]:
    return tuple(
        InventoryItem(
            id=i.id,
            name=i.name,
            current_quantity=i.ideal_quantity if i.id == item_id else i.current_quantity,
            ideal_quantity=i.ideal_quantity,
            unit=i.unit,
            category=i.category,
        )
        for i in items
    )


def total_amount(records: Tuple, attr: str = "amount") -> float:
    return reduce(lambda acc, r: acc + getattr(r, attr), records, 0.0)


def paid_expenses(expenses: Tuple[ExpenseRecord, ...]) -> Tuple[ExpenseRecord, ...]:
    return tuple(filter(lambda e: e.is_paid, expenses))


def pending_expenses(expenses: Tuple[ExpenseRecord, ...]) -> Tuple[ExpenseRecord, ...]:
    return tuple(filter(lambda e: not e.is_paid, expenses))


def paid_total(expenses: Tuple[ExpenseRecord, ...]) -> float:
    return reduce(lambda acc, e: acc + e.amount if e.is_paid else acc, expenses, 0.0)


def is_overdue(expense: ExpenseRecord, today: Optional[date] = None) -> bool:
    if not expense.due_date or expense.is_paid:
        return False
    try:
        due = date.fromisoformat(expense.due_date)
    except ValueError:
        return False
    return due < (today or date.today())


def goal_progress(goal: GoalRecord) -> float:
    if goal.target_amount <= 0:
        return 100.0
    return min(goal.current_amount * 100 / goal.target_amount, 100.0)


def shopping_list(items: Tuple[InventoryItem, ...]) -> Tuple[ShoppingListItem, ...]:
    return tuple(
        ShoppingListItem(item=i, quantity_to_buy=i.ideal_quantity - i.current_quantity)
        for i in items
        if i.current_quantity < i.ideal_quantity
    )


def stock_percentage(item: InventoryItem) -> float:
    if item.ideal_quantity <= 0:
        return 100.0
    return min(item.current_quantity * 100 / item.ideal_quantity, 100.0)


def group_by_category(records: Tuple[R, ...]) -> Dict[str, Tuple[R, ...]]:
    groups: Dict[str, list] = defaultdict(list)
    for r in records:
        groups[r.category].append(r)
    return {k: tuple(v) for k, v in groups.items()}


def sum_by_category(records: Tuple, attr: str = "amount") -> Dict[str, float]:
    totals: Dict[str, float] = {}
    for r in records:
        totals[r.category] = totals.get(r.category, 0.0) + getattr(r, attr)
    return totals


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def tax_breakdown(snapshot: TaxSnapshot) -> Dict[str, float]:
    """Derived figures for the tax meter.

    Percentages are 0 when their base (income received or market spend)
    is 0. ``days_worked`` is the share of a 30-day month spent paying taxes.
    """
    total = snapshot.total_taxes
    income_pct = (
        snapshot.income_tax_paid * 100 / snapshot.income_received
        if snapshot.income_received > 0 else 0.0
    )
    market_pct = (
        snapshot.market_tax_paid * 100 / snapshot.market_spend
        if snapshot.market_spend > 0 else 0.0
    )
    income = snapshot.income_received
    total_pct = total * 100 / income if income > 0 else 0.0
    days = _round_half_up(total * 30 / income) if income > 0 else 0
    return {
        "total_taxes": total,
        "net_income": snapshot.income_received - snapshot.income_tax_paid,
        "income_tax_pct": income_pct,
        "market_tax_pct": market_pct,
        "total_tax_pct": total_pct,
        "days_worked": days,
    }
