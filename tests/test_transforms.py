from datetime import date

from pocketbook.domain import ExpenseRecord, GoalRecord, InventoryItem, TaxSnapshot
from pocketbook.transforms import (
    add_record,
    goal_progress,
    group_by_category,
    is_overdue,
    mark_bought,
    paid_total,
    pending_expenses,
    remove_record,
    replace_record,
    set_goal_amount,
    shopping_list,
    stock_percentage,
    sum_by_category,
    tax_breakdown,
    toggle_paid,
    total_amount,
)


def make_expense(id, amount, is_paid=True, category="Rent", due_date=None):
    return ExpenseRecord(id=id, name=id, amount=amount, category=category, is_paid=is_paid, due_date=due_date)


def make_item(id, current, ideal, category="Food"):
    return InventoryItem(id=id, name=id, current_quantity=current, ideal_quantity=ideal, unit="un", category=category)


def test_add_record_immutability():
    e1 = make_expense("e1", 10)
    records = (e1,)
    new_records = add_record(records, make_expense("e2", 20))
    assert new_records is not records
    assert len(records) == 1
    assert len(new_records) == 2


def test_replace_and_remove_by_id():
    records = (make_expense("a", 1), make_expense("b", 2), make_expense("c", 3))
    replaced = replace_record(records, make_expense("b", 20))
    assert [r.amount for r in replaced] == [1, 20, 3]
    assert [r.id for r in remove_record(records, "a")] == ["b", "c"]
    assert remove_record(records, "zzz") == records


def test_toggle_paid_changes_only_target():
    records = (make_expense("a", 100, True), make_expense("b", 50, True))
    toggled = toggle_paid(records, "a")
    assert toggled[0].is_paid is False
    assert toggled[1].is_paid is True
    assert records[0].is_paid is True


def test_paid_total_excludes_unpaid():
    records = (make_expense("a", 100, True), make_expense("b", 50, False))
    assert paid_total(records) == 100
    assert paid_total(toggle_paid(records, "a")) == 0
    assert paid_total(toggle_paid(toggle_paid(records, "a"), "a")) == 100
    assert [e.id for e in pending_expenses(records)] == ["b"]


def test_total_amount_on_other_attribute():
    goals = (GoalRecord("g1", "A", 1000, 200, "Travel"), GoalRecord("g2", "B", 500, 100, "Home"))
    assert total_amount(goals, "current_amount") == 300
    assert total_amount(goals, "target_amount") == 1500
    assert total_amount(()) == 0


def test_set_goal_amount_and_progress():
    goals = (GoalRecord("g1", "Trip", 1000, 0, "Travel"),)
    updated = set_goal_amount(goals, "g1", 250)
    assert goal_progress(updated[0]) == 25
    assert goal_progress(set_goal_amount(goals, "g1", 5000)[0]) == 100


def test_is_overdue():
    today = date(2024, 1, 15)
    assert is_overdue(make_expense("a", 1, False, due_date="2024-01-10"), today) is True
    assert is_overdue(make_expense("b", 1, True, due_date="2024-01-10"), today) is False
    assert is_overdue(make_expense("c", 1, False, due_date="2024-01-20"), today) is False
    assert is_overdue(make_expense("d", 1, False), today) is False
    assert is_overdue(make_expense("e", 1, False, due_date="soon"), today) is False


def test_shopping_list_and_mark_bought():
    items = (make_item("rice", 1, 3), make_item("soap", 2, 2), make_item("milk", 0, 6))
    to_buy = shopping_list(items)
    assert [(e.item.id, e.quantity_to_buy) for e in to_buy] == [("rice", 2), ("milk", 6)]

    bought = mark_bought(items, "rice")
    assert bought[0].current_quantity == 3
    assert [e.item.id for e in shopping_list(bought)] == ["milk"]


def test_stock_percentage_capped():
    assert stock_percentage(make_item("a", 1, 4)) == 25
    assert stock_percentage(make_item("b", 8, 4)) == 100
    assert stock_percentage(make_item("c", 1, 0)) == 100


def test_grouping_keeps_first_seen_order():
    records = (make_expense("a", 10, category="Food"), make_expense("b", 5, category="Rent"),
               make_expense("c", 7, category="Food"))
    groups = group_by_category(records)
    assert list(groups) == ["Food", "Rent"]
    assert [e.id for e in groups["Food"]] == ["a", "c"]
    assert sum_by_category(records) == {"Food": 17, "Rent": 5}


def test_tax_breakdown():
    b = tax_breakdown(TaxSnapshot(income_received=5000, income_tax_paid=500, market_spend=1000, market_tax_paid=250))
    assert b["total_taxes"] == 750
    assert b["net_income"] == 4500
    assert b["income_tax_pct"] == 10
    assert b["market_tax_pct"] == 25
    assert b["total_tax_pct"] == 15
    assert b["days_worked"] == 5  # 4.5 rounds half up


def test_tax_breakdown_without_income():
    b = tax_breakdown(TaxSnapshot())
    assert b["income_tax_pct"] == 0
    assert b["total_tax_pct"] == 0
    assert b["days_worked"] == 0
