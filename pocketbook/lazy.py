from collections import defaultdict
from typing import Callable, Iterable, Iterator, Tuple

from pocketbook.domain import ExpenseRecord


def iter_records(records: Iterable, pred: Callable[[object], bool]) -> Iterable:
    for r in records:
        if pred(r):
            yield r


def top_expense_categories(
    expenses: Iterable[ExpenseRecord], k: int
) -> Iterator[Tuple[str, float]]:
    totals_by_category: dict[str, float] = defaultdict(float)

    for e in expenses:
        if e.is_paid:
            totals_by_category[e.category] += e.amount

    ordered: list[Tuple[str, float]] = sorted(
        totals_by_category.items(),
        key=lambda item: item[1],
        reverse=True,
    )

    for name, total in ordered[: max(0, k)]:
        yield name, total
