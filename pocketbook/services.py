import logging
import math
from typing import Dict, Iterable, Optional

import pandas as pd

from pocketbook.domain import MonthSummary
from pocketbook.months import all_month_keys, month_storage_key, previous_month_key
from pocketbook.records import BALANCE_SUFFIX, ExpenseStore, IncomeStore, TaxStore
from pocketbook.storage import Storage
from pocketbook.transforms import paid_expenses, paid_total, sum_by_category, total_amount

logger = logging.getLogger(__name__)

HISTORY_COLUMNS = [
    "month", "income", "paid_expenses", "taxes",
    "month_balance", "previous_balance", "total_balance",
]


def format_balance(value: float) -> str:
    """Render a balance the way the stored values have always looked ("3500", "3500.5")."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def parse_balance(raw: Optional[str]) -> float:
    if raw is None or not raw.strip():
        return 0.0
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Unparsable running balance %r, using 0", raw)
        return 0.0
    if not math.isfinite(value):
        logger.warning("Non-finite running balance %r, using 0", raw)
        return 0.0
    return value


class BalanceAggregator:
    """Monthly totals and the running balance carried from month to month.

    The running balance of a month is cached in storage and rewritten every
    time ``summarize`` runs for that month. Editing an earlier month does not
    refresh later months until they are summarized again.
    """

    def __init__(self, storage: Storage):
        self.storage = storage
        self.incomes = IncomeStore(storage)
        self.expenses = ExpenseStore(storage)
        self.taxes = TaxStore(storage)

    def balance_key(self, month: str) -> str:
        return month_storage_key(month, BALANCE_SUFFIX)

    def running_balance(self, month: str) -> float:
        return parse_balance(self.storage.get(self.balance_key(month)))

    def summarize(self, month: str) -> MonthSummary:
        incomes = self.incomes.load(month)
        expenses = self.expenses.load(month)
        snapshot = self.taxes.load(month)

        income = total_amount(incomes)
        paid = paid_total(expenses)
        taxes = snapshot.total_taxes
        month_balance = income - paid - taxes

        previous = self.running_balance(previous_month_key(month))
        total = previous + month_balance

        self.storage.set(self.balance_key(month), format_balance(total))
        logger.debug("Running balance for %s: %s (previous %s)", month, total, previous)

        return MonthSummary(
            month=month,
            income=income,
            paid_expenses=paid,
            taxes=taxes,
            month_balance=month_balance,
            previous_balance=previous,
            total_balance=total,
            income_by_category=sum_by_category(incomes),
            expenses_by_category=sum_by_category(paid_expenses(expenses)),
        )

    def history(self, months: Optional[Iterable[str]] = None) -> pd.DataFrame:
        """Summarize each month in ascending order, one row per month.

        Defaults to every month with stored data. Each month is a full
        ``summarize`` call, so the cached balances are refreshed in order.
        """
        selected = sorted(set(months)) if months is not None else all_month_keys(self.storage)
        rows = []
        for m in selected:
            s = self.summarize(m)
            rows.append({col: getattr(s, col) for col in HISTORY_COLUMNS})
        return pd.DataFrame(rows, columns=HISTORY_COLUMNS)


def percentages(summary: MonthSummary) -> Dict[str, Optional[float]]:
    """Share of the month's income taken by expenses and taxes, and left over.

    All values are ``None`` when there is no income to divide by.
    """
    if summary.income <= 0:
        return {"expenses": None, "taxes": None, "leftover": None}
    return {
        "expenses": summary.paid_expenses * 100 / summary.income,
        "taxes": summary.taxes * 100 / summary.income,
        "leftover": max(0.0, summary.month_balance) * 100 / summary.income,
    }
