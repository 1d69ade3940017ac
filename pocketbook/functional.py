import math
from abc import ABC, abstractmethod
from typing import Any, Callable, Generic, Iterable, Optional, TypeVar

from pocketbook.domain import ExpenseRecord, GoalRecord, IncomeRecord, InventoryItem
from pocketbook.transforms import new_record_id

T = TypeVar('T')
U = TypeVar('U')
E = TypeVar('E')


class Maybe(Generic[T], ABC):

    @abstractmethod
    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        pass

    @abstractmethod
    def get_or_else(self, default: T) -> T:
        pass

    @abstractmethod
    def is_some(self) -> bool:
        pass

    def is_none(self) -> bool:
        return not self.is_some()


class Some(Maybe[T]):

    def __init__(self, value: T):
        self._value = value

    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        return Some(f(self._value))

    def get_or_else(self, default: T) -> T:
        return self._value

    def is_some(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"Some({self._value!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Some) and self._value == other._value


class Nothing(Maybe[T]):

    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        return Nothing()

    def get_or_else(self, default: T) -> T:
        return default

    def is_some(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "Nothing()"

    def __eq__(self, other) -> bool:
        return isinstance(other, Nothing)


class Either(Generic[E, T], ABC):

    @abstractmethod
    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        pass

    @abstractmethod
    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        pass

    @abstractmethod
    def get_or_else(self, default: T) -> T:
        pass

    @abstractmethod
    def is_right(self) -> bool:
        pass

    def is_left(self) -> bool:
        return not self.is_right()

    @abstractmethod
    def get_error(self) -> E:
        pass


class Right(Either[E, T]):

    def __init__(self, value: T):
        self._value = value

    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        return Right(f(self._value))

    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        return f(self._value)

    def get_or_else(self, default: T) -> T:
        return self._value

    def is_right(self) -> bool:
        return True

    def get_error(self) -> E:
        raise ValueError("Cannot get error from Right")

    def __repr__(self) -> str:
        return f"Right({self._value!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Right) and self._value == other._value


class Left(Either[E, T]):

    def __init__(self, error: E):
        self._error = error

    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        return Left(self._error)

    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        return Left(self._error)

    def get_or_else(self, default: T) -> T:
        return default

    def is_right(self) -> bool:
        return False

    def get_error(self) -> E:
        return self._error

    def __repr__(self) -> str:
        return f"Left({self._error!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Left) and self._error == other._error


def find_record(records: Iterable, record_id: str) -> Maybe:
    for r in records:
        if r.id == record_id:
            return Some(r)
    return Nothing()


def _missing(field: str) -> Left:
    return Left({
        "error": "missing_field",
        "message": f"Field '{field}' is required",
        "field": field,
    })


def _require_text(field: str, raw: Optional[str]) -> Either[dict, str]:
    if raw is None or not str(raw).strip():
        return _missing(field)
    return Right(str(raw).strip())


def _require_amount(field: str, raw: Any, required: bool = True) -> Either[dict, float]:
    """Parse a form number; blank input is missing (or 0 when optional)."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return _missing(field) if required else Right(0.0)
    if isinstance(raw, bool):
        raw = str(raw)
    try:
        value = float(str(raw).strip().replace(",", ".")) if isinstance(raw, str) else float(raw)
    except (TypeError, ValueError):
        return Left({
            "error": "invalid_number",
            "message": f"Field '{field}' must be a number, got {raw!r}",
            "field": field,
        })
    if not math.isfinite(value) or value < 0:
        return Left({
            "error": "invalid_number",
            "message": f"Field '{field}' must be a non-negative number, got {raw!r}",
            "field": field,
        })
    return Right(value)


def new_income(
    name: str, amount: Any, date: str, category: str, record_id: Optional[str] = None
) -> Either[dict, IncomeRecord]:
    return _require_text("name", name).bind(
        lambda n: _require_amount("amount", amount).bind(
            lambda a: _require_text("date", date).bind(
                lambda d: _require_text("category", category).map(
                    lambda c: IncomeRecord(
                        id=record_id or new_record_id(), name=n, amount=a, date=d, category=c
                    )
                )
            )
        )
    )


def new_expense(
    name: str,
    amount: Any,
    category: str,
    is_paid: bool = True,
    tax: Any = None,
    due_date: Optional[str] = None,
    record_id: Optional[str] = None,
) -> Either[dict, ExpenseRecord]:
    def build(n: str, a: float, c: str) -> Either[dict, ExpenseRecord]:
        if tax is None or (isinstance(tax, str) and not tax.strip()):
            parsed_tax: Either[dict, Optional[float]] = Right(None)
        else:
            parsed_tax = _require_amount("tax", tax, required=False)
        return parsed_tax.map(lambda t: ExpenseRecord(
            id=record_id or new_record_id(),
            name=n,
            amount=a,
            category=c,
            is_paid=bool(is_paid),
            tax=t,
            due_date=str(due_date) if due_date else None,
        ))

    return _require_text("name", name).bind(
        lambda n: _require_amount("amount", amount).bind(
            lambda a: _require_text("category", category).bind(
                lambda c: build(n, a, c)
            )
        )
    )


def new_goal(
    name: str,
    target_amount: Any,
    category: str,
    current_amount: Any = 0,
    deadline: Optional[str] = None,
    record_id: Optional[str] = None,
) -> Either[dict, GoalRecord]:
    return _require_text("name", name).bind(
        lambda n: _require_amount("target_amount", target_amount).bind(
            lambda t: _require_amount("current_amount", current_amount, required=False).bind(
                lambda cur: _require_text("category", category).map(
                    lambda c: GoalRecord(
                        id=record_id or new_record_id(),
                        name=n,
                        target_amount=t,
                        current_amount=cur,
                        category=c,
                        deadline=str(deadline) if deadline else None,
                    )
                )
            )
        )
    )


def new_inventory_item(
    name: str,
    current_quantity: Any,
    ideal_quantity: Any,
    unit: str,
    category: str,
    record_id: Optional[str] = None,
) -> Either[dict, InventoryItem]:
    return _require_text("name", name).bind(
        lambda n: _require_amount("current_quantity", current_quantity, required=False).bind(
            lambda cur: _require_amount("ideal_quantity", ideal_quantity).bind(
                lambda ideal: _require_text("unit", unit).bind(
                    lambda u: _require_text("category", category).map(
                        lambda c: InventoryItem(
                            id=record_id or new_record_id(),
                            name=n,
                            current_quantity=cur,
                            ideal_quantity=ideal,
                            unit=u,
                            category=c,
                        )
                    )
                )
            )
        )
    )
