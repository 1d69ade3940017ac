import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

MONTH_KEY_RE = re.compile(r"^(\d{4})-(\d{2})$")


class InvalidMonthKey(ValueError):
    pass


@dataclass(frozen=True, order=True)
class MonthKey:
    year: int
    month: int   # 1..12

    def __post_init__(self):
        if not 0 <= self.year <= 9999:
            raise InvalidMonthKey(f"year out of range: {self.year}")
        if not 1 <= self.month <= 12:
            raise InvalidMonthKey(f"month out of range: {self.month}")

    @classmethod
    def parse(cls, text: str) -> "MonthKey":
        if not isinstance(text, str):
            raise InvalidMonthKey(f"month key must be a string, got {type(text).__name__}")
        match = MONTH_KEY_RE.match(text)
        if match is None:
            raise InvalidMonthKey(f"malformed month key: {text!r}")
        return cls(int(match.group(1)), int(match.group(2)))

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


def _number(data: Dict[str, Any], key: str, default: Optional[float] = None) -> float:
    value = data.get(key, default)
    if value is None:
        raise ValueError(f"missing field {key!r}")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"field {key!r} must be a number, got {value!r}")
    value = float(value)
    if not math.isfinite(value) or value < 0:
        raise ValueError(f"field {key!r} must be a finite non-negative number, got {value!r}")
    return value


def _text(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise ValueError(f"field {key!r} must be a string, got {value!r}")
    return value


def _optional_text(data: Dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value in (None, ""):
        return None
    if not isinstance(value, str):
        raise ValueError(f"field {key!r} must be a string, got {value!r}")
    return value


@dataclass(frozen=True)
class IncomeRecord:
    id: str
    name: str
    amount: float
    date: str        # "YYYY-MM-DD"
    category: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "IncomeRecord":
        return cls(
            id=_text(data, "id"),
            name=_text(data, "nome"),
            amount=_number(data, "valor"),
            date=_text(data, "data"),
            category=_text(data, "categoria"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "nome": self.name,
            "valor": self.amount,
            "data": self.date,
            "categoria": self.category,
        }


@dataclass(frozen=True)
class ExpenseRecord:
    id: str
    name: str
    amount: float
    category: str
    is_paid: bool
    tax: Optional[float] = None
    due_date: Optional[str] = None   # "YYYY-MM-DD"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExpenseRecord":
        is_paid = data.get("isPaid")
        if not isinstance(is_paid, bool):
            raise ValueError(f"field 'isPaid' must be a boolean, got {is_paid!r}")
        tax = data.get("tax")
        return cls(
            id=_text(data, "id"),
            name=_text(data, "name"),
            amount=_number(data, "amount"),
            category=_text(data, "category"),
            is_paid=is_paid,
            tax=None if tax is None else _number(data, "tax"),
            due_date=_optional_text(data, "dueDate"),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "amount": self.amount,
            "category": self.category,
            "isPaid": self.is_paid,
        }
        if self.tax is not None:
            out["tax"] = self.tax
        if self.due_date:
            out["dueDate"] = self.due_date
        return out


@dataclass(frozen=True)
class TaxSnapshot:
    income_received: float = 0.0
    income_tax_paid: float = 0.0
    market_spend: float = 0.0
    market_tax_paid: float = 0.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TaxSnapshot":
        return cls(
            income_received=_number(data, "rendaRecebida", 0),
            income_tax_paid=_number(data, "impostoRenda", 0),
            market_spend=_number(data, "gastoMercado", 0),
            market_tax_paid=_number(data, "impostoMercado", 0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rendaRecebida": self.income_received,
            "impostoRenda": self.income_tax_paid,
            "gastoMercado": self.market_spend,
            "impostoMercado": self.market_tax_paid,
        }

    @property
    def total_taxes(self) -> float:
        return self.income_tax_paid + self.market_tax_paid


@dataclass(frozen=True)
class GoalRecord:
    id: str
    name: str
    target_amount: float
    current_amount: float
    category: str
    deadline: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GoalRecord":
        return cls(
            id=_text(data, "id"),
            name=_text(data, "name"),
            target_amount=_number(data, "targetAmount"),
            current_amount=_number(data, "currentAmount", 0),
            category=_text(data, "category"),
            deadline=_optional_text(data, "deadline"),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "targetAmount": self.target_amount,
            "currentAmount": self.current_amount,
            "category": self.category,
        }
        if self.deadline:
            out["deadline"] = self.deadline
        return out


@dataclass(frozen=True)
class InventoryItem:
    id: str
    name: str
    current_quantity: float
    ideal_quantity: float
    unit: str        # free text, e.g. "kg" or "un"
    category: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InventoryItem":
        return cls(
            id=_text(data, "id"),
            name=_text(data, "name"),
            current_quantity=_number(data, "currentQuantity"),
            ideal_quantity=_number(data, "idealQuantity"),
            unit=_text(data, "unit"),
            category=_text(data, "category"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "currentQuantity": self.current_quantity,
            "idealQuantity": self.ideal_quantity,
            "unit": self.unit,
            "category": self.category,
        }


@dataclass(frozen=True)
class ShoppingListItem:
    item: InventoryItem
    quantity_to_buy: float


@dataclass(frozen=True)
class MonthSummary:
    month: str
    income: float
    paid_expenses: float
    taxes: float
    month_balance: float
    previous_balance: float
    total_balance: float
    income_by_category: Dict[str, float] = field(default_factory=dict)
    expenses_by_category: Dict[str, float] = field(default_factory=dict)
