"""Record stores: typed views over the raw key-value storage.

Month-scoped lists live under ``month_<YYYY-MM>_<suffix>``; the inventory
and the profile settings are global keys. Reads fail closed: unparsable
JSON yields the empty/default value and a malformed record is skipped
with a warning, so the UI never sees half-built records. Skipped entries
are written back untouched whenever their list is saved.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Generic, List, Optional, Tuple, Type, TypeVar

from pocketbook import config, transforms
from pocketbook.domain import (
    ExpenseRecord,
    GoalRecord,
    IncomeRecord,
    InventoryItem,
    TaxSnapshot,
)
from pocketbook.months import month_storage_key
from pocketbook.storage import Storage

logger = logging.getLogger(__name__)

R = TypeVar("R")

INCOME_SUFFIX = "receitas"
EXPENSES_SUFFIX = "despesas"
GOALS_SUFFIX = "metas"
TAXES_SUFFIX = "impostos"
BALANCE_SUFFIX = "balance"

INVENTORY_KEY = "market_inventory"
PROFILE_NAME_KEY = "profile_name"
PROFILE_AVATAR_KEY = "profile_avatar"
THEME_KEY = "theme"
LANGUAGE_KEY = "language"

DEFAULT_PROFILE_NAME = "User"
MASCOT_AVATARS = (
    "cute-blue-cartoon-character.jpg",
    "happy-green-mascot.jpg",
    "friendly-orange-character.jpg",
    "playful-purple-mascot.jpg",
    "cheerful-pink-character.jpg",
    "cool-red-mascot.jpg",
)


def read_json(storage: Storage, key: str, default: Any) -> Any:
    raw = storage.get(key)
    if raw is None or raw == "":
        return default
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        logger.warning("Ignoring malformed JSON under %r: %s", key, exc)
        return default


def write_json(storage: Storage, key: str, value: Any) -> None:
    storage.set(key, json.dumps(value, ensure_ascii=False))


def split_records(raw: Any, record_type: Type[R], key: str) -> Tuple[Tuple[R, ...], List[Any]]:
    """Parsed records, plus the stored entries that could not be parsed.

    The unparsed entries are returned as-is so a later write can carry them
    along instead of erasing them.
    """
    if raw is None:
        return (), []
    if not isinstance(raw, list):
        logger.warning("Expected a list under %r, got %s", key, type(raw).__name__)
        return (), [raw]
    out = []
    rejected = []
    for idx, item in enumerate(raw):
        if not isinstance(item, dict):
            logger.warning("Skipping non-object record #%d under %r", idx, key)
            rejected.append(item)
            continue
        try:
            out.append(record_type.from_dict(item))
        except ValueError as exc:
            logger.warning("Skipping malformed record #%d under %r: %s", idx, key, exc)
            rejected.append(item)
    return tuple(out), rejected


def load_records(storage: Storage, key: str, record_type: Type[R]) -> Tuple[Tuple[R, ...], List[Any]]:
    raw = storage.get(key)
    if raw is None or raw == "":
        return (), []
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        logger.warning("Ignoring malformed JSON under %r: %s", key, exc)
        # the unreadable text itself is kept as a single entry
        return (), [raw]
    return split_records(data, record_type, key)


def save_records(storage: Storage, key: str, records: Tuple, rejected: Optional[List[Any]] = None) -> None:
    if rejected:
        logger.warning("Keeping %d unreadable entries under %r", len(rejected), key)
    write_json(storage, key, [r.to_dict() for r in records] + list(rejected or []))


class MonthlyRecordStore(Generic[R]):
    """Ordered per-month list of records of one type."""

    suffix: str = ""
    record_type: Type = object

    def __init__(self, storage: Storage):
        self.storage = storage

    def key(self, month: str) -> str:
        return month_storage_key(month, self.suffix)

    def load(self, month: str) -> Tuple[R, ...]:
        return load_records(self.storage, self.key(month), self.record_type)[0]

    def save(self, month: str, records: Tuple[R, ...]) -> None:
        key = self.key(month)
        _, rejected = load_records(self.storage, key, self.record_type)
        save_records(self.storage, key, records, rejected)

    def _apply(self, month: str, change: Callable[[Tuple[R, ...]], Tuple[R, ...]]) -> Tuple[R, ...]:
        updated = change(self.load(month))
        self.save(month, updated)
        return updated

    def add(self, month: str, record: R) -> Tuple[R, ...]:
        return self._apply(month, lambda rs: transforms.add_record(rs, record))

    def update(self, month: str, record: R) -> Tuple[R, ...]:
        return self._apply(month, lambda rs: transforms.replace_record(rs, record))

    def remove(self, month: str, record_id: str) -> Tuple[R, ...]:
        return self._apply(month, lambda rs: transforms.remove_record(rs, record_id))


class IncomeStore(MonthlyRecordStore[IncomeRecord]):
    suffix = INCOME_SUFFIX
    record_type = IncomeRecord


class ExpenseStore(MonthlyRecordStore[ExpenseRecord]):
    suffix = EXPENSES_SUFFIX
    record_type = ExpenseRecord

    def toggle_paid(self, month: str, expense_id: str) -> Tuple[ExpenseRecord, ...]:
        return self._apply(month, lambda rs: transforms.toggle_paid(rs, expense_id))


class GoalStore(MonthlyRecordStore[GoalRecord]):
    suffix = GOALS_SUFFIX
    record_type = GoalRecord

    def set_amount(self, month: str, goal_id: str, amount: float) -> Tuple[GoalRecord, ...]:
        return self._apply(month, lambda rs: transforms.set_goal_amount(rs, goal_id, amount))


class TaxStore:

    def __init__(self, storage: Storage):
        self.storage = storage

    def key(self, month: str) -> str:
        return month_storage_key(month, TAXES_SUFFIX)

    def load(self, month: str) -> TaxSnapshot:
        key = self.key(month)
        raw = read_json(self.storage, key, {})
        if not isinstance(raw, dict):
            logger.warning("Expected an object under %r, got %s", key, type(raw).__name__)
            return TaxSnapshot()
        try:
            return TaxSnapshot.from_dict(raw)
        except ValueError as exc:
            logger.warning("Ignoring malformed tax snapshot under %r: %s", key, exc)
            return TaxSnapshot()

    def save(self, month: str, snapshot: TaxSnapshot) -> None:
        write_json(self.storage, self.key(month), snapshot.to_dict())


class InventoryStore:

    def __init__(self, storage: Storage):
        self.storage = storage

    def load(self) -> Tuple[InventoryItem, ...]:
        return load_records(self.storage, INVENTORY_KEY, InventoryItem)[0]

    def save(self, items: Tuple[InventoryItem, ...]) -> None:
        _, rejected = load_records(self.storage, INVENTORY_KEY, InventoryItem)
        save_records(self.storage, INVENTORY_KEY, items, rejected)

    def _apply(self, change) -> Tuple[InventoryItem, ...]:
        updated = change(self.load())
        self.save(updated)
        return updated

    def add(self, item: InventoryItem) -> Tuple[InventoryItem, ...]:
        return self._apply(lambda items: transforms.add_record(items, item))

    def update(self, item: InventoryItem) -> Tuple[InventoryItem, ...]:
        return self._apply(lambda items: transforms.replace_record(items, item))

    def remove(self, item_id: str) -> Tuple[InventoryItem, ...]:
        return self._apply(lambda items: transforms.remove_record(items, item_id))

    def mark_bought(self, item_id: str) -> Tuple[InventoryItem, ...]:
        return self._apply(lambda items: transforms.mark_bought(items, item_id))


class ProfileStore:
    """Plain-string profile settings: name, avatar, theme and language."""

    def __init__(self, storage: Storage):
        self.storage = storage

    @property
    def name(self) -> str:
        return self.storage.get(PROFILE_NAME_KEY) or DEFAULT_PROFILE_NAME

    @property
    def avatar(self) -> str:
        return self.storage.get(PROFILE_AVATAR_KEY) or MASCOT_AVATARS[0]

    def save_profile(self, name: str, avatar: Optional[str] = None) -> None:
        self.storage.set(PROFILE_NAME_KEY, name.strip() or DEFAULT_PROFILE_NAME)
        if avatar:
            self.storage.set(PROFILE_AVATAR_KEY, avatar)

    @property
    def theme(self) -> str:
        return "dark" if self.storage.get(THEME_KEY) == "dark" else "light"

    def toggle_theme(self) -> str:
        new_theme = "light" if self.theme == "dark" else "dark"
        self.storage.set(THEME_KEY, new_theme)
        return new_theme

    @property
    def language(self) -> str:
        saved = self.storage.get(LANGUAGE_KEY)
        return saved if saved in config.SUPPORTED_LANGUAGES else config.DEFAULT_LANGUAGE

    def set_language(self, language: str) -> None:
        if language not in config.SUPPORTED_LANGUAGES:
            raise ValueError(f"unsupported language: {language!r}")
        self.storage.set(LANGUAGE_KEY, language)
