import re
from datetime import date, datetime
from functools import lru_cache
from typing import List, Optional

from pocketbook.domain import InvalidMonthKey, MonthKey
from pocketbook.storage import Storage

__all__ = [
    'InvalidMonthKey', 'current_month_key', 'previous_month_key', 'next_month_key',
    'month_display', 'get_locale', 'all_month_keys', 'month_storage_key',
]

MONTH_PREFIX = "month_"
_STORED_KEY_RE = re.compile(r"^month_(\d{4}-\d{2})_")

MONTH_NAMES = {
    "en-US": (
        "January", "February", "March", "April", "May", "June",
        "July", "August", "September", "October", "November", "December",
    ),
    "pt-BR": (
        "janeiro", "fevereiro", "março", "abril", "maio", "junho",
        "julho", "agosto", "setembro", "outubro", "novembro", "dezembro",
    ),
}


def current_month_key(today: Optional[date] = None) -> str:
    now = today or datetime.now()
    return str(MonthKey(now.year, now.month))


def previous_month_key(key: str) -> str:
    mk = MonthKey.parse(key)
    if mk.month == 1:
        return str(MonthKey(mk.year - 1, 12))
    return str(MonthKey(mk.year, mk.month - 1))


def next_month_key(key: str) -> str:
    mk = MonthKey.parse(key)
    if mk.month == 12:
        return str(MonthKey(mk.year + 1, 1))
    return str(MonthKey(mk.year, mk.month + 1))


def get_locale(language: str) -> str:
    return "en-US" if language == "en" else "pt-BR"


@lru_cache(maxsize=256)
def month_display(key: str, locale: str = "en-US") -> str:
    mk = MonthKey.parse(key)
    if locale.lower().startswith("pt"):
        return f"{MONTH_NAMES['pt-BR'][mk.month - 1]} de {mk.year}"
    return f"{MONTH_NAMES['en-US'][mk.month - 1]} {mk.year}"


def month_storage_key(key: str, suffix: str) -> str:
    return f"{MONTH_PREFIX}{MonthKey.parse(key)}_{suffix}"


def all_month_keys(storage: Storage) -> List[str]:
    found = set()
    for k in storage.keys():
        match = _STORED_KEY_RE.match(k)
        if match is None:
            continue
        try:
            found.add(str(MonthKey.parse(match.group(1))))
        except InvalidMonthKey:
            continue
    return sorted(found)
