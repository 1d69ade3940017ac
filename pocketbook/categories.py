import json
import logging
from typing import List, Tuple

from pocketbook.storage import Storage

logger = logging.getLogger(__name__)

INCOME = "receitas"
EXPENSES = "despesas"
GOALS = "metas"
MARKET = "market"

DEFAULT_CATEGORIES = {
    INCOME: {
        "en": ("Salary", "Freelance", "Investments", "Bonus", "Other"),
        "pt": ("Salário", "Freelance", "Investimentos", "Bônus", "Outros"),
    },
    EXPENSES: {
        "en": ("Rent", "Condo Fee", "Water", "Electricity", "Internet", "Food", "Transport", "Other"),
        "pt": ("Aluguel", "Condomínio", "Água", "Luz", "Internet", "Alimentação", "Transporte", "Outros"),
    },
    GOALS: {
        "en": ("Emergency", "Travel", "Retirement", "Education", "Home", "Other"),
        "pt": ("Emergência", "Viagem", "Aposentadoria", "Educação", "Casa", "Outros"),
    },
    MARKET: {
        "en": ("Food", "Beverages", "Cleaning", "Personal Care", "Other"),
        "pt": ("Alimentos", "Bebidas", "Limpeza", "Higiene Pessoal", "Outros"),
    },
}


# goal categories used to be stored under a differently shaped key
LEGACY_KEYS = {GOALS: "custom_goal_categories"}


def custom_categories_key(domain: str) -> str:
    return f"{domain}_custom_categories"


class CategoryList:
    """Built-in categories for a domain plus the user's own, stored globally."""

    def __init__(self, storage: Storage, domain: str, language: str = "en"):
        if domain not in DEFAULT_CATEGORIES:
            raise ValueError(f"unknown category domain: {domain!r}")
        self.storage = storage
        self.domain = domain
        self.language = language if language in DEFAULT_CATEGORIES[domain] else "en"
        self.key = custom_categories_key(domain)

    def builtin(self) -> Tuple[str, ...]:
        return DEFAULT_CATEGORIES[self.domain][self.language]

    def custom(self) -> List[str]:
        source = self.key
        raw = self.storage.get(source)
        if raw is None and self.domain in LEGACY_KEYS:
            source = LEGACY_KEYS[self.domain]
            raw = self.storage.get(source)
        if not raw:
            return []
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning("Ignoring malformed custom categories under %r: %s", source, exc)
            return []
        if not isinstance(data, list):
            logger.warning("Expected a list under %r, got %s", source, type(data).__name__)
            return []
        return [c for c in data if isinstance(c, str)]

    def all(self) -> List[str]:
        return list(self.builtin()) + self.custom()

    def _save(self, custom: List[str]) -> None:
        self.storage.set(self.key, json.dumps(custom, ensure_ascii=False))

    def add(self, name: str) -> bool:
        name = (name or "").strip()
        if not name or name in self.all():
            return False
        self._save(self.custom() + [name])
        return True

    def remove(self, name: str) -> bool:
        custom = self.custom()
        if name in self.builtin() or name not in custom:
            return False
        self._save([c for c in custom if c != name])
        return True
