from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

"""Read-only reference catalogs (accounts, categories, groups).

Catalogs are supplied by the external CRUD layer before an import starts and
are never modified by the pipeline.
"""

__all__ = [
    "CatalogEntry",
    "Catalogs",
    "sort_entries",
]


@dataclass(frozen=True)
class CatalogEntry:
    name: str
    id: str


def sort_entries(entries: Iterable[CatalogEntry]) -> tuple[CatalogEntry, ...]:
    """Stable, deterministic order: case-insensitive name, then identifier."""
    return tuple(sorted(entries, key=lambda e: (e.name.lower(), e.name, e.id)))


def _find(entries: Iterable[CatalogEntry], name: str) -> CatalogEntry | None:
    needle = name.strip().lower()
    if not needle:
        return None
    for entry in entries:
        if entry.name.lower() == needle:
            return entry
    return None


@dataclass(frozen=True)
class Catalogs:
    """Bundle of the three catalogs the import consumes.

    Categories are kept sorted so fuzzy matching resolves ties the same way
    on every run regardless of the order the upstream API returned them in.
    """
    accounts: tuple[CatalogEntry, ...] = ()
    categories: tuple[CatalogEntry, ...] = ()
    groups: tuple[CatalogEntry, ...] = ()
    # False: no group catalog supplied, group names are not checked
    groups_known: bool = field(default=False)

    @classmethod
    def build(
        cls,
        accounts: Iterable[CatalogEntry] = (),
        categories: Iterable[CatalogEntry] = (),
        groups: Iterable[CatalogEntry] | None = None,
    ) -> Catalogs:
        return cls(
            accounts=tuple(accounts),
            categories=sort_entries(categories),
            groups=tuple(groups or ()),
            groups_known=groups is not None,
        )

    def category_names(self) -> list[str]:
        return [c.name for c in self.categories]

    def group_names(self) -> list[str] | None:
        """Known group names, or None when no group catalog was supplied."""
        if not self.groups_known:
            return None
        return [g.name for g in self.groups]

    def find_category(self, name: str) -> CatalogEntry | None:
        return _find(self.categories, name)

    def find_group(self, name: str) -> CatalogEntry | None:
        return _find(self.groups, name)

    def has_account(self, account_id: str) -> bool:
        """True when the account is known, or when no account catalog exists."""
        if not self.accounts:
            return True
        return any(a.id == account_id for a in self.accounts)
