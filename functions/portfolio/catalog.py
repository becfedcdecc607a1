"""
Project catalog filtering.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Iterable, Mapping, Sequence

from portfolio.db import ProjectRecord

ACCESS_PREMIUM = "premium"
ACCESS_FREE = "free"


@dataclass(frozen=True)
class ProjectFilters:
    search: str = ""
    categories: tuple[str, ...] = field(default_factory=tuple)
    premium_only: bool = False
    free_only: bool = False

    @classmethod
    def from_query(
        cls,
        search: str | None = None,
        categories: Sequence[str] | None = None,
        access: str | None = None,
    ) -> "ProjectFilters":
        return cls(
            search=(search or "").strip(),
            categories=tuple(c for c in (categories or []) if c),
            premium_only=access == ACCESS_PREMIUM,
            free_only=access == ACCESS_FREE,
        )

    @property
    def is_active(self) -> bool:
        return bool(
            self.search or self.categories or self.premium_only or self.free_only
        )

    @property
    def access(self) -> str | None:
        if self.premium_only:
            return ACCESS_PREMIUM
        if self.free_only:
            return ACCESS_FREE
        return None

    def toggle_category(self, category: str) -> "ProjectFilters":
        if category in self.categories:
            return replace(
                self, categories=tuple(c for c in self.categories if c != category)
            )
        return replace(self, categories=self.categories + (category,))

    def toggle_premium(self) -> "ProjectFilters":
        # Premium-only and free-only are mutually exclusive.
        premium_only = not self.premium_only
        return replace(
            self,
            premium_only=premium_only,
            free_only=False if premium_only else self.free_only,
        )

    def toggle_free(self) -> "ProjectFilters":
        free_only = not self.free_only
        return replace(
            self,
            free_only=free_only,
            premium_only=False if free_only else self.premium_only,
        )

    def cleared(self) -> "ProjectFilters":
        return ProjectFilters()

    def as_query(self) -> Mapping[str, object]:
        query: dict[str, object] = {}
        if self.search:
            query["q"] = self.search
        if self.categories:
            query["category"] = list(self.categories)
        if self.access:
            query["access"] = self.access
        return query


def _matches_search(project: ProjectRecord, term: str) -> bool:
    return (
        term in project.title.lower()
        or term in project.description.lower()
        or any(term in tag.lower() for tag in project.tags)
    )


def filter_projects(
    projects: Iterable[ProjectRecord], filters: ProjectFilters
) -> list[ProjectRecord]:
    """Narrows ``projects`` by search text, category and access, keeping order."""
    result = list(projects)

    if filters.search:
        term = filters.search.lower()
        result = [p for p in result if _matches_search(p, term)]

    if filters.categories:
        result = [p for p in result if p.category in filters.categories]

    if filters.premium_only:
        result = [p for p in result if p.is_premium]
    elif filters.free_only:
        result = [p for p in result if not p.is_premium]

    return result


def list_categories(projects: Iterable[ProjectRecord]) -> list[str]:
    return sorted({p.category for p in projects if p.category})
