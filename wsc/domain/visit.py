# /wsc/domain/visit.py
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from wsc.errors import VisitError


@dataclass(frozen=True, slots=True)
class Visit:
    url: str  # exactly as given on input
    body_size: int  # bytes of the dumped response; 0 on failure
    error: VisitError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def sort_visits(visits: Iterable[Visit], ascending: bool = True) -> list[Visit]:
    """Order visits by body_size. Stable: equal sizes keep their input order in both directions."""
    return sorted(visits, key=lambda v: v.body_size, reverse=not ascending)


def contains(items: Iterable[str], item: str) -> bool:
    """Case-sensitive membership test."""
    return any(candidate == item for candidate in items)
