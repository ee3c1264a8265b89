"""List predicates used by the initiative pickers."""
from __future__ import annotations

from typing import Iterable, Protocol, TypeVar

ALL = "all"


class _InitiativeLike(Protocol):
    id: object
    status: str
    site: str
    initiative_number: str | None


class _AssignedLike(Protocol):
    title: str
    status: str
    initiative_number: str


RowT = TypeVar("RowT", bound=_InitiativeLike)
AssignedT = TypeVar("AssignedT", bound=_AssignedLike)


def matches_initiative(row: _InitiativeLike, status: str = ALL, site: str = ALL, search: str = "") -> bool:
    if status.lower() != ALL and status.lower() not in (row.status or "").lower():
        return False
    if site.lower() != ALL and row.site != site:
        return False
    if search:
        needle = search.lower()
        number = (row.initiative_number or "").lower()
        identifier = str(row.id if row.id is not None else "").lower()
        if needle not in number and needle not in identifier:
            return False
    return True


def filter_initiatives(rows: Iterable[RowT], status: str = ALL, site: str = ALL, search: str = "") -> list[RowT]:
    """Status substring, exact site and number/id substring, all case-insensitive except site."""

    return [row for row in rows if matches_initiative(row, status, site, search)]


def filter_assigned(rows: Iterable[AssignedT], search: str = "", status: str = "ALL") -> list[AssignedT]:
    needle = search.lower()
    return [
        row
        for row in rows
        if (needle in row.title.lower() or needle in row.initiative_number.lower())
        and (status == "ALL" or row.status == status)
    ]
