"""
Asset listing filters as explicit predicate trees.

The listing query is assembled from small typed nodes (``Eq``, ``IsNull``,
``Contains``, ``AllOf``, ``AnyOf``) and compiled to a SQLAlchemy expression by
``to_sql``. Grouping is structural: the search OR-group and the department
OR-group are separate children of one AND node, never a flattened OR.

Visibility rules for digital assets:
- only active rows;
- ADMIN: every department, unless an explicit department (other than "all")
  is requested;
- everyone else: own department, plus rows whose department is NULL or "".
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Union

from sqlalchemy import and_, false, or_, true
from sqlalchemy.sql.elements import ColumnElement

from assethub.models.assets import DigitalAsset
from assethub.security.context import TokenClaims

ALL_DEPARTMENTS = "all"


# ---- Predicate nodes -----------------------------------------------------------------


@dataclass(frozen=True)
class Eq:
    field: str
    value: object


@dataclass(frozen=True)
class IsNull:
    field: str


@dataclass(frozen=True)
class Contains:
    """Substring match; case sensitivity follows the database's LIKE."""

    field: str
    value: str


@dataclass(frozen=True)
class AllOf:
    children: tuple["Predicate", ...]


@dataclass(frozen=True)
class AnyOf:
    children: tuple["Predicate", ...]


Predicate = Union[Eq, IsNull, Contains, AllOf, AnyOf]


def all_of(*children: Predicate) -> AllOf:
    return AllOf(tuple(children))


def any_of(*children: Predicate) -> AnyOf:
    return AnyOf(tuple(children))


def to_sql(predicate: Predicate, model: type) -> ColumnElement[bool]:
    """Compile a predicate tree against ``model``'s mapped columns."""

    if isinstance(predicate, Eq):
        return getattr(model, predicate.field) == predicate.value
    if isinstance(predicate, IsNull):
        return getattr(model, predicate.field).is_(None)
    if isinstance(predicate, Contains):
        return getattr(model, predicate.field).contains(predicate.value, autoescape=True)
    if isinstance(predicate, AllOf):
        if not predicate.children:
            return true()
        return and_(*(to_sql(child, model) for child in predicate.children))
    if isinstance(predicate, AnyOf):
        if not predicate.children:
            return false()
        return or_(*(to_sql(child, model) for child in predicate.children))
    raise TypeError(f"Unsupported predicate: {predicate!r}")


# ---- Digital asset visibility --------------------------------------------------------

SEARCH_FIELDS = ("content_name", "description", "tags")


def search_group(term: str) -> AnyOf:
    return any_of(*(Contains(field, term) for field in SEARCH_FIELDS))


def department_visibility(caller: TokenClaims, requested: str | None = None) -> Predicate | None:
    """
    Department restriction for ``caller``, or None when there is none.

    A non-admin caller without a department is not restricted: grants and
    visibility are keyed by department, and an absent one matches any.
    """

    if caller.is_admin:
        if requested and requested != ALL_DEPARTMENTS:
            return Eq("department", requested)
        return None

    if caller.department is None:
        return None

    return any_of(
        Eq("department", caller.department),
        IsNull("department"),
        Eq("department", ""),
    )


def build_asset_filter(
    caller: TokenClaims,
    search: str | None = None,
    aspect_ratio: str | None = None,
    department: str | None = None,
) -> AllOf:
    """Filter for the digital asset listing as seen by ``caller``."""

    clauses: list[Predicate] = [Eq("is_active", True)]

    if search:
        clauses.append(search_group(search))

    if aspect_ratio:
        # Unknown values are not rejected here; they just match no rows.
        clauses.append(Eq("aspect_ratio", aspect_ratio))

    visibility = department_visibility(caller, department)
    if visibility is not None:
        clauses.append(visibility)

    return AllOf(tuple(clauses))


def visible_asset_filter(caller: TokenClaims, asset_id: int) -> AllOf:
    """Single active asset, subject to the caller's department visibility."""

    clauses: list[Predicate] = [Eq("id", asset_id), Eq("is_active", True)]
    visibility = department_visibility(caller)
    if visibility is not None:
        clauses.append(visibility)
    return AllOf(tuple(clauses))


def asset_filter_sql(predicate: Predicate) -> ColumnElement[bool]:
    return to_sql(predicate, DigitalAsset)


# ---- Pagination ----------------------------------------------------------------------


@dataclass(frozen=True)
class Page:
    """1-based page request."""

    page: int = 1
    limit: int = 10

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError("page must be >= 1")
        if self.limit < 1:
            raise ValueError("limit must be >= 1")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def page_count(self, total: int) -> int:
        return math.ceil(total / self.limit)
