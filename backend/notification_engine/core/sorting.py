"""Sorting helpers for repository list queries."""

from __future__ import annotations

from sqlalchemy import asc, desc
from sqlalchemy.orm import Query

from notification_engine.core.database import Base


def parse_order_by(order_by: str | None) -> list[tuple[str, str]]:
    """Split ``"field:dir,field2:dir"`` into ``[(field, dir), ...]``.

    A missing direction defaults to ``asc``; unknown directions are dropped
    to ``asc`` as well.
    """
    if not order_by:
        return []
    terms: list[tuple[str, str]] = []
    for raw in order_by.split(","):
        raw = raw.strip()
        if not raw:
            continue
        field, _, direction = raw.partition(":")
        direction = direction.lower() if direction.lower() in ("asc", "desc") else "asc"
        terms.append((field, direction))
    return terms


def apply_order_by(
    query: Query,  # type: ignore[type-arg]
    model: type[Base],
    order_by: str | None,
    default_field: str = "created_at",
    default_direction: str = "desc",
) -> Query:  # type: ignore[type-arg]
    """Apply ordering to a SQLAlchemy query.

    Args:
        query: The SQLAlchemy query to sort.
        model: The SQLAlchemy model class.
        order_by: Comma-separated ``field:direction`` terms
            (e.g. ``"status:asc,scheduled_at:desc"``). Terms naming a column
            the model does not have are ignored.
        default_field: Column to sort by when no valid term is given.
        default_direction: Direction for ``default_field``.

    Returns:
        The query with ordering applied.
    """
    terms = [
        (field, direction)
        for field, direction in parse_order_by(order_by)
        if hasattr(model, field)
    ]
    if not terms:
        terms = [(default_field, default_direction)]

    for field, direction in terms:
        order_func = asc if direction == "asc" else desc
        query = query.order_by(order_func(getattr(model, field)))
    return query
