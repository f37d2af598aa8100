"""
The ``Date`` scalar: UTC milliseconds since the epoch, as a JS ``Date``
would report from ``valueOf()``.
"""
from datetime import date, datetime
from typing import Any, NewType

import strawberry
from graphql import IntValueNode, ValueNode

from hnclone.services.news_item_service import to_millis


def serialize_date(value: Any) -> Any:
    """datetime/date values become milliseconds; numbers pass through."""
    if isinstance(value, (datetime, date)):
        return to_millis(value)
    return value


def parse_date_value(value: Any) -> int:
    """Accept milliseconds or an ISO-8601 string from variables."""
    if isinstance(value, bool):
        raise ValueError(f"Date cannot represent value: {value!r}")
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as exc:
            raise ValueError(f"Date cannot represent value: {value!r}") from exc
        return to_millis(parsed)
    raise ValueError(f"Date cannot represent value: {value!r}")


def parse_date_literal(ast: ValueNode, _variables: dict | None = None) -> int | None:
    # Only integer literals are dates; anything else is null.
    if isinstance(ast, IntValueNode):
        return int(ast.value, 10)
    return None


Date = NewType("Date", int)

# Bound to ``Date`` through the schema config's scalar_map.
DATE_SCALAR = strawberry.scalar(
    name="Date",
    description="UTC number of milliseconds since midnight Jan 1 1970 as in JS date",
    serialize=serialize_date,
    parse_value=parse_date_value,
    parse_literal=parse_date_literal,
)
