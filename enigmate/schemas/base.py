import re
from typing import Any
from pydantic import BaseModel
from pydantic.alias_generators import to_camel

PG_INT_MIN = -(2 ** 31)
PG_INT_MAX = 2 ** 31 - 1

_LEADING_INT = re.compile(r"\s*([+-]?[0-9]+)")


class CamelModel(BaseModel):
    """Model exchanged with the web client, which speaks camelCase."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


def lenient_int(value: Any) -> int:
    """Parse the leading base-10 integer of a client field ("12abc" -> 12, "1e3" -> 1).

    Garbage becomes 0 and the result is clamped to the Postgres integer range.
    """
    if value is None or isinstance(value, bool):
        return 0
    match = _LEADING_INT.match(str(value))
    if not match:
        return 0
    return max(PG_INT_MIN, min(PG_INT_MAX, int(match.group(1))))


def resolve_language(value: Any) -> str:
    return "fr" if isinstance(value, str) and value.strip().lower() == "fr" else "en"
