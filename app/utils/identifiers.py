"""Validation of entity identifiers received from the HTTP layer."""
from __future__ import annotations

from typing import Any, List, Optional

# Upper bound of a PostgreSQL ``integer`` column.
MAX_ENTITY_ID = 2_147_483_647


class InvalidIdentifierError(ValueError):
    """Raised when an id is not a positive integer that fits the schema."""

    def __init__(self, value: Any, field: str = "id"):
        self.value = value
        self.field = field
        super().__init__(f"Invalid {field}: {value!r}")


def parse_entity_id(value: Any, field: str = "id") -> int:
    """Return ``value`` as an entity id or raise ``InvalidIdentifierError``.

    Accepts ints and strings made only of decimal digits (surrounding
    whitespace ignored). Booleans, signs, decimals and out-of-range values
    are rejected.
    """
    if isinstance(value, bool):
        raise InvalidIdentifierError(value, field)
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str):
        candidate = value.strip()
        if not candidate.isascii() or not candidate.isdigit():
            raise InvalidIdentifierError(value, field)
        parsed = int(candidate)
    else:
        raise InvalidIdentifierError(value, field)

    if parsed < 1 or parsed > MAX_ENTITY_ID:
        raise InvalidIdentifierError(value, field)
    return parsed


def parse_id_list(raw: Optional[str], field: str = "ids") -> List[int]:
    """Parse a comma separated id list (``"3, 7,9"``), keeping first-seen order.

    Empty input yields an empty list; any malformed entry rejects the list.
    """
    if raw is None or not raw.strip():
        return []
    ids: List[int] = []
    for part in raw.split(","):
        parsed = parse_entity_id(part, field)
        if parsed not in ids:
            ids.append(parsed)
    return ids


def parse_optional_id(value: Optional[str], field: str = "id") -> Optional[int]:
    """Like ``parse_entity_id`` but an absent or blank value yields None."""
    if value is None or not value.strip():
        return None
    return parse_entity_id(value, field)
