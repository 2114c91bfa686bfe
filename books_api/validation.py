"""Presence and bounds checks shared by the create and update endpoints."""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Union

NAME_LENGTH = (4, 65)
AUTHOR_LENGTH = (4, 25)
MAX_PRICE = 9999

_INT_PREFIX = re.compile(r"\s*([+-]?[0-9]+)")


class RejectionKind(str, Enum):
    MISSING_FIELDS = "missing_fields"
    NAME_LENGTH = "name_length"
    AUTHOR_LENGTH = "author_length"
    PRICE = "price"


MESSAGES = {
    RejectionKind.MISSING_FIELDS: "Invalid request. Required fields are missing.",
    RejectionKind.NAME_LENGTH: "Book name must be between 4 and 65 characters",
    RejectionKind.AUTHOR_LENGTH: "Author name must be between 4 and 25 characters",
    RejectionKind.PRICE: "Invalid price. Price must be between 0 and 9,999",
}


@dataclass(frozen=True)
class Valid:
    price: int


@dataclass(frozen=True)
class Rejection:
    kind: RejectionKind
    data: Any = None
    echo: bool = True

    @property
    def message(self) -> str:
        return MESSAGES[self.kind]


ValidationResult = Union[Valid, Rejection]


def parse_price(value: Any) -> Optional[int]:
    """Parse the leading base-10 integer of ``value``.

    ``"25"``, ``25.9`` and ``"25 coins"`` all give 25. Booleans and values
    without a leading integer give None.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    match = _INT_PREFIX.match(str(value))
    if match is None:
        return None
    return int(match.group(1))


def _length_within(value: Any, bounds: tuple[int, int]) -> bool:
    if not isinstance(value, str):
        return False
    low, high = bounds
    return low <= len(value) <= high


def validate_book(payload: Mapping[str, Any]) -> ValidationResult:
    name = payload.get("name")
    author = payload.get("author")
    price = payload.get("price")

    if not name or not author or not price:
        return Rejection(RejectionKind.MISSING_FIELDS, echo=False)
    if not _length_within(name, NAME_LENGTH):
        return Rejection(RejectionKind.NAME_LENGTH, name)
    if not _length_within(author, AUTHOR_LENGTH):
        return Rejection(RejectionKind.AUTHOR_LENGTH, author)

    parsed = parse_price(price)
    # zero is falsy and falls out here as well as in the presence check
    if not parsed or parsed < 0 or parsed > MAX_PRICE:
        return Rejection(RejectionKind.PRICE, parsed)
    return Valid(price=parsed)
