"""Template field model definitions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class FieldType(str, Enum):
    TEXT = "text"
    DATE = "date"
    EMAIL = "email"
    PHONE = "phone"
    SIGNATURE = "signature"
    CHECKBOX = "checkbox"
    RADIO = "radio"


class FilledBy(str, Enum):
    ADMIN = "admin"
    GUEST = "guest"
    TENANT = "tenant"


class SizeDimension(str, Enum):
    WIDTH = "width"
    HEIGHT = "height"


class FieldNotFoundError(LookupError):
    """Raised when a mutation targets a field id that is not in the layout."""

    def __init__(self, field_id: str) -> None:
        super().__init__(f"Field not found: {field_id}")
        self.field_id = field_id


@dataclass(frozen=True, slots=True)
class TemplateField:
    """A typed marker on one page of a template.

    Position and size are percentages of the page's width and height with the
    origin at the top-left corner, so they do not depend on render resolution.
    Pages are 1-based.
    """

    id: str
    label: str
    type: FieldType
    page: int
    x: float
    y: float
    width: float
    height: float
    filled_by: FilledBy = FilledBy.GUEST
    required: bool = False
    group_name: str | None = None
