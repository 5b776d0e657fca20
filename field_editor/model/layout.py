"""Pure operations over a template's field layout.

Every function takes the current tuple of fields and returns a new one; the
input is never mutated. Unknown field ids raise ``FieldNotFoundError``.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Callable, Iterable
import uuid

from field_editor.config import EditorSettings
from field_editor.model.field import (
    FieldNotFoundError,
    FieldType,
    FilledBy,
    SizeDimension,
    TemplateField,
)

Layout = tuple[TemplateField, ...]
IdFactory = Callable[[], str]

PAGE_EXTENT = 100.0


def _uuid_id() -> str:
    return uuid.uuid4().hex


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, high))


def clamp_field(field: TemplateField, settings: EditorSettings) -> TemplateField:
    width = _clamp(field.width, settings.min_size, settings.max_width)
    height = _clamp(field.height, settings.min_size, settings.max_height)
    x = _clamp(field.x, 0.0, PAGE_EXTENT - width)
    y = _clamp(field.y, 0.0, PAGE_EXTENT - height)
    if (x, y, width, height) == (field.x, field.y, field.width, field.height):
        return field
    return replace(field, x=x, y=y, width=width, height=height)


def find_field(fields: Iterable[TemplateField], field_id: str) -> TemplateField:
    for field in fields:
        if field.id == field_id:
            return field
    raise FieldNotFoundError(field_id)


def _index_of(fields: Layout, field_id: str) -> int:
    for index, field in enumerate(fields):
        if field.id == field_id:
            return index
    raise FieldNotFoundError(field_id)


def fields_on_page(fields: Iterable[TemplateField], page: int) -> Layout:
    return tuple(field for field in fields if field.page == page)


def add_field(
    fields: Layout,
    page: int,
    field_type: FieldType | str,
    settings: EditorSettings,
    *,
    label: str | None = None,
    filled_by: FilledBy | str | None = None,
    required: bool = False,
    group_name: str | None = None,
    id_factory: IdFactory = _uuid_id,
) -> tuple[Layout, TemplateField]:
    field_type = FieldType(field_type)
    if page < 1:
        raise ValueError(f"Page numbers start at 1, got {page}")

    existing = {field.id for field in fields}
    field_id = id_factory()
    while field_id in existing:
        field_id = id_factory()

    width, height = settings.default_size_for(field_type.value)
    field = clamp_field(
        TemplateField(
            id=field_id,
            label=label if label is not None else _default_label(fields, field_type),
            type=field_type,
            page=page,
            x=settings.default_x,
            y=settings.default_y,
            width=width,
            height=height,
            filled_by=FilledBy(filled_by or settings.default_filled_by),
            required=required,
            group_name=group_name,
        ),
        settings,
    )
    return (*fields, field), field


def _default_label(fields: Layout, field_type: FieldType) -> str:
    same_type = sum(1 for field in fields if field.type is field_type)
    return f"{field_type.value.capitalize()} {same_type + 1}"


def update_field(
    fields: Layout,
    field_id: str,
    settings: EditorSettings,
    **changes: Any,
) -> Layout:
    """Merge ``changes`` into one field.

    Returns ``fields`` itself when the merged field equals the current one.
    """
    index = _index_of(fields, field_id)
    if not changes:
        return fields
    if "id" in changes:
        raise ValueError("Field ids are assigned at creation and cannot change")

    if "type" in changes:
        changes["type"] = FieldType(changes["type"])
    if "filled_by" in changes:
        changes["filled_by"] = FilledBy(changes["filled_by"])
    if "page" in changes and int(changes["page"]) < 1:
        raise ValueError(f"Page numbers start at 1, got {changes['page']}")

    current = fields[index]
    updated = clamp_field(replace(current, **changes), settings)
    if updated == current:
        return fields
    return (*fields[:index], updated, *fields[index + 1 :])


def delete_field(fields: Layout, field_id: str) -> Layout:
    index = _index_of(fields, field_id)
    return (*fields[:index], *fields[index + 1 :])


def resize_field(
    fields: Layout,
    field_id: str,
    dimension: SizeDimension | str,
    delta: float,
    settings: EditorSettings,
) -> Layout:
    dimension = SizeDimension(dimension)
    field = find_field(fields, field_id)
    current = getattr(field, dimension.value)
    return update_field(fields, field_id, settings, **{dimension.value: current + delta})


def count_by_filled_by(fields: Iterable[TemplateField]) -> dict[FilledBy, int]:
    counts = {filled_by: 0 for filled_by in FilledBy}
    for field in fields:
        counts[field.filled_by] += 1
    return counts


def field_rect_to_pixels(
    field: TemplateField,
    page_width_px: float,
    page_height_px: float,
) -> tuple[float, float, float, float]:
    """Return ``(left, top, width, height)`` of a field in page pixels."""
    return (
        field.x / PAGE_EXTENT * page_width_px,
        field.y / PAGE_EXTENT * page_height_px,
        field.width / PAGE_EXTENT * page_width_px,
        field.height / PAGE_EXTENT * page_height_px,
    )


def pixels_to_percent(value_px: float, extent_px: float) -> float:
    if extent_px <= 0:
        return 0.0
    return value_px / extent_px * PAGE_EXTENT
