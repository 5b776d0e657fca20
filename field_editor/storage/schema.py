"""Persisted template records."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from field_editor.model.field import FieldType, FilledBy, TemplateField


class FieldRecord(BaseModel):
    api_id: str
    label: str
    type: FieldType
    page: int = Field(ge=1)
    x: float = Field(ge=0, le=100)
    y: float = Field(ge=0, le=100)
    width: float = Field(gt=0, le=100)
    height: float = Field(gt=0, le=100)
    filled_by: FilledBy = FilledBy.GUEST
    required: bool = False
    group_name: str | None = None

    @classmethod
    def from_field(cls, field: TemplateField) -> FieldRecord:
        return cls(
            api_id=field.id,
            label=field.label,
            type=field.type,
            page=field.page,
            x=field.x,
            y=field.y,
            width=field.width,
            height=field.height,
            filled_by=field.filled_by,
            required=field.required,
            group_name=field.group_name,
        )

    def to_field(self) -> TemplateField:
        return TemplateField(
            id=self.api_id,
            label=self.label,
            type=self.type,
            page=self.page,
            x=self.x,
            y=self.y,
            width=self.width,
            height=self.height,
            filled_by=self.filled_by,
            required=self.required,
            group_name=self.group_name,
        )


class TemplateRecord(BaseModel):
    template_id: str
    fields: list[FieldRecord] = Field(default_factory=list)
    saved_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
