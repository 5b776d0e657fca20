"""In-memory editor state for one template's field layout."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Iterable

from field_editor.config import EditorSettings, get_settings
from field_editor.model import layout
from field_editor.model.field import FieldType, FilledBy, SizeDimension, TemplateField
from field_editor.storage.gateway import PersistenceGateway

logger = logging.getLogger(__name__)


class SaveUnavailableError(RuntimeError):
    """Raised when a save is requested with nothing to save or one already running."""


@dataclass(frozen=True, slots=True)
class SaveTicket:
    revision: int
    fields: tuple[TemplateField, ...]


class EditorSession:
    """Authoritative field layout plus selection, current page and dirty state.

    The dirty flag is derived from a revision counter bumped on every change
    that alters the layout. A save captures the revision at invocation; when
    it succeeds the session is clean only if nothing changed in between.
    """

    def __init__(self, settings: EditorSettings | None = None) -> None:
        self.settings = settings or get_settings()
        self._fields: layout.Layout = ()
        self._selected_id: str | None = None
        self._current_page = 1
        self._page_count = 1
        self._revision = 0
        self._saved_revision = 0
        self._loaded_revision = 0
        self._save_in_flight = False

    @property
    def fields(self) -> layout.Layout:
        return self._fields

    @property
    def selected_id(self) -> str | None:
        return self._selected_id

    @property
    def selected_field(self) -> TemplateField | None:
        if self._selected_id is None:
            return None
        return layout.find_field(self._fields, self._selected_id)

    @property
    def current_page(self) -> int:
        return self._current_page

    @property
    def page_count(self) -> int:
        return self._page_count

    @property
    def is_dirty(self) -> bool:
        return self._revision != self._saved_revision

    @property
    def save_in_flight(self) -> bool:
        return self._save_in_flight

    @property
    def can_save(self) -> bool:
        return self.is_dirty and not self._save_in_flight

    def load(self, fields: Iterable[TemplateField], page_count: int) -> None:
        loaded = tuple(layout.clamp_field(field, self.settings) for field in fields)
        ids = [field.id for field in loaded]
        if len(ids) != len(set(ids)):
            raise ValueError("Field ids must be unique within a template")
        self._fields = loaded
        self._page_count = max(1, page_count)
        self._current_page = 1
        self._selected_id = None
        # tickets issued before this load no longer describe the layout
        self._touch()
        self._loaded_revision = self._revision
        self._saved_revision = self._revision
        self._save_in_flight = False

    def fields_on_page(self, page: int | None = None) -> layout.Layout:
        return layout.fields_on_page(self._fields, self._current_page if page is None else page)

    def counts(self) -> dict[FilledBy, int]:
        return layout.count_by_filled_by(self._fields)

    def set_page(self, page: int) -> None:
        self._current_page = max(1, min(page, self._page_count))

    def select(self, field_id: str | None) -> None:
        if field_id is not None:
            layout.find_field(self._fields, field_id)
        self._selected_id = field_id

    def select_from_list(self, field_id: str) -> None:
        field = layout.find_field(self._fields, field_id)
        self._selected_id = field_id
        self.set_page(field.page)

    def add_field(self, field_type: FieldType | str, **defaults: Any) -> TemplateField:
        self._fields, field = layout.add_field(
            self._fields, self._current_page, field_type, self.settings, **defaults
        )
        self._selected_id = field.id
        self._touch()
        return field

    def update_field(self, field_id: str, **changes: Any) -> None:
        updated = layout.update_field(self._fields, field_id, self.settings, **changes)
        if updated is self._fields:
            return
        self._fields = updated
        self._touch()

    def append_fields(self, fields: Iterable[TemplateField]) -> int:
        """Append imported fields, skipping ids already present or pages past the end."""
        existing = {field.id for field in self._fields}
        added = []
        for field in fields:
            if field.id in existing or field.page > self._page_count:
                continue
            existing.add(field.id)
            added.append(layout.clamp_field(field, self.settings))
        if added:
            self._fields = (*self._fields, *added)
            self._touch()
        return len(added)

    def delete_field(self, field_id: str) -> None:
        self._fields = layout.delete_field(self._fields, field_id)
        if self._selected_id == field_id:
            self._selected_id = None
        self._touch()

    def resize_field(self, field_id: str, dimension: SizeDimension | str, delta: float) -> None:
        updated = layout.resize_field(self._fields, field_id, dimension, delta, self.settings)
        if updated is self._fields:
            return
        self._fields = updated
        self._touch()

    def begin_save(self) -> SaveTicket:
        if self._save_in_flight:
            raise SaveUnavailableError("A save is already in progress")
        if not self.is_dirty:
            raise SaveUnavailableError("No unsaved changes")
        self._save_in_flight = True
        logger.debug("Save started at revision %d", self._revision)
        return SaveTicket(revision=self._revision, fields=self._fields)

    def complete_save(self, ticket: SaveTicket) -> None:
        if self._is_stale(ticket):
            logger.info("Ignoring save of revision %d from before the last load", ticket.revision)
            return
        self._save_in_flight = False
        self._saved_revision = ticket.revision
        logger.info("Saved %d field(s) at revision %d", len(ticket.fields), ticket.revision)

    def fail_save(self, ticket: SaveTicket, error: BaseException) -> None:
        if self._is_stale(ticket):
            logger.info("Ignoring failed save of revision %d from before the last load", ticket.revision)
            return
        self._save_in_flight = False
        logger.warning("Save of revision %d failed: %s", ticket.revision, error)

    def save(self, gateway: PersistenceGateway, template_id: str) -> None:
        ticket = self.begin_save()
        try:
            gateway.save_fields(template_id, list(ticket.fields))
        except Exception as exc:
            self.fail_save(ticket, exc)
            raise
        self.complete_save(ticket)

    def _is_stale(self, ticket: SaveTicket) -> bool:
        return ticket.revision < self._loaded_revision

    def _touch(self) -> None:
        self._revision += 1
