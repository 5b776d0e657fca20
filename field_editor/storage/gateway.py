"""Persistence gateway contract and a JSON file implementation."""

from __future__ import annotations

import logging
import os
from pathlib import Path
import re
import tempfile
from typing import Protocol

from pydantic import ValidationError

from field_editor.model.field import TemplateField
from field_editor.storage.schema import FieldRecord, TemplateRecord

logger = logging.getLogger(__name__)

_SAFE_ID = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


class GatewaySaveError(RuntimeError):
    """Raised when a field list cannot be stored."""


class TemplateNotFoundError(LookupError):
    """Raised when no stored layout exists for a template id."""


class PersistenceGateway(Protocol):
    def save_fields(self, template_id: str, fields: list[TemplateField]) -> None:
        """Replace the stored field list for ``template_id``."""

    def load_fields(self, template_id: str) -> list[TemplateField]:
        """Return the stored field list for ``template_id``."""


class JsonTemplateStore:
    """Stores each template's field list as ``<template_id>.json`` in a directory."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def path_for(self, template_id: str) -> Path:
        if not _SAFE_ID.match(template_id) or ".." in template_id:
            raise ValueError(f"Invalid template id: {template_id!r}")
        return self.directory / f"{template_id}.json"

    def save_fields(self, template_id: str, fields: list[TemplateField]) -> None:
        ids = [field.id for field in fields]
        if len(ids) != len(set(ids)):
            raise GatewaySaveError(f"Duplicate field ids in template {template_id}")

        target = self.path_for(template_id)
        try:
            record = TemplateRecord(
                template_id=template_id,
                fields=[FieldRecord.from_field(field) for field in fields],
            )
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(
                prefix=f".{template_id}_", suffix=".json", dir=self.directory
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(record.model_dump_json(indent=2))
                os.replace(temp_path, target)
            except OSError:
                if os.path.exists(temp_path):
                    os.remove(temp_path)
                raise
        except (OSError, ValidationError) as exc:
            raise GatewaySaveError(f"Failed to save template {template_id}: {exc}") from exc

        logger.info("Stored %d field(s) for template %s", len(fields), template_id)

    def load_fields(self, template_id: str) -> list[TemplateField]:
        target = self.path_for(template_id)
        if not target.exists():
            raise TemplateNotFoundError(f"No stored layout for template {template_id}")
        record = TemplateRecord.model_validate_json(target.read_text(encoding="utf-8"))
        return [field.to_field() for field in record.fields]
