"""Export a field layout as a fillable PDF (reportlab widgets merged with pypdf)."""

from __future__ import annotations

from collections import defaultdict
from io import BytesIO
import logging
from pathlib import Path
from typing import Iterable

from pypdf import PdfReader, PdfWriter
from pypdf.generic import ArrayObject, BooleanObject, DictionaryObject, NameObject, NumberObject
from reportlab.lib import colors
from reportlab.pdfgen import canvas

from field_editor.model.field import FieldType, TemplateField

logger = logging.getLogger(__name__)

_TEXT_LIKE = {FieldType.TEXT, FieldType.DATE, FieldType.EMAIL, FieldType.PHONE, FieldType.SIGNATURE}


class PdfWriteError(RuntimeError):
    """Raised when output generation fails."""


def field_rect_to_points(
    field: TemplateField,
    page_box: tuple[float, float, float, float],
) -> tuple[float, float, float, float]:
    """Return ``(x, y, width, height)`` in PDF points, origin bottom-left.

    ``page_box`` is the page's ``(left, bottom, width, height)``.
    """
    left, bottom, page_w, page_h = page_box
    width = field.width / 100.0 * page_w
    height = field.height / 100.0 * page_h
    x = left + field.x / 100.0 * page_w
    y = bottom + page_h - field.y / 100.0 * page_h - height
    return x, y, width, height


def write_fillable_pdf(
    source_path: str | Path,
    output_path: str | Path,
    fields: Iterable[TemplateField],
) -> None:
    source = Path(source_path)
    output = Path(output_path)
    fields = list(fields)

    try:
        reader = PdfReader(str(source))
        writer = PdfWriter()
        for page in reader.pages:
            writer.add_page(page)
        _drop_widgets(writer)

        if fields:
            overlay = PdfReader(_render_widget_overlay(reader, fields))
            widget_refs = _copy_widgets(overlay, writer, {field.page for field in fields})
            writer._root_object[NameObject("/AcroForm")] = writer._add_object(
                DictionaryObject(
                    {
                        NameObject("/Fields"): widget_refs,
                        NameObject("/NeedAppearances"): BooleanObject(True),
                    }
                )
            )

        with output.open("wb") as handle:
            writer.write(handle)
    except Exception as exc:
        raise PdfWriteError(f"Failed to write output PDF: {output}") from exc

    logger.info("Wrote %d field(s) to %s", len(fields), output)


def _page_box(page) -> tuple[float, float, float, float]:
    box = page.mediabox
    return float(box.left), float(box.bottom), float(box.width), float(box.height)


def _render_widget_overlay(reader: PdfReader, fields: list[TemplateField]) -> BytesIO:
    by_page: dict[int, list[TemplateField]] = defaultdict(list)
    for field in fields:
        by_page[field.page].append(field)

    buffer = BytesIO()
    overlay = canvas.Canvas(buffer)
    for page_number, page in enumerate(reader.pages, start=1):
        box = _page_box(page)
        overlay.setPageSize((box[0] + box[2], box[1] + box[3]))
        for field in by_page.get(page_number, []):
            x, y, width, height = field_rect_to_points(field, box)
            common = dict(borderWidth=0, fillColor=None, borderColor=None)
            if field.type in _TEXT_LIKE:
                overlay.acroForm.textfield(
                    name=field.id,
                    tooltip=field.label,
                    x=x,
                    y=y,
                    width=width,
                    height=height,
                    forceBorder=False,
                    textColor=colors.black,
                    fieldFlags="required" if field.required else "",
                    **common,
                )
            elif field.type is FieldType.CHECKBOX:
                overlay.acroForm.checkbox(
                    name=field.id,
                    tooltip=field.label,
                    x=x,
                    y=y,
                    size=min(width, height),
                    buttonStyle="check",
                    fieldFlags="required" if field.required else "",
                    **common,
                )
            else:
                overlay.acroForm.radio(
                    name=field.group_name or field.id,
                    value=field.id,
                    tooltip=field.label,
                    x=x,
                    y=y,
                    size=min(width, height),
                    buttonStyle="circle",
                    fieldFlags="noToggleToOff radio" + (" required" if field.required else ""),
                    **common,
                )
        overlay.showPage()
    overlay.save()
    buffer.seek(0)
    return buffer


def _drop_widgets(writer: PdfWriter) -> None:
    for page in writer.pages:
        annots = page.get("/Annots")
        if not annots:
            continue
        kept = ArrayObject(ref for ref in annots if ref.get_object().get("/Subtype") != "/Widget")
        if kept:
            page[NameObject("/Annots")] = kept
        else:
            del page["/Annots"]
    if "/AcroForm" in writer._root_object:
        del writer._root_object["/AcroForm"]


def _copy_widgets(overlay: PdfReader, writer: PdfWriter, pages: set[int]) -> ArrayObject:
    widget_refs = ArrayObject()
    seen_parents: set[int] = set()
    no_border = ArrayObject([NumberObject(0), NumberObject(0), NumberObject(0)])

    for page_number in sorted(pages):
        target = writer.pages[page_number - 1]
        existing = target.get("/Annots")
        annots = existing.get_object() if existing is not None else ArrayObject()

        for ref in overlay.pages[page_number - 1].get("/Annots") or []:
            source = ref.get_object()
            if source.get("/Subtype") != "/Widget":
                continue
            widget = source.clone(writer, ignore_fields=("/P",))
            cloned_ref = widget.indirect_reference
            if getattr(target, "indirect_reference", None) is not None:
                widget[NameObject("/P")] = target.indirect_reference
            widget[NameObject("/Border")] = no_border
            mk = widget.get("/MK")
            if mk is not None and "/BG" in mk.get_object():
                del mk.get_object()["/BG"]
            annots.append(cloned_ref)

            # radio kids share one parent field; register the parent once
            parent = widget.get("/Parent")
            if parent is None:
                widget_refs.append(cloned_ref)
            else:
                parent_ref = parent.get_object().indirect_reference
                if parent_ref.idnum not in seen_parents:
                    seen_parents.add(parent_ref.idnum)
                    widget_refs.append(parent_ref)

        target[NameObject("/Annots")] = annots
    return widget_refs
