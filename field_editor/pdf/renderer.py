"""PDF rendering helpers using PyMuPDF."""

from __future__ import annotations

import fitz
from PySide6.QtGui import QImage

from field_editor.model.document import DocumentGeometry


class PdfRenderError(RuntimeError):
    """Raised when a page cannot be rendered."""


def describe_document(document: fitz.Document) -> DocumentGeometry:
    try:
        ratios = []
        for page in document:
            rect = page.rect
            ratios.append(float(rect.height) / float(rect.width))
    except Exception as exc:
        raise PdfRenderError("Failed to read page geometry") from exc
    return DocumentGeometry(page_count=len(ratios), aspect_ratios=tuple(ratios))


def render_page_image(document: fitz.Document, page: int, target_width: int) -> QImage:
    """Render a 1-based ``page`` scaled to ``target_width`` pixels."""
    if page < 1 or page > document.page_count:
        raise PdfRenderError(f"Page out of range: {page}")

    try:
        pdf_page = document.load_page(page - 1)
        zoom = target_width / float(pdf_page.rect.width)
        pix = pdf_page.get_pixmap(matrix=fitz.Matrix(zoom, zoom), alpha=False, annots=False)
    except Exception as exc:
        raise PdfRenderError(f"Failed to render page {page}") from exc

    image = QImage(pix.samples, pix.width, pix.height, pix.stride, QImage.Format.Format_RGB888)
    return image.copy()
