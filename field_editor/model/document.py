"""Document model for the source PDF handle and its page geometry."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from pathlib import Path

import fitz

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DocumentGeometry:
    page_count: int
    # height / width per page, index 0 is page 1
    aspect_ratios: tuple[float, ...]

    def aspect_ratio(self, page: int) -> float:
        if page < 1 or page > self.page_count:
            raise IndexError(f"Page out of range: {page}")
        return self.aspect_ratios[page - 1]

    def page_size_px(self, page: int, render_width: float) -> tuple[float, float]:
        return render_width, render_width * self.aspect_ratio(page)


@dataclass(slots=True)
class PdfDocument:
    path: Path
    working_path: Path
    handle: fitz.Document

    @property
    def page_count(self) -> int:
        return self.handle.page_count

    def close(self) -> None:
        if not self.handle.is_closed:
            self.handle.close()
        if self.working_path != self.path and self.working_path.exists():
            try:
                os.remove(self.working_path)
            except OSError:
                logger.warning("Could not remove working copy %s", self.working_path)
