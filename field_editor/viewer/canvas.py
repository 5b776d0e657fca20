"""Page canvas that draws field overlays and routes pointer events to dragging."""

from __future__ import annotations

from PySide6.QtCore import QPointF, QRectF, Qt, Signal
from PySide6.QtGui import QColor, QPainter, QPen, QPixmap
from PySide6.QtWidgets import QWidget

from field_editor.model import layout
from field_editor.model.field import FilledBy, TemplateField
from field_editor.state.drag import DragController, PointerButton
from field_editor.state.session import EditorSession

FILL_COLORS = {
    FilledBy.ADMIN: QColor(59, 130, 246, 50),
    FilledBy.GUEST: QColor(250, 224, 82, 80),
    FilledBy.TENANT: QColor(16, 185, 129, 60),
}
BORDER_COLORS = {
    FilledBy.ADMIN: QColor("#3b82f6"),
    FilledBy.GUEST: QColor("#e0b800"),
    FilledBy.TENANT: QColor("#10b981"),
}

_BUTTONS = {
    Qt.MouseButton.LeftButton: PointerButton.PRIMARY,
    Qt.MouseButton.RightButton: PointerButton.SECONDARY,
}


class TemplateCanvas(QWidget):
    selection_changed = Signal(object)
    fields_changed = Signal()

    def __init__(self, session: EditorSession) -> None:
        super().__init__()
        self._session = session
        self._drag = DragController()
        self._pixmap: QPixmap | None = None
        self._message = "Open a PDF to start"
        self._fields_visible = True
        self.setMinimumSize(500, 600)

    def set_session(self, session: EditorSession) -> None:
        self._end_drag()
        self._session = session
        self.update()

    def set_page(self, pixmap: QPixmap) -> None:
        self._end_drag()
        self._pixmap = pixmap
        self.resize(pixmap.size())
        self.update()

    def show_message(self, message: str) -> None:
        """Replace the page with a loading or error message; overlays are hidden."""
        self._end_drag()
        self._pixmap = None
        self._message = message
        self.resize(500, 600)
        self.update()

    @property
    def fields_visible(self) -> bool:
        return self._fields_visible

    def set_fields_visible(self, visible: bool) -> None:
        """Hide overlays to inspect the bare page; hidden fields cannot be picked."""
        self._end_drag()
        self._fields_visible = visible
        self.update()

    @property
    def is_dragging(self) -> bool:
        return self._drag.is_dragging

    def cancel_drag(self) -> None:
        self._end_drag()

    def paintEvent(self, event) -> None:  # type: ignore[override]
        del event
        painter = QPainter(self)
        painter.fillRect(self.rect(), QColor("#525252"))

        if self._pixmap is None:
            painter.setPen(QColor("white"))
            painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter, self._message)
            return

        painter.drawPixmap(0, 0, self._pixmap)
        if not self._fields_visible:
            return
        selected_id = self._session.selected_id
        for field in self._session.fields_on_page():
            rect = self._field_rect(field)
            painter.fillRect(rect, FILL_COLORS[field.filled_by])
            pen = QPen(QColor("black") if field.id == selected_id else BORDER_COLORS[field.filled_by])
            pen.setWidth(3 if field.id == selected_id else 2)
            painter.setPen(pen)
            painter.drawRect(rect)
            painter.drawText(rect.adjusted(3, 0, 0, 0), Qt.AlignmentFlag.AlignVCenter, field.label)

    def mousePressEvent(self, event) -> None:  # type: ignore[override]
        if self._pixmap is None or not self._fields_visible:
            return
        button = _BUTTONS.get(event.button(), PointerButton.AUXILIARY)
        field = self._field_at(event.position())
        if field is None:
            if button is PointerButton.PRIMARY:
                self._session.select(None)
                self.selection_changed.emit(None)
                self.update()
            return

        pointer = (event.position().x(), event.position().y())
        if self._drag.press(self._session, field.id, pointer, self._page_px(), button):
            self.grabMouse()
            self.selection_changed.emit(field.id)
            self.update()

    def mouseMoveEvent(self, event) -> None:  # type: ignore[override]
        pointer = (event.position().x(), event.position().y())
        if self._drag.move(self._session, pointer, self._page_px()):
            self.fields_changed.emit()
            self.update()

    def mouseReleaseEvent(self, event) -> None:  # type: ignore[override]
        if event.button() != Qt.MouseButton.LeftButton:
            return
        self._end_drag()

    def _end_drag(self) -> None:
        if self._drag.release():
            self.releaseMouse()

    def _page_px(self) -> tuple[float, float]:
        if self._pixmap is None:
            return 0.0, 0.0
        return float(self._pixmap.width()), float(self._pixmap.height())

    def _field_rect(self, field: TemplateField) -> QRectF:
        return QRectF(*layout.field_rect_to_pixels(field, *self._page_px()))

    def _field_at(self, pos: QPointF) -> TemplateField | None:
        for field in reversed(self._session.fields_on_page()):
            if self._field_rect(field).contains(pos):
                return field
        return None
