"""Main application window for placing template fields on a PDF."""

from __future__ import annotations

import logging
from pathlib import Path
import re

from PySide6.QtCore import QObject, QRunnable, Qt, QThreadPool, QTimer, Signal
from PySide6.QtGui import QAction, QKeySequence, QPixmap
from PySide6.QtWidgets import (
    QFileDialog,
    QMainWindow,
    QMenu,
    QMessageBox,
    QScrollArea,
    QSplitter,
    QToolBar,
    QToolButton,
)

from field_editor.config import EditorSettings, get_settings
from field_editor.model.document import DocumentGeometry, PdfDocument
from field_editor.model.field import FieldType, SizeDimension
from field_editor.pdf.importer import PdfImportError, import_pdf_fields
from field_editor.pdf.loader import PdfLoadError, load_pdf
from field_editor.pdf.renderer import PdfRenderError, describe_document, render_page_image
from field_editor.pdf.writer import PdfWriteError, write_fillable_pdf
from field_editor.state.session import EditorSession, SaveTicket
from field_editor.storage.gateway import JsonTemplateStore, PersistenceGateway, TemplateNotFoundError
from field_editor.ui.inspector import InspectorPanel
from field_editor.viewer.canvas import TemplateCanvas

logger = logging.getLogger(__name__)


def template_id_for(path: Path) -> str:
    return re.sub(r"[^A-Za-z0-9_.-]+", "_", path.stem).strip("_.") or "template"


class SaveSignals(QObject):
    succeeded = Signal(object, object)
    failed = Signal(object, object, str)


class SaveWorker(QRunnable):
    """Pushes one save ticket through the gateway off the UI thread."""

    def __init__(
        self,
        gateway: PersistenceGateway,
        template_id: str,
        session: EditorSession,
        ticket: SaveTicket,
    ) -> None:
        super().__init__()
        self.session = session
        self.gateway = gateway
        self.template_id = template_id
        self.ticket = ticket
        self.signals = SaveSignals()

    def run(self) -> None:
        try:
            self.gateway.save_fields(self.template_id, list(self.ticket.fields))
        except Exception as exc:
            self.signals.failed.emit(self.session, self.ticket, str(exc))
            return
        self.signals.succeeded.emit(self.session, self.ticket)


class MainWindow(QMainWindow):
    def __init__(
        self,
        settings: EditorSettings | None = None,
        gateway: PersistenceGateway | None = None,
    ) -> None:
        super().__init__()
        self.setWindowTitle("Template Field Editor")
        self.resize(1300, 850)

        self._settings = settings or get_settings()
        self._gateway = gateway or JsonTemplateStore(self._settings.templates_dir)
        self._pool = QThreadPool.globalInstance()
        self._document: PdfDocument | None = None
        self._geometry: DocumentGeometry | None = None
        self._template_id: str | None = None
        self._save_worker: SaveWorker | None = None
        self._session = EditorSession(self._settings)

        self.canvas = TemplateCanvas(self._session)
        self.canvas.selection_changed.connect(lambda _: self._refresh_panels())
        self.canvas.fields_changed.connect(self._refresh_panels)

        self.scroll_area = QScrollArea()
        self.scroll_area.setWidgetResizable(False)
        self.scroll_area.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.scroll_area.setWidget(self.canvas)

        self.inspector = InspectorPanel(self._session)
        self.inspector.field_edited.connect(self._on_fields_edited)
        self.inspector.field_chosen.connect(self._on_field_chosen)
        self.inspector.delete_requested.connect(self.delete_selected_field)

        splitter = QSplitter()
        splitter.addWidget(self.scroll_area)
        splitter.addWidget(self.inspector)
        splitter.setStretchFactor(0, 4)
        splitter.setStretchFactor(1, 1)
        self.setCentralWidget(splitter)

        self._build_toolbar()
        self._update_actions()
        self.statusBar().showMessage("Ready")

    def _build_toolbar(self) -> None:
        toolbar = QToolBar("Main Toolbar")
        toolbar.setMovable(False)
        self.addToolBar(toolbar)

        open_action = QAction("Open PDF", self)
        open_action.triggered.connect(self.open_pdf)
        toolbar.addAction(open_action)

        self._save_action = QAction("Save", self)
        self._save_action.setShortcut(QKeySequence.StandardKey.Save)
        self._save_action.triggered.connect(self.save_template)
        toolbar.addAction(self._save_action)

        self._import_action = QAction("Import PDF Fields", self)
        self._import_action.triggered.connect(self.import_fields)
        toolbar.addAction(self._import_action)

        self._export_action = QAction("Export Fillable PDF", self)
        self._export_action.triggered.connect(self.export_pdf)
        toolbar.addAction(self._export_action)

        toolbar.addSeparator()

        add_menu = QMenu(self)
        for field_type in FieldType:
            action = add_menu.addAction(field_type.value.capitalize())
            action.triggered.connect(lambda _=False, t=field_type: self.add_field(t))
        self._add_button = QToolButton()
        self._add_button.setText("Add Field")
        self._add_button.setMenu(add_menu)
        self._add_button.setPopupMode(QToolButton.ToolButtonPopupMode.InstantPopup)
        toolbar.addWidget(self._add_button)

        self._delete_action = QAction("Delete Field", self)
        self._delete_action.setShortcut(QKeySequence.StandardKey.Delete)
        self._delete_action.triggered.connect(self.delete_selected_field)
        toolbar.addAction(self._delete_action)

        self._resize_actions: list[QAction] = []
        step = self._settings.resize_step
        for text, dimension, delta in (
            ("W-", SizeDimension.WIDTH, -step),
            ("W+", SizeDimension.WIDTH, step),
            ("H-", SizeDimension.HEIGHT, -step),
            ("H+", SizeDimension.HEIGHT, step),
        ):
            action = QAction(text, self)
            action.triggered.connect(lambda _=False, d=dimension, v=delta: self.resize_selected(d, v))
            toolbar.addAction(action)
            self._resize_actions.append(action)

        self._show_fields_action = QAction("Show Fields", self)
        self._show_fields_action.setCheckable(True)
        self._show_fields_action.setChecked(True)
        self._show_fields_action.toggled.connect(self.canvas.set_fields_visible)
        toolbar.addAction(self._show_fields_action)

        toolbar.addSeparator()

        prev_action = QAction("Previous", self)
        prev_action.triggered.connect(self.show_previous_page)
        toolbar.addAction(prev_action)

        next_action = QAction("Next", self)
        next_action.triggered.connect(self.show_next_page)
        toolbar.addAction(next_action)

    def closeEvent(self, event) -> None:  # type: ignore[override]
        if not self._confirm_discard():
            event.ignore()
            return
        self._close_document()
        super().closeEvent(event)

    def _confirm_discard(self) -> bool:
        if not self._session.is_dirty:
            return True
        answer = QMessageBox.question(
            self,
            "Unsaved Changes",
            "Discard unsaved field changes?",
        )
        return answer == QMessageBox.StandardButton.Yes

    def _show_error(self, title: str, message: str) -> None:
        QMessageBox.critical(self, title, message)

    def _show_warning(self, title: str, message: str) -> None:
        QMessageBox.warning(self, title, message)

    def open_pdf(self) -> None:
        file_path, _ = QFileDialog.getOpenFileName(
            self,
            "Open PDF",
            str(Path.home()),
            "PDF Files (*.pdf)",
        )
        if not file_path or not self._confirm_discard():
            return
        self.load_document(file_path)

    def load_document(self, file_path: str | Path) -> bool:
        """Open a PDF and its stored layout, replacing the current session."""
        self._close_document()
        self.canvas.show_message("Loading...")
        try:
            self._document = load_pdf(file_path)
            self._geometry = describe_document(self._document.handle)
        except (PdfLoadError, PdfRenderError) as exc:
            self._close_document()
            self.canvas.show_message("Could not load document")
            self._show_error("Open Failed", str(exc))
            return False

        self._template_id = template_id_for(self._document.path)
        try:
            stored = self._gateway.load_fields(self._template_id)
        except TemplateNotFoundError:
            stored = []
        except Exception as exc:
            logger.exception("Could not load stored layout for %s", self._template_id)
            self._show_warning("Template Load Warning", str(exc))
            stored = []

        self._reset_session(stored)
        self._render_current_page()
        self.statusBar().showMessage(f"Loaded: {file_path} ({len(stored)} stored field(s))")
        return True

    def save_template(self) -> None:
        if self._template_id is None or not self._session.can_save:
            return
        session = self._session
        ticket = session.begin_save()
        worker = SaveWorker(self._gateway, self._template_id, session, ticket)
        # bound slots run on the UI thread
        worker.signals.succeeded.connect(self._on_save_succeeded)
        worker.signals.failed.connect(self._on_save_failed)
        self._save_worker = worker
        self._pool.start(worker)
        self._update_actions()
        self.statusBar().showMessage("Saving...")

    def _on_save_succeeded(self, session: EditorSession, ticket: SaveTicket) -> None:
        session.complete_save(ticket)
        if session is not self._session:
            return
        self._update_actions()
        self.statusBar().showMessage(f"Saved {len(ticket.fields)} field(s)")

    def _on_save_failed(self, session: EditorSession, ticket: SaveTicket, message: str) -> None:
        session.fail_save(ticket, RuntimeError(message))
        if session is not self._session:
            return
        self._update_actions()
        self._show_error("Save Failed", message)

    def import_fields(self) -> None:
        if self._document is None:
            return
        try:
            imported = import_pdf_fields(self._document.working_path)
        except PdfImportError as exc:
            self._show_warning("Field Import Warning", str(exc))
            return

        added = self._session.append_fields(imported)
        self._on_fields_edited()
        self.statusBar().showMessage(f"Imported {added} of {len(imported)} field(s)")

    def export_pdf(self) -> None:
        if self._document is None:
            return
        output_path, _ = QFileDialog.getSaveFileName(
            self,
            "Export Fillable PDF",
            str(self._document.path.with_stem(f"{self._document.path.stem}_fillable")),
            "PDF Files (*.pdf)",
        )
        if not output_path:
            return
        try:
            write_fillable_pdf(self._document.working_path, output_path, self._session.fields)
        except PdfWriteError as exc:
            self._show_error("Export Failed", str(exc))
            return
        self.statusBar().showMessage(f"Exported: {output_path}")

    def add_field(self, field_type: FieldType) -> None:
        if self._document is None:
            return
        field = self._session.add_field(field_type)
        self._on_fields_edited()
        self.statusBar().showMessage(f"Added {field.label} on page {field.page}")

    def delete_selected_field(self) -> None:
        selected = self._session.selected_id
        if selected is None:
            self.statusBar().showMessage("No selected field to delete.")
            return
        self.canvas.cancel_drag()
        self._session.delete_field(selected)
        self._on_fields_edited()

    def resize_selected(self, dimension: SizeDimension, delta: float) -> None:
        selected = self._session.selected_id
        if selected is None:
            return
        self._session.resize_field(selected, dimension, delta)
        self._on_fields_edited()

    def show_previous_page(self) -> None:
        self._go_to_page(self._session.current_page - 1)

    def show_next_page(self) -> None:
        self._go_to_page(self._session.current_page + 1)

    def _go_to_page(self, page: int) -> None:
        if self._document is None:
            return
        previous = self._session.current_page
        self._session.set_page(page)
        if self._session.current_page != previous:
            self._render_current_page()

    def _on_field_chosen(self) -> None:
        # the list is rebuilt on refresh; leave the click handler first
        QTimer.singleShot(0, self._render_current_page)

    def _on_fields_edited(self) -> None:
        self.canvas.update()
        self._refresh_panels()

    def _refresh_panels(self) -> None:
        self.inspector.refresh()
        self._update_actions()

    def _update_actions(self) -> None:
        has_document = self._document is not None
        has_selection = self._session.selected_id is not None
        self._save_action.setEnabled(has_document and self._session.can_save)
        self._import_action.setEnabled(has_document)
        self._export_action.setEnabled(has_document)
        self._add_button.setEnabled(has_document)
        self._delete_action.setEnabled(has_selection)
        for action in self._resize_actions:
            action.setEnabled(has_selection)
        title = "Template Field Editor"
        if self._template_id is not None:
            title = f"{title} - {self._template_id}{' *' if self._session.is_dirty else ''}"
        self.setWindowTitle(title)

    def _reset_session(self, fields) -> None:
        self._session = EditorSession(self._settings)
        page_count = self._geometry.page_count if self._geometry is not None else 1
        self._session.load(fields, page_count)
        self.canvas.set_session(self._session)
        self.inspector.set_session(self._session)
        self._update_actions()

    def _render_current_page(self) -> None:
        if self._document is None:
            self.canvas.show_message("Open a PDF to start")
            return

        page = self._session.current_page
        try:
            image = render_page_image(self._document.handle, page, self._settings.render_width)
        except PdfRenderError as exc:
            logger.warning("Render failed: %s", exc)
            self.canvas.show_message(f"Could not render page {page}")
            self.statusBar().showMessage(str(exc))
            return

        self.canvas.set_page(QPixmap.fromImage(image))
        self._refresh_panels()
        self.statusBar().showMessage(f"Page {page}/{self._session.page_count}")

    def _close_document(self) -> None:
        if self._document is not None:
            self._document.close()
            self._document = None
        self._geometry = None
        self._template_id = None
        self._reset_session([])
        self.canvas.show_message("Open a PDF to start")
