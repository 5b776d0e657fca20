"""Side panel: selected field editor, per-role counts and the full field list."""

from __future__ import annotations

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import (
    QCheckBox,
    QComboBox,
    QFormLayout,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from field_editor.model.field import FieldType, FilledBy
from field_editor.state.session import EditorSession

FILLED_BY_LABELS = {
    FilledBy.ADMIN: "Admin fills",
    FilledBy.GUEST: "Guest fills",
    FilledBy.TENANT: "Tenant fills",
}


class InspectorPanel(QWidget):
    field_edited = Signal()
    field_chosen = Signal()
    delete_requested = Signal()

    def __init__(self, session: EditorSession) -> None:
        super().__init__()
        self._session = session
        self._refreshing = False
        # field whose values the editor widgets currently show
        self._shown_id: str | None = None

        self.counts_label = QLabel()

        self.label_edit = QLineEdit()
        self.label_edit.editingFinished.connect(self._commit_pending_edits)
        self.type_combo = QComboBox()
        for field_type in FieldType:
            self.type_combo.addItem(field_type.value, field_type.value)
        self.type_combo.currentIndexChanged.connect(
            lambda _: self._apply(type=self.type_combo.currentData())
        )
        self.filled_by_combo = QComboBox()
        for filled_by, text in FILLED_BY_LABELS.items():
            self.filled_by_combo.addItem(text, filled_by.value)
        self.filled_by_combo.currentIndexChanged.connect(
            lambda _: self._apply(filled_by=self.filled_by_combo.currentData())
        )
        self.required_check = QCheckBox("Required")
        self.required_check.toggled.connect(lambda checked: self._apply(required=checked))
        self.group_edit = QLineEdit()
        self.group_edit.editingFinished.connect(self._commit_pending_edits)
        self.delete_button = QPushButton("Delete Field")
        self.delete_button.clicked.connect(self.delete_requested.emit)

        self.editor = QWidget()
        form = QFormLayout(self.editor)
        form.addRow("Label", self.label_edit)
        form.addRow("Type", self.type_combo)
        form.addRow("Filled by", self.filled_by_combo)
        form.addRow("Group", self.group_edit)
        form.addRow(self.required_check)
        form.addRow(self.delete_button)

        self.field_list = QListWidget()
        self.field_list.itemClicked.connect(self._on_item_clicked)

        layout = QVBoxLayout(self)
        layout.addWidget(self.counts_label)
        layout.addWidget(self.editor)
        layout.addWidget(QLabel("All fields"))
        layout.addWidget(self.field_list, stretch=1)

        self.refresh()

    def set_session(self, session: EditorSession) -> None:
        self._session = session
        self._shown_id = None
        self.label_edit.setModified(False)
        self.group_edit.setModified(False)
        self.refresh()

    def refresh(self) -> None:
        # typed text belongs to the field it was typed for, even if selection moved on
        committed = self._commit_pending_edits(notify=False)
        self._refreshing = True
        try:
            counts = self._session.counts()
            self.counts_label.setText(
                "  ".join(f"{role.value.capitalize()}: {counts[role]}" for role in FilledBy)
            )

            selected = self._session.selected_field
            self._shown_id = selected.id if selected is not None else None
            self.editor.setEnabled(selected is not None)
            if selected is not None:
                self.label_edit.setText(selected.label)
                self.type_combo.setCurrentIndex(self.type_combo.findData(selected.type.value))
                self.filled_by_combo.setCurrentIndex(self.filled_by_combo.findData(selected.filled_by.value))
                self.required_check.setChecked(selected.required)
                self.group_edit.setText(selected.group_name or "")

            self.field_list.clear()
            for field in self._session.fields:
                text = f"{field.label}  [{field.type.value}]  Page {field.page} - {FILLED_BY_LABELS[field.filled_by]}"
                if field.required:
                    text += " - Required"
                item = QListWidgetItem(text)
                item.setData(Qt.ItemDataRole.UserRole, field.id)
                self.field_list.addItem(item)
                if field.id == self._session.selected_id:
                    item.setSelected(True)
        finally:
            self._refreshing = False
        if committed:
            self.field_edited.emit()

    def _commit_pending_edits(self, notify: bool = True) -> bool:
        """Write modified line edits to the shown field; True if the layout changed."""
        changes = {}
        if self.label_edit.isModified():
            changes["label"] = self.label_edit.text().strip() or "Field"
        if self.group_edit.isModified():
            changes["group_name"] = self.group_edit.text().strip() or None
        self.label_edit.setModified(False)
        self.group_edit.setModified(False)
        if not changes or self._shown_id is None:
            return False
        if not any(field.id == self._shown_id for field in self._session.fields):
            return False
        before = self._session.fields
        self._session.update_field(self._shown_id, **changes)
        if self._session.fields is before:
            return False
        if notify:
            self.field_edited.emit()
        return True

    def _apply(self, **changes) -> None:
        if self._refreshing or self._session.selected_id is None:
            return
        self._session.update_field(self._session.selected_id, **changes)
        self.field_edited.emit()

    def _on_item_clicked(self, item: QListWidgetItem) -> None:
        self._session.select_from_list(item.data(Qt.ItemDataRole.UserRole))
        self.field_chosen.emit()
