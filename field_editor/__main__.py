"""Launch the template field editor."""

from __future__ import annotations

import sys

from PySide6.QtWidgets import QApplication

from field_editor.config import configure_logging, get_settings
from field_editor.ui.main_window import MainWindow


def main() -> int:
    settings = get_settings()
    configure_logging(settings.log_level)

    app = QApplication(sys.argv)
    window = MainWindow(settings)
    window.show()
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
